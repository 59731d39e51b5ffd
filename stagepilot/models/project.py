"""Read-only projections of project documents."""
from __future__ import annotations

from pydantic import ConfigDict

from stagepilot.models.base import CamelModel


class ProjectSummary(CamelModel):
    """Listing row derived from a project document; never persisted."""

    id: str
    slug: str | None = None
    display_name: str | None = None
    band_ref: str | None = None
    event_date: str | None = None
    event_venue: str | None = None
    purpose: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class BandOption(CamelModel):
    """A selectable band in the project wizard."""

    id: str
    name: str
    code: str | None = None


class ProjectVersionMeta(CamelModel):
    """``meta.json`` of one rendered version snapshot under ``versions/<projectId>/``.

    Written by the renderer; unknown fields are preserved so listing never
    drops information the renderer added.
    """

    model_config = ConfigDict(extra="allow")

    project_id: str
    version_id: str
    generated_at: str
    schema_version: int = 1
    pdf_file_name: str | None = None
