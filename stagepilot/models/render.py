"""Renderer subprocess contract.

The renderer prints exactly one JSON object on stdout::

    {"ok": true, "result": {...}}
    {"ok": false, "code": "...", "message": "...", "exportPdfPath": "...", "versionPdfPath": "..."}

Anything else is a parse failure.
"""
from __future__ import annotations

from pydantic import JsonValue

from stagepilot.models.base import CamelModel


class RenderResponse(CamelModel):
    ok: bool
    result: JsonValue = None
    code: str | None = None
    message: str | None = None
    export_pdf_path: str | None = None
    version_pdf_path: str | None = None


class ExportPdfResult(CamelModel):
    version_pdf_path: str
    export_pdf_path: str
    export_updated: bool
    version_id: str
    version_path: str


class PreviewPdfResult(CamelModel):
    preview_pdf_path: str
