"""Pydantic wire models for StagePilot records."""
from __future__ import annotations

from stagepilot.models.base import CamelModel
from stagepilot.models.library import (
    LibraryBand,
    LibraryBandMember,
    LibraryContact,
    LibraryInstrument,
    LibraryMessage,
    LibraryMusician,
    RoleCountConstraint,
)
from stagepilot.models.project import BandOption, ProjectSummary, ProjectVersionMeta
from stagepilot.models.render import ExportPdfResult, PreviewPdfResult, RenderResponse
from stagepilot.models.setup import (
    BandSetupData,
    MemberOption,
    MonitoringDefault,
    MonitorMode,
    MonitorType,
    MusicianDefault,
    STAGE_ROLES,
)

__all__ = [
    "BandOption",
    "BandSetupData",
    "CamelModel",
    "ExportPdfResult",
    "LibraryBand",
    "LibraryBandMember",
    "LibraryContact",
    "LibraryInstrument",
    "LibraryMessage",
    "LibraryMusician",
    "MemberOption",
    "MonitorMode",
    "MonitorType",
    "MonitoringDefault",
    "MusicianDefault",
    "PreviewPdfResult",
    "ProjectSummary",
    "ProjectVersionMeta",
    "RenderResponse",
    "RoleCountConstraint",
    "STAGE_ROLES",
]
