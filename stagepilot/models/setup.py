"""Band setup view returned by the resolver (computed, never persisted)."""
from __future__ import annotations

import enum

from pydantic import Field, JsonValue

from stagepilot.models.base import CamelModel
from stagepilot.models.library import RoleCountConstraint

# Fixed role keys of BandSetupData.members; also the musician source directory names.
STAGE_ROLES: tuple[str, ...] = ("drums", "bass", "guitar", "keys", "vocs", "talkback")


class MonitorType(str, enum.Enum):
    WIRELESS_IEM = "iem_wireless"
    WIRED_IEM = "iem_wired"
    WEDGE = "wedge"


class MonitorMode(str, enum.Enum):
    MONO = "mono"
    STEREO = "stereo"


class MonitoringDefault(CamelModel):
    type: MonitorType
    mode: MonitorMode
    mix_count: int


class MusicianDefault(CamelModel):
    """Per-musician defaults inferred from the musician's presets."""

    monitoring: MonitoringDefault


class MemberOption(CamelModel):
    id: str
    name: str


class BandSetupData(CamelModel):
    """Merged, validated setup view of one band.

    ``members`` always holds one key per stage role, even when no musician
    qualifies for it.
    """

    id: str
    name: str
    band_leader: str | None = None
    default_contact_id: str | None = None
    constraints: dict[str, RoleCountConstraint] = Field(default_factory=dict)
    role_constraints: JsonValue = None
    default_lineup: JsonValue = None
    members: dict[str, list[MemberOption]] = Field(default_factory=dict)
    musician_defaults: dict[str, MusicianDefault] = Field(default_factory=dict)
    load_warnings: list[str] = Field(default_factory=list)
