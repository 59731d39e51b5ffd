"""Library records: bands, musicians, instruments, contacts and message templates.

Each model maps to one element of a library collection file
(``library/<collection>.json``).  Fields whose shape varies across document
versions (``roleConstraints``, ``defaultLineup``) are kept as ``JsonValue``
and only interpreted by the band setup resolver.
"""
from __future__ import annotations

from pydantic import Field, JsonValue, NonNegativeInt

from stagepilot.models.base import CamelModel


class RoleCountConstraint(CamelModel):
    """Head-count bounds for one stage role."""

    min: NonNegativeInt
    max: NonNegativeInt


class LibraryContact(CamelModel):
    id: str
    name: str
    title: str | None = None
    phone: str | None = None
    email: str | None = None
    note: str | None = None
    primary: bool | None = None


class LibraryMessage(CamelModel):
    id: str
    name: str
    body: str


class LibraryBandMember(CamelModel):
    """A musician's membership in a band, optionally pinned to explicit roles."""

    musician_id: str
    roles: list[str] = Field(default_factory=list)
    is_default: bool = False


class LibraryBand(CamelModel):
    """A band with its roster restriction, constraints and embedded contacts."""

    id: str
    name: str
    code: str
    description: str | None = None
    constraints: dict[str, RoleCountConstraint] = Field(default_factory=dict)
    role_constraints: JsonValue = None
    default_lineup: JsonValue = None
    members: list[LibraryBandMember] = Field(default_factory=list)
    contacts: list[LibraryContact] = Field(default_factory=list)
    messages: list[LibraryMessage] = Field(default_factory=list)


class LibraryMusician(CamelModel):
    id: str
    name: str
    gender: str | None = None
    default_roles: list[str] = Field(default_factory=list)
    notes: str | None = None


class LibraryInstrument(CamelModel):
    id: str
    name: str
    key: str
    channels: NonNegativeInt = 1
    stereo_mode: str | None = None
    notes: str | None = None
