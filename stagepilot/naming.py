"""Project identity and naming rules.

Slugs drive on-disk file names, display names drive the project hub.  Both
are derived from the band and the event data::

    event    → ABC_Inputlist_Stageplan_24-05-2025_Lucerna-Hall
               "Band Name – 24/05/2025 – Lucerna Hall"
    generic  → ABC_Inputlist_Stageplan_2025
               "Band Name – Festival rider – 2025"

Project ids are UUIDv7 (time-ordered); anything else is treated as a legacy
id and replaced on the next save.
"""
from __future__ import annotations

import re
import secrets
import time
import unicodedata

from stagepilot.contracts.json_types import JSONObject, jstr
from stagepilot.models.project import BandOption

_UUID_V7_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-7[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_RESERVED_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_MAX_VENUE_SLUG_LEN = 80


def format_date_for_slug(iso: str) -> str:
    """``"2025-05-24"`` → ``"24-05-2025"``; unparseable input → ``"00-00-0000"``."""
    parts = iso.split("-")
    if len(parts) < 3 or not all(parts[:3]):
        return "00-00-0000"
    year, month, day = parts[:3]
    return f"{day}-{month}-{year}"


def format_date_for_display_name(iso: str) -> str:
    """``"2025-05-24"`` → ``"24/05/2025"``; unparseable input → ``"00/00/0000"``."""
    parts = iso.split("-")
    if len(parts) < 3 or not all(parts[:3]):
        return "00/00/0000"
    year, month, day = parts[:3]
    return f"{day}/{month}/{year}"


def sanitize_venue_for_slug(value: str) -> str:
    """Reduce a free-text venue to a title-cased, hyphen-joined slug segment.

    Accents are stripped, reserved file-name characters become spaces and
    everything that is not a letter, digit, space or hyphen is dropped::

        sanitize_venue_for_slug("  Lucerna   hall ")  # "Lucerna-Hall"
        sanitize_venue_for_slug("Café Vůz")           # "Cafe-Vuz"
    """
    decomposed = unicodedata.normalize("NFD", value.strip())
    text = "".join(ch for ch in decomposed if not unicodedata.category(ch).startswith("M"))
    text = _RESERVED_FILENAME_CHARS.sub(" ", text)
    text = "".join(ch for ch in text if ch.isalnum() or ch.isspace() or ch == "-")
    segments = [seg[:1].upper() + seg[1:].lower() for seg in text.split()]
    slug = re.sub(r"-+", "-", "-".join(segments)).strip("-")
    return slug[:_MAX_VENUE_SLUG_LEN]


def _band_code(band: BandOption) -> str:
    return (band.code or "").strip() or band.id


def _is_event(project: JSONObject) -> bool:
    return jstr(project, "purpose") == "event"


def format_project_slug(project: JSONObject, band: BandOption) -> str:
    code = _band_code(band)
    if _is_event(project):
        event_date = format_date_for_slug(jstr(project, "eventDate") or "")
        venue = sanitize_venue_for_slug(jstr(project, "eventVenue") or "") or "Venue"
        return f"{code}_Inputlist_Stageplan_{event_date}_{venue}"
    year = (jstr(project, "documentDate") or "")[:4] or "0000"
    return f"{code}_Inputlist_Stageplan_{year}"


def format_project_display_name(project: JSONObject, band: BandOption) -> str:
    if _is_event(project):
        event_date = format_date_for_display_name(jstr(project, "eventDate") or "")
        venue = (jstr(project, "eventVenue") or "").strip() or "Venue"
        return f"{band.name} – {event_date} – {venue}"
    year = (jstr(project, "documentDate") or "")[:4] or "0000"
    note = (jstr(project, "note") or "").strip()
    return f"{band.name} – {note} – {year}" if note else f"{band.name} – {year}"


def is_uuid_v7(value: str) -> bool:
    return bool(_UUID_V7_RE.match(value))


def generate_uuid_v7(unix_ms: int | None = None) -> str:
    """Return a UUIDv7 string: 48-bit millisecond timestamp, version 7, RFC 4122 variant."""
    ms = int(time.time() * 1000) if unix_ms is None else unix_ms
    rand = bytearray(secrets.token_bytes(10))
    raw = bytearray(ms.to_bytes(6, "big")) + rand
    raw[6] = 0x70 | (raw[6] & 0x0F)
    raw[8] = 0x80 | (raw[8] & 0x3F)
    h = raw.hex()
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"


def migrate_project_identity(project: JSONObject, band: BandOption) -> JSONObject:
    """Return a copy of *project* with a UUIDv7 ``id`` and a ``slug``/``displayName``.

    Existing v7 ids, slugs and display names are kept.
    """
    candidate = (jstr(project, "id") or "").strip()
    migrated: JSONObject = dict(project)
    migrated["id"] = candidate if is_uuid_v7(candidate) else generate_uuid_v7()
    migrated["slug"] = jstr(project, "slug") or format_project_slug(project, band)
    migrated["displayName"] = jstr(project, "displayName") or format_project_display_name(project, band)
    return migrated
