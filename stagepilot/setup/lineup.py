"""Default-lineup normalisation.

Band records written by older versions spell the vocal role ``lead_vocs``
or ``lead_voc``.  Everything downstream only knows the canonical ``vocs``
key, so the lineup is normalised once, before any typed parsing.
"""
from __future__ import annotations

from pydantic import JsonValue

VOCAL_ROLE = "vocs"
_VOCAL_ALIASES = frozenset({"lead_vocs", "lead_voc", VOCAL_ROLE})


def normalize_default_lineup_keys(default_lineup: JsonValue) -> JsonValue:
    """Fold every vocal-role spelling into a single ``vocs`` key.

    Keys are processed in document order and the last vocal spelling seen
    wins.  ``vocs`` is re-inserted after the other roles.  Non-object input
    is returned unchanged; the function is pure and idempotent.
    """
    if not isinstance(default_lineup, dict):
        return default_lineup

    normalized: dict[str, JsonValue] = {}
    vocal: JsonValue = None
    has_vocal = False
    for key, value in default_lineup.items():
        if key in _VOCAL_ALIASES:
            vocal = value
            has_vocal = True
        else:
            normalized[key] = value
    if has_vocal:
        normalized[VOCAL_ROLE] = vocal
    return normalized


def lineup_musician_ids(value: JsonValue) -> list[str]:
    """Return the musician ids a lineup slot refers to.

    A slot is a single id or a list of ids; blank strings and non-string
    entries are ignored.
    """
    if isinstance(value, str):
        candidates: list[JsonValue] = [value]
    elif isinstance(value, list):
        candidates = value
    else:
        return []
    return [item for item in candidates if isinstance(item, str) and item.strip()]
