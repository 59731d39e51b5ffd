"""Type definitions and safe accessors for untyped JSON documents.

Project documents and band/musician source records are opaque JSON whose
shape varies across versions.  Use ``JSONValue`` / ``JSONObject`` only while
the shape is genuinely unknown; once a field is known to be well-formed,
parse it into a typed model (see ``stagepilot.models``).

Do **not** use ``JSONValue`` in Pydantic ``BaseModel`` fields; use
``pydantic.JsonValue`` there instead.

## Accessors

- ``jstr(obj, key)``  — a string field or ``None`` (never raises)
- ``jlist(obj, key)`` — a list field or ``[]``
- ``as_object(v)``    — ``TypeGuard`` narrowing ``JSONValue`` → ``JSONObject``
- ``parse_object(text)`` — ``json.loads`` that insists on a top-level object
"""
from __future__ import annotations

import json
from typing import TypeGuard

# Recursive JSON value.
JSONValue = str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]

JSONObject = dict[str, JSONValue]


def as_object(v: JSONValue) -> TypeGuard[JSONObject]:
    """Return ``True`` when *v* is a JSON object."""
    return isinstance(v, dict)


def jstr(obj: JSONObject, key: str) -> str | None:
    """Return ``obj[key]`` when it is a string, else ``None``::

        slug = jstr(doc, "slug")   # None if absent or not a string
    """
    value = obj.get(key)
    return value if isinstance(value, str) else None


def jlist(obj: JSONObject, key: str) -> list[JSONValue]:
    """Return ``obj[key]`` when it is a list, else an empty list."""
    value = obj.get(key)
    return value if isinstance(value, list) else []


def parse_object(text: str) -> JSONObject:
    """Parse *text* and require a top-level JSON object.

    Raises:
        ValueError: (``json.JSONDecodeError`` is a subclass) when the text
            is not JSON or the top-level value is not an object.
    """
    value: JSONValue = json.loads(text)
    if not as_object(value):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value
