"""Identifier-to-filename sanitization and traversal-safe path joining."""
from __future__ import annotations

import pathlib
import re

from stagepilot.errors import ValidationError

MAX_ID_LEN = 120
_FALLBACK_NAME = "project"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_id_to_filename(value: str) -> str:
    """Turn an arbitrary identifier or slug into a safe file-system name.

    Characters outside ``[A-Za-z0-9._-]`` become ``_``, the result is capped
    at ``MAX_ID_LEN`` characters and stripped of leading dots.  An empty
    result is replaced by ``"project"``::

        sanitize_id_to_filename("project-1")   # "project-1"
        sanitize_id_to_filename("../../evil")  # "_.._evil"
        sanitize_id_to_filename("")            # "project"
    """
    out = _UNSAFE_CHARS.sub("_", value[:MAX_ID_LEN]).lstrip(".")
    return out or _FALLBACK_NAME


def safe_join(base: pathlib.Path, child: str) -> pathlib.Path:
    """Join a caller-supplied relative path under *base*.

    Raises:
        ValidationError: ``PATH_REJECTED`` when *child* is absolute or has
            a ``..`` component.
    """
    child_path = pathlib.PurePath(child)
    if child_path.is_absolute() or child_path.anchor:
        raise ValidationError("PATH_REJECTED", f"Absolute paths are not allowed: {child}")
    if ".." in child_path.parts:
        raise ValidationError("PATH_REJECTED", f"Path traversal is not allowed: {child}")
    return base / child_path
