"""Crash-safe file primitives.

Writes go to a sibling temp file that is flushed and fsynced before it is
renamed over the destination with ``os.replace``.  A reader therefore sees
either the old document or the new one, never a partial write, and a crash
mid-write leaves the original untouched.
"""
from __future__ import annotations

import logging
import os
import pathlib
import shutil
import uuid

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


def temp_path_for(path: pathlib.Path) -> pathlib.Path:
    """Return the sibling temp path used while *path* is being written."""
    return path.with_name(path.name + TEMP_SUFFIX)


def _discard(temp: pathlib.Path) -> None:
    try:
        temp.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("⚠️ Could not remove temp file %s: %s", temp, exc)


def atomic_write_bytes(path: pathlib.Path, data: bytes) -> None:
    """Write *data* to *path* via temp-then-rename.

    Raises:
        OSError: when the temp file cannot be written or renamed.  The temp
            file is removed before the error propagates.
    """
    temp = temp_path_for(path)
    try:
        with temp.open("wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(temp, path)
    except OSError:
        _discard(temp)
        raise
    logger.debug("✅ Wrote %s (%d bytes)", path.name, len(data))


def atomic_write_text(path: pathlib.Path, text: str) -> None:
    """UTF-8 text variant of :func:`atomic_write_bytes`."""
    atomic_write_bytes(path, text.encode("utf-8"))


def replace_file_atomic(src: pathlib.Path, dest: pathlib.Path) -> None:
    """Copy *src* over *dest* without exposing a half-copied file.

    The copy lands under a unique temp name next to *dest* and is then
    renamed into place, so an existing *dest* stays intact until the copy
    is complete.  Parent directories of *dest* are created.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    temp = dest.with_name(f"{dest.name}.tmp-{uuid.uuid4().hex[:12]}")
    try:
        shutil.copyfile(src, temp)
        os.replace(temp, dest)
    except OSError:
        _discard(temp)
        raise
    logger.debug("✅ Replaced %s from %s", dest, src.name)


def read_text(path: pathlib.Path) -> str:
    """Read a UTF-8 document exactly as stored (no newline translation)."""
    with path.open(encoding="utf-8", newline="") as fh:
        return fh.read()


def remove_file(path: pathlib.Path) -> None:
    """Delete *path*; a missing file raises ``FileNotFoundError``."""
    path.unlink()


def remove_tree(path: pathlib.Path) -> None:
    """Recursively delete a directory tree."""
    shutil.rmtree(path)
