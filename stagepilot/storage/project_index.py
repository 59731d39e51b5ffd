"""In-memory ``project_id → file_name`` cache for one project store.

The index is an optimisation, never a source of truth: file names change
when a slug changes or when files are moved externally, so every hit is
verified by the store and repaired from a directory scan on a miss.  The
lock is held only for the dict operation itself, never across file I/O.
"""
from __future__ import annotations

import threading


class ProjectIndex:
    """Mutex-guarded map shared by all operations of one :class:`ProjectStore`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files: dict[str, str] = {}

    def get(self, project_id: str) -> str | None:
        with self._lock:
            return self._files.get(project_id)

    def set(self, project_id: str, file_name: str) -> None:
        with self._lock:
            self._files[project_id] = file_name

    def remove(self, project_id: str) -> None:
        with self._lock:
            self._files.pop(project_id, None)

    def clear(self) -> None:
        with self._lock:
            self._files.clear()

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the current mapping (for diagnostics and tests)."""
        with self._lock:
            return dict(self._files)

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)
