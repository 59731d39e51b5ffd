"""On-disk storage: path safety, atomic I/O, layout, projects and the library."""
from __future__ import annotations

from stagepilot.storage.layout import StorageLayout, StorageMeta
from stagepilot.storage.library import LibraryCollection, LibraryRepository
from stagepilot.storage.project_index import ProjectIndex
from stagepilot.storage.project_store import ProjectStore

__all__ = [
    "LibraryCollection",
    "LibraryRepository",
    "ProjectIndex",
    "ProjectStore",
    "StorageLayout",
    "StorageMeta",
]
