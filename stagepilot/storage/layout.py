"""User-data directory layout and storage metadata.

Layout under the user-data root::

    storage.json        schemaVersion, createdAt[, lastMigratedAt]
    projects/           one <slug>.json per project
    exports/            published PDFs (<slug>.pdf, <slug>__<n>.pdf)
    versions/<id>/      rendered version snapshots per project
    temp/               preview PDFs (preview_<key>.pdf)
    assets/
    library/            bands.json, musicians.json, instruments.json, ...

``ensure()`` is idempotent.  An existing ``storage.json`` with any schema
version other than :data:`STORAGE_SCHEMA_VERSION` is a hard failure; there
is no migration logic at this layer.
"""
from __future__ import annotations

import datetime
import json
import logging
import pathlib

import pydantic

from stagepilot.errors import MalformedDocumentError, SchemaVersionError, storage_io_error
from stagepilot.models.base import CamelModel
from stagepilot.storage.atomic import atomic_write_text, read_text, remove_tree

logger = logging.getLogger(__name__)

STORAGE_SCHEMA_VERSION = 1
STORAGE_META_FILENAME = "storage.json"

_FOLDERS = ("projects", "exports", "temp", "versions", "assets", "library")


class StorageMeta(CamelModel):
    schema_version: int
    created_at: str
    last_migrated_at: str | None = None


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


class StorageLayout:
    """Resolves every well-known directory under one user-data root."""

    def __init__(self, root: pathlib.Path) -> None:
        self.root = root

    @property
    def projects_dir(self) -> pathlib.Path:
        return self.root / "projects"

    @property
    def exports_dir(self) -> pathlib.Path:
        return self.root / "exports"

    @property
    def versions_dir(self) -> pathlib.Path:
        return self.root / "versions"

    @property
    def temp_dir(self) -> pathlib.Path:
        return self.root / "temp"

    @property
    def assets_dir(self) -> pathlib.Path:
        return self.root / "assets"

    @property
    def library_dir(self) -> pathlib.Path:
        return self.root / "library"

    @property
    def meta_path(self) -> pathlib.Path:
        return self.root / STORAGE_META_FILENAME

    def ensure(self) -> StorageMeta:
        """Create the folder tree and validate (or write) ``storage.json``.

        Raises:
            SchemaVersionError: the metadata names another schema version.
            MalformedDocumentError: the metadata file is not valid JSON.
            StorageIOError: a folder or the metadata could not be written.
        """
        try:
            for folder in _FOLDERS:
                (self.root / folder).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise storage_io_error(exc, "STORAGE_INIT_FAILED", "Failed to create storage folders") from exc

        if not self.meta_path.exists():
            meta = StorageMeta(schema_version=STORAGE_SCHEMA_VERSION, created_at=_now_iso())
            try:
                atomic_write_text(self.meta_path, json.dumps(meta.to_wire(), indent=2))
            except OSError as exc:
                raise storage_io_error(exc, "STORAGE_INIT_FAILED", "Failed to write storage metadata") from exc
            logger.info("✅ Initialised storage at %s", self.root)
            return meta

        try:
            raw = read_text(self.meta_path)
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(
                "STORAGE_INIT_FAILED", f"Invalid storage metadata JSON (not UTF-8: {exc.reason})"
            ) from exc
        except OSError as exc:
            raise storage_io_error(exc, "STORAGE_INIT_FAILED", "Failed to read storage metadata") from exc
        try:
            meta = StorageMeta.model_validate_json(raw)
        except pydantic.ValidationError as exc:
            raise MalformedDocumentError(
                "STORAGE_INIT_FAILED", f"Invalid storage metadata JSON ({exc.error_count()} errors)"
            ) from exc
        if meta.schema_version != STORAGE_SCHEMA_VERSION:
            raise SchemaVersionError(meta.schema_version, STORAGE_SCHEMA_VERSION)
        return meta

    def wipe(self) -> None:
        """Delete the whole user-data root (development reset)."""
        if not self.root.exists():
            return
        try:
            remove_tree(self.root)
        except OSError as exc:
            raise storage_io_error(exc, "STORAGE_INIT_FAILED", "Failed to wipe storage") from exc
        logger.warning("⚠️ Wiped StagePilot storage at %s", self.root)
