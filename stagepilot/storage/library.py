"""Library repository: id-keyed JSON-array collections under ``library/``.

Collections
-----------
Each collection is one pretty-printed JSON array::

    library/bands.json         LibraryBand
    library/musicians.json     LibraryMusician
    library/instruments.json   LibraryInstrument
    library/contacts.json      LibraryContact
    library/messages.json      LibraryMessage

A missing file is an empty collection.  Writes go through
:func:`~stagepilot.storage.atomic.atomic_write_text`, so a crash mid-save
leaves the previous collection intact.

Integrity rules
---------------
- ``id`` is unique within a collection (upsert replaces in place).
- Band ``code`` is unique case-insensitively; bands need ``id``, ``name``
  and ``code``, musicians need ``id`` and ``name``.
- A band referenced by any project's ``bandRef`` cannot be deleted; a
  musician referenced by any band member cannot be deleted.  Both checks are
  linear scans at delete time; no back-references are stored.
"""
from __future__ import annotations

import enum
import json
import logging
import pathlib

import pydantic

from stagepilot.errors import (
    DeleteBlockedError,
    MalformedDocumentError,
    NotFoundError,
    ValidationError,
    storage_io_error,
)
from stagepilot.models.base import CamelModel
from stagepilot.models.library import (
    LibraryBand,
    LibraryContact,
    LibraryInstrument,
    LibraryMessage,
    LibraryMusician,
)
from stagepilot.storage.atomic import atomic_write_text, read_text
from stagepilot.storage.layout import StorageLayout
from stagepilot.storage.project_store import ProjectStore

logger = logging.getLogger(__name__)


class LibraryCollection(str, enum.Enum):
    """Named library collection; the value is the CLI / host spelling."""

    BANDS = "bands"
    MUSICIANS = "musicians"
    INSTRUMENTS = "instruments"
    CONTACTS = "contacts"
    MESSAGES = "messages"

    @property
    def file_name(self) -> str:
        return f"{self.value}.json"

    @property
    def model(self) -> type[CamelModel]:
        return _COLLECTION_MODELS[self]


_COLLECTION_MODELS: dict[LibraryCollection, type[CamelModel]] = {
    LibraryCollection.BANDS: LibraryBand,
    LibraryCollection.MUSICIANS: LibraryMusician,
    LibraryCollection.INSTRUMENTS: LibraryInstrument,
    LibraryCollection.CONTACTS: LibraryContact,
    LibraryCollection.MESSAGES: LibraryMessage,
}


def _item_id(item: CamelModel) -> str:
    return str(getattr(item, "id"))


def _by_name(item: CamelModel) -> str:
    return str(getattr(item, "name")).lower()


class LibraryRepository:
    """CRUD over the library collections of one user-data root.

    Args:
        layout:        Storage layout providing ``library/``.
        project_store: Used only to enforce the band delete check.
    """

    def __init__(self, layout: StorageLayout, project_store: ProjectStore) -> None:
        self.layout = layout
        self.project_store = project_store

    def collection_path(self, collection: LibraryCollection) -> pathlib.Path:
        return self.layout.library_dir / collection.file_name

    # ------------------------------------------------------------------ #
    #  Generic collection I/O
    # ------------------------------------------------------------------ #

    def load_collection(self, collection: LibraryCollection) -> list[CamelModel]:
        """Return every record of *collection* in stored order.

        Raises:
            MalformedDocumentError: ``LIBRARY_READ_FAILED`` when the file is
                not a JSON array of valid records.
            StorageIOError: the file exists but cannot be read.
        """
        path = self.collection_path(collection)
        if not path.exists():
            return []
        try:
            content = read_text(path)
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(
                "LIBRARY_READ_FAILED", f"Invalid {collection.file_name} JSON (not UTF-8: {exc.reason})"
            ) from exc
        except OSError as exc:
            raise storage_io_error(exc, "LIBRARY_READ_FAILED", f"Failed to read {collection.file_name}") from exc
        adapter = pydantic.TypeAdapter(list[collection.model])  # type: ignore[name-defined]
        try:
            items: list[CamelModel] = adapter.validate_json(content)
        except pydantic.ValidationError as exc:
            raise MalformedDocumentError(
                "LIBRARY_READ_FAILED",
                f"Invalid {collection.file_name} JSON ({exc.error_count()} errors: {exc.errors()[0]['msg']})",
            ) from exc
        return items

    def save_collection(self, collection: LibraryCollection, items: list[CamelModel]) -> None:
        """Replace *collection* with *items*, pretty-printed, atomically."""
        path = self.collection_path(collection)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise storage_io_error(exc, "LIBRARY_WRITE_FAILED", "Failed to create library directory") from exc
        payload = json.dumps([item.to_wire() for item in items], indent=2, ensure_ascii=False)
        try:
            atomic_write_text(path, payload)
        except OSError as exc:
            raise storage_io_error(exc, "LIBRARY_WRITE_FAILED", f"Failed to save {collection.file_name}") from exc
        logger.debug("✅ Saved %s (%d items)", collection.file_name, len(items))

    # ------------------------------------------------------------------ #
    #  Generic operations
    # ------------------------------------------------------------------ #

    def _validate(self, collection: LibraryCollection, item: CamelModel, existing: list[CamelModel]) -> None:
        if not isinstance(item, collection.model):
            raise ValidationError(
                "LIBRARY_VALIDATION_FAILED",
                f"{type(item).__name__} does not belong in {collection.value}.",
            )
        if isinstance(item, LibraryBand):
            if not item.id.strip() or not item.name.strip() or not item.code.strip():
                raise ValidationError("LIBRARY_VALIDATION_FAILED", "Band id, name, and code are required.")
            code = item.code.lower()
            for other in existing:
                if isinstance(other, LibraryBand) and other.id != item.id and other.code.lower() == code:
                    raise ValidationError("LIBRARY_VALIDATION_FAILED", f"Band code '{item.code}' is already used.")
        elif isinstance(item, LibraryMusician):
            if not item.id.strip() or not item.name.strip():
                raise ValidationError("LIBRARY_VALIDATION_FAILED", "Musician id and name are required.")

    def upsert(self, collection: LibraryCollection, item: CamelModel) -> None:
        """Replace the record with the same ``id`` in place, or append *item*."""
        items = self.load_collection(collection)
        self._validate(collection, item, items)
        item_id = _item_id(item)
        for pos, existing in enumerate(items):
            if _item_id(existing) == item_id:
                items[pos] = item
                break
        else:
            items.append(item)
        self.save_collection(collection, items)
        logger.info("✅ Upserted %s/%s", collection.value, item_id)

    def _ensure_deletable(self, collection: LibraryCollection, item_id: str) -> None:
        if collection is LibraryCollection.BANDS:
            if any(p.band_ref == item_id for p in self.project_store.list_projects()):
                raise DeleteBlockedError(
                    "LIBRARY_DELETE_BLOCKED",
                    "Band is referenced by existing projects and cannot be deleted.",
                )
        elif collection is LibraryCollection.MUSICIANS:
            for band in self.list_bands():
                if any(member.musician_id == item_id for member in band.members):
                    raise DeleteBlockedError(
                        "LIBRARY_DELETE_BLOCKED",
                        "Musician is referenced by a band and cannot be deleted.",
                    )

    def delete(self, collection: LibraryCollection, item_id: str) -> None:
        """Remove the record *item_id*; deleting an absent id is a no-op.

        Raises:
            DeleteBlockedError: the band/musician is still referenced.
        """
        self._ensure_deletable(collection, item_id)
        items = self.load_collection(collection)
        kept = [item for item in items if _item_id(item) != item_id]
        if len(kept) == len(items):
            logger.debug("⚠️ Delete of unknown %s/%s ignored", collection.value, item_id)
            return
        self.save_collection(collection, kept)
        logger.info("✅ Deleted %s/%s", collection.value, item_id)

    def list_items(self, collection: LibraryCollection) -> list[CamelModel]:
        """Return *collection*; bands and musicians are sorted by name."""
        items = self.load_collection(collection)
        if collection in (LibraryCollection.BANDS, LibraryCollection.MUSICIANS):
            items.sort(key=_by_name)
        return items

    # ------------------------------------------------------------------ #
    #  Bands
    # ------------------------------------------------------------------ #

    def list_bands(self) -> list[LibraryBand]:
        return [b for b in self.list_items(LibraryCollection.BANDS) if isinstance(b, LibraryBand)]

    def read_band(self, band_id: str) -> LibraryBand:
        for band in self.list_bands():
            if band.id == band_id:
                return band
        raise NotFoundError("LIBRARY_NOT_FOUND", f"Band not found: {band_id}")

    def upsert_band(self, band: LibraryBand) -> None:
        self.upsert(LibraryCollection.BANDS, band)

    def delete_band(self, band_id: str) -> None:
        self.delete(LibraryCollection.BANDS, band_id)

    def duplicate_band(self, band_id: str) -> LibraryBand:
        """Clone *band_id* under the first free ``<id>_copy`` / ``<id>_copy_<n>`` id.

        The clone is named ``"<name> Copy"`` and gets the code
        ``"<code>-COPY<n>"`` where ``n`` is the same tiebreak (1 for the
        plain ``_copy`` id).

        Returns:
            The stored duplicate.
        """
        source = self.read_band(band_id)
        taken = {band.id for band in self.list_bands()}
        candidate = f"{source.id}_copy"
        index = 2
        while candidate in taken:
            candidate = f"{source.id}_copy_{index}"
            index += 1
        duplicate = source.model_copy(
            deep=True,
            update={
                "id": candidate,
                "name": f"{source.name} Copy",
                "code": f"{source.code}-COPY{index - 1}",
            },
        )
        self.upsert_band(duplicate)
        return duplicate

    # ------------------------------------------------------------------ #
    #  Musicians
    # ------------------------------------------------------------------ #

    def list_musicians(self) -> list[LibraryMusician]:
        return [m for m in self.list_items(LibraryCollection.MUSICIANS) if isinstance(m, LibraryMusician)]

    def upsert_musician(self, musician: LibraryMusician) -> None:
        self.upsert(LibraryCollection.MUSICIANS, musician)

    def delete_musician(self, musician_id: str) -> None:
        self.delete(LibraryCollection.MUSICIANS, musician_id)

    # ------------------------------------------------------------------ #
    #  Instruments / contacts / messages
    # ------------------------------------------------------------------ #

    def list_instruments(self) -> list[LibraryInstrument]:
        return [i for i in self.list_items(LibraryCollection.INSTRUMENTS) if isinstance(i, LibraryInstrument)]

    def upsert_instrument(self, instrument: LibraryInstrument) -> None:
        self.upsert(LibraryCollection.INSTRUMENTS, instrument)

    def delete_instrument(self, instrument_id: str) -> None:
        self.delete(LibraryCollection.INSTRUMENTS, instrument_id)

    def list_contacts(self) -> list[LibraryContact]:
        return [c for c in self.list_items(LibraryCollection.CONTACTS) if isinstance(c, LibraryContact)]

    def upsert_contact(self, contact: LibraryContact) -> None:
        self.upsert(LibraryCollection.CONTACTS, contact)

    def delete_contact(self, contact_id: str) -> None:
        self.delete(LibraryCollection.CONTACTS, contact_id)

    def list_messages(self) -> list[LibraryMessage]:
        return [m for m in self.list_items(LibraryCollection.MESSAGES) if isinstance(m, LibraryMessage)]

    def upsert_message(self, message: LibraryMessage) -> None:
        self.upsert(LibraryCollection.MESSAGES, message)

    def delete_message(self, message_id: str) -> None:
        self.delete(LibraryCollection.MESSAGES, message_id)

    def parse_item(self, collection: LibraryCollection, raw: str) -> CamelModel:
        """Validate a single JSON record for *collection* (host / CLI input)."""
        try:
            return collection.model.model_validate_json(raw)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "LIBRARY_VALIDATION_FAILED",
                f"Invalid {collection.value} record ({exc.error_count()} errors: {exc.errors()[0]['msg']})",
            ) from exc
