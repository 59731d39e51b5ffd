"""Tests for ``stagepilot.storage.library.LibraryRepository``.

Covers:
- Missing collection file reads as empty; saves are pretty-printed camelCase.
- Upsert replaces in place or appends.
- Band rules: id/name/code required, code unique case-insensitively.
- Musician rules: id/name required.
- Referential integrity: bands used by projects and musicians used by bands
  cannot be deleted; an unreferenced delete removes exactly one entry.
- ``duplicate_band`` id / name / code generation.
- Malformed collection files and invalid host input.
"""
from __future__ import annotations

import json

import pytest

from stagepilot.errors import DeleteBlockedError, MalformedDocumentError, NotFoundError, ValidationError
from stagepilot.models.library import (
    LibraryBand,
    LibraryBandMember,
    LibraryContact,
    LibraryInstrument,
    LibraryMessage,
    LibraryMusician,
)
from stagepilot.storage.library import LibraryCollection, LibraryRepository
from stagepilot.storage.project_store import ProjectStore


def _band(band_id: str, name: str, code: str, *members: str) -> LibraryBand:
    return LibraryBand(
        id=band_id,
        name=name,
        code=code,
        members=[LibraryBandMember(musician_id=m, roles=["drums"]) for m in members],
    )


# ---------------------------------------------------------------------------
# collection I/O
# ---------------------------------------------------------------------------


def test_missing_collection_is_empty(library: LibraryRepository) -> None:
    assert library.load_collection(LibraryCollection.INSTRUMENTS) == []
    assert library.list_bands() == []


def test_saved_collection_is_pretty_camel_case(library: LibraryRepository) -> None:
    library.upsert_band(_band("b1", "Band", "B1", "m1"))

    text = library.collection_path(LibraryCollection.BANDS).read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    stored = json.loads(text)
    assert stored[0]["members"][0]["musicianId"] == "m1"
    assert stored[0]["members"][0]["isDefault"] is False


def test_malformed_collection(library: LibraryRepository) -> None:
    path = library.collection_path(LibraryCollection.MUSICIANS)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('{"not": "a list"}', encoding="utf-8")

    with pytest.raises(MalformedDocumentError) as exc_info:
        library.list_musicians()
    assert exc_info.value.code == "LIBRARY_READ_FAILED"
    assert "musicians.json" in exc_info.value.message


# ---------------------------------------------------------------------------
# upsert
# ---------------------------------------------------------------------------


def test_upsert_replaces_in_place(library: LibraryRepository) -> None:
    library.upsert_musician(LibraryMusician(id="m1", name="Alice"))
    library.upsert_musician(LibraryMusician(id="m2", name="Bob"))
    library.upsert_musician(LibraryMusician(id="m1", name="Alice B.", default_roles=["vocs"]))

    stored = library.load_collection(LibraryCollection.MUSICIANS)
    assert [item.id for item in stored] == ["m1", "m2"]  # type: ignore[attr-defined]
    assert library.list_musicians()[0].default_roles == ["vocs"]


@pytest.mark.parametrize(
    "band",
    [
        LibraryBand(id="", name="Band", code="B"),
        LibraryBand(id="b1", name=" ", code="B"),
        LibraryBand(id="b1", name="Band", code=""),
    ],
)
def test_band_requires_id_name_code(library: LibraryRepository, band: LibraryBand) -> None:
    with pytest.raises(ValidationError) as exc_info:
        library.upsert_band(band)
    assert exc_info.value.code == "LIBRARY_VALIDATION_FAILED"


def test_band_code_unique_case_insensitive(library: LibraryRepository) -> None:
    library.upsert_band(_band("b1", "First", "ABC"))

    with pytest.raises(ValidationError) as exc_info:
        library.upsert_band(_band("b2", "Second", "abc"))
    assert "abc" in exc_info.value.message

    library.upsert_band(_band("b1", "First renamed", "abc"))
    assert library.read_band("b1").code == "abc"


def test_musician_requires_name(library: LibraryRepository) -> None:
    with pytest.raises(ValidationError):
        library.upsert_musician(LibraryMusician(id="m1", name=""))


def test_upsert_rejects_record_of_other_collection(library: LibraryRepository) -> None:
    with pytest.raises(ValidationError):
        library.upsert(LibraryCollection.CONTACTS, LibraryMusician(id="m1", name="Alice"))


def test_simple_collections(library: LibraryRepository) -> None:
    library.upsert_instrument(LibraryInstrument(id="i1", name="Kick", key="kick_in"))
    library.upsert_contact(LibraryContact(id="c1", name="FOH", primary=True))
    library.upsert_message(LibraryMessage(id="t1", name="Advance", body="Hi"))

    assert library.list_instruments()[0].channels == 1
    assert library.list_contacts()[0].primary is True
    library.delete_message("t1")
    assert library.list_messages() == []


def test_parse_item_validates_host_input(library: LibraryRepository) -> None:
    item = library.parse_item(LibraryCollection.BANDS, '{"id": "b1", "name": "Band", "code": "B"}')
    assert isinstance(item, LibraryBand)

    with pytest.raises(ValidationError):
        library.parse_item(LibraryCollection.BANDS, '{"id": "b1"}')


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_band_referenced_by_project_is_blocked(
    library: LibraryRepository, store: ProjectStore
) -> None:
    library.upsert_band(_band("b1", "Band", "B1"))
    store.save("p1", json.dumps({"id": "p1", "slug": "show", "bandRef": "b1"}))
    path = library.collection_path(LibraryCollection.BANDS)
    before = path.read_bytes()

    with pytest.raises(DeleteBlockedError) as exc_info:
        library.delete_band("b1")

    assert exc_info.value.code == "LIBRARY_DELETE_BLOCKED"
    assert path.read_bytes() == before


def test_delete_unreferenced_band_removes_one(library: LibraryRepository, store: ProjectStore) -> None:
    library.upsert_band(_band("b1", "Alpha", "A"))
    library.upsert_band(_band("b2", "Beta", "B"))
    store.save("p1", json.dumps({"id": "p1", "slug": "show", "bandRef": "b2"}))

    library.delete_band("b1")

    assert [b.id for b in library.list_bands()] == ["b2"]


def test_delete_musician_referenced_by_band_is_blocked(library: LibraryRepository) -> None:
    library.upsert_musician(LibraryMusician(id="m1", name="Alice"))
    library.upsert_band(_band("b1", "Band", "B1", "m1"))

    with pytest.raises(DeleteBlockedError):
        library.delete_musician("m1")
    assert [m.id for m in library.list_musicians()] == ["m1"]


def test_delete_unknown_id_is_noop(library: LibraryRepository) -> None:
    library.upsert_instrument(LibraryInstrument(id="i1", name="Kick", key="kick"))
    library.delete_instrument("missing")
    assert len(library.list_instruments()) == 1


# ---------------------------------------------------------------------------
# duplicate / listing
# ---------------------------------------------------------------------------


def test_duplicate_band(library: LibraryRepository) -> None:
    library.upsert_band(_band("b1", "Band", "ABC", "m1"))

    first = library.duplicate_band("b1")
    second = library.duplicate_band("b1")

    assert (first.id, first.name, first.code) == ("b1_copy", "Band Copy", "ABC-COPY1")
    assert (second.id, second.code) == ("b1_copy_2", "ABC-COPY2")
    assert first.members[0].musician_id == "m1"
    assert {b.id for b in library.list_bands()} == {"b1", "b1_copy", "b1_copy_2"}


def test_duplicate_missing_band(library: LibraryRepository) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        library.duplicate_band("nope")
    assert exc_info.value.code == "LIBRARY_NOT_FOUND"


def test_list_bands_sorted_case_insensitive(library: LibraryRepository) -> None:
    library.upsert_band(_band("b1", "zebra", "Z"))
    library.upsert_band(_band("b2", "Alpha", "A"))
    library.upsert_band(_band("b3", "beta", "B"))
    assert [b.name for b in library.list_bands()] == ["Alpha", "beta", "zebra"]


def test_undecodable_collection(library: LibraryRepository) -> None:
    path = library.collection_path(LibraryCollection.CONTACTS)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b'[{"id": "c1", "name": "\xff"}]')

    with pytest.raises(MalformedDocumentError) as exc_info:
        library.list_contacts()
    assert exc_info.value.code == "LIBRARY_READ_FAILED"
