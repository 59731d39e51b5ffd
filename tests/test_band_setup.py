"""Tests for ``stagepilot.setup`` — band setup resolution.

Covers:
- Monitoring inference from preset references.
- Default-lineup normalisation (vocal aliases, last wins, idempotence).
- Band lookup by id, by code and by id ignoring case; not-found message.
- Global roster: every role key present, display names, sorting.
- Band restriction: explicit roles, global-role fallback, unknown musicians
  and roles skipped, dedup, all-empty restriction ignored.
- Constraint decoding and its failure.
- Malformed or non-UTF-8 source records.
- Load warnings for missing default-lineup musicians.
"""
from __future__ import annotations

import json
import pathlib
from collections.abc import Callable

import pytest

from stagepilot.errors import MalformedDocumentError, NotFoundError, StorageIOError, ValidationError
from stagepilot.models.setup import STAGE_ROLES, MonitorMode, MonitorType
from stagepilot.setup.lineup import lineup_musician_ids, normalize_default_lineup_keys
from stagepilot.setup.monitoring import infer_monitoring_default
from stagepilot.setup.resolver import BandSetupResolver

WriteBand = Callable[..., pathlib.Path]
WriteMusician = Callable[..., pathlib.Path]


# ---------------------------------------------------------------------------
# infer_monitoring_default
# ---------------------------------------------------------------------------


def test_infer_wireless_stereo() -> None:
    default = infer_monitoring_default("Shure PSM wireless stereo")
    assert default.type is MonitorType.WIRELESS_IEM
    assert default.mode is MonitorMode.STEREO
    assert default.mix_count == 2


def test_infer_wedge_mono() -> None:
    default = infer_monitoring_default("wedge-1")
    assert (default.type, default.mode, default.mix_count) == (MonitorType.WEDGE, MonitorMode.MONO, 1)


def test_infer_wired_iem_case_insensitive() -> None:
    default = infer_monitoring_default("  IEM_Wired_Mono ")
    assert default.type is MonitorType.WIRED_IEM
    assert default.mix_count == 2
    assert default.to_wire() == {"type": "iem_wired", "mode": "mono", "mixCount": 2}


# ---------------------------------------------------------------------------
# normalize_default_lineup_keys
# ---------------------------------------------------------------------------


def test_lineup_folds_vocal_aliases_last_wins() -> None:
    lineup = {"lead_vocs": "v-old", "drums": "d1", "vocs": "v-new"}
    assert normalize_default_lineup_keys(lineup) == {"drums": "d1", "vocs": "v-new"}


def test_lineup_legacy_after_canonical_wins() -> None:
    assert normalize_default_lineup_keys({"vocs": "a", "lead_voc": "b"}) == {"vocs": "b"}


def test_lineup_normalisation_is_idempotent() -> None:
    once = normalize_default_lineup_keys({"lead_vocs": ["v1", "v2"], "bass": "b1"})
    assert normalize_default_lineup_keys(once) == once


def test_lineup_normalisation_passes_non_objects_through() -> None:
    assert normalize_default_lineup_keys(None) is None
    assert normalize_default_lineup_keys(["drums"]) == ["drums"]


def test_lineup_musician_ids() -> None:
    assert lineup_musician_ids("d1") == ["d1"]
    assert lineup_musician_ids(["v1", 3, "", "v2"]) == ["v1", "v2"]
    assert lineup_musician_ids({"id": "x"}) == []


# ---------------------------------------------------------------------------
# Band lookup
# ---------------------------------------------------------------------------


def test_find_band_by_id_code_and_id_case(data_dir: pathlib.Path, write_band: WriteBand) -> None:
    write_band({"id": "band-one", "name": "Band One", "code": "ONE"})
    resolver = BandSetupResolver(data_dir)

    assert resolver.find_band("band-one")["name"] == "Band One"
    assert resolver.find_band("one")["name"] == "Band One"
    assert resolver.find_band(" BAND-ONE ")["name"] == "Band One"


def test_find_band_not_found(data_dir: pathlib.Path, write_band: WriteBand) -> None:
    write_band({"id": "band-one", "name": "Band One", "code": "ONE"})

    with pytest.raises(NotFoundError) as exc_info:
        BandSetupResolver(data_dir).find_band("ghost")

    assert exc_info.value.code == "BAND_NOT_FOUND"
    assert "'ghost'" in exc_info.value.message
    assert "checked id and code" in exc_info.value.message
    assert str(data_dir / "bands") in exc_info.value.message


def test_malformed_band_file(data_dir: pathlib.Path) -> None:
    (data_dir / "bands" / "broken.json").write_text("{nope", encoding="utf-8")
    with pytest.raises(MalformedDocumentError) as exc_info:
        BandSetupResolver(data_dir).resolve("x")
    assert exc_info.value.code == "BAND_SETUP_LOAD_FAILED"


def test_undecodable_band_file(data_dir: pathlib.Path) -> None:
    (data_dir / "bands" / "latin1.json").write_bytes(b'{"id": "b1", "name": "Kapela \xe8"}')
    with pytest.raises(MalformedDocumentError) as exc_info:
        BandSetupResolver(data_dir).resolve("b1")
    assert exc_info.value.code == "BAND_SETUP_LOAD_FAILED"
    assert "latin1.json" in exc_info.value.message


def test_undecodable_musician_file(data_dir: pathlib.Path, write_band: WriteBand) -> None:
    write_band({"id": "b1", "name": "Band", "code": "B1"})
    role_dir = data_dir / "musicians" / "bass"
    role_dir.mkdir(parents=True)
    (role_dir / "m1.json").write_bytes(b'{"id": "m1", "lastName": "\xff"}')

    with pytest.raises(MalformedDocumentError):
        BandSetupResolver(data_dir).resolve("b1")


def test_missing_bands_dir(tmp_path: pathlib.Path) -> None:
    with pytest.raises(StorageIOError) as exc_info:
        BandSetupResolver(tmp_path / "nowhere").resolve("x")
    assert exc_info.value.code == "BAND_SETUP_LOAD_FAILED"


# ---------------------------------------------------------------------------
# Roster and restriction
# ---------------------------------------------------------------------------


def test_unrestricted_roster(data_dir: pathlib.Path, write_band: WriteBand, write_musician: WriteMusician) -> None:
    write_band({"id": "b1", "name": "Band", "code": "B1"})
    write_musician("drums", "d1", "Zoe", "Novak", monitor_ref="wedge-1")
    write_musician("drums", "d2", "Adam", "Bílý", monitor_ref="Shure PSM wireless stereo")
    write_musician("bass", "b1", "Petr", "Král")

    setup = BandSetupResolver(data_dir).resolve("b1")

    assert list(setup.members) == list(STAGE_ROLES)
    assert [m.name for m in setup.members["drums"]] == ["Bílý Adam", "Novak Zoe"]
    assert [m.id for m in setup.members["bass"]] == ["b1"]
    assert setup.members["talkback"] == []
    assert setup.musician_defaults["d1"].monitoring.type is MonitorType.WEDGE
    assert setup.musician_defaults["d2"].monitoring.mode is MonitorMode.STEREO
    assert "b1" not in setup.musician_defaults


def test_monitor_preset_without_ref_is_skipped(data_dir: pathlib.Path, write_band: WriteBand) -> None:
    write_band({"id": "b1", "name": "Band", "code": "B1"})
    role_dir = data_dir / "musicians" / "keys"
    role_dir.mkdir(parents=True)
    (role_dir / "k1.json").write_text(
        json.dumps(
            {
                "id": "k1",
                "firstName": "Jan",
                "lastName": "Dvořák",
                "presets": [
                    {"kind": "monitor"},
                    {"kind": "monitor", "ref": 7},
                    {"kind": "monitor", "ref": "iem_wireless_stereo"},
                ],
            }
        ),
        encoding="utf-8",
    )
    (role_dir / "k2.json").write_text(
        json.dumps({"id": "k2", "firstName": "Eva", "lastName": "Malá", "presets": [{"kind": "monitor"}]}),
        encoding="utf-8",
    )

    setup = BandSetupResolver(data_dir).resolve("b1")

    assert setup.musician_defaults["k1"].monitoring.type is MonitorType.WIRELESS_IEM
    assert "k2" not in setup.musician_defaults


def test_drums_only_restriction(data_dir: pathlib.Path, write_band: WriteBand, write_musician: WriteMusician) -> None:
    write_musician("drums", "d1", "Zoe", "Novak")
    write_musician("drums", "d2", "Adam", "Bílý")
    write_musician("bass", "b1", "Petr", "Král")
    write_band({"id": "b1", "name": "Band", "code": "B1", "members": [{"musicianId": "d1", "roles": ["drums"]}]})

    setup = BandSetupResolver(data_dir).resolve("b1")

    assert [m.id for m in setup.members["drums"]] == ["d1"]
    for role in STAGE_ROLES:
        if role != "drums":
            assert setup.members[role] == []


def test_restriction_sorted_and_deduplicated(
    data_dir: pathlib.Path, write_band: WriteBand, write_musician: WriteMusician
) -> None:
    write_musician("drums", "d1", "Zoe", "Novak")
    write_musician("drums", "d2", "Adam", "Bílý")
    write_musician("vocs", "v1", "Eva", "Černá")
    write_band(
        {
            "id": "b1",
            "name": "Band",
            "code": "B1",
            "members": [
                {"musicianId": "d1"},
                {"musicianId": "d2", "roles": ["drums", "talkback", "tuba"]},
                {"musicianId": "d1", "roles": ["drums"]},
                {"musicianId": "ghost", "roles": ["bass"]},
                {"musicianId": "v1", "roles": []},
            ],
        }
    )

    setup = BandSetupResolver(data_dir).resolve("b1")

    assert [m.id for m in setup.members["drums"]] == ["d2", "d1"]
    assert [m.id for m in setup.members["talkback"]] == ["d2"]
    assert [m.id for m in setup.members["vocs"]] == ["v1"]
    assert setup.members["bass"] == []


@pytest.mark.parametrize(
    "members",
    [[], [{"musicianId": "ghost"}], [{"musicianId": "d1", "roles": ["tuba"]}]],
)
def test_all_empty_restriction_keeps_global_roster(
    data_dir: pathlib.Path,
    write_band: WriteBand,
    write_musician: WriteMusician,
    members: list[dict[str, object]],
) -> None:
    write_musician("drums", "d1", "Zoe", "Novak")
    write_musician("bass", "b1", "Petr", "Král")
    write_band({"id": "b1", "name": "Band", "code": "B1", "members": members})

    setup = BandSetupResolver(data_dir).resolve("b1")

    assert [m.id for m in setup.members["drums"]] == ["d1"]
    assert [m.id for m in setup.members["bass"]] == ["b1"]


# ---------------------------------------------------------------------------
# Constraints, lineup and warnings
# ---------------------------------------------------------------------------


def test_band_fields_and_constraints(data_dir: pathlib.Path, write_band: WriteBand) -> None:
    write_band(
        {
            "id": "b1",
            "name": "Band",
            "code": "B1",
            "bandLeader": "d1",
            "defaultContactId": "c1",
            "constraints": {"drums": {"min": 1, "max": 1}, "vocs": {"min": 0, "max": 4}},
            "roleConstraints": {"vocs": {"lead": 1}},
        }
    )

    setup = BandSetupResolver(data_dir).resolve("B1")

    assert setup.band_leader == "d1"
    assert setup.default_contact_id == "c1"
    assert setup.constraints["vocs"].max == 4
    assert setup.role_constraints == {"vocs": {"lead": 1}}
    assert setup.to_wire()["constraints"]["drums"] == {"min": 1, "max": 1}


@pytest.mark.parametrize(
    "constraints",
    [{"drums": {"min": "one", "max": 1}}, {"drums": {"min": -1, "max": 1}}, ["drums"]],
)
def test_invalid_constraints_name_the_band(
    data_dir: pathlib.Path, write_band: WriteBand, constraints: object
) -> None:
    write_band({"id": "b1", "name": "Band", "code": "B1", "constraints": constraints})

    with pytest.raises(ValidationError) as exc_info:
        BandSetupResolver(data_dir).resolve("b1")

    assert exc_info.value.code == "BAND_CONSTRAINTS_INVALID"
    assert "b1" in exc_info.value.message


def test_missing_lineup_musicians_warn(
    data_dir: pathlib.Path, write_band: WriteBand, write_musician: WriteMusician
) -> None:
    write_musician("drums", "d1", "Zoe", "Novak")
    write_musician("vocs", "v1", "Eva", "Černá")
    write_band(
        {
            "id": "b1",
            "name": "Band",
            "code": "B1",
            "defaultLineup": {"drums": "d1", "lead_vocs": ["v1", "ghost-v"], "bass": "ghost-b"},
        }
    )

    setup = BandSetupResolver(data_dir).resolve("b1")

    assert setup.default_lineup == {"drums": "d1", "bass": "ghost-b", "vocs": ["v1", "ghost-v"]}
    assert setup.load_warnings == [
        "Band 'b1' defaultLineup role 'bass' references missing musician 'ghost-b'",
        "Band 'b1' defaultLineup role 'vocs' references missing musician 'ghost-v'",
    ]


def test_resolver_never_writes(data_dir: pathlib.Path, write_band: WriteBand, write_musician: WriteMusician) -> None:
    write_musician("drums", "d1", "Zoe", "Novak")
    write_band({"id": "b1", "name": "Band", "code": "B1", "defaultLineup": {"lead_voc": "d1"}})
    before = {p: p.read_bytes() for p in data_dir.rglob("*.json")}

    BandSetupResolver(data_dir).resolve("b1")

    assert {p: p.read_bytes() for p in data_dir.rglob("*.json")} == before
    assert json.loads((data_dir / "bands" / "b1.json").read_text(encoding="utf-8"))["defaultLineup"] == {
        "lead_voc": "d1"
    }


# ---------------------------------------------------------------------------
# list_band_options
# ---------------------------------------------------------------------------


def test_list_band_options(data_dir: pathlib.Path, write_band: WriteBand) -> None:
    write_band({"id": "b1", "name": "zebra", "code": "Z"})
    write_band({"id": "b2", "name": "Alpha"})
    write_band({"id": "b3", "name": ""})
    (data_dir / "bands" / "README.md").write_text("not a band", encoding="utf-8")

    options = BandSetupResolver(data_dir).list_band_options()

    assert [(o.id, o.code) for o in options] == [("b2", None), ("b1", "Z")]
