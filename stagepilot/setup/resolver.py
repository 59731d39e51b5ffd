"""Band setup resolution.

Builds the :class:`~stagepilot.models.setup.BandSetupData` view for one band
from the read-only source records under the data directory::

    <data_dir>/bands/<any>.json            one band record per file
    <data_dir>/musicians/<role>/<any>.json one musician per file, grouped by
                                           their global stage role

Pipeline
--------
1. Band lookup: exact ``id``, then ``code`` case-insensitively, then ``id``
   case-insensitively, evaluated per record in directory order; the first
   record matching any of the three wins.
2. Global roster: every musician per role, display name
   ``"<lastName> <firstName>"``; the first ``{"kind": "monitor"}`` preset
   yields a monitoring default.
3. Band restriction: ``members[]`` rebuilds the roster from the listed
   musicians only.  A restriction that leaves every role empty is ignored.
4. Default lineup: vocal aliases folded into ``vocs``.
5. Constraints decoded into :class:`RoleCountConstraint` (hard error).
6. Load warnings for lineup references to unknown musicians (advisory).

The resolver never writes.
"""
from __future__ import annotations

import logging
import pathlib
from collections.abc import Iterator
from dataclasses import dataclass, field

import pydantic

from stagepilot.contracts.json_types import JSONObject, as_object, jlist, jstr, parse_object
from stagepilot.errors import MalformedDocumentError, NotFoundError, ValidationError, storage_io_error
from stagepilot.models.library import RoleCountConstraint
from stagepilot.models.project import BandOption
from stagepilot.models.setup import STAGE_ROLES, BandSetupData, MemberOption, MusicianDefault
from stagepilot.setup.lineup import lineup_musician_ids, normalize_default_lineup_keys
from stagepilot.setup.monitoring import infer_monitoring_default
from stagepilot.storage.atomic import read_text

logger = logging.getLogger(__name__)

_CONSTRAINTS_ADAPTER = pydantic.TypeAdapter(dict[str, RoleCountConstraint])


@dataclass
class _Roster:
    """Global musician roster assembled from the per-role source directories."""

    members: dict[str, list[MemberOption]] = field(default_factory=dict)
    by_id: dict[str, tuple[str, str]] = field(default_factory=dict)  # id → (name, role)
    defaults: dict[str, MusicianDefault] = field(default_factory=dict)


def _sorted_unique(options: list[MemberOption]) -> list[MemberOption]:
    seen: set[str] = set()
    unique: list[MemberOption] = []
    for option in options:
        if option.id in seen:
            continue
        seen.add(option.id)
        unique.append(option)
    return sorted(unique, key=lambda o: o.name.lower())


def _monitor_ref(musician: JSONObject) -> str | None:
    for preset in jlist(musician, "presets"):
        if not as_object(preset) or jstr(preset, "kind") != "monitor":
            continue
        ref = jstr(preset, "ref")
        if ref is not None:
            return ref
    return None


def _display_name(musician: JSONObject, musician_id: str) -> str:
    last = jstr(musician, "lastName") or ""
    first = jstr(musician, "firstName") or ""
    return f"{last} {first}".strip() or jstr(musician, "name") or musician_id


class BandSetupResolver:
    """Read-only resolver over the band and musician source records.

    Args:
        data_dir: Root holding ``bands/`` and ``musicians/<role>/``.
    """

    def __init__(self, data_dir: pathlib.Path) -> None:
        self.data_dir = data_dir

    @property
    def bands_dir(self) -> pathlib.Path:
        return self.data_dir / "bands"

    @property
    def musicians_dir(self) -> pathlib.Path:
        return self.data_dir / "musicians"

    # ------------------------------------------------------------------ #
    #  Source records
    # ------------------------------------------------------------------ #

    def _json_records(
        self, directory: pathlib.Path, code: str, what: str
    ) -> Iterator[tuple[pathlib.Path, JSONObject]]:
        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            raise storage_io_error(exc, code, f"Failed to read {what} at {directory}") from exc
        for path in entries:
            if path.suffix != ".json" or not path.is_file():
                continue
            try:
                text = read_text(path)
            except UnicodeDecodeError as exc:
                raise MalformedDocumentError(code, f"Invalid {what} JSON in {path} (not UTF-8: {exc.reason})") from exc
            except OSError as exc:
                raise storage_io_error(exc, code, f"Failed to read {what} file") from exc
            try:
                record = parse_object(text)
            except ValueError as exc:
                raise MalformedDocumentError(code, f"Invalid {what} JSON in {path} ({exc})") from exc
            yield path, record

    def find_band(self, band_ref: str) -> JSONObject:
        """Return the first band record matching *band_ref* by id or code.

        Raises:
            NotFoundError: ``BAND_NOT_FOUND`` naming the reference, the
                directory and both attempts.
        """
        requested = band_ref.strip()
        requested_lower = requested.lower()
        for _path, record in self._json_records(self.bands_dir, "BAND_SETUP_LOAD_FAILED", "band"):
            candidate_id = (jstr(record, "id") or "").strip()
            candidate_code = (jstr(record, "code") or "").strip()
            if (
                candidate_id == requested
                or candidate_code.lower() == requested_lower
                or candidate_id.lower() == requested_lower
            ):
                return record
        raise NotFoundError(
            "BAND_NOT_FOUND",
            f"Band not found for reference '{requested}' in {self.bands_dir} (checked id and code)",
        )

    def load_roster(self) -> _Roster:
        """Read every musician under ``musicians/<role>/`` into a global roster."""
        roster = _Roster()
        for role in STAGE_ROLES:
            role_dir = self.musicians_dir / role
            options: list[MemberOption] = []
            if role_dir.is_dir():
                for _path, musician in self._json_records(role_dir, "BAND_SETUP_LOAD_FAILED", "musician"):
                    musician_id = jstr(musician, "id")
                    if not musician_id:
                        continue
                    name = _display_name(musician, musician_id)
                    ref = _monitor_ref(musician)
                    if ref is not None:
                        roster.defaults[musician_id] = MusicianDefault(monitoring=infer_monitoring_default(ref))
                    roster.by_id[musician_id] = (name, role)
                    options.append(MemberOption(id=musician_id, name=name))
            roster.members[role] = _sorted_unique(options)
        return roster

    # ------------------------------------------------------------------ #
    #  Resolution
    # ------------------------------------------------------------------ #

    @staticmethod
    def _restrict(band: JSONObject, roster: _Roster) -> dict[str, list[MemberOption]]:
        """Apply the band's ``members[]`` restriction to the global roster."""
        band_members = band.get("members")
        if not isinstance(band_members, list):
            return roster.members

        restricted: dict[str, list[MemberOption]] = {role: [] for role in STAGE_ROLES}
        for member in band_members:
            if not as_object(member):
                continue
            musician_id = jstr(member, "musicianId")
            if not musician_id or musician_id not in roster.by_id:
                continue
            name, global_role = roster.by_id[musician_id]
            roles = [r for r in jlist(member, "roles") if isinstance(r, str)] or [global_role]
            for role in roles:
                if role in restricted:
                    restricted[role].append(MemberOption(id=musician_id, name=name))

        if not any(restricted.values()):
            return roster.members
        return {role: _sorted_unique(options) for role, options in restricted.items()}

    @staticmethod
    def _decode_constraints(band: JSONObject, band_ref: str) -> dict[str, RoleCountConstraint]:
        raw = band.get("constraints")
        if raw is None:
            return {}
        try:
            return _CONSTRAINTS_ADAPTER.validate_python(raw)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "BAND_CONSTRAINTS_INVALID",
                f"Invalid constraints for band {band_ref} ({exc.error_count()} errors: {exc.errors()[0]['msg']})",
            ) from exc

    def resolve(self, band_ref: str) -> BandSetupData:
        """Compose the setup view for the band referenced by id or code."""
        band = self.find_band(band_ref)
        requested = band_ref.strip()
        roster = self.load_roster()
        members = self._restrict(band, roster)
        constraints = self._decode_constraints(band, requested)
        default_lineup = normalize_default_lineup_keys(band.get("defaultLineup"))

        warnings: list[str] = []
        if isinstance(default_lineup, dict):
            for role, value in default_lineup.items():
                for musician_id in lineup_musician_ids(value):
                    if musician_id not in roster.by_id:
                        warnings.append(
                            f"Band '{requested}' defaultLineup role '{role}' references missing musician '{musician_id}'"
                        )
        for warning in warnings:
            logger.warning("⚠️ %s", warning)

        setup = BandSetupData(
            id=jstr(band, "id") or "",
            name=jstr(band, "name") or "",
            band_leader=jstr(band, "bandLeader"),
            default_contact_id=jstr(band, "defaultContactId"),
            constraints=constraints,
            role_constraints=band.get("roleConstraints"),
            default_lineup=default_lineup,
            members=members,
            musician_defaults=roster.defaults,
            load_warnings=warnings,
        )
        logger.debug("✅ Resolved band setup %s (%d warnings)", setup.id, len(warnings))
        return setup

    def list_band_options(self) -> list[BandOption]:
        """Return every source band with an id and a name, sorted by name."""
        options: list[BandOption] = []
        for _path, record in self._json_records(self.bands_dir, "BAND_LIST_FAILED", "band"):
            band_id = jstr(record, "id")
            name = jstr(record, "name")
            if not band_id or not name:
                continue
            options.append(BandOption(id=band_id, name=name, code=jstr(record, "code")))
        options.sort(key=lambda o: o.name.lower())
        return options
