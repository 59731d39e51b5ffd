"""Disk-backed project store.

One JSON document per project lives in ``<user-data>/projects/``.  The file
name follows the project's ``slug`` (``<slug>.json``, or ``<slug>__<n>.json``
on collision) while the document's ``id`` is the stable identity.  Because a
slug change renames the file, every lookup goes through
:meth:`ProjectStore.resolve_path_by_id`, which trusts the
:class:`~stagepilot.storage.project_index.ProjectIndex` only after an
existence check and falls back to a full directory scan.

Ordering guarantees of :meth:`ProjectStore.save`:

1. the new document is written atomically (temp-then-rename);
2. the previous file for the same id is removed when the name changed;
3. a file still owned by ``legacy_id`` is removed (identity migration);
4. the index is updated last, only after every file operation succeeded.

Deletion removes generated artifacts (``versions/<id>/`` and exported PDFs
named after the slug) on a best-effort basis before the project file itself;
only the removal of the project file can fail the operation.
"""
from __future__ import annotations

import datetime
import json
import logging
import pathlib
import re
from collections.abc import Iterator

import pydantic

from stagepilot.contracts.json_types import JSONObject, jstr, parse_object
from stagepilot.errors import (
    MalformedDocumentError,
    NotFoundError,
    StagePilotError,
    ValidationError,
    storage_io_error,
)
from stagepilot.models.project import BandOption, ProjectSummary, ProjectVersionMeta
from stagepilot.naming import migrate_project_identity
from stagepilot.storage.atomic import atomic_write_text, read_text, remove_file, remove_tree
from stagepilot.storage.layout import StorageLayout
from stagepilot.storage.paths import safe_join, sanitize_id_to_filename
from stagepilot.storage.project_index import ProjectIndex

logger = logging.getLogger(__name__)

_PROJECT_SUFFIX = ".json"
_VERSION_META_FILENAME = "meta.json"


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def file_name_for_slug(slug: str, suffix: int = 1) -> str:
    """Return the project file name for *slug* and collision counter *suffix*.

    ``suffix == 1`` is the plain ``<slug>.json``; higher values produce
    ``<slug>__<suffix>.json``.  The slug is sanitized first.
    """
    safe = sanitize_id_to_filename(slug)
    if suffix == 1:
        return f"{safe}{_PROJECT_SUFFIX}"
    return f"{safe}__{suffix}{_PROJECT_SUFFIX}"


def matches_slug(file_name: str, slug: str) -> bool:
    """Return ``True`` when *file_name* is ``<slug>.json`` or ``<slug>__<n>.json``."""
    safe = sanitize_id_to_filename(slug)
    if file_name == f"{safe}{_PROJECT_SUFFIX}":
        return True
    return re.fullmatch(rf"{re.escape(safe)}__\d+{re.escape(_PROJECT_SUFFIX)}", file_name) is not None


def _is_export_of(file_name: str, slug: str) -> bool:
    if not file_name.endswith(".pdf"):
        return False
    safe = sanitize_id_to_filename(slug)
    return file_name == f"{safe}.pdf" or file_name.startswith(f"{safe}__")


class ProjectStore:
    """CRUD over project documents addressed by their stable ``id``."""

    def __init__(self, layout: StorageLayout, index: ProjectIndex | None = None) -> None:
        self.layout = layout
        self.index = index if index is not None else ProjectIndex()

    @property
    def projects_dir(self) -> pathlib.Path:
        return self.layout.projects_dir

    # ------------------------------------------------------------------ #
    #  Resolution
    # ------------------------------------------------------------------ #

    def _scan(self, code: str) -> Iterator[tuple[pathlib.Path, JSONObject]]:
        """Yield ``(path, document)`` for every project file, in directory order."""
        try:
            entries = list(self.projects_dir.iterdir())
        except OSError as exc:
            raise storage_io_error(exc, code, "Failed to list projects") from exc
        for path in entries:
            if path.suffix != _PROJECT_SUFFIX or not path.is_file():
                continue
            try:
                text = read_text(path)
            except UnicodeDecodeError as exc:
                raise MalformedDocumentError(
                    code, f"Invalid project JSON in {path.name} (not UTF-8: {exc.reason})"
                ) from exc
            except OSError as exc:
                raise storage_io_error(exc, code, "Failed to read project file") from exc
            try:
                doc = parse_object(text)
            except ValueError as exc:
                raise MalformedDocumentError(code, f"Invalid project JSON in {path.name} ({exc})") from exc
            yield path, doc

    def resolve_path_by_id(self, project_id: str) -> pathlib.Path | None:
        """Return the file currently holding *project_id*, or ``None``.

        ``None`` is returned only after a full directory scan failed to find
        a document whose ``id`` matches.  A successful scan repairs the index.
        """
        if not self.projects_dir.exists():
            return None

        cached = self.index.get(project_id)
        if cached is not None:
            candidate = self.projects_dir / cached
            if candidate.exists():
                return candidate
            logger.debug("⚠️ Stale index entry for %s (%s), rescanning", project_id, cached)

        for path, doc in self._scan("PROJECT_READ_FAILED"):
            if jstr(doc, "id") == project_id:
                self.index.set(project_id, path.name)
                return path

        self.index.remove(project_id)
        return None

    def reserve_file_name(self, preferred_slug: str) -> str:
        """Return the first unused name among ``slug.json``, ``slug__2.json``, ...

        Deterministic: the same slug and directory state always give the
        same answer.
        """
        suffix = 1
        while True:
            file_name = file_name_for_slug(preferred_slug, suffix)
            if not (self.projects_dir / file_name).exists():
                return file_name
            suffix += 1

    # ------------------------------------------------------------------ #
    #  Read / write
    # ------------------------------------------------------------------ #

    def read(self, project_id: str) -> str:
        """Return the stored document text for *project_id* verbatim."""
        path = self.resolve_path_by_id(project_id)
        if path is None:
            raise NotFoundError("PROJECT_NOT_FOUND", f"Project not found: {project_id}")
        try:
            return read_text(path)
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(
                "PROJECT_READ_FAILED", f"Invalid project JSON in {path.name} (not UTF-8: {exc.reason})"
            ) from exc
        except OSError as exc:
            raise storage_io_error(exc, "PROJECT_READ_FAILED", "Failed to read project") from exc

    def save(self, project_id: str, document: str, legacy_id: str | None = None) -> pathlib.Path:
        """Persist *document* as the project *project_id*.

        The file name follows the document's ``slug``; a file that already
        matches the slug (``slug.json`` or ``slug__<n>.json``) is reused so
        repeated saves never hop between collision suffixes.

        Args:
            project_id: Stable identity of the project.
            document:   Full JSON text; stored byte-for-byte.
            legacy_id:  Previous id of the same project.  Its file is
                        removed so an identity migration leaves no orphan.

        Returns:
            Path of the file now holding the project.

        Raises:
            MalformedDocumentError: *document* is not a JSON object.
            ValidationError: ``slug`` is missing/empty, ``id`` is missing, or
                ``id`` disagrees with *project_id*.
            StorageIOError: any file operation failed.
        """
        try:
            parsed = parse_object(document)
        except ValueError as exc:
            raise MalformedDocumentError("PROJECT_INVALID_JSON", f"Invalid project JSON payload ({exc})") from exc

        slug = jstr(parsed, "slug")
        if not slug or not slug.strip():
            raise ValidationError("PROJECT_SLUG_REQUIRED", "Project slug is required.")
        doc_id = jstr(parsed, "id")
        if doc_id is None:
            raise ValidationError("PROJECT_ID_REQUIRED", "Project id is required in the document.")
        if doc_id != project_id:
            raise ValidationError(
                "PROJECT_ID_MISMATCH",
                f"Document id '{doc_id}' does not match project id '{project_id}'.",
            )

        try:
            self.projects_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise storage_io_error(exc, "PROJECT_SAVE_FAILED", "Failed to create projects dir") from exc

        existing = self.resolve_path_by_id(project_id)
        if existing is not None and matches_slug(existing.name, slug):
            target_name = existing.name
        else:
            target_name = self.reserve_file_name(slug)
        target = safe_join(self.projects_dir, target_name)

        try:
            atomic_write_text(target, document)
        except OSError as exc:
            raise storage_io_error(exc, "PROJECT_SAVE_FAILED", "Failed to write project file") from exc

        if existing is not None and existing != target and existing.exists():
            try:
                remove_file(existing)
            except OSError as exc:
                raise storage_io_error(exc, "PROJECT_SAVE_FAILED", "Failed to remove previous project file") from exc
            logger.info("✅ Renamed project %s: %s → %s", project_id, existing.name, target_name)

        if legacy_id and legacy_id != project_id:
            legacy_path = self.resolve_path_by_id(legacy_id)
            if legacy_path is not None and legacy_path != target and legacy_path.exists():
                try:
                    remove_file(legacy_path)
                except OSError as exc:
                    raise storage_io_error(exc, "PROJECT_SAVE_FAILED", "Failed to remove legacy project file") from exc
                logger.info("✅ Removed legacy project file %s (id %s)", legacy_path.name, legacy_id)
            self.index.remove(legacy_id)

        self.index.set(project_id, target_name)
        logger.debug("✅ Saved project %s as %s", project_id, target_name)
        return target

    def create(self, payload: JSONObject, band: BandOption) -> JSONObject:
        """Assign identity and naming to a new project payload and save it.

        A missing or non-UUIDv7 ``id`` is replaced, ``slug`` and
        ``displayName`` are derived from the band and event data when absent,
        and ``createdAt``/``updatedAt`` are stamped.

        Returns:
            The document as stored.
        """
        project = migrate_project_identity(payload, band)
        now = _now_iso()
        project.setdefault("bandRef", band.id)
        project.setdefault("createdAt", now)
        project["updatedAt"] = now
        project_id = str(project["id"])
        self.save(project_id, json.dumps(project, indent=2, ensure_ascii=False))
        logger.info("✅ Created project %s (%s)", project_id, project["slug"])
        return project

    # ------------------------------------------------------------------ #
    #  Delete
    # ------------------------------------------------------------------ #

    def _remove_export_artifacts(self, project_path: pathlib.Path, project_id: str) -> None:
        """Best-effort removal of ``versions/<id>/`` and exported PDFs.

        Failures are logged and never abort the delete.
        """
        try:
            versions = safe_join(self.layout.versions_dir, project_id)
        except StagePilotError as exc:
            logger.warning("⚠️ Skipping version cleanup for %s: %s", project_id, exc.message)
            versions = None
        if versions is not None and versions.is_dir():
            try:
                remove_tree(versions)
            except OSError as exc:
                logger.warning("⚠️ Could not remove versions of %s: %s", project_id, exc)

        try:
            slug = jstr(parse_object(read_text(project_path)), "slug")
        except (OSError, ValueError) as exc:
            logger.warning("⚠️ Could not read slug of %s for export cleanup: %s", project_id, exc)
            return
        exports = self.layout.exports_dir
        if not slug or not exports.is_dir():
            return
        try:
            candidates = [p for p in exports.iterdir() if _is_export_of(p.name, slug)]
        except OSError as exc:
            logger.warning("⚠️ Could not list exports for %s: %s", project_id, exc)
            return
        for pdf in candidates:
            try:
                remove_file(pdf)
            except OSError as exc:
                logger.warning("⚠️ Could not remove export %s: %s", pdf.name, exc)

    def delete_permanently(self, project_id: str) -> None:
        """Remove the project, its rendered versions and its exported PDFs.

        Raises:
            NotFoundError: no file holds *project_id*.
            StorageIOError: the project file itself could not be removed.
        """
        path = self.resolve_path_by_id(project_id)
        if path is None:
            raise NotFoundError("PROJECT_NOT_FOUND", f"Project not found: {project_id}")

        self._remove_export_artifacts(path, project_id)

        try:
            remove_file(path)
        except OSError as exc:
            raise storage_io_error(exc, "PROJECT_DELETE_FAILED", "Failed to delete project") from exc

        self.index.remove(project_id)
        logger.info("✅ Deleted project %s (%s)", project_id, path.name)

    def delete(self, project_id: str) -> None:
        """Alias of :meth:`delete_permanently`; there is no trash at this layer."""
        self.delete_permanently(project_id)

    # ------------------------------------------------------------------ #
    #  Listing
    # ------------------------------------------------------------------ #

    def list_projects(self) -> list[ProjectSummary]:
        """Return summaries of every project, most recently updated first.

        The sort key is ``updatedAt``, falling back to ``eventDate`` at
        midnight UTC; projects with neither sort last.  Every file seen
        refreshes the index.
        """
        if not self.projects_dir.exists():
            return []

        summaries: list[ProjectSummary] = []
        for path, doc in self._scan("PROJECT_LIST_FAILED"):
            project_id = jstr(doc, "id") or path.stem
            event_date = jstr(doc, "eventDate")
            updated_at = jstr(doc, "updatedAt") or (f"{event_date}T00:00:00Z" if event_date else None)
            self.index.set(project_id, path.name)
            summaries.append(
                ProjectSummary(
                    id=project_id,
                    slug=jstr(doc, "slug"),
                    display_name=jstr(doc, "displayName"),
                    band_ref=jstr(doc, "bandRef"),
                    event_date=event_date,
                    event_venue=jstr(doc, "eventVenue"),
                    purpose=jstr(doc, "purpose"),
                    created_at=jstr(doc, "createdAt"),
                    updated_at=updated_at,
                )
            )

        summaries.sort(key=lambda s: s.updated_at or "", reverse=True)
        return summaries

    def list_versions(self, project_id: str) -> list[ProjectVersionMeta]:
        """Return rendered version snapshots of *project_id*, newest first.

        Version directories without a ``meta.json`` (renderer still writing,
        or interrupted) are skipped.
        """
        versions = safe_join(self.layout.versions_dir, project_id)
        if not versions.is_dir():
            return []
        metas: list[ProjectVersionMeta] = []
        for entry in versions.iterdir():
            meta_path = entry / _VERSION_META_FILENAME
            if not meta_path.is_file():
                continue
            try:
                metas.append(ProjectVersionMeta.model_validate_json(read_text(meta_path)))
            except UnicodeDecodeError as exc:
                raise MalformedDocumentError(
                    "PROJECT_READ_FAILED", f"Invalid version metadata in {entry.name} (not UTF-8: {exc.reason})"
                ) from exc
            except OSError as exc:
                raise storage_io_error(exc, "PROJECT_READ_FAILED", "Failed to read version metadata") from exc
            except pydantic.ValidationError as exc:
                raise MalformedDocumentError(
                    "PROJECT_READ_FAILED", f"Invalid version metadata in {entry.name} ({exc.error_count()} errors)"
                ) from exc
        metas.sort(key=lambda m: m.generated_at, reverse=True)
        return metas
