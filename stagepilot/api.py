"""Host boundary for the StagePilot core.

:class:`StagePilotApi` is the single object a host (the CLI, a desktop shell,
a test) talks to.  Every public method returns a :class:`CommandResponse`::

    {"ok": true,  "result": ...}
    {"ok": false, "error": {"code": "...", "message": "...", ...}}

:class:`~stagepilot.errors.StagePilotError` subclasses become their error
payload; any other exception is logged with its traceback and reported as
``INTERNAL_ERROR``.  Nothing raised below this layer reaches the host.
"""
from __future__ import annotations

import base64
import logging
import pathlib
from collections.abc import Callable

from pydantic import Field, JsonValue

from stagepilot.config import Settings, get_settings
from stagepilot.contracts.json_types import JSONObject, jstr, parse_object
from stagepilot.errors import ApiError, ErrorKind, MalformedDocumentError, StagePilotError
from stagepilot.models.base import CamelModel
from stagepilot.models.project import BandOption
from stagepilot.render.client import RenderClient
from stagepilot.setup.resolver import BandSetupResolver
from stagepilot.storage.layout import StorageLayout
from stagepilot.storage.library import LibraryCollection, LibraryRepository
from stagepilot.storage.project_index import ProjectIndex
from stagepilot.storage.project_store import ProjectStore

logger = logging.getLogger(__name__)


class CommandResponse(CamelModel):
    """Outcome of one host command."""

    ok: bool
    result: JsonValue = None
    error: ApiError | None = None
    # Host-side classification (CLI exit codes); not part of the wire payload.
    kind: ErrorKind | None = Field(default=None, exclude=True)


def _to_json(value: object) -> JsonValue:
    if isinstance(value, CamelModel):
        return value.to_wire()
    if isinstance(value, pathlib.PurePath):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return value  # type: ignore[return-value]


class StagePilotApi:
    """Facade over the project store, library, band resolver and renderer."""

    def __init__(
        self,
        layout: StorageLayout,
        projects: ProjectStore,
        library: LibraryRepository,
        resolver: BandSetupResolver,
        renderer: RenderClient,
        dev_wipe_storage: bool = False,
    ) -> None:
        self.layout = layout
        self.projects = projects
        self.library = library
        self.resolver = resolver
        self.renderer = renderer
        self.dev_wipe_storage = dev_wipe_storage

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> StagePilotApi:
        """Build the full object graph from :class:`~stagepilot.config.Settings`."""
        settings = settings or get_settings()
        layout = StorageLayout(settings.user_data_dir)
        projects = ProjectStore(layout, ProjectIndex())
        return cls(
            layout=layout,
            projects=projects,
            library=LibraryRepository(layout, projects),
            resolver=BandSetupResolver(settings.data_dir),
            renderer=RenderClient(
                layout,
                projects,
                command=settings.renderer_command,
                export_script=settings.export_script,
                preview_script=settings.preview_script,
                cwd=settings.renderer_cwd,
            ),
            dev_wipe_storage=settings.dev_wipe_storage,
        )

    def _call(self, operation: str, fn: Callable[[], object]) -> CommandResponse:
        try:
            result = fn()
        except StagePilotError as exc:
            logger.warning("⚠️ %s failed: [%s] %s", operation, exc.code, exc.message)
            return CommandResponse(ok=False, error=exc.to_payload(), kind=exc.kind)
        except Exception as exc:
            logger.exception("❌ %s failed unexpectedly", operation)
            return CommandResponse(
                ok=False,
                error=ApiError(code="INTERNAL_ERROR", message=f"{operation} failed: {exc}"),
                kind=ErrorKind.INTERNAL,
            )
        return CommandResponse(ok=True, result=_to_json(result))

    # ------------------------------------------------------------------ #
    #  Storage
    # ------------------------------------------------------------------ #

    def init_storage(self) -> CommandResponse:
        """Create the user-data layout; wipes it first when configured to."""

        def run() -> object:
            if self.dev_wipe_storage:
                self.layout.wipe()
                self.projects.index.clear()
            return self.layout.ensure()

        return self._call("init_storage", run)

    def get_user_data_dir(self) -> CommandResponse:
        return self._call("get_user_data_dir", lambda: self.layout.root)

    # ------------------------------------------------------------------ #
    #  Projects
    # ------------------------------------------------------------------ #

    def list_projects(self) -> CommandResponse:
        return self._call("list_projects", self.projects.list_projects)

    def read_project(self, project_id: str) -> CommandResponse:
        return self._call("read_project", lambda: self.projects.read(project_id))

    def save_project(self, project_id: str, document: str, legacy_id: str | None = None) -> CommandResponse:
        return self._call("save_project", lambda: self.projects.save(project_id, document, legacy_id))

    def create_project(self, payload: str, band_ref: str) -> CommandResponse:
        """Create a project for the band referenced by id or code."""

        def run() -> JSONObject:
            try:
                project = parse_object(payload)
            except ValueError as exc:
                raise MalformedDocumentError("PROJECT_INVALID_JSON", f"Invalid project JSON payload ({exc})") from exc
            record = self.resolver.find_band(band_ref)
            band = BandOption(
                id=jstr(record, "id") or band_ref.strip(),
                name=jstr(record, "name") or "",
                code=jstr(record, "code"),
            )
            return self.projects.create(project, band)

        return self._call("create_project", run)

    def delete_project(self, project_id: str) -> CommandResponse:
        return self._call("delete_project", lambda: self.projects.delete(project_id))

    def delete_project_permanently(self, project_id: str) -> CommandResponse:
        return self._call("delete_project_permanently", lambda: self.projects.delete_permanently(project_id))

    def list_project_versions(self, project_id: str) -> CommandResponse:
        return self._call("list_project_versions", lambda: self.projects.list_versions(project_id))

    # ------------------------------------------------------------------ #
    #  Bands
    # ------------------------------------------------------------------ #

    def list_bands(self) -> CommandResponse:
        return self._call("list_bands", self.resolver.list_band_options)

    def get_band_setup_data(self, band_ref: str) -> CommandResponse:
        return self._call("get_band_setup_data", lambda: self.resolver.resolve(band_ref))

    # ------------------------------------------------------------------ #
    #  Library
    # ------------------------------------------------------------------ #

    def list_library(self, collection: LibraryCollection) -> CommandResponse:
        return self._call(f"list_library_{collection.value}", lambda: self.library.list_items(collection))

    def read_library_band(self, band_id: str) -> CommandResponse:
        return self._call("read_library_band", lambda: self.library.read_band(band_id))

    def upsert_library(self, collection: LibraryCollection, item_json: str) -> CommandResponse:
        """Validate *item_json* against the collection's record type and upsert it."""

        def run() -> CamelModel:
            item = self.library.parse_item(collection, item_json)
            self.library.upsert(collection, item)
            return item

        return self._call(f"upsert_library_{collection.value}", run)

    def delete_library(self, collection: LibraryCollection, item_id: str) -> CommandResponse:
        return self._call(f"delete_library_{collection.value}", lambda: self.library.delete(collection, item_id))

    def duplicate_library_band(self, band_id: str) -> CommandResponse:
        return self._call("duplicate_library_band", lambda: self.library.duplicate_band(band_id))

    # ------------------------------------------------------------------ #
    #  Rendering
    # ------------------------------------------------------------------ #

    def export_pdf(self, project_id: str) -> CommandResponse:
        return self._call("export_pdf", lambda: self.renderer.export_pdf(project_id))

    def export_pdf_to_path(self, project_id: str, output_path: pathlib.Path) -> CommandResponse:
        return self._call("export_pdf_to_path", lambda: self.renderer.export_pdf_to_path(project_id, output_path))

    def build_project_pdf_preview(self, project_id: str) -> CommandResponse:
        return self._call("build_project_pdf_preview", lambda: self.renderer.build_preview(project_id))

    def read_preview_pdf_bytes(self, preview_pdf_path: pathlib.Path) -> CommandResponse:
        """Return the preview PDF as base64 text (``result`` must be JSON)."""
        return self._call(
            "read_preview_pdf_bytes",
            lambda: base64.b64encode(self.renderer.read_preview_pdf_bytes(preview_pdf_path)).decode("ascii"),
        )

    def cleanup_preview_pdf(self, preview_key: str) -> CommandResponse:
        return self._call("cleanup_preview_pdf", lambda: self.renderer.cleanup_preview(preview_key))

    def get_exports_dir(self) -> CommandResponse:
        return self._call("get_exports_dir", self.renderer.exports_dir)

    def default_export_pdf_path(self, project_slug: str) -> CommandResponse:
        return self._call("default_export_pdf_path", lambda: self.renderer.default_export_pdf_path(project_slug))
