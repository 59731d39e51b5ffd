"""Client side of the PDF renderer subprocess.

The renderer is an external script (``node --import tsx <script>`` by
default) invoked as::

    <command...> <script> --project-id <id> --user-data-dir <root>

It blocks until the process exits and prints one JSON object on stdout (see
:class:`~stagepilot.models.render.RenderResponse`).  Exit status is not
inspected; the stdout payload is the contract.

Failures all surface as :class:`~stagepilot.errors.ExternalProcessError`:

- the process cannot be launched,
- stdout is not a JSON object of the expected shape,
- ``ok`` is true but ``result`` is missing or invalid,
- ``ok`` is false (the renderer's own ``code`` and PDF paths are carried).
"""
from __future__ import annotations

import logging
import pathlib
import subprocess
from collections.abc import Sequence

import pydantic

from stagepilot.errors import ExternalProcessError, NotFoundError, is_file_locked_error, storage_io_error
from stagepilot.models.render import ExportPdfResult, PreviewPdfResult, RenderResponse
from stagepilot.storage.atomic import remove_file, replace_file_atomic
from stagepilot.storage.layout import StorageLayout
from stagepilot.storage.paths import sanitize_id_to_filename
from stagepilot.storage.project_store import ProjectStore

logger = logging.getLogger(__name__)

PREVIEW_FAILED_MESSAGE = "Preview could not be generated. Please retry. Check the logs for renderer diagnostics."


class RenderClient:
    """Runs the export / preview renderer scripts for one user-data root.

    Args:
        layout:         Storage layout (``exports/``, ``temp/``).
        project_store:  Used to check the project exists before exporting.
        command:        Interpreter prefix, e.g. ``["node", "--import", "tsx"]``.
        export_script:  Script producing a version snapshot and export PDF.
        preview_script: Script producing ``temp/preview_<key>.pdf``.
        cwd:            Working directory for the renderer (``None`` = inherit).
    """

    def __init__(
        self,
        layout: StorageLayout,
        project_store: ProjectStore,
        command: Sequence[str],
        export_script: pathlib.Path,
        preview_script: pathlib.Path,
        cwd: pathlib.Path | None = None,
    ) -> None:
        self.layout = layout
        self.project_store = project_store
        self.command = list(command)
        self.export_script = export_script
        self.preview_script = preview_script
        self.cwd = cwd

    def _run(self, script: pathlib.Path, project_id: str, failure_code: str, label: str) -> RenderResponse:
        argv = [
            *self.command,
            str(script),
            "--project-id",
            project_id,
            "--user-data-dir",
            str(self.layout.root),
        ]
        logger.info("🖨️ Running %s renderer for %s", label, project_id)
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                cwd=str(self.cwd) if self.cwd is not None else None,
            )
        except OSError as exc:
            raise ExternalProcessError(failure_code, f"Failed to execute {label} ({exc})") from exc

        stdout = proc.stdout or ""
        stderr = proc.stderr or ""
        logger.debug("%s renderer exit=%s stderr=%s", label, proc.returncode, stderr.strip())
        try:
            return RenderResponse.model_validate_json(stdout.strip())
        except pydantic.ValidationError as exc:
            raise ExternalProcessError(
                failure_code,
                f"Failed to parse {label} response: {exc.error_count()} errors "
                f"(stdout: {stdout.strip()}, stderr: {stderr.strip()})",
            ) from exc

    def export_pdf(self, project_id: str) -> ExportPdfResult:
        """Render a new version snapshot and refresh the exported PDF.

        Raises:
            NotFoundError: the project does not exist.
            ExternalProcessError: the renderer failed (see module docstring).
        """
        if self.project_store.resolve_path_by_id(project_id) is None:
            raise NotFoundError("PROJECT_NOT_FOUND", f"Project file not found for id: {project_id}")

        response = self._run(self.export_script, project_id, "EXPORT_FAILED", "export")
        if not response.ok:
            logger.error("❌ Export failed for %s: %s", project_id, response.code)
            raise ExternalProcessError(
                response.code or "EXPORT_FAILED",
                response.message or "Export failed.",
                export_pdf_path=response.export_pdf_path,
                version_pdf_path=response.version_pdf_path,
            )
        if response.result is None:
            raise ExternalProcessError("EXPORT_FAILED", "Export succeeded but no result returned.")
        try:
            result = ExportPdfResult.model_validate(response.result)
        except pydantic.ValidationError as exc:
            raise ExternalProcessError(
                "EXPORT_FAILED", f"Export payload is invalid ({exc.error_count()} errors)"
            ) from exc
        logger.info("✅ Exported %s → %s", project_id, result.export_pdf_path)
        return result

    def build_preview(self, project_id: str) -> PreviewPdfResult:
        """Render a throw-away preview PDF under ``temp/``."""
        response = self._run(self.preview_script, project_id, "PREVIEW_FAILED", "preview")
        if response.ok and isinstance(response.result, dict):
            try:
                result = PreviewPdfResult.model_validate(response.result)
            except pydantic.ValidationError as exc:
                raise ExternalProcessError(
                    "PREVIEW_FAILED", "Preview succeeded but no preview path was returned."
                ) from exc
            logger.info("✅ Preview ready for %s: %s", project_id, result.preview_pdf_path)
            return result

        logger.error("❌ Preview failed for %s: %s %s", project_id, response.code, response.message)
        raise ExternalProcessError(
            response.code or "PREVIEW_FAILED",
            PREVIEW_FAILED_MESSAGE,
            export_pdf_path=response.export_pdf_path,
            version_pdf_path=response.version_pdf_path,
        )

    def exports_dir(self) -> pathlib.Path:
        """Return ``exports/``, creating it when missing."""
        try:
            self.layout.exports_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise storage_io_error(exc, "EXPORT_FAILED", "Failed to create exports dir") from exc
        return self.layout.exports_dir

    def default_export_pdf_path(self, project_slug: str) -> pathlib.Path:
        return self.exports_dir() / f"{sanitize_id_to_filename(project_slug)}.pdf"

    def export_pdf_to_path(self, project_id: str, output_path: pathlib.Path) -> ExportPdfResult:
        """Export, then copy the generated PDF over *output_path* atomically.

        A destination held open by another program (PDF viewer) yields the
        clarified "close it and retry" message.
        """
        result = self.export_pdf(project_id)
        try:
            replace_file_atomic(pathlib.Path(result.export_pdf_path), output_path)
        except OSError as exc:
            if is_file_locked_error(exc):
                logger.warning("⚠️ Export target %s is locked", output_path)
            raise storage_io_error(exc, "EXPORT_FAILED", "Failed to finalize exported PDF") from exc
        logger.info("✅ Copied export of %s to %s", project_id, output_path)
        return result

    def preview_path(self, preview_key: str) -> pathlib.Path:
        return self.layout.temp_dir / f"preview_{sanitize_id_to_filename(preview_key)}.pdf"

    def cleanup_preview(self, preview_key: str) -> None:
        """Remove ``temp/preview_<key>.pdf`` if it exists."""
        path = self.preview_path(preview_key)
        if not path.exists():
            return
        try:
            remove_file(path)
        except OSError as exc:
            raise storage_io_error(exc, "PREVIEW_FAILED", "Failed to remove preview PDF") from exc
        logger.debug("✅ Removed preview %s", path.name)

    def read_preview_pdf_bytes(self, preview_pdf_path: pathlib.Path) -> bytes:
        try:
            return preview_pdf_path.read_bytes()
        except OSError as exc:
            raise storage_io_error(exc, "PREVIEW_FAILED", "Failed to read preview PDF bytes") from exc
