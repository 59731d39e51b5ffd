"""stagepilot render — drive the PDF renderer subprocess.

Subcommands:

  stagepilot render export <id> [--output PATH]
      Render a version snapshot and refresh ``exports/<slug>.pdf``; with
      ``--output`` the PDF is also copied atomically to PATH.

  stagepilot render preview <id>
      Render ``temp/preview_<key>.pdf`` and print its path.

  stagepilot render cleanup-preview <key>
      Remove a preview PDF.

Renderer failures exit with code 3.
"""
from __future__ import annotations

import pathlib
from typing import Optional

import typer

from stagepilot.cli._api import emit, get_api

app = typer.Typer(no_args_is_help=True)


@app.command("export")
def render_export(
    project_id: str = typer.Argument(..., help="Stable project id."),
    output: Optional[pathlib.Path] = typer.Option(None, "--output", "-o", help="Also copy the PDF to this path."),
) -> None:
    """Export a project to PDF."""
    api = get_api()
    if output is None:
        emit(api.export_pdf(project_id))
    else:
        emit(api.export_pdf_to_path(project_id, output))


@app.command("preview")
def render_preview(
    project_id: str = typer.Argument(..., help="Stable project id."),
) -> None:
    """Build a preview PDF."""
    emit(get_api().build_project_pdf_preview(project_id))


@app.command("cleanup-preview")
def render_cleanup_preview(
    preview_key: str = typer.Argument(..., help="Preview key used in preview_<key>.pdf."),
) -> None:
    """Remove a preview PDF if present."""
    emit(get_api().cleanup_preview_pdf(preview_key))
