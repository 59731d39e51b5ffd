"""stagepilot projects — project documents.

Subcommands:

  stagepilot projects list
  stagepilot projects read <id>
  stagepilot projects save <id> [--file PATH] [--legacy-id OLD]
  stagepilot projects create --band <id-or-code> [--file PATH]
  stagepilot projects delete <id>
  stagepilot projects versions <id>

Documents are read from ``--file`` or from stdin (``-``, the default).
"""
from __future__ import annotations

from typing import Optional

import typer

from stagepilot.cli._api import STDIN, emit, get_api, read_source

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def projects_list() -> None:
    """List project summaries, most recently updated first."""
    emit(get_api().list_projects())


@app.command("read")
def projects_read(
    project_id: str = typer.Argument(..., help="Stable project id."),
) -> None:
    """Print the stored document text."""
    emit(get_api().read_project(project_id))


@app.command("save")
def projects_save(
    project_id: str = typer.Argument(..., help="Stable project id."),
    source: str = typer.Option(STDIN, "--file", "-f", help="Document JSON file, or '-' for stdin."),
    legacy_id: Optional[str] = typer.Option(None, "--legacy-id", help="Previous id whose file should be removed."),
) -> None:
    """Save a full project document; the file name follows its slug."""
    emit(get_api().save_project(project_id, read_source(source), legacy_id))


@app.command("create")
def projects_create(
    band: str = typer.Option(..., "--band", "-b", help="Band id or code."),
    source: str = typer.Option(STDIN, "--file", "-f", help="Payload JSON file, or '-' for stdin."),
) -> None:
    """Create a project: assigns id, slug and display name, then saves."""
    emit(get_api().create_project(read_source(source), band))


@app.command("delete")
def projects_delete(
    project_id: str = typer.Argument(..., help="Stable project id."),
) -> None:
    """Delete a project with its versions and exported PDFs."""
    emit(get_api().delete_project_permanently(project_id))


@app.command("versions")
def projects_versions(
    project_id: str = typer.Argument(..., help="Stable project id."),
) -> None:
    """List rendered version snapshots, newest first."""
    emit(get_api().list_project_versions(project_id))
