"""stagepilot library — bands, musicians, instruments, contacts, messages.

Subcommands:

  stagepilot library list <collection>
  stagepilot library upsert <collection> [--file PATH]
  stagepilot library delete <collection> <id>
  stagepilot library duplicate <band-id>

``<collection>`` is one of ``bands``, ``musicians``, ``instruments``,
``contacts``, ``messages``.  Deleting a band used by a project, or a
musician listed in a band, exits with code 1 (``LIBRARY_DELETE_BLOCKED``).
"""
from __future__ import annotations

import typer

from stagepilot.cli._api import STDIN, emit, get_api, read_source
from stagepilot.storage.library import LibraryCollection

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def library_list(
    collection: LibraryCollection = typer.Argument(..., help="Library collection."),
) -> None:
    """List a collection (bands and musicians sorted by name)."""
    emit(get_api().list_library(collection))


@app.command("upsert")
def library_upsert(
    collection: LibraryCollection = typer.Argument(..., help="Library collection."),
    source: str = typer.Option(STDIN, "--file", "-f", help="Record JSON file, or '-' for stdin."),
) -> None:
    """Insert a record, or replace the one with the same id."""
    emit(get_api().upsert_library(collection, read_source(source)))


@app.command("delete")
def library_delete(
    collection: LibraryCollection = typer.Argument(..., help="Library collection."),
    item_id: str = typer.Argument(..., help="Record id."),
) -> None:
    """Delete a record unless it is still referenced."""
    emit(get_api().delete_library(collection, item_id))


@app.command("duplicate")
def library_duplicate(
    band_id: str = typer.Argument(..., help="Id of the band to clone."),
) -> None:
    """Clone a band under a fresh ``<id>_copy`` id and ``-COPY<n>`` code."""
    emit(get_api().duplicate_library_band(band_id))
