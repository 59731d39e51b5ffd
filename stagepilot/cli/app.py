"""StagePilot CLI — Typer application root.

Entry point for the ``stagepilot`` console script.  Registers the
``storage``, ``projects``, ``bands``, ``library`` and ``render`` command
groups.  Every command prints a JSON ``{ok, result, error}`` response on
stdout; see :mod:`stagepilot.cli.errors` for exit codes.
"""
from __future__ import annotations

import logging

import typer

from stagepilot.cli.commands import bands, library, projects, render, storage
from stagepilot.config import get_settings

cli = typer.Typer(
    name="stagepilot",
    help="StagePilot — project storage and band setup for live-event stage plans.",
    no_args_is_help=True,
)


@cli.callback()
def main() -> None:
    """Configure logging from settings before any command runs."""
    logging.basicConfig(
        level=logging.DEBUG if get_settings().debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


cli.add_typer(storage.app, name="storage", help="Initialise and inspect the user-data directory.")
cli.add_typer(projects.app, name="projects", help="Read, save, list and delete projects.")
cli.add_typer(bands.app, name="bands", help="List bands and resolve band setups.")
cli.add_typer(library.app, name="library", help="Manage library collections.")
cli.add_typer(render.app, name="render", help="Export and preview PDFs via the renderer.")


if __name__ == "__main__":
    cli()
