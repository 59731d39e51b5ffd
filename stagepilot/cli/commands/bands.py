"""stagepilot bands — band source records and resolved setup views."""
from __future__ import annotations

import typer

from stagepilot.cli._api import emit, get_api

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def bands_list() -> None:
    """List selectable bands sorted by name."""
    emit(get_api().list_bands())


@app.command("setup")
def bands_setup(
    band_ref: str = typer.Argument(..., help="Band id or code (case-insensitive)."),
) -> None:
    """Print the resolved setup: roster per role, constraints, monitoring defaults, warnings."""
    emit(get_api().get_band_setup_data(band_ref))
