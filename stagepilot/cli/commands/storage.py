"""stagepilot storage — user-data directory management.

Subcommands:

  stagepilot storage init
      Create ``projects/``, ``exports/``, ``temp/``, ``versions/``,
      ``assets/``, ``library/`` and ``storage.json`` under
      ``STAGEPILOT_USER_DATA_DIR``.  Idempotent; fails with exit code 2 when
      ``storage.json`` names an unsupported schema version.

  stagepilot storage path
      Print the resolved user-data directory.
"""
from __future__ import annotations

import typer

from stagepilot.cli._api import emit, get_api

app = typer.Typer(no_args_is_help=True)


@app.command("init")
def storage_init() -> None:
    """Initialise (or validate) the user-data directory."""
    emit(get_api().init_storage())


@app.command("path")
def storage_path() -> None:
    """Print the user-data directory in use."""
    emit(get_api().get_user_data_dir())
