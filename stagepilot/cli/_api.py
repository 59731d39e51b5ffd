"""Shared helpers for CLI commands: API construction, input and output.

Every command builds a :class:`~stagepilot.api.StagePilotApi` from the
environment (``STAGEPILOT_*``), runs one operation and hands the
:class:`~stagepilot.api.CommandResponse` to :func:`emit`, which prints it as
JSON on stdout and exits with the code matching the error kind.
"""
from __future__ import annotations

import json
import logging
import pathlib
import sys

import typer

from stagepilot.api import CommandResponse, StagePilotApi
from stagepilot.cli.errors import ExitCode, exit_code_for
from stagepilot.config import get_settings

logger = logging.getLogger(__name__)

STDIN = "-"


def get_api() -> StagePilotApi:
    """Return an API bound to the current settings."""
    return StagePilotApi.from_settings(get_settings())


def read_source(source: str) -> str:
    """Return the text of *source*: a file path, or ``-`` for stdin.

    Exits with ``USER_ERROR`` when the file cannot be read.
    """
    if source == STDIN:
        return sys.stdin.read()
    try:
        return pathlib.Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        typer.echo(f"❌ Cannot read {source}: {exc}", err=True)
        raise typer.Exit(code=int(ExitCode.USER_ERROR)) from None


def emit(response: CommandResponse) -> None:
    """Print *response* as JSON; exit non-zero when it carries an error."""
    typer.echo(json.dumps(response.to_wire(), indent=2, ensure_ascii=False))
    if not response.ok:
        code = exit_code_for(response.kind)
        logger.debug("❌ Command failed with exit code %d", int(code))
        raise typer.Exit(code=int(code))
