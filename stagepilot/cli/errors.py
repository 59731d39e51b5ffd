"""Exit-code contract for the StagePilot CLI."""
from __future__ import annotations

import enum

from stagepilot.errors import ErrorKind


class ExitCode(enum.IntEnum):
    """Standardised CLI exit codes.

    0 — success
    1 — user / data error (not found, validation, malformed, delete blocked)
    2 — storage error (I/O failure, unsupported storage schema)
    3 — renderer or internal error
    """

    SUCCESS = 0
    USER_ERROR = 1
    STORAGE_ERROR = 2
    INTERNAL_ERROR = 3


_KIND_EXIT_CODES: dict[ErrorKind, ExitCode] = {
    ErrorKind.NOT_FOUND: ExitCode.USER_ERROR,
    ErrorKind.VALIDATION: ExitCode.USER_ERROR,
    ErrorKind.MALFORMED: ExitCode.USER_ERROR,
    ErrorKind.DELETE_BLOCKED: ExitCode.USER_ERROR,
    ErrorKind.IO: ExitCode.STORAGE_ERROR,
    ErrorKind.SCHEMA: ExitCode.STORAGE_ERROR,
    ErrorKind.EXTERNAL_PROCESS: ExitCode.INTERNAL_ERROR,
    ErrorKind.INTERNAL: ExitCode.INTERNAL_ERROR,
}


def exit_code_for(kind: ErrorKind | None) -> ExitCode:
    if kind is None:
        return ExitCode.INTERNAL_ERROR
    return _KIND_EXIT_CODES[kind]
