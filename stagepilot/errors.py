"""Error kinds, stable error codes and the host-facing error payload.

Every failure raised by the storage and resolution layers is a
:class:`StagePilotError` subclass carrying a stable string ``code`` and a
human-readable ``message``.  The host boundary (``stagepilot.api``) turns
them into :class:`ApiError` payloads; nothing here ever exits the process.
"""
from __future__ import annotations

import enum
import errno

from stagepilot.models.base import CamelModel

# Windows ERROR_SHARING_VIOLATION / ERROR_LOCK_VIOLATION
_WINDOWS_LOCK_ERRORS = frozenset({32, 33})

FILE_LOCKED_HINT = "File is open in another program (e.g. preview). Close it and retry."


class ErrorKind(str, enum.Enum):
    """Origin of a failure, independent of the concrete error code."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    MALFORMED = "malformed"
    DELETE_BLOCKED = "delete_blocked"
    IO = "io"
    SCHEMA = "schema"
    EXTERNAL_PROCESS = "external_process"
    INTERNAL = "internal"


class ApiError(CamelModel):
    """Error payload returned to the host: ``{code, message, exportPdfPath?, versionPdfPath?}``."""

    code: str
    message: str
    export_pdf_path: str | None = None
    version_pdf_path: str | None = None


class StagePilotError(Exception):
    """Base exception for every storage / resolution failure."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_payload(self) -> ApiError:
        return ApiError(code=self.code, message=self.message)


class NotFoundError(StagePilotError):
    """A project, band or library item does not exist."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(StagePilotError):
    """Missing required field, duplicate unique key or malformed shape."""

    kind = ErrorKind.VALIDATION


class MalformedDocumentError(StagePilotError):
    """A stored or submitted document is not valid JSON of the expected shape."""

    kind = ErrorKind.MALFORMED


class DeleteBlockedError(StagePilotError):
    """Deletion refused because another record still references the item."""

    kind = ErrorKind.DELETE_BLOCKED


class StorageIOError(StagePilotError):
    """File read / write / rename failure, annotated with the OS error text."""

    kind = ErrorKind.IO


class SchemaVersionError(StagePilotError):
    """The storage metadata records an unsupported schema version."""

    kind = ErrorKind.SCHEMA

    def __init__(self, found: object, expected: int) -> None:
        super().__init__(
            "STORAGE_SCHEMA_INVALID",
            f"Unsupported storage schema version {found!r} (expected {expected}).",
        )
        self.found = found
        self.expected = expected


class ExternalProcessError(StagePilotError):
    """The renderer subprocess failed to launch, misbehaved or reported failure."""

    kind = ErrorKind.EXTERNAL_PROCESS

    def __init__(
        self,
        code: str,
        message: str,
        export_pdf_path: str | None = None,
        version_pdf_path: str | None = None,
    ) -> None:
        super().__init__(code, message)
        self.export_pdf_path = export_pdf_path
        self.version_pdf_path = version_pdf_path

    def to_payload(self) -> ApiError:
        return ApiError(
            code=self.code,
            message=self.message,
            export_pdf_path=self.export_pdf_path,
            version_pdf_path=self.version_pdf_path,
        )


def is_file_locked_error(exc: BaseException) -> bool:
    """Return ``True`` when *exc* means another program holds the file open."""
    if not isinstance(exc, OSError):
        return False
    if getattr(exc, "winerror", None) in _WINDOWS_LOCK_ERRORS:
        return True
    return exc.errno == errno.EBUSY


def storage_io_error(exc: OSError, code: str, message: str) -> StorageIOError:
    """Wrap *exc* as a :class:`StorageIOError`, appending the OS error text.

    Sharing violations get a clarified, user-actionable hint so the host can
    tell the user to close the file instead of showing a bare errno.
    """
    text = f"{message} ({exc})"
    if is_file_locked_error(exc):
        text = f"{text}. {FILE_LOCKED_HINT}"
    return StorageIOError(code, text)
