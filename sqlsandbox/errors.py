"""Domain error taxonomy shared by the schema core and the HTTP layer.

Every error carries a machine-readable ``kind`` tag.  Routers render the tag
directly; clients fall back to a generic message for tags they don't know.

Engine errors keep the native PostgreSQL message and SQLSTATE code so that
nothing the database reported is lost on the way to the user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from sqlalchemy.exc import DBAPIError

from sqlsandbox.models.enums import ErrorKind
from sqlsandbox.models.results import ErrorDetail

if TYPE_CHECKING:
    from sqlsandbox.models.results import TableFailure


class SandboxError(Exception):
    """Base class for all sandbox errors."""

    kind: ClassVar[ErrorKind] = ErrorKind.QUERY_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(kind=self.kind, message=self.message)


class ValidationError(SandboxError, ValueError):
    """Bad identifier, type, value or duplicate -- caught before any engine call."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, details: list[ErrorDetail] | None = None) -> None:
        super().__init__(message)
        self.details = details or []

    def to_detail(self) -> ErrorDetail:
        if len(self.details) == 1:
            return self.details[0]
        return ErrorDetail(kind=self.kind, message=self.message)


class UnsupportedTypeError(ValidationError):
    """Friendly data type outside the supported vocabulary."""

    kind = ErrorKind.UNSUPPORTED_TYPE


class EngineError(SandboxError):
    """Wraps an error reported by PostgreSQL."""

    kind = ErrorKind.ENGINE_ERROR

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code

    @classmethod
    def from_dbapi(cls, exc: DBAPIError) -> EngineError:
        """Build from a SQLAlchemy ``DBAPIError``, keeping the driver's message and SQLSTATE."""
        orig = exc.orig
        code = getattr(orig, "sqlstate", None)
        message = str(orig).strip() if orig is not None else str(exc)
        return cls(message, code=code)

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(kind=self.kind, message=self.message, code=self.code, original=self.message)


class NamespaceError(EngineError):
    """The namespace container itself could not be created or inspected.  Fatal to a sync."""

    kind = ErrorKind.NAMESPACE_ERROR


class PartialReconstructionError(SandboxError):
    """Some, but not all, tables in a sync/extract batch failed."""

    kind = ErrorKind.PARTIAL_RECONSTRUCTION

    def __init__(self, failures: list[TableFailure]) -> None:
        names = ", ".join(f.table_name for f in failures)
        super().__init__(f"{len(failures)} table(s) failed to reconstruct: {names}")
        self.failures = failures
