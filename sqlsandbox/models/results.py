"""Result records produced by the schema core.

These are plain pydantic models so routers can return them directly.  None of
them carry behaviour beyond small convenience helpers.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from sqlsandbox.models.enums import ErrorKind, StatementKind
from sqlsandbox.models.workspace import TableDefinition

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Serialised error: a kind tag plus a human-readable message."""

    kind: ErrorKind
    message: str
    code: str | None = None
    suggestion: str | None = None
    original: str | None = None


class TableFailure(BaseModel):
    """Errors collected for one table of a batch."""

    table_name: str
    errors: list[ErrorDetail] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class Statement(BaseModel):
    kind: StatementKind
    sql: str


class CompileSummary(BaseModel):
    table_name: str
    column_count: int
    row_count: int
    total_statements: int


class CompileResult(BaseModel):
    """Outcome of compiling one table definition.

    On failure, ``statements`` still holds whatever earlier stages produced
    (e.g. the CREATE TABLE when only row validation failed).
    """

    success: bool
    errors: list[ErrorDetail] = Field(default_factory=list)
    statements: list[Statement] = Field(default_factory=list)
    summary: CompileSummary | None = None

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]


class BatchCompileResult(BaseModel):
    success: bool
    results: dict[str, CompileResult] = Field(default_factory=dict)
    statements: list[Statement] = Field(default_factory=list)
    failures: list[TableFailure] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class ReconstructedTable(BaseModel):
    table_name: str
    column_count: int
    row_count: int


class SyncSummary(BaseModel):
    total_tables: int = 0
    successful_tables: int = 0
    failed_tables: int = 0


class SyncReport(BaseModel):
    """What ``verify_and_sync`` found and did."""

    workspace_id: str
    namespace: str
    synced: bool = True
    reconstructed: bool = False
    partial: bool = False
    missing_tables: list[str] = Field(default_factory=list)
    untracked_tables: list[str] = Field(default_factory=list)
    reconstructed_tables: list[ReconstructedTable] = Field(default_factory=list)
    errors: list[TableFailure] = Field(default_factory=list)
    summary: SyncSummary = Field(default_factory=SyncSummary)
    message: str | None = None

    @property
    def failed_table_names(self) -> list[str]:
        return [f.table_name for f in self.errors]

    def raise_for_failures(self) -> None:
        """Raise ``PartialReconstructionError`` if any table failed."""
        if self.errors:
            from sqlsandbox.errors import PartialReconstructionError

            raise PartialReconstructionError(self.errors)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class FieldInfo(BaseModel):
    name: str
    type_code: int | None = None


class ExecResult(BaseModel):
    """Outcome of one user statement.  ``error`` is set iff ``success`` is False."""

    success: bool
    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
    fields: list[FieldInfo] = Field(default_factory=list)
    command: str | None = None
    error: ErrorDetail | None = None


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class ExtractSummary(BaseModel):
    total_tables: int = 0
    synced_tables: int = 0


class ExtractResult(BaseModel):
    tables: list[TableDefinition] = Field(default_factory=list)
    skipped_tables: list[str] = Field(default_factory=list)
    summary: ExtractSummary = Field(default_factory=ExtractSummary)
