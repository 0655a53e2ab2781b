"""Data models for the sandbox."""

from sqlsandbox.models.api import (
    HistoryResponse,
    QueryRequest,
    RowsInsert,
    TableCreate,
    WorkspaceCreate,
    WorkspaceDetailResponse,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from sqlsandbox.models.enums import ErrorKind, QueryStatus, StatementKind
from sqlsandbox.models.results import (
    CompileResult,
    ErrorDetail,
    ExecResult,
    ExtractResult,
    Statement,
    SyncReport,
    TableFailure,
)
from sqlsandbox.models.workspace import ColumnDefinition, QueryHistoryEntry, TableDefinition

__all__ = [
    # Metadata
    "ColumnDefinition",
    # Results
    "CompileResult",
    "ErrorDetail",
    # Enums
    "ErrorKind",
    "ExecResult",
    "ExtractResult",
    # API schemas
    "HistoryResponse",
    "QueryHistoryEntry",
    "QueryRequest",
    "QueryStatus",
    "RowsInsert",
    "Statement",
    "StatementKind",
    "SyncReport",
    "TableCreate",
    "TableDefinition",
    "TableFailure",
    "WorkspaceCreate",
    "WorkspaceDetailResponse",
    "WorkspaceResponse",
    "WorkspaceUpdate",
]
