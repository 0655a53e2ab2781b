"""API request / response schemas for the HTTP endpoints.

These thin schemas sit between HTTP and the managers.  They are separate from
the metadata models in ``workspace.py`` because they serve a different purpose:

- **Create** / **Update** schemas validate user input.
- **Response** schemas serialize ORM rows via ``from_attributes``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sqlsandbox.models.results import ExtractSummary, SyncReport
from sqlsandbox.models.workspace import ColumnDefinition, QueryHistoryEntry, TableDefinition

# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


class WorkspaceCreate(BaseModel):
    """Input for creating a new workspace."""

    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "Workspace name is required"
            raise ValueError(msg)
        return value


class WorkspaceUpdate(WorkspaceCreate):
    """Rename a workspace (the only mutable attribute)."""


class WorkspaceResponse(BaseModel):
    """Serialized workspace returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    workspace_id: str
    name: str
    namespace: str
    tables: list[TableDefinition] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class WorkspaceSummary(BaseModel):
    """Lightweight list entry."""

    model_config = ConfigDict(from_attributes=True)

    workspace_id: str
    name: str
    created_at: datetime
    updated_at: datetime


class WorkspaceDetailResponse(BaseModel):
    """Workspace as seen after reconciliation."""

    workspace: WorkspaceResponse
    pg_tables: list[str]
    query_history: list[QueryHistoryEntry]
    sync: SyncReport | None = Field(default=None, description="Set only when tables had to be reconstructed.")


class WorkspaceSyncResponse(BaseModel):
    workspace: WorkspaceResponse
    summary: ExtractSummary
    skipped_tables: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TableCreate(BaseModel):
    table_name: str
    columns: list[ColumnDefinition] = Field(min_length=1)
    rows: list[dict[str, Any]] = Field(default_factory=list)


class RowsInsert(BaseModel):
    rows: list[dict[str, Any]] = Field(min_length=1)


class TableListResponse(BaseModel):
    tables: list[TableDefinition]
    pg_tables: list[str]


class ColumnStructure(BaseModel):
    column_name: str
    data_type: str
    is_nullable: bool
    column_default: str | None = None


class TableDetailResponse(BaseModel):
    table_name: str
    structure: list[ColumnStructure]
    rows: list[dict[str, Any]]
    metadata: TableDefinition | None = None


class RowsInsertResponse(BaseModel):
    inserted: int
    table: TableDefinition | None = None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)

    @field_validator("query")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "Query is required"
            raise ValueError(msg)
        return value


class HistoryResponse(BaseModel):
    history: list[QueryHistoryEntry]
    count: int


class SupportedType(BaseModel):
    value: str
    label: str
    description: str
