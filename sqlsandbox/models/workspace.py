"""Workspace metadata model.

A workspace pairs one metadata record (this module) with one PostgreSQL
schema -- its namespace -- holding the live tables.  The record is the
declarative intent; the namespace is the enforced fact.

Table definitions are stored denormalised on the workspace row (JSONB), rows
included, so the namespace can be rebuilt from the record alone.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from sqlsandbox.models.enums import QueryStatus


class ColumnDefinition(BaseModel):
    """One declared column.  The surrogate ``id`` key is never declared."""

    column_name: str
    data_type: str = Field(description="Friendly type tag, e.g. INTEGER, TEXT, VARCHAR(40)")

    @field_validator("column_name")
    @classmethod
    def _strip_column_name(cls, value: str) -> str:
        return value.strip()


class TableDefinition(BaseModel):
    """Declared table: columns in order plus a row snapshot (surrogate key excluded)."""

    table_name: str
    columns: list[ColumnDefinition] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime | None = None


class QueryHistoryEntry(BaseModel):
    query: str
    status: QueryStatus
    result: dict[str, Any] | None = None
    error: str | None = None
    executed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

