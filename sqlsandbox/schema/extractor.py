"""Rebuild workspace metadata from the live namespace (reverse sync).

Used after structural changes so the metadata record never silently drifts
from what PostgreSQL actually holds.  Each table is read in its own
short-lived checkout; a table that fails (dropped mid-scan, permission, a
name that doesn't survive sanitizing) is logged and skipped.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy.exc import DBAPIError

from sqlsandbox.models.results import ExtractResult, ExtractSummary
from sqlsandbox.models.workspace import ColumnDefinition, TableDefinition
from sqlsandbox.schema import catalog
from sqlsandbox.schema.compiler import SURROGATE_KEY
from sqlsandbox.schema.types import from_engine_type

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


async def extract_workspace_state(engine: AsyncEngine, namespace: str) -> ExtractResult:
    """Read every base table of *namespace* into ``TableDefinition`` records."""
    async with engine.connect() as conn:
        table_names = await catalog.list_tables(conn, namespace)

    result = ExtractResult(summary=ExtractSummary(total_tables=len(table_names)))
    for table_name in table_names:
        try:
            table = await extract_table(engine, namespace, table_name)
        except (DBAPIError, ValueError) as exc:
            # ValueError: pydantic serialization or model validation of the table.
            logger.warning("Skipping table {}.{} during sync: {}", namespace, table_name, exc)
            result.skipped_tables.append(table_name)
            continue
        result.tables.append(table)

    result.summary.synced_tables = len(result.tables)
    return result


async def extract_table(engine: AsyncEngine, namespace: str, table_name: str) -> TableDefinition:
    """Read one table's columns and rows, dropping the surrogate key from both."""
    async with engine.connect() as conn:
        columns = await catalog.list_columns(conn, namespace, table_name)
        has_key = any(c["column_name"] == SURROGATE_KEY for c in columns)
        rows = await catalog.read_rows(conn, namespace, table_name, order_by=SURROGATE_KEY if has_key else None)

    return TableDefinition(
        table_name=table_name,
        columns=[
            ColumnDefinition(column_name=c["column_name"], data_type=from_engine_type(c["native_type"]))
            for c in columns
            if c["column_name"] != SURROGATE_KEY
        ],
        rows=[{key: value for key, value in row.items() if key != SURROGATE_KEY} for row in rows],
        created_at=datetime.now(UTC),
    )
