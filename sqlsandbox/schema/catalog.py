"""Catalog introspection and namespace DDL.

Thin async helpers over ``information_schema``.  Each takes an
``AsyncConnection`` so the caller decides the transaction boundary; none of
them commit.  Names in WHERE clauses are bound parameters; names in DDL go
through ``quote_identifier``.
"""

from __future__ import annotations

from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import text
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncConnection

from sqlsandbox.schema.compiler import create_namespace_sql, drop_namespace_sql
from sqlsandbox.schema.identifiers import qualified_name, quote_identifier

_NAMESPACE_EXISTS = text("SELECT 1 FROM information_schema.schemata WHERE schema_name = :namespace")

_LIST_TABLES = text(
    """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = :namespace
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
    """
)

_TABLE_EXISTS = text(
    """
    SELECT 1
    FROM information_schema.tables
    WHERE table_schema = :namespace AND table_name = :table_name
    """
)

_LIST_COLUMNS = text(
    """
    SELECT column_name,
           data_type,
           character_maximum_length,
           numeric_precision,
           numeric_scale,
           is_nullable,
           column_default
    FROM information_schema.columns
    WHERE table_schema = :namespace AND table_name = :table_name
    ORDER BY ordinal_position
    """
)

_ADVISORY_LOCK = text("SELECT pg_advisory_xact_lock(hashtext(:key))")


async def execute_raw(conn: AsyncConnection, sql: str, **options: Any) -> CursorResult:
    """Execute literal SQL with no parameter binding.

    ``no_parameters`` keeps the driver from scanning *sql* for ``%``
    placeholders, so text like ``LIKE 'a%'`` reaches the server unchanged.
    """
    return await conn.exec_driver_sql(sql, execution_options={"no_parameters": True, **options})


async def namespace_exists(conn: AsyncConnection, namespace: str) -> bool:
    result = await conn.execute(_NAMESPACE_EXISTS, {"namespace": namespace})
    return result.first() is not None


async def list_tables(conn: AsyncConnection, namespace: str) -> list[str]:
    """Base tables of *namespace*, ordered by name."""
    result = await conn.execute(_LIST_TABLES, {"namespace": namespace})
    return [row.table_name for row in result]


async def table_exists(conn: AsyncConnection, namespace: str, table_name: str) -> bool:
    result = await conn.execute(_TABLE_EXISTS, {"namespace": namespace, "table_name": table_name})
    return result.first() is not None


async def list_columns(conn: AsyncConnection, namespace: str, table_name: str) -> list[dict[str, Any]]:
    """Column rows of a table in ordinal order, with a composed ``native_type``.

    ``native_type`` re-attaches length/precision to the catalog's bare type
    name (``character varying`` -> ``character varying(40)``).
    """
    result = await conn.execute(_LIST_COLUMNS, {"namespace": namespace, "table_name": table_name})
    columns = []
    for row in result.mappings():
        column = dict(row)
        column["native_type"] = _native_type(column)
        columns.append(column)
    return columns


async def read_rows(conn: AsyncConnection, namespace: str, table_name: str, order_by: str | None = None) -> list[dict]:
    """All rows of one table as JSON-compatible dicts."""
    sql = f"SELECT * FROM {qualified_name(namespace, table_name)}"  # noqa: S608
    if order_by:
        sql += f" ORDER BY {quote_identifier(order_by)}"
    result = await execute_raw(conn, sql)
    return [{key: json_safe(value) for key, value in row.items()} for row in result.mappings()]


def json_safe(value: Any) -> Any:
    """JSON-compatible form of a driver value.

    Types pydantic doesn't know (ranges, geometric types) fall back to their
    text form.  Bytes are base64 encoded; NaN and infinities become null.
    """
    return to_jsonable_python(value, fallback=str, bytes_mode="base64", inf_nan_mode="null")


async def create_namespace(conn: AsyncConnection, namespace: str) -> None:
    await execute_raw(conn, create_namespace_sql(namespace))


async def drop_namespace(conn: AsyncConnection, namespace: str) -> None:
    await execute_raw(conn, drop_namespace_sql(namespace))


async def advisory_xact_lock(conn: AsyncConnection, key: str) -> None:
    """Block until the transaction-scoped advisory lock for *key* is held."""
    await conn.execute(_ADVISORY_LOCK, {"key": key})


def _native_type(column: dict[str, Any]) -> str:
    data_type: str = column["data_type"]
    if data_type in ("character varying", "character") and column.get("character_maximum_length"):
        return f"{data_type}({column['character_maximum_length']})"
    if data_type == "numeric" and column.get("numeric_precision") is not None:
        return f"numeric({column['numeric_precision']},{column.get('numeric_scale') or 0})"
    return data_type
