"""Table operations inside a workspace namespace.

Structural changes run directly against the namespace in one transaction;
afterwards the stored definitions are refreshed from the engine (drift
extraction) so the metadata row always mirrors what PostgreSQL holds.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy.exc import DBAPIError

from sqlsandbox.errors import EngineError, UnsupportedTypeError, ValidationError
from sqlsandbox.managers.workspaces import declared_tables, pull_from_engine
from sqlsandbox.models.api import ColumnStructure, TableDetailResponse
from sqlsandbox.models.enums import ErrorKind
from sqlsandbox.models.workspace import TableDefinition
from sqlsandbox.schema import catalog
from sqlsandbox.schema.compiler import SURROGATE_KEY, compile_rows, compile_table, drop_table_sql

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from sqlsandbox.db.tables import Workspace
    from sqlsandbox.models.api import TableCreate
    from sqlsandbox.models.results import ErrorDetail, Statement


class TableNotFoundError(LookupError):
    """Raised when a table is neither declared nor present in the namespace."""


class DuplicateTableError(ValueError):
    """Raised when creating a table whose name is already taken."""


def _invalid(errors: list[ErrorDetail]) -> ValidationError:
    message = "; ".join(e.message for e in errors)
    if any(e.kind == ErrorKind.UNSUPPORTED_TYPE for e in errors):
        return UnsupportedTypeError(message, errors)
    return ValidationError(message, errors)


def find_declared(workspace: Workspace, table_name: str) -> TableDefinition | None:
    return next((t for t in declared_tables(workspace) if t.table_name == table_name), None)


async def _run(sandbox: AsyncEngine, namespace: str, table_name: str, statements: list[Statement]) -> None:
    """Execute *statements* in one transaction under the table's advisory lock."""
    try:
        async with sandbox.begin() as conn:
            await catalog.advisory_xact_lock(conn, f"{namespace}.{table_name}")
            for statement in statements:
                await catalog.execute_raw(conn, statement.sql)
    except DBAPIError as exc:
        raise EngineError.from_dbapi(exc) from exc


async def create_table(
    db: AsyncSession, sandbox: AsyncEngine, workspace: Workspace, body: TableCreate
) -> TableDefinition:
    """Validate, compile and create a table with its initial rows.

    Raises ``ValidationError``, ``DuplicateTableError`` or ``EngineError``.
    """
    definition = TableDefinition(
        table_name=body.table_name.strip(),
        columns=body.columns,
        rows=body.rows,
        created_at=datetime.now(UTC),
    )
    compiled = compile_table(definition, workspace.namespace)
    if not compiled.success:
        raise _invalid(compiled.errors)

    async with sandbox.connect() as conn:
        exists = await catalog.table_exists(conn, workspace.namespace, definition.table_name)
    if exists or find_declared(workspace, definition.table_name) is not None:
        raise DuplicateTableError(definition.table_name)

    await _run(sandbox, workspace.namespace, definition.table_name, compiled.statements)
    logger.info("Table {}.{} created with {} row(s)", workspace.namespace, definition.table_name, len(definition.rows))

    await pull_from_engine(db, sandbox, workspace)
    return find_declared(workspace, definition.table_name) or definition


async def list_tables(sandbox: AsyncEngine, workspace: Workspace) -> tuple[list[TableDefinition], list[str]]:
    """Stored definitions plus the physical table names of the namespace."""
    async with sandbox.connect() as conn:
        pg_tables = await catalog.list_tables(conn, workspace.namespace)
    return declared_tables(workspace), pg_tables


async def describe_table(sandbox: AsyncEngine, workspace: Workspace, table_name: str) -> TableDetailResponse:
    """Live structure and rows of one table, alongside its stored definition."""
    async with sandbox.connect() as conn:
        if not await catalog.table_exists(conn, workspace.namespace, table_name):
            raise TableNotFoundError(table_name)
        columns = await catalog.list_columns(conn, workspace.namespace, table_name)
        has_key = any(c["column_name"] == SURROGATE_KEY for c in columns)
        rows = await catalog.read_rows(
            conn, workspace.namespace, table_name, order_by=SURROGATE_KEY if has_key else None
        )

    return TableDetailResponse(
        table_name=table_name,
        structure=[
            ColumnStructure(
                column_name=c["column_name"],
                data_type=c["native_type"],
                is_nullable=c["is_nullable"] == "YES",
                column_default=c["column_default"],
            )
            for c in columns
        ],
        rows=rows,
        metadata=find_declared(workspace, table_name),
    )


async def drop_table(db: AsyncSession, sandbox: AsyncEngine, workspace: Workspace, table_name: str) -> None:
    """Drop a table (cascade) and remove it from the stored definitions."""
    async with sandbox.connect() as conn:
        exists = await catalog.table_exists(conn, workspace.namespace, table_name)
    if not exists and find_declared(workspace, table_name) is None:
        raise TableNotFoundError(table_name)

    try:
        async with sandbox.begin() as conn:
            await catalog.advisory_xact_lock(conn, f"{workspace.namespace}.{table_name}")
            await catalog.execute_raw(conn, drop_table_sql(workspace.namespace, table_name))
    except DBAPIError as exc:
        raise EngineError.from_dbapi(exc) from exc
    logger.info("Table {}.{} dropped", workspace.namespace, table_name)

    await pull_from_engine(db, sandbox, workspace)


async def insert_rows(
    db: AsyncSession,
    sandbox: AsyncEngine,
    workspace: Workspace,
    table_name: str,
    rows: list[dict],
) -> int:
    """Validate *rows* against the declared columns and insert them all or none.

    Returns the number of inserted rows.
    """
    definition = find_declared(workspace, table_name)
    if definition is None:
        raise TableNotFoundError(table_name)

    statements, errors = compile_rows(workspace.namespace, table_name, rows, definition.columns)
    if errors:
        raise _invalid(errors)

    await _run(sandbox, workspace.namespace, table_name, statements)
    await pull_from_engine(db, sandbox, workspace)
    return len(statements)
