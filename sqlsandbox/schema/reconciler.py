"""Make the relational namespace match the declared metadata.

``verify_and_sync`` is run on every workspace read.  It treats the metadata
record as intent and the PostgreSQL schema as fact, and rebuilds whatever is
missing from the fact:

- namespace missing: create it, rebuild every declared table;
- namespace present, some declared tables missing: rebuild only those;
- otherwise: nothing to do.

Tables are rebuilt one at a time, each in its own transaction on its own
pool checkout.  A table that fails to compile or execute is recorded in the
report and the loop moves on -- a stale or corrupt metadata entry must never
block the rest of the workspace.  Only failing to create the namespace itself
is fatal (``NamespaceError``).

Concurrent reconciles of the same namespace are serialised per table by a
transaction-scoped advisory lock; the table's existence is re-checked under
the lock so the row snapshot is never inserted twice.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy.exc import DBAPIError

from sqlsandbox.errors import EngineError, NamespaceError, SandboxError
from sqlsandbox.models.results import ReconstructedTable, Statement, SyncReport, SyncSummary, TableFailure
from sqlsandbox.schema import catalog
from sqlsandbox.schema.compiler import compile_table

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from sqlsandbox.models.workspace import TableDefinition


async def verify_and_sync(
    engine: AsyncEngine,
    workspace_id: str,
    namespace: str,
    declared_tables: list[TableDefinition],
) -> SyncReport:
    """Check *namespace* against *declared_tables* and rebuild what is missing."""
    report = SyncReport(workspace_id=workspace_id, namespace=namespace)

    try:
        async with engine.connect() as conn:
            exists = await catalog.namespace_exists(conn, namespace)
            physical = await catalog.list_tables(conn, namespace) if exists else []
    except DBAPIError as exc:
        raise NamespaceError.from_dbapi(exc) from exc

    if not exists:
        logger.info("Namespace {} not found, reconstructing {} table(s)", namespace, len(declared_tables))
        await ensure_namespace(engine, namespace)
        report.reconstructed = True
        await _rebuild_tables(engine, namespace, declared_tables, report)
        return report

    declared_names = [t.table_name for t in declared_tables]
    physical_names = set(physical)
    report.untracked_tables = [name for name in physical if name not in set(declared_names)]

    missing = [name for name in declared_names if name not in physical_names]
    if not missing:
        report.message = "Workspace schema is in sync"
        return report

    logger.info("Namespace {}: missing tables detected: {}", namespace, ", ".join(missing))
    report.reconstructed = True
    report.partial = True
    report.missing_tables = missing
    await _rebuild_tables(engine, namespace, [t for t in declared_tables if t.table_name in missing], report)
    return report


async def ensure_namespace(engine: AsyncEngine, namespace: str) -> None:
    """Create *namespace* if absent.  Raises ``NamespaceError``."""
    try:
        async with engine.begin() as conn:
            await catalog.advisory_xact_lock(conn, namespace)
            await catalog.create_namespace(conn, namespace)
    except DBAPIError as exc:
        logger.error("Failed to create namespace {}: {}", namespace, exc.orig)
        raise NamespaceError.from_dbapi(exc) from exc
    logger.info("Namespace {} created/verified", namespace)


async def _rebuild_tables(
    engine: AsyncEngine,
    namespace: str,
    tables: list[TableDefinition],
    report: SyncReport,
) -> None:
    seen: set[str] = set()
    for table in tables:
        if table.table_name in seen:
            continue
        seen.add(table.table_name)

        compiled = compile_table(table, namespace)
        if not compiled.success:
            logger.warning("Cannot reconstruct {}.{}: {}", namespace, table.table_name, "; ".join(compiled.messages))
            report.errors.append(TableFailure(table_name=table.table_name, errors=compiled.errors))
            continue

        try:
            created = await _apply(engine, namespace, table.table_name, compiled.statements)
        except DBAPIError as exc:
            error = EngineError.from_dbapi(exc)
            logger.warning("Error reconstructing table {}.{}: {}", namespace, table.table_name, error.message)
            report.errors.append(TableFailure(table_name=table.table_name, errors=[error.to_detail()]))
            continue
        except SandboxError as exc:
            logger.warning("Error reconstructing table {}.{}: {}", namespace, table.table_name, exc.message)
            report.errors.append(TableFailure(table_name=table.table_name, errors=[exc.to_detail()]))
            continue

        if created:
            logger.info("Reconstructed table {}.{}", namespace, table.table_name)
        else:
            logger.info("Table {}.{} was rebuilt concurrently, skipping", namespace, table.table_name)
        report.reconstructed_tables.append(
            ReconstructedTable(
                table_name=table.table_name,
                column_count=len(table.columns),
                row_count=len(table.rows),
            )
        )

    report.summary = SyncSummary(
        total_tables=len(seen),
        successful_tables=len(report.reconstructed_tables),
        failed_tables=len(report.errors),
    )


async def _apply(engine: AsyncEngine, namespace: str, table_name: str, statements: list[Statement]) -> bool:
    """Run one table's statements in a single transaction.

    Returns False if the table already existed once the lock was held.
    """
    async with engine.begin() as conn:
        await catalog.advisory_xact_lock(conn, f"{namespace}.{table_name}")
        if await catalog.table_exists(conn, namespace, table_name):
            return False
        for statement in statements:
            await catalog.execute_raw(conn, statement.sql)
    return True
