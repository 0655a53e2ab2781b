"""Workspace lifecycle and metadata operations.

A workspace is one ``sandbox_meta.workspaces`` row plus one PostgreSQL schema
(its namespace).  The namespace is created before the row is saved and
dropped before the row is deleted; every read goes through
``open_workspace`` so a missing namespace or table is rebuilt from the row.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pydantic
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from sqlsandbox.db.tables import Workspace
from sqlsandbox.errors import NamespaceError
from sqlsandbox.log import workspace_context
from sqlsandbox.models.enums import QueryStatus
from sqlsandbox.models.workspace import QueryHistoryEntry, TableDefinition
from sqlsandbox.schema import catalog
from sqlsandbox.schema.executor import describe
from sqlsandbox.schema.extractor import extract_workspace_state
from sqlsandbox.schema.identifiers import namespace_for
from sqlsandbox.schema.reconciler import ensure_namespace, verify_and_sync

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from sqlsandbox.models.api import WorkspaceCreate, WorkspaceUpdate
    from sqlsandbox.models.results import ExecResult, ExtractResult, SyncReport

DEFAULT_HISTORY_LIMIT = 100


class WorkspaceNotFoundError(LookupError):
    """Raised when a workspace is not found."""


async def create_workspace(db: AsyncSession, sandbox: AsyncEngine, body: WorkspaceCreate) -> Workspace:
    """Create the namespace, then save the row.  Raises ``NamespaceError``."""
    workspace_id = str(uuid.uuid4())
    namespace = namespace_for(workspace_id)
    await ensure_namespace(sandbox, namespace)

    workspace = Workspace(
        workspace_id=workspace_id,
        name=body.name,
        namespace=namespace,
        tables=[],
        query_history=[],
    )
    db.add(workspace)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await _drop_namespace(sandbox, namespace)
        raise
    await db.refresh(workspace)
    logger.info("Workspace {} created (namespace={})", workspace_id, namespace)
    return workspace


async def list_workspaces(db: AsyncSession, *, limit: int = 50, offset: int = 0) -> list[Workspace]:
    """List workspaces, most recently updated first."""
    stmt = select(Workspace).order_by(Workspace.updated_at.desc()).limit(limit).offset(offset)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def find_workspace(db: AsyncSession, workspace_id: str) -> Workspace:
    """Get a workspace by ID.  Raises ``WorkspaceNotFoundError`` if missing."""
    workspace = await db.get(Workspace, workspace_id)
    if workspace is None:
        raise WorkspaceNotFoundError(workspace_id)
    return workspace


async def open_workspace(db: AsyncSession, sandbox: AsyncEngine, workspace_id: str) -> tuple[Workspace, SyncReport]:
    """Find a workspace and reconcile its namespace against the stored tables.

    Raises ``WorkspaceNotFoundError`` or ``NamespaceError``; per-table rebuild
    failures are reported, not raised.
    """
    workspace = await find_workspace(db, workspace_id)
    with workspace_context(workspace.workspace_id):
        report = await verify_and_sync(sandbox, workspace.workspace_id, workspace.namespace, declared_tables(workspace))
    return workspace, report


async def rename_workspace(db: AsyncSession, workspace_id: str, body: WorkspaceUpdate) -> Workspace:
    workspace = await find_workspace(db, workspace_id)
    workspace.name = body.name
    await db.commit()
    await db.refresh(workspace)
    return workspace


async def delete_workspace(db: AsyncSession, sandbox: AsyncEngine, workspace_id: str) -> None:
    """Drop the namespace (cascade), then the row."""
    workspace = await find_workspace(db, workspace_id)
    await _drop_namespace(sandbox, workspace.namespace)
    await db.delete(workspace)
    await db.commit()
    logger.info("Workspace {} deleted (namespace={})", workspace_id, workspace.namespace)


# ---------------------------------------------------------------------------
# Query history
# ---------------------------------------------------------------------------


async def record_query(
    db: AsyncSession,
    workspace: Workspace,
    sql_text: str,
    outcome: ExecResult,
    *,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> QueryHistoryEntry:
    """Append *outcome* to the workspace history, keeping the newest *limit* entries."""
    entry = QueryHistoryEntry(
        query=sql_text,
        status=QueryStatus.SUCCESS if outcome.success else QueryStatus.ERROR,
        result=describe(outcome) if outcome.success else None,
        error=outcome.error.message if outcome.error else None,
    )
    # JSONB columns are only flushed on reassignment.
    workspace.query_history = [*workspace.query_history, entry.model_dump(mode="json")][-limit:]
    await db.commit()
    await db.refresh(workspace)
    return entry


async def query_history(db: AsyncSession, workspace_id: str, *, limit: int = 20) -> list[QueryHistoryEntry]:
    """Most recent entries first."""
    workspace = await find_workspace(db, workspace_id)
    recent = workspace.query_history[-limit:] if limit > 0 else []
    return [QueryHistoryEntry.model_validate(item) for item in reversed(recent)]


# ---------------------------------------------------------------------------
# Metadata <-> namespace
# ---------------------------------------------------------------------------


def declared_tables(workspace: Workspace) -> list[TableDefinition]:
    """Parse the stored table definitions.  Unreadable entries are logged and skipped."""
    tables = []
    for raw in workspace.tables:
        try:
            tables.append(TableDefinition.model_validate(raw))
        except pydantic.ValidationError as exc:
            logger.warning("Workspace {}: ignoring unreadable table entry: {}", workspace.workspace_id, exc)
    return tables


async def pull_from_engine(db: AsyncSession, sandbox: AsyncEngine, workspace: Workspace) -> ExtractResult:
    """Replace the stored table definitions with what the namespace holds."""
    with workspace_context(workspace.workspace_id):
        result = await extract_workspace_state(sandbox, workspace.namespace)

    # Tables that survive keep their original creation time.
    created = {t.table_name: t.created_at for t in declared_tables(workspace)}
    for table in result.tables:
        table.created_at = created.get(table.table_name) or table.created_at

    workspace.tables = [t.model_dump(mode="json") for t in result.tables]
    await db.commit()
    await db.refresh(workspace)
    logger.info(
        "Workspace {} synced from engine: {}/{} table(s)",
        workspace.workspace_id,
        result.summary.synced_tables,
        result.summary.total_tables,
    )
    return result


async def _drop_namespace(sandbox: AsyncEngine, namespace: str) -> None:
    try:
        async with sandbox.begin() as conn:
            await catalog.drop_namespace(conn, namespace)
    except DBAPIError as exc:
        raise NamespaceError.from_dbapi(exc) from exc
