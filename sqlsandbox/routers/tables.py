"""Table endpoints scoped to one workspace (RPC-style)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from sqlsandbox.deps import DbSession, SandboxEngine
from sqlsandbox.errors import SandboxError
from sqlsandbox.managers import tables as manager
from sqlsandbox.managers.tables import DuplicateTableError, TableNotFoundError
from sqlsandbox.models.api import (
    RowsInsert,
    RowsInsertResponse,
    TableCreate,
    TableDetailResponse,
    TableListResponse,
)
from sqlsandbox.models.workspace import TableDefinition
from sqlsandbox.routers.workspaces import load_workspace, sandbox_http_error

router = APIRouter(prefix="/workspaces/{workspace_id}/tables", tags=["tables"])


def _table_not_found(table_name: str) -> HTTPException:
    return HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Table '{table_name}' not found.")


@router.post("/create", response_model=TableDefinition, status_code=status.HTTP_201_CREATED)
async def create_table(workspace_id: str, body: TableCreate, db: DbSession, sandbox: SandboxEngine) -> TableDefinition:
    """Create a table with optional initial rows."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    try:
        return await manager.create_table(db, sandbox, workspace, body)
    except DuplicateTableError:
        raise HTTPException(
            status.HTTP_409_CONFLICT, detail=f"Table '{body.table_name.strip()}' already exists."
        ) from None
    except SandboxError as exc:
        raise sandbox_http_error(exc) from exc


@router.get("/list", response_model=TableListResponse)
async def list_tables(workspace_id: str, db: DbSession, sandbox: SandboxEngine) -> TableListResponse:
    """Stored table definitions and the tables physically present."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    tables, pg_tables = await manager.list_tables(sandbox, workspace)
    return TableListResponse(tables=tables, pg_tables=pg_tables)


@router.get("/{table_name}/get", response_model=TableDetailResponse)
async def get_table(workspace_id: str, table_name: str, db: DbSession, sandbox: SandboxEngine) -> TableDetailResponse:
    """Live structure and rows of one table."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    try:
        return await manager.describe_table(sandbox, workspace, table_name)
    except TableNotFoundError:
        raise _table_not_found(table_name) from None


@router.post("/{table_name}/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_table(workspace_id: str, table_name: str, db: DbSession, sandbox: SandboxEngine) -> None:
    """Drop a table and forget its definition."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    try:
        await manager.drop_table(db, sandbox, workspace, table_name)
    except TableNotFoundError:
        raise _table_not_found(table_name) from None
    except SandboxError as exc:
        raise sandbox_http_error(exc) from exc


@router.post("/{table_name}/rows", response_model=RowsInsertResponse)
async def insert_rows(
    workspace_id: str,
    table_name: str,
    body: RowsInsert,
    db: DbSession,
    sandbox: SandboxEngine,
) -> RowsInsertResponse:
    """Insert rows (all or none) into a declared table."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    try:
        inserted = await manager.insert_rows(db, sandbox, workspace, table_name, body.rows)
    except TableNotFoundError:
        raise _table_not_found(table_name) from None
    except SandboxError as exc:
        raise sandbox_http_error(exc) from exc
    return RowsInsertResponse(inserted=inserted, table=manager.find_declared(workspace, table_name))
