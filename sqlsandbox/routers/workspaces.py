"""Workspace endpoints (RPC-style).

All write operations use POST; reads use GET.  Every read of a single
workspace reconciles its namespace first.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from sqlsandbox.db.tables import Workspace
from sqlsandbox.deps import DbSession, SandboxEngine
from sqlsandbox.errors import EngineError, NamespaceError, SandboxError, ValidationError
from sqlsandbox.managers import workspaces as manager
from sqlsandbox.managers.workspaces import WorkspaceNotFoundError
from sqlsandbox.models.api import (
    WorkspaceCreate,
    WorkspaceDetailResponse,
    WorkspaceResponse,
    WorkspaceSummary,
    WorkspaceSyncResponse,
    WorkspaceUpdate,
)
from sqlsandbox.models.results import SyncReport
from sqlsandbox.schema import catalog

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def sandbox_http_error(exc: SandboxError) -> HTTPException:
    """Translate a sandbox error into an HTTP error carrying its ``ErrorDetail``."""
    if isinstance(exc, NamespaceError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    elif isinstance(exc, ValidationError | EngineError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = exc.to_detail().model_dump(mode="json", exclude_none=True)
    if isinstance(exc, ValidationError) and len(exc.details) > 1:
        detail["errors"] = [d.model_dump(mode="json", exclude_none=True) for d in exc.details]
    return HTTPException(code, detail=detail)


async def load_workspace(db: AsyncSession, sandbox: AsyncEngine, workspace_id: str) -> tuple[Workspace, SyncReport]:
    """``open_workspace`` with errors translated to HTTP."""
    try:
        return await manager.open_workspace(db, sandbox, workspace_id)
    except WorkspaceNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{workspace_id}' not found.") from None
    except NamespaceError as exc:
        raise sandbox_http_error(exc) from exc


@router.post("/create", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def create_workspace(body: WorkspaceCreate, db: DbSession, sandbox: SandboxEngine) -> Workspace:
    """Create a workspace and its namespace."""
    try:
        return await manager.create_workspace(db, sandbox, body)
    except NamespaceError as exc:
        raise sandbox_http_error(exc) from exc


@router.get("/list", response_model=list[WorkspaceSummary])
async def list_workspaces(
    db: DbSession,
    limit: int = Query(50, ge=1, le=50),
    offset: int = Query(0, ge=0),
) -> list[Workspace]:
    """List workspaces, most recently updated first."""
    return await manager.list_workspaces(db, limit=limit, offset=offset)


@router.get("/{workspace_id}/get", response_model=WorkspaceDetailResponse)
async def get_workspace(workspace_id: str, db: DbSession, sandbox: SandboxEngine) -> WorkspaceDetailResponse:
    """Get a workspace, rebuilding any missing namespace or tables first."""
    workspace, report = await load_workspace(db, sandbox, workspace_id)
    async with sandbox.connect() as conn:
        pg_tables = await catalog.list_tables(conn, workspace.namespace)
    history = await manager.query_history(db, workspace_id)
    return WorkspaceDetailResponse(
        workspace=WorkspaceResponse.model_validate(workspace),
        pg_tables=pg_tables,
        query_history=history,
        sync=report if report.reconstructed else None,
    )


@router.post("/{workspace_id}/update", response_model=WorkspaceResponse)
async def update_workspace(workspace_id: str, body: WorkspaceUpdate, db: DbSession) -> Workspace:
    """Rename a workspace."""
    try:
        return await manager.rename_workspace(db, workspace_id, body)
    except WorkspaceNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{workspace_id}' not found.") from None


@router.post("/{workspace_id}/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workspace(workspace_id: str, db: DbSession, sandbox: SandboxEngine) -> None:
    """Delete a workspace and drop its namespace."""
    try:
        await manager.delete_workspace(db, sandbox, workspace_id)
    except WorkspaceNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{workspace_id}' not found.") from None
    except NamespaceError as exc:
        raise sandbox_http_error(exc) from exc


@router.post("/{workspace_id}/sync", response_model=WorkspaceSyncResponse)
async def sync_workspace(workspace_id: str, db: DbSession, sandbox: SandboxEngine) -> WorkspaceSyncResponse:
    """Overwrite the stored table definitions with what the namespace holds."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    result = await manager.pull_from_engine(db, sandbox, workspace)
    return WorkspaceSyncResponse(
        workspace=WorkspaceResponse.model_validate(workspace),
        summary=result.summary,
        skipped_tables=result.skipped_tables,
    )
