"""Query execution and history endpoints.

The statement runs verbatim in the workspace namespace.  Engine errors come
back as a structured ``ExecResult`` with HTTP 400; every execution, failed or
not, is appended to the workspace history.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from sqlsandbox.deps import DbSession, SandboxEngine, enforce_query_rate
from sqlsandbox.log import workspace_context
from sqlsandbox.managers import workspaces as manager
from sqlsandbox.managers.workspaces import WorkspaceNotFoundError
from sqlsandbox.models.api import HistoryResponse, QueryRequest
from sqlsandbox.models.results import ExecResult
from sqlsandbox.routers.workspaces import load_workspace
from sqlsandbox.schema.executor import execute
from sqlsandbox.settings import get_settings

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["queries"])


@router.post("/execute", response_model=ExecResult, dependencies=[Depends(enforce_query_rate)])
async def execute_query(
    workspace_id: str,
    body: QueryRequest,
    response: Response,
    db: DbSession,
    sandbox: SandboxEngine,
) -> ExecResult:
    """Run one SQL statement against the workspace."""
    workspace, _ = await load_workspace(db, sandbox, workspace_id)
    with workspace_context(workspace.workspace_id):
        outcome = await execute(sandbox, workspace.namespace, body.query)
    await manager.record_query(db, workspace, body.query, outcome, limit=get_settings().history_limit)
    if not outcome.success:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return outcome


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    workspace_id: str,
    db: DbSession,
    limit: int = Query(20, ge=1, le=100),
) -> HistoryResponse:
    """Recent queries, newest first."""
    try:
        history = await manager.query_history(db, workspace_id, limit=limit)
    except WorkspaceNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{workspace_id}' not found.") from None
    return HistoryResponse(history=history, count=len(history))
