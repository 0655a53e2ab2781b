"""FastAPI dependency injection for the metadata session, sandbox engine and Redis.

Usage in route handlers::

    @router.post("/{workspace_id}/execute", dependencies=[Depends(enforce_query_rate)])
    async def execute(workspace_id: str, db: DbSession, sandbox: SandboxEngine) -> ExecResult:
        ...

Dependencies raise HTTP 503 if the backing service was not configured
(SQLSANDBOX_DATABASE_URL unset).  Rate limiting is skipped without Redis.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from sqlsandbox.ratelimit import hit
from sqlsandbox.settings import get_settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a metadata-store session, closing it after the request.

    Managers commit on success.  If the handler raises, the session is closed
    and the open transaction is rolled back.
    """
    session_factory = request.app.state.db_session_factory
    if session_factory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured (SQLSANDBOX_DATABASE_URL is unset).",
        )
    session: AsyncSession = session_factory()
    try:
        yield session
    finally:
        await session.close()


async def get_sandbox_engine(request: Request) -> AsyncEngine:
    """Return the engine that owns workspace namespaces."""
    engine: AsyncEngine | None = request.app.state.sandbox_engine
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sandbox database not configured (SQLSANDBOX_DATABASE_URL is unset).",
        )
    return engine


async def get_redis(request: Request) -> aioredis.Redis | None:
    """Return the shared async Redis client, or None when Redis is not configured."""
    return request.app.state.redis


async def enforce_query_rate(workspace_id: str, request: Request) -> None:
    """Reject with 429 once a workspace exceeds its query budget for the window."""
    client: aioredis.Redis | None = request.app.state.redis
    if client is None:
        return
    settings = get_settings()
    allowed = await hit(
        client,
        f"execute:{workspace_id}",
        limit=settings.query_rate_limit,
        window=settings.query_rate_window,
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many queries, limit is {settings.query_rate_limit} per {settings.query_rate_window}s.",
        )


# -- Annotated type aliases for concise route signatures ---------------------

DbSession = Annotated[AsyncSession, Depends(get_db)]
"""Annotated dependency: metadata-store session (auto-closed after request)."""

SandboxEngine = Annotated[AsyncEngine, Depends(get_sandbox_engine)]
"""Annotated dependency: engine for workspace namespaces."""

RedisClient = Annotated[aioredis.Redis | None, Depends(get_redis)]
"""Annotated dependency: shared async Redis client, None if unconfigured."""
