from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRouter
from loguru import logger

from sqlsandbox.db.engine import create_engine, create_session_factory
from sqlsandbox.deps import RedisClient
from sqlsandbox.log import setup_logging
from sqlsandbox.models.api import SupportedType
from sqlsandbox.schema.types import recommended_types
from sqlsandbox.settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("SQL sandbox starting (host={}, port={})", settings.host, settings.port)

    # -- Initialise state fields (always present, possibly None) ----------------
    _app.state.db_engine = None
    _app.state.db_session_factory = None
    _app.state.sandbox_engine = None
    _app.state.redis = None

    # -- Database --------------------------------------------------------------
    if settings.database_url:
        engine = create_engine(settings.database_url)
        _app.state.db_engine = engine
        _app.state.db_session_factory = create_session_factory(engine)
        logger.info("PostgreSQL metadata store: connected (pool_size=5, max_overflow=10)")

        sandbox_url = settings.resolve_sandbox_url()
        _app.state.sandbox_engine = engine if settings.sandbox_shares_metadata else create_engine(sandbox_url)
        logger.info("PostgreSQL sandbox engine: ready")
        if settings.sandbox_shares_metadata:
            logger.warning(
                "User SQL shares the metadata connection; qualified names can reach sandbox_meta and other "
                "workspaces. Set SQLSANDBOX_SANDBOX_DATABASE_URL to a role without access to sandbox_meta."
            )
    else:
        logger.warning("SQLSANDBOX_DATABASE_URL not set -- database features disabled")

    # -- Redis -----------------------------------------------------------------
    if settings.redis_url:
        _app.state.redis = aioredis.from_url(
            settings.redis_url,
            decode_responses=False,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        logger.info("Redis: connected")
    else:
        logger.warning("SQLSANDBOX_REDIS_URL not set -- query rate limiting disabled")

    yield

    # -- Shutdown --------------------------------------------------------------
    logger.info("SQL sandbox shutting down")

    if _app.state.redis is not None:
        await _app.state.redis.aclose()
        logger.info("Redis: closed")

    if _app.state.sandbox_engine is not None and _app.state.sandbox_engine is not _app.state.db_engine:
        await _app.state.sandbox_engine.dispose()
    if _app.state.db_engine is not None:
        await _app.state.db_engine.dispose()
        logger.info("PostgreSQL: disposed")


app = FastAPI(title="SQL Sandbox", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# API router -- all backend endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health(redis: RedisClient) -> dict[str, str]:
    if redis is not None:
        await redis.ping()
    return {"status": "ok"}


@api.get("/types", response_model=list[SupportedType])
async def list_types() -> list[dict[str, str]]:
    """Data types offered when creating a table."""
    return recommended_types()


# -- Routers -----------------------------------------------------------------
from sqlsandbox.routers.queries import router as queries_router  # noqa: E402
from sqlsandbox.routers.tables import router as tables_router  # noqa: E402
from sqlsandbox.routers.workspaces import router as workspaces_router  # noqa: E402

api.include_router(workspaces_router)
api.include_router(tables_router)
api.include_router(queries_router)

app.include_router(api)
