"""Shared test fixtures: testcontainers for PostgreSQL and Redis.

Integration tests use real PostgreSQL and Redis containers managed by
testcontainers-python.  Containers are session-scoped (started once per
test run).  Metadata-store sessions are isolated per test via savepoint
rollback; workspace namespaces are real schemas and are dropped after each
test that creates them.

Requires Docker to be available.  Tests needing containers should be
marked with ``@pytest.mark.integration``.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import redis.asyncio as aioredis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from testcontainers.postgres import PostgresContainer
from testcontainers.redis import RedisContainer

from sqlsandbox.schema.identifiers import NAMESPACE_PREFIX, namespace_for
from sqlsandbox.settings import _get_settings_cached


def _set_env(key: str, value: str) -> None:
    """Set an env var and invalidate the settings cache."""
    os.environ[key] = value
    _get_settings_cached.cache_clear()


# ---------------------------------------------------------------------------
# Session-scoped: containers (started once, shared across all tests)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container() -> Iterator[PostgresContainer]:
    """Start a PostgreSQL 17 container for the test session."""
    with PostgresContainer(
        image="postgres:17",
        username="test",
        password="test",
        dbname="sqlsandbox_test",
        driver="psycopg",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def redis_container() -> Iterator[RedisContainer]:
    """Start a Redis 7 container for the test session."""
    with RedisContainer(image="redis:7") as r:
        yield r


# ---------------------------------------------------------------------------
# Session-scoped: connection URLs and schema migration
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_url(pg_container: PostgresContainer) -> str:
    """PostgreSQL URL (psycopg3 dialect) with Alembic migrations applied."""
    url = pg_container.get_connection_url()
    _set_env("SQLSANDBOX_DATABASE_URL", url)

    # Apply all migrations using the packaged alembic.ini (same config as CLI).
    from alembic import command
    from alembic.config import Config

    ini_path = Path(__file__).parent.parent / "sqlsandbox" / "alembic.ini"
    command.upgrade(Config(str(ini_path)), "head")

    return url


@pytest.fixture(scope="session")
def redis_url(redis_container: RedisContainer) -> str:
    """Redis connection URL."""
    host = redis_container.get_container_host_ip()
    port = redis_container.get_exposed_port(6379)
    url = f"redis://{host}:{port}/0"
    _set_env("SQLSANDBOX_REDIS_URL", url)
    return url


# ---------------------------------------------------------------------------
# Session-scoped: async engines (shared across all tests)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def async_engine(pg_url: str) -> Iterator[AsyncEngine]:
    """Metadata-store engine."""
    engine = create_async_engine(pg_url)
    yield engine
    engine.sync_engine.dispose()


@pytest.fixture(scope="session")
def sandbox_engine(pg_url: str) -> Iterator[AsyncEngine]:
    """Engine for workspace namespaces (same database, separate pool)."""
    engine = create_async_engine(pg_url)
    yield engine
    engine.sync_engine.dispose()


# ---------------------------------------------------------------------------
# Function-scoped: DB session with savepoint rollback for test isolation
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Async SQLAlchemy session; all changes rolled back after the test.

    Uses ``join_transaction_mode="create_savepoint"`` so that session.commit()
    inside tested code only commits a savepoint, while the outer transaction
    is rolled back at teardown -- giving each test a clean database state.
    """
    async with async_engine.connect() as conn:
        await conn.begin()
        session = AsyncSession(bind=conn, join_transaction_mode="create_savepoint")
        yield session
        await session.close()
        await conn.rollback()


# ---------------------------------------------------------------------------
# Function-scoped: namespaces
# ---------------------------------------------------------------------------


@pytest.fixture
def namespace() -> str:
    """A fresh namespace name (not yet created)."""
    return namespace_for(str(uuid.uuid4()))


@pytest.fixture(autouse=True)
async def drop_namespaces(request: pytest.FixtureRequest) -> AsyncIterator[None]:
    """Drop every workspace namespace left behind by an integration test."""
    engine: AsyncEngine | None = None
    if "sandbox_engine" in request.fixturenames:
        engine = request.getfixturevalue("sandbox_engine")
    yield
    if engine is None:
        return
    async with engine.begin() as conn:
        result = await conn.execute(
            text("SELECT schema_name FROM information_schema.schemata WHERE schema_name LIKE :prefix"),
            {"prefix": f"{NAMESPACE_PREFIX}%"},
        )
        for (name,) in result.all():
            await conn.exec_driver_sql(f'DROP SCHEMA IF EXISTS "{name}" CASCADE')


# ---------------------------------------------------------------------------
# Function-scoped: Redis client with flush
# ---------------------------------------------------------------------------


@pytest.fixture
async def redis_client(redis_url: str) -> AsyncIterator[aioredis.Redis]:
    """Async Redis client; database flushed after each test."""
    client = aioredis.from_url(redis_url)
    yield client
    await client.flushdb()
    await client.aclose()
