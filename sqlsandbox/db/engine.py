"""Async SQLAlchemy engines and session factory.

Two engines are created at startup: one for the metadata store (ORM
sessions) and one for workspace namespaces (raw connections only).  Both use
psycopg3 via ``postgresql+psycopg://`` URLs and may point at the same
database.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def create_engine(database_url: str, **kwargs: object) -> AsyncEngine:
    """Create an async engine with pool defaults; *kwargs* override them.

    ``pool_pre_ping`` guards against server restarts between checkouts, and
    connections are recycled hourly.
    """
    defaults = {
        "echo": False,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }
    defaults.update(kwargs)  # type: ignore[arg-type]
    return create_async_engine(database_url, **defaults)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for the metadata store.

    ``expire_on_commit=False`` keeps ORM rows readable after commit without
    implicit IO.
    """
    return async_sessionmaker(engine, expire_on_commit=False)
