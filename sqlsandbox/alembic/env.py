"""Alembic migration environment.

Reads the database URL from SandboxSettings (SQLSANDBOX_DATABASE_URL env var)
and runs migrations synchronously using psycopg3.  Only the ``sandbox_meta``
schema is managed; workspace namespaces are never touched.
"""

from __future__ import annotations

from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import create_engine, pool

from sqlsandbox.db.tables import METADATA_SCHEMA, Base
from sqlsandbox.settings import SandboxSettings

# -- Alembic Config object ----------------------------------------------------
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# -- Target metadata for autogenerate ----------------------------------------
target_metadata = Base.metadata

# -- Database URL from app settings -------------------------------------------
settings = SandboxSettings()
if not settings.database_url:
    msg = "SQLSANDBOX_DATABASE_URL is not set. Cannot run migrations."
    raise RuntimeError(msg)


def get_url() -> str:
    """Return the database URL with the psycopg3 dialect."""
    url = settings.database_url
    if url is None:  # pragma: no cover
        msg = "database_url is None"
        raise RuntimeError(msg)
    return url.replace("postgresql+asyncpg://", "postgresql+psycopg://")


def include_name(name: str | None, type_: str, parent_names: dict[str, Any]) -> bool:
    """Restrict autogenerate reflection to the metadata schema."""
    if type_ == "schema":
        return name == METADATA_SCHEMA
    return True


def include_object(obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any) -> bool:
    """Skip reflected tables with no model, so autogenerate never emits DROP TABLE for them."""
    return not (type_ == "table" and reflected and compare_to is None)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without connecting)."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        include_schemas=True,
        include_name=include_name,
        include_object=include_object,
        version_table_schema=METADATA_SCHEMA,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = create_engine(
        get_url(),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        # The version table lives in the metadata schema, so it must exist first.
        connection.exec_driver_sql(f'CREATE SCHEMA IF NOT EXISTS "{METADATA_SCHEMA}"')
        connection.commit()
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=True,
            include_name=include_name,
            include_object=include_object,
            version_table_schema=METADATA_SCHEMA,
            compare_type=True,
            compare_server_default=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
