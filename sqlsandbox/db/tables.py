"""SQLAlchemy ORM models for the metadata store.

Alembic reads ``Base.metadata`` to autogenerate migrations.  Every table
lives in the ``sandbox_meta`` schema, which never appears on a workspace
``search_path``.  That keeps unqualified names in user SQL away from it;
qualified names are only kept out when the sandbox engine logs in as a role
without privileges on this schema (``SQLSANDBOX_SANDBOX_DATABASE_URL``).

Uses SQLAlchemy 2.0 declarative style with ``Mapped`` type annotations.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, MetaData, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

METADATA_SCHEMA = "sandbox_meta"

# Timezone-aware timestamp type for all datetime columns.
TimestampTZ = DateTime(timezone=True)


class Base(DeclarativeBase):
    """Declarative base bound to the metadata schema."""

    metadata = MetaData(
        schema=METADATA_SCHEMA,
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        },
    )


class Workspace(Base):
    __tablename__ = "workspaces"
    __table_args__ = (Index("ix_workspaces_updated_at", "updated_at"),)

    workspace_id: Mapped[str] = mapped_column(primary_key=True)
    name: Mapped[str]
    namespace: Mapped[str] = mapped_column(unique=True)
    tables: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    query_history: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    created_at: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now(), onupdate=func.now())
