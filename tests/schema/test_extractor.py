"""Integration tests for reading workspace state back from the namespace."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlsandbox.models.workspace import ColumnDefinition, TableDefinition
from sqlsandbox.schema.executor import execute
from sqlsandbox.schema.extractor import extract_workspace_state
from sqlsandbox.schema.reconciler import ensure_namespace, verify_and_sync

pytestmark = pytest.mark.integration


async def test_empty_namespace_yields_no_tables(sandbox_engine: AsyncEngine, namespace: str) -> None:
    await ensure_namespace(sandbox_engine, namespace)

    result = await extract_workspace_state(sandbox_engine, namespace)

    assert result.tables == []
    assert result.skipped_tables == []
    assert result.summary.total_tables == 0


async def test_extract_maps_types_and_drops_surrogate_key(sandbox_engine: AsyncEngine, namespace: str) -> None:
    declared = TableDefinition(
        table_name="products",
        columns=[
            ColumnDefinition(column_name="title", data_type="VARCHAR(40)"),
            ColumnDefinition(column_name="price", data_type="DECIMAL(12,4)"),
            ColumnDefinition(column_name="in_stock", data_type="BOOLEAN"),
            ColumnDefinition(column_name="added", data_type="DATE"),
            ColumnDefinition(column_name="attrs", data_type="JSONB"),
        ],
        rows=[
            {"title": "Pen", "price": "1.5", "in_stock": True, "added": "2024-01-31", "attrs": {"color": "blue"}},
            {"title": "Ink", "price": 12, "in_stock": "f", "added": None, "attrs": None},
        ],
    )
    await verify_and_sync(sandbox_engine, "ws-1", namespace, [declared])

    result = await extract_workspace_state(sandbox_engine, namespace)

    assert result.summary.synced_tables == 1
    (table,) = result.tables
    assert table.table_name == "products"
    assert [(c.column_name, c.data_type) for c in table.columns] == [
        ("title", "VARCHAR(40)"),
        ("price", "DECIMAL(12,4)"),
        ("in_stock", "BOOLEAN"),
        ("added", "DATE"),
        ("attrs", "JSONB"),
    ]
    assert table.rows[0] == {
        "title": "Pen",
        "price": "1.5000",
        "in_stock": True,
        "added": "2024-01-31",
        "attrs": {"color": "blue"},
    }
    assert "id" not in table.rows[1]


async def test_extracted_state_rebuilds_identically(sandbox_engine: AsyncEngine, namespace: str) -> None:
    await ensure_namespace(sandbox_engine, namespace)
    await execute(sandbox_engine, namespace, "CREATE TABLE pets (id SERIAL PRIMARY KEY, name TEXT, legs SMALLINT)")
    await execute(sandbox_engine, namespace, "INSERT INTO pets (name, legs) VALUES ('cat', 4), ('bird', 2)")

    extracted = await extract_workspace_state(sandbox_engine, namespace)
    other = namespace + "_copy"
    report = await verify_and_sync(sandbox_engine, "ws-copy", other, extracted.tables)

    assert report.errors == []
    copy = await execute(sandbox_engine, other, "SELECT name, legs FROM pets ORDER BY id")
    assert copy.rows == [{"name": "cat", "legs": 4}, {"name": "bird", "legs": 2}]


async def test_tables_without_surrogate_key_are_read(sandbox_engine: AsyncEngine, namespace: str) -> None:
    await ensure_namespace(sandbox_engine, namespace)
    await execute(sandbox_engine, namespace, "CREATE TABLE tags (label TEXT)")
    await execute(sandbox_engine, namespace, "INSERT INTO tags VALUES ('a')")

    result = await extract_workspace_state(sandbox_engine, namespace)

    assert result.tables[0].rows == [{"label": "a"}]


async def test_unserialisable_values_are_extracted_as_text(sandbox_engine: AsyncEngine, namespace: str) -> None:
    await ensure_namespace(sandbox_engine, namespace)
    await execute(sandbox_engine, namespace, "CREATE TABLE spans (id SERIAL PRIMARY KEY, r int4range, raw bytea)")
    await execute(sandbox_engine, namespace, "INSERT INTO spans (r, raw) VALUES (int4range(1, 5), '\\xff00')")

    result = await extract_workspace_state(sandbox_engine, namespace)

    assert result.skipped_tables == []
    (table,) = result.tables
    assert [(c.column_name, c.data_type) for c in table.columns] == [("r", "INT4RANGE"), ("raw", "BYTEA")]
    row = table.rows[0]
    assert isinstance(row["r"], str)
    assert row["raw"] == "/wA="


async def test_failing_table_is_skipped_and_others_extracted(sandbox_engine: AsyncEngine, namespace: str) -> None:
    await ensure_namespace(sandbox_engine, namespace)
    await execute(sandbox_engine, namespace, "CREATE TABLE good (name TEXT)")
    await execute(sandbox_engine, namespace, "INSERT INTO good VALUES ('kept')")
    await execute(sandbox_engine, namespace, "CREATE TABLE spans (r int4range)")
    await execute(sandbox_engine, namespace, "INSERT INTO spans VALUES (int4range(1, 5))")
    # Quoted name that cannot be addressed once sanitized; reading it fails.
    await execute(sandbox_engine, namespace, 'CREATE TABLE "bad-name" (x INTEGER)')

    result = await extract_workspace_state(sandbox_engine, namespace)

    assert sorted(t.table_name for t in result.tables) == ["good", "spans"]
    assert result.skipped_tables == ["bad-name"]
    assert result.summary.total_tables == 3
    assert result.summary.synced_tables == 2
