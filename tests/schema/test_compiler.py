"""Tests for the table definition compiler."""

from __future__ import annotations

from sqlsandbox.models.enums import ErrorKind, StatementKind
from sqlsandbox.models.workspace import ColumnDefinition, TableDefinition
from sqlsandbox.schema.compiler import (
    compile_table,
    compile_tables,
    create_table_sql,
    search_path_sql,
    validate_definition,
)

NS = "ws_test"


def _table(name: str = "users", columns: list[tuple[str, str]] | None = None, rows: list[dict] | None = None):
    if columns is None:
        columns = [("name", "TEXT"), ("age", "INTEGER")]
    return TableDefinition(
        table_name=name,
        columns=[ColumnDefinition(column_name=c, data_type=t) for c, t in columns],
        rows=rows or [],
    )


def test_zero_columns_fails_with_no_statements() -> None:
    result = compile_table(_table(columns=[]), NS)
    assert not result.success
    assert result.statements == []
    assert result.errors[0].kind == ErrorKind.VALIDATION_ERROR
    assert "at least one column" in result.errors[0].message


def test_reserved_keyword_column_fails() -> None:
    result = compile_table(_table(columns=[("select", "TEXT")]), NS)
    assert not result.success
    assert result.statements == []
    assert "reserved word" in result.errors[0].message


def test_reserved_keyword_table_name_fails() -> None:
    result = compile_table(_table(name="table"), NS)
    assert not result.success
    assert any("reserved word" in m for m in result.messages)


def test_duplicate_columns_are_listed() -> None:
    result = compile_table(_table(columns=[("Name", "TEXT"), ("name", "TEXT")]), NS)
    assert not result.success
    assert result.statements == []
    assert "Duplicate column names: name" in result.errors[0].message


def test_whitespace_variant_column_names_collide() -> None:
    result = compile_table(_table(columns=[("name", "TEXT"), ("name ", "TEXT")], rows=[{"name": "Alice"}]), NS)
    assert not result.success
    assert result.statements == []
    assert "Duplicate column names" in result.errors[0].message


def test_column_names_are_stripped_for_row_lookup() -> None:
    result = compile_table(_table(columns=[(" name ", "TEXT")], rows=[{"name": "Alice"}]), NS)
    assert result.success
    assert '"name" TEXT' in result.statements[0].sql
    assert "'Alice'" in result.statements[1].sql


def test_surrogate_key_name_is_reserved() -> None:
    result = compile_table(_table(columns=[("ID", "INTEGER")]), NS)
    assert not result.success
    assert "surrogate key" in result.errors[0].message


def test_unsupported_type_is_tagged() -> None:
    result = compile_table(_table(columns=[("shape", "GEOMETRY")]), NS)
    assert not result.success
    assert result.errors[0].kind == ErrorKind.UNSUPPORTED_TYPE


def test_column_errors_are_aggregated() -> None:
    result = compile_table(_table(columns=[("1bad", "TEXT"), ("ok", "MONEY")]), NS)
    assert not result.success
    assert len(result.errors) == 2


def test_n_rows_compile_to_one_create_and_n_inserts_in_order() -> None:
    rows = [{"name": "Alice", "age": 30}, {"name": "Bob", "age": "25"}, {"name": "Carol"}]
    result = compile_table(_table(rows=rows), NS)

    assert result.success
    assert [s.kind for s in result.statements] == [StatementKind.CREATE_TABLE] + [StatementKind.INSERT] * 3
    assert "'Alice'" in result.statements[1].sql
    assert "'Bob', 25" in result.statements[2].sql
    assert "'Carol', NULL" in result.statements[3].sql
    assert result.summary is not None
    assert result.summary.total_statements == 4


def test_create_statement_puts_surrogate_key_first() -> None:
    sql = create_table_sql(NS, "users", _table().columns)
    assert sql.startswith('CREATE TABLE IF NOT EXISTS "ws_test"."users"')
    body = sql.split("(", 1)[1]
    assert body.index("id SERIAL PRIMARY KEY") < body.index('"name" TEXT') < body.index('"age" INTEGER')


def test_row_errors_keep_create_statement_and_report_every_row() -> None:
    rows = [{"name": "Alice", "age": "x"}, {"name": "Bob", "age": 2}, {"name": "Carol", "age": "y"}]
    result = compile_table(_table(rows=rows), NS)

    assert not result.success
    assert [s.kind for s in result.statements] == [StatementKind.CREATE_TABLE]
    assert [e.message.split(":")[0] for e in result.errors] == ["Row 1", "Row 3"]


def test_quotes_in_values_are_escaped() -> None:
    result = compile_table(_table(rows=[{"name": "O'Brien", "age": 40}]), NS)
    assert "'O''Brien'" in result.statements[1].sql


def test_validate_definition_accepts_valid_table() -> None:
    assert validate_definition(_table(columns=[("price", "decimal(12,4)"), ("code", "varchar(8)")])) == []


def test_compile_tables_isolates_failures() -> None:
    batch = compile_tables([_table("a"), _table("b", columns=[("x", "MONEY")]), _table("c")], NS)
    assert not batch.success
    assert [f.table_name for f in batch.failures] == ["b"]
    assert batch.results["a"].success
    assert batch.results["c"].success
    assert len(batch.statements) == 2


def test_search_path_is_transaction_local() -> None:
    assert search_path_sql("ws_abc") == 'SET LOCAL search_path TO "ws_abc", public'
