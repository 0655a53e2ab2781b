"""Table definition -> SQL statements.

``compile_table`` is pure: it validates a declared table and emits the
statements that would create it (CREATE TABLE first, then one INSERT per row
of the snapshot).  It never executes anything; callers run ``statements`` in
one transaction.

Validation runs in stages and stops at the first stage that reports errors.
Errors within a stage are aggregated.  Statements built by earlier stages are
kept on failure so callers can show them for diagnostics.
"""

from __future__ import annotations

from sqlsandbox.models.enums import ErrorKind, StatementKind
from sqlsandbox.models.results import (
    BatchCompileResult,
    CompileResult,
    CompileSummary,
    ErrorDetail,
    Statement,
    TableFailure,
)
from sqlsandbox.models.workspace import ColumnDefinition, TableDefinition
from sqlsandbox.schema.identifiers import format_literal, qualified_name, quote_identifier
from sqlsandbox.schema.types import is_supported, to_engine_type
from sqlsandbox.schema.validators import find_duplicate_columns, validate_identifier, validate_row

SURROGATE_KEY = "id"
SURROGATE_KEY_DDL = f"{SURROGATE_KEY} SERIAL PRIMARY KEY"


def _failure(errors: list[ErrorDetail], statements: list[Statement] | None = None) -> CompileResult:
    return CompileResult(success=False, errors=errors, statements=statements or [])


def _validation(message: str) -> ErrorDetail:
    return ErrorDetail(kind=ErrorKind.VALIDATION_ERROR, message=message)


def _check_columns(columns: list[ColumnDefinition]) -> list[ErrorDetail]:
    errors: list[ErrorDetail] = []
    for index, column in enumerate(columns, start=1):
        if not column.column_name or not column.data_type:
            errors.append(_validation(f"Column {index}: column_name and data_type are required"))
            continue
        name_errors = validate_identifier(column.column_name, "Column")
        if name_errors:
            errors.append(_validation(f"Column '{column.column_name}': {', '.join(name_errors)}"))
        elif column.column_name.strip().lower() == SURROGATE_KEY:
            errors.append(_validation(f"Column '{column.column_name}': name is reserved for the surrogate key"))
        if not is_supported(column.data_type):
            errors.append(
                ErrorDetail(
                    kind=ErrorKind.UNSUPPORTED_TYPE,
                    message=f"Column '{column.column_name}': unsupported data type '{column.data_type}'",
                )
            )
    return errors


# ---------------------------------------------------------------------------
# Statement builders
# ---------------------------------------------------------------------------


def create_table_sql(namespace: str, table_name: str, columns: list[ColumnDefinition]) -> str:
    column_defs = [SURROGATE_KEY_DDL]
    column_defs += [f"{quote_identifier(c.column_name)} {to_engine_type(c.data_type)}" for c in columns]
    body = ",\n  ".join(column_defs)
    return f"CREATE TABLE IF NOT EXISTS {qualified_name(namespace, table_name)} (\n  {body}\n);"


def insert_sql(namespace: str, table_name: str, row: dict, columns: list[ColumnDefinition]) -> str:
    names = ", ".join(quote_identifier(c.column_name) for c in columns)
    values = ", ".join(format_literal(row.get(c.column_name), c.data_type) for c in columns)
    return f"INSERT INTO {qualified_name(namespace, table_name)} ({names})\nVALUES ({values});"


def drop_table_sql(namespace: str, table_name: str) -> str:
    return f"DROP TABLE IF EXISTS {qualified_name(namespace, table_name)} CASCADE;"


def create_namespace_sql(namespace: str) -> str:
    return f"CREATE SCHEMA IF NOT EXISTS {quote_identifier(namespace)};"


def drop_namespace_sql(namespace: str) -> str:
    return f"DROP SCHEMA IF EXISTS {quote_identifier(namespace)} CASCADE;"


def search_path_sql(namespace: str) -> str:
    """Transaction-scoped search path: the namespace first, ``public`` as fallback."""
    return f"SET LOCAL search_path TO {quote_identifier(namespace)}, public"


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def validate_definition(definition: TableDefinition) -> list[ErrorDetail]:
    """Run the name/column/duplicate stages only.  Empty list means valid."""
    name_errors = validate_identifier(definition.table_name, "Table")
    if name_errors:
        return [_validation(m) for m in name_errors]

    if not definition.columns:
        return [_validation("Table must have at least one column")]

    column_errors = _check_columns(definition.columns)
    if column_errors:
        return column_errors

    duplicates = find_duplicate_columns(definition.columns)
    if duplicates:
        return [_validation(f"Duplicate column names: {', '.join(duplicates)}")]
    return []


def compile_rows(
    namespace: str,
    table_name: str,
    rows: list[dict],
    columns: list[ColumnDefinition],
) -> tuple[list[Statement], list[ErrorDetail]]:
    """Validate every row, then emit one INSERT per row (only if all rows are valid)."""
    coerced_rows: list[dict] = []
    errors: list[ErrorDetail] = []
    for index, row in enumerate(rows, start=1):
        coerced, row_errors = validate_row(row, columns)
        if row_errors:
            errors.append(_validation(f"Row {index}: {', '.join(row_errors)}"))
        else:
            coerced_rows.append(coerced)

    if errors:
        return [], errors
    statements = [
        Statement(kind=StatementKind.INSERT, sql=insert_sql(namespace, table_name, row, columns))
        for row in coerced_rows
    ]
    return statements, []


def compile_table(definition: TableDefinition, namespace: str) -> CompileResult:
    """Compile *definition* into statements scoped to *namespace*."""
    errors = validate_definition(definition)
    if errors:
        return _failure(errors)

    table_name = definition.table_name.strip()
    statements = [
        Statement(
            kind=StatementKind.CREATE_TABLE,
            sql=create_table_sql(namespace, table_name, definition.columns),
        )
    ]

    if definition.rows:
        inserts, row_errors = compile_rows(namespace, table_name, definition.rows, definition.columns)
        if row_errors:
            return _failure(row_errors, statements)
        statements.extend(inserts)

    return CompileResult(
        success=True,
        statements=statements,
        summary=CompileSummary(
            table_name=table_name,
            column_count=len(definition.columns),
            row_count=len(definition.rows),
            total_statements=len(statements),
        ),
    )


def compile_tables(definitions: list[TableDefinition], namespace: str) -> BatchCompileResult:
    """Compile several tables independently; one failing table doesn't stop the rest."""
    batch = BatchCompileResult(success=True)
    for definition in definitions:
        result = compile_table(definition, namespace)
        batch.results[definition.table_name] = result
        if result.success:
            batch.statements.extend(result.statements)
        else:
            batch.failures.append(TableFailure(table_name=definition.table_name, errors=result.errors))
    batch.success = not batch.failures
    return batch
