"""Run one user statement inside a workspace namespace.

The statement is executed verbatim -- no parsing, no rewriting.  Unqualified
names resolve in the namespace (with ``public`` as fallback) through a
transaction-local ``search_path``, so the path cannot leak to the next user of
the pooled connection.  Schema-qualified names are limited only by the
privileges of the sandbox engine's login role.

One pool checkout, one transaction: commit on success, rollback on any
engine error.  Engine and connection errors are returned as a structured
``ExecResult``, never raised, and never retried.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy.exc import DBAPIError

from sqlsandbox.errors import EngineError
from sqlsandbox.models.enums import ErrorKind
from sqlsandbox.models.results import ErrorDetail, ExecResult, FieldInfo
from sqlsandbox.schema import catalog
from sqlsandbox.schema.compiler import search_path_sql

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.ext.asyncio import AsyncEngine


async def execute(engine: AsyncEngine, namespace: str, sql_text: str) -> ExecResult:
    """Execute *sql_text* against *namespace*.  Never raises for engine or connection errors."""
    try:
        async with engine.connect() as conn, conn.begin():
            await catalog.execute_raw(conn, search_path_sql(namespace))
            result = await catalog.execute_raw(conn, sql_text, preserve_rowcount=True)
            outcome = _to_exec_result(result, sql_text)
    except DBAPIError as exc:
        error = EngineError.from_dbapi(exc)
        logger.info("Query failed in {} ({}): {}", namespace, error.code, error.message)
        return ExecResult(success=False, error=classify_engine_error(error))
    return outcome


def _unique_names(names: list[str]) -> list[str]:
    """Suffix repeated result column names (``name``, ``name_2``) so row keys stay distinct."""
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        candidate, n = name, 1
        while candidate in seen:
            n += 1
            candidate = f"{name}_{n}"
        seen.add(candidate)
        unique.append(candidate)
    return unique


def _to_exec_result(result: CursorResult, sql_text: str) -> ExecResult:
    command = sql_text.split(None, 1)[0].upper() if sql_text.strip() else None
    if not result.returns_rows:
        return ExecResult(success=True, row_count=max(result.rowcount, 0), command=command)

    description = result.cursor.description or []
    names = _unique_names([col[0] for col in description])
    fields = [FieldInfo(name=name, type_code=col[1]) for name, col in zip(names, description, strict=True)]
    rows = [
        {name: catalog.json_safe(value) for name, value in zip(names, row, strict=True)} for row in result.all()
    ]
    return ExecResult(success=True, rows=rows, row_count=len(rows), fields=fields, command=command)


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

_CLASSES: dict[str, tuple[ErrorKind, str]] = {
    "42601": (
        ErrorKind.SYNTAX_ERROR,
        "Check your SQL syntax. Common mistakes: missing commas, incorrect keywords, or typos.",
    ),
    "42P01": (
        ErrorKind.TABLE_NOT_FOUND,
        "Make sure the table name is correct and the table has been created.",
    ),
    "42703": (
        ErrorKind.COLUMN_NOT_FOUND,
        "Check the column name spelling and make sure it exists in the table.",
    ),
    "22P02": (ErrorKind.DATA_TYPE_MISMATCH, "Make sure the value matches the expected data type."),
    "22003": (ErrorKind.DATA_TYPE_MISMATCH, "Make sure the value matches the expected data type."),
    "22007": (ErrorKind.DATA_TYPE_MISMATCH, "Make sure the value matches the expected data type."),
    "22008": (ErrorKind.DATA_TYPE_MISMATCH, "Make sure the value matches the expected data type."),
    "22012": (ErrorKind.DIVISION_BY_ZERO, "Check your calculation - you cannot divide by zero."),
    "23505": (
        ErrorKind.UNIQUE_VIOLATION,
        "This value already exists. Use a different value or update the existing record.",
    ),
    "23503": (
        ErrorKind.FOREIGN_KEY_VIOLATION,
        "The referenced record does not exist or cannot be deleted due to dependent records.",
    ),
    "23502": (ErrorKind.NOT_NULL_VIOLATION, "This column requires a value. Provide a non-null value."),
    "42883": (
        ErrorKind.UNDEFINED_FUNCTION,
        "Check the function name and arguments. Make sure you're using a valid SQL function.",
    ),
    "42702": (
        ErrorKind.AMBIGUOUS_COLUMN,
        "Specify the table name to disambiguate (e.g., table_name.column_name).",
    ),
    "42501": (ErrorKind.PERMISSION_DENIED, "You do not have permission to perform this operation."),
}

_FALLBACK_SUGGESTION = "Please check your query and try again."

_SYNTAX_NEAR_RE = re.compile(r'syntax error at or near "(.+?)"')
_LINE_RE = re.compile(r"LINE (\d+):")
_RELATION_RE = re.compile(r'relation "(.+?)" does not exist')
_COLUMN_RE = re.compile(r'column "(.+?)" does not exist')
_INPUT_TYPE_RE = re.compile(r"invalid input syntax for type (.+?):")
_KEY_RE = re.compile(r"Key \((.+?)\)=\((.+?)\)")
_NULL_COLUMN_RE = re.compile(r'null value in column "(.+?)"')
_FUNCTION_RE = re.compile(r"function (.+?) does not exist")


def _match(pattern: re.Pattern[str], message: str, default: str = "unknown") -> str:
    m = pattern.search(message)
    return m.group(1) if m else default


def _friendly_message(kind: ErrorKind, message: str) -> str:  # noqa: PLR0911
    match kind:
        case ErrorKind.SYNTAX_ERROR:
            near = _match(_SYNTAX_NEAR_RE, message, "")
            line = _LINE_RE.search(message)
            return f"Syntax error near '{near}'" + (f" at line {line.group(1)}" if line else "")
        case ErrorKind.TABLE_NOT_FOUND:
            return f"Table '{_match(_RELATION_RE, message)}' does not exist"
        case ErrorKind.COLUMN_NOT_FOUND:
            return f"Column '{_match(_COLUMN_RE, message)}' does not exist"
        case ErrorKind.DATA_TYPE_MISMATCH:
            return f"Invalid value for data type {_match(_INPUT_TYPE_RE, message)}"
        case ErrorKind.DIVISION_BY_ZERO:
            return "Division by zero error"
        case ErrorKind.UNIQUE_VIOLATION:
            m = _KEY_RE.search(message)
            return "Duplicate key value violates unique constraint" + (f": {m.group(1)}={m.group(2)}" if m else "")
        case ErrorKind.FOREIGN_KEY_VIOLATION:
            return "Foreign key constraint violation"
        case ErrorKind.NOT_NULL_VIOLATION:
            return f"NULL value not allowed in column '{_match(_NULL_COLUMN_RE, message)}'"
        case ErrorKind.UNDEFINED_FUNCTION:
            return f"Function '{_match(_FUNCTION_RE, message)}' does not exist"
        case ErrorKind.AMBIGUOUS_COLUMN:
            return "Column reference is ambiguous"
        case ErrorKind.PERMISSION_DENIED:
            return "Permission denied"
    return message


def classify_engine_error(error: EngineError) -> ErrorDetail:
    """Map an engine error to a tagged, user-facing ``ErrorDetail`` by SQLSTATE."""
    kind, suggestion = _CLASSES.get(error.code or "", (ErrorKind.QUERY_ERROR, _FALLBACK_SUGGESTION))
    return ErrorDetail(
        kind=kind,
        message=_friendly_message(kind, error.message),
        code=error.code or "UNKNOWN",
        suggestion=suggestion,
        original=error.message,
    )


def describe(result: ExecResult) -> dict[str, Any]:
    """Compact summary stored in query history."""
    return {"row_count": result.row_count, "command": result.command}
