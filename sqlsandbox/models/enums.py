"""Shared enumerations used across the sandbox."""

from __future__ import annotations

from enum import StrEnum

# -- Errors ------------------------------------------------------------------


class ErrorKind(StrEnum):
    """Machine-readable error tags returned to clients."""

    VALIDATION_ERROR = "validation_error"
    UNSUPPORTED_TYPE = "unsupported_type"
    ENGINE_ERROR = "engine_error"
    NAMESPACE_ERROR = "namespace_error"
    PARTIAL_RECONSTRUCTION = "partial_reconstruction"

    # Classified engine errors (by SQLSTATE)
    SYNTAX_ERROR = "syntax_error"
    TABLE_NOT_FOUND = "table_not_found"
    COLUMN_NOT_FOUND = "column_not_found"
    DATA_TYPE_MISMATCH = "data_type_mismatch"
    DIVISION_BY_ZERO = "division_by_zero"
    UNIQUE_VIOLATION = "unique_violation"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    NOT_NULL_VIOLATION = "not_null_violation"
    UNDEFINED_FUNCTION = "undefined_function"
    AMBIGUOUS_COLUMN = "ambiguous_column"
    PERMISSION_DENIED = "permission_denied"
    QUERY_ERROR = "query_error"


# -- Schema ------------------------------------------------------------------


class StatementKind(StrEnum):
    CREATE_TABLE = "create_table"
    INSERT = "insert"


# -- Query history -----------------------------------------------------------


class QueryStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
