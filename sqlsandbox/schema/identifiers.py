"""Identifier sanitizing and literal formatting.

Bound parameters only cover values, never identifiers.  Every table, column
and namespace name that ends up in generated SQL therefore passes through
``sanitize_identifier`` first, which keeps ``[A-Za-z0-9_]`` and drops the rest.

Literal values in generated INSERT statements are rendered by
``format_literal`` according to the column's friendly type.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from sqlsandbox.schema.types import ResolvedType, TypeFamily, resolve_type
from sqlsandbox.schema.validators import coerce_value

NAMESPACE_PREFIX = "ws_"

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_]")
_TRUE_STRINGS = frozenset({"true", "t", "1"})


def sanitize_identifier(name: str) -> str:
    return _UNSAFE_RE.sub("", name)


def quote_identifier(name: str) -> str:
    return f'"{sanitize_identifier(name)}"'


def qualified_name(namespace: str, table_name: str) -> str:
    """``"namespace"."table"``, both parts sanitized."""
    return f"{quote_identifier(namespace)}.{quote_identifier(table_name)}"


def namespace_for(workspace_id: str) -> str:
    """Derive the namespace (PG schema name) of a workspace.  Deterministic."""
    return NAMESPACE_PREFIX + sanitize_identifier(workspace_id.replace("-", "_")).lower()


def escape_string(value: Any) -> str:
    """Single-quote *value*, doubling embedded quotes.  ``None`` renders as NULL."""
    if value is None:
        return "NULL"
    return "'" + str(value).replace("'", "''") + "'"


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------


def _numeric_literal(value: Any, spec: ResolvedType) -> str:
    number = coerce_value(value, spec.friendly)
    if number is None:
        return "NULL"
    if isinstance(number, Decimal):
        return format(number, "f")
    if isinstance(number, float):
        return repr(number)
    return str(number)


def _boolean_literal(value: Any, spec: ResolvedType) -> str:
    if isinstance(value, str):
        value = value.strip().lower() in _TRUE_STRINGS
    return "TRUE" if value else "FALSE"


def _json_literal(value: Any, spec: ResolvedType) -> str:
    return escape_string(value if isinstance(value, str) else json.dumps(value))


def _string_literal(value: Any, spec: ResolvedType) -> str:
    return escape_string(value)


_LITERALS: dict[TypeFamily, Callable[[Any, ResolvedType], str]] = {
    TypeFamily.INTEGER: _numeric_literal,
    TypeFamily.FLOAT: _numeric_literal,
    TypeFamily.DECIMAL: _numeric_literal,
    TypeFamily.BOOLEAN: _boolean_literal,
    TypeFamily.JSON: _json_literal,
}


def format_literal(value: Any, friendly_type: str) -> str:
    """Render *value* as a SQL literal for a column of *friendly_type*.

    Numeric families are coerced and rendered unquoted; non-finite or
    out-of-range numbers raise ``ValidationError``.  Text, date, time,
    timestamp and uuid values are quoted strings.
    """
    if value is None:
        return "NULL"
    spec = resolve_type(friendly_type)
    return _LITERALS.get(spec.family, _string_literal)(value, spec)
