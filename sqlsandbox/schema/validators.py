"""Name and row validation for declared tables.

Identifier rules are deliberately stricter than PostgreSQL's: a name must
start with a letter, use only ``[A-Za-z0-9_]``, fit in 63 characters and not
be one of a fixed list of SQL keywords.

Row values are coerced per type family.  Coercion raises
``ValidationError``; ``validate_row`` collects every column error of a row
instead of stopping at the first.
"""

from __future__ import annotations

import json
import math
import re
import uuid
from collections.abc import Callable, Iterable
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlsandbox.errors import ValidationError
from sqlsandbox.models.workspace import ColumnDefinition
from sqlsandbox.schema.types import ResolvedType, TypeFamily, resolve_type

MAX_IDENTIFIER_LENGTH = 63

RESERVED_WORDS = frozenset({
    "SELECT", "FROM", "WHERE", "INSERT", "UPDATE", "DELETE", "CREATE", "DROP", "ALTER", "TABLE",
    "DATABASE", "INDEX", "VIEW", "TRIGGER", "FUNCTION", "PROCEDURE", "AND", "OR", "NOT", "NULL",
    "TRUE", "FALSE", "AS", "ON", "IN", "EXISTS", "BETWEEN", "LIKE", "ORDER", "BY",
    "GROUP", "HAVING", "JOIN", "LEFT", "RIGHT", "INNER", "OUTER", "UNION", "ALL", "DISTINCT",
    "COUNT", "SUM", "AVG", "MIN", "MAX", "CASE", "WHEN", "THEN", "ELSE", "END",
})  # fmt: skip

_IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_TRUE_STRINGS = frozenset({"true", "t", "1"})
_FALSE_STRINGS = frozenset({"false", "f", "0"})


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def validate_identifier(name: object, kind: str = "Table") -> list[str]:
    """Return every rule *name* breaks (empty list if valid).

    *kind* is used in messages only ("Table", "Column").
    """
    if not isinstance(name, str) or not name:
        return [f"{kind} name is required"]

    trimmed = name.strip()
    errors: list[str] = []
    if not trimmed:
        errors.append(f"{kind} name cannot be empty")
    if len(trimmed) > MAX_IDENTIFIER_LENGTH:
        errors.append(f"{kind} name must be {MAX_IDENTIFIER_LENGTH} characters or less")
    if not trimmed[:1].isascii() or not trimmed[:1].isalpha():
        errors.append(f"{kind} name must start with a letter")
    if not _IDENTIFIER_RE.match(trimmed):
        errors.append(f"{kind} name can only contain letters, numbers, and underscores")
    if trimmed.upper() in RESERVED_WORDS:
        errors.append(f"'{trimmed}' is a SQL reserved word and cannot be used as a {kind.lower()} name")
    return errors


def find_duplicate_columns(columns: Iterable[ColumnDefinition]) -> list[str]:
    """Return column names that collide with an earlier column, ignoring case and surrounding whitespace."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for column in columns:
        key = column.column_name.strip().lower()
        if key in seen:
            duplicates.append(column.column_name)
        seen.add(key)
    return duplicates


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def _coerce_integer(value: Any, spec: ResolvedType) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Value '{value}' is not a valid integer")
    try:
        number = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Value '{value}' is not a valid integer") from None
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(f"Value '{value}' is not a valid integer")

    result = int(number)
    bound = 2 ** ((spec.bits or 64) - 1)
    if not -bound <= result < bound:
        raise ValidationError(f"Value '{value}' is out of range for {spec.friendly}")
    return result


def _coerce_float(value: Any, spec: ResolvedType) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Value '{value}' is not a valid number")
    try:
        result = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(f"Value '{value}' is not a valid number") from None
    if not math.isfinite(result):
        raise ValidationError(f"Value '{value}' is not a finite number")
    return result


def _coerce_decimal(value: Any, spec: ResolvedType) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"Value '{value}' is not a valid decimal number")
    try:
        result = Decimal(value.strip()) if isinstance(value, str) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Value '{value}' is not a valid decimal number") from None
    if not result.is_finite():
        raise ValidationError(f"Value '{value}' is not a finite number")

    if spec.precision is not None:
        integer_digits = max(result.adjusted() + 1, 0)
        allowed = spec.precision - (spec.scale or 0)
        if integer_digits > allowed:
            raise ValidationError(f"Value '{value}' overflows {spec.friendly}")
    return result


def _coerce_boolean(value: Any, spec: ResolvedType) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValidationError(f"Value '{value}' is not a valid boolean")


def _coerce_date(value: Any, spec: ResolvedType) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not _DATE_RE.match(text):
        raise ValidationError(f"Value '{value}' is not a valid date (expected YYYY-MM-DD)")
    try:
        date.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Value '{value}' is not a valid date") from None
    return text


def _coerce_time(value: Any, spec: ResolvedType) -> str:
    if isinstance(value, time):
        return value.isoformat()
    text = str(value).strip()
    try:
        time.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Value '{value}' is not a valid time") from None
    return text


def _coerce_timestamp(value: Any, spec: ResolvedType) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    text = str(value).strip()
    try:
        datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Value '{value}' is not a valid timestamp") from None
    return text


def _coerce_json(value: Any, spec: ResolvedType) -> str:
    if not isinstance(value, str):
        try:
            return json.dumps(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Value '{value}' is not valid JSON") from None
    try:
        json.loads(value)
    except ValueError:
        raise ValidationError(f"Value '{value}' is not valid JSON") from None
    return value


def _coerce_uuid(value: Any, spec: ResolvedType) -> str:
    try:
        return str(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value).strip()))
    except ValueError:
        raise ValidationError(f"Value '{value}' is not a valid UUID") from None


def _coerce_text(value: Any, spec: ResolvedType) -> str:
    text = json.dumps(value) if isinstance(value, dict | list) else str(value)
    if spec.length is not None and len(text) > spec.length:
        raise ValidationError(f"Value '{text}' is longer than {spec.length} characters")
    return text


_COERCERS: dict[TypeFamily, Callable[[Any, ResolvedType], Any]] = {
    TypeFamily.INTEGER: _coerce_integer,
    TypeFamily.FLOAT: _coerce_float,
    TypeFamily.DECIMAL: _coerce_decimal,
    TypeFamily.BOOLEAN: _coerce_boolean,
    TypeFamily.DATE: _coerce_date,
    TypeFamily.TIME: _coerce_time,
    TypeFamily.TIMESTAMP: _coerce_timestamp,
    TypeFamily.JSON: _coerce_json,
    TypeFamily.UUID: _coerce_uuid,
    TypeFamily.TEXT: _coerce_text,
}


def coerce_value(value: Any, friendly_type: str) -> Any:
    """Coerce *value* to the Python form of *friendly_type*.

    ``None`` and the empty string coerce to ``None``.  Raises
    ``ValidationError`` (or ``UnsupportedTypeError`` for an unknown type).
    """
    if value is None or value == "":
        return None
    spec = resolve_type(friendly_type)
    return _COERCERS[spec.family](value, spec)


def validate_row(row: dict[str, Any], columns: list[ColumnDefinition]) -> tuple[dict[str, Any], list[str]]:
    """Coerce every declared column of *row*.

    Returns ``(coerced_row, errors)``.  Keys of *row* that are not declared
    columns are reported as errors; missing columns coerce to ``None``.
    """
    declared = {c.column_name for c in columns}
    errors = [f"Column '{key}': not a declared column" for key in row if key not in declared]
    coerced: dict[str, Any] = {}

    for column in columns:
        try:
            coerced[column.column_name] = coerce_value(row.get(column.column_name), column.data_type)
        except ValidationError as exc:
            errors.append(f"Column '{column.column_name}': {exc.message}")
    return coerced, errors
