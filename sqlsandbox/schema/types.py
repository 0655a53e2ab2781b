"""Friendly <-> PostgreSQL type mapping.

Users declare columns with a small, UI-facing vocabulary (``INTEGER``,
``TEXT``, ``VARCHAR(40)``, ...).  This module is the single lookup table in
both directions:

- ``to_engine_type``: friendly tag -> native column type for DDL.
- ``from_engine_type``: catalog type name -> friendly tag.  Never raises;
  unknown native types come back upper-cased as a best-effort label.

Each friendly type also belongs to a ``TypeFamily`` which drives literal
formatting and row coercion.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from sqlsandbox.errors import UnsupportedTypeError


class FriendlyType(StrEnum):
    INTEGER = "INTEGER"
    INT = "INT"
    BIGINT = "BIGINT"
    SMALLINT = "SMALLINT"
    TEXT = "TEXT"
    STRING = "STRING"
    VARCHAR = "VARCHAR"
    CHAR = "CHAR"
    REAL = "REAL"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    BOOLEAN = "BOOLEAN"
    BOOL = "BOOL"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    DATETIME = "DATETIME"
    JSON = "JSON"
    JSONB = "JSONB"
    UUID = "UUID"


class TypeFamily(StrEnum):
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    TEXT = "text"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    JSON = "json"
    UUID = "uuid"


@dataclass(frozen=True)
class ResolvedType:
    """A friendly type resolved against the vocabulary.

    ``length`` is set for bounded text types, ``precision`` / ``scale`` for
    fixed-point types, ``bits`` for integer types.
    """

    friendly: str
    native: str
    family: TypeFamily
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    bits: int | None = None


_T = FriendlyType
_F = TypeFamily

_VOCABULARY: dict[FriendlyType, ResolvedType] = {
    _T.INTEGER: ResolvedType("INTEGER", "INTEGER", _F.INTEGER, bits=32),
    _T.INT: ResolvedType("INT", "INTEGER", _F.INTEGER, bits=32),
    _T.BIGINT: ResolvedType("BIGINT", "BIGINT", _F.INTEGER, bits=64),
    _T.SMALLINT: ResolvedType("SMALLINT", "SMALLINT", _F.INTEGER, bits=16),
    _T.TEXT: ResolvedType("TEXT", "TEXT", _F.TEXT),
    _T.STRING: ResolvedType("STRING", "TEXT", _F.TEXT),
    _T.VARCHAR: ResolvedType("VARCHAR", "VARCHAR(255)", _F.TEXT, length=255),
    _T.CHAR: ResolvedType("CHAR", "CHAR(50)", _F.TEXT, length=50),
    _T.REAL: ResolvedType("REAL", "REAL", _F.FLOAT),
    _T.FLOAT: ResolvedType("FLOAT", "REAL", _F.FLOAT),
    _T.DOUBLE: ResolvedType("DOUBLE", "DOUBLE PRECISION", _F.FLOAT),
    _T.DECIMAL: ResolvedType("DECIMAL", "DECIMAL(10,2)", _F.DECIMAL, precision=10, scale=2),
    _T.NUMERIC: ResolvedType("NUMERIC", "NUMERIC(10,2)", _F.DECIMAL, precision=10, scale=2),
    _T.BOOLEAN: ResolvedType("BOOLEAN", "BOOLEAN", _F.BOOLEAN),
    _T.BOOL: ResolvedType("BOOL", "BOOLEAN", _F.BOOLEAN),
    _T.DATE: ResolvedType("DATE", "DATE", _F.DATE),
    _T.TIME: ResolvedType("TIME", "TIME", _F.TIME),
    _T.TIMESTAMP: ResolvedType("TIMESTAMP", "TIMESTAMP", _F.TIMESTAMP),
    _T.DATETIME: ResolvedType("DATETIME", "TIMESTAMP", _F.TIMESTAMP),
    _T.JSON: ResolvedType("JSON", "JSON", _F.JSON),
    _T.JSONB: ResolvedType("JSONB", "JSONB", _F.JSON),
    _T.UUID: ResolvedType("UUID", "UUID", _F.UUID),
}

# PostgreSQL limits for parameterized types.
_MAX_VARCHAR_LENGTH = 10_485_760
_MAX_NUMERIC_PRECISION = 1000

_BOUNDED_TEXT_RE = re.compile(r"^(VARCHAR|CHAR)\((\d+)\)$")
_FIXED_POINT_RE = re.compile(r"^(DECIMAL|NUMERIC)\((\d+),(\d+)\)$")


def _normalise(type_name: str) -> str:
    """Upper-case, trim, and drop whitespace around/inside parentheses."""
    value = " ".join(type_name.strip().upper().split())
    return re.sub(r"\s*([(),])\s*", r"\1", value)


def _resolve_parameterized(name: str) -> ResolvedType | None:
    if m := _BOUNDED_TEXT_RE.match(name):
        length = int(m.group(2))
        if not 1 <= length <= _MAX_VARCHAR_LENGTH:
            return None
        return ResolvedType(name, name, TypeFamily.TEXT, length=length)

    if m := _FIXED_POINT_RE.match(name):
        precision, scale = int(m.group(2)), int(m.group(3))
        if not 1 <= precision <= _MAX_NUMERIC_PRECISION or scale > precision:
            return None
        return ResolvedType(name, name, TypeFamily.DECIMAL, precision=precision, scale=scale)

    return None


def resolve_type(friendly_type: str) -> ResolvedType:
    """Resolve a friendly type tag.  Raises ``UnsupportedTypeError``."""
    if not isinstance(friendly_type, str) or not friendly_type.strip():
        raise UnsupportedTypeError(_unsupported_message(friendly_type))

    name = _normalise(friendly_type)
    if name in FriendlyType.__members__:
        return _VOCABULARY[FriendlyType(name)]

    resolved = _resolve_parameterized(name)
    if resolved is None:
        raise UnsupportedTypeError(_unsupported_message(friendly_type))
    return resolved


def to_engine_type(friendly_type: str) -> str:
    """Return the native column type for DDL.  Raises ``UnsupportedTypeError``."""
    return resolve_type(friendly_type).native


def type_family(friendly_type: str) -> TypeFamily:
    return resolve_type(friendly_type).family


def is_supported(friendly_type: str) -> bool:
    """Non-raising validity check."""
    try:
        resolve_type(friendly_type)
    except UnsupportedTypeError:
        return False
    return True


def supported_types() -> list[str]:
    return [t.value for t in FriendlyType]


def _unsupported_message(friendly_type: object) -> str:
    return (
        f"Unsupported data type: {friendly_type}. "
        f"Supported types: {', '.join(supported_types())}, VARCHAR(n), CHAR(n), DECIMAL(p,s), NUMERIC(p,s)"
    )


# ---------------------------------------------------------------------------
# Reverse mapping
# ---------------------------------------------------------------------------

_NATIVE_TO_FRIENDLY: dict[str, str] = {
    "integer": "INTEGER",
    "int": "INTEGER",
    "int4": "INTEGER",
    "serial": "INTEGER",
    "bigint": "BIGINT",
    "int8": "BIGINT",
    "smallint": "SMALLINT",
    "int2": "SMALLINT",
    "text": "TEXT",
    "character varying": "VARCHAR",
    "varchar": "VARCHAR",
    "character": "CHAR",
    "char": "CHAR",
    "bpchar": "CHAR",
    "real": "REAL",
    "float4": "REAL",
    "double precision": "DOUBLE",
    "float8": "DOUBLE",
    "numeric": "DECIMAL",
    "decimal": "DECIMAL",
    "boolean": "BOOLEAN",
    "bool": "BOOLEAN",
    "date": "DATE",
    "time": "TIME",
    "time without time zone": "TIME",
    "timestamp": "TIMESTAMP",
    "timestamp without time zone": "TIMESTAMP",
    "timestamp with time zone": "TIMESTAMPTZ",
    "json": "JSON",
    "jsonb": "JSONB",
    "uuid": "UUID",
    "bytea": "BYTEA",
}

_NATIVE_BOUNDED_RE = re.compile(r"^(character varying|varchar|character|char|bpchar)\((\d+)\)$")
_NATIVE_FIXED_RE = re.compile(r"^(numeric|decimal)\((\d+),(\d+)\)$")


def from_engine_type(engine_type: str) -> str:
    """Map a native type name back to a friendly tag.

    Parameterized natives keep their parameters (``character varying(40)`` ->
    ``VARCHAR(40)``).  Unknown types are returned upper-cased.
    """
    name = _normalise(engine_type).lower()

    if name in _NATIVE_TO_FRIENDLY:
        return _NATIVE_TO_FRIENDLY[name]

    if m := _NATIVE_BOUNDED_RE.match(name):
        base = "VARCHAR" if m.group(1) in ("character varying", "varchar") else "CHAR"
        return f"{base}({m.group(2)})"

    if m := _NATIVE_FIXED_RE.match(name):
        return f"DECIMAL({m.group(2)},{m.group(3)})"

    return engine_type.strip().upper()


# ---------------------------------------------------------------------------
# UI helpers
# ---------------------------------------------------------------------------


def recommended_types() -> list[dict[str, str]]:
    """Types offered in the create-table dropdown."""
    return [
        {"value": "INTEGER", "label": "Integer", "description": "Whole numbers"},
        {"value": "BIGINT", "label": "Big Integer", "description": "Large whole numbers"},
        {"value": "TEXT", "label": "Text", "description": "Variable-length text"},
        {"value": "VARCHAR", "label": "Varchar(255)", "description": "Variable character with length"},
        {"value": "REAL", "label": "Real", "description": "Floating-point number"},
        {"value": "DECIMAL", "label": "Decimal(10,2)", "description": "Fixed-point number"},
        {"value": "BOOLEAN", "label": "Boolean", "description": "True/False"},
        {"value": "DATE", "label": "Date", "description": "Date (YYYY-MM-DD)"},
        {"value": "TIMESTAMP", "label": "Timestamp", "description": "Date and time"},
        {"value": "JSON", "label": "JSON", "description": "JSON data"},
    ]
