"""Tests for friendly <-> native type mapping."""

from __future__ import annotations

import pytest

from sqlsandbox.errors import UnsupportedTypeError
from sqlsandbox.schema.types import (
    FriendlyType,
    TypeFamily,
    from_engine_type,
    is_supported,
    resolve_type,
    supported_types,
    to_engine_type,
    type_family,
)

# Native spellings PostgreSQL reports in information_schema for each DDL type.
CATALOG_SPELLING = {
    "INTEGER": "integer",
    "BIGINT": "bigint",
    "SMALLINT": "smallint",
    "TEXT": "text",
    "VARCHAR(255)": "character varying(255)",
    "CHAR(50)": "character(50)",
    "REAL": "real",
    "DOUBLE PRECISION": "double precision",
    "DECIMAL(10,2)": "numeric(10,2)",
    "NUMERIC(10,2)": "numeric(10,2)",
    "BOOLEAN": "boolean",
    "DATE": "date",
    "TIME": "time without time zone",
    "TIMESTAMP": "timestamp without time zone",
    "JSON": "json",
    "JSONB": "jsonb",
    "UUID": "uuid",
}


@pytest.mark.parametrize("friendly", [t.value for t in FriendlyType])
def test_round_trip_is_stable(friendly: str) -> None:
    native = to_engine_type(friendly)
    back = from_engine_type(CATALOG_SPELLING[native])
    assert to_engine_type(back) in (native, native.replace("NUMERIC", "DECIMAL"))


@pytest.mark.parametrize("friendly", ["VARCHAR(40)", "CHAR(3)", "DECIMAL(12,4)", "NUMERIC(5,0)"])
def test_parameterized_round_trip(friendly: str) -> None:
    native = to_engine_type(friendly)
    assert native == friendly
    reported = {
        "VARCHAR(40)": "character varying(40)",
        "CHAR(3)": "character(3)",
        "DECIMAL(12,4)": "numeric(12,4)",
        "NUMERIC(5,0)": "numeric(5,0)",
    }[friendly]
    assert from_engine_type(reported) == friendly.replace("NUMERIC", "DECIMAL")


def test_vocabulary_is_case_insensitive() -> None:
    assert to_engine_type("integer") == "INTEGER"
    assert to_engine_type("  varchar ( 40 ) ") == "VARCHAR(40)"
    assert to_engine_type("decimal(12, 4)") == "DECIMAL(12,4)"
    assert to_engine_type("double") == "DOUBLE PRECISION"
    assert to_engine_type("datetime") == "TIMESTAMP"


@pytest.mark.parametrize("bad", ["MONEY", "VARCHAR(0)", "VARCHAR(abc)", "DECIMAL(2,5)", "DECIMAL(10)", "", "   "])
def test_unsupported_types_raise(bad: str) -> None:
    with pytest.raises(UnsupportedTypeError) as exc_info:
        to_engine_type(bad)
    assert "Supported types" in exc_info.value.message
    assert not is_supported(bad)


def test_unsupported_error_names_every_supported_type() -> None:
    with pytest.raises(UnsupportedTypeError) as exc_info:
        resolve_type("GEOMETRY")
    for name in supported_types():
        assert name in exc_info.value.message


@pytest.mark.parametrize("native", ["bytea", "inet", "tsvector", "integer[]", "USER-DEFINED", "weird thing(3)"])
def test_reverse_mapping_never_raises(native: str) -> None:
    result = from_engine_type(native)
    assert isinstance(result, str)
    assert result


def test_unknown_native_type_is_upper_cased() -> None:
    assert from_engine_type("tsvector") == "TSVECTOR"
    assert from_engine_type("bytea") == "BYTEA"


def test_resolved_parameters() -> None:
    varchar = resolve_type("VARCHAR(40)")
    assert varchar.family is TypeFamily.TEXT
    assert varchar.length == 40

    decimal = resolve_type("NUMERIC(12,4)")
    assert decimal.family is TypeFamily.DECIMAL
    assert (decimal.precision, decimal.scale) == (12, 4)

    assert resolve_type("SMALLINT").bits == 16
    assert type_family("JSONB") is TypeFamily.JSON
