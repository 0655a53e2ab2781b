"""Workspace schema isolation: type mapping, compilation, reconciliation, extraction."""

from sqlsandbox.schema.compiler import compile_table, compile_tables, validate_definition
from sqlsandbox.schema.executor import classify_engine_error, execute
from sqlsandbox.schema.extractor import extract_workspace_state
from sqlsandbox.schema.identifiers import namespace_for, quote_identifier
from sqlsandbox.schema.reconciler import ensure_namespace, verify_and_sync
from sqlsandbox.schema.types import from_engine_type, resolve_type, supported_types, to_engine_type

__all__ = [
    "classify_engine_error",
    "compile_table",
    "compile_tables",
    "ensure_namespace",
    "execute",
    "extract_workspace_state",
    "from_engine_type",
    "namespace_for",
    "quote_identifier",
    "resolve_type",
    "supported_types",
    "to_engine_type",
    "validate_definition",
    "verify_and_sync",
]
