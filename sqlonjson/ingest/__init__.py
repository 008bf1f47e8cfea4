"""
Ingest module for JSON flattening.

Provides the JSON tree model, identifier sanitization, type promotion,
schema flattening, DDL generation and loading.
"""

from sqlonjson.ingest.json_tree import (
    JsonKind,
    JsonNode,
    JsonObject,
    JsonArray,
    JsonString,
    JsonNumber,
    JsonBoolean,
    JsonNull,
    parse_json,
    from_python,
    to_compact_json,
)
from sqlonjson.ingest.identifiers import sanitize_identifier
from sqlonjson.ingest.type_promotion import (
    ColumnType,
    TypePromoter,
    infer_type,
    promote,
    promote_all,
)
from sqlonjson.ingest.value_serializer import SerializedValue, serialize_value, coerce_cell
from sqlonjson.ingest.schema_analyzer import (
    JsonSchemaAnalyzer,
    TableSchema,
    ColumnSchema,
    flatten_document,
)
from sqlonjson.ingest.ddl_generator import DDLGenerator
from sqlonjson.ingest.loader import JsonLoader, LoadResult

__all__ = [  # ruff: noqa: RUF022
    # Tree
    "JsonKind",
    "JsonNode",
    "JsonObject",
    "JsonArray",
    "JsonString",
    "JsonNumber",
    "JsonBoolean",
    "JsonNull",
    "parse_json",
    "from_python",
    "to_compact_json",
    # Identifiers and types
    "sanitize_identifier",
    "ColumnType",
    "TypePromoter",
    "infer_type",
    "promote",
    "promote_all",
    "SerializedValue",
    "serialize_value",
    "coerce_cell",
    # Flattening
    "JsonSchemaAnalyzer",
    "TableSchema",
    "ColumnSchema",
    "flatten_document",
    # Loading
    "DDLGenerator",
    "JsonLoader",
    "LoadResult",
]
