"""
JSON Schema Analyzer and Flattener.

Scans a parsed JSON document, picks the top-level properties that hold a
non-empty array of objects, and turns each of them into a table schema: the
union of the element keys in first-seen order, one promoted type per column,
and one row per element.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlonjson.ingest.identifiers import sanitize_identifier
from sqlonjson.ingest.json_tree import JsonKind, JsonNode, JsonObject
from sqlonjson.ingest.type_promotion import ColumnType, TypePromoter
from sqlonjson.ingest.value_serializer import SerializedValue, serialize_value

logger = logging.getLogger(__name__)

Row = Dict[str, SerializedValue]


class ColumnSchema:
    """A table column and the statistics needed to type it."""

    def __init__(self, name: str, source_name: str):
        self.name = name
        self.source_names: List[str] = [source_name]
        self.column_type: Optional[ColumnType] = None
        self._promoter = TypePromoter()

    @property
    def occurrences(self) -> int:
        """Number of non-null values seen for this column."""
        return self._promoter.occurrences

    def add_source_name(self, source_name: str) -> None:
        if source_name not in self.source_names:
            self.source_names.append(source_name)

    def add_value(self, cell: Optional[SerializedValue]) -> None:
        self._promoter.observe_type(cell.column_type if cell else None)

    def finalize(self) -> ColumnType:
        self.column_type = self._promoter.result
        return self.column_type

    def __repr__(self) -> str:
        return f"ColumnSchema({self.name!r}, {self.column_type})"


class TableSchema:
    """
    Table derived from one top-level array-of-objects property.

    Rows only carry the columns present in their source element; a missing
    key or a null value is simply absent from the row.
    """

    def __init__(self, name: str, source_name: str):
        self.name = name
        self.source_names: List[str] = [source_name]
        self.columns: Dict[str, ColumnSchema] = {}
        self.rows: List[Row] = []
        self._identifiers: Dict[str, str] = {}

    def column_names(self) -> List[str]:
        return list(self.columns)

    def get_column(self, name: str) -> Optional[ColumnSchema]:
        return self.columns.get(name)

    def _column_for(self, raw_name: str) -> ColumnSchema:
        identifier = self._identifiers.get(raw_name)
        if identifier is None:
            identifier = sanitize_identifier(raw_name)
            self._identifiers[raw_name] = identifier

        column = self.columns.get(identifier)
        if column is None:
            column = ColumnSchema(identifier, raw_name)
            self.columns[identifier] = column
        else:
            column.add_source_name(raw_name)
        return column

    def add_row(self, element: JsonObject) -> Row:
        """
        Register the element's keys as columns and store its values.

        Args:
            element: One object of the source array

        Returns:
            The stored row
        """
        row: Row = {}
        for raw_name, value in element.items():
            column = self._column_for(raw_name)
            cell = serialize_value(value)
            column.add_value(cell)
            if cell is None:
                row.pop(column.name, None)
            else:
                row[column.name] = cell
        self.rows.append(row)
        return row

    def finalize(self) -> None:
        for column in self.columns.values():
            column.finalize()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source_names": list(self.source_names),
            "row_count": len(self.rows),
            "columns": [
                {
                    "name": column.name,
                    "type": column.column_type.value if column.column_type else None,
                    "source_names": list(column.source_names),
                    "occurrences": column.occurrences,
                }
                for column in self.columns.values()
            ],
        }

    def __repr__(self) -> str:
        return f"TableSchema({self.name!r}, columns={self.column_names()}, rows={len(self.rows)})"


def is_candidate_table(node: JsonNode) -> bool:
    """Check whether a top-level value is a non-empty array of objects."""
    if node.kind != JsonKind.ARRAY or len(node) == 0:
        return False
    return all(element.kind == JsonKind.OBJECT for element in node)


class JsonSchemaAnalyzer:
    """
    Flattener for a single JSON document.

    One analyzer instance holds the state of one conversion; it is not meant
    to be shared between conversions.
    """

    def __init__(self):
        self.tables: Dict[str, TableSchema] = {}
        self.skipped_properties: List[str] = []

    def analyze(self, document: JsonNode) -> List[TableSchema]:
        """
        Build table schemas for a document.

        Args:
            document: Root node of the parsed document

        Returns:
            Tables in the order their properties appear in the document;
            arrays whose objects are all empty produce no table

        Raises:
            IdentifierError: If a table or column name cannot be sanitized
        """
        if document.kind != JsonKind.OBJECT:
            logger.debug(
                f"Document root is {document.kind.value}, no tables produced")
            return []

        for raw_name, value in document.items():
            if not is_candidate_table(value):
                logger.debug(
                    f"Skipping top-level property {raw_name!r} ({value.kind.value})")
                self.skipped_properties.append(raw_name)
                continue

            table = self._table_for(raw_name)
            for element in value:
                table.add_row(element)

        for name, table in list(self.tables.items()):
            # Elements without keys give nothing to create a table from
            if not table.columns:
                logger.debug(
                    f"Skipping table {name!r}: its elements have no properties")
                self.skipped_properties.extend(table.source_names)
                del self.tables[name]
                continue
            table.finalize()

        return list(self.tables.values())

    def _table_for(self, raw_name: str) -> TableSchema:
        name = sanitize_identifier(raw_name)
        table = self.tables.get(name)
        if table is None:
            table = TableSchema(name, raw_name)
            self.tables[name] = table
        else:
            logger.debug(
                f"Property {raw_name!r} merges into existing table {name!r}")
            table.source_names.append(raw_name)
        return table

    def get_summary(self) -> Dict[str, Any]:
        return {
            "tables": [table.to_dict() for table in self.tables.values()],
            "skipped_properties": list(self.skipped_properties),
        }


def flatten_document(document: JsonNode) -> List[TableSchema]:
    """Convenience wrapper: analyze a document with a fresh analyzer."""
    return JsonSchemaAnalyzer().analyze(document)
