"""
DDL Generator for SQL Schemas.

Turns flattened table schemas into SQLAlchemy Core tables, and renders the
CREATE TABLE and INSERT statements used to load them.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, Column, Double, MetaData, String, Table
from sqlalchemy.engine import Dialect
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql.dml import Insert
from sqlalchemy.types import TypeEngine

from sqlonjson.ingest.schema_analyzer import Row, TableSchema
from sqlonjson.ingest.type_promotion import ColumnType
from sqlonjson.ingest.value_serializer import coerce_cell


class DDLGenerator:
    """
    Generates table definitions and statements for flattened JSON tables.

    Each generator owns its own MetaData, so one generator must be used per
    conversion.
    """

    def __init__(self, metadata: Optional[MetaData] = None):
        """
        Initialize DDL generator.

        Args:
            metadata: MetaData collection to register tables in (a private
                one is created when omitted)
        """
        self.metadata = metadata if metadata is not None else MetaData()

    @staticmethod
    def map_column_type(column_type: ColumnType) -> TypeEngine:
        """
        Map an inferred column type to a SQLAlchemy type.

        VARCHAR is declared without a length so large payloads fit.

        Args:
            column_type: Promoted column type

        Returns:
            SQLAlchemy type instance
        """
        type_mapping = {
            ColumnType.BIGINT: BigInteger,
            ColumnType.DOUBLE: Double,
            ColumnType.VARCHAR: String,
        }
        return type_mapping[column_type]()

    def build_table(self, schema: TableSchema) -> Table:
        """
        Build a SQLAlchemy table for a flattened table schema.

        Columns follow first-seen order and are all nullable.

        Args:
            schema: Finalized table schema

        Returns:
            Table registered in this generator's metadata
        """
        columns = [
            Column(
                column.name,
                self.map_column_type(column.column_type or ColumnType.VARCHAR),
                nullable=True,
            )
            for column in schema.columns.values()
        ]
        return Table(schema.name, self.metadata, *columns)

    def generate_table_ddl(
        self,
        table: Table,
        dialect: Optional[Dialect] = None
    ) -> str:
        """
        Render the CREATE TABLE statement for a table.

        Args:
            table: Table built by build_table
            dialect: Backend dialect (generic SQL when omitted)

        Returns:
            CREATE TABLE statement text
        """
        return str(CreateTable(table).compile(dialect=dialect)).strip()

    def generate_insert_statement(self, table: Table) -> Insert:
        """INSERT statement binding every column of the table."""
        return table.insert()

    def build_row_parameters(
        self,
        schema: TableSchema,
        rows: Optional[List[Row]] = None
    ) -> List[Dict[str, Any]]:
        """
        Build INSERT parameters for rows of a table.

        Columns missing from a row are bound as NULL and every present cell
        is coerced to the promoted type of its column.

        Args:
            schema: Finalized table schema
            rows: Rows to convert (all rows of the schema when omitted)

        Returns:
            One parameter dictionary per row, keyed by column name
        """
        if rows is None:
            rows = schema.rows

        column_types = {
            column.name: column.column_type or ColumnType.VARCHAR
            for column in schema.columns.values()
        }
        return [
            {
                name: coerce_cell(row.get(name), column_type)
                for name, column_type in column_types.items()
            }
            for row in rows
        ]
