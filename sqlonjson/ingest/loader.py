"""
Loader for flattened JSON tables.

Creates every table before inserting any row, all inside one transaction, so
a failure leaves no partially loaded tables behind.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy import Table
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateTable

from sqlonjson.common.exceptions import BackendError
from sqlonjson.common.metrics import (
    backend_statements_total,
    rows_loaded_total,
    tables_created_total,
)
from sqlonjson.ingest.ddl_generator import DDLGenerator
from sqlonjson.ingest.schema_analyzer import TableSchema

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of loading a set of tables."""
    tables_created: List[str] = field(default_factory=list)
    rows_inserted: Dict[str, int] = field(default_factory=dict)

    @property
    def total_rows(self) -> int:
        return sum(self.rows_inserted.values())


class JsonLoader:
    """
    Emits DDL and DML for flattened tables through a backend connection.

    Has no notion of relationships between tables; joining on naming
    conventions such as ``user_id`` is left to the caller's queries.
    """

    def __init__(
        self,
        connection: Connection,
        ddl_generator: Optional[DDLGenerator] = None
    ):
        """
        Initialize loader.

        Args:
            connection: Open connection to the target database
            ddl_generator: Generator holding the conversion's MetaData
        """
        self.connection = connection
        self.ddl_generator = ddl_generator or DDLGenerator()

    def load(self, tables: List[TableSchema]) -> LoadResult:
        """
        Create and populate tables.

        Args:
            tables: Finalized table schemas, in creation order

        Returns:
            LoadResult with created tables and inserted row counts

        Raises:
            BackendError: If the backend rejects any statement; the
                transaction is rolled back
        """
        result = LoadResult()
        if not tables:
            return result

        built: List[Tuple[TableSchema, Table]] = [
            (schema, self.ddl_generator.build_table(schema)) for schema in tables
        ]

        try:
            with self.connection.begin():
                for schema, table in built:
                    self._create_table(table)
                    result.tables_created.append(table.name)

                for schema, table in built:
                    result.rows_inserted[table.name] = self._insert_rows(
                        schema, table)
        except SQLAlchemyError as e:
            raise BackendError(f"Backend rejected statement: {e}") from e

        tables_created_total.inc(len(result.tables_created))
        rows_loaded_total.inc(result.total_rows)
        logger.info(
            f"Loaded {len(result.tables_created)} tables with "
            f"{result.total_rows} rows"
        )
        return result

    def _create_table(self, table: Table) -> None:
        ddl = self.ddl_generator.generate_table_ddl(
            table, self.connection.dialect)
        logger.debug(f"Executing DDL: {ddl}")
        try:
            self.connection.execute(CreateTable(table))
        except SQLAlchemyError as e:
            raise BackendError(
                f"Failed to create table: {getattr(e, 'orig', None) or e}",
                statement=ddl,
                table=table.name,
            ) from e
        backend_statements_total.labels(kind="ddl").inc()

    def _insert_rows(self, schema: TableSchema, table: Table) -> int:
        parameters = self.ddl_generator.build_row_parameters(schema)
        if not parameters:
            return 0

        statement = self.ddl_generator.generate_insert_statement(table)
        try:
            self.connection.execute(statement, parameters)
        except SQLAlchemyError as e:
            raise BackendError(
                f"Failed to insert rows: {getattr(e, 'orig', None) or e}",
                statement=str(statement.compile(dialect=self.connection.dialect)),
                table=table.name,
            ) from e
        backend_statements_total.labels(kind="dml").inc()
        return len(parameters)
