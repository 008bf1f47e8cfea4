"""
Queryable handle over a populated backend session.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine, Result
from sqlalchemy.exc import SQLAlchemyError

from sqlonjson.catalog.database import check_database_connection
from sqlonjson.common.exceptions import BackendError
from sqlonjson.ingest.schema_analyzer import TableSchema

logger = logging.getLogger(__name__)


class JsonStore:
    """
    Live, queryable result of a conversion.

    Owns its engine and connection. Release it with close(), or use it as a
    context manager:

        with SqlOnJson().convert('{"users": [{"id": 1}]}') as store:
            store.query("SELECT * FROM users")
    """

    def __init__(
        self,
        engine: Engine,
        connection: Connection,
        tables: Optional[List[TableSchema]] = None
    ):
        self._engine = engine
        self._connection = connection
        self.tables: List[TableSchema] = list(tables or [])
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine(self) -> Engine:
        self._ensure_open()
        return self._engine

    @property
    def connection(self) -> Connection:
        self._ensure_open()
        return self._connection

    def _ensure_open(self) -> None:
        if self._closed:
            raise BackendError("Store is closed")

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Result:
        """
        Execute a textual SQL statement.

        Args:
            sql: SQL text, with :name placeholders for params
            params: Bound parameter values

        Returns:
            SQLAlchemy result

        Raises:
            BackendError: If the backend rejects the statement
        """
        try:
            return self.connection.execute(text(sql), params or {})
        except SQLAlchemyError as e:
            raise BackendError(f"Query failed: {e}", statement=sql) from e

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Execute a query and return its rows as dictionaries."""
        return [dict(row) for row in self.execute(sql, params).mappings()]

    def table_names(self) -> List[str]:
        """Names of the tables present in the backend."""
        return inspect(self.connection).get_table_names()

    def has_table(self, name: str) -> bool:
        return inspect(self.connection).has_table(name)

    def column_types(self, table_name: str) -> Dict[str, str]:
        """
        Declared column types of a table, as reported by the backend.

        Returns:
            Mapping of column name to upper-case type name, in column order
        """
        try:
            columns = inspect(self.connection).get_columns(table_name)
        except SQLAlchemyError as e:
            raise BackendError(
                f"Cannot inspect table: {e}", table=table_name) from e
        return {
            column["name"]: str(column["type"]).upper()
            for column in columns
        }

    def is_alive(self) -> bool:
        return not self._closed and check_database_connection(self._connection)

    def close(self) -> None:
        """Release the connection and dispose of the engine. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            self._connection.close()
        finally:
            self._engine.dispose()
        logger.debug("Store closed")

    def __enter__(self) -> "JsonStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"JsonStore({[t.name for t in self.tables]}, {state})"
