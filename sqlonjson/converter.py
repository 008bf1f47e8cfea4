"""
Entry point: convert JSON documents into queryable relational stores.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from sqlonjson.catalog.database import open_session
from sqlonjson.catalog.store import JsonStore
from sqlonjson.common.logging_config import (
    PerformanceTracker,
    clear_conversion_id,
    get_structured_logger,
    set_conversion_id,
)
from sqlonjson.common.metrics import track_conversion
from sqlonjson.config.settings import (
    DEFAULT_BACKEND,
    BackendDescriptor,
    Settings,
    get_settings,
)
from sqlonjson.ingest.ddl_generator import DDLGenerator
from sqlonjson.ingest.json_tree import JsonNode, from_python, parse_json
from sqlonjson.ingest.loader import JsonLoader
from sqlonjson.ingest.schema_analyzer import JsonSchemaAnalyzer, TableSchema

logger = logging.getLogger(__name__)
structured_logger = get_structured_logger(__name__)


class SqlOnJson:
    """
    Converts JSON documents into relational stores.

    Every top-level property holding a non-empty array of objects becomes a
    table. Each conversion opens its own backend session, so one converter
    can serve any number of concurrent conversions.
    """

    def __init__(self, backend: BackendDescriptor = DEFAULT_BACKEND):
        """
        Initialize converter.

        Args:
            backend: Database to load into (in-memory SQLite by default)
        """
        self.backend = backend

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SqlOnJson":
        """Build a converter for the backend configured in the environment."""
        settings = settings or get_settings()
        return cls(settings.backend_descriptor())

    def convert(self, text: str) -> JsonStore:
        """
        Convert JSON text. Blank text is the empty document.

        Raises:
            ParseError: If the text is not valid JSON
            IdentifierError: If a property name cannot become an identifier
            BackendError: If the backend rejects a statement
        """
        with PerformanceTracker("parse", logger, logging.DEBUG, chars=len(text or "")):
            document = parse_json(text)
        return self.convert_tree(document)

    def convert_data(self, data: Any) -> JsonStore:
        """Convert already decoded Python data (dicts, lists, scalars)."""
        return self.convert_tree(from_python(data))

    def convert_file(self, path: Union[str, Path], encoding: str = "utf-8") -> JsonStore:
        """Convert the JSON document stored in a file."""
        return self.convert(Path(path).read_text(encoding=encoding))

    @track_conversion
    def convert_tree(self, document: JsonNode) -> JsonStore:
        """
        Convert a parsed document into a populated store.

        Schema building happens before any backend interaction; a failure
        while loading closes the session before the error propagates.

        Args:
            document: Root node of the document

        Returns:
            Open JsonStore; the caller is responsible for closing it
        """
        conversion_id = set_conversion_id()
        try:
            with PerformanceTracker("flatten", logger, logging.DEBUG):
                tables = self.build_schema(document)

            with PerformanceTracker("load", logger, tables=len(tables)):
                engine, connection = open_session(self.backend)
                store = JsonStore(engine, connection, tables)
                try:
                    result = JsonLoader(connection, DDLGenerator()).load(tables)
                except Exception:
                    store.close()
                    raise

            structured_logger.info(
                "Conversion completed",
                tables=len(result.tables_created),
                rows=result.total_rows,
            )
            logger.debug(f"Conversion {conversion_id} produced {store!r}")
            return store
        finally:
            clear_conversion_id()

    @staticmethod
    def build_schema(document: JsonNode) -> List[TableSchema]:
        """Flatten a document into table schemas without touching a backend."""
        return JsonSchemaAnalyzer().analyze(document)


def convert(text: str, backend: BackendDescriptor = DEFAULT_BACKEND) -> JsonStore:
    """Convert JSON text with a one-off converter."""
    return SqlOnJson(backend).convert(text)
