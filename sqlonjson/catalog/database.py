"""
Database connection management.

Creates one engine per conversion from a backend descriptor. Nothing here is
module-level state: two conversions never share an engine or a connection.
"""

import logging
from typing import Tuple

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from sqlonjson.common.exceptions import BackendError
from sqlonjson.config.settings import BackendDescriptor

logger = logging.getLogger(__name__)


def _enable_sqlite_transactions(engine: Engine) -> None:
    """
    Let SQLAlchemy control BEGIN for pysqlite.

    pysqlite does not open a transaction before DDL on its own, which would
    leave CREATE TABLE statements committed after a rollback.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_backend_engine(descriptor: BackendDescriptor) -> Engine:
    """
    Create a database engine for a backend descriptor.

    An in-memory SQLite database lives only as long as its connection, so it
    is served by a single static connection that may be used from any thread.

    Args:
        descriptor: Backend to connect to

    Returns:
        New engine owned by the caller

    Raises:
        BackendError: If the URL or driver is invalid
    """
    try:
        url = descriptor.sqlalchemy_url()
        if descriptor.is_in_memory_sqlite:
            engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=descriptor.echo,
            )
        else:
            engine = create_engine(
                url,
                pool_pre_ping=True,
                echo=descriptor.echo,
            )
    except (SQLAlchemyError, ValueError, ImportError) as e:
        raise BackendError(f"Cannot create engine for {descriptor!r}: {e}") from e

    if url.get_backend_name() == "sqlite":
        _enable_sqlite_transactions(engine)

    return engine


def open_session(descriptor: BackendDescriptor) -> Tuple[Engine, Connection]:
    """
    Open a connection to a fresh engine.

    Args:
        descriptor: Backend to connect to

    Returns:
        (engine, connection) tuple; the caller must close both

    Raises:
        BackendError: If the connection cannot be established
    """
    engine = create_backend_engine(descriptor)
    try:
        connection = engine.connect()
    except SQLAlchemyError as e:
        engine.dispose()
        raise BackendError(f"Cannot connect to {descriptor!r}: {e}") from e

    logger.debug(f"Opened session on {engine.url.render_as_string(hide_password=True)}")
    return engine, connection


def check_database_connection(connection: Connection) -> bool:
    """
    Check if a connection is healthy.

    Returns:
        True if a trivial query succeeds, False otherwise
    """
    try:
        connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
