"""
SQL on JSON.

Loads the array-of-objects properties of a JSON document into a relational
database and hands back a live, queryable store.
"""

from sqlonjson.catalog.store import JsonStore
from sqlonjson.common.exceptions import (
    BackendError,
    IdentifierError,
    ParseError,
    SqlOnJsonError,
)
from sqlonjson.config.settings import DEFAULT_BACKEND, BackendDescriptor
from sqlonjson.converter import SqlOnJson, convert

__version__ = "0.1.0"

__all__ = [  # ruff: noqa: RUF022
    "SqlOnJson",
    "convert",
    "JsonStore",
    "BackendDescriptor",
    "DEFAULT_BACKEND",
    # Errors
    "SqlOnJsonError",
    "ParseError",
    "IdentifierError",
    "BackendError",
]
