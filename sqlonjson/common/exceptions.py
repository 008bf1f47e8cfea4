"""
Exceptions raised while converting JSON documents into a relational store.

Every error aborts the whole conversion. Type conflicts between rows are not
errors: they are always resolved by type promotion.
"""

from typing import Optional


class SqlOnJsonError(Exception):
    """Base exception for all conversion errors."""
    pass


class ParseError(SqlOnJsonError):
    """Exception raised when the input is not valid JSON."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None
    ):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class IdentifierError(SqlOnJsonError):
    """Exception raised when a property name has no usable SQL identifier."""

    def __init__(self, raw_name: str, reason: str = "no usable characters"):
        self.raw_name = raw_name
        super().__init__(
            f"Cannot derive SQL identifier from {raw_name!r}: {reason}")


class BackendError(SqlOnJsonError):
    """Exception raised when the backing database rejects an operation."""

    def __init__(
        self,
        message: str,
        statement: Optional[str] = None,
        table: Optional[str] = None
    ):
        self.statement = statement
        self.table = table
        details = []
        if table:
            details.append(f"table={table}")
        if statement:
            details.append(f"statement={statement.strip()}")
        if details:
            message = f"{message} [{', '.join(details)}]"
        super().__init__(message)
