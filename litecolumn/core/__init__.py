"""
Core domain package.

This package contains the statement/column layer over SQLite: shared statement
handles, row-scoped column views, and the thin connection and statement
objects that drive them.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `litecolumn.core.column`). The error hierarchy
lives here so every module can raise it without import cycles.
"""

from __future__ import annotations

import sqlite3

__all__: list[str] = [
    "CoreError",
    "ContractViolation",
    "NoRowError",
    "ColumnIndexError",
    "ColumnNameError",
    "SQLiteError",
    "StatementError",
    "DatabaseNotOpenError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class ContractViolation(CoreError):
    """
    A caller precondition was not met.

    Raised before any cell is read, so no partial value is ever produced.
    The statement stays usable afterwards.
    """

    def __init__(self, precondition: str, message: str | None = None) -> None:
        self.precondition = precondition
        super().__init__(message or precondition)


class NoRowError(ContractViolation):
    """Raised when a column is requested while no row is current."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            "row_available",
            message or "No row to get a column from. execute_step() was not called, "
            "or returned False.",
        )


class ColumnIndexError(ContractViolation, IndexError):
    """Raised when a column index (or record width) exceeds the result shape."""

    def __init__(self, index: int, column_count: int) -> None:
        self.index = index
        self.column_count = column_count
        super().__init__(
            "index_in_range",
            f"Column index {index} out of range (statement has {column_count} columns)",
        )


class ColumnNameError(ContractViolation, KeyError):
    """Raised when a column name is not part of the result shape."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("known_column_name", f"Unknown column name {name!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class SQLiteError(CoreError):
    """
    Error reported by the SQLite engine.

    `errcode` is the (extended) result code and `errname` its symbolic name,
    when the `sqlite3` binding reports them.
    """

    def __init__(self, message: str, errcode: int | None = None, errname: str | None = None) -> None:
        self.errcode = errcode
        self.errname = errname
        super().__init__(message)

    @classmethod
    def from_sqlite3(cls, exc: sqlite3.Error) -> SQLiteError:
        """Translate a `sqlite3` exception, keeping its result code."""
        return cls(
            str(exc),
            errcode=getattr(exc, "sqlite_errorcode", None),
            errname=getattr(exc, "sqlite_errorname", None),
        )


class StatementError(SQLiteError):
    """Raised when the step protocol of a statement is misused."""


class DatabaseNotOpenError(CoreError):
    """Raised when a closed database is used."""
