"""
litecolumn - typed, row-scoped column access for SQLite prepared statements.

A `Statement` steps through the rows of a query and hands out `Column` views
over the current row; views share the statement's handle, which is finalized
when its last holder lets go.
"""

__version__ = "0.1.0"
__author__ = "litecolumn Contributors"
__license__ = "GPL-2.0"

from litecolumn.core import (
    ColumnIndexError,
    ColumnNameError,
    ContractViolation,
    CoreError,
    NoRowError,
    SQLiteError,
    StatementError,
)
from litecolumn.core.coercion import ColumnType
from litecolumn.core.column import Column
from litecolumn.core.database import Database
from litecolumn.core.statement import Statement

__all__ = [
    "Column",
    "ColumnIndexError",
    "ColumnNameError",
    "ColumnType",
    "ContractViolation",
    "CoreError",
    "Database",
    "NoRowError",
    "SQLiteError",
    "Statement",
    "StatementError",
    "__version__",
]
