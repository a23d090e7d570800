"""
Prepared statement stepping.

`Statement` is the object application code talks to: it runs the SQL, steps
through the result rows, and hands out `Column` views over the current row.
Every precondition (a row is current, the index or name exists, a record is
not wider than the result) is checked here, once, before any cell is read.

Usage:
    with db.statement("SELECT id, title FROM tracks WHERE year > ?", (2000,)) as stmt:
        while stmt.execute_step():
            track_id = stmt.get_column(0).get_int64()
            title = stmt.get_column("title").get_text()

The statement is compiled and started by the first `execute_step()` (or
`exec()`); parameters are handed to `sqlite3` as-is.
"""

from __future__ import annotations

import logging
import sqlite3
import weakref
from typing import TYPE_CHECKING, Any, Callable, Mapping, Sequence, TypeVar

from litecolumn.core import ColumnIndexError, ColumnNameError, NoRowError, SQLiteError, StatementError
from litecolumn.core.coercion import ColumnType
from litecolumn.core.column import Column, build_record
from litecolumn.core.handle import StatementHandle

if TYPE_CHECKING:
    from litecolumn.core.database import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Sequence[Any] | Mapping[str, Any]


class Statement:
    """
    A single SQL statement and its row position.

    Notes:
    - The statement owns one share of its `StatementHandle`; each `Column`
      owns another. Closing the statement does not invalidate views already
      handed out for the current row.
    - Not thread-safe; keep a statement and its views on one thread.
    """

    def __init__(self, db: Database, sql: str, params: Params = ()) -> None:
        conn = db.connection
        self._sql = sql
        self._params = params
        self._handle = StatementHandle(conn.cursor(), sql)
        self._release = weakref.finalize(self, self._handle.release)
        self._started = False
        self._done = False
        self._column_indices: dict[str, int] | None = None

    def __repr__(self) -> str:
        return f"<Statement {self._sql!r}>"

    def __enter__(self) -> Statement:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def handle(self) -> StatementHandle:
        return self._handle

    @property
    def closed(self) -> bool:
        return not self._release.alive

    def close(self) -> None:
        """Release the statement's share of the handle (idempotent)."""
        self._release()

    # ===========================================================================
    # Stepping
    # ===========================================================================

    @property
    def has_row(self) -> bool:
        return self._handle.has_row

    @property
    def is_done(self) -> bool:
        return self._done

    def execute_step(self) -> bool:
        """
        Advance to the next row.

        Returns True while a row is available, False once the statement has
        run to completion. Stepping a completed statement requires `reset()`.
        """
        return self._step()

    def exec(self) -> int:
        """
        Run a statement that returns no rows; return the number of changed rows.

        Raises StatementError if the statement produces a row; use
        `execute_step()` for queries.
        """
        if self._step():
            raise StatementError("exec() does not expect results. Use execute_step().")
        return max(self._handle.cursor.rowcount, 0)

    def reset(self, params: Params | None = None) -> None:
        """Rewind so the next step runs the statement again, optionally with new parameters."""
        self._require_open()
        logger.debug("Resetting statement %r", self._sql)
        self._handle.clear_row()
        self._started = False
        self._done = False
        if params is not None:
            self._params = params

    def _step(self) -> bool:
        self._require_open()
        if self._done:
            raise StatementError("Statement needs to be reset.")

        cursor = self._handle.cursor
        try:
            if not self._started:
                logger.debug("Executing statement %r", self._sql)
                cursor.execute(self._sql, self._params)
                self._started = True
            row = cursor.fetchone()
        except sqlite3.Error as e:
            self._handle.clear_row()
            raise SQLiteError.from_sqlite3(e) from e

        if row is None:
            self._handle.clear_row()
            self._done = True
            return False
        self._handle.set_row(row)
        return True

    def _require_open(self) -> None:
        if self.closed:
            raise StatementError(f"Statement {self._sql!r} is closed.")

    # ===========================================================================
    # Result shape
    # ===========================================================================

    @property
    def column_count(self) -> int:
        return self._handle.column_count

    def get_column_name(self, index: int) -> str:
        self._check_index(index)
        return self._handle.column_name(index)

    def get_column_index(self, name: str) -> int:
        """Index of a result column by name; the first column wins on duplicates."""
        if self._column_indices is None:
            names = self._handle.column_names()
            if not names:
                raise ColumnNameError(name)
            indices: dict[str, int] = {}
            for index, column_name in enumerate(names):
                indices.setdefault(column_name, index)
            self._column_indices = indices

        try:
            return self._column_indices[name]
        except KeyError:
            raise ColumnNameError(name) from None

    # ===========================================================================
    # Column access
    # ===========================================================================

    def get_column(self, key: int | str) -> Column:
        """
        View of one cell of the current row, by index or by name.

        The view must not be used after the next `execute_step()` or `reset()`.
        """
        self._check_row()
        index = self.get_column_index(key) if isinstance(key, str) else key
        self._check_index(index)
        return Column(self._handle, index)

    __getitem__ = get_column

    def is_column_null(self, key: int | str) -> bool:
        self._check_row()
        index = self.get_column_index(key) if isinstance(key, str) else key
        self._check_index(index)
        return self._handle.raw_type(index) is ColumnType.NULL

    def get_columns(self, record_type: Callable[..., T], count: int) -> T:
        """
        Build a record from the first `count` columns of the current row.

        Example:
            @dataclass
            class Track:
                id: int
                title: str | None

            track = stmt.get_columns(Track, 2)

        A `count` of 0 calls `record_type()` with no arguments.

        Raises NoRowError / ColumnIndexError before any column is read, and
        ValueError for a negative `count`.
        """
        if count < 0:
            raise ValueError(f"Record width must not be negative, got {count}")
        self._check_row()
        if count > self._handle.column_count:
            raise ColumnIndexError(count - 1, self._handle.column_count)
        return build_record(record_type, self._handle, count)

    def _check_row(self) -> None:
        if not self._handle.has_row:
            raise NoRowError()

    def _check_index(self, index: int) -> None:
        count = self._handle.column_count
        if index < 0 or index >= count:
            raise ColumnIndexError(index, count)
