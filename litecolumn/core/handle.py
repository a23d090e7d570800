"""
Shared ownership of a compiled statement.

A `StatementHandle` wraps the native resource (a `sqlite3.Cursor`) together
with the row the statement currently points at. The `Statement` that created
it and every `Column` built from it hold a share; the cursor is closed when the
last share is released, and only then.

Design notes:
- Reference counting is explicit and unsynchronized. A handle and all views
  over it belong to one thread (`sqlite3` enforces this on its side too).
- The raw accessors do no bounds or row checks. `Statement` validates indices
  and row state before it hands out a `Column`; reading outside that contract
  is the caller's bug.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Final

from litecolumn.core import coercion
from litecolumn.core.coercion import CellValue, ColumnType

logger = logging.getLogger(__name__)

# `sqlite3` does not expose sqlite3_column_origin_name(), whatever the
# SQLITE_ENABLE_COLUMN_METADATA setting of the linked library.
HAS_COLUMN_METADATA: Final[bool] = False


class StatementHandle:
    """
    Reference-counted owner of a `sqlite3` cursor and its current row.

    Usage:
        handle = StatementHandle(cursor, sql)   # ref_count == 1
        other = handle.share()                  # ref_count == 2
        other.release()
        handle.release()                        # cursor closed here
    """

    __slots__ = ("_cursor", "_sql", "_row", "_ref_count", "_finalized")

    def __init__(self, cursor: sqlite3.Cursor, sql: str) -> None:
        self._cursor = cursor
        self._sql = sql
        self._row: tuple[Any, ...] | None = None
        self._ref_count = 1
        self._finalized = False

    def __repr__(self) -> str:
        state = "finalized" if self._finalized else f"refs={self._ref_count}"
        return f"<StatementHandle {self._sql!r} {state}>"

    # ===========================================================================
    # Ownership
    # ===========================================================================

    @property
    def ref_count(self) -> int:
        return self._ref_count

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    @property
    def cursor(self) -> sqlite3.Cursor:
        return self._cursor

    @property
    def sql(self) -> str:
        return self._sql

    def share(self) -> StatementHandle:
        """Take one more share of the handle and return it."""
        self._ref_count += 1
        return self

    def release(self) -> None:
        """
        Give one share back; closes the cursor when none is left.

        Extra releases after finalization are ignored, so destruction paths
        may call this without tracking whether an explicit release happened.
        """
        if self._finalized:
            logger.debug("Ignoring release of finalized statement %r", self._sql)
            return
        self._ref_count -= 1
        if self._ref_count <= 0:
            self._finalize()

    def _finalize(self) -> None:
        self._ref_count = 0
        self._finalized = True
        self._row = None
        logger.debug("Finalizing statement %r", self._sql)
        try:
            self._cursor.close()
        except sqlite3.ProgrammingError as e:
            # Collected on a foreign thread; the connection frees the statement.
            logger.debug("Cursor already unusable while finalizing: %s", e)

    # ===========================================================================
    # Row state (driven by the stepping collaborator)
    # ===========================================================================

    @property
    def has_row(self) -> bool:
        return self._row is not None

    @property
    def row(self) -> tuple[Any, ...] | None:
        return self._row

    def set_row(self, row: tuple[Any, ...] | None) -> None:
        self._row = row

    def clear_row(self) -> None:
        self._row = None

    # ===========================================================================
    # Result shape
    # ===========================================================================

    @property
    def column_count(self) -> int:
        """Number of result columns (0 until started, and for statements without rows)."""
        description = self._cursor.description
        return 0 if description is None else len(description)

    def column_names(self) -> tuple[str, ...]:
        description = self._cursor.description
        if description is None:
            return ()
        return tuple(entry[0] for entry in description)

    def column_name(self, index: int) -> str:
        """Name of a result column, as aliased in the query."""
        return self._cursor.description[index][0]

    # ===========================================================================
    # Raw cell access (no checks)
    # ===========================================================================

    def _cell(self, index: int) -> CellValue:
        return self._row[index]  # type: ignore[index]

    def raw_type(self, index: int) -> ColumnType:
        return coercion.storage_class(self._cell(index))

    def raw_int(self, index: int) -> int:
        return coercion.to_int32(self._cell(index))

    def raw_int64(self, index: int) -> int:
        return coercion.to_int64(self._cell(index))

    def raw_double(self, index: int) -> float:
        return coercion.to_double(self._cell(index))

    def raw_text(self, index: int) -> str | None:
        return coercion.to_text(self._cell(index))

    def raw_blob(self, index: int) -> bytes | None:
        return coercion.to_blob(self._cell(index))

    def raw_bytes(self, index: int) -> int:
        return coercion.byte_length(self._cell(index))
