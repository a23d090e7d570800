"""
SQLite connection access layer.

Goals:
- Small and testable: open/close, one-shot SQL, statement factory.
- Connection defaults (timeout, read-only mode, pragmas) come from
  `litecolumn.config`.

This module knows nothing about column coercion; it only creates `Statement`
objects, which own the column/row logic.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from litecolumn.config import DatabaseConfig, get_database_config
from litecolumn.core import DatabaseNotOpenError, SQLiteError
from litecolumn.core.coercion import decode_text
from litecolumn.core.statement import Params, Statement

if TYPE_CHECKING:
    from litecolumn.core.column import Column

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class Database:
    """
    A single SQLite connection.

    Usage:
        db = Database("library.sqlite3")
        db.open()
        db.exec("CREATE TABLE IF NOT EXISTS tracks (id INTEGER PRIMARY KEY, title TEXT)")
        count = db.exec_and_get("SELECT count(*) FROM tracks").get_int()
        db.close()

    Notes:
    - Connections are not pooled, and no transactions are opened implicitly
      (`isolation_level=None`).
    - The connection may only be used from the thread that opened it.
    """

    def __init__(self, db_path: str | Path = MEMORY_PATH, config: DatabaseConfig | None = None) -> None:
        self._db_path = str(db_path)
        self._config = config if config is not None else get_database_config()
        self._conn: sqlite3.Connection | None = None

    def __repr__(self) -> str:
        return f"<Database {self._db_path!r} open={self.is_open}>"

    def __enter__(self) -> Database:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        return self._require_conn()

    def open(self) -> None:
        if self._conn is not None:
            return

        target = self._db_path
        uri = False
        if self._config.readonly and target != MEMORY_PATH:
            target = f"{Path(target).resolve().as_uri()}?mode=ro"
            uri = True

        try:
            conn = sqlite3.connect(
                target,
                timeout=self._config.timeout,
                isolation_level=None,
                check_same_thread=True,
                uri=uri,
            )
        except sqlite3.Error as e:
            raise SQLiteError.from_sqlite3(e) from e

        conn.text_factory = decode_text
        for pragma in self._config.pragma_statements():
            try:
                conn.execute(pragma)
            except sqlite3.Error as e:
                logger.warning("Ignoring failed pragma %r on %s: %s", pragma, self._db_path, e)

        self._conn = conn
        logger.debug("Opened database %s (readonly=%s)", self._db_path, self._config.readonly)

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("Closed database %s", self._db_path)

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseNotOpenError("Database is not open. Call db.open() first.")
        return self._conn

    # ===========================================================================
    # SQL
    # ===========================================================================

    def exec(self, sql: str) -> int:
        """
        Run one or more statements that return no rows.

        Returns the number of rows changed by them.
        """
        conn = self._require_conn()
        before = conn.total_changes
        try:
            conn.executescript(sql)
        except sqlite3.Error as e:
            raise SQLiteError.from_sqlite3(e) from e
        return conn.total_changes - before

    def statement(self, sql: str, params: Params = ()) -> Statement:
        return Statement(self, sql, params)

    def exec_and_get(self, sql: str, params: Params = ()) -> Column:
        """
        Run a query and return the first column of its first row.

        The returned view keeps the statement alive on its own; it stays
        valid after this call even though the statement itself is closed.
        """
        with Statement(self, sql, params) as stmt:
            stmt.execute_step()
            return stmt.get_column(0)

    def table_exists(self, table_name: str) -> bool:
        column = self.exec_and_get(
            "SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return column.get_int() == 1

    @property
    def last_insert_rowid(self) -> int:
        return self.exec_and_get("SELECT last_insert_rowid()").get_int64()

    @property
    def total_changes(self) -> int:
        return self._require_conn().total_changes
