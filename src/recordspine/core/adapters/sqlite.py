"""SQLite adapter over the standard-library ``sqlite3`` driver."""

from __future__ import annotations

import re
import sqlite3
from typing import Any

from recordspine.core.errors import DatabaseConnectionError
from recordspine.core.protocols import Params

from .base import CursorStatement, DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


# INSERT / REPLACE without an upsert clause always creates the row it changed
_PLAIN_INSERT = re.compile(r"^\s*(?:INSERT|REPLACE)\b(?![\s\S]*\bON\s+CONFLICT\b)", re.IGNORECASE)


class SQLiteStatement(CursorStatement):
    """
    Cursor statement reporting only rowids its own statement inserted.

    ``cursor.lastrowid`` mirrors the connection-wide ``last_insert_rowid()``,
    which keeps its value across ignored inserts, upserts that update and
    every UPDATE or DELETE. The value is compared before and after execution
    together with ``total_changes``.
    """

    def __init__(self, cursor: Any, sql: str):
        super().__init__(cursor, sql)
        self._inserted_id: int | None = None

    def execute(self, params: Params | None = None) -> None:
        conn = self._cursor.connection
        before = _last_rowid(conn)
        changes = conn.total_changes
        super().execute(params)

        self._inserted_id = None
        if conn.total_changes == changes:
            return
        after = _last_rowid(conn)
        if after != before or _PLAIN_INSERT.match(self.sql):
            self._inserted_id = after

    def last_insert_id(self) -> int | None:
        return self._inserted_id


def _last_rowid(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT last_insert_rowid()").fetchone()[0]


class SQLiteAdapter(DatabaseAdapter):
    """
    One autocommit ``sqlite3`` connection per engine instance.

    Uses the built-in sqlite3 module in autocommit mode. Named
    (``:name``) and positional (``?``) parameters bind natively.
    """

    statement_class = SQLiteStatement

    def __init__(self, config: DatabaseConfig | None = None, *, timeout: float = 5.0):
        super().__init__(config or DatabaseConfig(driver=DatabaseType.SQLITE.value, path=":memory:"))
        self._timeout = timeout

    @property
    def driver_errors(self) -> tuple[type[Exception], ...]:
        return (sqlite3.Error,)

    def connect(self) -> None:
        """Open the database file (or ``:memory:``) with foreign keys enforced."""
        if self._conn is not None:
            return

        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                isolation_level=None,
                uri=uri,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Cannot open SQLite database {path!r}: {e}",
                cause=e,
            ) from e
        self._conn = conn

    def error_code(self, exc: Exception) -> str | int | None:
        return getattr(exc, "sqlite_errorname", None) or type(exc).__name__


__all__ = [
    "SQLiteAdapter",
    "SQLiteStatement",
]
