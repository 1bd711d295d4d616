"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
Statements are written with ``:name`` / ``?`` placeholders and translated to
the driver's ``pyformat`` style (``%(name)s`` / ``%s``) when bound.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install record-spine[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~recordspine.core.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

import re
from typing import Any

from recordspine.core.errors import ConfigError, DatabaseConnectionError
from recordspine.core.protocols import Params

from .base import CursorStatement, DatabaseAdapter

# Group 1: quoted literal (placeholders inside are not rewritten), group 2: :name
_PLACEHOLDER = re.compile(
    r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`)|:(\w+)|\?|%"""
)


def translate_placeholders(sql: str) -> str:
    """
    Rewrite ``:name`` and ``?`` placeholders to pyformat.

    Literal ``%`` is doubled everywhere since the driver interpolates the
    whole statement text.

    Example:
        >>> translate_placeholders("SELECT * FROM t WHERE a = :w_a AND b LIKE '%:x%'")
        "SELECT * FROM t WHERE a = %(w_a)s AND b LIKE '%%:x%%'"
        >>> translate_placeholders("CALL `p`(?, ?)")
        'CALL `p`(%s, %s)'
    """

    def replace(match: re.Match[str]) -> str:
        literal, name = match.group(1), match.group(2)
        if literal is not None:
            return literal.replace("%", "%%")
        if name is not None:
            return f"%({name})s"
        if match.group(0) == "?":
            return "%s"
        return "%%"

    return _PLACEHOLDER.sub(replace, sql)


class MySQLStatement(CursorStatement):
    """Cursor statement with pyformat binding and multiple result sets."""

    _pending = False

    def bind_sql(self, sql: str) -> str:
        return translate_placeholders(sql)

    def execute(self, params: Params | None = None) -> None:
        self._pending = False
        super().execute(params)
        self._pending = True

    def next_row_set(self) -> bool:
        return bool(self._cursor.nextset())

    def close(self) -> None:
        # the driver refuses to close a cursor that still has unread rows
        while self._pending:
            if self._cursor.with_rows:
                self._cursor.fetchall()
            if not self._cursor.nextset():
                self._pending = False
        self._cursor.close()


def _import_driver() -> Any:
    try:
        import mysql.connector
    except ImportError:
        raise ConfigError(
            "mysql-connector-python is required for MySQL. "
            "Install with: pip install mysql-connector-python"
        ) from None
    return mysql.connector


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    Holds one autocommit ``mysql.connector`` connection. Unread result sets
    are consumed by the driver before the next statement runs.
    """

    statement_class = MySQLStatement

    @property
    def driver_errors(self) -> tuple[type[Exception], ...]:
        """``mysql.connector.Error``, available before the first connect."""
        return (_import_driver().Error,)

    def connect(self) -> None:
        """Open an autocommit ``mysql.connector`` session from the descriptor."""
        if self._conn is not None:
            return
        connector = _import_driver()

        kwargs: dict[str, Any] = {
            "host": self._config.host,
            "port": self._config.port,
            "database": self._config.database or None,
            "user": self._config.user,
            "password": self._config.password,
            "charset": self._config.charset,
            "connection_timeout": self._config.connect_timeout,
            "autocommit": True,
            "consume_results": True,
        }
        if self._config.unix_socket:
            kwargs["unix_socket"] = self._config.unix_socket

        try:
            self._conn = connector.connect(**kwargs)
        except connector.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e

    def error_code(self, exc: Exception) -> str | int | None:
        return getattr(exc, "errno", None) or getattr(exc, "sqlstate", None)

    def error_message(self, exc: Exception) -> str:
        return getattr(exc, "msg", None) or str(exc)


__all__ = [
    "MySQLAdapter",
    "MySQLStatement",
    "translate_placeholders",
]
