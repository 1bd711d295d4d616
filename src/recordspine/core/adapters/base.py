"""Database adapter base class.

Manifesto:
    An adapter owns exactly one live driver handle and turns SQL text into
    prepared :class:`~recordspine.core.protocols.Statement` objects. The
    executor never touches the driver module itself.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``driver_errors``
    - ``prepare()`` over a DB-API cursor via :class:`CursorStatement`
    - Property-based dialect and connection-state introspection
    - Context-manager protocol for connection lifecycle

Tags:
    record-spine, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from recordspine.core.dialect import Dialect, get_dialect
from recordspine.core.protocols import Params, Statement

from .types import DatabaseConfig


class CursorStatement:
    """
    :class:`Statement` over a DB-API 2.0 cursor.

    Rows come back as dicts keyed by ``cursor.description`` names, whatever
    row type the driver produces.
    """

    def __init__(self, cursor: Any, sql: str):
        self._cursor = cursor
        self.sql = sql

    def bind_sql(self, sql: str) -> str:
        """SQL text to send when parameters are bound (driver paramstyle)."""
        return sql

    def execute(self, params: Params | None = None) -> None:
        if params:
            self._cursor.execute(self.bind_sql(self.sql), params)
        else:
            self._cursor.execute(self.sql)

    def fetch_all(self) -> list[dict[str, Any]]:
        if self._cursor.description is None:
            return []
        columns = [desc[0] for desc in self._cursor.description]
        return [dict(zip(columns, row, strict=False)) for row in self._cursor.fetchall()]

    def next_row_set(self) -> bool:
        return False

    def rows_affected(self) -> int:
        return self._cursor.rowcount

    def last_insert_id(self) -> int | str | None:
        return self._cursor.lastrowid

    def close(self) -> None:
        self._cursor.close()


class DatabaseAdapter(ABC):
    """
    One driver handle plus the statement factory the executor runs on.

    Subclasses open the handle in ``connect()`` and name the driver
    exceptions that count as statement failures.
    """

    statement_class: type[CursorStatement] = CursorStatement

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._conn: Any = None
        self._dialect: Dialect = get_dialect(config.driver)

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def driver(self) -> str:
        return self._config.driver

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's driver."""
        return self._dialect

    @property
    def is_connected(self) -> bool:
        """Whether adapter holds a live handle."""
        return self._conn is not None

    @property
    @abstractmethod
    def driver_errors(self) -> tuple[type[Exception], ...]:
        """Exception types raised by the driver for a failed statement."""
        ...

    @abstractmethod
    def connect(self) -> None:
        """Open the driver handle (autocommit)."""
        ...

    def disconnect(self) -> None:
        """Close the driver handle."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get_connection(self) -> Any:
        """Live driver handle, connecting on first use."""
        if self._conn is None:
            self.connect()
        return self._conn

    def prepare(self, sql: str) -> Statement:
        """Prepare ``sql`` on a fresh cursor."""
        return self.statement_class(self.get_connection().cursor(), sql)

    def error_code(self, exc: Exception) -> str | int | None:
        return getattr(exc, "errno", None)

    def error_message(self, exc: Exception) -> str:
        return str(exc)

    def __enter__(self) -> DatabaseAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._config.name!r}, driver={self.driver!r})"


__all__ = [
    "CursorStatement",
    "DatabaseAdapter",
]
