"""
Protocol definitions for the underlying driver.

The statement executor depends only on these shapes, never on sqlite3 or
mysql.connector directly. Adapters in :mod:`recordspine.core.adapters`
satisfy them for real drivers; tests satisfy them with scripted fakes.

Architecture:
    ::

        StatementDriver.prepare(sql) -> Statement
            Statement.execute(params)        bind + run (None: no binding)
            Statement.fetch_all()            rows of the current result set
            Statement.next_row_set()         advance; False when exhausted
            Statement.rows_affected()        driver count (may be -1)
            Statement.last_insert_id()       driver id (may be None / str)
            Statement.close()

Tags:
    protocols, driver, statement, record-spine
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from recordspine.core.dialect import Dialect

Params = Mapping[str, Any] | Sequence[Any]


@runtime_checkable
class Statement(Protocol):
    """A prepared statement bound to one live driver handle."""

    def execute(self, params: Params | None = None) -> None:
        ...

    def fetch_all(self) -> list[dict[str, Any]]:
        ...

    def next_row_set(self) -> bool:
        ...

    def rows_affected(self) -> int:
        ...

    def last_insert_id(self) -> int | str | None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class StatementDriver(Protocol):
    """What the executor needs from an adapter."""

    @property
    def driver(self) -> str:
        """Driver identifier (``'mysql'``, ``'sqlite'``)."""
        ...

    @property
    def dialect(self) -> Dialect:
        ...

    @property
    def driver_errors(self) -> tuple[type[Exception], ...]:
        """Exception types that represent a driver execution failure."""
        ...

    def prepare(self, sql: str) -> Statement:
        ...

    def error_code(self, exc: Exception) -> str | int | None:
        """Native error code of a driver failure."""
        ...

    def error_message(self, exc: Exception) -> str:
        """Native error message of a driver failure."""
        ...


__all__ = [
    "Params",
    "Statement",
    "StatementDriver",
]
