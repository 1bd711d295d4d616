"""SQL dialect resolution for record-spine.

Record operations are dialect-agnostic except for three things: the
insert-ignore modifier, the upsert clause and schema introspection. Each
supported backend implements the :class:`Dialect` protocol for those; a
driver the engine does not know resolves to :class:`UnsupportedDialect`,
which fails every dialect-specific call with ``UnsupportedOperationError``.

Plain SELECT / UPDATE / DELETE never consult the dialect beyond its
identifier quote character.

Manifesto:
    - **Closed set of variants:** MySQL, SQLite, Unsupported
    - **Fail at the call site:** capability errors are raised only by the
      operation that needs dialect syntax
    - **Stateless:** dialects are pre-instantiated singletons

Architecture::

    ┌───────────────┬──────────────────────┬────────────────────────────────┐
    │ Dialect       │ ignore_modifier()    │ upsert_clause()                │
    ├───────────────┼──────────────────────┼────────────────────────────────┤
    │ MySQL         │ IGNORE               │ AS new ON DUPLICATE KEY UPDATE │
    │ SQLite        │ OR IGNORE            │ ON CONFLICT(key) DO UPDATE SET │
    │ Unsupported   │ raises               │ raises                         │
    └───────────────┴──────────────────────┴────────────────────────────────┘

Examples:
    >>> d = get_dialect("sqlite")
    >>> d.ignore_modifier()
    'OR IGNORE'
    >>> d.upsert_clause(["`Email` = :u_Email"], "Name")
    'ON CONFLICT(`Name`) DO UPDATE SET `Email` = :u_Email'
    >>> get_dialect("oracle").name
    'oracle'

Tags:
    dialect, sql, upsert, insert-ignore, schema, record-spine

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from recordspine.core.errors import MissingKeyError, UnsupportedOperationError
from recordspine.core.identifiers import clean_name


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """One column of a table, in ordinal order."""

    name: str
    type: str
    nullable: bool
    default: Any
    primary_key: bool


@runtime_checkable
class Dialect(Protocol):
    """Dialect-specific SQL syntax.

    Methods return SQL fragments (or ``(sql, params)`` for introspection
    queries) that the record operations splice into their statements.
    """

    @property
    def name(self) -> str:
        """Driver identifier (e.g. ``'mysql'``)."""
        ...

    @property
    def quote_char(self) -> str:
        """Identifier quote character."""
        ...

    def ignore_modifier(self) -> str:
        """Keyword(s) placed after ``INSERT`` to skip conflicting rows."""
        ...

    def upsert_clause(
        self, assignments: Sequence[str], conflict_key: str | Sequence[str] | None
    ) -> str:
        """Clause appended to an INSERT to update on conflict.

        ``assignments`` are ready ``col = :u_col`` terms.
        """
        ...

    def list_tables_query(self) -> tuple[str, dict[str, Any]]:
        """Statement listing the tables of the current database (column ``name``)."""
        ...

    def table_columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        """Statement describing the columns of ``table``."""
        ...

    def normalize_column(self, row: Mapping[str, Any]) -> ColumnInfo:
        """Convert one row of :meth:`table_columns_query` into a ColumnInfo."""
        ...


def _split_table(table: str) -> tuple[str | None, str]:
    cleaned = clean_name(table, quote=False)
    schema, _, name = cleaned.rpartition(".")
    return schema or None, name


def conflict_columns(conflict_key: str | Sequence[str] | None) -> list[str]:
    """Normalize a conflict key (``"a"``, ``"a, b"`` or ``["a", "b"]``) to a list."""
    if not conflict_key:
        return []
    if isinstance(conflict_key, str):
        conflict_key = conflict_key.split(",")
    return [column.strip() for column in conflict_key if column.strip()]


class MySQLDialect:
    """MySQL / MariaDB family."""

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def quote_char(self) -> str:
        return "`"

    def ignore_modifier(self) -> str:
        return "IGNORE"

    def upsert_clause(
        self, assignments: Sequence[str], conflict_key: str | Sequence[str] | None = None
    ) -> str:
        # MySQL resolves conflicts against every unique index; the key is unused.
        return "AS new ON DUPLICATE KEY UPDATE " + ", ".join(assignments)

    def list_tables_query(self) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT TABLE_NAME AS name FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = DATABASE() ORDER BY TABLE_NAME",
            {},
        )

    def table_columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        schema, name = _split_table(table)
        return (
            "SELECT COLUMN_NAME AS name, COLUMN_TYPE AS type, "
            "IS_NULLABLE AS nullable, COLUMN_DEFAULT AS dflt, COLUMN_KEY AS ckey "
            "FROM information_schema.COLUMNS "
            "WHERE TABLE_SCHEMA = COALESCE(:schema, DATABASE()) AND TABLE_NAME = :table "
            "ORDER BY ORDINAL_POSITION",
            {"schema": schema, "table": name},
        )

    def normalize_column(self, row: Mapping[str, Any]) -> ColumnInfo:
        return ColumnInfo(
            name=row["name"],
            type=row["type"],
            nullable=str(row["nullable"]).upper() == "YES",
            default=row["dflt"],
            primary_key=row["ckey"] == "PRI",
        )


class SQLiteDialect:
    """SQLite family.

    Uses backticks for identifiers: unlike double quotes they never
    silently degrade into string literals.
    """

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def quote_char(self) -> str:
        return "`"

    def ignore_modifier(self) -> str:
        return "OR IGNORE"

    def upsert_clause(
        self, assignments: Sequence[str], conflict_key: str | Sequence[str] | None
    ) -> str:
        columns = conflict_columns(conflict_key)
        if not columns:
            raise MissingKeyError(
                "SQLite upsert requires a conflict key",
                field="conflict_key",
            )
        key = ", ".join(clean_name(column, quote_char=self.quote_char) for column in columns)
        return f"ON CONFLICT({key}) DO UPDATE SET " + ", ".join(assignments)

    def list_tables_query(self) -> tuple[str, dict[str, Any]]:
        return (
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name",
            {},
        )

    def table_columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        schema, name = _split_table(table)
        if schema is None:
            return (
                "SELECT name, type, \"notnull\", dflt_value, pk FROM pragma_table_info(:table)",
                {"table": name},
            )
        return (
            "SELECT name, type, \"notnull\", dflt_value, pk "
            "FROM pragma_table_info(:table, :schema)",
            {"table": name, "schema": schema},
        )

    def normalize_column(self, row: Mapping[str, Any]) -> ColumnInfo:
        return ColumnInfo(
            name=row["name"],
            type=row["type"],
            nullable=not row["notnull"],
            default=row["dflt_value"],
            primary_key=bool(row["pk"]),
        )


class UnsupportedDialect:
    """Any driver without dialect support.

    Identifiers are quoted with ANSI double quotes; every dialect-specific
    operation raises ``UnsupportedOperationError``.
    """

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def quote_char(self) -> str:
        return '"'

    def _unsupported(self, operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(self._name, operation)

    def ignore_modifier(self) -> str:
        raise self._unsupported("insert ignore")

    def upsert_clause(
        self, assignments: Sequence[str], conflict_key: str | Sequence[str] | None
    ) -> str:
        raise self._unsupported("upsert")

    def list_tables_query(self) -> tuple[str, dict[str, Any]]:
        raise self._unsupported("list tables")

    def table_columns_query(self, table: str) -> tuple[str, dict[str, Any]]:
        raise self._unsupported("describe table")

    def normalize_column(self, row: Mapping[str, Any]) -> ColumnInfo:
        raise self._unsupported("describe table")

    def __repr__(self) -> str:
        return f"UnsupportedDialect({self._name!r})"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
    "sqlite": SQLiteDialect(),
}


def get_dialect(driver: str) -> Dialect:
    """Resolve the dialect for a driver identifier.

    Never raises: an unknown driver yields :class:`UnsupportedDialect`.

    Example:
        >>> get_dialect("MySQL").ignore_modifier()
        'IGNORE'
    """
    key = driver.lower() if isinstance(driver, str) else driver.value
    return _DIALECTS.get(key) or UnsupportedDialect(key)


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a dialect implementation for a driver identifier."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "ColumnInfo",
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "UnsupportedDialect",
    "conflict_columns",
    "get_dialect",
    "register_dialect",
]
