"""
Database engine: table-oriented record operations over one connection.

A :class:`Database` is one named engine instance. It owns a single adapter
(one live driver handle), a :class:`~recordspine.core.executor.StatementExecutor`
holding the last-operation state, and a per-table schema cache.

Record operations assemble parameterized SQL from structured input (table,
column/value maps, filter maps) through the fragment builders and the
dialect, then hand it to the executor:

    create_record(s)  INSERT [IGNORE] ... VALUES ... [upsert clause]
    get_record(s)     SELECT * ... WHERE ... [ORDER BY ... LIMIT ... OFFSET ...]
    update_records    UPDATE ... SET ... WHERE ...
    delete_records    DELETE FROM ... WHERE ...
    exec / query      raw SQL
    procedure         CALL name(?, ...)

Manifesto:
    - **Structured input, parameterized output:** values always bind, every
      identifier goes through ``clean_name``
    - **Validation before SQL:** shape and companion-argument errors raise
      before the driver sees anything
    - **Sensible default shapes:** each operation picks a result shape
      unless the caller asked for one

Default result shapes:
    ::

        create_record    RETURN_LAST_INSERT_ID
        create_records   RETURN_BOOL
        get_record       RETURN_FIRST_RESULT_ONLY
        update_records   RETURN_ROWS_AFFECTED
        delete_records   RETURN_ROWS_AFFECTED
        exec             RETURN_ROWS_AFFECTED
        query/procedure  (caller flags unchanged)

Examples:
    >>> db = Database.connect("sqlite:")
    >>> db.exec("CREATE TABLE User (UserId INTEGER PRIMARY KEY, Name TEXT)")
    0
    >>> db.create_record("User", {"Name": "John Doe"})
    1
    >>> db.get_record("User", {"UserId": 1})
    {'UserId': 1, 'Name': 'John Doe'}

Guardrails:
    ❌ DON'T: ``db.delete_records("User", {})`` unless the whole table should go
    ✅ DO: Pass a WHERE map; an empty map targets every row

Tags:
    database, crud, record-operations, upsert, schema, record-spine

Doc-Types:
    - API Reference
    - Usage Guide
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from recordspine.core.adapters import DatabaseAdapter, DatabaseConfig, adapter_registry
from recordspine.core.adapters.registry import AdapterRegistry
from recordspine.core.dialect import ColumnInfo, Dialect
from recordspine.core.errors import (
    EmptyInputError,
    MissingArgumentError,
    MissingKeyError,
    QueryError,
    SchemaError,
    ShapeMismatchError,
    ValidationError,
)
from recordspine.core.executor import DebugRecord, StatementExecutor
from recordspine.core.flags import ExecFlag, as_flags, has_scalar_shape, with_default_shape
from recordspine.core.fragments import Fragment, bind, build_order_limit, build_set, build_where
from recordspine.core.identifiers import clean_name, param_name
from recordspine.core.protocols import Params


class Database:
    """
    One named engine instance.

    Construct through :class:`~recordspine.core.registry.InstanceRegistry`
    (``registry.get_instance("main")``) or directly with :meth:`connect`.
    """

    def __init__(self, adapter: DatabaseAdapter, *, name: str = "main"):
        self.name = name
        self._adapter = adapter
        self._executor = StatementExecutor(adapter, instance=name)
        self._schema_cache: dict[str, list[ColumnInfo]] = {}

    @classmethod
    def connect(
        cls,
        dsn: str,
        user: str | None = None,
        password: str | None = None,
        *,
        name: str = "main",
        adapters: AdapterRegistry = adapter_registry,
    ) -> Database:
        """Open a connection for ``dsn`` and wrap it in an engine instance."""
        config = DatabaseConfig.from_dsn(dsn, user, password, name=name)
        adapter = adapters.create(config.driver, config)
        adapter.connect()
        return cls(adapter, name=name)

    # -- properties ------------------------------------------------------------

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    @property
    def driver(self) -> str:
        return self._adapter.driver

    @property
    def dialect(self) -> Dialect:
        return self._adapter.dialect

    @property
    def debug_data(self) -> DebugRecord | None:
        """Debug capture of the last statement (DEBUG_MODE only)."""
        return self._executor.debug_data

    def get_last_insert_id(self) -> int:
        return self._executor.last_insert_id

    def get_rows_affected(self) -> int:
        return self._executor.rows_affected

    def get_last_exec_error(self) -> QueryError | None:
        return self._executor.last_exec_error

    def close(self) -> None:
        """Close the driver handle."""
        self._adapter.disconnect()

    def _name(self, identifier: str) -> str:
        return clean_name(identifier, quote_char=self.dialect.quote_char)

    # -- record operations -----------------------------------------------------

    def create_record(
        self,
        table: str,
        data: Mapping[str, Any],
        upsert_data: Mapping[str, Any] | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
        conflict_key: str | Sequence[str] | None = None,
    ) -> Any:
        """Insert one record; returns the new id by default."""
        if not data:
            raise EmptyInputError("No data to insert", field="data").with_context(table=table)
        flags = with_default_shape(flags, ExecFlag.RETURN_LAST_INSERT_ID)
        return self.create_records(table, [data], upsert_data, flags, conflict_key)

    def create_records(
        self,
        table: str,
        records: Sequence[Mapping[str, Any]],
        upsert_data: Mapping[str, Any] | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
        conflict_key: str | Sequence[str] | None = None,
    ) -> Any:
        """
        Insert one or more records in a single statement.

        The column list comes from the first record; every record must have
        the same number of columns and binds positionally against it.

        Raises:
            EmptyInputError: No records, or an empty first record
            ShapeMismatchError: Column counts differ between records
            MissingArgumentError: Upsert data without ON_DUPLICATE_UPDATE or
                the reverse
            MissingKeyError: SQLite upsert without ``conflict_key``
            UnsupportedOperationError: Dialect cannot ignore/upsert
        """
        flags = with_default_shape(flags, ExecFlag.RETURN_BOOL)

        if not records or not records[0]:
            raise EmptyInputError("No data to insert", field="records").with_context(table=table)

        upsert = ExecFlag.ON_DUPLICATE_UPDATE in flags
        if upsert_data and not upsert:
            raise MissingArgumentError(
                "Upsert data given without the ON_DUPLICATE_UPDATE flag",
                field="upsert_data",
            ).with_context(table=table)
        if upsert and not upsert_data:
            raise MissingArgumentError(
                "ON_DUPLICATE_UPDATE requires upsert data",
                field="upsert_data",
            ).with_context(table=table)
        if upsert and ExecFlag.INSERT_IGNORE in flags:
            raise ValidationError(
                "INSERT_IGNORE and ON_DUPLICATE_UPDATE cannot be combined",
                field="flags",
            ).with_context(table=table)

        columns = list(records[0])
        fragment = Fragment()
        rows = []
        for index, record in enumerate(records):
            if len(record) != len(columns):
                raise ShapeMismatchError(
                    "Inconsistent column counts",
                    field="records",
                    value={"row": index, "expected": len(columns), "got": len(record)},
                ).with_context(table=table)
            names = [
                bind(fragment.params, param_name("v", column, row=index), value)
                for column, value in zip(columns, record.values(), strict=True)
            ]
            rows.append("(" + ", ".join(f":{name}" for name in names) + ")")

        dialect = self.dialect
        fragment.append(
            "INSERT",
            dialect.ignore_modifier() if ExecFlag.INSERT_IGNORE in flags else "",
            "INTO",
            self._name(table),
            "(" + ", ".join(self._name(column) for column in columns) + ")",
            "VALUES",
            ", ".join(rows),
        )

        if upsert:
            assignments = []
            for column, value in upsert_data.items():
                name = bind(fragment.params, param_name("u", column), value)
                assignments.append(f"{self._name(column)} = :{name}")
            fragment.append(dialect.upsert_clause(assignments, conflict_key))

        return self._executor.execute(fragment.sql, fragment.params, flags)

    def get_record(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """First matching row as a dict, or None."""
        flags = as_flags(flags)
        if not has_scalar_shape(flags):
            flags |= ExecFlag.RETURN_FIRST_RESULT_ONLY
        return self.get_records(table, where, flags=flags)

    def get_records(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        order_by: Sequence[str] | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Matching rows as a list of dicts."""
        quote = self.dialect.quote_char
        fragment = Fragment().append("SELECT * FROM", self._name(table))
        fragment.append(
            build_where(where, fragment.params, quote),
            build_order_limit(order_by, limit, offset, quote),
        )
        return self._executor.execute(fragment.sql, fragment.params, flags)

    def update_records(
        self,
        table: str,
        data: Mapping[str, Any],
        where: Mapping[str, Any] | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Update matching rows; returns the affected-row count by default."""
        if not data:
            raise EmptyInputError("No columns to update", field="data").with_context(table=table)
        flags = with_default_shape(flags, ExecFlag.RETURN_ROWS_AFFECTED)
        quote = self.dialect.quote_char
        fragment = Fragment().append("UPDATE", self._name(table))
        fragment.append(
            build_set(data, fragment.params, quote),
            build_where(where, fragment.params, quote),
        )
        return self._executor.execute(fragment.sql, fragment.params, flags)

    def delete_records(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Delete matching rows; returns the affected-row count by default."""
        flags = with_default_shape(flags, ExecFlag.RETURN_ROWS_AFFECTED)
        fragment = Fragment().append("DELETE FROM", self._name(table))
        fragment.append(build_where(where, fragment.params, self.dialect.quote_char))
        return self._executor.execute(fragment.sql, fragment.params, flags)

    # -- raw SQL ---------------------------------------------------------------

    def exec(
        self,
        sql: str,
        params: Params | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Run a statement; returns the affected-row count by default."""
        flags = with_default_shape(flags, ExecFlag.RETURN_ROWS_AFFECTED)
        return self._executor.execute(sql, params, flags)

    def query(
        self,
        sql: str,
        params: Params | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Run a statement and return rows (or whatever ``flags`` ask for)."""
        return self._executor.execute(sql, params, flags)

    def procedure(
        self,
        name: str,
        args: Sequence[Any] | None = None,
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Call a stored procedure with positional arguments."""
        args = list(args or ())
        placeholders = ", ".join("?" for _ in args)
        return self._executor.execute(f"CALL {self._name(name)}({placeholders})", args, flags)

    # -- schema ----------------------------------------------------------------

    def get_schema(self) -> list[str]:
        """Names of the tables in the current database."""
        sql, params = self.dialect.list_tables_query()
        return [row["name"] for row in self._executor.execute(sql, params)]

    def get_table_schema(self, table: str) -> list[ColumnInfo]:
        """Columns of ``table`` in ordinal order (cached); unknown table gives []."""
        key = clean_name(table, quote=False)
        if key not in self._schema_cache:
            sql, params = self.dialect.table_columns_query(key)
            rows = self._executor.execute(sql, params)
            self._schema_cache[key] = [self.dialect.normalize_column(row) for row in rows]
        return list(self._schema_cache[key])

    def clear_schema_cache(self) -> None:
        self._schema_cache.clear()

    def _split_on_primary_key(
        self, table: str, data: Mapping[str, Any]
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        keys = [column.name for column in self.get_table_schema(table) if column.primary_key]
        if not keys:
            raise SchemaError(
                f"Table {table!r} has no primary key",
                field="table",
                value=table,
            ).with_context(table=table)
        missing = [key for key in keys if key not in data]
        if missing:
            raise MissingKeyError(
                f"Missing primary key column(s): {', '.join(missing)}",
                field="data",
                value=missing,
            ).with_context(table=table)
        where = {key: data[key] for key in keys}
        rest = {column: value for column, value in data.items() if column not in where}
        return where, rest

    def update_record(
        self,
        table: str,
        data: Mapping[str, Any],
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Update the row identified by the primary-key values in ``data``."""
        where, values = self._split_on_primary_key(table, data)
        if not values:
            raise EmptyInputError(
                "No non-key columns to update",
                field="data",
            ).with_context(table=table)
        return self.update_records(table, values, where, flags)

    def delete_record(
        self,
        table: str,
        data: Mapping[str, Any],
        flags: ExecFlag | int = ExecFlag.NONE,
    ) -> Any:
        """Delete the row identified by the primary-key values in ``data``."""
        where, _ = self._split_on_primary_key(table, data)
        return self.delete_records(table, where, flags)

    def __repr__(self) -> str:
        return f"Database(name={self.name!r}, driver={self.driver!r})"


__all__ = [
    "Database",
]
