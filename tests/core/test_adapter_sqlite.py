"""Tests for the SQLite adapter and the DB-API cursor statement."""

from __future__ import annotations

import sqlite3

import pytest

from recordspine.core.adapters import CursorStatement, DatabaseConfig, SQLiteAdapter
from recordspine.core.dialect import SQLiteDialect
from recordspine.core.errors import DatabaseConnectionError
from recordspine.core.protocols import Statement, StatementDriver


@pytest.fixture
def adapter():
    adapter = SQLiteAdapter()
    adapter.connect()
    yield adapter
    adapter.disconnect()


class TestSQLiteAdapter:
    def test_defaults_to_memory(self):
        adapter = SQLiteAdapter()
        assert adapter.config.path == ":memory:"
        assert adapter.driver == "sqlite"
        assert isinstance(adapter.dialect, SQLiteDialect)

    def test_satisfies_driver_protocol(self, adapter):
        assert isinstance(adapter, StatementDriver)

    def test_connect_disconnect(self):
        adapter = SQLiteAdapter()
        assert not adapter.is_connected
        adapter.connect()
        assert adapter.is_connected
        adapter.disconnect()
        assert not adapter.is_connected

    def test_connect_is_idempotent(self, adapter):
        conn = adapter.get_connection()
        adapter.connect()
        assert adapter.get_connection() is conn

    def test_context_manager(self):
        with SQLiteAdapter() as adapter:
            assert adapter.is_connected
        assert not adapter.is_connected

    def test_get_connection_connects_lazily(self):
        adapter = SQLiteAdapter()
        assert adapter.get_connection() is not None
        assert adapter.is_connected
        adapter.disconnect()

    def test_autocommit(self, tmp_path):
        path = str(tmp_path / "shared.db")
        writer = SQLiteAdapter(DatabaseConfig(driver="sqlite", path=path))
        reader = SQLiteAdapter(DatabaseConfig(driver="sqlite", path=path))
        statement = writer.prepare("CREATE TABLE t (v TEXT)")
        statement.execute()
        statement = writer.prepare("INSERT INTO t (v) VALUES (:v)")
        statement.execute({"v": "x"})
        statement = reader.prepare("SELECT v FROM t")
        statement.execute()
        assert statement.fetch_all() == [{"v": "x"}]
        writer.disconnect()
        reader.disconnect()

    def test_foreign_keys_enabled(self, adapter):
        statement = adapter.prepare("PRAGMA foreign_keys")
        statement.execute()
        assert statement.fetch_all() == [{"foreign_keys": 1}]

    def test_connect_failure(self, tmp_path):
        missing = tmp_path / "missing" / "dir" / "app.db"
        adapter = SQLiteAdapter(DatabaseConfig(driver="sqlite", path=str(missing)))
        with pytest.raises(DatabaseConnectionError):
            adapter.connect()
        assert not adapter.is_connected

    def test_driver_errors(self, adapter):
        assert adapter.driver_errors == (sqlite3.Error,)

    def test_error_code_and_message(self, adapter):
        statement = adapter.prepare("SELECT * FROM nope")
        with pytest.raises(sqlite3.OperationalError) as exc_info:
            statement.execute()
        assert adapter.error_code(exc_info.value) in {"SQLITE_ERROR", "OperationalError"}
        assert adapter.error_message(exc_info.value) == "no such table: nope"

    def test_repr(self):
        assert repr(SQLiteAdapter()) == "SQLiteAdapter(name='main', driver='sqlite')"


class TestSQLiteStatement:
    def test_satisfies_statement_protocol(self, adapter):
        assert isinstance(adapter.prepare("SELECT 1"), Statement)

    def test_rows_as_dicts(self, adapter):
        statement = adapter.prepare("SELECT 1 AS one, 'a' AS letter")
        statement.execute()
        assert statement.fetch_all() == [{"one": 1, "letter": "a"}]

    def test_no_result_set(self, adapter):
        statement = adapter.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")
        statement.execute({})
        assert statement.fetch_all() == []
        assert statement.next_row_set() is False

    def test_insert_id_and_count(self, adapter):
        adapter.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)").execute()
        statement = adapter.prepare("INSERT INTO t (v) VALUES (?), (?)")
        statement.execute(["a", "b"])
        assert statement.rows_affected() == 2
        assert statement.last_insert_id() == 2

    def test_insert_or_ignore_duplicate_has_no_insert_id(self, adapter):
        adapter.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT UNIQUE)").execute()
        adapter.prepare("INSERT INTO t (v) VALUES ('a')").execute()
        statement = adapter.prepare("INSERT OR IGNORE INTO t (v) VALUES ('a')")
        statement.execute()
        assert statement.rows_affected() == 0
        assert statement.last_insert_id() is None

    def test_update_has_no_insert_id(self, adapter):
        adapter.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)").execute()
        adapter.prepare("INSERT INTO t (v) VALUES ('a')").execute()
        statement = adapter.prepare("UPDATE t SET v = 'b'")
        statement.execute()
        assert statement.rows_affected() == 1
        assert statement.last_insert_id() is None

    def test_upsert_update_has_no_insert_id(self, adapter):
        adapter.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT UNIQUE, n INTEGER)").execute()
        adapter.prepare("INSERT INTO t (v, n) VALUES ('a', 1)").execute()
        adapter.prepare("INSERT INTO t (v, n) VALUES ('b', 1)").execute()
        statement = adapter.prepare("INSERT INTO t (v, n) VALUES ('a', 1) ON CONFLICT(v) DO UPDATE SET n = 2")
        statement.execute()
        assert statement.last_insert_id() is None

    def test_close(self, adapter):
        statement = adapter.prepare("SELECT 1")
        statement.close()
        with pytest.raises(sqlite3.ProgrammingError):
            statement.execute()

    def test_bind_sql_passthrough(self):
        assert CursorStatement(None, "SELECT :a").bind_sql("SELECT :a") == "SELECT :a"
