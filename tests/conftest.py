"""
Shared pytest fixtures for record-spine tests.

This module provides:
- An in-memory SQLite engine with the ``User`` / ``UserAccess`` tables
- A seeded variant for read/update/delete tests
- A scripted MySQL-dialect driver that records statements instead of
  talking to a server

Usage:
    def test_something(sqlite_db):
        sqlite_db.create_record("User", {"Name": "John Doe"})

    def test_mysql_sql(mysql_db, fake_driver):
        mysql_db.get_records("User")
        assert fake_driver.last_sql == "SELECT * FROM `User`"
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest

# Ensure recordspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from recordspine.core.database import Database
from recordspine.core.dialect import MySQLDialect
from recordspine.core.settings import clear_settings_cache

USER_TABLE = """
    CREATE TABLE IF NOT EXISTS `User` (
      `UserId` INTEGER PRIMARY KEY,
      `Name` TEXT NULL,
      `Email` TEXT NULL,
      `Phone` TEXT NULL,
      UNIQUE(`Name`)
    )
"""

USER_ACCESS_TABLE = """
    CREATE TABLE `UserAccess` (
      `UserId` INTEGER NOT NULL,
      `Access` TEXT NOT NULL,
      CONSTRAINT `UserIdAccess` PRIMARY KEY (`UserId`, `Access`)
    )
"""

SEED_USERS = [
    {"Name": "John", "Email": "john@email.com"},
    {"Name": "Jane", "Email": "john@email.com"},
    {"Name": "Julie", "Email": "jim@email.com"},
    {"Name": "Jim", "Email": "jim@email.com"},
]


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep RECORDSPINE_* variables of the host out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("RECORDSPINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# SQLite engine
# =============================================================================


@pytest.fixture
def sqlite_db() -> Generator[Database, None, None]:
    """In-memory SQLite engine with empty User / UserAccess tables."""
    db = Database.connect("sqlite:")
    db.exec(USER_TABLE)
    db.exec(USER_ACCESS_TABLE)
    yield db
    db.close()


@pytest.fixture
def seeded_db(sqlite_db: Database) -> Database:
    """SQLite engine with John, Jane, Julie and Jim (UserId 1-4)."""
    for user in SEED_USERS:
        sqlite_db.create_record("User", user)
    return sqlite_db


# =============================================================================
# Scripted MySQL driver
# =============================================================================


class FakeDriverError(Exception):
    """Driver failure carrying a MySQL-style errno and message."""

    def __init__(self, errno: int, msg: str):
        super().__init__(f"{errno}: {msg}")
        self.errno = errno
        self.msg = msg


class FakeStatement:
    def __init__(self, driver: "FakeMySQLDriver", sql: str):
        self._driver = driver
        self.sql = sql
        self._index = 0
        self.closed = False

    def execute(self, params: Any = None) -> None:
        self._driver.executed.append((self.sql, params))
        if self._driver.fail is not None:
            raise self._driver.fail

    def fetch_all(self) -> list[dict[str, Any]]:
        if self._index < len(self._driver.row_sets):
            return list(self._driver.row_sets[self._index])
        return []

    def next_row_set(self) -> bool:
        self._index += 1
        return self._index < len(self._driver.row_sets)

    def rows_affected(self) -> Any:
        return self._driver.rowcount

    def last_insert_id(self) -> Any:
        return self._driver.lastrowid

    def close(self) -> None:
        self.closed = True
        self._driver.closed_statements += 1


class FakeMySQLDriver:
    """Records statements; results are scripted through attributes."""

    driver = "mysql"
    dialect = MySQLDialect()
    driver_errors = (FakeDriverError,)

    def __init__(self) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.row_sets: list[list[dict[str, Any]]] = [[]]
        self.rowcount: Any = 0
        self.lastrowid: Any = None
        self.fail: Exception | None = None
        self.closed_statements = 0
        self.disconnected = False

    @property
    def last_sql(self) -> str:
        return self.executed[-1][0]

    @property
    def last_params(self) -> Any:
        return self.executed[-1][1]

    def fail_with(self, errno: int, msg: str) -> FakeDriverError:
        """Make every following statement fail with this driver error."""
        self.fail = FakeDriverError(errno, msg)
        return self.fail

    def prepare(self, sql: str) -> FakeStatement:
        return FakeStatement(self, sql)

    def error_code(self, exc: Exception) -> Any:
        return exc.errno

    def error_message(self, exc: Exception) -> str:
        return exc.msg

    def disconnect(self) -> None:
        self.disconnected = True


@pytest.fixture
def fake_driver() -> FakeMySQLDriver:
    return FakeMySQLDriver()


@pytest.fixture
def mysql_db(fake_driver: FakeMySQLDriver) -> Database:
    """Engine instance whose SQL goes to the scripted MySQL driver."""
    return Database(fake_driver, name="main")
