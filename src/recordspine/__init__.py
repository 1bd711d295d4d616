"""
record-spine: structured record operations over a prepared-statement driver.

Callers pass table names, column/value maps and filter maps; the engine
builds parameterized SQL for the active dialect (MySQL or SQLite), runs it
and shapes the result according to :class:`ExecFlag`.

Example:
    >>> from recordspine import DatabaseSettings, ExecFlag, InstanceRegistry
    >>> registry = InstanceRegistry(DatabaseSettings.from_directives({"main.dsn": "sqlite:"}))
    >>> db = registry.get_instance()
    >>> db.exec("CREATE TABLE User (UserId INTEGER PRIMARY KEY, Name TEXT UNIQUE, Email TEXT)")
    0
    >>> db.create_record("User", {"Name": "John Doe"})
    1
    >>> db.create_record(
    ...     "User",
    ...     {"Name": "John Doe", "Email": "john@x.com"},
    ...     upsert_data={"Email": "john@x.com"},
    ...     flags=ExecFlag.ON_DUPLICATE_UPDATE | ExecFlag.RETURN_BOOL,
    ...     conflict_key="Name",
    ... )
    True
"""

from recordspine.core.database import Database
from recordspine.core.dialect import ColumnInfo, get_dialect
from recordspine.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    EmptyInputError,
    InstanceExistsError,
    InvalidConfigError,
    MissingArgumentError,
    MissingConfigError,
    MissingKeyError,
    QueryError,
    SchemaError,
    ShapeMismatchError,
    SpineError,
    UnsupportedOperationError,
    ValidationError,
)
from recordspine.core.executor import DebugRecord
from recordspine.core.flags import ExecFlag
from recordspine.core.registry import InstanceRegistry
from recordspine.core.settings import ConnectionSettings, DatabaseSettings

__version__ = "0.1.0"

__all__ = [
    "ColumnInfo",
    "ConfigError",
    "ConnectionSettings",
    "Database",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseSettings",
    "DebugRecord",
    "EmptyInputError",
    "ExecFlag",
    "InstanceExistsError",
    "InstanceRegistry",
    "InvalidConfigError",
    "MissingArgumentError",
    "MissingConfigError",
    "MissingKeyError",
    "QueryError",
    "SchemaError",
    "ShapeMismatchError",
    "SpineError",
    "UnsupportedOperationError",
    "ValidationError",
    "get_dialect",
]
