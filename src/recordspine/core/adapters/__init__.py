"""Database adapters -- one live driver handle per engine instance.

Manifesto:
    The engine builds SQL; adapters run it. Each adapter wraps a single
    autocommit connection and hands out prepared statements that satisfy
    :class:`~recordspine.core.protocols.Statement`.

    Driver modules are **import-guarded**: they are only required at
    ``connect()`` time. Install the corresponding extra::

        pip install record-spine[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        Abstract base: connect/prepare/errors
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector (optional)

    AdapterRegistry (registry.py)    driver name -> adapter class
    DatabaseConfig (types.py)        Frozen connection descriptor
    parse_dsn (types.py)             ``driver:key=value;...`` parser

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``
    ❌ ``adapter = MySQLAdapter(...)`` directly
    ✅ ``adapter = get_adapter(DatabaseConfig.from_dsn(dsn, user, password))``

Tags:
    record-spine, database, adapters, import-guarded, registry-pattern,
    sqlite, mysql

Doc-Types:
    package-overview, module-index
"""

from .base import CursorStatement, DatabaseAdapter
from .mysql import MySQLAdapter, MySQLStatement, translate_placeholders
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter, SQLiteStatement
from .types import DatabaseConfig, DatabaseType, parse_dsn

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    "parse_dsn",
    # Base class
    "DatabaseAdapter",
    "CursorStatement",
    # Implementations
    "SQLiteAdapter",
    "SQLiteStatement",
    "MySQLAdapter",
    "MySQLStatement",
    "translate_placeholders",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
