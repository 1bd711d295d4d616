"""Database adapter registry and factory.

Manifesto:
    Consumers should never hard-code adapter class names. The registry
    maps driver identifiers to adapter classes and :func:`get_adapter`
    builds one from a :class:`DatabaseConfig`.

Features:
    - ``AdapterRegistry`` with pre-registered defaults
    - ``register()`` to plug in another driver under its DSN prefix
    - ``get_adapter()`` factory: config -> adapter (not yet connected)

Tags:
    record-spine, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

from recordspine.core.errors import ConfigError

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType


class AdapterRegistry:
    """
    Driver name -> adapter class used by ``Database.connect``.

    Pre-registered adapters:
    - ``sqlite``: :class:`SQLiteAdapter`
    - ``mysql`` / ``mariadb``: :class:`MySQLAdapter`
    """

    def __init__(self):
        self._factories: dict[str, type[DatabaseAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories[DatabaseType.SQLITE.value] = SQLiteAdapter
        self._factories[DatabaseType.MYSQL.value] = MySQLAdapter
        self._factories["mariadb"] = MySQLAdapter  # Alias

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Map a driver name (case-insensitive) to an adapter class."""
        self._factories[name.lower()] = adapter_class

    def create(self, name: str, config: DatabaseConfig) -> DatabaseAdapter:
        """Create an adapter by driver name."""
        name = name.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database adapter: {name}")
        return self._factories[name](config)

    def list_adapters(self) -> list[str]:
        """Driver names a DSN may start with."""
        return sorted(self._factories.keys())


# Default registry
adapter_registry = AdapterRegistry()


def get_adapter(config: DatabaseConfig) -> DatabaseAdapter:
    """
    Get a database adapter for a connection descriptor.

    Usage:
        adapter = get_adapter(DatabaseConfig.from_dsn("sqlite:data.db"))
    """
    return adapter_registry.create(config.driver, config)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
