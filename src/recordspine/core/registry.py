"""
Named engine-instance registry.

The application's composition root owns one :class:`InstanceRegistry` and
passes it to whatever needs database access. It maps a connection name to
a constructed :class:`~recordspine.core.database.Database`:

- ``get_instance(name)`` returns the registered instance, constructing it
  from settings on first access.
- ``construct(name, dsn, ...)`` builds one explicitly and refuses a name
  that is already registered.
- ``unlink_instances()`` closes and forgets everything (tests).

Manifesto:
    - **Injected, not global:** no module-level instance map
    - **At most one live handle per name:** the "already registered" check
      and the insert happen under one lock
    - **Connect before register:** a failed connect registers nothing

Examples:
    >>> registry = InstanceRegistry(DatabaseSettings.from_directives({"main.dsn": "sqlite:"}))
    >>> db = registry.get_instance()
    >>> registry.get_instance("main") is db
    True
    >>> registry.construct("main", "sqlite:")
    Traceback (most recent call last):
        ...
    recordspine.core.errors.InstanceExistsError: ...

Tags:
    registry, connections, instances, record-spine
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from recordspine.core.adapters import AdapterRegistry, adapter_registry
from recordspine.core.database import Database
from recordspine.core.errors import InstanceExistsError
from recordspine.core.logging import get_logger
from recordspine.core.settings import MAIN, DatabaseSettings, get_settings

logger = get_logger(__name__)


class InstanceRegistry:
    """Connection name -> engine instance."""

    def __init__(
        self,
        settings: DatabaseSettings | Callable[[], DatabaseSettings] | None = None,
        *,
        adapters: AdapterRegistry = adapter_registry,
    ):
        self._settings = settings
        self._adapters = adapters
        self._instances: dict[str, Database] = {}
        self._lock = threading.RLock()

    @property
    def settings(self) -> DatabaseSettings:
        if self._settings is None:
            return get_settings()
        if callable(self._settings):
            return self._settings()
        return self._settings

    def get_instance(self, name: str = MAIN) -> Database:
        """Registered instance for ``name``, constructed from settings if new."""
        with self._lock:
            instance = self._instances.get(name)
            if instance is None:
                instance = self.construct(name)
            return instance

    def construct(
        self,
        name: str = MAIN,
        dsn: str | None = None,
        user: str | None = None,
        password: str | None = None,
    ) -> Database:
        """
        Construct and register an instance.

        Without ``dsn`` the connection parameters come from settings
        (``resolve(name)``).

        Raises:
            InstanceExistsError: ``name`` is already registered
            MissingConfigError: No ``dsn`` and nothing configured for ``name``
            DatabaseConnectionError: The driver could not connect
        """
        with self._lock:
            if name in self._instances:
                raise InstanceExistsError(name)

            if not dsn:
                configured = self.settings.resolve(name)
                dsn = configured.dsn
                user = configured.user
                password = configured.secret()

            instance = Database.connect(
                dsn,
                user,
                password,
                name=name,
                adapters=self._adapters,
            )
            self._instances[name] = instance

        logger.info("instance_constructed", instance=name, driver=instance.driver)
        return instance

    def names(self) -> list[str]:
        with self._lock:
            return list(self._instances)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)

    def unlink_instances(self) -> None:
        """Close every live handle and clear the registry. For tests."""
        with self._lock:
            instances = list(self._instances.values())
            self._instances.clear()
        for instance in instances:
            instance.close()
        logger.info("instances_unlinked", count=len(instances))


__all__ = [
    "InstanceRegistry",
]
