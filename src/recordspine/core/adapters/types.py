"""Database types, connection descriptors and DSN parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from recordspine.core.errors import InvalidConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    MYSQL = "mysql"


def parse_dsn(dsn: str) -> dict[str, str]:
    """
    Split a ``driver:key=value;key=value`` DSN into a dict.

    SQLite DSNs carry a path instead of pairs (``sqlite:/tmp/app.db``).

    Example:
        >>> parse_dsn("mysql:host=db;dbname=app;charset=utf8mb4")
        {'driver': 'mysql', 'host': 'db', 'dbname': 'app', 'charset': 'utf8mb4'}
        >>> parse_dsn("sqlite:/tmp/app.db")
        {'driver': 'sqlite', 'path': '/tmp/app.db'}
    """
    driver, sep, rest = (dsn or "").partition(":")
    driver = driver.strip().lower()
    if not sep or not driver:
        raise InvalidConfigError("dsn", dsn, f"DSN must start with '<driver>:', got {dsn!r}")

    if driver == DatabaseType.SQLITE.value:
        return {"driver": driver, "path": rest.strip()}

    parsed = {"driver": driver}
    for pair in rest.split(";"):
        if not pair.strip():
            continue
        key, eq, value = pair.partition("=")
        if not eq or not key.strip():
            raise InvalidConfigError("dsn", dsn, f"Malformed DSN segment {pair!r} in {dsn!r}")
        parsed[key.strip()] = value.strip()
    return parsed


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Immutable connection descriptor.

    Different fields are used by different drivers; anything the DSN carries
    that has no field lands in ``options``.
    """

    driver: str = DatabaseType.SQLITE.value
    name: str = "main"

    # SQLite
    path: str | None = None

    # MySQL
    host: str = "localhost"
    port: int = 3306
    database: str = ""
    charset: str = "utf8mb4"
    unix_socket: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)

    connect_timeout: int = 10
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dsn(
        cls,
        dsn: str,
        user: str | None = None,
        password: str | None = None,
        *,
        name: str = "main",
    ) -> DatabaseConfig:
        """Build a descriptor from a DSN plus credentials."""
        parsed = parse_dsn(dsn)
        driver = parsed.pop("driver")

        if driver == DatabaseType.SQLITE.value:
            return cls(driver=driver, name=name, path=parsed["path"] or ":memory:")

        port = parsed.pop("port", "3306")
        try:
            port_number = int(port)
        except ValueError:
            raise InvalidConfigError("port", port) from None

        return cls(
            driver=driver,
            name=name,
            host=parsed.pop("host", "localhost"),
            port=port_number,
            database=parsed.pop("dbname", ""),
            charset=parsed.pop("charset", "utf8mb4"),
            unix_socket=parsed.pop("unix_socket", None),
            user=user,
            password=password,
            options=parsed,
        )


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
    "parse_dsn",
]
