"""Connection settings for record-spine.

Engine instances are resolved by name: ``"main"`` is the primary connection
and every other name refers to one of the configured alternates.
``DatabaseSettings`` holds them, validated by pydantic and read from
``RECORDSPINE_*`` environment variables or a ``.env`` file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** duplicate or reserved names fail at startup
    - **Environment-driven:** ``RECORDSPINE_MAIN__DSN``, ``RECORDSPINE_ALTERNATES``
    - **Directive-friendly:** flat ``main.dsn`` / ``alt1.name`` maps load too

Features:
    - **ConnectionSettings:** name, dsn, user, password
    - **DatabaseSettings.from_directives():** flat directive convention
    - **DatabaseSettings.resolve():** name -> ConnectionSettings
    - **get_settings():** cached process-wide settings

Examples:
    >>> settings = DatabaseSettings.from_directives({
    ...     "main.dsn": "sqlite:",
    ...     "alt1.dsn": "sqlite:/tmp/backup.db",
    ...     "alt1.name": "backup",
    ... })
    >>> settings.resolve("backup").dsn
    'sqlite:/tmp/backup.db'

Tags:
    settings, configuration, pydantic, environment, record-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from recordspine.core.errors import MissingConfigError

MAIN = "main"

_ALTERNATE_KEY = re.compile(r"^alt(\d+)$")

# Directive field -> ConnectionSettings field
_DIRECTIVE_FIELDS = {
    "dsn": "dsn",
    "usr": "user",
    "pwd": "password",
    "name": "name",
}


class ConnectionSettings(BaseModel):
    """One configured connection."""

    name: str | None = None
    dsn: str = ""
    user: str | None = None
    password: SecretStr | None = None

    def secret(self) -> str | None:
        """Plain-text password for the driver."""
        return self.password.get_secret_value() if self.password else None


class DatabaseSettings(BaseSettings):
    """Record-spine configuration.

    All fields can be set via ``RECORDSPINE_*`` environment variables, with
    ``__`` for nesting (``RECORDSPINE_MAIN__DSN=mysql:host=db;dbname=app``)
    and JSON for the alternates list.
    """

    model_config = SettingsConfigDict(
        env_prefix="RECORDSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # ── Connections ──────────────────────────────────────────────
    main: ConnectionSettings | None = None
    alternates: list[ConnectionSettings] = Field(default_factory=list)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = Field(default="auto", description="json, console or auto")

    @model_validator(mode="after")
    def _validate_alternates(self) -> DatabaseSettings:
        seen: set[str] = set()
        for alternate in self.alternates:
            if alternate.name is None:
                continue
            if alternate.name == MAIN:
                raise ValueError("An alternate connection cannot be named 'main'")
            if alternate.name in seen:
                raise ValueError(f"Duplicate alternate connection name: {alternate.name!r}")
            seen.add(alternate.name)
        return self

    @classmethod
    def from_directives(cls, directives: Mapping[str, Any], **kwargs: Any) -> DatabaseSettings:
        """
        Build settings from flat directives.

        Recognised keys: ``main.dsn``, ``main.usr``, ``main.pwd`` and
        ``altN.dsn``, ``altN.usr``, ``altN.pwd``, ``altN.name``. Other keys
        are ignored.
        """
        main: dict[str, Any] = {}
        alternates: dict[int, dict[str, Any]] = {}

        for key, value in directives.items():
            section, _, directive = str(key).partition(".")
            target_field = _DIRECTIVE_FIELDS.get(directive)
            if target_field is None:
                continue
            if section == MAIN:
                main[target_field] = value
                continue
            match = _ALTERNATE_KEY.match(section)
            if match:
                alternates.setdefault(int(match.group(1)), {})[target_field] = value

        if main:
            main["name"] = MAIN
            kwargs["main"] = ConnectionSettings(**main)
        if alternates:
            kwargs["alternates"] = [
                ConnectionSettings(**alternates[index]) for index in sorted(alternates)
            ]
        return cls(**kwargs)

    def resolve(self, name: str = MAIN) -> ConnectionSettings:
        """Connection settings for an instance name.

        Raises:
            MissingConfigError: Nothing configured under ``name``
        """
        if name == MAIN:
            if self.main is None or not self.main.dsn:
                raise MissingConfigError("main.dsn")
            return self.main
        for alternate in self.alternates:
            if alternate.name == name and alternate.dsn:
                return alternate
        raise MissingConfigError(
            name,
            f"No connection configured with the name '{name}'",
        )

    def names(self) -> list[str]:
        """Every resolvable connection name."""
        names = [MAIN] if self.main is not None and self.main.dsn else []
        names.extend(a.name for a in self.alternates if a.name and a.dsn)
        return names


# =============================================================================
# Cached accessor
# =============================================================================

_settings_cache: dict[str, DatabaseSettings] = {}


def get_settings() -> DatabaseSettings:
    """Process-wide settings, read from the environment once."""
    if "default" not in _settings_cache:
        _settings_cache["default"] = DatabaseSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "MAIN",
    "ConnectionSettings",
    "DatabaseSettings",
    "get_settings",
    "clear_settings_cache",
]
