"""
Structured error types for record-spine.

Every failure the engine can report is a typed ``SpineError`` carrying a
category, retry semantics, structured context and an optional chained cause.
The hierarchy mirrors the three failure kinds of the engine:

- **Validation errors:** malformed caller input (empty data, inconsistent
  record shapes, missing companion arguments). Raised before any SQL is
  sent and never suppressed by execution flags.
- **Capability / configuration errors:** a dialect that cannot express the
  requested statement, missing connection configuration, duplicate
  instance construction. Always fatal.
- **Driver execution errors:** failures reported by the underlying driver
  while preparing or executing a statement. Their propagation is governed
  by the execution flags (see :mod:`recordspine.core.executor`).

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind
    - **Programmer errors are loud:** validation/capability errors always raise
    - **Driver codes pass through:** ``QueryError.code`` is the native code
    - **Error Chaining:** the driver exception is kept as ``__cause__``

Architecture:
    ::

        SpineError (category, retryable, context, cause)
        ├── TransientError
        │   └── DatabaseConnectionError
        ├── ValidationError
        │   ├── EmptyInputError
        │   ├── MissingArgumentError
        │   ├── ShapeMismatchError
        │   ├── MissingKeyError
        │   └── SchemaError
        ├── ConfigError
        │   ├── MissingConfigError
        │   ├── InvalidConfigError
        │   ├── UnsupportedOperationError
        │   └── InstanceExistsError
        └── DatabaseError
            └── QueryError (code, message)

Examples:
    >>> error = ShapeMismatchError("Inconsistent column counts", field="records")
    >>> error.retryable
    False
    >>> error.with_context(table="User").context.table
    'User'

Tags:
    error-handling, exception-hierarchy, record-spine, validation, driver-errors

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Which layer of the engine rejected the call."""

    DATABASE = "DATABASE"         # driver rejected a statement or a connect
    VALIDATION = "VALIDATION"     # malformed record / filter input
    CONFIG = "CONFIG"             # connection setup or dialect capability
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Where an engine failure happened.

    Attributes:
        instance: Connection name the engine instance was registered under
        driver: ``"mysql"``, ``"sqlite"`` or whatever the DSN named
        table: Table of a record operation
        sql: Statement text; bound values are never stored here
        metadata: Anything else passed to :meth:`SpineError.with_context`
    """

    instance: str | None = None
    driver: str | None = None
    table: str | None = None
    sql: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "metadata")

    def to_dict(self) -> dict[str, Any]:
        """Populated fields followed by metadata."""
        data = {
            name: getattr(self, name)
            for name in self.field_names()
            if getattr(self, name) is not None
        }
        data.update(self.metadata)
        return data


class SpineError(Exception):
    """
    Root of every error record-spine raises on purpose.

    A subclass picks its category and retry hint through ``default_category``
    and ``default_retryable``; a driver exception that triggered the error is
    kept both as ``cause`` and as ``__cause__``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = self.default_category if category is None else category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = ErrorContext() if context is None else context
        self.cause = cause
        self.__cause__ = cause

    def with_context(self, **values: Any) -> SpineError:
        """
        Fill in context fields and return the error, so it can be raised inline.

        Keys that are not :class:`ErrorContext` fields land in ``metadata``::

            raise EmptyInputError("No data").with_context(table="User")
        """
        known = ErrorContext.field_names()
        for key, value in values.items():
            if key in known:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flat, JSON-friendly view for structured log events and CLI output."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(SpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Opening the driver connection failed."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SpineError):
    """
    Caller input is malformed.

    Never retryable and never suppressed by execution flags.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        # name of the offending argument and what was passed for it
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        if self.value is not None:
            data["value"] = repr(self.value)
        return data


class EmptyInputError(ValidationError):
    """Required data is empty (no record, no SET columns, empty identifier)."""


class MissingArgumentError(ValidationError):
    """A flag was set without its companion argument, or the reverse."""


class ShapeMismatchError(ValidationError):
    """Records of one batch do not share the same column count."""


class MissingKeyError(ValidationError):
    """A required key column (conflict key, primary key) was not supplied."""


class SchemaError(ValidationError):
    """The table schema cannot support the requested operation."""


# =============================================================================
# CONNECTION SETUP / CAPABILITY ERRORS
# =============================================================================


class ConfigError(SpineError):
    """
    The engine cannot be set up, or cannot express a statement, as asked.

    Retrying never helps: a DSN, a settings value or the chosen dialect has
    to change.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """No connection settings exist for a requested instance name."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"No value configured for {key!r}")


class InvalidConfigError(ConfigError):
    """A DSN or settings value cannot be parsed."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Cannot use {value!r} as {key}")


class UnsupportedOperationError(ConfigError):
    """The resolved dialect cannot express the requested statement."""

    def __init__(self, dialect: str, operation: str):
        self.dialect = dialect
        self.operation = operation
        super().__init__(f"Operation '{operation}' is not supported by the '{dialect}' dialect")


class InstanceExistsError(ConfigError):
    """An engine instance with this name has already been constructed."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Database instance with the name '{name}' has already been constructed")


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(SpineError):
    """Database statement error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """
    The driver rejected a statement.

    ``message`` is the driver's own message and ``code`` its native error
    code (SQLSTATE, errno or SQLite error name); neither is translated.
    """

    def __init__(self, message: str, *, code: str | int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.code is not None:
            result["code"] = self.code
        return result


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SpineError",
    "TransientError",
    "DatabaseConnectionError",
    "ValidationError",
    "EmptyInputError",
    "MissingArgumentError",
    "ShapeMismatchError",
    "MissingKeyError",
    "SchemaError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "UnsupportedOperationError",
    "InstanceExistsError",
    "DatabaseError",
    "QueryError",
]
