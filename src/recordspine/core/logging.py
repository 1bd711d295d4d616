"""
Structured logging for record-spine.

Modules log through ``get_logger(__name__)`` and emit structlog events with
key/value payloads::

    logger.debug("statement_executed", instance="main", sql=sql, rows_affected=1)
    logger.warning("statement_failed", instance="main", code=1062, message=msg)

Until an application (the CLI, a service) calls :func:`configure_logging`
only warnings and errors are printed. Output always goes to stderr so that
query results on stdout stay machine-readable.

Manifesto:
    - **Events, not sentences:** the event name is a snake_case verb phrase
    - **Bound values stay out:** statements are logged, parameters never
    - **One setup call:** JSON (ECS field names) or a console renderer

Architecture:
    ::

        configure_logging(level, json_format, service)
            timestamp (iso)           optional
            contextvars               LogContext(instance=...) values
            log level
            stack / exc info
            service.name
            ECS renames               JSON only: @timestamp, log.level, log.logger
            JSONRenderer | ConsoleRenderer

Examples:
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> with LogContext(instance="backup"):
    ...     get_logger(__name__).info("instance_opened")

Tags:
    logging, structlog, observability, ecs, json-logging, record-spine

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service_name = "record-spine"


def _add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """``timestamp``, ``level`` and ``logger_name`` under their ECS names."""
    for plain, ecs in (("timestamp", "@timestamp"), ("level", "log.level"), ("logger_name", "log.logger")):
        if plain in event_dict:
            event_dict[ecs] = event_dict.pop(plain)
    return event_dict


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return number


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_name,
    ]
    if json_format:
        chain += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # sys.stderr is looked up per logger so redirected streams are followed
    return structlog.PrintLogger(sys.stderr)


def _install_quiet_default() -> None:
    structlog.configure(
        processors=_processors(json_format=False, add_timestamp=True),
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "record-spine",
    add_timestamp: bool = True,
) -> None:
    """
    Route record-spine events to stderr.

    Args:
        level: Minimum level name (``DEBUG`` shows every executed statement)
        json_format: JSON lines when True, console rendering when False;
            None picks JSON unless stderr is a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Add an ISO timestamp to every event

    Raises:
        ValueError: ``level`` is not a logging level name
    """
    global _service_name
    _service_name = service
    threshold = _level_number(level)
    if json_format is None:
        json_format = not sys.stderr.isatty()

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=_stderr_logger,
        # module-level loggers must follow later configure_logging() calls
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(logger_name=name)


def bind_context(**values: Any) -> None:
    """Attach ``values`` to every event logged from this context."""
    structlog.contextvars.bind_contextvars(**values)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """
    Bind context values for the duration of a ``with`` block.

    Example:
        with LogContext(instance="backup"):
            db.get_records("User")
    """

    def __init__(self, **values: Any):
        self._values = values

    def __enter__(self) -> LogContext:
        bind_context(**self._values)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        unbind_context(*self._values)


def reset_logging() -> None:
    """Drop any :func:`configure_logging` setup and restore the quiet default."""
    global _service_name
    structlog.reset_defaults()
    _service_name = "record-spine"
    _install_quiet_default()


# an application that configured structlog itself keeps its setup
if not structlog.is_configured():
    _install_quiet_default()


__all__ = [
    "configure_logging",
    "reset_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "LogContext",
]
