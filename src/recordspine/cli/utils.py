"""
CLI utility helpers: instance resolution and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from recordspine.core.database import Database
from recordspine.core.errors import QueryError, SpineError
from recordspine.core.logging import LogContext
from recordspine.core.registry import InstanceRegistry

console = Console()
err_console = Console(stderr=True)


# ── Instance helper ──────────────────────────────────────────────────────


@contextmanager
def open_instance(
    instance: str,
    dsn: str | None = None,
    user: str | None = None,
    password: str | None = None,
) -> Iterator[Database]:
    """Engine instance for one command, closed afterwards.

    With ``--dsn`` the connection is built from the options; otherwise
    ``instance`` is resolved from ``RECORDSPINE_*`` settings.
    """
    registry = InstanceRegistry()
    with LogContext(instance=instance):
        try:
            with report_errors():
                if dsn:
                    db = registry.construct(instance, dsn, user, password)
                else:
                    db = registry.get_instance(instance)
            with report_errors():
                yield db
        finally:
            registry.unlink_instances()


@contextmanager
def report_errors() -> Iterator[None]:
    """Print ``Error (<code>): <message>`` for record-spine errors and exit 1."""
    try:
        yield
    except SpineError as e:
        code = e.code if isinstance(e, QueryError) and e.code is not None else e.category.value
        err_console.print(f"[bold red]Error[/bold red] ({code}): {escape(e.message)}", highlight=False)
        raise typer.Exit(code=1) from e


def parse_params(values: list[str] | None) -> dict[str, str]:
    """``["name=John", "id=1"]`` -> ``{"name": "John", "id": "1"}``."""
    params: dict[str, str] = {}
    for item in values or ():
        key, eq, value = item.partition("=")
        if not eq or not key:
            raise typer.BadParameter(f"Expected NAME=VALUE, got {item!r}", param_hint="--param")
        params[key.lstrip(":")] = value
    return params


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / dict row to plain dict."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": obj}


def output_rows(rows: Any, *, as_json: bool = False, title: str = "") -> None:
    """Render query rows (list of dicts) to the terminal."""
    if rows is None:
        rows = []
    elif not isinstance(rows, list):
        rows = [rows]

    if as_json:
        console.print_json(json.dumps([_to_dict(row) for row in rows], default=str))
        return

    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    _print_table(rows, title=title)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(str(col), overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*("NULL" if v is None else str(v) for v in d.values()))
    console.print(table)
