"""
Root Typer application for the record-spine CLI.

Every command opens one engine instance (``--dsn`` or a configured
``--instance``), runs, and closes it again.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

from recordspine.cli.utils import open_instance, output_dict, output_rows, parse_params
from recordspine.core.flags import ExecFlag
from recordspine.core.logging import configure_logging

app = Typer(
    name="recordspine",
    help="record-spine: structured record operations over MySQL and SQLite.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DsnOption = typer.Option(None, "--dsn", help="Connection DSN (e.g. 'sqlite:app.db').")
UserOption = typer.Option(None, "--user", "-u", help="Database user.")
PasswordOption = typer.Option(None, "--password", "-p", help="Database password.")
InstanceOption = typer.Option("main", "--instance", "-i", help="Configured connection name.")
JsonOption = typer.Option(False, "--json", help="JSON output.")
ParamOption = typer.Option(None, "--param", "-P", help="Bind parameter NAME=VALUE (repeatable).")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("record-spine")
        except PackageNotFoundError:
            v = "unknown"
        typer.echo(f"record-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level."),
) -> None:
    """record-spine CLI: query and inspect databases."""
    configure_logging(level=log_level, json_format=False, service="record-spine-cli")


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def query(
    sql: str = typer.Argument(..., help="SQL statement returning rows."),
    params: list[str] | None = ParamOption,
    first: bool = typer.Option(False, "--first", help="Only the first row."),
    dsn: str | None = DsnOption,
    user: str | None = UserOption,
    password: str | None = PasswordOption,
    instance: str = InstanceOption,
    json_out: bool = JsonOption,
) -> None:
    """Run a query and print its rows."""
    flags = ExecFlag.RETURN_FIRST_RESULT_ONLY if first else ExecFlag.NONE
    bound = parse_params(params)
    with open_instance(instance, dsn, user, password) as db:
        rows = db.query(sql, bound, flags)
    output_rows(rows, as_json=json_out)


@app.command("exec")
def exec_(
    sql: str = typer.Argument(..., help="SQL statement to execute."),
    params: list[str] | None = ParamOption,
    dsn: str | None = DsnOption,
    user: str | None = UserOption,
    password: str | None = PasswordOption,
    instance: str = InstanceOption,
    json_out: bool = JsonOption,
) -> None:
    """Execute a statement and print the affected-row count."""
    bound = parse_params(params)
    with open_instance(instance, dsn, user, password) as db:
        affected = db.exec(sql, bound)
        last_id = db.get_last_insert_id()
    output_dict({"rows_affected": affected, "last_insert_id": last_id}, as_json=json_out)


@app.command()
def tables(
    dsn: str | None = DsnOption,
    user: str | None = UserOption,
    password: str | None = PasswordOption,
    instance: str = InstanceOption,
    json_out: bool = JsonOption,
) -> None:
    """List the tables of the database."""
    with open_instance(instance, dsn, user, password) as db:
        names = db.get_schema()
    output_rows([{"table": name} for name in names], as_json=json_out, title="Tables")


@app.command()
def describe(
    table: str = typer.Argument(..., help="Table name."),
    dsn: str | None = DsnOption,
    user: str | None = UserOption,
    password: str | None = PasswordOption,
    instance: str = InstanceOption,
    json_out: bool = JsonOption,
) -> None:
    """Show the columns of a table."""
    with open_instance(instance, dsn, user, password) as db:
        columns = db.get_table_schema(table)
    output_rows(columns, as_json=json_out, title=table)
