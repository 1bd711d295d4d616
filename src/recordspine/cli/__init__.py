"""
CLI layer for record-spine.

A Typer application over :class:`~recordspine.core.database.Database`.
This package handles only terminal transport: argument parsing, coloured
output and table formatting.

Entry point::

    recordspine --help
"""

from recordspine.cli.app import app

__all__ = ["app"]
