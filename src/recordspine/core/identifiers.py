"""
Identifier sanitizing and parameter naming.

Values always travel as bound parameters; identifiers cannot, so every
table and column name is reduced to ``[A-Za-z0-9_.]`` before it is placed in
SQL text. This is the only injection defense for identifiers and every
builder goes through :func:`clean_name`.

Examples:
    >>> clean_name("User")
    '`User`'
    >>> clean_name("main.User; DROP TABLE x")
    '`main`.`UserDROPTABLEx`'
    >>> clean_name("first name", quote=False)
    'firstname'
    >>> param_name("w", "u.Email")
    'w_u_Email'
    >>> param_name("v", "Name", row=2)
    'v_2_Name'

Tags:
    sql-injection, identifiers, sanitizer, record-spine
"""

from __future__ import annotations

import re

from recordspine.core.errors import EmptyInputError

_UNSAFE = re.compile(r"[^A-Za-z0-9_.]")

DEFAULT_QUOTE_CHAR = "`"


def clean_name(name: str, quote: bool = True, quote_char: str = DEFAULT_QUOTE_CHAR) -> str:
    """
    Strip unsafe characters and optionally quote each dot segment.

    Args:
        name: Raw identifier, optionally ``schema.table`` qualified
        quote: Wrap each segment in ``quote_char``
        quote_char: Dialect identifier quote

    Raises:
        EmptyInputError: Nothing (or an empty segment) is left after cleaning
    """
    cleaned = _UNSAFE.sub("", str(name))
    segments = cleaned.split(".")
    if not cleaned or any(not segment for segment in segments):
        raise EmptyInputError(
            f"Invalid identifier: {name!r}",
            field="identifier",
            value=name,
        )
    if not quote:
        return cleaned
    return ".".join(f"{quote_char}{segment}{quote_char}" for segment in segments)


def param_name(prefix: str, column: str, row: int | None = None) -> str:
    """Build a role-prefixed bind name: ``w_<col>``, ``s_<col>``, ``v_<row>_<col>``."""
    column = clean_name(column, quote=False).replace(".", "_")
    if row is None:
        return f"{prefix}_{column}"
    return f"{prefix}_{row}_{column}"


__all__ = [
    "DEFAULT_QUOTE_CHAR",
    "clean_name",
    "param_name",
]
