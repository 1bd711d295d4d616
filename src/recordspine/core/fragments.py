"""
SQL fragment builders.

A statement is assembled from independent fragments (WHERE, SET,
ORDER BY + LIMIT) that share one parameter bag. Each builder appends its
bind values to the caller's ``params`` dict and returns the SQL text; the
bag then goes to the executor with the finished statement.

Bind names are prefixed by role (``w_`` for WHERE, ``s_`` for SET) so the
same column may appear in both fragments of one UPDATE.

Examples:
    >>> params = {}
    >>> build_set({"Email": "a@x.com"}, params)
    'SET `Email` = :s_Email'
    >>> build_where({"UserId": 1, "Name": "John"}, params)
    'WHERE `UserId` = :w_UserId AND `Name` = :w_Name'
    >>> params
    {'s_Email': 'a@x.com', 'w_UserId': 1, 'w_Name': 'John'}
    >>> build_order_limit(["Name DESC", "UserId"], limit=10, offset=20)
    'ORDER BY `Name` DESC, `UserId` ASC LIMIT 10 OFFSET 20'

Guardrails:
    An empty WHERE map produces an empty fragment, so the statement
    targets the whole table.

Tags:
    sql, fragments, where, set, order-by, limit, record-spine
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from recordspine.core.errors import ValidationError
from recordspine.core.identifiers import DEFAULT_QUOTE_CHAR, clean_name, param_name


@dataclass
class Fragment:
    """SQL text plus the parameter bag it binds against."""

    sql: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    def append(self, *parts: str) -> Fragment:
        """Append non-empty parts separated by a single space."""
        self.sql = " ".join(p for p in (self.sql, *parts) if p)
        return self


def bind(params: dict[str, Any], name: str, value: Any) -> str:
    """
    Add ``value`` to ``params`` under ``name`` and return the name.

    Raises:
        ValidationError: Another key already produced ``name`` (``"u.Email"``
            and ``"u_Email"``, ``"Name"`` and ``"Name "``)
    """
    if name in params:
        raise ValidationError(
            f"Two keys map to the bind name {name!r}",
            field="params",
            value=name,
        )
    params[name] = value
    return name


def _assignments(
    data: Mapping[str, Any],
    params: dict[str, Any],
    prefix: str,
    quote_char: str,
) -> list[str]:
    parts = []
    for column, value in data.items():
        name = bind(params, param_name(prefix, column), value)
        parts.append(f"{clean_name(column, quote_char=quote_char)} = :{name}")
    return parts


def build_where(
    where: Mapping[str, Any] | None,
    params: dict[str, Any],
    quote_char: str = DEFAULT_QUOTE_CHAR,
) -> str:
    """``WHERE col = :w_col AND ...`` (equality only); empty map gives ``""``."""
    if not where:
        return ""
    return "WHERE " + " AND ".join(_assignments(where, params, "w", quote_char))


def build_set(
    data: Mapping[str, Any] | None,
    params: dict[str, Any],
    quote_char: str = DEFAULT_QUOTE_CHAR,
) -> str:
    """``SET col = :s_col, ...``; empty map gives ``""``."""
    if not data:
        return ""
    return "SET " + ", ".join(_assignments(data, params, "s", quote_char))


def build_order_limit(
    order_by: Sequence[str] | str | None = None,
    limit: int | str | None = None,
    offset: int | str | None = None,
    quote_char: str = DEFAULT_QUOTE_CHAR,
) -> str:
    """
    ``ORDER BY col dir, ... LIMIT n OFFSET m``.

    Each ``order_by`` token is ``"column[ direction]"``; a missing or
    ``asc`` direction sorts ascending, anything else descending. OFFSET is
    only emitted together with LIMIT.
    """
    if isinstance(order_by, str):
        order_by = [order_by]

    terms = []
    for token in order_by or ():
        pieces = token.split()
        if not pieces:
            continue
        direction = "ASC"
        if len(pieces) > 1 and pieces[1].lower() != "asc":
            direction = "DESC"
        terms.append(f"{clean_name(pieces[0], quote_char=quote_char)} {direction}")

    parts = []
    if terms:
        parts.append("ORDER BY " + ", ".join(terms))
    if limit is not None:
        parts.append(f"LIMIT {int(limit)}")
        if offset is not None:
            parts.append(f"OFFSET {int(offset)}")
    return " ".join(parts)


__all__ = [
    "Fragment",
    "bind",
    "build_where",
    "build_set",
    "build_order_limit",
]
