"""
Execution flags.

A statement call takes one :class:`ExecFlag` value composed with ``|``. Each
bit is independent; the executor reads them in a fixed precedence:

    RETURN_BOOL > RETURN_ROWS_AFFECTED > RETURN_LAST_INSERT_ID > rows

The integer layout is stable and may be persisted or passed from other
processes (``ExecFlag(48) == RETURN_BOOL | RETURN_ROWS_AFFECTED``).

Examples:
    >>> flags = ExecFlag.RETURN_BOOL | ExecFlag.NO_THROW_ON_ERROR
    >>> decode_flags(flags)
    ['NO_THROW_ON_ERROR', 'RETURN_BOOL']
    >>> with_default_shape(ExecFlag.NONE, ExecFlag.RETURN_ROWS_AFFECTED)
    <ExecFlag.RETURN_ROWS_AFFECTED: 32>

Tags:
    flags, execution, result-shape, record-spine
"""

from __future__ import annotations

import enum


class ExecFlag(enum.Flag):
    """Bitwise execution options for a single statement call."""

    NONE = 0
    DEBUG_MODE = 1                  # capture a DebugRecord, suppress driver errors
    NO_THROW_ON_ERROR = 2           # suppress driver errors
    USE_ROW_SETS = 4                # one row list per result set
    MERGED_ROW_SETS = 8             # all result sets flattened
    RETURN_BOOL = 16
    RETURN_ROWS_AFFECTED = 32
    RETURN_LAST_INSERT_ID = 64
    RETURN_FIRST_RESULT_ONLY = 128
    INSERT_IGNORE = 256
    ON_DUPLICATE_UPDATE = 512
    DISABLE_PLACEHOLDERS = 1024


SCALAR_SHAPES = (
    ExecFlag.RETURN_BOOL
    | ExecFlag.RETURN_ROWS_AFFECTED
    | ExecFlag.RETURN_LAST_INSERT_ID
)

SUPPRESSING_FLAGS = (
    ExecFlag.DEBUG_MODE
    | ExecFlag.RETURN_BOOL
    | ExecFlag.NO_THROW_ON_ERROR
)


def as_flags(flags: ExecFlag | int | None) -> ExecFlag:
    """Accept an ``ExecFlag``, a raw integer bitmask or ``None``."""
    if flags is None:
        return ExecFlag.NONE
    if isinstance(flags, ExecFlag):
        return flags
    return ExecFlag(int(flags))


def has_scalar_shape(flags: ExecFlag) -> bool:
    """True when the caller asked for a bool, a count or an insert id."""
    return bool(flags & SCALAR_SHAPES)


def suppresses_errors(flags: ExecFlag) -> bool:
    """True when driver failures are recorded and turned into ``False``."""
    return bool(flags & SUPPRESSING_FLAGS)


def with_default_shape(flags: ExecFlag | int | None, default: ExecFlag) -> ExecFlag:
    """Add ``default`` unless a scalar result shape was already requested."""
    flags = as_flags(flags)
    if has_scalar_shape(flags):
        return flags
    return flags | default


def decode_flags(flags: ExecFlag | int | None) -> list[str]:
    """Names of the set flags in bit order."""
    flags = as_flags(flags)
    return [member.name for member in ExecFlag if member.value and member in flags]


__all__ = [
    "ExecFlag",
    "SCALAR_SHAPES",
    "SUPPRESSING_FLAGS",
    "as_flags",
    "has_scalar_shape",
    "suppresses_errors",
    "with_default_shape",
    "decode_flags",
]
