"""
Result envelope for recoverable driver outcomes.

Statement execution is the only place record-spine treats a failure as a
value: the execution flags decide afterwards whether a driver error is
raised or recorded and turned into ``False``. The executor therefore runs
the driver round-trip through :func:`try_result` and matches on the
outcome:

    match try_result(run, catch=adapter.driver_errors):
        case Err(error):  ...
        case Ok(outcome): ...

Validation and capability errors never travel in a Result; they are raised
where they are detected.

Examples:
    >>> Ok(3).map(lambda n: n + 1).unwrap()
    4
    >>> Err(ValueError("boom")).unwrap_or(0)
    0

Tags:
    result-pattern, error-handling, record-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """The driver call completed; ``value`` is what it produced."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """The driver raised one of the caught exception types."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Re-raise the captured driver exception."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Err[U]:
        return Err(self.error)


Result = Ok[T] | Err[T]


def try_result(
    f: Callable[[], T],
    *,
    catch: tuple[type[Exception], ...] = (Exception,),
) -> Result[T]:
    """
    Call ``f`` and wrap what happens.

    Exceptions of the ``catch`` types become ``Err``; anything else (a bug,
    a validation error) propagates untouched.

    Example:
        >>> try_result(lambda: int("x"), catch=(ValueError,)).is_err()
        True
    """
    try:
        value = f()
    except catch as exc:
        return Err(exc)
    return Ok(value)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "try_result",
]
