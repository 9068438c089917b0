"""
Result values returned by every simulator operation.

An operation either succeeds with :class:`Ok` carrying the engine's result
(``None`` for operations without one) or fails with :class:`Err` carrying a
:class:`~qcontrol.errors.QControlError`. Failures are never raised by the
operation itself; callers who prefer exceptions use :meth:`unwrap`.

    >>> sim = Simulator(1)
    >>> sim.h(0)
    Ok(value=None)
    >>> sim.prob(0).unwrap()
    0.5
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from .errors import QControlError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))


@dataclass(frozen=True)
class Err:
    """Failed outcome; ``error`` says why."""

    error: QControlError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    def unwrap(self):
        """Raise the carried error."""
        raise self.error

    def unwrap_or(self, default: Any) -> Any:
        return default

    def map(self, fn: Callable) -> "Err":
        return self


Result = Union[Ok[T], Err]
