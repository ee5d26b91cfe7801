"""Result values returned by the bookkeeping facade.

Domain failures are data: callers get either ``Ok(value)`` or
``Err(errors, error_type)`` and can branch on ``isinstance``. Configuration
errors and programming errors are not captured and propagate as exceptions.
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from bilanz.domain.errors import DomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying error messages and the error category."""

    errors: tuple[str, ...]
    error_type: type[DomainError] = DomainError

    @property
    def success(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return "; ".join(self.errors)


Result = Union[Ok[T], Err]


def capture(fn: Callable[..., T], *args, **kwargs) -> "Result[T]":
    """Run ``fn`` and convert a raised DomainError into ``Err``."""
    try:
        return Ok(fn(*args, **kwargs))
    except DomainError as exc:
        return Err(errors=(str(exc),), error_type=type(exc))
