"""Explicit success/failure values for the translation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from .errors import ProxyError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the error that prevented producing it."""

    value: Optional[T] = None
    error: Optional[ProxyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def Ok(value: Any) -> Result:
    return Result(value=value)


def Err(error: ProxyError) -> Result:
    return Result(error=error)


__all__ = ["Result", "Ok", "Err"]
