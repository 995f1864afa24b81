"""Result wrapper for metrics that may be unavailable on a given host."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Reading(Generic[T]):
    """
    A metric value, or the reason it could not be read.

    Exactly one of ``value`` and ``reason`` is meaningful: an available
    reading carries a value, an unavailable one carries a reason.
    """

    value: T | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Reading[T]":
        return cls(value=value)

    @classmethod
    def unavailable(cls, reason: str) -> "Reading[T]":
        return cls(reason=reason)

    @property
    def available(self) -> bool:
        """True if a value was read."""
        return self.reason is None

    def value_or(self, default: Any) -> Any:
        """Return the value, or default when unavailable."""
        return self.value if self.available else default
