"""
Explicit job results.

A job may return ``Ok(value)`` or ``Err(error)`` instead of leaning on the
executor's classification of plain return values. ``Err`` is a failure,
whether returned directly or as what an awaitable resolves to; ``Ok`` is a
success.

Examples:
    >>> from spine_schedule.core.result import Ok, Err
    >>> def purge(schedule):
    ...     removed = delete_rows(schedule.data["table"])
    ...     if removed < 0:
    ...         return Err(ValueError("purge failed"))
    ...     return Ok(removed)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Job finished; ``value`` is informational only."""

    value: T = None


@dataclass(frozen=True, slots=True)
class Err:
    """Job failed with ``error``, which is what the failure report carries."""

    error: Any


Result = Ok[Any] | Err

__all__ = ["Ok", "Err", "Result"]
