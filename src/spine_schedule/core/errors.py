"""
Structured error types for spine-schedule.

Every error raised or reported by the scheduler derives from
:class:`ScheduleError` and carries a category, structured context and an
optional chained cause, so a log line can say *which* schedule failed and
*why* without string parsing.

Manifesto:
    - **Typed hierarchy:** configuration, coordination and job failures are
      different things and are handled at different boundaries
    - **Rich context:** errors carry the schedule index, runner name and lock
      key when they are known
    - **Error chaining:** the original exception is preserved as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       ScheduleError                          │
        │               (category, context, cause)                     │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigError            CoordinationError                    │
        │  (CONFIG)               (COORDINATION)                       │
        │     │                                                        │
        │  MissingRunnerError   ─ raised, halts the tick               │
        │  InvalidRunnerError   ─ reported, tick abandoned             │
        │  IntervalParseError   ─ raised at registration               │
        └──────────────────────────────────────────────────────────────┘

Propagation:
    Only ``MissingRunnerError`` (at tick time) and ``ConfigError`` raised
    during registration are allowed to escape. Everything else is caught at
    the executor or lease-coordinator boundary and turned into a log line.

Tags:
    error-handling, exception-hierarchy, error-context, spine-schedule

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"
    COORDINATION = "COORDINATION"
    JOB = "JOB"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a :class:`ScheduleError`.

    Only non-``None`` fields end up in :meth:`to_dict`, so callers set just
    what they know.

    Attributes:
        schedule_index: Position of the schedule in the configured list
        runs: Runner identity (dot-notated name or callable qualname)
        interval: Interval expression of the schedule
        lock_key: Shared-store key involved in a coordination failure
        metadata: Additional key-value pairs
    """

    schedule_index: int | None = None
    runs: str | None = None
    interval: str | None = None
    lock_key: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["schedule_index", "runs", "interval", "lock_key"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ScheduleError(Exception):
    """
    Base exception for all spine-schedule errors.

    Subclasses set ``default_category``; instances may override it.

    Examples:
        >>> error = ScheduleError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(schedule_index=3).context.schedule_index
        3
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ScheduleError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConfigError("Bad schedule").with_context(schedule_index=2)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "context": self.context.to_dict(),
        }
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ScheduleError):
    """Invalid or incomplete schedule configuration."""

    default_category = ErrorCategory.CONFIG


class MissingRunnerError(ConfigError):
    """A schedule has no ``runs`` parameter.

    Raised immediately when the schedule is executed; never routed through
    the outcome reporter.
    """


class InvalidRunnerError(ConfigError):
    """A schedule's ``runs`` did not resolve to a callable.

    Reported through the outcome reporter's error path; the tick is
    abandoned and other schedules are unaffected.
    """


class IntervalParseError(ConfigError):
    """An interval expression could not be parsed."""

    def __init__(self, text: str, message: str | None = None):
        super().__init__(message or f"Could not parse interval expression: {text!r}")
        self.text = text
        self.context.interval = text


# =============================================================================
# RUNTIME ERRORS
# =============================================================================


class CoordinationError(ScheduleError):
    """The shared store failed during lease acquisition.

    Treated as a lease denial (fail-closed).
    """

    default_category = ErrorCategory.COORDINATION


def categorize_error(error: Any, default: ErrorCategory = ErrorCategory.INTERNAL) -> ErrorCategory:
    """Return the category of *error*, *default* for anything foreign."""
    if isinstance(error, ScheduleError):
        return error.category
    return default


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ScheduleError",
    "ConfigError",
    "MissingRunnerError",
    "InvalidRunnerError",
    "IntervalParseError",
    "CoordinationError",
    "categorize_error",
]
