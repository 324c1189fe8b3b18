"""
Core primitives for spine-schedule: errors, results, logging, shared store.
"""

from .errors import (
    ConfigError,
    CoordinationError,
    ErrorCategory,
    ErrorContext,
    IntervalParseError,
    InvalidRunnerError,
    MissingRunnerError,
    ScheduleError,
)
from .logging import configure_logging, get_logger
from .result import Err, Ok, Result
from .store import InMemoryStore, RedisStore, SharedStore

__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ScheduleError",
    "ConfigError",
    "MissingRunnerError",
    "InvalidRunnerError",
    "IntervalParseError",
    "CoordinationError",
    "Ok",
    "Err",
    "Result",
    "configure_logging",
    "get_logger",
    "SharedStore",
    "InMemoryStore",
    "RedisStore",
]
