"""
Structured logging for spine-schedule.

Manifesto:
    Scheduler events are only observable through logs: there is no exit
    code, API or return value for a tick. Every outcome (completed,
    failed, invalid, lease denied, store failure) is a structured event
    with the schedule index and runner name attached, so a log pipeline
    can answer "which node ran job X at 10:05?" with a query.

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="scheduler")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso, utc)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. service name
          5. JSONRenderer (or ConsoleRenderer for a tty)

Examples:
    >>> from spine_schedule.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, service="billing-node-1")
    >>> logger = get_logger(__name__)
    >>> logger.info("schedule_completed", runs="jobs.cleanup", index=0)

Tags:
    logging, structlog, observability, spine-schedule

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


def _service_stamper(service: str) -> Processor:
    def stamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return stamp


def _processors(service: str, json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _service_stamper(service),
    ]
    if json_format:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "spine-schedule",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger for a scheduler node.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False, JSON unless
            stdout is a tty when None
        service: Value of the ``service`` key on every event
        add_timestamp: Prefix events with a UTC ISO timestamp
    """
    numeric_level = logging.getLevelNamesMapping()[level.upper()]
    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=_processors(service, json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # APScheduler logs through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


__all__ = ["configure_logging", "get_logger"]
