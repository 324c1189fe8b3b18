"""Outcome reporting for schedule executions.

Outcomes are only ever observable through logs. Each report is one
structured event carrying a UTC timestamp, the job identity, the schedule
index and, when present, the schedule's ``data`` payload as JSON.

    schedule_completed   info   job finished successfully
    schedule_failed      error  job raised, rejected, or returned an error value
    schedule_invalid     error  ``runs`` did not resolve to a callable
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from spine_schedule.core.errors import ErrorCategory, categorize_error
from spine_schedule.core.logging import get_logger
from spine_schedule.core.timestamps import get_timestamp
from spine_schedule.scheduling.models import Schedule

logger = get_logger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of one executor → reporter hand-off. Never persisted."""

    schedule: Schedule
    succeeded: bool
    error: Any = None


def serialize_data(data: Any) -> str | None:
    """Readable JSON for a schedule payload, ``None`` when there is none."""
    if not data:
        return None
    try:
        return json.dumps(data, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return repr(data)


def describe_error(error: Any) -> str:
    if isinstance(error, BaseException):
        return f"{type(error).__name__}: {error}"
    return repr(error)


class OutcomeReporter:
    """Log success/failure of schedule executions."""

    def __init__(self, log: Any = None) -> None:
        self.log = log if log is not None else logger

    def _fields(self, schedule: Schedule) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "at": get_timestamp(),
            "runs": schedule.runner_name,
            "index": schedule.index,
        }
        data = serialize_data(schedule.data)
        if data is not None:
            fields["data"] = data
        return fields

    @staticmethod
    def _message(fields: dict[str, Any], verb: str) -> str:
        data = f" {fields['data']}" if "data" in fields else ""
        return f"{fields['at']}: Schedule for '{fields['runs']}'{data} {verb}."

    def report_success(self, schedule: Schedule) -> Outcome:
        fields = self._fields(schedule)
        self.log.info(
            "schedule_completed",
            message=self._message(fields, "has completed successfully"),
            **fields,
        )
        return Outcome(schedule=schedule, succeeded=True)

    def report_failure(self, schedule: Schedule, error: Any) -> Outcome:
        fields = self._fields(schedule)
        extra: dict[str, Any] = {
            "error": describe_error(error),
            "category": categorize_error(error, default=ErrorCategory.JOB).value,
        }
        if isinstance(error, BaseException):
            extra["exc_info"] = error
        self.log.error(
            "schedule_failed",
            message=self._message(fields, "has failed to complete"),
            **fields,
            **extra,
        )
        return Outcome(schedule=schedule, succeeded=False, error=error)

    def report_invalid(self, schedule: Schedule, error: Any) -> Outcome:
        """Configuration error path: ``runs`` is not invocable."""
        fields = self._fields(schedule)
        self.log.error(
            "schedule_invalid",
            message=(
                f"{fields['at']}: Schedule invalid, expected a function or a registered "
                f"dot-notated job name - {schedule.describe()}"
            ),
            error=describe_error(error),
            **fields,
        )
        return Outcome(schedule=schedule, succeeded=False, error=error)
