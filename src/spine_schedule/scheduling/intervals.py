"""Interval expressions and the repeating timer.

Manifesto:
    Every node must fire a schedule's tick at the *same* logical instant,
    otherwise the lease race in the trigger engine is decided by clock
    phase rather than by the store. Interval expressions are therefore
    anchored to the Unix epoch in UTC: "every 5 minutes" fires at :00,
    :05, :10 on every node, no matter when each process started.

Supported expressions (case-insensitive)::

    every 30 seconds          every second
    every 5 minutes           every minute
    every 2 hours             every hour
    every 3 days              every day
    every 1 week              every week
    at 10:15                  every day at 6:30 pm
    */5 * * * *               (five-field crontab)

Architecture:
    ::

        parse(text) ──► ScheduleSpec(text, kind, trigger)
                                 │
        IntervalTimer.schedule_repeating(spec, callback)
                                 │
                                 ▼
                 AsyncIOScheduler.add_job(callback, trigger)
                                 │
                                 ▼
                       TimerHandle.cancel()

Tags:
    spine-schedule, scheduling, apscheduler, interval, cron, timer

Doc-Types:
    api-reference
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from spine_schedule.core.errors import IntervalParseError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Overlapping ticks of one schedule are allowed; this only bounds runaway jobs.
OVERLAP_LIMIT = 1000

_UNIT_SECONDS = {
    "second": 1,
    "sec": 1,
    "minute": 60,
    "min": 60,
    "hour": 3600,
    "hr": 3600,
    "day": 86400,
    "week": 604800,
}

_EVERY_N_RE = re.compile(r"^every\s+(?P<count>\d+)\s+(?P<unit>second|sec|minute|min|hour|hr|day|week)s?$")
_EVERY_UNIT_RE = re.compile(r"^every\s+(?P<unit>second|minute|hour|day|week)$")
_AT_TIME_RE = re.compile(
    r"^(?:every\s+day\s+)?at\s+(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm)?$"
)


@dataclass(frozen=True)
class ScheduleSpec:
    """A parsed recurrence: the source text and its APScheduler trigger."""

    text: str
    kind: str  # interval, daily, cron
    trigger: BaseTrigger
    interval_seconds: int | None = None

    def next_fire_times(self, count: int = 5, now: datetime | None = None) -> list[datetime]:
        """Preview the next *count* fire times after *now*."""
        now = now or datetime.now(UTC)
        times: list[datetime] = []
        previous = None
        for _ in range(count):
            fire_time = self.trigger.get_next_fire_time(previous, now)
            if fire_time is None:
                break
            times.append(fire_time)
            previous = fire_time
            now = fire_time
        return times


def _resolve_timezone(timezone: str | tzinfo) -> tzinfo:
    if isinstance(timezone, tzinfo):
        return timezone
    if timezone.upper() == "UTC":
        return UTC
    return ZoneInfo(timezone)


def parse(text: str, timezone: str | tzinfo = "UTC") -> ScheduleSpec:
    """Parse a human-readable interval expression.

    Raises:
        IntervalParseError: If the text matches no supported form.
    """
    if not isinstance(text, str) or not text.strip():
        raise IntervalParseError(str(text), "Interval expression is empty")

    normalized = " ".join(text.strip().lower().split())
    tz = _resolve_timezone(timezone)

    match = _EVERY_N_RE.match(normalized)
    if match:
        count = int(match["count"])
        if count < 1:
            raise IntervalParseError(text, f"Interval must be positive: {text!r}")
        return _interval_spec(text, count * _UNIT_SECONDS[match["unit"]])

    match = _EVERY_UNIT_RE.match(normalized)
    if match:
        return _interval_spec(text, _UNIT_SECONDS[match["unit"]])

    match = _AT_TIME_RE.match(normalized)
    if match:
        hour = int(match["hour"])
        minute = int(match["minute"] or 0)
        meridiem = match["meridiem"]
        if meridiem:
            if not 1 <= hour <= 12:
                raise IntervalParseError(text, f"Invalid 12-hour time: {text!r}")
            hour = hour % 12 + (12 if meridiem == "pm" else 0)
        if hour > 23 or minute > 59:
            raise IntervalParseError(text, f"Invalid time of day: {text!r}")
        return ScheduleSpec(
            text=text,
            kind="daily",
            trigger=CronTrigger(hour=hour, minute=minute, second=0, timezone=tz),
        )

    if len(normalized.split()) == 5:
        try:
            trigger = CronTrigger.from_crontab(normalized, timezone=tz)
        except ValueError as e:
            raise IntervalParseError(text, f"Invalid crontab expression {text!r}: {e}") from e
        return ScheduleSpec(text=text, kind="cron", trigger=trigger)

    raise IntervalParseError(text)


def _interval_spec(text: str, seconds: int) -> ScheduleSpec:
    trigger = IntervalTrigger(seconds=seconds, start_date=EPOCH, timezone=UTC)
    return ScheduleSpec(text=text, kind="interval", trigger=trigger, interval_seconds=seconds)


class TimerHandle:
    """Live repeating timer for one schedule."""

    def __init__(self, job: Any):
        self._job = job
        self._cancelled = False

    @property
    def job_id(self) -> str:
        return self._job.id

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def next_fire_time(self) -> datetime | None:
        # Pending jobs (scheduler not started yet) have no next_run_time
        return getattr(self._job, "next_run_time", None)

    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        try:
            self._job.remove()
        except JobLookupError:
            logger.debug("Timer %s already removed", self._job.id)


class IntervalTimer:
    """Repeating timers on an APScheduler ``AsyncIOScheduler``.

    Example::

        >>> timer = IntervalTimer()
        >>> spec = timer.parse("every 5 minutes")
        >>> handle = timer.schedule_repeating(spec, my_async_callback)
        >>> timer.start()          # inside a running event loop
        >>> # … later …
        >>> handle.cancel()
        >>> timer.shutdown()
    """

    name = "apscheduler"

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        timezone: str | tzinfo = "UTC",
    ) -> None:
        self.timezone = _resolve_timezone(timezone)
        self._scheduler = scheduler or AsyncIOScheduler(timezone=self.timezone)
        self._counter = 0
        self._running = False

    def parse(self, text: str) -> ScheduleSpec:
        return parse(text, self.timezone)

    def schedule_repeating(
        self,
        spec: ScheduleSpec,
        callback: Callable[[], Any],
        name: str | None = None,
    ) -> TimerHandle:
        """Fire *callback* at every due time of *spec* until cancelled."""
        self._counter += 1
        job = self._scheduler.add_job(
            callback,
            trigger=spec.trigger,
            id=f"spine-schedule-{self._counter}",
            name=name or spec.text,
            max_instances=OVERLAP_LIMIT,
            coalesce=True,
            misfire_grace_time=None,
        )
        return TimerHandle(job)

    def start(self) -> None:
        """Start firing timers. Must be called with a running event loop."""
        if not self._running:
            if not self._scheduler.running:
                self._scheduler.start()
            self._running = True
            logger.info("IntervalTimer started")

    def shutdown(self, wait: bool = False) -> None:
        """Stop firing timers.

        ``AsyncIOScheduler`` finishes its own shutdown on the next loop
        iteration; ``running`` reports False as soon as this returns.
        """
        if self._running:
            self._running = False
            self._scheduler.shutdown(wait=wait)
            logger.info("IntervalTimer stopped")

    @property
    def running(self) -> bool:
        return self._running

    def job_count(self) -> int:
        return len(self._scheduler.get_jobs())
