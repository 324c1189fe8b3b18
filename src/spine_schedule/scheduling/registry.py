"""Schedule registry: one parsed spec and one live timer per schedule.

The registry owns the index-ordered ``ScheduleEntry`` records for the
process lifetime. Registration is all-or-nothing: if any interval fails to
parse, timers created earlier in the same call are cancelled and the error
propagates, so a node never runs with a silently reduced schedule set.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any, Protocol

from spine_schedule.core.errors import ConfigError, ScheduleError
from spine_schedule.core.logging import get_logger
from spine_schedule.scheduling.intervals import ScheduleSpec, TimerHandle
from spine_schedule.scheduling.models import Schedule

logger = get_logger(__name__)

TickCallback = Callable[[int], Awaitable[Any]]


class Timer(Protocol):
    """Interval parser and repeating-timer primitive."""

    def parse(self, text: str) -> ScheduleSpec:
        ...

    def schedule_repeating(
        self,
        spec: ScheduleSpec,
        callback: Callable[[], Any],
        name: str | None = None,
    ) -> TimerHandle:
        ...

    def start(self) -> None:
        ...

    def shutdown(self, wait: bool = False) -> None:
        ...

    @property
    def running(self) -> bool:
        ...


@dataclass
class ScheduleEntry:
    """A registered schedule with its parsed spec and live timer."""

    schedule: Schedule
    spec: ScheduleSpec
    handle: TimerHandle


class ScheduleRegistry:
    """Parse configured schedules and hold their timers.

    Example:
        >>> registry = ScheduleRegistry(IntervalTimer())
        >>> engine = TriggerEngine(registry, coordinator, executor)
        >>> registry.register(schedules, engine.on_tick)
        >>> # … shutdown …
        >>> registry.cancel_all()
    """

    def __init__(self, timer: Timer) -> None:
        self.timer = timer
        self._entries: list[ScheduleEntry] = []
        self._registered = False

    def register(
        self,
        schedules: Sequence[Schedule] | None,
        on_tick: TickCallback,
    ) -> list[ScheduleEntry]:
        """Create one repeating timer per schedule, bound to its index.

        An empty or missing list is a no-op.

        Raises:
            ConfigError: If schedules were already registered, an index does
                not match its list position, or an interval fails to parse.
        """
        if self._registered:
            raise ConfigError("Schedules are already registered")

        if not schedules:
            self._registered = True
            logger.info("schedules_registered", count=0)
            return []

        entries: list[ScheduleEntry] = []
        try:
            for position, schedule in enumerate(schedules):
                entries.append(self._register_one(position, schedule, on_tick))
        except ScheduleError as e:
            self._cancel(entries)
            if e.context.schedule_index is None:
                e.with_context(schedule_index=position)
            raise
        except Exception:
            self._cancel(entries)
            raise

        self._entries = entries
        self._registered = True
        logger.info("schedules_registered", count=len(entries))
        return list(entries)

    def _register_one(self, position: int, schedule: Schedule, on_tick: TickCallback) -> ScheduleEntry:
        if schedule.index != position:
            raise ConfigError(
                f"Schedule index {schedule.index} does not match its position {position}"
            )

        spec = self.timer.parse(schedule.interval)
        handle = self.timer.schedule_repeating(
            spec,
            partial(on_tick, schedule.index),
            name=f"schedules:{schedule.index}",
        )

        if (
            not schedule.bypasses_lock
            and spec.interval_seconds is not None
            and spec.interval_seconds < schedule.min_interval
        ):
            logger.warning(
                "interval_shorter_than_lease",
                index=schedule.index,
                interval=schedule.interval,
                min_interval=schedule.min_interval,
            )

        logger.debug(
            "schedule_registered",
            index=schedule.index,
            interval=schedule.interval,
            runs=schedule.runner_name,
            kind=spec.kind,
        )
        return ScheduleEntry(schedule=schedule, spec=spec, handle=handle)

    @staticmethod
    def _cancel(entries: list[ScheduleEntry]) -> None:
        for entry in entries:
            entry.handle.cancel()

    def get(self, index: int) -> ScheduleEntry:
        """Entry for schedule *index*.

        Raises:
            KeyError: If no schedule with that index is registered.
        """
        if not 0 <= index < len(self._entries):
            raise KeyError(f"No schedule registered at index {index}")
        return self._entries[index]

    @property
    def entries(self) -> list[ScheduleEntry]:
        return list(self._entries)

    @property
    def is_registered(self) -> bool:
        return self._registered

    def cancel_all(self) -> int:
        """Cancel every timer. Returns the number of timers cancelled."""
        count = 0
        for entry in self._entries:
            if not entry.handle.cancelled:
                entry.handle.cancel()
                count += 1
        if count:
            logger.info("timers_cancelled", count=count)
        return count

    def __len__(self) -> int:
        return len(self._entries)
