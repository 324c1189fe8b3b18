"""Trigger engine: decides, per due tick, whether this node runs the job.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TRIGGER ENGINE                                                               │
│                                                                               │
│   timer fires on_tick(i)                                                      │
│        │                                                                      │
│        ▼                                                                      │
│   multi / no_lock? ──yes──► executor.run(schedule)    (every node runs)       │
│        │ no                                                                   │
│        ▼                                                                      │
│   coordinator.acquire(i, ttl=min_interval)                                    │
│        ├── granted ──► executor.run(schedule)         (exactly one node)      │
│        └── denied  ──► yield until the next due tick  (no retry)              │
│                                                                               │
│  A node's own unexpired lease also denies it: ticks closer together than      │
│  min_interval collapse to one single-node run per min_interval window.        │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from spine_schedule.core.logging import get_logger
from spine_schedule.core.timestamps import utc_now
from spine_schedule.scheduling.executor import JobExecutor
from spine_schedule.scheduling.lock_manager import LeaseCoordinator
from spine_schedule.scheduling.reporter import Outcome

if TYPE_CHECKING:
    from spine_schedule.scheduling.models import Schedule
    from spine_schedule.scheduling.registry import ScheduleRegistry

logger = get_logger(__name__)


@dataclass
class SchedulerStats:
    """Counters for this node's ticks. In memory only."""

    tick_count: int = 0
    lease_denied: int = 0
    executed: int = 0
    succeeded: int = 0
    failed: int = 0
    last_tick: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "tick_count": self.tick_count,
            "lease_denied": self.lease_denied,
            "executed": self.executed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
        }


class TriggerEngine:
    """Handle due ticks for the schedules held by a registry."""

    def __init__(
        self,
        registry: ScheduleRegistry,
        coordinator: LeaseCoordinator,
        executor: JobExecutor,
    ) -> None:
        self.registry = registry
        self.coordinator = coordinator
        self.executor = executor
        self._stats = SchedulerStats()

    async def on_tick(self, index: int) -> Outcome | None:
        """Handle one due tick of schedule *index*.

        Returns:
            The outcome if this node executed the job, ``None`` if it yielded.
        """
        schedule = self.registry.get(index).schedule
        self._stats.tick_count += 1
        self._stats.last_tick = utc_now()

        if schedule.bypasses_lock:
            return await self._execute(schedule)

        if not await self.coordinator.acquire(index, schedule.min_interval):
            self._stats.lease_denied += 1
            logger.debug("lease_denied", index=index, runs=schedule.runner_name)
            return None

        return await self._execute(schedule)

    async def _execute(self, schedule: Schedule) -> Outcome:
        self._stats.executed += 1
        outcome = await self.executor.run(schedule)
        if outcome.succeeded:
            self._stats.succeeded += 1
        else:
            self._stats.failed += 1
        return outcome

    def get_stats(self) -> SchedulerStats:
        return self._stats

    def reset_stats(self) -> None:
        self._stats = SchedulerStats()
