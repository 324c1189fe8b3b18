"""Scheduler service: lifecycle wiring for one node.

Manifesto:
    The SchedulerService combines the timer (when), the registry (what),
    the lease coordinator (who) and the executor (how) into the object a
    process starts at boot and stops at shutdown. There is no global
    state: everything a node schedules is reachable from this object.

┌──────────────────────────────────────────────────────────────────────────────┐
│  SCHEDULER SERVICE                                                            │
│                                                                               │
│   ┌──────────────┐  ┌──────────────────┐  ┌────────────────┐                  │
│   │ IntervalTimer│  │ ScheduleRegistry │  │ LeaseCoordinator│──► SharedStore  │
│   │ (timing)     │  │ (entries)        │  │ (safety)       │                  │
│   └──────┬───────┘  └────────┬─────────┘  └───────┬────────┘                  │
│          │ tick(i)           │ get(i)             │ acquire(i, ttl)           │
│          ▼                   ▼                    ▼                           │
│   ┌────────────────────────────────────────────────────────┐                  │
│   │ TriggerEngine.on_tick(i) ──► JobExecutor ──► Reporter   │                  │
│   └────────────────────────────────────────────────────────┘                  │
│                                                                               │
│   Public API:                                                                 │
│   ├── await start()    register schedules, start timers                       │
│   ├── await stop()     cancel timers, stop timer, close store                 │
│   └── health()         service health and tick counters                       │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from spine_schedule.core.config.loader import load_schedules
from spine_schedule.core.config.settings import SchedulerSettings, get_settings
from spine_schedule.core.errors import ConfigError
from spine_schedule.core.logging import configure_logging, get_logger
from spine_schedule.core.store import InMemoryStore, RedisStore, SharedStore
from spine_schedule.scheduling.engine import SchedulerStats, TriggerEngine
from spine_schedule.scheduling.executor import JobExecutor
from spine_schedule.scheduling.intervals import IntervalTimer
from spine_schedule.scheduling.lock_manager import LeaseCoordinator
from spine_schedule.scheduling.models import Schedule, ScheduleConfig, build_schedules
from spine_schedule.scheduling.registry import ScheduleRegistry, Timer
from spine_schedule.scheduling.reporter import OutcomeReporter
from spine_schedule.scheduling.resolver import JobRegistry

logger = get_logger(__name__)


class SchedulerService:
    """Run a fixed set of schedules on this node.

    Example:
        >>> jobs = JobRegistry()
        >>> jobs.register("reports.refresh", refresh)
        >>> service = SchedulerService(
        ...     build_schedules([{"interval": "every 5 minutes", "runs": "reports.refresh"}]),
        ...     store=RedisStore.from_url("redis://localhost:6379/0"),
        ...     jobs=jobs,
        ... )
        >>> await service.start()
        >>> # … later …
        >>> await service.stop()
    """

    def __init__(
        self,
        schedules: Sequence[Schedule] | None,
        store: SharedStore,
        jobs: JobRegistry | None = None,
        settings: SchedulerSettings | None = None,
        timer: Timer | None = None,
        reporter: OutcomeReporter | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.schedules = list(schedules or [])
        self.store = store
        self.jobs = jobs if jobs is not None else JobRegistry()
        self.timer = timer if timer is not None else IntervalTimer(timezone=self.settings.timezone)

        self.registry = ScheduleRegistry(self.timer)
        self.coordinator = LeaseCoordinator(store, key_prefix=self.settings.key_prefix)
        self.executor = JobExecutor(self.jobs, reporter)
        self.engine = TriggerEngine(self.registry, self.coordinator, self.executor)

        self._running = False
        self._stopped = False

    # === Lifecycle ===

    async def start(self) -> None:
        """Register every schedule and start the timers.

        A service runs once: after ``stop()`` build a new one.

        Raises:
            ConfigError: If a schedule's interval cannot be parsed (nothing
                is left scheduled in that case), or the service was stopped.
        """
        if self._running:
            logger.warning("SchedulerService already running")
            return
        if self._stopped:
            raise ConfigError("SchedulerService was stopped and cannot be restarted")

        self.registry.register(self.schedules, self.engine.on_tick)
        self.timer.start()
        self._running = True
        logger.info(
            "scheduler_started",
            schedules=len(self.registry),
            key_prefix=self.settings.key_prefix,
        )

    async def stop(self) -> None:
        """Cancel timers, stop the timer primitive and close the store.

        In-flight jobs are not cancelled. Lease records are left to expire.
        """
        if not self._running:
            return

        self.registry.cancel_all()
        self.timer.shutdown(wait=False)
        await self.store.close()
        self._running = False
        self._stopped = True
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    # === Health & Stats ===

    def health(self) -> dict[str, Any]:
        """Service health and tick counters."""
        timer_running = self.timer.running
        return {
            "healthy": self._running and bool(timer_running),
            "running": self._running,
            "schedules": len(self.registry),
            "timers_active": sum(1 for e in self.registry.entries if not e.handle.cancelled),
            "stats": self.engine.get_stats().to_dict(),
        }

    def get_stats(self) -> SchedulerStats:
        return self.engine.get_stats()


def create_store(settings: SchedulerSettings) -> SharedStore:
    """Build the shared store selected by ``settings.store_backend``."""
    if settings.requires_redis:
        return RedisStore.from_url(settings.redis_url)
    return InMemoryStore()


def create_scheduler(
    schedules: Iterable[Mapping[str, Any] | ScheduleConfig | Schedule] | None = None,
    settings: SchedulerSettings | None = None,
    jobs: JobRegistry | None = None,
    store: SharedStore | None = None,
    timer: Timer | None = None,
) -> SchedulerService:
    """Factory function to create a fully wired scheduler service.

    Schedules come from *schedules* when given, else from
    ``settings.schedules_file``, else the scheduler is idle. Logging is
    configured from ``settings.log_level``, ``log_format`` and
    ``service_name``.

    Example:
        >>> scheduler = create_scheduler(
        ...     [{"interval": "every 1 minute", "runs": "jobs.ping", "noLock": True}],
        ...     jobs=jobs,
        ... )
        >>> await scheduler.start()
    """
    settings = settings if settings is not None else get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.json_logs,
        service=settings.service_name,
    )

    if schedules is not None:
        built = build_schedules(schedules, settings.min_interval_seconds)
    elif settings.schedules_file:
        built = load_schedules(settings.schedules_file, settings.min_interval_seconds)
    else:
        built = []

    return SchedulerService(
        built,
        store=store if store is not None else create_store(settings),
        jobs=jobs,
        settings=settings,
        timer=timer,
    )
