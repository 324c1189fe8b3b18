"""Distributed interval scheduling.

Manifesto:
    A fleet of identical nodes shares one schedule list. Timers fire on
    every node at the same epoch-aligned instants; a lease in the shared
    store decides which single node actually runs the job. ``multi`` and
    ``noLock`` schedules skip the lease and run everywhere.

┌──────────────────────────────────────────────────────────────────────────────┐
│  SPINE SCHEDULE                                                              │
│                                                                               │
│  Quick Start:                                                                 │
│  ┌──────────────────────────────────────────────────────────────────────┐   │
│  │   from spine_schedule.scheduling import JobRegistry, create_scheduler│   │
│  │                                                                      │   │
│  │   jobs = JobRegistry()                                               │   │
│  │                                                                      │   │
│  │   @jobs.job("reports.refresh")                                       │   │
│  │   async def refresh(schedule):                                       │   │
│  │       ...                                                            │   │
│  │                                                                      │   │
│  │   scheduler = create_scheduler(                                      │   │
│  │       [{"interval": "every 5 minutes", "runs": "reports.refresh"}],  │   │
│  │       jobs=jobs,                                                     │   │
│  │   )                                                                  │   │
│  │   await scheduler.start()                                            │   │
│  └──────────────────────────────────────────────────────────────────────┘   │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from .engine import SchedulerStats, TriggerEngine
from .executor import Completion, JobExecutor, classify_result
from .intervals import IntervalTimer, ScheduleSpec, TimerHandle, parse
from .lock_manager import LeaseCoordinator
from .models import DEFAULT_MIN_INTERVAL, Schedule, ScheduleConfig, build_schedules
from .registry import ScheduleEntry, ScheduleRegistry, Timer
from .reporter import Outcome, OutcomeReporter
from .resolver import JobRegistry, resolve_runner
from .service import SchedulerService, create_scheduler, create_store

__all__ = [
    # Models
    "DEFAULT_MIN_INTERVAL",
    "Schedule",
    "ScheduleConfig",
    "build_schedules",
    # Intervals
    "IntervalTimer",
    "ScheduleSpec",
    "TimerHandle",
    "parse",
    # Registry
    "ScheduleEntry",
    "ScheduleRegistry",
    "Timer",
    # Coordination
    "LeaseCoordinator",
    # Execution
    "JobRegistry",
    "resolve_runner",
    "Completion",
    "JobExecutor",
    "classify_result",
    "Outcome",
    "OutcomeReporter",
    # Engine / service
    "SchedulerStats",
    "TriggerEngine",
    "SchedulerService",
    "create_scheduler",
    "create_store",
]
