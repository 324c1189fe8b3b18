"""
Spine Schedule - distributed interval job scheduling.

Every node in a cluster runs the same schedule list. Each due tick of a
schedule runs on exactly one node, arbitrated by a self-expiring lease in a
shared store, unless the schedule opts into running on every node.
"""

__version__ = "0.1.0"

from spine_schedule.scheduling import (  # noqa: E402
    JobRegistry,
    Schedule,
    SchedulerService,
    build_schedules,
    create_scheduler,
)

__all__ = [
    "__version__",
    "JobRegistry",
    "Schedule",
    "SchedulerService",
    "build_schedules",
    "create_scheduler",
]
