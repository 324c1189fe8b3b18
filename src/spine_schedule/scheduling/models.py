"""Schedule models.

Manifesto:
    A schedule is configuration: it is validated once at load time and never
    mutated afterwards. Its ``index`` is its identity for the process
    lifetime, because the lock key and the timer handle are both derived
    from it.

``ScheduleConfig`` validates raw configuration entries (dicts from code or
TOML); ``Schedule`` is the immutable runtime form the registry, engine and
executor work with.

Tags:
    spine-schedule, models, scheduling, dataclasses, pydantic

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from spine_schedule.core.errors import ConfigError

DEFAULT_MIN_INTERVAL = 5


@dataclass(frozen=True)
class Schedule:
    """One configured recurring job."""

    index: int
    interval: str
    runs: Callable[..., Any] | str | None = None
    data: Any = None
    multi: bool = False
    no_lock: bool = False
    min_interval: int = DEFAULT_MIN_INTERVAL

    @property
    def bypasses_lock(self) -> bool:
        """True when every node should run every due tick."""
        return self.multi or self.no_lock

    @property
    def runner_name(self) -> str:
        """Identity of the job for log lines."""
        runs = self.runs
        if runs is None:
            return "<missing>"
        if isinstance(runs, str):
            return runs
        qualname = getattr(runs, "__qualname__", None)
        if qualname is None:
            return repr(runs)
        module = getattr(runs, "__module__", None)
        return f"{module}.{qualname}" if module else qualname

    def describe(self) -> dict[str, Any]:
        """Loggable summary of the schedule."""
        return {
            "index": self.index,
            "interval": self.interval,
            "runs": self.runner_name,
            "data": self.data,
            "multi": self.multi,
            "no_lock": self.no_lock,
            "min_interval": self.min_interval,
        }


class ScheduleConfig(BaseModel):
    """Validated configuration entry: ``{interval, runs, data?, multi?, noLock?}``."""

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    interval: str = Field(min_length=1)
    runs: Callable[..., Any] | str | None = None
    data: Any = None
    multi: bool = False
    no_lock: bool = Field(default=False, alias="noLock")
    min_interval: int | None = Field(default=None, alias="minInterval", ge=1)

    def to_schedule(self, index: int, default_min_interval: int = DEFAULT_MIN_INTERVAL) -> Schedule:
        return Schedule(
            index=index,
            interval=self.interval,
            runs=self.runs,
            data=self.data,
            multi=self.multi,
            no_lock=self.no_lock,
            min_interval=self.min_interval or default_min_interval,
        )


def build_schedules(
    entries: Iterable[Mapping[str, Any] | ScheduleConfig | Schedule] | None,
    default_min_interval: int = DEFAULT_MIN_INTERVAL,
) -> list[Schedule]:
    """Validate configuration entries and assign each its list index.

    ``Schedule`` instances are re-indexed to their list position.

    Raises:
        ConfigError: If an entry fails validation. The error carries the
            entry's index.
    """
    schedules: list[Schedule] = []
    for index, entry in enumerate(entries or []):
        if isinstance(entry, Schedule):
            schedules.append(replace(entry, index=index))
            continue
        if isinstance(entry, ScheduleConfig):
            config = entry
        else:
            try:
                config = ScheduleConfig.model_validate(dict(entry))
            except ValidationError as e:
                raise ConfigError(
                    f"Invalid schedule configuration at index {index}: {e}",
                    cause=e,
                ).with_context(schedule_index=index) from e
        schedules.append(config.to_schedule(index, default_min_interval))
    return schedules
