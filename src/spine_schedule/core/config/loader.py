"""
Schedule file loading.

Schedules can be declared in code (a list of dicts) or in a TOML file::

    [[schedules]]
    interval = "every 5 minutes"
    runs = "reports.refresh"
    data = { region = "eu" }

    [[schedules]]
    interval = "every 30 seconds"
    runs = "housekeeping.rotate_logs"
    noLock = true

In a file ``runs`` must be a name registered in the job registry; there
is no way to spell a callable in TOML.

Tags:
    spine-schedule, configuration, toml, loader

Doc-Types:
    api-reference
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from spine_schedule.core.errors import ConfigError
from spine_schedule.scheduling.models import DEFAULT_MIN_INTERVAL, Schedule, build_schedules


def read_schedule_entries(path: str | Path) -> list[dict[str, Any]]:
    """Read the raw ``[[schedules]]`` tables from a TOML file."""
    path = Path(path)
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Schedule file not found: {path}", cause=e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Schedule file is not valid TOML: {path}: {e}", cause=e) from e

    entries = data.get("schedules", [])
    if not isinstance(entries, list):
        raise ConfigError(f"'schedules' in {path} must be an array of tables")

    for index, entry in enumerate(entries):
        runs = entry.get("runs")
        if runs is not None and not isinstance(runs, str):
            raise ConfigError(
                f"Schedule {index} in {path}: 'runs' must be a registered job name"
            ).with_context(schedule_index=index)
    return entries


def load_schedules(
    path: str | Path,
    default_min_interval: int = DEFAULT_MIN_INTERVAL,
) -> list[Schedule]:
    """Load and validate schedules from a TOML file."""
    return build_schedules(read_schedule_entries(path), default_min_interval)
