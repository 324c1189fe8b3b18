"""Configuration: process settings and schedule file loading."""

from .loader import load_schedules, read_schedule_entries
from .settings import SchedulerSettings, StoreBackend, clear_settings_cache, get_settings

__all__ = [
    "SchedulerSettings",
    "StoreBackend",
    "get_settings",
    "clear_settings_cache",
    "load_schedules",
    "read_schedule_entries",
]
