"""
Centralized settings for spine-schedule.

Manifesto:
    One validated, cached settings object holds every process-wide knob
    (lease TTL default, store backend, key prefix, logging). Schedules
    themselves are data, loaded by :mod:`~spine_schedule.core.config.loader`;
    settings only describe how this node runs them.

All fields can be set via ``SPINE_SCHEDULE_*`` environment variables (e.g.
``SPINE_SCHEDULE_STORE_BACKEND=redis``) or a ``.env`` file.

Tags:
    spine-schedule, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    """Shared-store implementation for schedule leases."""

    MEMORY = "memory"
    REDIS = "redis"


class SchedulerSettings(BaseSettings):
    """Process-wide scheduler configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPINE_SCHEDULE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Leases ───────────────────────────────────────────────────
    min_interval_seconds: int = Field(
        default=5,
        description="Default lease TTL and minimum spacing between single-node runs",
    )
    key_prefix: str = Field(default="spine", description="Namespace for lock keys")

    # ── Store ────────────────────────────────────────────────────
    store_backend: StoreBackend = Field(default=StoreBackend.MEMORY)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # ── Schedules ────────────────────────────────────────────────
    schedules_file: str | None = Field(default=None, description="TOML file with [[schedules]]")
    timezone: str = Field(default="UTC")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    service_name: str = Field(default="spine-schedule")

    @field_validator("min_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("min_interval_seconds must be at least 1")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return value

    @property
    def requires_redis(self) -> bool:
        return self.store_backend == StoreBackend.REDIS

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: SchedulerSettings | None = None


def get_settings(*, _force_reload: bool = False) -> SchedulerSettings:
    """Load, validate, and cache a :class:`SchedulerSettings` instance."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = SchedulerSettings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Drop the cached settings (for testing)."""
    global _settings_cache
    _settings_cache = None
