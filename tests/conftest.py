"""
Shared pytest fixtures for spine-schedule tests.

This module provides:
- A manual clock for TTL tests
- A timer double that records callbacks instead of firing them
- Fresh stores, job registries and settings per test

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from spine_schedule.core.config.settings import SchedulerSettings, clear_settings_cache
from spine_schedule.core.store import InMemoryStore
from spine_schedule.scheduling.intervals import ScheduleSpec, parse
from spine_schedule.scheduling.resolver import JobRegistry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their name."""
    for item in items:
        if "multi_node" in Path(item.fspath).name:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Doubles
# =============================================================================


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, name: str):
        self.job_id = name
        self.cancelled = False
        self.next_fire_time = None

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimer:
    """Timer double: parses for real, fires only when a test calls ``fire``."""

    def __init__(self) -> None:
        self.callbacks: list[Callable[[], Any]] = []
        self.handles: list[FakeHandle] = []
        self.started = False
        self.stopped = False

    def parse(self, text: str) -> ScheduleSpec:
        return parse(text)

    def schedule_repeating(self, spec, callback, name=None) -> FakeHandle:
        handle = FakeHandle(name or spec.text)
        self.callbacks.append(callback)
        self.handles.append(handle)
        return handle

    async def fire(self, index: int) -> Any:
        return await self.callbacks[index]()

    def start(self) -> None:
        self.started = True

    def shutdown(self, wait: bool = False) -> None:
        self.stopped = True

    @property
    def running(self) -> bool:
        return self.started and not self.stopped


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def logging_setup(monkeypatch) -> MagicMock:
    """Keep ``create_scheduler`` from reconfiguring structlog during tests."""
    setup = MagicMock()
    monkeypatch.setattr("spine_schedule.scheduling.service.configure_logging", setup)
    return setup


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock) -> InMemoryStore:
    return InMemoryStore(clock=clock)


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def jobs() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def settings() -> SchedulerSettings:
    return SchedulerSettings(_env_file=None)
