"""Tests for spine_schedule.scheduling.lock_manager: per-schedule leases."""

from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from spine_schedule.core.errors import ConfigError
from spine_schedule.scheduling.lock_manager import LeaseCoordinator


@pytest.fixture
def coordinator(store):
    return LeaseCoordinator(store)


# ── Keys ────────────────────────────────────────────────────────────────


class TestLockKey:
    def test_default_prefix(self, coordinator):
        assert coordinator.lock_key(3) == "spine:schedules:3"

    def test_custom_prefix(self, store):
        assert LeaseCoordinator(store, key_prefix="billing").lock_key(0) == "billing:schedules:0"

    def test_empty_prefix(self, store):
        assert LeaseCoordinator(store, key_prefix="").lock_key(7) == "schedules:7"


# ── Acquire ─────────────────────────────────────────────────────────────


class TestAcquire:
    @pytest.mark.asyncio
    async def test_first_acquire_wins(self, coordinator, store):
        assert await coordinator.acquire(0, ttl_seconds=5) is True
        assert await store.ttl("spine:schedules:0") == pytest.approx(5)

    @pytest.mark.asyncio
    async def test_second_acquire_is_denied(self, coordinator):
        assert await coordinator.acquire(0, ttl_seconds=5) is True
        assert await coordinator.acquire(0, ttl_seconds=5) is False

    @pytest.mark.asyncio
    async def test_lease_expires_after_ttl(self, coordinator, clock):
        await coordinator.acquire(0, ttl_seconds=5)

        clock.advance(4)
        assert await coordinator.acquire(0, ttl_seconds=5) is False

        clock.advance(1)
        assert await coordinator.acquire(0, ttl_seconds=5) is True

    @pytest.mark.asyncio
    async def test_schedules_are_independent(self, coordinator):
        assert await coordinator.acquire(0, ttl_seconds=5) is True
        assert await coordinator.acquire(1, ttl_seconds=5) is True

    @pytest.mark.asyncio
    async def test_coordinators_sharing_a_store_contend(self, store):
        node_a = LeaseCoordinator(store)
        node_b = LeaseCoordinator(store)

        assert await node_a.acquire(2, ttl_seconds=5) is True
        assert await node_b.acquire(2, ttl_seconds=5) is False

    @pytest.mark.asyncio
    async def test_ttl_must_be_positive(self, coordinator):
        with pytest.raises(ConfigError) as exc_info:
            await coordinator.acquire(4, ttl_seconds=0)
        assert exc_info.value.context.schedule_index == 4


# ── Store failures ──────────────────────────────────────────────────────


class TestStoreFailure:
    @pytest.mark.asyncio
    async def test_store_error_is_a_denial(self):
        store = AsyncMock()
        store.set_if_absent.side_effect = ConnectionError("redis down")
        coordinator = LeaseCoordinator(store)

        with capture_logs() as logs:
            assert await coordinator.acquire(1, ttl_seconds=5) is False

        (entry,) = [log for log in logs if log["event"] == "lease_acquire_failed"]
        assert entry["log_level"] == "warning"
        assert entry["error_type"] == "CoordinationError"
        assert entry["category"] == "COORDINATION"
        assert entry["context"] == {"schedule_index": 1, "lock_key": "spine:schedules:1"}
        assert "redis down" in entry["cause"]
        assert entry["ttl_seconds"] == 5

    @pytest.mark.asyncio
    async def test_single_store_call_no_retry(self):
        store = AsyncMock()
        store.set_if_absent.return_value = False
        coordinator = LeaseCoordinator(store)

        assert await coordinator.acquire(1, ttl_seconds=9) is False
        store.set_if_absent.assert_awaited_once_with("spine:schedules:1", 1, 9)
