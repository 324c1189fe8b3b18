"""Tests for spine_schedule.core.store: shared lease store backends."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from spine_schedule.core.store import InMemoryStore, RedisStore, SharedStore


# ── InMemoryStore ───────────────────────────────────────────────────────


class TestInMemoryStore:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, SharedStore)

    @pytest.mark.asyncio
    async def test_set_if_absent_first_wins(self, store):
        assert await store.set_if_absent("k", 1, ttl_seconds=5) is True
        assert await store.set_if_absent("k", 2, ttl_seconds=5) is False
        assert await store.exists("k") is True

    @pytest.mark.asyncio
    async def test_key_expires_after_ttl(self, store, clock):
        await store.set_if_absent("k", 1, ttl_seconds=5)

        clock.advance(4.9)
        assert await store.exists("k") is True

        clock.advance(0.1)
        assert await store.exists("k") is False
        assert await store.set_if_absent("k", 3, ttl_seconds=5) is True

    @pytest.mark.asyncio
    async def test_ttl_reports_remaining_lifetime(self, store, clock):
        await store.set_if_absent("k", 1, ttl_seconds=10)
        clock.advance(3)
        assert await store.ttl("k") == pytest.approx(7)
        assert await store.ttl("missing") is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.set_if_absent("k", 1, ttl_seconds=5)
        await store.delete("k")
        await store.delete("k")
        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_close_clears_everything(self, store):
        await store.set_if_absent("a", 1, ttl_seconds=5)
        await store.set_if_absent("b", 1, ttl_seconds=5)
        assert store.size() == 2

        await store.close()
        assert store.size() == 0

    @pytest.mark.asyncio
    async def test_default_clock(self):
        store = InMemoryStore()
        assert await store.set_if_absent("k", 1, ttl_seconds=60) is True
        assert await store.exists("k") is True


# ── RedisStore ──────────────────────────────────────────────────────────


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.set = AsyncMock(return_value=True)
    client.exists = AsyncMock(return_value=1)
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


class TestRedisStore:
    @pytest.mark.asyncio
    async def test_set_if_absent_issues_set_nx_ex(self, redis_client):
        store = RedisStore(redis_client)

        assert await store.set_if_absent("spine:schedules:3", 3, ttl_seconds=30) is True
        redis_client.set.assert_awaited_once_with("spine:schedules:3", 3, nx=True, ex=30)

    @pytest.mark.asyncio
    async def test_existing_key_is_not_set(self, redis_client):
        redis_client.set.return_value = None
        store = RedisStore(redis_client)

        assert await store.set_if_absent("spine:schedules:3", 3, ttl_seconds=30) is False

    @pytest.mark.asyncio
    async def test_connection_errors_propagate(self, redis_client):
        redis_client.set.side_effect = ConnectionError("refused")
        store = RedisStore(redis_client)

        with pytest.raises(ConnectionError):
            await store.set_if_absent("k", 0, ttl_seconds=5)

    @pytest.mark.asyncio
    async def test_exists_and_delete(self, redis_client):
        store = RedisStore(redis_client)

        assert await store.exists("k") is True
        await store.delete("k")
        redis_client.delete.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_close_closes_client(self, redis_client):
        store = RedisStore(redis_client)
        await store.close()
        redis_client.aclose.assert_awaited_once()

    def test_from_url(self, monkeypatch):
        created = MagicMock()
        factory = MagicMock(return_value=created)
        monkeypatch.setattr("spine_schedule.core.store.aioredis.from_url", factory)

        store = RedisStore.from_url("redis://cache:6379/2", decode_responses=True)

        factory.assert_called_once_with("redis://cache:6379/2", decode_responses=True)
        assert store.client is created
