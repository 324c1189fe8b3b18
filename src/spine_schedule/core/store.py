"""
Shared key-value store used for cross-node schedule leases.

The scheduler needs exactly one primitive from the store: an atomic
"set this key only if it is absent, with an expiry" call. Everything
else on the protocol is for inspection and lifecycle.

Manifesto:
    The lease protocol is only as strong as the store's atomicity. Redis
    ``SET key value NX EX ttl`` gives a single round-trip, atomic claim
    that expires on its own, so a crashed winner never blocks the next
    window. The in-memory store gives the same semantics inside one
    process for development and for simulating several nodes in tests.

Architecture:
    ::

        SharedStore (Protocol)
        ├── InMemoryStore : single process (dev, tests, multi-node simulation)
        └── RedisStore    : distributed (redis.asyncio)

        API: set_if_absent(key, value, ttl_seconds) → bool
             exists(key) → bool
             delete(key)
             close()

Guardrails:
    ❌ DON'T: Use InMemoryStore for several real processes (nothing is shared)
    ✅ DO: Use RedisStore whenever more than one node runs the scheduler

Tags:
    redis, shared-store, lease, ttl, spine-schedule

Doc-Types:
    - API Reference
    - Infrastructure Guide
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import redis.asyncio as aioredis


@runtime_checkable
class SharedStore(Protocol):
    """Protocol for the shared store backing schedule leases."""

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Atomically set *key* to *value* with an expiry, only if absent.

        Returns:
            ``True`` if the key was newly set, ``False`` if it already existed.
        """
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


# ------------------------------------------------------------------ #
# In-Memory Store
# ------------------------------------------------------------------ #


class InMemoryStore:
    """Process-local store with TTL semantics.

    Check-and-set happens without an ``await`` in between, so it is atomic
    with respect to other coroutines on the same event loop. Several
    scheduler instances sharing one ``InMemoryStore`` behave like several
    nodes sharing one Redis.

    Args:
        clock: Monotonic time source in seconds. Injectable for tests.

    Example:
        store = InMemoryStore()
        await store.set_if_absent("spine:schedules:0", 0, ttl_seconds=60)  # True
        await store.set_if_absent("spine:schedules:0", 0, ttl_seconds=60)  # False
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[Any, float | None]] = {}

    def _purge(self, key: str) -> None:
        entry = self._data.get(key)
        if entry is None:
            return
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int) -> bool:
        self._purge(key)
        if key in self._data:
            return False
        self._data[key] = (value, self._clock() + ttl_seconds)
        return True

    async def ttl(self, key: str) -> float | None:
        """Remaining lifetime of *key* in seconds, ``None`` if absent."""
        self._purge(key)
        entry = self._data.get(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self._clock()

    async def exists(self, key: str) -> bool:
        self._purge(key)
        return key in self._data

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        self._data.clear()

    def size(self) -> int:
        """Number of keys held, expired ones included until next access."""
        return len(self._data)


# ------------------------------------------------------------------ #
# Redis Store
# ------------------------------------------------------------------ #


class RedisStore:
    """Redis-backed shared store.

    Attributes:
        client: The ``redis.asyncio.Redis`` client in use.

    Example:
        store = RedisStore.from_url("redis://localhost:6379/0")
        won = await store.set_if_absent("spine:schedules:3", 3, ttl_seconds=30)
    """

    def __init__(self, client: aioredis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str = "redis://localhost:6379/0", **kwargs: Any) -> RedisStore:
        """Create a store from a Redis connection URL."""
        return cls(aioredis.from_url(url, **kwargs))

    async def set_if_absent(self, key: str, value: Any, ttl_seconds: int) -> bool:
        # SET key value NX EX ttl -> True when set, None when the key exists
        result = await self.client.set(key, value, nx=True, ex=ttl_seconds)
        return bool(result)

    async def exists(self, key: str) -> bool:
        return bool(await self.client.exists(key))

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def close(self) -> None:
        await self.client.aclose()


__all__ = [
    "SharedStore",
    "InMemoryStore",
    "RedisStore",
]
