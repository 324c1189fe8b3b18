"""Lease coordinator for cross-node schedule locks.

Manifesto:
    Every node fires its own timer for every schedule at the same logical
    instant. Exactly one of them must win the right to run that tick. The
    coordinator turns the shared store's atomic conditional set into a
    single yes/no answer per (schedule, tick) and never blocks: a node
    that loses simply yields until the next due tick.

    Lock Flow::

        Node A ── SET spine:schedules:3 3 NX EX 30 ──► OK    → run
        Node B ── SET spine:schedules:3 3 NX EX 30 ──► nil   → yield
        Node C ── SET ... (store unreachable) ───────► error → yield (warn)

    The lease is released only by expiry. The TTL is the schedule's
    ``min_interval``, which is also the minimum spacing between
    single-node runs, so a fast job still holds the window until it ends.

Known weakness:
    The record carries no owner identity or fencing token. A claim by one
    node is indistinguishable from a claim by another, and nothing can
    release it early.

Tags:
    spine-schedule, scheduling, distributed-locks, TTL, lease, fail-closed

Doc-Types:
    api-reference, architecture-diagram
"""

from __future__ import annotations

from spine_schedule.core.errors import ConfigError, CoordinationError
from spine_schedule.core.logging import get_logger
from spine_schedule.core.store import SharedStore

logger = get_logger(__name__)


class LeaseCoordinator:
    """Acquire per-schedule leases in the shared store.

    Example:
        >>> coordinator = LeaseCoordinator(store, key_prefix="billing")
        >>> if await coordinator.acquire(3, ttl_seconds=30):
        ...     await executor.run(schedule)
        ... else:
        ...     pass  # another node (or our own live claim) has this window
    """

    def __init__(self, store: SharedStore, key_prefix: str = "spine") -> None:
        """Initialize lease coordinator.

        Args:
            store: Shared store providing ``set_if_absent``
            key_prefix: Namespace prepended to ``schedules:{index}``
        """
        self.store = store
        self.key_prefix = key_prefix

    def lock_key(self, index: int) -> str:
        """Store key for the lease of schedule *index*."""
        key = f"schedules:{index}"
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    async def acquire(self, index: int, ttl_seconds: int) -> bool:
        """Try to claim the current window of schedule *index*.

        Uses a single SET-if-absent-with-expiry call. No retry, no waiting.

        Args:
            index: Schedule index
            ttl_seconds: Lease expiry, the schedule's ``min_interval``

        Returns:
            True if this node won the window, False if the key already
            existed or the store call failed.
        """
        if ttl_seconds < 1:
            raise ConfigError(
                f"Lease TTL must be at least 1 second, got {ttl_seconds}"
            ).with_context(schedule_index=index)

        key = self.lock_key(index)
        try:
            acquired = await self.store.set_if_absent(key, index, ttl_seconds)
        except Exception as e:
            error = CoordinationError(
                f"Lease acquisition failed for {key}", cause=e
            ).with_context(schedule_index=index, lock_key=key)
            logger.warning("lease_acquire_failed", ttl_seconds=ttl_seconds, **error.to_dict())
            return False

        if acquired:
            logger.debug("lease_acquired", key=key, index=index, ttl_seconds=ttl_seconds)
            return True

        logger.debug("lease_held", key=key, index=index)
        return False
