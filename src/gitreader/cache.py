"""Coalescing TTL cache.

Every expensive read goes through ``CoalescingCache.fetch``:
- a live cached value is returned (after yielding to the event loop once)
- a key already in flight is awaited, never started a second time
- otherwise the fetch runs once and its outcome reaches every waiter

Failures are never cached. TTLs are chosen per key by a ``TTLPolicy``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, cast

from gitreader.adapters.base import StorageAdapter
from gitreader.adapters.memory import MemoryAdapter, monotonic_ms
from gitreader.types import CacheEntry, Version, is_volatile

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLPolicy(Protocol):
    """Chooses how long a successful result stays cached."""

    def ttl_for(self, version: Version | None) -> int:
        """TTL in milliseconds for a value read at ``version``."""
        ...


@dataclass(frozen=True, slots=True)
class VersionTTLPolicy:
    """Long TTL for content-addressed versions, short TTL for live ones."""

    stable: int
    volatile: int

    def ttl_for(self, version: Version | None) -> int:
        if version is None or is_volatile(version):
            return self.volatile
        return self.stable


@dataclass(frozen=True, slots=True)
class FixedTTLPolicy:
    """Same TTL for every key."""

    ttl: int

    def ttl_for(self, version: Version | None) -> int:
        return self.ttl


def _is_cacheable(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, bytes)) and not value:
        return False
    return True


class CoalescingCache:
    """Per-key request coalescing in front of a TTL cache."""

    def __init__(
        self,
        adapter: StorageAdapter | None = None,
        *,
        policy: TTLPolicy,
        clock: Callable[[], float] = monotonic_ms,
        name: str = "cache",
    ) -> None:
        self._adapter = adapter if adapter is not None else MemoryAdapter(clock=clock)
        self._policy = policy
        self._clock = clock
        self._name = name
        self._in_flight: dict[Hashable, asyncio.Task[Any]] = {}
        # Bumped by invalidate/clear; fetches started earlier are not stored
        self._generation = 0
        self.hits = 0
        self.misses = 0
        self.coalesced = 0

    @property
    def policy(self) -> TTLPolicy:
        return self._policy

    def in_flight(self, key: Hashable) -> bool:
        """True while an underlying fetch for ``key`` is running."""
        return key in self._in_flight

    def peek(self, key: Hashable) -> Any | None:
        """Cached value for ``key`` without fetching, or None."""
        entry = self._adapter.get(key)
        return entry.value if entry is not None else None

    def put(self, key: Hashable, value: Any, *, version: Version | None = None) -> None:
        """Store a value directly, with the TTL the policy gives ``version``."""
        now = self._clock()
        entry: CacheEntry[object] = CacheEntry(
            value=value,
            created_at=now,
            expires_at=now + self._policy.ttl_for(version),
        )
        self._adapter.set(key, entry)

    def invalidate(self, key: Hashable) -> None:
        """Drop the cached value for ``key``.

        A fetch already in flight still completes for its waiters, but its
        result is not stored.
        """
        self._generation += 1
        self._adapter.delete(key)

    def clear(self) -> None:
        """Drop all cached values. In-flight results are not stored."""
        self._generation += 1
        self._adapter.clear()

    async def fetch(
        self,
        key: Hashable,
        fn: Callable[[], Awaitable[T]],
        *,
        version: Version | None = None,
    ) -> T:
        """Return the value for ``key``, running ``fn`` at most once concurrently.

        Args:
            key: Hashable cache key covering every argument of the operation
            fn: Zero-argument coroutine function computing the value
            version: Version the key was read at; selects the TTL

        Returns:
            Cached or fresh value. Errors from ``fn`` propagate to every caller
            waiting on ``key`` and are not cached.
        """
        # Cache check, in-flight check and registration must not be separated
        # by an await.
        entry = self._adapter.get(key)
        if entry is not None:
            self.hits += 1
            logger.debug("%s hit %r", self._name, key)
            await asyncio.sleep(0)
            return cast(T, entry.value)

        task = self._in_flight.get(key)
        if task is not None:
            self.coalesced += 1
            logger.debug("%s joining in-flight %r", self._name, key)
        else:
            self.misses += 1
            logger.debug("%s miss %r", self._name, key)
            task = asyncio.ensure_future(fn())
            self._in_flight[key] = task
            task.add_done_callback(
                lambda done, generation=self._generation: self._settle(
                    key, version, generation, done
                )
            )

        # Shielded so a cancelled caller does not cancel the fetch others share
        return cast(T, await asyncio.shield(task))

    def _settle(
        self,
        key: Hashable,
        version: Version | None,
        generation: int,
        task: asyncio.Task[Any],
    ) -> None:
        # Runs before any waiter resumes: the done callback is registered first.
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug("%s fetch for %r failed: %s", self._name, key, error)
            return
        value = task.result()
        if generation != self._generation:
            logger.debug("%s dropping stale result for %r", self._name, key)
            return
        if _is_cacheable(value):
            self.put(key, value, version=version)


__all__ = [
    "CoalescingCache",
    "FixedTTLPolicy",
    "TTLPolicy",
    "VersionTTLPolicy",
]
