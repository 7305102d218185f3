"""In-memory storage adapter."""

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable

from gitreader.types import CacheEntry


def monotonic_ms() -> float:
    """Milliseconds from a clock that never goes backwards."""
    return time.monotonic() * 1000


class MemoryAdapter:
    """In-memory storage adapter with TTL expiry and optional LRU eviction.

    Expired entries are dropped lazily on read.
    """

    def __init__(
        self,
        max_items: int | None = None,
        *,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._cache: OrderedDict[Hashable, CacheEntry[object]] = OrderedDict()
        self._max_items = max_items
        self._clock = clock

    def __len__(self) -> int:
        return len(self._cache)

    def now(self) -> float:
        """Current time on this adapter's clock, in milliseconds."""
        return self._clock()

    def get(self, key: Hashable) -> CacheEntry[object] | None:
        """Get a live cache entry by key."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._cache[key]
            return None
        self._cache.move_to_end(key)  # LRU touch
        return entry

    def set(self, key: Hashable, entry: CacheEntry[object]) -> None:
        """Store a cache entry."""
        self._cache[key] = entry
        self._cache.move_to_end(key)
        if self._max_items and len(self._cache) > self._max_items:
            self._cache.popitem(last=False)

    def delete(self, key: Hashable) -> None:
        """Delete a cache entry."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()
