"""Base adapter protocol for cache storage backends."""

from collections.abc import Hashable
from typing import Protocol, runtime_checkable

from gitreader.types import CacheEntry


@runtime_checkable
class StorageAdapter(Protocol):
    """Storage adapter interface.

    Methods are synchronous: the coalescing cache checks storage and its
    in-flight table in a single event-loop step, with no await in between.
    """

    def get(self, key: Hashable) -> CacheEntry[object] | None:
        """Get a live (non-expired) cache entry by key."""
        ...

    def set(self, key: Hashable, entry: CacheEntry[object]) -> None:
        """Store a cache entry."""
        ...

    def delete(self, key: Hashable) -> None:
        """Delete a cache entry."""
        ...

    def clear(self) -> None:
        """Clear all cached entries."""
        ...
