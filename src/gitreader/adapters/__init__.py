"""Storage adapters for the coalescing cache."""

from gitreader.adapters.base import StorageAdapter
from gitreader.adapters.memory import MemoryAdapter, monotonic_ms

__all__ = [
    "MemoryAdapter",
    "StorageAdapter",
    "monotonic_ms",
]
