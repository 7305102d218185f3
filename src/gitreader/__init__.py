"""git-reader - Coalesced, cached async reads of git repository content."""

# Adapters
from gitreader.adapters import MemoryAdapter, StorageAdapter

# Coalescing cache
from gitreader.branches import BranchResolver, ref_candidates
from gitreader.cache import (
    CoalescingCache,
    FixedTTLPolicy,
    TTLPolicy,
    VersionTTLPolicy,
)
from gitreader.config import ReaderConfig

# Duration parsing
from gitreader.duration import parse_duration

# Errors
from gitreader.errors import (
    BadRepositoryError,
    ExecutionError,
    ExecutionTimeoutError,
    GitReaderError,
    InvalidBranchError,
    InvalidVersionError,
    NotADirectoryError,
    NotFoundError,
    ParseError,
    UnsupportedOperationError,
)
from gitreader.executor import GitExecutor
from gitreader.head import HeadResolver
from gitreader.reader import GitReader
from gitreader.repository import RepositoryHandle
from gitreader.safe import coalesced, safe

# Core types
from gitreader.types import (
    LIVE,
    CacheEntry,
    DirListing,
    Duration,
    Historical,
    Live,
    LogEntry,
    ResolvedRef,
    Version,
    as_version,
)

__version__ = "0.1.0"

__all__ = [
    "LIVE",
    "BadRepositoryError",
    "BranchResolver",
    "CacheEntry",
    "CoalescingCache",
    "DirListing",
    "Duration",
    "ExecutionError",
    "ExecutionTimeoutError",
    "FixedTTLPolicy",
    "GitExecutor",
    "GitReader",
    "GitReaderError",
    "HeadResolver",
    "Historical",
    "InvalidBranchError",
    "InvalidVersionError",
    "Live",
    "LogEntry",
    "MemoryAdapter",
    "NotADirectoryError",
    "NotFoundError",
    "ParseError",
    "ReaderConfig",
    "RepositoryHandle",
    "ResolvedRef",
    "StorageAdapter",
    "TTLPolicy",
    "UnsupportedOperationError",
    "Version",
    "VersionTTLPolicy",
    "as_version",
    "coalesced",
    "parse_duration",
    "ref_candidates",
    "safe",
]
