"""Core types for git-reader."""

import re
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from gitreader.errors import InvalidVersionError

T = TypeVar("T")

SHA_PATTERN = re.compile(r"^[0-9a-f]{40}$")

# Accepted spellings of the live working-tree version
LIVE_NAMES = frozenset({"live", "fs"})


@dataclass(frozen=True, slots=True)
class Historical:
    """A commit hash. Data read at a historical version never changes."""

    sha: str

    def __post_init__(self) -> None:
        if not isinstance(self.sha, str) or not SHA_PATTERN.match(self.sha):
            raise InvalidVersionError(f"Invalid version {self.sha!r}")

    def __str__(self) -> str:
        return self.sha


@dataclass(frozen=True, slots=True)
class Live:
    """The working tree on disk, as it is right now."""

    def __str__(self) -> str:
        return "live"


LIVE = Live()

Version = Historical | Live


def as_version(value: "Version | str") -> Version:
    """Coerce a version tag, rejecting anything that is not a sha or "live"."""
    if isinstance(value, (Historical, Live)):
        return value
    if isinstance(value, str):
        if value in LIVE_NAMES:
            return LIVE
        if SHA_PATTERN.match(value):
            return Historical(value)
    raise InvalidVersionError(f"Invalid version {value!r}")


def is_volatile(version: Version) -> bool:
    """True if data read at this version may change between calls."""
    return isinstance(version, Live)


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with metadata."""

    value: T
    created_at: float  # monotonic ms
    expires_at: float  # TTL expiration


@dataclass(frozen=True, slots=True)
class DirListing:
    """Directory contents split into plain files and subdirectories."""

    files: list[str] = field(default_factory=list)
    dirs: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One commit from a path's history."""

    commit: str
    message: str
    fields: dict[str, str] = field(default_factory=dict)  # lower-cased names

    @property
    def author(self) -> str | None:
        return self.fields.get("author")

    @property
    def date(self) -> str | None:
        return self.fields.get("date")


@dataclass(frozen=True, slots=True)
class ResolvedRef:
    """A disambiguated ref name and the commit it points to."""

    ref: str  # e.g. "heads/main", without the "refs/" prefix
    sha: str


# Duration type alias
Duration = str | int  # "100ms", "30s", "1h" or milliseconds
