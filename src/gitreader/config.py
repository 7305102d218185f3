"""Reader configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from gitreader.duration import parse_duration
from gitreader.types import Duration

ENV_PREFIX = "GIT_READER_"
DEFAULT_STABLE_TTL = "1h"
DEFAULT_VOLATILE_TTL = "100ms"
DEFAULT_GIT = "git"


@dataclass(frozen=True, slots=True)
class ReaderConfig:
    """Cache lifetimes and subprocess settings for a GitReader.

    Durations accept "100ms", "30s", "1h" style strings or milliseconds.
    """

    stable_ttl: Duration = DEFAULT_STABLE_TTL  # data at a commit sha
    volatile_ttl: Duration = DEFAULT_VOLATILE_TTL  # live files, HEAD, branch tips
    exec_timeout: Duration | None = None
    git: str = DEFAULT_GIT
    max_entries: int | None = None

    def __post_init__(self) -> None:
        # Fail at construction rather than at the first cache write
        parse_duration(self.stable_ttl)
        parse_duration(self.volatile_ttl)
        if self.exec_timeout is not None and parse_duration(self.exec_timeout) == 0:
            raise ValueError("exec_timeout must be positive")
        if not self.git:
            raise ValueError("git executable must not be empty")
        if self.max_entries is not None and self.max_entries < 1:
            raise ValueError("max_entries must be at least 1")

    @property
    def stable_ttl_ms(self) -> int:
        return parse_duration(self.stable_ttl)

    @property
    def volatile_ttl_ms(self) -> int:
        return parse_duration(self.volatile_ttl)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ReaderConfig:
        """Build a config from GIT_READER_* environment variables.

        With GIT_READER_ENV=test and no explicit GIT_READER_STABLE_TTL, stable
        data expires as fast as volatile data so tests see fresh results.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            return value if value else None

        volatile_ttl = get("VOLATILE_TTL") or DEFAULT_VOLATILE_TTL
        stable_ttl = get("STABLE_TTL")
        if stable_ttl is None:
            stable_ttl = volatile_ttl if get("ENV") == "test" else DEFAULT_STABLE_TTL
        max_entries = get("MAX_ENTRIES")

        return cls(
            stable_ttl=stable_ttl,
            volatile_ttl=volatile_ttl,
            exec_timeout=get("EXEC_TIMEOUT"),
            git=get("GIT") or DEFAULT_GIT,
            max_entries=int(max_entries) if max_entries is not None else None,
        )


__all__ = ["ENV_PREFIX", "ReaderConfig"]
