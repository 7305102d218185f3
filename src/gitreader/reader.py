"""Read files, directory listings and history from a git repository."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from gitreader.adapters.base import StorageAdapter
from gitreader.adapters.memory import MemoryAdapter
from gitreader.branches import BranchResolver
from gitreader.cache import CoalescingCache, FixedTTLPolicy, VersionTTLPolicy
from gitreader.config import ReaderConfig
from gitreader.errors import UnsupportedOperationError
from gitreader.executor import Executor, GitExecutor
from gitreader.head import HeadResolver
from gitreader.parsing import parse_log, parse_tree
from gitreader.repository import RepositoryHandle
from gitreader.safe import coalesced, safe
from gitreader.types import (
    LIVE,
    LIVE_NAMES,
    SHA_PATTERN,
    DirListing,
    Historical,
    Live,
    LogEntry,
    Version,
    as_version,
)

logger = logging.getLogger(__name__)

CURRENT = "current"


def _relative(path: str) -> str:
    return path.lstrip("/")


def _list_dir(path: Path) -> DirListing:
    files: list[str] = []
    dirs: list[str] = []
    with os.scandir(path) as entries:
        for entry in entries:
            # is_dir() follows symlinks, like stat
            if entry.is_dir():
                dirs.append(entry.name)
            else:
                files.append(entry.name)
    return DirListing(files=sorted(files), dirs=sorted(dirs))


class GitReader:
    """Cached, coalesced read access to one repository.

    Historical versions (commit hashes) are read through git; the live
    version reads the work tree directly. Usage:

        reader = GitReader("/srv/repo")
        version = await reader.get_head()
        text = await reader.read_file(version, "README", "utf-8")
        listing = await reader.read_dir(version, "docs")
    """

    safe = staticmethod(safe)

    def __init__(
        self,
        repo: str | os.PathLike[str] | RepositoryHandle,
        *,
        config: ReaderConfig | None = None,
        executor: Executor | None = None,
        adapter: StorageAdapter | None = None,
    ) -> None:
        self._handle = (
            repo if isinstance(repo, RepositoryHandle) else RepositoryHandle.open(repo)
        )
        self._config = config if config is not None else ReaderConfig()
        self._executor = (
            executor
            if executor is not None
            else GitExecutor(
                self._handle,
                git=self._config.git,
                timeout=self._config.exec_timeout,
            )
        )

        volatile = FixedTTLPolicy(self._config.volatile_ttl_ms)
        self._cache = CoalescingCache(
            adapter if adapter is not None else MemoryAdapter(self._config.max_entries),
            policy=VersionTTLPolicy(
                stable=self._config.stable_ttl_ms,
                volatile=self._config.volatile_ttl_ms,
            ),
            name="content",
        )
        self._head = HeadResolver(
            self._handle,
            self._executor,
            CoalescingCache(policy=volatile, name="head"),
        )
        self._branches = BranchResolver(
            self._executor,
            CoalescingCache(policy=volatile, name="branches"),
            CoalescingCache(policy=volatile, name="refs"),
        )

    @property
    def handle(self) -> RepositoryHandle:
        return self._handle

    @property
    def config(self) -> ReaderConfig:
        return self._config

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def cache(self) -> CoalescingCache:
        return self._cache

    def clear(self) -> None:
        """Forget every cached value. In-flight reads complete but are not stored."""
        logger.debug("clearing caches for %s", self._handle.git_dir)
        self._cache.clear()
        self._head.invalidate()
        self._branches.clear()

    def _work_tree(self, operation: str) -> Path:
        if self._handle.work_tree is None:
            raise UnsupportedOperationError(
                f"{operation}: live reads need a work tree, "
                f"{self._handle.git_dir} is a bare repository"
            )
        return self._handle.work_tree

    # -------------------------------------------------------------------------
    # Versioned reads
    # -------------------------------------------------------------------------

    @coalesced()
    async def read_file(
        self, version: Version, path: str, encoding: str | None = None
    ) -> str | bytes:
        """File content at ``version``; bytes unless ``encoding`` is given."""
        if isinstance(version, Historical):
            return await self._executor.run(
                ["show", f"{version.sha}:{_relative(path)}"], encoding
            )

        target = self._work_tree("read_file") / _relative(path)
        data = await asyncio.to_thread(target.read_bytes)
        return data if encoding is None else data.decode(encoding)

    @coalesced()
    async def read_dir(self, version: Version, path: str) -> DirListing:
        """Names of the files and subdirectories of ``path`` at ``version``."""
        if isinstance(version, Historical):
            text = await self.read_file(version, path, "utf-8")
            return parse_tree(text, path)

        target = self._work_tree("read_dir") / _relative(path)
        return await asyncio.to_thread(_list_dir, target)

    @coalesced()
    async def log_file(self, version: Version, path: str) -> list[LogEntry]:
        """Commits reachable from ``version`` that touch ``path``, newest first."""
        if isinstance(version, Live):
            raise UnsupportedOperationError("log is not available for the live version")

        text = await self._executor.run(
            ["log", "-z", "--summary", version.sha, "--", _relative(path) or "."],
            "utf-8",
        )
        if not text:
            return []
        return parse_log(text)

    async def log(self, path: str) -> list[LogEntry]:
        """History of ``path`` from the current HEAD commit."""
        return await self.log_file(Historical(await self.get_head_sha()), path)

    # -------------------------------------------------------------------------
    # Version resolution
    # -------------------------------------------------------------------------

    async def get_head_sha(self) -> str:
        """Hash of the commit HEAD points to."""
        return await self._head.sha()

    async def get_head(self, force_head: bool = False) -> Version:
        """Newest version of the repository.

        The work tree for working repositories, unless ``force_head``;
        otherwise the HEAD commit.
        """
        if self._handle.allows_live and not force_head:
            await asyncio.sleep(0)
            return LIVE
        return Historical(await self._head.sha())

    async def get_branch_sha(self, name: str) -> str:
        """Hash a branch, remote-tracking branch or tag name points to."""
        return await self._branches.sha(name)

    async def resolve(self, rev: Version | str) -> Version:
        """Turn a revision into a concrete version.

        Accepts versions, commit hashes, "live"/"fs", "current" (see
        get_head), "HEAD" and branch or tag names.
        """
        if isinstance(rev, (Historical, Live)) or rev in LIVE_NAMES:
            return as_version(rev)
        if SHA_PATTERN.match(rev):
            return Historical(rev)
        if rev == CURRENT:
            return await self.get_head()
        if rev == "HEAD":
            return Historical(await self.get_head_sha())
        return Historical(await self.get_branch_sha(rev))


__all__ = ["CURRENT", "GitReader"]
