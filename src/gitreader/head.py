"""Resolve HEAD to a commit hash by reading repository metadata directly."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import Any

from gitreader.cache import CoalescingCache
from gitreader.errors import ExecutionError
from gitreader.executor import Executor
from gitreader.parsing import find_packed_ref, parse_head, parse_loose_ref
from gitreader.repository import RepositoryHandle

logger = logging.getLogger(__name__)

HEAD_KEY = ("HEAD",)


async def read_text(path: Path) -> str:
    """Read a small text file without blocking the event loop."""
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


async def read_optional(path: Path) -> str | None:
    """Like read_text, but a missing file (or a directory) gives None."""
    try:
        return await read_text(path)
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        return None


async def join(*aws: Awaitable[Any]) -> list[Any]:
    """Wait for all awaitables; on the first failure cancel the rest and raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, pending = await asyncio.wait(
            tasks, return_when=asyncio.FIRST_EXCEPTION
        )
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    for task in pending:
        task.cancel()
    errors = [
        task.exception() for task in tasks if task in done and not task.cancelled()
    ]
    for error in errors:
        if error is not None:
            raise error
    return [task.result() for task in tasks]


class HeadResolver:
    """Current HEAD commit, coalesced into a single cache slot.

    Reads ``HEAD``, the loose ref it names and ``packed-refs`` in parallel.
    A missing ``packed-refs`` triggers one ``git gc`` and one retry.
    """

    def __init__(
        self,
        handle: RepositoryHandle,
        executor: Executor,
        cache: CoalescingCache,
    ) -> None:
        self._handle = handle
        self._executor = executor
        self._cache = cache

    async def sha(self) -> str:
        """Hash of the commit HEAD points to."""
        return await self._cache.fetch(HEAD_KEY, self._resolve)

    def invalidate(self) -> None:
        self._cache.invalidate(HEAD_KEY)

    async def _resolve(self) -> str:
        packed_refs, (ref, loose) = await join(
            self._read_packed_refs(), self._read_head()
        )
        if ref is None:
            # Detached HEAD already holds the hash
            return loose
        if loose:
            return parse_loose_ref(loose)
        return find_packed_ref(packed_refs, ref)

    async def _read_head(self) -> tuple[str | None, str | None]:
        ref, detached = parse_head(await read_text(self._handle.git_dir / "HEAD"))
        if ref is None:
            return None, detached
        return ref, await read_optional(self._handle.git_dir / ref)

    async def _read_packed_refs(self) -> str:
        path = self._handle.git_dir / "packed-refs"
        try:
            return await read_text(path)
        except FileNotFoundError:
            pass

        logger.warning("%s missing, compacting repository", path)
        try:
            await self._executor.run(["gc"])
        except ExecutionError as e:
            logger.warning("git gc failed: %s", e)
        return await read_text(path)


__all__ = ["HEAD_KEY", "HeadResolver", "join", "read_optional", "read_text"]
