"""Resolve branch and tag names to commit hashes."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from gitreader.cache import CoalescingCache
from gitreader.errors import ExecutionError, InvalidBranchError
from gitreader.executor import Executor
from gitreader.parsing import find_show_ref
from gitreader.types import ResolvedRef

logger = logging.getLogger(__name__)

_FULL_PATH = re.compile(r"^(heads|remotes|tags)/(.+)")
_REMOTE_SHORTHAND = re.compile(r"^([\w!@#$%+=-]+)/([\w!@#$%+=-]+)$")


@dataclass(frozen=True, slots=True)
class RefCandidate:
    """A ref a name may refer to; ``pattern`` matches the part after refs/."""

    label: str
    pattern: str
    exact: bool = True


def ref_candidates(name: str) -> tuple[RefCandidate, ...]:
    """Refs ``name`` may mean, highest priority first.

    Local branches shadow remote-tracking branches, which shadow tags.
    """
    if _FULL_PATH.match(name):
        return (RefCandidate(name, re.escape(name)),)
    if _REMOTE_SHORTHAND.match(name):
        ref = f"remotes/{name}"
        return (RefCandidate(ref, re.escape(ref)),)
    return (
        RefCandidate(f"heads/{name}", re.escape(f"heads/{name}")),
        RefCandidate(
            f"remotes/*/{name}", rf"remotes/[^/\n]+/{re.escape(name)}", exact=False
        ),
        RefCandidate(f"tags/{name}", re.escape(f"tags/{name}")),
    )


class BranchResolver:
    """Branch/tag name to hash, one ``git show-ref`` per coalesced miss."""

    def __init__(
        self,
        executor: Executor,
        cache: CoalescingCache,
        resolved: CoalescingCache,
    ) -> None:
        self._executor = executor
        self._cache = cache
        # disambiguated ref name -> sha
        self._resolved = resolved

    async def sha(self, name: str) -> str:
        return (await self.resolve(name)).sha

    async def resolve(self, name: str) -> ResolvedRef:
        """Resolve ``name`` to the first matching ref and its hash."""
        candidates = ref_candidates(name)

        # Only the top candidate can answer from the resolved-name cache;
        # a hit further down may be shadowed by a ref not cached yet.
        top = candidates[0]
        if top.exact:
            sha = self._resolved.peek(top.label)
            if sha is not None:
                await asyncio.sleep(0)
                return ResolvedRef(ref=top.label, sha=sha)

        key = ("show-ref", *(candidate.label for candidate in candidates))

        async def lookup() -> ResolvedRef:
            return await self._lookup(name, candidates)

        return await self._cache.fetch(key, lookup)

    def clear(self) -> None:
        self._cache.clear()
        self._resolved.clear()

    async def _lookup(
        self, name: str, candidates: tuple[RefCandidate, ...]
    ) -> ResolvedRef:
        try:
            output = await self._executor.run(["show-ref"], "utf-8")
        except ExecutionError as e:
            # show-ref exits 1 without output when there are no refs at all
            if e.returncode != 1 or e.stderr.strip():
                raise
            output = ""

        for candidate in candidates:
            resolved = find_show_ref(output, candidate.pattern)
            if resolved is not None:
                logger.debug("%s resolved to %s", name, resolved.ref)
                self._resolved.put(resolved.ref, resolved.sha)
                return resolved

        raise InvalidBranchError(f"Invalid branch {name}")


__all__ = ["BranchResolver", "RefCandidate", "ref_candidates"]
