"""Constants and fakes shared by the test modules."""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from gitreader import ExecutionError

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40
SHA_D = "d" * 40

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeExecutor:
    """Stands in for GitExecutor, answering from a table of responses.

    A response may be text, bytes, an exception to raise, or a callable
    producing one of those.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.calls: list[list[str]] = []
        self.responses: dict[tuple[str, ...], Any] = {}
        self.delay = delay

    def respond(self, args: Sequence[str], response: Any) -> None:
        self.responses[tuple(args)] = response

    async def run(self, args: Sequence[str], encoding: str | None = None) -> Any:
        self.calls.append(list(args))
        await asyncio.sleep(self.delay)
        response = self.responses.get(tuple(args))
        if callable(response):
            response = response()
        if isinstance(response, BaseException):
            raise response
        if response is None:
            raise ExecutionError(["git", *args], "fatal: unexpected command", 128)
        if encoding is None and isinstance(response, str):
            return response.encode()
        if encoding is not None and isinstance(response, bytes):
            return response.decode(encoding)
        return response


@dataclass
class GitRepo:
    path: Path
    first: str  # commit adding a.txt and sub/b.txt
    second: str  # commit changing a.txt
