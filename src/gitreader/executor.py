"""Runs the git executable as a subprocess."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from typing import Protocol, overload

from gitreader.duration import to_seconds
from gitreader.errors import ExecutionError, ExecutionTimeoutError, NotFoundError
from gitreader.repository import RepositoryHandle
from gitreader.types import Duration

logger = logging.getLogger(__name__)

# stderr of a failed show/log for a path or revision that does not exist
GIT_ENOENT = re.compile(
    r"fatal: ([Pp]ath '([^']+)' (does not exist|exists on disk, but not) in '([0-9a-f]{40})'"
    r"|ambiguous argument '([^']+)': unknown revision or path not in the working tree\.)"
)


class Executor(Protocol):
    """Anything that can run a git command for a repository."""

    @overload
    async def run(self, args: Sequence[str], encoding: None = None) -> bytes: ...

    @overload
    async def run(self, args: Sequence[str], encoding: str) -> str: ...

    async def run(self, args: Sequence[str], encoding: str | None = None) -> str | bytes:
        ...


class GitExecutor:
    """Run git against one repository, collecting all output."""

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        git: str = "git",
        timeout: Duration | None = None,
    ) -> None:
        self._handle = handle
        self._git = git
        self._timeout = to_seconds(timeout)

    @property
    def timeout(self) -> float | None:
        """Execution timeout in seconds, or None for no limit."""
        return self._timeout

    def command(self, args: Sequence[str]) -> list[str]:
        """Full command line for ``args``."""
        return [self._git, *self._handle.git_args, *args]

    async def run(self, args: Sequence[str], encoding: str | None = None) -> str | bytes:
        """Run ``git <repo args> <args>``.

        Returns stdout decoded with ``encoding``, or raw bytes if it is None.
        A nonzero exit raises ExecutionError, or NotFoundError when git says
        the path or revision does not exist.
        """
        command = self.command(args)
        logger.debug("exec %s", " ".join(command))
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError(command, str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ExecutionTimeoutError(
                command, f"timed out after {self._timeout}s"
            ) from None

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace")
            error_type = NotFoundError if GIT_ENOENT.search(message) else ExecutionError
            raise error_type(command, message, process.returncode)

        if encoding is None:
            return stdout
        return stdout.decode(encoding)


__all__ = ["GIT_ENOENT", "Executor", "GitExecutor"]
