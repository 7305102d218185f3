"""Exceptions raised by git-reader."""

from __future__ import annotations

import builtins
from collections.abc import Sequence


class GitReaderError(Exception):
    """Base class for all git-reader errors."""


class BadRepositoryError(GitReaderError):
    """The repository path does not exist."""


class InvalidVersionError(GitReaderError, ValueError):
    """A version tag is neither a 40-character sha nor the live sentinel."""


class InvalidBranchError(GitReaderError):
    """A branch or tag name does not resolve to any ref."""


class ExecutionError(GitReaderError):
    """The git subprocess exited with a nonzero status."""

    def __init__(
        self,
        command: Sequence[str],
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.command = list(command)
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(f"{' '.join(self.command)}\n{stderr}".rstrip())


class NotFoundError(ExecutionError):
    """git reported that a path or revision does not exist."""


class ExecutionTimeoutError(ExecutionError):
    """The git subprocess did not finish within the configured timeout."""


class ParseError(GitReaderError):
    """A metadata file or command output did not have the expected shape."""


class NotADirectoryError(GitReaderError, builtins.NotADirectoryError):
    """A historical path expected to be a tree is not one."""


class UnsupportedOperationError(GitReaderError):
    """The operation is not available for this version or repository layout."""


__all__ = [
    "BadRepositoryError",
    "ExecutionError",
    "ExecutionTimeoutError",
    "GitReaderError",
    "InvalidBranchError",
    "InvalidVersionError",
    "NotADirectoryError",
    "NotFoundError",
    "ParseError",
    "UnsupportedOperationError",
]
