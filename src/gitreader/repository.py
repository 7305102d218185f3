"""Repository handle and layout detection."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from gitreader.errors import BadRepositoryError


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    """Metadata directory plus, for working repositories, the work tree."""

    git_dir: Path
    work_tree: Path | None = None

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> RepositoryHandle:
        """Detect the layout of the repository at ``path``.

        A ``.git`` entry makes it a working repository; otherwise ``path`` is
        taken to be a bare repository's metadata directory.
        """
        root = Path(path)
        if not root.exists():
            raise BadRepositoryError(f"Bad repo path: {path}")

        git_dir = root / ".git"
        if git_dir.exists():
            return cls(git_dir=git_dir, work_tree=root)
        return cls(git_dir=root)

    @property
    def is_bare(self) -> bool:
        return self.work_tree is None

    @property
    def allows_live(self) -> bool:
        """Live reads need a work tree."""
        return self.work_tree is not None

    @property
    def git_args(self) -> list[str]:
        """Argument prefix selecting this repository for every git call."""
        args = [f"--git-dir={self.git_dir}"]
        if self.work_tree is not None:
            args.append(f"--work-tree={self.work_tree}")
        return args


__all__ = ["RepositoryHandle"]
