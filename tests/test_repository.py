"""Tests for repository layout detection."""

from pathlib import Path

import pytest

from gitreader import BadRepositoryError, RepositoryHandle


class TestRepositoryHandle:
    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(BadRepositoryError, match="Bad repo path"):
            RepositoryHandle.open(tmp_path / "missing")

    def test_working_layout(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        handle = RepositoryHandle.open(tmp_path)
        assert handle.git_dir == tmp_path / ".git"
        assert handle.work_tree == tmp_path
        assert handle.allows_live
        assert not handle.is_bare
        assert handle.git_args == [
            f"--git-dir={tmp_path / '.git'}",
            f"--work-tree={tmp_path}",
        ]

    def test_bare_layout(self, tmp_path: Path) -> None:
        handle = RepositoryHandle.open(str(tmp_path))
        assert handle.git_dir == tmp_path
        assert handle.work_tree is None
        assert handle.is_bare
        assert not handle.allows_live
        assert handle.git_args == [f"--git-dir={tmp_path}"]

    def test_immutable(self, tmp_path: Path) -> None:
        handle = RepositoryHandle.open(tmp_path)
        with pytest.raises(AttributeError):
            handle.git_dir = tmp_path / "other"  # type: ignore[misc]
