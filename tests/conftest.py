"""Shared pytest fixtures."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest
from helpers import FakeClock, FakeExecutor, GitRepo

from gitreader import MemoryAdapter


@pytest.fixture
def adapter() -> MemoryAdapter:
    """Create a fresh MemoryAdapter for each test."""
    return MemoryAdapter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


# -----------------------------------------------------------------------------
# Throwaway repositories built with the git CLI
# -----------------------------------------------------------------------------


def _git_env(home: Path) -> dict[str, str]:
    env = dict(os.environ)
    env.update(
        HOME=str(home),
        GIT_CONFIG_NOSYSTEM="1",
        GIT_AUTHOR_NAME="Test Author",
        GIT_AUTHOR_EMAIL="author@example.com",
        GIT_COMMITTER_NAME="Test Author",
        GIT_COMMITTER_EMAIL="author@example.com",
    )
    return env


@pytest.fixture
def git(tmp_path: Path) -> Callable[..., str]:
    """Run git in a directory, isolated from user and system config."""
    home = tmp_path / "home"
    home.mkdir()
    env = _git_env(home)

    def run(cwd: Path, *args: str) -> str:
        result = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
            cwd=cwd,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    return run


@pytest.fixture
def git_repo(tmp_path: Path, git: Callable[..., str]) -> GitRepo:
    """Working repository on branch main with two commits and some refs.

    - tag v1 and branch feature point at the first commit
    - tag "main" also points at the first commit, shadowed by heads/main
    """
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    path = tmp_path / "repo"
    path.mkdir()
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")

    (path / "a.txt").write_text("alpha\n")
    (path / "sub").mkdir()
    (path / "sub" / "b.txt").write_text("beta\n")
    git(path, "add", "a.txt", "sub/b.txt")
    git(path, "commit", "-q", "-m", "Add files")
    first = git(path, "rev-parse", "HEAD")

    (path / "a.txt").write_text("alpha 2\n")
    git(path, "commit", "-q", "-am", "Update a")
    second = git(path, "rev-parse", "HEAD")

    git(path, "tag", "v1", first)
    git(path, "tag", "main", first)
    git(path, "branch", "feature", first)
    return GitRepo(path=path, first=first, second=second)


@pytest.fixture
def bare_repo(tmp_path: Path, git: Callable[..., str], git_repo: GitRepo) -> GitRepo:
    """Bare clone of git_repo."""
    path = tmp_path / "bare.git"
    git(tmp_path, "clone", "-q", "--bare", str(git_repo.path), str(path))
    return GitRepo(path=path, first=git_repo.first, second=git_repo.second)
