"""Tests for GitReader dispatch, using a fake executor."""

import asyncio
from pathlib import Path

import pytest
from helpers import SHA_A, SHA_B, FakeExecutor

from gitreader import (
    LIVE,
    DirListing,
    GitReader,
    Historical,
    InvalidVersionError,
    NotADirectoryError,
    NotFoundError,
    ReaderConfig,
    RepositoryHandle,
    UnsupportedOperationError,
)


@pytest.fixture
def bare(tmp_path: Path, fake_executor: FakeExecutor) -> GitReader:
    return GitReader(RepositoryHandle(git_dir=tmp_path), executor=fake_executor)


@pytest.fixture
def working(tmp_path: Path, fake_executor: FakeExecutor) -> GitReader:
    (tmp_path / ".git").mkdir()
    (tmp_path / "a.txt").write_text("alpha\n")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("beta\n")
    return GitReader(
        tmp_path,
        executor=fake_executor,
        config=ReaderConfig(volatile_ttl="20ms"),
    )


class TestHistoricalReads:
    """Historical versions go through git."""

    async def test_read_file(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        fake_executor.respond(["show", f"{SHA_A}:a.txt"], "alpha\n")
        assert await bare.read_file(SHA_A, "a.txt", "utf-8") == "alpha\n"
        assert await bare.read_file(Historical(SHA_A), "/a.txt") == b"alpha\n"

    async def test_read_file_cached_per_encoding(
        self, bare: GitReader, fake_executor: FakeExecutor
    ) -> None:
        fake_executor.respond(["show", f"{SHA_A}:a.txt"], "alpha\n")
        await bare.read_file(SHA_A, "a.txt", "utf-8")
        await bare.read_file(SHA_A, "a.txt", "utf-8")
        await bare.read_file(SHA_A, "a.txt")
        assert len(fake_executor.calls) == 2

    async def test_read_dir(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        fake_executor.respond(["show", f"{SHA_A}:"], f"tree {SHA_A}:\n\na.txt\nsub/\n")
        listing = await bare.read_dir(SHA_A, "")
        assert listing == DirListing(files=["a.txt"], dirs=["sub"])

    async def test_read_dir_of_file(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        fake_executor.respond(["show", f"{SHA_A}:a.txt"], "alpha\n")
        with pytest.raises(NotADirectoryError):
            await bare.read_dir(SHA_A, "a.txt")

    async def test_missing_path(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        fake_executor.respond(
            ["show", f"{SHA_A}:nope"],
            NotFoundError(["git", "show"], f"fatal: path 'nope' does not exist in '{SHA_A}'", 128),
        )
        with pytest.raises(NotFoundError):
            await bare.read_file(SHA_A, "nope")

    async def test_log_without_commits_is_empty(
        self, bare: GitReader, fake_executor: FakeExecutor
    ) -> None:
        fake_executor.respond(["log", "-z", "--summary", SHA_A, "--", "nope"], "")
        assert await bare.log_file(SHA_A, "nope") == []

    async def test_log_parses_entries(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        fake_executor.respond(
            ["log", "-z", "--summary", SHA_B, "--", "a.txt"],
            f"commit {SHA_B}\nAuthor: Ann <ann@example.com>\n\n    Update a\n",
        )
        (entry,) = await bare.log_file(SHA_B, "a.txt")
        assert entry.commit == SHA_B
        assert entry.author == "Ann <ann@example.com>"
        assert entry.message == "Update a"

    async def test_concurrent_reads_run_git_once(
        self, bare: GitReader, fake_executor: FakeExecutor
    ) -> None:
        fake_executor.delay = 0.02
        fake_executor.respond(["show", f"{SHA_A}:a.txt"], "alpha\n")
        results = await asyncio.gather(
            *(bare.read_file(SHA_A, "a.txt", "utf-8") for _ in range(5))
        )
        assert results == ["alpha\n"] * 5
        assert len(fake_executor.calls) == 1


class TestVersionValidation:
    async def test_invalid_version_never_reaches_git(
        self, bare: GitReader, fake_executor: FakeExecutor
    ) -> None:
        for read in (bare.read_file, bare.read_dir, bare.log_file):
            with pytest.raises(InvalidVersionError):
                await read("0123456789", "a.txt")
        assert fake_executor.calls == []


class TestLiveReads:
    """The live version reads the work tree."""

    async def test_read_file(self, working: GitReader, fake_executor: FakeExecutor) -> None:
        assert await working.read_file(LIVE, "a.txt", "utf-8") == "alpha\n"
        assert await working.read_file("live", "sub/b.txt") == b"beta\n"
        assert fake_executor.calls == []

    async def test_read_dir(self, working: GitReader) -> None:
        listing = await working.read_dir(LIVE, "")
        assert listing.files == ["a.txt"]
        assert listing.dirs == [".git", "sub"]

    async def test_missing_file_passes_os_error_through(self, working: GitReader) -> None:
        with pytest.raises(FileNotFoundError):
            await working.read_file(LIVE, "nope.txt")

    async def test_live_content_expires(self, working: GitReader, tmp_path: Path) -> None:
        assert await working.read_file(LIVE, "a.txt", "utf-8") == "alpha\n"
        (tmp_path / "a.txt").write_text("changed\n")
        await asyncio.sleep(0.05)
        assert await working.read_file(LIVE, "a.txt", "utf-8") == "changed\n"

    async def test_log_is_unsupported(self, working: GitReader) -> None:
        with pytest.raises(UnsupportedOperationError):
            await working.log_file(LIVE, "a.txt")

    async def test_bare_repository_has_no_live_version(self, bare: GitReader) -> None:
        with pytest.raises(UnsupportedOperationError, match="bare"):
            await bare.read_file(LIVE, "a.txt")
        with pytest.raises(UnsupportedOperationError):
            await bare.read_dir(LIVE, "")


class TestResolution:
    async def test_get_head_is_live_for_working_repo(self, working: GitReader) -> None:
        assert await working.get_head() is LIVE

    async def test_resolve_passthrough(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        assert await bare.resolve(SHA_A) == Historical(SHA_A)
        assert await bare.resolve("fs") is LIVE
        assert await bare.resolve(LIVE) is LIVE
        assert fake_executor.calls == []

    async def test_resolve_branch(self, bare: GitReader, fake_executor: FakeExecutor) -> None:
        fake_executor.respond(["show-ref"], f"{SHA_B} refs/heads/main\n")
        assert await bare.resolve("main") == Historical(SHA_B)

    async def test_clear_drops_cached_content(
        self, bare: GitReader, fake_executor: FakeExecutor
    ) -> None:
        fake_executor.respond(["show", f"{SHA_A}:a.txt"], "alpha\n")
        await bare.read_file(SHA_A, "a.txt")
        bare.clear()
        await bare.read_file(SHA_A, "a.txt")
        assert len(fake_executor.calls) == 2

    def test_safe_is_exposed(self) -> None:
        from gitreader import safe

        assert GitReader.safe is safe
