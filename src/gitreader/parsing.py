"""Parsers for git metadata files and command output."""

from __future__ import annotations

import re

from gitreader.errors import NotADirectoryError, ParseError
from gitreader.types import DirListing, LogEntry, ResolvedRef

_HEAD_REF = re.compile(r"^ref: (.*)\n$")
_DETACHED_HEAD = re.compile(r"^([a-f0-9]{40})\n?$")
_LOOSE_REF = re.compile(r"([a-f0-9]{40})\n")
_TREE_HEADER = re.compile(r"^tree .*\n\n")
_LOG_COMMIT = re.compile(r"^commit ([a-f0-9]{40})")
_LOG_FIELD = re.compile(r"^([A-Za-z]+):\s*(.*)$")


def parse_head(text: str) -> tuple[str | None, str | None]:
    """Parse HEAD into ``(ref path, None)`` or, when detached, ``(None, sha)``."""
    match = _HEAD_REF.match(text)
    if match:
        return match.group(1), None
    match = _DETACHED_HEAD.match(text)
    if match:
        return None, match.group(1)
    raise ParseError(f"Malformed HEAD: {text!r}")


def parse_loose_ref(text: str) -> str:
    match = _LOOSE_REF.search(text)
    if not match:
        raise ParseError(f"Malformed ref file: {text!r}")
    return match.group(1)


def find_packed_ref(packed_refs: str, ref: str) -> str:
    """Hash paired with ``ref`` in packed-refs text (``<sha> <ref>`` lines)."""
    match = re.search(
        rf"^([a-f0-9]{{40}}) {re.escape(ref)}$", packed_refs, re.MULTILINE
    )
    if not match:
        raise ParseError(f"{ref} not found in packed-refs")
    return match.group(1)


def find_show_ref(output: str, pattern: str) -> ResolvedRef | None:
    """First ``<sha> refs/<ref>`` line of show-ref output whose ref matches.

    ``pattern`` is a regular expression for the part after ``refs/``.
    """
    match = re.search(
        rf"^([a-f0-9]{{40}}) refs/({pattern})$", output, re.MULTILINE
    )
    if not match:
        return None
    return ResolvedRef(ref=match.group(2), sha=match.group(1))


def parse_tree(text: str, path: str = "") -> DirListing:
    """Split ``git show <sha>:<dir>`` output into files and directories."""
    if not _TREE_HEADER.match(text):
        raise NotADirectoryError(f"{path or '/'} is not a directory")

    files: list[str] = []
    dirs: list[str] = []
    body = _TREE_HEADER.sub("", text, count=1).strip()
    for entry in body.split("\n") if body else []:
        if entry.endswith("/"):
            dirs.append(entry[:-1])
        else:
            files.append(entry)
    return DirListing(files=files, dirs=dirs)


def parse_log(text: str) -> list[LogEntry]:
    """Parse ``git log -z`` output, newest commit first."""
    entries: list[LogEntry] = []
    for chunk in text.split("\0"):
        chunk = chunk.strip("\n")
        if not chunk:
            continue
        commit = _LOG_COMMIT.match(chunk)
        if not commit:
            raise ParseError(f"Malformed log entry: {chunk[:80]!r}")

        header, _, body = chunk.partition("\n\n")
        fields: dict[str, str] = {}
        for line in header.split("\n")[1:]:
            field_match = _LOG_FIELD.match(line)
            if field_match:
                fields[field_match.group(1).lower()] = field_match.group(2)

        entries.append(
            LogEntry(commit=commit.group(1), message=body.strip(), fields=fields)
        )
    return entries
