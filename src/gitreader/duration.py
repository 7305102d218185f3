"""Duration parsing utilities."""

import re

from gitreader.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d)$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: Duration) -> int:
    """Parse duration string to milliseconds. Passthrough if already int.

    Strings are stripped first, so values read from the environment such as
    ``" 100ms\\n"`` are accepted.
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, int):
        if duration < 0:
            raise ValueError(f"Invalid duration: {duration!r}")
        return duration
    if not isinstance(duration, str):
        raise ValueError(f"Invalid duration: {duration!r}")

    match = _DURATION_PATTERN.match(duration.strip())
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    return int(value) * _UNITS[unit]


def to_seconds(duration: Duration | None) -> float | None:
    """Convert a duration to seconds for asyncio APIs; ``None`` stays ``None``."""
    if duration is None:
        return None
    return parse_duration(duration) / 1000
