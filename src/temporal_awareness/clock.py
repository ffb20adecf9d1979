"""Clock sources and RFC 3339 timestamp helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol


DISPLAY_FMT = "%a %b %d, %Y at %H:%M:%S"

# Python's parser stops at microseconds; RFC 3339 writers often emit nanoseconds.
_FRACTION_PATTERN = re.compile(r"(\.\d{1,6})\d*")


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Reads the wall clock in the local timezone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


@dataclass(slots=True)
class FixedClock:
    """Always returns the same instant; used for deterministic runs and tests."""

    instant: datetime

    def __post_init__(self) -> None:
        if self.instant.tzinfo is None:
            self.instant = self.instant.astimezone()

    def now(self) -> datetime:
        return self.instant


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp (``Z`` or offset, up to nanoseconds).

    Naive values are interpreted as UTC. Raises ``ValueError`` when the value
    cannot be parsed.
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise ValueError("Empty timestamp")
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(lambda match: match.group(1).ljust(7, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat()
