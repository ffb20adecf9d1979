"""Compact duration rendering and hour-of-day classification."""

from __future__ import annotations

from datetime import timedelta
from typing import Union

_UNITS: tuple[tuple[str, int], ...] = (
    ("d", 86400),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)


def format_duration(value: Union[timedelta, float, int]) -> str:
    """Render a duration with its largest unit and, if non-zero, the next one.

    ``format_duration(timedelta(hours=2, minutes=15)) == "2h15m"``. Zero and
    negative durations render as ``"0s"``.
    """
    seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
    total = int(seconds)
    if total <= 0:
        return "0s"

    for index, (suffix, size) in enumerate(_UNITS):
        if total < size:
            continue
        major, remainder = divmod(total, size)
        text = f"{major}{suffix}"
        if index + 1 < len(_UNITS):
            minor_suffix, minor_size = _UNITS[index + 1]
            minor = remainder // minor_size
            if minor:
                text += f"{minor}{minor_suffix}"
        return text
    return "0s"


def time_of_day(hour: int) -> str:
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def circadian_phase(hour: int) -> str:
    return {
        "morning": "peak",
        "afternoon": "normal",
        "evening": "normal",
    }.get(time_of_day(hour), "low")


def session_phase(elapsed: timedelta, fresh: timedelta, long: timedelta) -> str:
    """Classify how far into a working session ``elapsed`` is."""
    if elapsed < fresh:
        return "fresh"
    if elapsed < long:
        return "active"
    return "long"
