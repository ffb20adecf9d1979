"""Configuration models and helpers for temporal awareness."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class AwarenessSettings:
    """Thresholds used to classify session time."""

    idle_threshold: timedelta = timedelta(minutes=30)
    fresh_session: timedelta = timedelta(minutes=30)
    long_session: timedelta = timedelta(minutes=120)
    max_listed_gaps: int = 5

    @classmethod
    def from_minutes(
        cls,
        idle_minutes: float,
        fresh_minutes: float | None = None,
        long_minutes: float | None = None,
        max_listed_gaps: int = 5,
    ) -> "AwarenessSettings":
        fresh = fresh_minutes if fresh_minutes is not None else 30.0
        long = long_minutes if long_minutes is not None else max(fresh, 120.0)
        if long < fresh:
            raise ValueError("long session threshold must not be shorter than fresh")
        return cls(
            idle_threshold=timedelta(minutes=idle_minutes),
            fresh_session=timedelta(minutes=fresh),
            long_session=timedelta(minutes=long),
            max_listed_gaps=max_listed_gaps,
        )
