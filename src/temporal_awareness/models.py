"""Domain models for session activity and idle-time analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from .clock import format_timestamp

UPTIME = "uptime"
SEMI_DOWNTIME = "semi_downtime"

UNEXPECTED_DOWNTIME = "Unexpected downtime"


@dataclass(slots=True)
class ActivityEvent:
    """One line of a session's activity log, timestamp still unparsed."""

    ts: str
    tool: Optional[str] = None


@dataclass(slots=True)
class ActivityGap:
    """An idle period longer than the idle threshold."""

    start: datetime
    end: datetime
    expected: bool = False
    reason: str = UNEXPECTED_DOWNTIME

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "duration_seconds": self.duration_seconds,
            "expected": self.expected,
            "reason": self.reason,
        }


@dataclass(slots=True)
class TimeAwareness:
    """Wall-clock session time split into active uptime and idle gaps."""

    session_start: datetime
    now: datetime
    active_uptime: timedelta
    semi_downtime: timedelta
    last_activity: datetime
    current_state: str
    activity_gaps: list[ActivityGap] = field(default_factory=list)

    @property
    def wall_clock_elapsed(self) -> timedelta:
        return self.now - self.session_start

    @property
    def since_last_activity(self) -> timedelta:
        return self.now - self.last_activity

    def uptime_ratio(self) -> float:
        wall = self.wall_clock_elapsed.total_seconds()
        if wall <= 0:
            return 0.0
        return self.active_uptime.total_seconds() / wall

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_start": format_timestamp(self.session_start),
            "now": format_timestamp(self.now),
            "wall_clock_elapsed_seconds": self.wall_clock_elapsed.total_seconds(),
            "active_uptime_seconds": self.active_uptime.total_seconds(),
            "semi_downtime_seconds": self.semi_downtime.total_seconds(),
            "last_activity": format_timestamp(self.last_activity),
            "activity_gaps": [gap.to_dict() for gap in self.activity_gaps],
            "current_state": self.current_state,
        }
