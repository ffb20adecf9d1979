"""Assemble the four dimensions of temporal awareness into one context.

Each dimension is acquired independently. A missing or malformed source only
leaves its own sub-object unavailable (zero values, ``available=False``).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from .base_calendar import lookup_date, lookup_month
from .clock import DISPLAY_FMT, Clock, SystemClock, format_timestamp
from .config import AwarenessSettings
from .durations import circadian_phase, format_duration, session_phase, time_of_day
from .paths import DataLayout
from .planner import load_planner, match_activity, next_activity
from .session import SessionState, read_session_state

logger = logging.getLogger(__name__)

_SOURCE_ERRORS = (OSError, ValueError, LookupError)


@dataclass(slots=True)
class ExternalTime:
    """What the wall clock says."""

    current_time: Optional[datetime] = None
    formatted: str = ""
    hour: int = 0
    minute: int = 0
    time_of_day: str = ""
    circadian_phase: str = ""
    available: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["current_time"] = _iso_or_none(self.current_time)
        return payload


@dataclass(slots=True)
class InternalTime:
    """How long the current session has been running."""

    session_start: Optional[datetime] = None
    elapsed: timedelta = timedelta(0)
    elapsed_formatted: str = ""
    session_phase: str = ""
    available: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_start": _iso_or_none(self.session_start),
            "elapsed_duration_seconds": self.elapsed.total_seconds(),
            "elapsed_formatted": self.elapsed_formatted,
            "session_phase": self.session_phase,
            "available": self.available,
        }


@dataclass(slots=True)
class InternalSchedule:
    """What the planner says should be happening."""

    current_activity: str = ""
    activity_type: str = ""
    next_activity: str = ""
    next_activity_time: str = ""
    in_work_window: bool = False
    expected_downtime: bool = False
    available: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ExternalCalendar:
    """What kind of day it is, per the base calendar."""

    date: str = ""
    year: int = 0
    day_of_week: str = ""
    week_number: int = 0
    is_holiday: bool = False
    holiday_name: str = ""
    month_name: str = ""
    day_of_month: int = 0
    available: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class TemporalContext:
    external_time: ExternalTime = field(default_factory=ExternalTime)
    internal_time: InternalTime = field(default_factory=InternalTime)
    internal_schedule: InternalSchedule = field(default_factory=InternalSchedule)
    external_calendar: ExternalCalendar = field(default_factory=ExternalCalendar)

    def to_dict(self) -> dict[str, Any]:
        return {
            "external_time": self.external_time.to_dict(),
            "internal_time": self.internal_time.to_dict(),
            "internal_schedule": self.internal_schedule.to_dict(),
            "external_calendar": self.external_calendar.to_dict(),
        }


def external_time_at(now: datetime) -> ExternalTime:
    return ExternalTime(
        current_time=now,
        formatted=now.strftime(DISPLAY_FMT),
        hour=now.hour,
        minute=now.minute,
        time_of_day=time_of_day(now.hour),
        circadian_phase=circadian_phase(now.hour),
        available=True,
    )


class TemporalContextBuilder:
    """Reads every source fresh on each ``build()``; nothing is cached."""

    def __init__(
        self,
        layout: DataLayout,
        clock: Optional[Clock] = None,
        settings: Optional[AwarenessSettings] = None,
    ) -> None:
        self.layout = layout
        self.clock = clock or SystemClock()
        self.settings = settings or AwarenessSettings()

    def build(self) -> TemporalContext:
        now = self.clock.now()
        context = TemporalContext(external_time=external_time_at(now))

        try:
            session: Optional[SessionState] = read_session_state(self.layout)
        except _SOURCE_ERRORS as exc:
            logger.warning("Session state unavailable: %s", exc)
            session = None

        if session is not None:
            context.internal_time = self.internal_time(session, now)
            try:
                context.internal_schedule = self.internal_schedule(session, now)
            except _SOURCE_ERRORS as exc:
                logger.warning("Schedule unavailable: %s", exc)

        try:
            context.external_calendar = self.external_calendar(now)
        except _SOURCE_ERRORS as exc:
            logger.warning("Base calendar unavailable: %s", exc)

        return context

    def internal_time(self, session: SessionState, now: datetime) -> InternalTime:
        elapsed = now - session.start_time
        return InternalTime(
            session_start=session.start_time,
            elapsed=elapsed,
            elapsed_formatted=format_duration(elapsed),
            session_phase=session_phase(
                elapsed, self.settings.fresh_session, self.settings.long_session
            ),
            available=True,
        )

    def internal_schedule(self, session: SessionState, now: datetime) -> InternalSchedule:
        if not session.user_id:
            raise ValueError("Session state has no user_id")
        planner = load_planner(self.layout, session.user_id)
        match = match_activity(now, planner)
        schedule = InternalSchedule(
            current_activity=match.description,
            activity_type=match.type,
            in_work_window=match.in_work_window,
            expected_downtime=match.expected_downtime,
            available=True,
        )
        upcoming = next_activity(now, planner)
        if upcoming is not None:
            schedule.next_activity = upcoming.description
            schedule.next_activity_time = (
                f"tomorrow {upcoming.start}" if upcoming.tomorrow else upcoming.start
            )
        return schedule

    def external_calendar(self, now: datetime) -> ExternalCalendar:
        today = now.date()
        info = lookup_date(self.layout, today)
        month = lookup_month(self.layout, today.year, today.month)
        return ExternalCalendar(
            date=info.date,
            year=today.year,
            day_of_week=info.weekday,
            week_number=info.week_number,
            is_holiday=info.is_holiday,
            holiday_name=info.holiday_name or "",
            month_name=month.name,
            day_of_month=today.day,
            available=True,
        )


def get_temporal_context(
    layout: DataLayout,
    clock: Optional[Clock] = None,
    settings: Optional[AwarenessSettings] = None,
) -> TemporalContext:
    return TemporalContextBuilder(layout, clock, settings).build()


def _iso_or_none(value: Optional[datetime]) -> Optional[str]:
    return format_timestamp(value) if value is not None else None
