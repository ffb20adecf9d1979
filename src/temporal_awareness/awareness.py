"""Split session time into active uptime and idle (semi-downtime) gaps."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Optional

from .clock import Clock, parse_timestamp
from .config import AwarenessSettings
from .models import (
    SEMI_DOWNTIME,
    UNEXPECTED_DOWNTIME,
    UPTIME,
    ActivityEvent,
    ActivityGap,
    TimeAwareness,
)
from .paths import DataLayout
from .planner import DOWNTIME_TYPES, Planner, load_planner, match_activity
from .session import read_session_activity, read_session_state

logger = logging.getLogger(__name__)

DEFAULT_IDLE_THRESHOLD = timedelta(minutes=30)


def activity_times(events: Iterable[ActivityEvent]) -> list[datetime]:
    """Parse event timestamps in chronological order, dropping unparseable ones."""
    times: list[datetime] = []
    for event in events:
        try:
            times.append(parse_timestamp(event.ts))
        except ValueError:
            logger.debug("Skipping activity with malformed timestamp %r.", event.ts)
    times.sort()
    return times


def find_gaps(
    session_start: datetime,
    times: list[datetime],
    now: datetime,
    threshold: timedelta,
) -> list[ActivityGap]:
    """Return every idle stretch longer than ``threshold``.

    ``times`` must be sorted and non-empty.
    """
    gaps: list[ActivityGap] = []
    points = [session_start, *times, now]
    for previous, current in zip(points, points[1:]):
        if current - previous > threshold:
            gaps.append(ActivityGap(start=previous, end=current))
    return gaps


def classify_gap(
    gap: ActivityGap, planner: Optional[Planner], tz: Optional[tzinfo] = None
) -> ActivityGap:
    """Label a gap as expected when it starts inside sleep, meal or break time."""
    if planner is None:
        return gap
    start = gap.start.astimezone(tz) if tz is not None else gap.start
    match = match_activity(start, planner)
    if match.type in DOWNTIME_TYPES:
        gap.expected = True
        gap.reason = f"{match.description} ({match.type})"
    else:
        gap.expected = False
        gap.reason = UNEXPECTED_DOWNTIME
    return gap


def analyze_time_awareness(
    session_start: datetime,
    events: Iterable[ActivityEvent],
    now: datetime,
    *,
    threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
    planner: Optional[Planner] = None,
) -> TimeAwareness:
    wall_clock = now - session_start
    times = activity_times(events)

    if not times:
        gap = classify_gap(ActivityGap(start=session_start, end=now), planner, now.tzinfo)
        return TimeAwareness(
            session_start=session_start,
            now=now,
            active_uptime=timedelta(0),
            semi_downtime=wall_clock,
            last_activity=session_start,
            current_state=SEMI_DOWNTIME,
            activity_gaps=[gap] if wall_clock > timedelta(0) else [],
        )

    gaps = find_gaps(session_start, times, now, threshold)
    for gap in gaps:
        classify_gap(gap, planner, now.tzinfo)

    last_activity = times[-1]
    trailing_idle = now - last_activity > threshold
    total_gap = sum((gap.duration for gap in gaps), timedelta(0))

    return TimeAwareness(
        session_start=session_start,
        now=now,
        active_uptime=max(wall_clock - total_gap, timedelta(0)),
        semi_downtime=total_gap,
        last_activity=last_activity,
        current_state=SEMI_DOWNTIME if trailing_idle else UPTIME,
        activity_gaps=gaps,
    )


def build_time_awareness(
    layout: DataLayout,
    clock: Clock,
    settings: Optional[AwarenessSettings] = None,
) -> TimeAwareness:
    """Analyze the current session from its files on disk.

    The session-state file is required; the activity log and the planner are
    optional.
    """
    settings = settings or AwarenessSettings()
    session = read_session_state(layout)
    events = read_session_activity(layout, session)

    planner: Optional[Planner] = None
    if session.user_id:
        try:
            planner = load_planner(layout, session.user_id)
        except (OSError, ValueError) as exc:
            logger.debug("Planner unavailable for %s: %s", session.user_id, exc)

    return analyze_time_awareness(
        session.start_time,
        events,
        clock.now(),
        threshold=settings.idle_threshold,
        planner=planner,
    )
