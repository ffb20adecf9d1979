"""Plain-text reports for CLI output."""

from __future__ import annotations

from typing import Iterable

from .base_calendar import BaseCalendar
from .calendar_info import DateInfo
from .clock import DISPLAY_FMT
from .config import AwarenessSettings
from .durations import format_duration
from .models import SEMI_DOWNTIME, TimeAwareness
from .planner import DaySchedule, NextActivity, ScheduleMatch
from .temporal import TemporalContext

RULE = "-" * 60
UNAVAILABLE = "(unavailable)"


def render_time_awareness(awareness: TimeAwareness, settings: AwarenessSettings) -> str:
    threshold = format_duration(settings.idle_threshold)
    wall = awareness.wall_clock_elapsed
    lines = [
        "Session time awareness",
        RULE,
        f"Wall-clock elapsed: {format_duration(wall)}",
        f"  Session started:  {awareness.session_start.strftime(DISPLAY_FMT)}",
        f"Active uptime:      {format_duration(awareness.active_uptime)}"
        f" ({_percent(awareness.active_uptime, wall)})",
        f"Semi-downtime:      {format_duration(awareness.semi_downtime)}"
        f" ({_percent(awareness.semi_downtime, wall)})",
        f"  Idle gaps longer than {threshold}",
        "",
    ]

    idle = awareness.current_state == SEMI_DOWNTIME
    since = format_duration(awareness.since_last_activity)
    lines.append(
        "Current state:      "
        + ("SEMI-DOWNTIME - idle" if idle else "UPTIME - actively working")
    )
    lines.append(f"  Last activity:    {awareness.last_activity.strftime('%H:%M:%S')}")
    lines.append(f"  {'Idle for' if idle else 'Active'} {since}{'' if idle else ' ago'}")

    gaps = awareness.activity_gaps
    if gaps:
        lines.append("")
        lines.append(f"Idle periods: {len(gaps)} gap(s) detected")
        for index, gap in enumerate(gaps[: settings.max_listed_gaps], start=1):
            label = f"Expected: {gap.reason}" if gap.expected else gap.reason
            lines.append(
                f"  {index}. {gap.start.strftime('%H:%M')}"
                f" (duration: {format_duration(gap.duration)}) {label}"
            )
        hidden = len(gaps) - settings.max_listed_gaps
        if hidden > 0:
            lines.append(f"  ... and {hidden} more")

    lines.append(RULE)
    return "\n".join(lines)


def render_temporal_context(context: TemporalContext) -> str:
    ext = context.external_time
    internal = context.internal_time
    schedule = context.internal_schedule
    cal = context.external_calendar

    lines = ["Temporal context", RULE]
    lines.append(f"External time:     {ext.formatted}")
    lines.append(f"  {ext.time_of_day} / circadian phase {ext.circadian_phase}")

    if internal.available:
        lines.append(
            f"Internal time:     {internal.elapsed_formatted} ({internal.session_phase})"
        )
    else:
        lines.append(f"Internal time:     {UNAVAILABLE}")

    if schedule.available:
        lines.append(f"Schedule:          {schedule.current_activity} [{schedule.activity_type}]")
        flags = []
        if schedule.in_work_window:
            flags.append("work window")
        if schedule.expected_downtime:
            flags.append("expected downtime")
        if flags:
            lines.append(f"  {', '.join(flags)}")
        if schedule.next_activity:
            lines.append(f"  Next: {schedule.next_activity} at {schedule.next_activity_time}")
    else:
        lines.append(f"Schedule:          {UNAVAILABLE}")

    if cal.available:
        lines.append(
            f"Calendar:          {cal.day_of_week}, {cal.month_name} {cal.day_of_month},"
            f" {cal.year} (week {cal.week_number})"
        )
        if cal.is_holiday:
            lines.append(f"  Holiday: {cal.holiday_name}")
    else:
        lines.append(f"Calendar:          {UNAVAILABLE}")

    lines.append(RULE)
    return "\n".join(lines)


def render_schedule(match: ScheduleMatch, upcoming: NextActivity | None) -> str:
    lines = [f"Now: {match.description} [{match.type}]"]
    if match.block is not None:
        lines.append(f"  {match.block.start}-{match.block.end} ({match.source})")
    lines.append(f"  In work window:    {'yes' if match.in_work_window else 'no'}")
    lines.append(f"  Expected downtime: {'yes' if match.expected_downtime else 'no'}")
    if upcoming is not None:
        when = f"tomorrow {upcoming.start}" if upcoming.tomorrow else upcoming.start
        lines.append(f"Next: {upcoming.description} [{upcoming.type}] at {when}")
    return "\n".join(lines)


def render_day_schedule(schedule: DaySchedule) -> str:
    lines = [f"{schedule.day.strftime('%A, %B %d, %Y')} - {schedule.owner}", RULE]
    if not schedule.blocks:
        lines.append("  No scheduled blocks for this day")
        return "\n".join(lines)

    for entry in schedule.blocks:
        block = entry.block
        lines.append(
            f"  {block.start}-{block.end}  {block.type:<10} {block.description}"
            f" ({format_duration(block.duration_minutes * 60)})"
        )
    if schedule.free:
        lines.append("")
        lines.append("Unscheduled time:")
        for slot in schedule.free:
            lines.append(
                f"  {slot.start}-{slot.end}  ({format_duration(slot.minutes * 60)})"
            )
    return "\n".join(lines)


def render_date_info(info: DateInfo) -> str:
    lines = [info.date, f"  {info.weekday}", f"  Week {info.week_number}"]
    if info.is_weekend:
        lines.append("  Weekend")
    if info.is_holiday and info.holiday_name:
        lines.append(f"  Holiday: {info.holiday_name}")
    return "\n".join(lines)


def render_month(calendar: BaseCalendar, month: int) -> str:
    info = calendar.months[month]
    dates = [value for value in calendar.dates.values() if value.month == month]
    lines = [
        f"{info.name} {calendar.year}",
        RULE,
        f"  {info.days_in_month} days total",
        f"  Starts: {info.first_day} ({info.first_weekday})",
        f"  Ends:   {info.last_day}",
        f"  Weekend days: {sum(1 for value in dates if value.is_weekend)}",
    ]
    holidays = list(_holiday_lines(dates))
    if holidays:
        lines.append("  Holidays:")
        lines.extend(holidays)
    return "\n".join(lines)


def _holiday_lines(dates: Iterable[DateInfo]) -> Iterable[str]:
    for value in sorted(dates, key=lambda item: item.date):
        if value.is_holiday and value.holiday_name:
            yield f"    {value.date}: {value.holiday_name}"


def _percent(part, whole) -> str:
    total = whole.total_seconds()
    if total <= 0:
        return "0%"
    return f"{part.total_seconds() / total * 100:.0f}%"
