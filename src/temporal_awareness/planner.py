"""Planner documents and matching instants against recurring time blocks.

A planner holds two pattern sets: ``daily`` blocks that recur every day and
``weekly`` blocks keyed by lowercase weekday name. Matching scans daily blocks
first, then the blocks for the instant's weekday, and the first block that
contains the minute wins. Block ``priority`` is carried through but never
consulted, so declaration order is the only tie-break.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from .calendar_info import WEEKDAY_NAMES
from .paths import DataLayout

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
MIN_FREE_MINUTES = 15

WORK = "work"
SLEEP = "sleep"
MEAL = "meal"
BREAK = "break"
COMMITMENT = "commitment"
FLEX = "flex"

BLOCK_TYPES = frozenset({WORK, SLEEP, MEAL, BREAK, COMMITMENT, FLEX})
DOWNTIME_TYPES = frozenset({SLEEP, MEAL, BREAK})
DAILY_WORK_TYPES = frozenset({WORK})
WEEKLY_WORK_TYPES = frozenset({WORK, COMMITMENT})

UNSCHEDULED = "Unscheduled time"

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_WEEKDAY_KEYS = frozenset(name.lower() for name in WEEKDAY_NAMES)


@dataclass(slots=True)
class TimeBlock:
    """A recurring range of minutes within a day."""

    start_minute: int
    end_minute: int
    type: str
    description: str
    priority: Optional[str] = None

    @property
    def wraps_midnight(self) -> bool:
        return self.end_minute < self.start_minute

    @property
    def duration_minutes(self) -> int:
        return (self.end_minute - self.start_minute) % MINUTES_PER_DAY

    def contains(self, minute: int) -> bool:
        return is_time_in_block(minute, self)

    @property
    def start(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end(self) -> str:
        return minutes_to_time(self.end_minute)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "type": self.type,
            "description": self.description,
            "priority": self.priority,
        }


@dataclass(slots=True)
class RecurringPatternSet:
    daily: list[TimeBlock] = field(default_factory=list)
    weekly: dict[str, list[TimeBlock]] = field(default_factory=dict)

    def blocks_for(self, weekday: str) -> list[TimeBlock]:
        return list(self.daily) + list(self.weekly.get(weekday, []))


@dataclass(slots=True)
class Planner:
    owner: str
    recurring_patterns: RecurringPatternSet = field(default_factory=RecurringPatternSet)
    planner_id: Optional[str] = None
    month: Optional[str] = None


@dataclass(slots=True)
class ScheduleMatch:
    """What the planner says should be happening at an instant."""

    description: str
    type: str
    in_work_window: bool
    expected_downtime: bool
    block: Optional[TimeBlock] = None
    source: Optional[str] = None  # "daily", "weekly" or None when unscheduled

    @property
    def scheduled(self) -> bool:
        return self.block is not None


@dataclass(slots=True)
class NextActivity:
    description: str
    type: str
    start: str
    tomorrow: bool


@dataclass(slots=True)
class ScheduledBlock:
    block: TimeBlock
    source: str

    def to_dict(self) -> dict[str, Any]:
        payload = self.block.to_dict()
        payload["duration_minutes"] = self.block.duration_minutes
        payload["source"] = self.source
        return payload


@dataclass(slots=True)
class FreeSlot:
    """Unscheduled minutes of a day; ``end_minute`` may be 1440 (end of day)."""

    start_minute: int
    end_minute: int

    @property
    def minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def start(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end(self) -> str:
        if self.end_minute >= MINUTES_PER_DAY:
            return "24:00"
        return minutes_to_time(self.end_minute)

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end, "minutes": self.minutes}


@dataclass(slots=True)
class DaySchedule:
    day: date
    owner: str
    blocks: list[ScheduledBlock] = field(default_factory=list)
    free: list[FreeSlot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "weekday": WEEKDAY_NAMES[self.day.weekday()],
            "owner": self.owner,
            "blocks": [entry.to_dict() for entry in self.blocks],
            "free": [slot.to_dict() for slot in self.free],
        }


def time_to_minutes(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight; raises ``ValueError``."""
    match = _CLOCK_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    hours, mins = divmod(minutes % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{mins:02d}"


def minute_of_day(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def weekday_key(instant: datetime) -> str:
    return WEEKDAY_NAMES[instant.weekday()].lower()


def is_time_in_block(minute: int, block: TimeBlock) -> bool:
    if block.end_minute < block.start_minute:
        return minute >= block.start_minute or minute < block.end_minute
    return block.start_minute <= minute < block.end_minute


def parse_time_block(payload: Any) -> TimeBlock:
    """Build a block from its JSON form; raises ``ValueError`` when malformed."""
    if not isinstance(payload, dict):
        raise ValueError("Time block must be a JSON object")
    try:
        start = time_to_minutes(payload["start"])
        end = time_to_minutes(payload["end"])
    except KeyError as exc:
        raise ValueError(f"Time block missing {exc.args[0]!r}") from None
    block_type = str(payload.get("type") or FLEX).strip().lower()
    if block_type not in BLOCK_TYPES:
        logger.debug("Unknown block type %r; keeping as-is.", block_type)
    priority = payload.get("priority")
    return TimeBlock(
        start_minute=start,
        end_minute=end,
        type=block_type,
        description=str(payload.get("description") or ""),
        priority=str(priority) if priority is not None else None,
    )


def parse_planner(payload: Any, owner: str) -> Planner:
    if not isinstance(payload, dict):
        raise ValueError("Planner document must be a JSON object")
    patterns = payload.get("recurring_patterns") or {}
    if not isinstance(patterns, dict):
        raise ValueError("recurring_patterns must be a JSON object")

    daily = _parse_blocks(patterns.get("daily") or [], "daily")
    weekly: dict[str, list[TimeBlock]] = {}
    raw_weekly = patterns.get("weekly") or {}
    if not isinstance(raw_weekly, dict):
        raise ValueError("recurring_patterns.weekly must be a JSON object")
    for day, blocks in raw_weekly.items():
        key = str(day).strip().lower()
        if key not in _WEEKDAY_KEYS:
            logger.warning("Ignoring weekly pattern for unknown weekday %r.", day)
            continue
        weekly[key] = _parse_blocks(blocks, f"weekly.{key}")

    return Planner(
        owner=str(payload.get("owner") or owner),
        recurring_patterns=RecurringPatternSet(daily=daily, weekly=weekly),
        planner_id=payload.get("planner_id"),
        month=payload.get("month"),
    )


def load_planner(layout: DataLayout, owner: str) -> Planner:
    """Read the owner's planner template from disk.

    Raises ``FileNotFoundError`` when there is no template and ``ValueError``
    when it cannot be parsed.
    """
    if not owner:
        raise ValueError("Planner owner is required")
    path = layout.planner_path(owner)
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return parse_planner(payload, owner)


def match_activity(instant: datetime, planner: Planner) -> ScheduleMatch:
    minute = minute_of_day(instant)
    patterns = planner.recurring_patterns

    for block in patterns.daily:
        if is_time_in_block(minute, block):
            return ScheduleMatch(
                description=block.description,
                type=block.type,
                in_work_window=block.type in DAILY_WORK_TYPES,
                expected_downtime=block.type in DOWNTIME_TYPES,
                block=block,
                source="daily",
            )

    for block in patterns.weekly.get(weekday_key(instant), []):
        if is_time_in_block(minute, block):
            return ScheduleMatch(
                description=block.description,
                type=block.type,
                in_work_window=block.type in WEEKLY_WORK_TYPES,
                expected_downtime=block.type in DOWNTIME_TYPES,
                block=block,
                source="weekly",
            )

    return ScheduleMatch(
        description=UNSCHEDULED,
        type=FLEX,
        in_work_window=False,
        expected_downtime=False,
    )


def next_activity(instant: datetime, planner: Planner) -> Optional[NextActivity]:
    """Find the next block to start after ``instant``, looking into tomorrow."""
    minute = minute_of_day(instant)
    patterns = planner.recurring_patterns

    upcoming = [
        block for block in patterns.blocks_for(weekday_key(instant))
        if block.start_minute > minute
    ]
    tomorrow = False
    if not upcoming:
        upcoming = patterns.blocks_for(weekday_key(instant + timedelta(days=1)))
        tomorrow = True
    if not upcoming:
        return None

    # min() keeps the first declared block among equal start times.
    block = min(upcoming, key=lambda item: item.start_minute)
    return NextActivity(
        description=block.description,
        type=block.type,
        start=block.start,
        tomorrow=tomorrow,
    )


def day_schedule(
    day: date, planner: Planner, min_free_minutes: int = MIN_FREE_MINUTES
) -> DaySchedule:
    """Every block that recurs on ``day``, ordered by start time, plus free time."""
    patterns = planner.recurring_patterns
    entries = [ScheduledBlock(block=block, source="daily") for block in patterns.daily]
    entries.extend(
        ScheduledBlock(block=block, source="weekly")
        for block in patterns.weekly.get(WEEKDAY_NAMES[day.weekday()].lower(), [])
    )
    # Stable sort: daily blocks stay ahead of weekly ones starting at the same minute.
    entries.sort(key=lambda entry: entry.block.start_minute)
    return DaySchedule(
        day=day,
        owner=planner.owner,
        blocks=entries,
        free=unscheduled_gaps((entry.block for entry in entries), min_free_minutes),
    )


def unscheduled_gaps(
    blocks: Iterable[TimeBlock], min_minutes: int = MIN_FREE_MINUTES
) -> list[FreeSlot]:
    """Stretches of the day no block covers, at least ``min_minutes`` long.

    A block that wraps midnight covers both the end and the start of the day.
    """
    covered: list[tuple[int, int]] = []
    for block in blocks:
        if block.wraps_midnight:
            covered.append((block.start_minute, MINUTES_PER_DAY))
            covered.append((0, block.end_minute))
        elif block.end_minute > block.start_minute:
            covered.append((block.start_minute, block.end_minute))
    covered.sort()

    free: list[FreeSlot] = []
    cursor = 0
    for start, end in covered:
        if start - cursor >= min_minutes:
            free.append(FreeSlot(start_minute=cursor, end_minute=start))
        cursor = max(cursor, end)
    if MINUTES_PER_DAY - cursor >= min_minutes:
        free.append(FreeSlot(start_minute=cursor, end_minute=MINUTES_PER_DAY))
    return free


def _parse_blocks(raw: Any, label: str) -> list[TimeBlock]:
    if not isinstance(raw, list):
        logger.warning("Ignoring %s patterns: expected a list.", label)
        return []
    blocks: list[TimeBlock] = []
    for index, item in enumerate(raw):
        try:
            blocks.append(parse_time_block(item))
        except ValueError as exc:
            logger.warning("Skipping %s block #%d: %s", label, index, exc)
    return blocks
