"""Generation and lookup of the immutable base calendar."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

from .calendar_info import (
    OBSERVED_HOLIDAY_SETS,
    DateInfo,
    MonthInfo,
    date_info_for,
    days_in_year,
    month_info,
)
from .clock import Clock
from .paths import DataLayout

logger = logging.getLogger(__name__)

MIN_YEAR = 1
MAX_YEAR = 9999


@dataclass(slots=True)
class CalendarMetadata:
    created: str
    timezone: str
    observes_holidays: list[str] = field(default_factory=lambda: list(OBSERVED_HOLIDAY_SETS))
    total_days: int = 0


@dataclass(slots=True)
class BaseCalendar:
    """A year (or a single month) of date and month facts."""

    year: int
    metadata: CalendarMetadata
    dates: dict[str, DateInfo] = field(default_factory=dict)
    months: dict[int, MonthInfo] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "metadata": {
                "created": self.metadata.created,
                "timezone": self.metadata.timezone,
                "observes_holidays": list(self.metadata.observes_holidays),
                "total_days": self.metadata.total_days,
            },
            "dates": {key: info.to_dict() for key, info in sorted(self.dates.items())},
            "months": {str(key): info.to_dict() for key, info in sorted(self.months.items())},
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "BaseCalendar":
        if not isinstance(payload, dict):
            raise ValueError("Calendar document must be a JSON object")
        try:
            raw_meta = payload.get("metadata") or {}
            metadata = CalendarMetadata(
                created=str(raw_meta.get("created", "")),
                timezone=str(raw_meta.get("timezone", "")),
                observes_holidays=list(raw_meta.get("observes_holidays") or []),
                total_days=int(raw_meta.get("total_days") or 0),
            )
            dates = {
                key: DateInfo.from_dict(value)
                for key, value in (payload.get("dates") or {}).items()
            }
            months = {
                int(key): MonthInfo.from_dict(value)
                for key, value in (payload.get("months") or {}).items()
            }
            year = int(payload.get("year") or 0)
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed calendar document: {exc}") from exc
        return cls(year=year, metadata=metadata, dates=dates, months=months)

    def for_month(self, month: int) -> "BaseCalendar":
        info = self.months[month]
        return BaseCalendar(
            year=self.year,
            metadata=CalendarMetadata(
                created=self.metadata.created,
                timezone=self.metadata.timezone,
                observes_holidays=list(self.metadata.observes_holidays),
                total_days=info.days_in_month,
            ),
            dates={key: value for key, value in self.dates.items() if value.month == month},
            months={month: info},
        )


def validate_year(year: int) -> int:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValueError(f"Invalid year: {year} (must be {MIN_YEAR}-{MAX_YEAR})")
    return year


def build_calendar(year: int, *, created: date, timezone: str) -> BaseCalendar:
    """Enumerate every date and month of ``year``."""
    validate_year(year)
    total = days_in_year(year)
    calendar = BaseCalendar(
        year=year,
        metadata=CalendarMetadata(
            created=created.isoformat(),
            timezone=timezone,
            total_days=total,
        ),
    )

    start = date(year, 1, 1)
    for offset in range(total):
        info = date_info_for(start + timedelta(days=offset))
        calendar.dates[info.date] = info

    for month in range(1, 13):
        calendar.months[month] = month_info(year, month)

    return calendar


def write_calendar(calendar: BaseCalendar, layout: DataLayout, *, monthly: bool) -> list[Path]:
    """Persist the calendar and return the written paths.

    Raises ``OSError`` when a file cannot be written.
    """
    written: list[Path] = []
    if monthly:
        for month in range(1, 13):
            path = layout.calendar_month_path(calendar.year, month)
            _write_json(path, calendar.for_month(month).to_dict())
            written.append(path)
    else:
        path = layout.calendar_year_path(calendar.year)
        _write_json(path, calendar.to_dict())
        written.append(path)
    logger.debug("Wrote %d calendar file(s) for %d.", len(written), calendar.year)
    return written


def generate_calendar(
    year: int,
    *,
    monthly: bool,
    layout: DataLayout,
    clock: Clock,
    timezone: Optional[str] = None,
) -> list[Path]:
    now = clock.now()
    calendar = build_calendar(
        year,
        created=now.date(),
        timezone=timezone or _timezone_name(now),
    )
    return write_calendar(calendar, layout, monthly=monthly)


def load_month_calendar(layout: DataLayout, year: int, month: int) -> BaseCalendar:
    """Load the monthly calendar file, falling back to the yearly document.

    Raises ``FileNotFoundError`` if neither exists and ``ValueError`` if the
    file found cannot be parsed.
    """
    month_path = layout.calendar_month_path(year, month)
    year_path = layout.calendar_year_path(year)
    for path in (month_path, year_path):
        if path.exists():
            return _read_calendar(path)
    raise FileNotFoundError(
        f"Calendar not found for {year}-{month:02d} "
        f"(run calendar-generate --year {year})"
    )


def lookup_date(layout: DataLayout, day: date) -> DateInfo:
    calendar = load_month_calendar(layout, day.year, day.month)
    key = day.isoformat()
    try:
        return calendar.dates[key]
    except KeyError:
        raise LookupError(f"Date not found: {key}") from None


def lookup_month(layout: DataLayout, year: int, month: int) -> MonthInfo:
    calendar = load_month_calendar(layout, year, month)
    try:
        return calendar.months[month]
    except KeyError:
        raise LookupError(f"Month not found: {year}-{month:02d}") from None


def _read_calendar(path: Path) -> BaseCalendar:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return BaseCalendar.from_dict(payload)


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
        handle.write("\n")


def _timezone_name(now) -> str:
    key = getattr(now.tzinfo, "key", None)
    return key or now.tzname() or "UTC"
