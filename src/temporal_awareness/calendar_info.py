"""Pure Gregorian calendar facts: weekdays, ISO weeks, months and holidays."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

OBSERVED_HOLIDAY_SETS: tuple[str, ...] = ("US Federal",)

# U.S. federal holidays, including observed weekday substitutes. Years missing
# from this table have no holidays.
US_FEDERAL_HOLIDAYS: dict[int, dict[str, str]] = {
    2025: {
        "2025-01-01": "New Year's Day",
        "2025-01-20": "Martin Luther King Jr. Day",
        "2025-02-17": "Presidents' Day",
        "2025-05-26": "Memorial Day",
        "2025-06-19": "Juneteenth",
        "2025-07-04": "Independence Day",
        "2025-09-01": "Labor Day",
        "2025-10-13": "Columbus Day",
        "2025-11-11": "Veterans Day",
        "2025-11-27": "Thanksgiving Day",
        "2025-12-25": "Christmas Day",
    },
    2026: {
        "2026-01-01": "New Year's Day",
        "2026-01-19": "Martin Luther King Jr. Day",
        "2026-02-16": "Presidents' Day",
        "2026-05-25": "Memorial Day",
        "2026-06-19": "Juneteenth",
        "2026-07-03": "Independence Day (Observed)",
        "2026-07-04": "Independence Day",
        "2026-09-07": "Labor Day",
        "2026-10-12": "Columbus Day",
        "2026-11-11": "Veterans Day",
        "2026-11-26": "Thanksgiving Day",
        "2026-12-25": "Christmas Day",
    },
    2027: {
        "2027-01-01": "New Year's Day",
        "2027-01-18": "Martin Luther King Jr. Day",
        "2027-02-15": "Presidents' Day",
        "2027-05-31": "Memorial Day",
        "2027-06-18": "Juneteenth (Observed)",
        "2027-06-19": "Juneteenth",
        "2027-07-04": "Independence Day",
        "2027-07-05": "Independence Day (Observed)",
        "2027-09-06": "Labor Day",
        "2027-10-11": "Columbus Day",
        "2027-11-11": "Veterans Day",
        "2027-11-25": "Thanksgiving Day",
        "2027-12-24": "Christmas Day (Observed)",
        "2027-12-25": "Christmas Day",
        "2027-12-31": "New Year's Day (Observed)",
    },
}


@dataclass(slots=True)
class DateInfo:
    """Calendar facts for a single day."""

    date: str
    weekday: str
    week_number: int
    month: int
    day: int
    is_weekend: bool
    is_holiday: bool
    holiday_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "weekday": self.weekday,
            "week_number": self.week_number,
            "month": self.month,
            "day": self.day,
            "is_weekend": self.is_weekend,
            "is_holiday": self.is_holiday,
            "holiday_name": self.holiday_name,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DateInfo":
        return cls(
            date=str(payload["date"]),
            weekday=str(payload["weekday"]),
            week_number=int(payload["week_number"]),
            month=int(payload["month"]),
            day=int(payload["day"]),
            is_weekend=bool(payload.get("is_weekend", False)),
            is_holiday=bool(payload.get("is_holiday", False)),
            holiday_name=payload.get("holiday_name") or None,
        )


@dataclass(slots=True)
class MonthInfo:
    """Calendar facts for a month."""

    month: int
    name: str
    days_in_month: int
    first_day: str
    last_day: str
    first_weekday: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "name": self.name,
            "days_in_month": self.days_in_month,
            "first_day": self.first_day,
            "last_day": self.last_day,
            "first_weekday": self.first_weekday,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "MonthInfo":
        return cls(
            month=int(payload["month"]),
            name=str(payload["name"]),
            days_in_month=int(payload["days_in_month"]),
            first_day=str(payload["first_day"]),
            last_day=str(payload["last_day"]),
            first_weekday=str(payload["first_weekday"]),
        )


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def holidays_for_year(year: int) -> dict[str, str]:
    return dict(US_FEDERAL_HOLIDAYS.get(year, {}))


def holiday_name(day: date) -> Optional[str]:
    return US_FEDERAL_HOLIDAYS.get(day.year, {}).get(day.isoformat())


def date_info(year: int, month: int, day: int) -> DateInfo:
    """Return weekday, ISO week and holiday facts for a date.

    Raises ``ValueError`` for dates that do not exist.
    """
    return date_info_for(date(year, month, day))


def date_info_for(day: date) -> DateInfo:
    holiday = holiday_name(day)
    weekday_index = day.weekday()
    return DateInfo(
        date=day.isoformat(),
        weekday=WEEKDAY_NAMES[weekday_index],
        week_number=day.isocalendar()[1],
        month=day.month,
        day=day.day,
        is_weekend=weekday_index >= 5,
        is_holiday=holiday is not None,
        holiday_name=holiday,
    )


def month_info(year: int, month: int) -> MonthInfo:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month} (must be 1-12)")
    first = date(year, month, 1)
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return MonthInfo(
        month=month,
        name=MONTH_NAMES[month - 1],
        days_in_month=last.day,
        first_day=first.isoformat(),
        last_day=last.isoformat(),
        first_weekday=WEEKDAY_NAMES[first.weekday()],
    )
