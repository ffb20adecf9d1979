import json
from datetime import date

import pytest

from conftest import local
from temporal_awareness.base_calendar import (
    BaseCalendar,
    build_calendar,
    generate_calendar,
    load_month_calendar,
    lookup_date,
    lookup_month,
    write_calendar,
)
from temporal_awareness.clock import FixedClock
from temporal_awareness.paths import DataLayout


def _build(year: int):
    return build_calendar(year, created=date(2025, 11, 4), timezone="America/Chicago")


@pytest.mark.parametrize(
    "year, expected_days",
    [(2023, 365), (2024, 366), (1900, 365), (2000, 366)],
)
def test_calendar_has_an_entry_for_every_day(year, expected_days):
    calendar = _build(year)
    assert len(calendar.dates) == expected_days
    assert calendar.metadata.total_days == expected_days
    assert sorted(calendar.months) == list(range(1, 13))


def test_calendar_entries_carry_weekday_and_holiday_facts():
    calendar = _build(2025)
    christmas = calendar.dates["2025-12-25"]
    assert christmas.weekday == "Thursday"
    assert christmas.is_holiday is True
    assert christmas.holiday_name == "Christmas Day"
    assert calendar.months[2].days_in_month == 28


def test_yearly_file_round_trips_through_lookup(layout):
    calendar = _build(2025)
    written = write_calendar(calendar, layout, monthly=False)

    assert written == [layout.calendar_year_path(2025)]
    document = json.loads(written[0].read_text(encoding="utf-8"))
    assert document["year"] == 2025
    assert document["metadata"]["timezone"] == "America/Chicago"
    assert "11" in document["months"]

    assert lookup_date(layout, date(2025, 11, 4)) == calendar.dates["2025-11-04"]
    assert lookup_month(layout, 2025, 11).name == "November"


def test_monthly_files_split_the_year(layout):
    written = write_calendar(_build(2024), layout, monthly=True)

    assert len(written) == 12
    assert written[1].name == "02-february.json"
    counts = []
    for month, path in enumerate(written, start=1):
        document = json.loads(path.read_text(encoding="utf-8"))
        assert list(document["months"]) == [str(month)]
        assert all(entry["month"] == month for entry in document["dates"].values())
        assert document["metadata"]["total_days"] == len(document["dates"])
        counts.append(len(document["dates"]))
    assert sum(counts) == 366


def test_monthly_file_is_preferred_over_yearly(layout):
    write_calendar(_build(2025), layout, monthly=True)
    loaded = load_month_calendar(layout, 2025, 3)
    assert list(loaded.months) == [3]


def test_missing_calendar_raises_file_not_found(layout):
    with pytest.raises(FileNotFoundError):
        load_month_calendar(layout, 2025, 1)


def test_missing_date_entry_raises_lookup_error(layout):
    path = layout.calendar_month_path(2025, 1)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"year": 2025, "metadata": {}, "dates": {}, "months": {}}))

    with pytest.raises(LookupError):
        lookup_date(layout, date(2025, 1, 5))
    with pytest.raises(LookupError):
        lookup_month(layout, 2025, 1)


def test_corrupt_calendar_raises_value_error(layout):
    path = layout.calendar_year_path(2025)
    path.parent.mkdir(parents=True)
    path.write_text("{not json")

    with pytest.raises(ValueError):
        load_month_calendar(layout, 2025, 1)


@pytest.mark.parametrize(
    "document",
    [
        {"year": 2025, "metadata": ["created"], "dates": {}, "months": {}},
        {"year": 2025, "metadata": {"total_days": [365]}, "dates": {}, "months": {}},
        {"year": 2025, "metadata": {}, "dates": "2025-01-01", "months": {}},
        {"year": 2025, "metadata": {}, "dates": {"2025-01-01": ["Wednesday"]}, "months": {}},
        {"year": [2025], "metadata": {}, "dates": {}, "months": {}},
    ],
)
def test_wrong_typed_documents_raise_value_error(document):
    with pytest.raises(ValueError):
        BaseCalendar.from_dict(document)


def test_generate_calendar_records_creation_date(layout):
    clock = FixedClock(local(2025, 11, 4, 10, 0))
    written = generate_calendar(2026, monthly=False, layout=layout, clock=clock, timezone="UTC")

    document = json.loads(written[0].read_text(encoding="utf-8"))
    assert document["metadata"]["created"] == "2025-11-04"
    assert document["metadata"]["timezone"] == "UTC"
    assert document["metadata"]["observes_holidays"] == ["US Federal"]


def test_write_failure_raises_os_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        write_calendar(_build(2025), DataLayout(blocker), monthly=False)


def test_invalid_year_is_rejected():
    with pytest.raises(ValueError):
        build_calendar(0, created=date(2025, 1, 1), timezone="UTC")
