import json
from datetime import date

import pytest

from conftest import local
from temporal_awareness.planner import (
    UNSCHEDULED,
    TimeBlock,
    day_schedule,
    is_time_in_block,
    load_planner,
    match_activity,
    next_activity,
    parse_planner,
    time_to_minutes,
    unscheduled_gaps,
)


def _planner(daily=None, weekly=None):
    return parse_planner(
        {"recurring_patterns": {"daily": daily or [], "weekly": weekly or {}}},
        owner="alice",
    )


class TestTimeConversion:
    def test_parses_clock_times(self):
        assert time_to_minutes("23:00") == 1380
        assert time_to_minutes("7:05") == 425
        assert time_to_minutes("00:00") == 0

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "12", None])
    def test_rejects_invalid_times(self, value):
        with pytest.raises(ValueError):
            time_to_minutes(value)


class TestContainment:
    def test_wraparound_block(self):
        sleep = TimeBlock(start_minute=1380, end_minute=420, type="sleep", description="Sleep")
        assert sleep.wraps_midnight
        assert is_time_in_block(60, sleep)
        assert is_time_in_block(1400, sleep)
        assert is_time_in_block(1380, sleep)
        assert not is_time_in_block(720, sleep)
        assert not is_time_in_block(420, sleep)

    def test_plain_block_is_half_open(self):
        work = TimeBlock(start_minute=540, end_minute=720, type="work", description="Work")
        assert work.contains(540)
        assert work.contains(719)
        assert not work.contains(720)
        assert not work.contains(539)


class TestMatching:
    def test_sleep_block_is_expected_downtime(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        for hour, minute in [(23, 0), (23, 59), (1, 0), (6, 59)]:
            match = match_activity(local(2025, 11, 4, hour, minute), planner)
            assert match.type == "sleep"
            assert match.expected_downtime is True
            assert match.in_work_window is False
            assert match.source == "daily"

    def test_daily_work_block_is_work_window(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        match = match_activity(local(2025, 11, 4, 10, 0), planner)
        assert match.description == "Deep work"
        assert match.in_work_window is True
        assert match.expected_downtime is False

    def test_weekly_commitment_counts_as_work(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        # 2025-11-03 is a Monday.
        match = match_activity(local(2025, 11, 3, 15, 0), planner)
        assert match.description == "Day job"
        assert match.type == "commitment"
        assert match.in_work_window is True
        assert match.source == "weekly"

    def test_daily_commitment_is_not_work(self):
        planner = _planner(
            daily=[{"start": "14:00", "end": "15:00", "type": "commitment", "description": "Call"}]
        )
        match = match_activity(local(2025, 11, 4, 14, 30), planner)
        assert match.in_work_window is False

    def test_weekly_patterns_only_apply_to_their_weekday(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        match = match_activity(local(2025, 11, 4, 15, 0), planner)
        assert match.description == "Walk"
        assert match.expected_downtime is True

    def test_daily_outranks_weekly_regardless_of_priority(self):
        planner = _planner(
            daily=[{"start": "09:00", "end": "17:00", "type": "work", "description": "Daily", "priority": "low"}],
            weekly={
                "tuesday": [
                    {"start": "09:00", "end": "17:00", "type": "break", "description": "Weekly", "priority": "high"}
                ]
            },
        )
        match = match_activity(local(2025, 11, 4, 10, 0), planner)
        assert match.description == "Daily"

    def test_first_declared_block_wins(self):
        planner = _planner(
            daily=[
                {"start": "09:00", "end": "12:00", "type": "work", "description": "First", "priority": "3"},
                {"start": "10:00", "end": "11:00", "type": "meal", "description": "Second", "priority": "1"},
            ]
        )
        assert match_activity(local(2025, 11, 4, 10, 30), planner).description == "First"

    def test_unscheduled_default(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        match = match_activity(local(2025, 11, 4, 8, 0), planner)
        assert match.description == UNSCHEDULED
        assert match.type == "flex"
        assert match.in_work_window is False
        assert match.expected_downtime is False
        assert match.scheduled is False


class TestParsing:
    def test_malformed_blocks_are_skipped(self):
        planner = _planner(
            daily=[
                {"start": "25:00", "end": "07:00", "type": "sleep", "description": "Broken"},
                {"end": "08:00", "type": "meal", "description": "No start"},
                "not a block",
                {"start": "09:00", "end": "12:00", "type": "work", "description": "Kept"},
            ]
        )
        assert [block.description for block in planner.recurring_patterns.daily] == ["Kept"]

    def test_weekday_keys_are_normalized(self):
        planner = _planner(
            weekly={
                "Monday": [{"start": "09:00", "end": "10:00", "type": "work", "description": "Standup"}],
                "someday": [{"start": "09:00", "end": "10:00", "type": "work", "description": "Never"}],
            }
        )
        assert list(planner.recurring_patterns.weekly) == ["monday"]

    def test_priority_is_carried_as_text(self):
        planner = _planner(
            daily=[{"start": "09:00", "end": "10:00", "type": "work", "description": "A", "priority": 2}]
        )
        assert planner.recurring_patterns.daily[0].priority == "2"

    def test_non_object_document_is_rejected(self):
        with pytest.raises(ValueError):
            parse_planner(["daily"], owner="alice")


class TestLoading:
    def test_loads_owner_template(self, layout, write_planner):
        write_planner()
        planner = load_planner(layout, "alice")
        assert planner.owner == "alice"
        assert len(planner.recurring_patterns.daily) == 4
        assert planner.recurring_patterns.weekly["monday"][0].type == "commitment"

    def test_missing_planner(self, layout):
        with pytest.raises(FileNotFoundError):
            load_planner(layout, "nobody")

    def test_corrupt_planner(self, layout):
        path = layout.planner_path("alice")
        path.parent.mkdir(parents=True)
        path.write_text("{ broken")
        with pytest.raises(ValueError):
            load_planner(layout, "alice")

    def test_reads_fresh_on_every_call(self, layout, write_planner, sample_planner):
        write_planner()
        assert match_activity(local(2025, 11, 4, 10, 0), load_planner(layout, "alice")).type == "work"

        sample_planner["recurring_patterns"]["daily"][2]["type"] = "break"
        layout.planner_path("alice").write_text(json.dumps(sample_planner))
        assert match_activity(local(2025, 11, 4, 10, 0), load_planner(layout, "alice")).type == "break"


class TestNextActivity:
    def test_next_block_later_today(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        upcoming = next_activity(local(2025, 11, 4, 22, 0), planner)
        assert upcoming.description == "Sleep"
        assert upcoming.start == "23:00"
        assert upcoming.tomorrow is False

    def test_weekly_block_is_considered(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        upcoming = next_activity(local(2025, 11, 4, 13, 30), planner)
        assert upcoming.description == "Walk"
        assert upcoming.start == "15:00"

    def test_rolls_over_to_tomorrow(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")
        upcoming = next_activity(local(2025, 11, 4, 23, 30), planner)
        assert upcoming.description == "Breakfast"
        assert upcoming.start == "07:00"
        assert upcoming.tomorrow is True

    def test_empty_planner_has_no_next_activity(self):
        assert next_activity(local(2025, 11, 4, 12, 0), _planner()) is None


class TestDaySchedule:
    def test_merges_daily_and_weekday_blocks_in_start_order(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")

        schedule = day_schedule(date(2025, 11, 4), planner)

        assert [entry.block.description for entry in schedule.blocks] == [
            "Breakfast",
            "Deep work",
            "Lunch",
            "Walk",
            "Sleep",
        ]
        assert [entry.source for entry in schedule.blocks].count("weekly") == 1

    def test_free_time_respects_wraparound_sleep(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")

        schedule = day_schedule(date(2025, 11, 4), planner)

        assert [(slot.start, slot.end) for slot in schedule.free] == [
            ("07:30", "09:00"),
            ("13:00", "15:00"),
            ("15:30", "23:00"),
        ]

    def test_other_weekdays_get_their_own_blocks(self, sample_planner):
        planner = parse_planner(sample_planner, owner="alice")

        schedule = day_schedule(date(2025, 11, 3), planner)

        assert "Day job" in [entry.block.description for entry in schedule.blocks]
        assert "Walk" not in [entry.block.description for entry in schedule.blocks]
        assert [(slot.start, slot.end) for slot in schedule.free] == [
            ("07:30", "09:00"),
            ("13:00", "14:00"),
            ("18:00", "23:00"),
        ]

    def test_daily_block_sorts_ahead_of_weekly_at_same_start(self):
        planner = _planner(
            daily=[{"start": "09:00", "end": "10:00", "type": "work", "description": "Daily"}],
            weekly={
                "tuesday": [
                    {"start": "09:00", "end": "09:30", "type": "commitment", "description": "Weekly"}
                ]
            },
        )
        schedule = day_schedule(date(2025, 11, 4), planner)
        assert [entry.source for entry in schedule.blocks] == ["daily", "weekly"]

    def test_empty_planner_is_one_free_day(self):
        schedule = day_schedule(date(2025, 11, 4), _planner())
        assert schedule.blocks == []
        assert [(slot.start, slot.end, slot.minutes) for slot in schedule.free] == [
            ("00:00", "24:00", 1440)
        ]

    def test_to_dict(self, sample_planner):
        payload = day_schedule(date(2025, 11, 4), parse_planner(sample_planner, owner="alice")).to_dict()
        assert payload["date"] == "2025-11-04"
        assert payload["weekday"] == "Tuesday"
        assert payload["owner"] == "alice"
        assert payload["blocks"][-1] == {
            "start": "23:00",
            "end": "07:00",
            "type": "sleep",
            "description": "Sleep",
            "priority": None,
            "duration_minutes": 480,
            "source": "daily",
        }
        assert payload["free"][0] == {"start": "07:30", "end": "09:00", "minutes": 90}


class TestUnscheduledGaps:
    def _block(self, start, end):
        return TimeBlock(
            start_minute=time_to_minutes(start),
            end_minute=time_to_minutes(end),
            type="work",
            description="",
        )

    def test_short_gaps_are_dropped(self):
        blocks = [self._block("00:00", "09:00"), self._block("09:10", "23:50")]
        assert unscheduled_gaps(blocks) == []

    def test_minimum_is_inclusive(self):
        blocks = [self._block("00:00", "09:00"), self._block("09:15", "23:45")]
        slots = unscheduled_gaps(blocks)
        assert [(slot.start, slot.end) for slot in slots] == [("09:00", "09:15"), ("23:45", "24:00")]

    def test_overlapping_blocks_are_merged(self):
        blocks = [
            self._block("08:00", "12:00"),
            self._block("09:00", "10:00"),
            self._block("11:00", "13:00"),
        ]
        slots = unscheduled_gaps(blocks)
        assert [(slot.start, slot.end) for slot in slots] == [("00:00", "08:00"), ("13:00", "24:00")]

    def test_wraparound_block_covers_both_ends_of_the_day(self):
        slots = unscheduled_gaps([self._block("22:00", "06:00")])
        assert [(slot.start, slot.end) for slot in slots] == [("06:00", "22:00")]

    def test_custom_minimum(self):
        blocks = [self._block("00:00", "09:00"), self._block("09:10", "23:59")]
        assert [slot.minutes for slot in unscheduled_gaps(blocks, min_minutes=5)] == [10]
