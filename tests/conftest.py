import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest

from temporal_awareness.clock import FixedClock
from temporal_awareness.paths import DataLayout

# A fixed -06:00 offset keeps wall-clock assertions independent of the host timezone.
CST = timezone(timedelta(hours=-6))


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=CST)


@pytest.fixture
def layout(tmp_path: Path) -> DataLayout:
    return DataLayout(tmp_path / "data")


@pytest.fixture
def clock() -> FixedClock:
    # Tuesday, ISO week 45.
    return FixedClock(local(2025, 11, 4, 10, 0))


@pytest.fixture
def write_session(layout: DataLayout) -> Callable[..., Path]:
    def _write(
        start: datetime,
        user_id: Optional[str] = "alice",
        session_id: Optional[str] = "2025-11-04_0830",
    ) -> Path:
        payload = {
            "session_id": session_id,
            "instance_id": "primary",
            "user_id": user_id,
            "start_time": start.isoformat(),
            "start_unix": int(start.timestamp()),
            "compaction_count": 0,
            "session_phase": "active",
        }
        path = layout.session_state_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_activity(layout: DataLayout) -> Callable[..., Path]:
    def _write(lines: list, session_id: str = "2025-11-04_0830") -> Path:
        path = layout.activity_log_path(session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        rendered = []
        for line in lines:
            if isinstance(line, datetime):
                rendered.append(json.dumps({"ts": line.isoformat(), "tool": "Edit"}))
            elif isinstance(line, dict):
                rendered.append(json.dumps(line))
            else:
                rendered.append(str(line))
        path.write_text("\n".join(rendered) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_planner() -> dict:
    return {
        "planner_id": "alice-template",
        "owner": "alice",
        "recurring_patterns": {
            "daily": [
                {"start": "23:00", "end": "07:00", "type": "sleep", "description": "Sleep"},
                {"start": "07:00", "end": "07:30", "type": "meal", "description": "Breakfast"},
                {"start": "09:00", "end": "12:00", "type": "work", "description": "Deep work"},
                {"start": "12:00", "end": "13:00", "type": "meal", "description": "Lunch"},
            ],
            "weekly": {
                "monday": [
                    {"start": "14:00", "end": "18:00", "type": "commitment", "description": "Day job"},
                ],
                "tuesday": [
                    {"start": "15:00", "end": "15:30", "type": "break", "description": "Walk"},
                ],
            },
        },
    }


@pytest.fixture
def write_planner(layout: DataLayout, sample_planner: dict) -> Callable[..., Path]:
    def _write(payload: Optional[dict] = None, owner: str = "alice") -> Path:
        path = layout.planner_path(owner)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload if payload is not None else sample_planner), encoding="utf-8")
        return path

    return _write
