"""Helpers for locating application directories and data files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

from .calendar_info import MONTH_NAMES


APP_NAME = "TemporalAwareness"
APP_AUTHOR = "TemporalAwareness"


def get_data_dir() -> Path:
    """Return the base directory for persistent data."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass(frozen=True, slots=True)
class DataLayout:
    """Resolves every flat file the engine reads or writes from one root."""

    root: Path

    @classmethod
    def default(cls, root: Optional[Path] = None) -> "DataLayout":
        return cls(Path(root) if root is not None else get_data_dir())

    @property
    def session_dir(self) -> Path:
        return self.root / "session"

    @property
    def session_state_path(self) -> Path:
        return self.session_dir / "current.json"

    def activity_log_path(self, session_id: str) -> Path:
        return self.session_dir / "activity" / f"{session_id}.jsonl"

    @property
    def planner_templates_dir(self) -> Path:
        return self.root / "planner" / "templates"

    def planner_path(self, owner: str) -> Path:
        return self.planner_templates_dir / f"{owner}-template.json"

    @property
    def calendar_base_dir(self) -> Path:
        return self.root / "calendar" / "base"

    def calendar_year_path(self, year: int) -> Path:
        return self.calendar_base_dir / f"{year}.json"

    def calendar_month_path(self, year: int, month: int) -> Path:
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month} (must be 1-12)")
        month_name = MONTH_NAMES[month - 1].lower()
        return self.calendar_base_dir / str(year) / f"{month:02d}-{month_name}.json"

    def source_presence(self) -> dict[str, bool]:
        """Report which of the engine's inputs currently exist under ``root``."""
        return {
            "session_state": self.session_state_path.is_file(),
            "planner_templates": self.planner_templates_dir.is_dir(),
            "base_calendar": self.calendar_base_dir.is_dir(),
        }
