"""Readers for the session-state file and the per-session activity log."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .clock import parse_timestamp
from .models import ActivityEvent
from .paths import DataLayout

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionState:
    """The fields of ``session/current.json`` this engine relies on."""

    start_time: datetime
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    instance_id: Optional[str] = None
    start_formatted: Optional[str] = None
    compaction_count: int = 0


def parse_session_state(payload: object) -> SessionState:
    """Build a ``SessionState``; any malformed field raises ``ValueError``."""
    if not isinstance(payload, dict):
        raise ValueError("Session state must be a JSON object")

    try:
        raw_start = payload.get("start_time")
        if raw_start:
            start_time = parse_timestamp(raw_start)
        elif payload.get("start_unix") is not None:
            start_time = datetime.fromtimestamp(int(payload["start_unix"]), tz=timezone.utc)
        else:
            raise ValueError("Session state has no start_time")

        return SessionState(
            start_time=start_time,
            session_id=_optional_text(payload, "session_id"),
            user_id=_optional_text(payload, "user_id"),
            instance_id=_optional_text(payload, "instance_id"),
            start_formatted=_optional_text(payload, "start_formatted"),
            compaction_count=int(payload.get("compaction_count") or 0),
        )
    except (TypeError, OverflowError) as exc:
        raise ValueError(f"Malformed session state: {exc}") from exc


def _optional_text(payload: dict, key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Session field {key!r} must be a string")
    return value


def read_session_state(layout: DataLayout) -> SessionState:
    """Read the current session.

    Raises ``OSError`` if the file cannot be read and ``ValueError`` if it is
    not a usable session document.
    """
    with layout.session_state_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return parse_session_state(payload)


def iter_activity_log(path: Path) -> Iterator[ActivityEvent]:
    """Yield events from a JSON Lines log, skipping lines that are not events."""
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed activity line %d in %s.", line_number, path)
                continue
            if not isinstance(record, dict) or not isinstance(record.get("ts"), str):
                logger.debug("Skipping activity line %d without a timestamp.", line_number)
                continue
            tool = record.get("tool")
            yield ActivityEvent(ts=record["ts"], tool=str(tool) if tool is not None else None)


def read_activity_log(path: Path) -> list[ActivityEvent]:
    """Return all events of a log; a log that does not exist yet is empty."""
    try:
        return list(iter_activity_log(path))
    except FileNotFoundError:
        return []


def read_session_activity(layout: DataLayout, session: SessionState) -> list[ActivityEvent]:
    if not session.session_id:
        logger.debug("Session has no id; treating activity log as empty.")
        return []
    return read_activity_log(layout.activity_log_path(session.session_id))
