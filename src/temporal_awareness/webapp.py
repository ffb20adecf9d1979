"""FastAPI application exposing temporal awareness over a local HTTP API.

Every request re-reads the session, planner and calendar files, so edits to
those files show up on the next request.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from .awareness import build_time_awareness
from .base_calendar import lookup_date, lookup_month
from .clock import Clock, SystemClock, parse_timestamp
from .config import AwarenessSettings
from .paths import DataLayout
from .planner import load_planner, match_activity, next_activity
from .session import read_session_state
from .temporal import get_temporal_context

logger = logging.getLogger(__name__)


class NextActivityPayload(BaseModel):
    description: str
    type: str
    start: str
    tomorrow: bool

    model_config = ConfigDict(extra="forbid")


class ScheduleResponse(BaseModel):
    instant: datetime
    owner: str
    current_activity: str
    activity_type: str
    in_work_window: bool
    expected_downtime: bool
    source: Optional[str] = None
    next_activity: Optional[NextActivityPayload] = None

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    layout: Optional[DataLayout] = None,
    settings: Optional[AwarenessSettings] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_layout = layout or DataLayout.default()
    resolved_settings = settings or AwarenessSettings()
    resolved_clock = clock or SystemClock()

    app = FastAPI(title="Temporal Awareness", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.layout = resolved_layout
    app.state.settings = resolved_settings
    app.state.clock = resolved_clock

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        data_layout: DataLayout = request.app.state.layout
        settings: AwarenessSettings = request.app.state.settings
        return {
            "data_dir": str(data_layout.root),
            "sources": data_layout.source_presence(),
            "idle_minutes": settings.idle_threshold.total_seconds() / 60.0,
        }

    @app.get("/api/context")
    def context(request: Request) -> Dict[str, Any]:
        result = get_temporal_context(
            request.app.state.layout, request.app.state.clock, request.app.state.settings
        )
        return result.to_dict()

    @app.get("/api/awareness")
    def awareness(request: Request) -> Dict[str, Any]:
        try:
            result = build_time_awareness(
                request.app.state.layout,
                request.app.state.clock,
                request.app.state.settings,
            )
        except (OSError, ValueError) as exc:
            logger.info("Time awareness unavailable: %s", exc)
            raise HTTPException(status_code=404, detail="Session not found") from exc
        return result.to_dict()

    @app.get("/api/schedule", response_model=ScheduleResponse)
    def schedule(
        request: Request,
        at: Optional[str] = Query(
            default=None,
            description="RFC 3339 instant to match. Defaults to now.",
        ),
        owner: Optional[str] = Query(
            default=None,
            description="Planner owner. Defaults to the current session's user.",
        ),
    ) -> ScheduleResponse:
        data_layout: DataLayout = request.app.state.layout
        instant = _parse_instant(at, request.app.state.clock)
        resolved_owner = owner or _session_owner(data_layout)
        try:
            planner = load_planner(data_layout, resolved_owner)
        except FileNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Planner not found") from exc
        except (OSError, ValueError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        match = match_activity(instant, planner)
        upcoming = next_activity(instant, planner)
        return ScheduleResponse(
            instant=instant,
            owner=resolved_owner,
            current_activity=match.description,
            activity_type=match.type,
            in_work_window=match.in_work_window,
            expected_downtime=match.expected_downtime,
            source=match.source,
            next_activity=(
                NextActivityPayload(
                    description=upcoming.description,
                    type=upcoming.type,
                    start=upcoming.start,
                    tomorrow=upcoming.tomorrow,
                )
                if upcoming
                else None
            ),
        )

    @app.get("/api/calendar")
    def calendar(
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        target = _parse_date(date, request.app.state.clock)
        data_layout: DataLayout = request.app.state.layout
        try:
            info = lookup_date(data_layout, target)
            month = lookup_month(data_layout, target.year, target.month)
        except (OSError, LookupError) as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"date": info.to_dict(), "month": month.to_dict()}

    return app


def _parse_instant(value: Optional[str], clock: Clock) -> datetime:
    if not value:
        return clock.now()
    try:
        return parse_timestamp(value).astimezone(clock.now().tzinfo)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid instant") from exc


def _parse_date(value: Optional[str], clock: Clock):
    if not value:
        return clock.now().date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc


def _session_owner(layout: DataLayout) -> str:
    try:
        owner = read_session_state(layout).user_id
    except (OSError, ValueError) as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc
    if not owner:
        raise HTTPException(status_code=400, detail="owner is required")
    return owner
