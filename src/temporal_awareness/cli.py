"""Command-line interface for temporal awareness."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from .clock import SystemClock, parse_timestamp
from .config import AwarenessSettings
from .paths import DataLayout

logger = logging.getLogger(__name__)

app = typer.Typer(help="Session time, schedule and calendar awareness.")

DATA_DIR_HELP = "Root directory holding session, planner and calendar files."


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command("calendar-generate")
def calendar_generate(
    year: Optional[int] = typer.Option(None, "--year", help="Year to generate (e.g. 2025)."),
    years: Optional[str] = typer.Option(
        None, "--years", help="Comma-separated years to generate (e.g. 2025,2026)."
    ),
    monthly: bool = typer.Option(
        False, "--monthly", help="Write one file per month instead of one per year."
    ),
    timezone: Optional[str] = typer.Option(
        None, "--timezone", help="Timezone recorded in the calendar metadata."
    ),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
) -> None:
    """Generate the base calendar for one or more years."""
    from .base_calendar import generate_calendar, validate_year

    targets = _parse_years(year, years)
    for target in targets:
        try:
            validate_year(target)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--year/--years") from exc

    layout = DataLayout.default(data_dir)
    clock = SystemClock()
    for target in targets:
        try:
            written = generate_calendar(
                target, monthly=monthly, layout=layout, clock=clock, timezone=timezone
            )
        except OSError as exc:
            logger.error("Failed to write %d calendar: %s", target, exc)
            typer.echo(f"Error generating {target} calendar: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        suffix = f" ({len(written)} monthly files)" if monthly else ""
        typer.echo(f"Generated {target} calendar{suffix}")


@app.command("calendar-query")
def calendar_query(
    date: Optional[str] = typer.Option(None, "--date", help="Date (YYYY-MM-DD) to look up."),
    year: Optional[int] = typer.Option(None, "--year", help="Year of the month to show."),
    month: Optional[int] = typer.Option(
        None, "--month", min=1, max=12, help="Month (1-12) to show."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit machine-readable JSON."),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
) -> None:
    """Show a date or a month from the generated base calendar."""
    from .base_calendar import load_month_calendar, lookup_date
    from .reporting import render_date_info, render_month

    layout = DataLayout.default(data_dir)
    try:
        if date or (year is None and month is None):
            target = _parse_date(date) if date else SystemClock().now().date()
            info = lookup_date(layout, target)
            typer.echo(_dump(info.to_dict()) if as_json else render_date_info(info))
            return

        today = SystemClock().now().date()
        target_year = year if year is not None else today.year
        target_month = month if month is not None else today.month
        calendar = load_month_calendar(layout, target_year, target_month)
        if target_month not in calendar.months:
            raise LookupError(f"Month not found: {target_year}-{target_month:02d}")
        if as_json:
            typer.echo(_dump(calendar.for_month(target_month).to_dict()))
        else:
            typer.echo(render_month(calendar, target_month))
    except (OSError, ValueError, LookupError) as exc:
        typer.echo(f"Error loading calendar: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def awareness(
    as_json: bool = typer.Option(False, "--json", help="Emit machine-readable JSON."),
    idle_minutes: float = typer.Option(
        30.0,
        "--idle-threshold",
        min=1.0,
        help="Minutes without activity before time counts as semi-downtime.",
    ),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
) -> None:
    """Split the current session into active uptime and idle gaps."""
    from .awareness import build_time_awareness
    from .reporting import render_time_awareness

    settings = AwarenessSettings.from_minutes(idle_minutes=idle_minutes)
    layout = DataLayout.default(data_dir)
    try:
        result = build_time_awareness(layout, SystemClock(), settings)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error reading session: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(_dump(result.to_dict()))
    else:
        typer.echo(render_time_awareness(result, settings))


@app.command()
def context(
    as_json: bool = typer.Option(False, "--json", help="Emit machine-readable JSON."),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
) -> None:
    """Show clock, session, schedule and calendar awareness together."""
    from .reporting import render_temporal_context
    from .temporal import get_temporal_context

    result = get_temporal_context(DataLayout.default(data_dir), SystemClock())
    if as_json:
        typer.echo(_dump(result.to_dict()))
    else:
        typer.echo(render_temporal_context(result))


@app.command()
def schedule(
    at: Optional[str] = typer.Option(
        None, "--at", help="RFC 3339 instant to match instead of the current time."
    ),
    owner: Optional[str] = typer.Option(
        None, "--owner", help="Planner owner; defaults to the current session's user."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit machine-readable JSON."),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
) -> None:
    """Show which planner block applies at an instant."""
    from .planner import match_activity, next_activity
    from .reporting import render_schedule

    layout = DataLayout.default(data_dir)
    if at:
        try:
            instant = parse_timestamp(at)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--at") from exc
    else:
        instant = SystemClock().now()

    planner = _load_owner_planner(layout, owner)
    match = match_activity(instant, planner)
    upcoming = next_activity(instant, planner)
    if as_json:
        payload: dict[str, Any] = {
            "instant": instant.isoformat(),
            "current_activity": match.description,
            "activity_type": match.type,
            "in_work_window": match.in_work_window,
            "expected_downtime": match.expected_downtime,
            "source": match.source,
            "block": match.block.to_dict() if match.block else None,
            "next_activity": (
                {
                    "description": upcoming.description,
                    "type": upcoming.type,
                    "start": upcoming.start,
                    "tomorrow": upcoming.tomorrow,
                }
                if upcoming
                else None
            ),
        }
        typer.echo(_dump(payload))
    else:
        typer.echo(render_schedule(match, upcoming))


@app.command("planner-view")
def planner_view(
    date: Optional[str] = typer.Option(
        None, "--date", help="Day (YYYY-MM-DD) to lay out; defaults to today."
    ),
    owner: Optional[str] = typer.Option(
        None, "--owner", help="Planner owner; defaults to the current session's user."
    ),
    min_free: int = typer.Option(
        15, "--min-free", min=1, help="Shortest unscheduled stretch to list, in minutes."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit machine-readable JSON."),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
) -> None:
    """Lay out a whole day's planner blocks and the free time between them."""
    from .planner import day_schedule
    from .reporting import render_day_schedule

    layout = DataLayout.default(data_dir)
    target = _parse_date(date) if date else SystemClock().now().date()
    planner = _load_owner_planner(layout, owner)

    result = day_schedule(target, planner, min_free_minutes=min_free)
    if as_json:
        typer.echo(_dump(result.to_dict()))
    else:
        typer.echo(render_day_schedule(result))


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", path_type=Path, help=DATA_DIR_HELP),
    idle_minutes: float = typer.Option(
        30.0,
        "--idle-threshold",
        min=1.0,
        help="Minutes without activity before time counts as semi-downtime.",
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically launch the dashboard in your default browser.",
    ),
) -> None:
    """Serve the temporal awareness API, recomputed on every request."""
    from .server_runner import run_dashboard

    try:
        run_dashboard(
            host=host,
            port=port,
            layout=DataLayout.default(data_dir),
            settings=AwarenessSettings.from_minutes(idle_minutes=idle_minutes),
            open_browser=open_browser,
        )
    except FileNotFoundError as exc:
        typer.echo(f"Error starting dashboard: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _parse_years(year: Optional[int], years: Optional[str]) -> list[int]:
    if years:
        parsed: list[int] = []
        for part in years.split(","):
            try:
                parsed.append(int(part.strip()))
            except ValueError:
                raise typer.BadParameter(f"Invalid year: {part!r}", param_hint="--years") from None
        return parsed
    if year is not None:
        return [year]
    raise typer.BadParameter("Must specify --year or --years", param_hint="--year/--years")


def _load_owner_planner(layout: DataLayout, owner: Optional[str]):
    from .planner import load_planner
    from .session import read_session_state

    try:
        if not owner:
            owner = read_session_state(layout).user_id
            if not owner:
                raise ValueError("current session has no user_id; pass --owner")
        return load_planner(layout, owner)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error loading planner: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _parse_date(value: str):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter(
            f"Invalid date format: {value} (use YYYY-MM-DD)", param_hint="--date"
        ) from exc


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2)
