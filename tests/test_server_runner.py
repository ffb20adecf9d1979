import logging

import pytest

from conftest import local
from temporal_awareness import server_runner
from temporal_awareness.clock import FixedClock
from temporal_awareness.config import AwarenessSettings
from temporal_awareness.paths import DataLayout


@pytest.fixture
def served(monkeypatch):
    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr(server_runner.uvicorn, "run", fake_run)
    return calls


@pytest.mark.parametrize(
    "host, expected",
    [
        ("127.0.0.1", "http://127.0.0.1:8765/api/context"),
        ("0.0.0.0", "http://127.0.0.1:8765/api/context"),
        ("::1", "http://[::1]:8765/api/context"),
        ("localhost", "http://localhost:8765/api/context"),
    ],
)
def test_dashboard_url(host, expected):
    assert server_runner.dashboard_url(host, 8765) == expected


def test_serves_the_given_layout_clock_and_settings(served, layout, write_session):
    write_session(local(2025, 11, 4, 8, 30))
    clock = FixedClock(local(2025, 11, 4, 10, 0))
    settings = AwarenessSettings.from_minutes(idle_minutes=15)

    server_runner.run_dashboard(
        port=9001,
        layout=layout,
        settings=settings,
        clock=clock,
        open_browser=False,
        log_level="warning",
    )

    assert served["port"] == 9001
    assert served["log_level"] == "warning"
    state = served["app"].state
    assert state.layout == layout
    assert state.settings is settings
    assert state.clock is clock


def test_missing_data_root_is_refused(served, tmp_path):
    with pytest.raises(FileNotFoundError):
        server_runner.run_dashboard(
            layout=DataLayout(tmp_path / "nowhere"), open_browser=False
        )
    assert served == {}


def test_absent_inputs_are_logged(served, layout, write_session, caplog):
    write_session(local(2025, 11, 4, 8, 30))

    with caplog.at_level(logging.INFO, logger=server_runner.__name__):
        server_runner.run_dashboard(layout=layout, open_browser=False)

    messages = [record.getMessage() for record in caplog.records]
    assert any("planner templates" in message for message in messages)
    assert any("base calendar" in message for message in messages)
    assert not any("session state" in message for message in messages)
    assert any(f"Serving temporal awareness for {layout.root}" in message for message in messages)


def test_check_data_root_reports_presence(layout, write_session, write_planner):
    write_session(local(2025, 11, 4, 8, 30))
    write_planner()

    presence = server_runner.check_data_root(layout)

    assert presence == {"session_state": True, "planner_templates": True, "base_calendar": False}
