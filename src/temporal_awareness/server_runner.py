"""Serve the temporal awareness API for one data root."""

from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Optional

import uvicorn

from .clock import Clock
from .config import AwarenessSettings
from .paths import DataLayout
from .webapp import create_app

logger = logging.getLogger(__name__)

BROWSER_DELAY_SECONDS = 1.0
_WILDCARD_HOSTS = {"0.0.0.0", "::", ""}


def dashboard_url(host: str, port: int, path: str = "/api/context") -> str:
    """URL a local browser should open for a server bound to ``host``."""
    browse_host = "127.0.0.1" if host in _WILDCARD_HOSTS else host
    if ":" in browse_host:
        browse_host = f"[{browse_host}]"
    return f"http://{browse_host}:{port}{path}"


def check_data_root(layout: DataLayout) -> dict[str, bool]:
    """Fail fast on a missing root; warn about inputs that are not there yet."""
    if not layout.root.is_dir():
        raise FileNotFoundError(f"Data directory does not exist: {layout.root}")
    presence = layout.source_presence()
    for name, present in presence.items():
        if not present:
            logger.warning(
                "No %s under %s; the matching context will be reported unavailable.",
                name.replace("_", " "),
                layout.root,
            )
    return presence


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    layout: Optional[DataLayout] = None,
    settings: Optional[AwarenessSettings] = None,
    clock: Optional[Clock] = None,
    open_browser: bool = True,
    log_level: str = "info",
) -> None:
    """Check the data root, then serve it with uvicorn until interrupted.

    Raises ``FileNotFoundError`` when the data root does not exist.
    """
    layout = layout or DataLayout.default()
    check_data_root(layout)
    app = create_app(layout=layout, settings=settings, clock=clock)

    url = dashboard_url(host, port)
    logger.info("Serving temporal awareness for %s at %s", layout.root, url)
    if open_browser:
        timer = threading.Timer(BROWSER_DELAY_SECONDS, _open_browser, args=(url,))
        timer.daemon = True
        timer.start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _open_browser(url: str) -> None:
    try:
        webbrowser.open(url)
    except Exception:
        logger.exception("Failed to launch browser for %s", url)
