"""Factory for creating a dashboard from the environment."""

from __future__ import annotations

import logging
import os

from ..client.api import DEFAULT_TIMEOUT, RateApiClient
from ..client.guard import AuthSessionGuard
from ..client.session import LogoutNotifier, SessionStore
from .assembler import Dashboard
from .poller import DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080"


def create_dashboard() -> Dashboard:
    """Create a Dashboard configured by environment variables.

    - RATEDESK_API_URL        backend base URL (default http://localhost:8080)
    - RATEDESK_TIMEOUT        per-request timeout in seconds (default 10)
    - RATEDESK_POLL_INTERVAL  latest-rate poll interval in seconds (default 30)
    - RATEDESK_DEMO           truthy → chart always uses simulated candles

    Returns an unstarted dashboard. Caller must await dashboard.start().
    """
    base_url = os.environ.get("RATEDESK_API_URL", "").strip() or DEFAULT_API_URL
    timeout = _env_float("RATEDESK_TIMEOUT", DEFAULT_TIMEOUT)
    poll_interval = _env_float("RATEDESK_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)
    demo = os.environ.get("RATEDESK_DEMO", "").strip().lower() in ("1", "true", "yes", "on")

    guard = AuthSessionGuard(SessionStore(), LogoutNotifier())
    client = RateApiClient(base_url, guard, timeout=timeout)

    if demo:
        logger.info("Dashboard history source: simulated candles (demo mode)")
    logger.info("Dashboard backend: %s (timeout %.1fs, poll %.1fs)", base_url, timeout, poll_interval)
    return Dashboard(client, poll_interval=poll_interval, demo=demo)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value
