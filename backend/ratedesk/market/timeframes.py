"""Timeframe selector to backend date-range mapping."""

from __future__ import annotations

from datetime import datetime, timedelta

TIMEFRAMES: tuple[str, ...] = ("15M", "1H", "4H", "1D", "1W", "1M")

# How far back each timeframe looks
LOOKBACK: dict[str, timedelta] = {
    "15M": timedelta(hours=24),
    "1H": timedelta(hours=24),
    "4H": timedelta(hours=24),
    "1D": timedelta(days=7),
    "1W": timedelta(days=30),
    "1M": timedelta(days=90),
}
DEFAULT_LOOKBACK = timedelta(days=7)

DATE_FORMAT = "%Y-%m-%d"


def date_range(timeframe: str, now: datetime | None = None) -> tuple[str, str]:
    """(start, end) as yyyy-MM-dd strings. Unknown timeframes look back 7 days."""
    end = now or datetime.now()
    start = end - LOOKBACK.get(timeframe, DEFAULT_LOOKBACK)
    return start.strftime(DATE_FORMAT), end.strftime(DATE_FORMAT)


def stats_range(timeframe: str) -> str:
    """Summary range accepted by /stats/summary: "30d" for long views, else "7d"."""
    return "30d" if timeframe in ("1W", "1M") else "7d"
