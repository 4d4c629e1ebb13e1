"""History and summary-stats fetching for the selected (symbol, timeframe)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime

from ..client.api import RateApiClient
from ..client.errors import AuthInvalid, RateDeskError
from ..market.models import ChartSeries, HistoryPoint, StatsSummary
from ..market.reference import base_price
from ..market.synthetic import CandleGenerator
from ..market.timeframes import date_range, stats_range
from .state import ChartState, DashboardState, RequestEpoch, StateStore, set_error, set_loading

logger = logging.getLogger(__name__)

HISTORY_FAILED = "Failed to load price history, showing simulated data"
HISTORY_UNAVAILABLE = "No price data available for this symbol"
SESSION_EXPIRED = "Session expired, please sign in again"

LOADING_KEYS = ("history", "stats")


class HistoryStatsFetcher:
    """Loads the chart series and stats summary whenever the pair changes.

    Both requests run concurrently and are committed together. A half that
    failed is reported in ``chart.degraded`` without rolling back the other.
    If the (symbol, timeframe) pair changed while the requests were in
    flight, the results are dropped on arrival.
    """

    def __init__(
        self,
        store: StateStore,
        client: RateApiClient,
        generator: CandleGenerator | None = None,
        demo: bool = False,
    ) -> None:
        self._store = store
        self._client = client
        self._generator = generator or CandleGenerator()
        self._demo = demo
        self._epoch = RequestEpoch()

    @property
    def demo(self) -> bool:
        return self._demo

    async def refresh(self, now: datetime | None = None) -> bool:
        """Fetch for the current pair. Returns False if the result was superseded."""
        state = self._store.state
        symbol, timeframe = state.selected, state.timeframe
        token = self._epoch.next()

        if self._demo:
            series = self._fallback(symbol, timeframe)
            degraded = () if series else ("history",)
            self._store.apply(_commit_chart, series, None, degraded, None)
            return True

        start, end = date_range(timeframe, now)
        self._store.apply(set_loading, LOADING_KEYS, True)
        self._store.apply(set_error, None)  # A new pair starts with a clean banner
        logger.debug("Fetching %s %s history %s..%s", symbol, timeframe, start, end)

        history, stats = await asyncio.gather(
            self._client.get_history(symbol, start, end),
            self._client.get_stats_summary(symbol, stats_range(timeframe)),
            return_exceptions=True,
        )

        current = self._store.state
        if not self._epoch.is_current(token) or (current.selected, current.timeframe) != (
            symbol,
            timeframe,
        ):
            logger.debug("Discarding stale %s %s history", symbol, timeframe)
            return False

        degraded: list[str] = []
        error: str | None = None

        if isinstance(history, BaseException):
            _reraise_unexpected(history)
            logger.warning("History for %s failed: %s", symbol, history)
            error = SESSION_EXPIRED if isinstance(history, AuthInvalid) else HISTORY_FAILED
            points: list[HistoryPoint] = []
        else:
            points = history

        if points:
            series = ChartSeries(
                symbol, timeframe, tuple(self._generator.expand_history(points))
            )
        else:
            if not isinstance(history, BaseException):
                logger.info("No history for %s %s, using simulated data", symbol, timeframe)
            degraded.append("history")
            series = self._fallback(symbol, timeframe)
            if series is None:
                error = error if isinstance(history, AuthInvalid) else HISTORY_UNAVAILABLE

        if isinstance(stats, BaseException):
            _reraise_unexpected(stats)
            logger.warning("Stats for %s failed: %s", symbol, stats)
            degraded.append("stats")
            summary: StatsSummary | None = None
        else:
            summary = stats

        self._store.apply(_commit_chart, series, summary, tuple(degraded), error)
        self._store.apply(set_loading, LOADING_KEYS, False)
        return True

    def _fallback(self, symbol: str, timeframe: str) -> ChartSeries | None:
        """Synthetic series from the reference price, or the last live rate."""
        base = base_price(symbol) or self._store.state.rates.rates.get(symbol)
        if not base:
            return None
        return ChartSeries(symbol, timeframe, tuple(self._generator.generate(base)), synthetic=True)


def _reraise_unexpected(exc: BaseException) -> None:
    if isinstance(exc, RateDeskError):
        return
    if isinstance(exc, Exception):
        logger.error("Unexpected fetch error: %r", exc)
        return
    raise exc


# --- Reducers ---


def _commit_chart(
    state: DashboardState,
    series: ChartSeries | None,
    stats: StatsSummary | None,
    degraded: tuple[str, ...],
    error: str | None,
) -> DashboardState:
    return replace(
        state,
        chart=ChartState(series=series, stats=stats, degraded=degraded),
        error=error if error else state.error,
    )
