"""Root state holder: wires the components and composes the view model."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..client.api import RateApiClient
from ..client.session import Session
from ..market.reference import DEFAULT_FAVORITES, base_price, display_info
from ..market.synthetic import CandleGenerator
from .analysis import AnalysisCache
from .directory import DEFAULT_DEBOUNCE, SymbolDirectory
from .favorites import FavoritesManager
from .history import HistoryStatsFetcher
from .poller import DEFAULT_POLL_INTERVAL, LiveRatePoller, select_price
from .state import DashboardState, StateStore, set_error

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
REFERENCE_NOTICE = (
    "Prices shown are reference values, not live quotes "
    "(API quota exhausted or data not yet synced). Search and listing still work."
)


class Dashboard:
    """Owns the DashboardState and turns user actions into component calls.

    Lifecycle:
        dashboard = Dashboard(client)
        await dashboard.start()
        await dashboard.select_symbol("ETH")
        dashboard.set_query("BT")
        vm = dashboard.view_model()
        ...
        await dashboard.stop()
    """

    def __init__(
        self,
        client: RateApiClient,
        store: StateStore | None = None,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        debounce: float = DEFAULT_DEBOUNCE,
        demo: bool = False,
        generator: CandleGenerator | None = None,
    ) -> None:
        self._client = client
        self._store = store or StateStore()
        self._guard = client.guard

        self.directory = SymbolDirectory(self._store, client, debounce=debounce)
        self.poller = LiveRatePoller(self._store, client, interval=poll_interval)
        self.history = HistoryStatsFetcher(self._store, client, generator=generator, demo=demo)
        self.analysis = AnalysisCache(self._store, client)
        self.favorites = FavoritesManager(self._store, client)

        self._store.apply(_set_session, self._guard.session, False)
        # Registered once; the notifier itself guarantees single delivery
        self._unsubscribe = self._guard.notifier.subscribe(self._on_logout)

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def state(self) -> DashboardState:
        return self._store.state

    @property
    def client(self) -> RateApiClient:
        return self._client

    # --- Lifecycle ---

    async def start(self) -> None:
        await asyncio.gather(
            self.directory.load_all(),
            self.favorites.sync(),
            self.poller.start(),
            self.history.refresh(),
        )
        logger.info("Dashboard started on %s/%s", self.state.selected, self.state.timeframe)

    async def stop(self) -> None:
        await self.directory.close()
        await self.poller.stop()
        self._unsubscribe()
        await self._client.aclose()
        logger.info("Dashboard stopped")

    # --- User actions ---

    async def select_symbol(self, symbol: str) -> None:
        symbol = symbol.strip().upper()
        if not symbol or symbol == self.state.selected:
            return
        self._store.apply(_select_symbol, symbol)
        self._store.apply(select_price)
        await asyncio.gather(self.poller.restart(), self.history.refresh())

    async def select_timeframe(self, timeframe: str) -> None:
        timeframe = timeframe.strip().upper()
        if timeframe == self.state.timeframe:
            return
        self._store.apply(_select_timeframe, timeframe)
        await self.history.refresh()

    def set_query(self, query: str) -> None:
        self.directory.set_query(query)

    async def toggle_favorite(self, symbol: str | None = None) -> bool:
        return await self.favorites.toggle(symbol or self.state.selected)

    async def request_analysis(self, symbol: str | None = None) -> str:
        return await self.analysis.request(symbol)

    def dismiss_error(self) -> None:
        self._store.apply(set_error, None)

    def open_login(self) -> None:
        self._store.apply(_show_login, True)

    def close_login(self) -> None:
        self._store.apply(_show_login, False)

    # --- Session ---

    async def login(self, username: str, password: str) -> Session:
        """Sign in. BusinessError from the backend propagates to the caller."""
        username = username.strip()
        if not username or not password:
            raise ValueError("Please enter username and password")
        token = await self._client.login(username, password)
        return await self._establish(Session(display_name=username, token=token))

    async def register(self, username: str, password: str, email: str | None = None) -> Session:
        username = username.strip()
        if not username or not password:
            raise ValueError("Please enter username and password")
        user = await self._client.register(username, password, (email or "").strip() or None)
        return await self._establish(Session(display_name=str(user.get("username") or username)))

    def logout(self) -> None:
        """User-initiated sign out; does not prompt for login again."""
        self._guard.clear()
        self._store.apply(_set_session, None, False)
        self._store.apply(_reset_favorites)
        logger.info("Signed out")

    async def _establish(self, session: Session) -> Session:
        self._guard.establish(session)
        self._store.apply(_set_session, session, False)
        await self.favorites.sync()
        return session

    def _on_logout(self) -> None:
        logger.info("Session invalidated, prompting for login")
        self._store.apply(_set_session, None, True)
        self._store.apply(_reset_favorites)

    # --- View model ---

    def view_model(self) -> dict:
        """Render-ready snapshot of the current state."""
        state = self.state
        symbol = state.selected
        info = display_info(symbol)
        rates = state.rates

        live = symbol in rates.rates
        reference = base_price(symbol)
        if live and rates.current_price is not None:
            price = rates.current_price
        else:
            price = reference
        loading_latest = "latest" in state.loading

        series = state.chart.series
        if series is not None and (series.symbol, series.timeframe) != (symbol, state.timeframe):
            series = None  # Previous pair still on screen while the new one loads
        change = series.price_change_percent if series else None

        stats = state.chart.stats
        if stats is not None:
            high, low = stats.max_value, stats.min_value
        elif price is not None:
            high, low = price * 1.05, price * 0.95
        else:
            high = low = None

        return {
            "symbol": symbol,
            "name": info["name"],
            "volume24h": info["volume24h"],
            "timeframe": state.timeframe,
            "price": price,
            "isReferencePrice": not live,
            "priceChangePercent": change,
            "high24h": _or_na(high),
            "low24h": _or_na(low),
            "stats": {
                "maxValue": _or_na(stats.max_value if stats else None),
                "minValue": _or_na(stats.min_value if stats else None),
                "avgValue": _or_na(stats.avg_value if stats else None),
                "priceChangePercent": (stats.price_change_percent if stats else None)
                or NOT_AVAILABLE,
            },
            "chart": {
                "candles": [c.to_dict() for c in series.candles] if series else [],
                "synthetic": series.synthetic if series else False,
                "empty": series is None and "history" not in state.loading,
            },
            "degraded": list(state.chart.degraded),
            "notice": REFERENCE_NOTICE if not loading_latest and not rates.ever_live else None,
            "error": state.error,
            "loading": {key: key in state.loading for key in _LOADING_FLAGS},
            "query": state.directory.query,
            "symbols": [
                {"symbol": s, "rate": rates.rates.get(s, base_price(s))}
                for s in state.directory.visible
            ],
            "favorites": list(state.favorites),
            "isFavorite": symbol in state.favorites,
            "analysis": {
                "visible": state.analysis.visible_for == symbol,
                "report": state.analysis.reports.get(symbol),
            },
            "user": state.session.display_name if state.session else None,
            "showLogin": state.show_login,
        }


_LOADING_FLAGS = ("symbols", "search", "latest", "history", "stats", "analysis")


def _or_na(value: float | None) -> float | str:
    return NOT_AVAILABLE if value is None else value


# --- Reducers ---


def _select_symbol(state: DashboardState, symbol: str) -> DashboardState:
    return replace(state, selected=symbol)


def _select_timeframe(state: DashboardState, timeframe: str) -> DashboardState:
    return replace(state, timeframe=timeframe)


def _set_session(state: DashboardState, session: Session | None, show_login: bool) -> DashboardState:
    return replace(state, session=session, show_login=show_login)


def _show_login(state: DashboardState, show: bool) -> DashboardState:
    return replace(state, show_login=show)


def _reset_favorites(state: DashboardState) -> DashboardState:
    return replace(state, favorites=DEFAULT_FAVORITES)
