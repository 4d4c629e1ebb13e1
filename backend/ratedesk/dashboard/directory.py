"""Symbol directory: master list, visible subset and debounced search."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..client.api import RateApiClient
from ..client.errors import RateDeskError
from ..market.reference import FALLBACK_SYMBOLS, VISIBLE_LIMIT
from .state import DashboardState, DirectoryState, RequestEpoch, StateStore, set_error, set_loading

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.3  # Seconds of quiet before a search is sent
SEARCH_FAILED = "Search failed, please try again later"


class SymbolDirectory:
    """Owns ``state.directory``.

    Lifecycle:
        directory = SymbolDirectory(store, client)
        await directory.load_all()      # once at startup
        directory.set_query("BT")       # per keystroke, synchronous
        ...
        await directory.close()         # cancels the pending debounce
    """

    def __init__(
        self,
        store: StateStore,
        client: RateApiClient,
        debounce: float = DEFAULT_DEBOUNCE,
        visible_limit: int = VISIBLE_LIMIT,
    ) -> None:
        self._store = store
        self._client = client
        self._debounce = debounce
        self._limit = visible_limit
        self._epoch = RequestEpoch()
        self._timer: asyncio.Task | None = None
        self._searches: set[asyncio.Task] = set()

    async def load_all(self) -> DirectoryState:
        """Fetch the master symbol list. Never raises; falls back to a fixed set."""
        self._store.apply(set_loading, "symbols", True)
        try:
            symbols = await self._client.get_symbols()
        except RateDeskError as e:
            logger.warning("Symbol list unavailable, using fallback set: %s", e)
            symbols = []
        finally:
            self._store.apply(set_loading, "symbols", False)

        if not symbols:
            symbols = list(FALLBACK_SYMBOLS)
        self._store.apply(_load_all, tuple(symbols), self._limit)
        logger.info("Symbol directory loaded: %d symbols", len(symbols))
        return self._store.state.directory

    def set_query(self, query: str) -> None:
        """Record a keystroke.

        An empty query restores the default listing right away. Anything else
        (re)starts the debounce timer; only the last keystroke inside the
        quiet window reaches the network.
        """
        self._cancel_timer()
        self._store.apply(_set_query, query)
        keyword = query.strip()
        token = self._epoch.next()  # Supersedes searches already in flight

        if not keyword:
            self._store.apply(_restore_visible, self._limit)
            self._store.apply(set_loading, "search", False)
            return

        self._timer = asyncio.create_task(
            self._debounced_search(keyword, token), name="symbol-search-debounce"
        )

    async def close(self) -> None:
        self._cancel_timer()
        searches = list(self._searches)
        for task in searches:
            task.cancel()
        await asyncio.gather(*searches, return_exceptions=True)

    # --- Internal ---

    def _cancel_timer(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounced_search(self, keyword: str, token: int) -> None:
        await asyncio.sleep(self._debounce)
        # From here on the search runs detached from the timer, so a later
        # keystroke only supersedes it logically (via the epoch).
        task = asyncio.create_task(self._search(keyword, token), name="symbol-search")
        self._searches.add(task)
        task.add_done_callback(self._searches.discard)

    async def _search(self, keyword: str, token: int) -> None:
        self._store.apply(set_loading, "search", True)
        logger.debug("Searching symbols for %r", keyword)
        try:
            results = await self._client.search_symbols(keyword)
        except RateDeskError as e:
            if self._is_current(keyword, token):
                logger.warning("Symbol search for %r failed: %s", keyword, e)
                self._store.apply(set_error, SEARCH_FAILED)
                self._store.apply(set_loading, "search", False)
            return

        if not self._is_current(keyword, token):
            logger.debug("Discarding stale search results for %r", keyword)
            return
        self._store.apply(_commit_search, tuple(results))
        self._store.apply(set_loading, "search", False)

    def _is_current(self, keyword: str, token: int) -> bool:
        # Compared against the query active now, not the one at dispatch
        return self._epoch.is_current(token) and self._store.state.directory.query.strip() == keyword


# --- Reducers ---


def _load_all(state: DashboardState, symbols: tuple[str, ...], limit: int) -> DashboardState:
    directory = state.directory
    visible = symbols[:limit] if not directory.query.strip() else directory.visible
    return replace(state, directory=replace(directory, all=symbols, visible=visible))


def _set_query(state: DashboardState, query: str) -> DashboardState:
    return replace(state, directory=replace(state.directory, query=query))


def _restore_visible(state: DashboardState, limit: int) -> DashboardState:
    directory = state.directory
    return replace(state, directory=replace(directory, visible=directory.all[:limit]))


def _commit_search(state: DashboardState, results: tuple[str, ...]) -> DashboardState:
    return replace(state, directory=replace(state.directory, visible=results))
