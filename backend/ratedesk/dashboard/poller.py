"""Periodic poller for the latest rate of every symbol."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..client.api import RateApiClient
from ..client.errors import AuthInvalid, RateDeskError
from ..market.models import RateQuote
from .state import DashboardState, RequestEpoch, StateStore, set_error, set_loading

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0
POLL_FAILED = "Failed to fetch latest rates, please check the backend service"
SESSION_EXPIRED = "Session expired, please sign in again"


class LiveRatePoller:
    """Polls /rates/latest and writes the result into ``state.rates``.

    A successful poll replaces the whole rate map; a failed one leaves the
    previous map and ``current_price`` untouched. The selected symbol is read
    from the store when a poll completes, never captured at start time.

    Lifecycle:
        poller = LiveRatePoller(store, client)
        await poller.start()     # immediate poll, then every `interval`
        await poller.restart()   # selection changed: poll again now
        await poller.stop()
    """

    def __init__(
        self,
        store: StateStore,
        client: RateApiClient,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._store = store
        self._client = client
        self._interval = interval
        self._epoch = RequestEpoch()
        self._task: asyncio.Task | None = None
        self._generation = 0  # Bumped by stop()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        generation = self._generation
        # Immediate first poll so the rate map has data right away
        await self._poll_once()
        if generation != self._generation:
            # stop() ran while we were polling; do not arm an orphan loop
            return
        self._task = asyncio.create_task(self._poll_loop(), name="rate-poller")
        logger.info("Rate poller started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        self._generation += 1
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Rate poller stopped")

    async def restart(self) -> None:
        """Cancel the timer and start over with an immediate poll."""
        await self.stop()
        await self.start()

    # --- Internal ---

    async def _poll_loop(self) -> None:
        """Poll on interval. First poll already happened in start()."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._poll_once()
            except Exception:
                logger.exception("Rate poll cycle failed")

    async def _poll_once(self) -> None:
        """Execute one poll cycle: fetch latest rates, commit if still current."""
        token = self._epoch.next()
        generation = self._generation
        self._store.apply(set_loading, "latest", True)
        try:
            items = await self._client.get_latest()
        except AuthInvalid:
            # Logout already broadcast by the guard; keep last-known rates
            self._finish(token, generation, SESSION_EXPIRED)
            return
        except RateDeskError as e:
            logger.error("Rate poll failed: %s", e)
            self._finish(token, generation, POLL_FAILED)
            return

        rates: dict[str, float] = {}
        for item in items:
            try:
                quote = RateQuote.from_payload(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed rate %r: %s", item, e)
                continue
            rates[quote.symbol] = quote.rate

        if not rates:
            logger.warning("Rate poll returned no usable rates")
            self._finish(token, generation, None)
            return
        if not self._epoch.is_current(token):
            logger.debug("Discarding superseded rate poll")
            return
        if generation != self._generation:
            logger.debug("Poller stopped during poll, discarding rates")
            self._store.apply(set_loading, "latest", False)
            return
        self._store.apply(_commit_rates, rates)
        self._store.apply(set_loading, "latest", False)
        logger.debug("Rate poll: %d symbols", len(rates))

    def _finish(self, token: int, generation: int, error: str | None) -> None:
        if not self._epoch.is_current(token):
            return
        if error and generation == self._generation:
            self._store.apply(set_error, error)
        self._store.apply(set_loading, "latest", False)


# --- Reducers ---


def _commit_rates(state: DashboardState, rates: dict[str, float]) -> DashboardState:
    current = rates.get(state.selected, state.rates.current_price)
    return replace(
        state,
        rates=replace(state.rates, rates=rates, current_price=current, ever_live=True),
    )


def select_price(state: DashboardState) -> DashboardState:
    """After a selection change, point current_price at the new symbol's last rate."""
    current = state.rates.rates.get(state.selected)
    if current == state.rates.current_price:
        return state
    return replace(state, rates=replace(state.rates, current_price=current))
