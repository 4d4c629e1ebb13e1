"""Favorite symbols, kept locally and synced to the account when signed in."""

from __future__ import annotations

import logging
from dataclasses import replace

from ..client.api import RateApiClient
from ..client.errors import RateDeskError
from .state import DashboardState, StateStore

logger = logging.getLogger(__name__)


class FavoritesManager:
    def __init__(self, store: StateStore, client: RateApiClient) -> None:
        self._store = store
        self._client = client

    def _signed_in(self) -> bool:
        session = self._store.state.session
        return bool(session and session.token)

    async def sync(self) -> tuple[str, ...]:
        """Replace local favorites with the account's list. Keeps local on failure."""
        if not self._signed_in():
            return self._store.state.favorites
        try:
            remote = await self._client.list_favorites()
        except RateDeskError as e:
            logger.warning("Favorites sync failed, keeping local list: %s", e)
        else:
            self._store.apply(set_favorites, tuple(remote))
        return self._store.state.favorites

    async def toggle(self, symbol: str) -> bool:
        """Flip ``symbol``; returns whether it is now a favorite.

        When signed in the change is written through. A failed write is rolled
        back locally and re-raised to the caller.
        """
        self._store.apply(_toggle, symbol)
        added = symbol in self._store.state.favorites
        if not self._signed_in():
            return added
        try:
            if added:
                await self._client.add_favorite(symbol)
            else:
                await self._client.remove_favorite(symbol)
        except RateDeskError:
            self._store.apply(_toggle, symbol)
            raise
        logger.info("Favorite %s: %s", "added" if added else "removed", symbol)
        return added


# --- Reducers ---


def _toggle(state: DashboardState, symbol: str) -> DashboardState:
    if symbol in state.favorites:
        favorites = tuple(s for s in state.favorites if s != symbol)
    else:
        favorites = (*state.favorites, symbol)
    return replace(state, favorites=favorites)


def set_favorites(state: DashboardState, favorites: tuple[str, ...]) -> DashboardState:
    return replace(state, favorites=favorites)
