"""Session storage contract and logout notification."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Session:
    """Logged-in user's credential material."""

    display_name: str
    token: str | None = field(default=None, repr=False)


class SessionStore:
    """In-memory holder of the current Session.

    Persistence is left to the host application; anything with the same
    get/set/clear surface can replace this class.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def get(self) -> Session | None:
        return self._session

    def set(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None


class LogoutNotifier:
    """Observer registry for the logout signal.

    Delivery is idempotent: once notify() has fired, further calls are no-ops
    until reset() is called by a fresh login.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[], None]] = []
        self._pending = False

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback. Returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def pending(self) -> bool:
        """True between a delivered logout and the next reset()."""
        return self._pending

    def notify(self) -> bool:
        """Deliver the logout signal. Returns False if one is already pending."""
        if self._pending:
            return False
        self._pending = True
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:
                logger.exception("Logout subscriber failed")
        return True

    def reset(self) -> None:
        self._pending = False
