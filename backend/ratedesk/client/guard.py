"""Request middleware that attaches the session and detects invalidation."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import httpx

from .errors import AuthInvalid
from .session import LogoutNotifier, Session, SessionStore

logger = logging.getLogger(__name__)

PUBLIC_PATHS: tuple[str, ...] = ("/user/login", "/user/register")

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "


class AuthSessionGuard(httpx.Auth):
    """httpx auth flow shared by every request the API client makes.

    Outgoing:
        public URLs (login, register) are sent untouched; everything else gets
        ``Authorization: Bearer <token>`` when a session token exists.
    Incoming:
        every response, public or not, is checked for HTTP 401 or an embedded
        ``{"code": 401}``. Either one raises AuthInvalid to the caller. The
        session is cleared and the logout notifier fired once, but only if the
        session is still the one the request was sent with; a late 401 for an
        older token never signs out a newer session.
    """

    requires_response_body = True

    def __init__(self, store: SessionStore, notifier: LogoutNotifier) -> None:
        self._store = store
        self._notifier = notifier

    @property
    def session(self) -> Session | None:
        return self._store.get()

    @property
    def notifier(self) -> LogoutNotifier:
        return self._notifier

    @staticmethod
    def is_public(url: httpx.URL | str) -> bool:
        path = url.path if isinstance(url, httpx.URL) else httpx.URL(url).path
        return path.rstrip("/").endswith(PUBLIC_PATHS)

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._store.token  # Session the request belongs to
        if token and not self.is_public(request.url):
            request.headers[AUTHORIZATION_HEADER] = BEARER_PREFIX + token
        response = yield request
        self.inspect(response, token)

    def inspect(self, response: httpx.Response, sent_token: str | None) -> None:
        """Raise AuthInvalid if the response rejects the session.

        Invalidates only when ``sent_token`` is still the current token.
        """
        if response.status_code == 401 or _embedded_code(response) == 401:
            if self._store.token == sent_token:
                logger.warning("Unauthorized response from %s", response.request.url.path)
                self.invalidate()
            else:
                logger.info(
                    "Ignoring stale 401 from %s: session changed since dispatch",
                    response.request.url.path,
                )
            raise AuthInvalid("Session expired, please sign in again")

    def invalidate(self) -> None:
        """Clear the session and broadcast logout. No-op while a logout is pending."""
        if self._notifier.pending:
            return
        self._store.clear()
        logger.info("Session cleared")
        self._notifier.notify()

    def clear(self) -> None:
        """Drop the session without broadcasting (user-initiated sign out)."""
        self._store.clear()
        logger.info("Session cleared by user")

    def establish(self, session: Session) -> None:
        """Store a fresh session from login/register and re-arm logout detection."""
        self._store.set(session)
        self._notifier.reset()
        logger.info("Session established for %s", session.display_name)


def _embedded_code(response: httpx.Response) -> int | None:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(payload, dict):
        code = payload.get("code")
        return code if isinstance(code, int) else None
    return None
