"""Pytest configuration and fixtures."""

import inspect

import httpx
import pytest

from ratedesk.client.api import RateApiClient
from ratedesk.client.guard import AuthSessionGuard
from ratedesk.client.session import LogoutNotifier, SessionStore
from ratedesk.dashboard.state import StateStore

BASE_URL = "http://backend.test"


def ok(data=None) -> httpx.Response:
    return httpx.Response(200, json={"code": 200, "msg": "success", "data": data})


def fail(code: int, msg: str = "error", status: int = 200) -> httpx.Response:
    return httpx.Response(status, json={"code": code, "msg": msg, "data": None})


class FakeBackend:
    """Scripted backend for httpx.MockTransport.

    Routes map (method, path) to either plain data (wrapped in a success
    envelope), an httpx.Response, an exception to raise, or a callable
    (sync or async) receiving the request.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], object] = {}
        self.calls: list[httpx.Request] = []

    ok = staticmethod(ok)
    fail = staticmethod(fail)

    def on(self, method: str, path: str, result: object) -> None:
        self.routes[(method, path)] = result

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return fail(404, "not found", status=404)
        result = self.routes[key]
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            result = result(request)
            if inspect.isawaitable(result):
                result = await result
        if isinstance(result, httpx.Response):
            # Fresh copy so one scripted response can serve many requests
            return httpx.Response(result.status_code, headers=result.headers, content=result.content)
        return ok(result)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def notifier() -> LogoutNotifier:
    return LogoutNotifier()


@pytest.fixture
def guard(sessions, notifier) -> AuthSessionGuard:
    return AuthSessionGuard(sessions, notifier)


@pytest.fixture
def client(backend, guard) -> RateApiClient:
    return RateApiClient(BASE_URL, guard, timeout=2.0, transport=httpx.MockTransport(backend))


@pytest.fixture
def store() -> StateStore:
    return StateStore()
