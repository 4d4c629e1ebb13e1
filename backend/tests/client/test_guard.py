"""Tests for AuthSessionGuard."""

import asyncio

import httpx
import pytest

from ratedesk.client.api import RateApiClient
from ratedesk.client.errors import AuthInvalid
from ratedesk.client.guard import AuthSessionGuard
from ratedesk.client.session import LogoutNotifier, Session, SessionStore


class CountingStore(SessionStore):
    def __init__(self, session=None):
        super().__init__(session)
        self.clears = 0

    def clear(self):
        self.clears += 1
        super().clear()


class TestClassification:
    """Unit tests for public/protected URL classification."""

    @pytest.mark.parametrize(
        "url",
        ["http://h/user/login", "http://h/user/register", "/user/login/", "/user/register?x=1"],
    )
    def test_public(self, url):
        assert AuthSessionGuard.is_public(url)

    @pytest.mark.parametrize(
        "url",
        ["http://h/api/v1/rates/latest", "/api/v1/favorites/list", "/user/1", "/api/v1/assets"],
    )
    def test_protected(self, url):
        assert not AuthSessionGuard.is_public(url)


@pytest.mark.asyncio
class TestGuard:
    """Tests for credential attachment and invalidation through a real client."""

    async def test_attaches_token_to_protected(self, backend, client, sessions):
        """Test that protected requests carry the bearer token."""
        sessions.set(Session(display_name="alice", token="abc"))
        backend.on("GET", "/api/v1/rates/symbols", ["BTC"])

        await client.get_symbols()

        assert backend.calls[0].headers["Authorization"] == "Bearer abc"

    async def test_public_never_carries_token(self, backend, client, sessions):
        """Test that login is sent without credentials even when signed in."""
        sessions.set(Session(display_name="alice", token="abc"))
        backend.on("POST", "/user/login", "new-token")

        await client.login("alice", "pw")

        assert "Authorization" not in backend.calls[0].headers

    async def test_no_session_no_header(self, backend, client):
        """Test that anonymous requests carry no Authorization header."""
        backend.on("GET", "/api/v1/rates/symbols", ["BTC"])
        await client.get_symbols()
        assert "Authorization" not in backend.calls[0].headers

    async def test_http_401_invalidates(self, backend, client, sessions, notifier):
        """Test that a transport-level 401 clears the session and notifies."""
        sessions.set(Session(display_name="alice", token="abc"))
        backend.on("GET", "/api/v1/rates/latest", httpx.Response(401, text="Unauthorized"))
        events = []
        notifier.subscribe(lambda: events.append("logout"))

        with pytest.raises(AuthInvalid):
            await client.get_latest()

        assert sessions.get() is None
        assert events == ["logout"]

    async def test_embedded_401_invalidates(self, backend, client, sessions, notifier):
        """Test that a business code 401 is handled the same as HTTP 401."""
        sessions.set(Session(display_name="alice", token="abc"))
        backend.on("GET", "/api/v1/rates/latest", backend.fail(401, "token expired"))
        events = []
        notifier.subscribe(lambda: events.append("logout"))

        with pytest.raises(AuthInvalid):
            await client.get_latest()

        assert sessions.get() is None
        assert events == ["logout"]

    async def test_public_responses_are_inspected(self, backend, client, notifier):
        """Test that a 401 from a public endpoint still runs the logout path."""
        backend.on("POST", "/user/login", backend.fail(401, "nope"))
        events = []
        notifier.subscribe(lambda: events.append("logout"))

        with pytest.raises(AuthInvalid):
            await client.login("alice", "bad")

        assert events == ["logout"]

    async def test_concurrent_401s_logout_once(self, backend):
        """Test that three concurrent rejections clear the session and notify exactly once."""
        store = CountingStore(Session(display_name="alice", token="abc"))
        notifier = LogoutNotifier()
        guard = AuthSessionGuard(store, notifier)
        client = RateApiClient("http://backend.test", guard, transport=httpx.MockTransport(backend))
        events = []
        notifier.subscribe(lambda: events.append("logout"))
        release = asyncio.Event()

        async def rejected(request):
            await release.wait()
            return httpx.Response(401, json={"code": 401, "msg": "expired", "data": None})

        backend.on("GET", "/api/v1/rates/latest", rejected)
        backend.on("GET", "/api/v1/rates/history", rejected)
        backend.on("GET", "/api/v1/stats/summary/BTC", rejected)

        tasks = [
            asyncio.create_task(client.get_latest()),
            asyncio.create_task(client.get_history("BTC", "2026-01-01", "2026-01-08")),
            asyncio.create_task(client.get_stats_summary("BTC")),
        ]
        await asyncio.sleep(0.01)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, AuthInvalid) for r in results)
        assert store.clears == 1
        assert events == ["logout"]
        await client.aclose()

    async def test_session_vanishing_mid_request(self, backend, client, sessions, notifier):
        """Test that a session cleared while a request is in flight is an ordinary auth failure."""
        sessions.set(Session(display_name="alice", token="abc"))
        events = []
        notifier.subscribe(lambda: events.append("logout"))

        def clear_then_reject(request):
            sessions.clear()
            return httpx.Response(401)

        backend.on("GET", "/api/v1/rates/symbols", clear_then_reject)

        with pytest.raises(AuthInvalid):
            await client.get_symbols()
        assert sessions.get() is None
        assert events == []

    async def test_late_401_for_old_token_keeps_new_session(self, backend, client, guard, notifier):
        """Test that a rejection of a previous session does not sign out the current one."""
        events = []
        notifier.subscribe(lambda: events.append("logout"))
        guard.establish(Session(display_name="alice", token="T1"))
        release = asyncio.Event()
        sent = []

        async def rejected(request):
            sent.append(request.headers["Authorization"])
            await release.wait()
            return httpx.Response(401, json={"code": 401, "msg": "expired", "data": None})

        backend.on("GET", "/api/v1/favorites/list", rejected)
        pending = asyncio.create_task(client.list_favorites())
        await asyncio.sleep(0.01)
        guard.establish(Session(display_name="alice", token="T2"))
        release.set()

        with pytest.raises(AuthInvalid):
            await pending
        assert sent == ["Bearer T1"]
        assert guard.session.token == "T2"
        assert events == []
        assert not notifier.pending

    async def test_establish_rearms_logout(self, backend, client, guard, notifier):
        """Test that a new login allows the next invalidation to notify again."""
        events = []
        notifier.subscribe(lambda: events.append("logout"))
        backend.on("GET", "/api/v1/rates/latest", httpx.Response(401))

        with pytest.raises(AuthInvalid):
            await client.get_latest()
        with pytest.raises(AuthInvalid):
            await client.get_latest()
        assert events == ["logout"]

        guard.establish(Session(display_name="alice", token="fresh"))
        assert not notifier.pending
        with pytest.raises(AuthInvalid):
            await client.get_latest()
        assert events == ["logout", "logout"]

    async def test_clear_does_not_notify(self, guard, sessions, notifier):
        """Test that a user-initiated sign out is silent."""
        sessions.set(Session(display_name="alice", token="abc"))
        events = []
        notifier.subscribe(lambda: events.append("logout"))
        guard.clear()
        assert sessions.get() is None
        assert events == []
