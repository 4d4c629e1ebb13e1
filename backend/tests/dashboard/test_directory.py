"""Tests for SymbolDirectory."""

import asyncio

import httpx
import pytest

from ratedesk.dashboard.directory import SEARCH_FAILED, SymbolDirectory

SYMBOLS = [f"C{i:02d}" for i in range(25)]
SEARCH_PATH = "/api/v1/rates/search"


@pytest.mark.asyncio
class TestLoadAll:
    """Tests for the one-shot startup load."""

    async def test_visible_is_first_twenty(self, backend, client, store):
        """Test that the default listing is the first 20 symbols."""
        backend.on("GET", "/api/v1/rates/symbols", SYMBOLS)
        directory = SymbolDirectory(store, client)

        state = await directory.load_all()

        assert state.all == tuple(SYMBOLS)
        assert state.visible == tuple(SYMBOLS[:20])
        assert "symbols" not in store.state.loading

    async def test_short_list(self, backend, client, store):
        """Test a master list shorter than the limit."""
        backend.on("GET", "/api/v1/rates/symbols", ["BTC", "ETH"])
        state = await SymbolDirectory(store, client).load_all()
        assert state.visible == ("BTC", "ETH")

    async def test_failure_uses_fallback(self, backend, client, store):
        """Test that an unreachable backend yields the fixed fallback set without raising."""
        backend.on("GET", "/api/v1/rates/symbols", httpx.ConnectError("down"))
        state = await SymbolDirectory(store, client).load_all()
        assert state.all == ("BTC", "ETH", "BNB")
        assert state.visible == ("BTC", "ETH", "BNB")
        assert store.state.error is None

    async def test_empty_uses_fallback(self, backend, client, store):
        """Test that an empty list never leaves the directory empty."""
        backend.on("GET", "/api/v1/rates/symbols", [])
        state = await SymbolDirectory(store, client).load_all()
        assert state.all == ("BTC", "ETH", "BNB")


@pytest.mark.asyncio
class TestSearch:
    """Tests for debounced search and stale-result handling."""

    async def _loaded(self, backend, client, store, **kwargs) -> SymbolDirectory:
        backend.on("GET", "/api/v1/rates/symbols", SYMBOLS)
        directory = SymbolDirectory(store, client, **kwargs)
        await directory.load_all()
        return directory

    async def test_clear_restores_synchronously(self, backend, client, store):
        """Test that clearing the query restores the first 20 without a network call."""
        directory = await self._loaded(backend, client, store, debounce=0.01)
        backend.on("GET", SEARCH_PATH, ["C03"])
        directory.set_query("C03")
        await asyncio.sleep(0.05)
        assert store.state.directory.visible == ("C03",)
        searches = len(backend.calls_to(SEARCH_PATH))

        directory.set_query("")

        # No await in between: restored synchronously
        assert store.state.directory.visible == tuple(SYMBOLS[:20])
        assert store.state.directory.query == ""
        await asyncio.sleep(0.05)
        assert len(backend.calls_to(SEARCH_PATH)) == searches

    async def test_whitespace_query_counts_as_empty(self, backend, client, store):
        """Test that a blank query restores the listing."""
        directory = await self._loaded(backend, client, store, debounce=0.01)
        directory.set_query("   ")
        await asyncio.sleep(0.05)
        assert store.state.directory.visible == tuple(SYMBOLS[:20])
        assert backend.calls_to(SEARCH_PATH) == []

    async def test_keystrokes_collapse_into_one_request(self, backend, client, store):
        """Test B@0ms, BT@50ms, BTC@100ms issue exactly one search, for BTC, at ~400ms."""
        directory = await self._loaded(backend, client, store)  # Default 300ms debounce
        loop = asyncio.get_running_loop()
        sent_at = []

        def search(request):
            sent_at.append(loop.time())
            return httpx.Response(200, json={"code": 200, "msg": "success", "data": ["BTC"]})

        backend.on("GET", SEARCH_PATH, search)

        t0 = loop.time()
        directory.set_query("B")
        await asyncio.sleep(0.05)
        directory.set_query("BT")
        await asyncio.sleep(0.05)
        directory.set_query("BTC")
        await asyncio.sleep(0.6)

        calls = backend.calls_to(SEARCH_PATH)
        assert len(calls) == 1
        assert calls[0].url.params["keyword"] == "BTC"
        assert sent_at[0] - t0 >= 0.39
        assert store.state.directory.visible == ("BTC",)

    async def test_late_response_for_superseded_query_is_dropped(self, backend, client, store):
        """Test that a slow search cannot overwrite results for a newer query."""
        directory = await self._loaded(backend, client, store, debounce=0.01)
        release = asyncio.Event()

        async def search(request):
            keyword = request.url.params["keyword"]
            if keyword == "BT":
                await release.wait()
                return httpx.Response(200, json={"code": 200, "msg": "ok", "data": ["BTC"]})
            return httpx.Response(200, json={"code": 200, "msg": "ok", "data": ["ETH"]})

        backend.on("GET", SEARCH_PATH, search)

        directory.set_query("BT")
        await asyncio.sleep(0.05)  # BT search now in flight
        directory.set_query("ET")
        await asyncio.sleep(0.05)
        assert store.state.directory.visible == ("ETH",)

        release.set()
        await asyncio.sleep(0.05)
        assert store.state.directory.visible == ("ETH",)
        await directory.close()

    async def test_late_response_after_clear_is_dropped(self, backend, client, store):
        """Test that clearing the query discards an in-flight search."""
        directory = await self._loaded(backend, client, store, debounce=0.01)
        release = asyncio.Event()

        async def search(request):
            await release.wait()
            return httpx.Response(200, json={"code": 200, "msg": "ok", "data": ["C01"]})

        backend.on("GET", SEARCH_PATH, search)
        directory.set_query("C01")
        await asyncio.sleep(0.05)
        directory.set_query("")
        release.set()
        await asyncio.sleep(0.05)

        assert store.state.directory.visible == tuple(SYMBOLS[:20])
        assert "search" not in store.state.loading

    async def test_same_query_retyped_still_uses_latest_dispatch(self, backend, client, store):
        """Test that a response is judged by the query active at completion."""
        directory = await self._loaded(backend, client, store, debounce=0.01)
        results = iter([["OLD"], ["NEW"]])
        gates = [asyncio.Event(), asyncio.Event()]
        order = iter(gates)

        async def search(request):
            gate = next(order)
            data = next(results)
            await gate.wait()
            return httpx.Response(200, json={"code": 200, "msg": "ok", "data": data})

        backend.on("GET", SEARCH_PATH, search)
        directory.set_query("BTC")
        await asyncio.sleep(0.05)
        directory.set_query("BTC ")  # Same keyword after strip, new dispatch
        await asyncio.sleep(0.05)

        gates[1].set()
        await asyncio.sleep(0.02)
        gates[0].set()
        await asyncio.sleep(0.02)
        assert store.state.directory.visible == ("NEW",)

    async def test_failure_keeps_visible(self, backend, client, store):
        """Test that a failed search keeps the last-known-good list and flags an error."""
        directory = await self._loaded(backend, client, store, debounce=0.01)
        backend.on("GET", SEARCH_PATH, httpx.ConnectError("down"))
        before = store.state.directory.visible

        directory.set_query("BTC")
        await asyncio.sleep(0.05)

        assert store.state.directory.visible == before
        assert store.state.error == SEARCH_FAILED
        assert "search" not in store.state.loading

    async def test_close_cancels_pending_debounce(self, backend, client, store):
        """Test that teardown leaves no timer behind."""
        directory = await self._loaded(backend, client, store, debounce=0.05)
        backend.on("GET", SEARCH_PATH, ["BTC"])
        directory.set_query("BTC")
        await directory.close()
        await asyncio.sleep(0.1)
        assert backend.calls_to(SEARCH_PATH) == []
