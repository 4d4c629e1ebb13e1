"""Async HTTP client for the CryptoRate backend."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..market.models import HistoryPoint, StatsSummary
from .errors import AuthInvalid, BusinessError, EmptyResult, NetworkFailure
from .guard import AuthSessionGuard

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 10.0


class RateApiClient:
    """Thin wrapper over httpx.AsyncClient for the backend's REST contract.

    Every response is an envelope ``{"code": int, "msg": str, "data": ...}``
    where code 200 means success. This class unwraps it and maps failures to
    the client error taxonomy:

        transport error / timeout / unreadable body -> NetworkFailure
        HTTP 401 or code 401 (raised by the guard)  -> AuthInvalid
        any other non-200 code                      -> BusinessError
    """

    def __init__(
        self,
        base_url: str,
        guard: AuthSessionGuard,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._guard = guard
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=guard,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def guard(self) -> AuthSessionGuard:
        return self._guard

    @property
    def base_url(self) -> str:
        return str(self._http.base_url).rstrip("/")

    @property
    def timeout(self) -> float | None:
        return self._http.timeout.read

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> RateApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Rates ---

    async def get_symbols(self) -> list[str]:
        data = await self._request("GET", f"{API_PREFIX}/rates/symbols")
        return [str(s) for s in data or []]

    async def search_symbols(self, keyword: str = "") -> list[str]:
        keyword = keyword.strip()
        params = {"keyword": keyword} if keyword else None
        data = await self._request("GET", f"{API_PREFIX}/rates/search", params=params)
        return [str(s) for s in data or []]

    async def get_latest(self, symbol: str | None = None) -> list[dict]:
        """Raw ``{symbol, rate, ...}`` items; callers decide how to treat bad ones."""
        params = {"symbol": symbol} if symbol else None
        data = await self._request("GET", f"{API_PREFIX}/rates/latest", params=params)
        if not isinstance(data, list):
            raise EmptyResult("No latest rates returned")
        return data

    async def get_history(self, symbol: str, start: str, end: str) -> list[HistoryPoint]:
        data = await self._request(
            "GET",
            f"{API_PREFIX}/rates/history",
            params={"symbol": symbol, "start": start, "end": end},
        )
        if not isinstance(data, list):
            return []
        return [HistoryPoint.from_payload(item) for item in data if isinstance(item, dict)]

    # --- Stats / analysis ---

    async def get_stats_summary(self, symbol: str, range_: str = "7d") -> StatsSummary:
        data = await self._request(
            "GET", f"{API_PREFIX}/stats/summary/{symbol}", params={"range": range_}
        )
        if not isinstance(data, dict):
            raise EmptyResult(f"No stats for {symbol}")
        return StatsSummary.from_payload(data)

    async def get_explanation(self, symbol: str) -> str:
        data = await self._request("GET", f"{API_PREFIX}/analysis/explain/{symbol}")
        report = data.get("report") if isinstance(data, dict) else None
        if not report:
            raise EmptyResult(f"No analysis for {symbol}")
        return str(report)

    # --- User ---

    async def login(self, username: str, password: str) -> str:
        """Returns the session token."""
        data = await self._request(
            "POST", "/user/login", json={"username": username, "password": password}
        )
        if not data:
            raise EmptyResult("Login returned no token")
        return str(data)

    async def register(self, username: str, password: str, email: str | None = None) -> dict:
        body: dict[str, Any] = {"username": username, "password": password}
        if email:
            body["email"] = email
        data = await self._request("POST", "/user/register", json=body)
        if not isinstance(data, dict):
            raise EmptyResult("Registration returned no user")
        return data

    # --- Favorites ---

    async def list_favorites(self) -> list[str]:
        data = await self._request("GET", f"{API_PREFIX}/favorites/list")
        return [str(s) for s in data or []]

    async def add_favorite(self, symbol: str) -> None:
        await self._request("POST", f"{API_PREFIX}/favorites/{symbol}")

    async def remove_favorite(self, symbol: str) -> None:
        await self._request("DELETE", f"{API_PREFIX}/favorites/{symbol}")

    # --- Assets ---

    async def list_assets(self) -> list[dict]:
        data = await self._request("GET", f"{API_PREFIX}/assets")
        return list(data or [])

    async def save_asset(self, symbol: str, amount: float) -> dict:
        data = await self._request(
            "POST", f"{API_PREFIX}/assets", json={"symbol": symbol, "amount": amount}
        )
        return data or {}

    async def delete_asset(self, asset_id: int) -> None:
        await self._request("DELETE", f"{API_PREFIX}/assets/{asset_id}")

    # --- Internal ---

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request and unwrap the response envelope."""
        try:
            response = await self._http.request(method, path, **kwargs)
        except AuthInvalid:
            raise
        except httpx.TimeoutException as e:
            raise NetworkFailure(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            raise NetworkFailure(f"{method} {path} failed: {e}") from e

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise NetworkFailure(
                f"{method} {path} returned unreadable body (HTTP {response.status_code})"
            ) from e
        if not isinstance(payload, dict) or "code" not in payload:
            raise NetworkFailure(f"{method} {path} returned no envelope")

        code = payload.get("code")
        if code != 200:
            raise BusinessError(code, payload.get("msg") or "")
        logger.debug("%s %s -> ok", method, path)
        return payload.get("data")
