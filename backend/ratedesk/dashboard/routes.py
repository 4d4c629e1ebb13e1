"""HTTP endpoints that feed user actions into the dashboard."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..client.errors import AuthInvalid, BusinessError, RateDeskError
from .assembler import Dashboard

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    username: str
    password: str
    email: str | None = None


def create_dashboard_router(dashboard: Dashboard) -> APIRouter:
    router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

    @router.get("")
    async def get_view_model() -> dict:
        return dashboard.view_model()

    @router.post("/symbol/{symbol}")
    async def select_symbol(symbol: str) -> dict:
        await dashboard.select_symbol(symbol)
        return dashboard.view_model()

    @router.post("/timeframe/{timeframe}")
    async def select_timeframe(timeframe: str) -> dict:
        await dashboard.select_timeframe(timeframe)
        return dashboard.view_model()

    @router.post("/search")
    async def search(q: str = "") -> dict:
        dashboard.set_query(q)
        return {"query": q}

    @router.post("/favorites/{symbol}")
    async def toggle_favorite(symbol: str) -> dict:
        try:
            favorite = await dashboard.toggle_favorite(symbol.strip().upper())
        except RateDeskError as e:
            raise _to_http(e) from e
        return {"symbol": symbol.strip().upper(), "favorite": favorite}

    @router.post("/analysis")
    async def request_analysis(symbol: str | None = None) -> dict:
        report = await dashboard.request_analysis(symbol.strip().upper() if symbol else None)
        return {"report": report, "visible": dashboard.view_model()["analysis"]["visible"]}

    @router.post("/login")
    async def login(body: Credentials) -> dict:
        try:
            session = await dashboard.login(body.username, body.password)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except RateDeskError as e:
            raise _to_http(e) from e
        return {"user": session.display_name}

    @router.post("/register")
    async def register(body: Credentials) -> dict:
        try:
            session = await dashboard.register(body.username, body.password, body.email)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except RateDeskError as e:
            raise _to_http(e) from e
        return {"user": session.display_name}

    @router.post("/logout")
    async def logout() -> dict:
        dashboard.logout()
        return {"user": None}

    @router.delete("/error")
    async def dismiss_error() -> dict:
        dashboard.dismiss_error()
        return {"error": None}

    return router


def _to_http(error: RateDeskError) -> HTTPException:
    if isinstance(error, AuthInvalid):
        return HTTPException(status_code=401, detail=str(error))
    if isinstance(error, BusinessError):
        return HTTPException(status_code=400, detail=error.msg or str(error))
    logger.warning("Backend unavailable: %s", error)
    return HTTPException(status_code=502, detail=str(error))
