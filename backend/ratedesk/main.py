"""
FastAPI entry point: wires a dashboard from the environment and serves it.

Run locally:
    uvicorn ratedesk.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .dashboard import Dashboard, create_dashboard, create_dashboard_router, create_stream_router

logger = logging.getLogger(__name__)


def create_app(dashboard: Dashboard | None = None) -> FastAPI:
    dashboard = dashboard or create_dashboard()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await dashboard.start()
        try:
            yield
        finally:
            await dashboard.stop()

    app = FastAPI(title="RateDesk", lifespan=lifespan)
    app.include_router(create_dashboard_router(dashboard))
    app.include_router(create_stream_router(dashboard))
    return app


app = create_app()
