"""SSE streaming endpoint for dashboard view-model updates."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .assembler import Dashboard

logger = logging.getLogger(__name__)


def create_stream_router(dashboard: Dashboard, interval: float = 0.5) -> APIRouter:
    """Create the SSE streaming router. ``interval`` is the state check period in seconds."""
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/dashboard")
    async def stream_dashboard(request: Request) -> StreamingResponse:
        """SSE endpoint emitting the view model whenever the state changes.

            data: {"symbol": "BTC", "price": 45000.0, "chart": {...}, ...}
        """
        return StreamingResponse(
            _generate_events(dashboard, request, interval),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    dashboard: Dashboard,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Yield SSE-formatted view models until the client disconnects."""
    yield "retry: 1000\n\n"

    last_version = -1
    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client connected: %s", client_ip)

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            current_version = dashboard.store.version
            if current_version != last_version:
                last_version = current_version
                yield f"data: {json.dumps(dashboard.view_model())}\n\n"

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
