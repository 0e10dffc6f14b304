"""SSE streaming endpoint for live price updates."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Callable

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .models import ConnectionState
from .subscription import Subscription

logger = logging.getLogger(__name__)

STREAM_FAILED_MESSAGE = "Failed to connect to the price stream. Please refresh the page."


def price_payload(subscription: Subscription) -> dict:
    """Snapshot plus connection status, as served to the dashboard."""
    payload = subscription.read().to_dict()
    payload["status"] = subscription.state.value
    payload["error"] = STREAM_FAILED_MESSAGE if subscription.state is ConnectionState.FAILED else None
    return payload


def create_stream_router(get_subscription: Callable[[], Subscription]) -> APIRouter:
    """Create the SSE streaming router.

    The subscription is looked up per request so the router can be built
    before the app's lifespan opens it.
    """
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/prices")
    async def stream_prices(request: Request) -> StreamingResponse:
        """SSE endpoint for live price updates.

        Sends the full snapshot whenever it changes:

            data: {"version": 7, "status": "open", "prices": {"BTC": {...}, ...}}

        Includes a retry directive so the browser auto-reconnects on
        disconnection (EventSource built-in behavior).
        """
        return StreamingResponse(
            _generate_events(get_subscription(), request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    subscription: Subscription,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Yield SSE-formatted snapshots until the client disconnects.

    A status change (e.g. open -> reconnecting) is sent even when no price
    moved.
    """
    yield "retry: 1000\n\n"

    last_seen: tuple[int, str] | None = None
    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client connected: %s", client_ip)

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            current = (subscription.store.version, subscription.state.value)
            if current != last_seen:
                last_seen = current
                yield f"data: {json.dumps(price_payload(subscription))}\n\n"

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
