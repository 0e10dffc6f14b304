"""FastAPI application for the crypto dashboard."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Query, Request

from app.market import (
    CurrencyCode,
    HistoricalPriceClient,
    Subscription,
    create_connector,
    create_stream_router,
    price_payload,
    stream_url,
    subscribe,
)
from app.market.interface import Connector
from app.portfolio import (
    AirtableHoldingsClient,
    ConfigurationError,
    HoldingsError,
    allocation,
    calculate_total_value,
    parse_amount,
)

logger = logging.getLogger(__name__)

# Currencies streamed live. USDT is pegged and keeps its initial price of 1.
STREAMED_CURRENCIES = (CurrencyCode.BTC, CurrencyCode.ETH)


def create_app(
    connector: Connector | None = None,
    history_client: HistoricalPriceClient | None = None,
    holdings_client_factory: Callable[[], AirtableHoldingsClient] = AirtableHoldingsClient.from_env,
    **stream_options,
) -> FastAPI:
    """Build the dashboard API.

    The lifespan opens one price subscription and disposes it on shutdown.
    Collaborators are injectable so tests can run without network access.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        subscription = subscribe(
            STREAMED_CURRENCIES,
            on_price_update=lambda currency, price: logger.debug("%s -> %s", currency, price),
            on_connected=lambda: logger.info("Price stream connected"),
            on_error=lambda error: logger.warning("Price stream: %s", error.message),
            connector=connector or create_connector(),
            url=stream_url(),
            **stream_options,
        )
        app.state.subscription = subscription
        try:
            yield
        finally:
            await subscription.wait_closed()

    app = FastAPI(title="Crypto Dashboard", lifespan=lifespan)
    app.state.history_client = history_client if history_client is not None else HistoricalPriceClient()

    def get_subscription() -> Subscription:
        return app.state.subscription

    app.include_router(create_stream_router(get_subscription))

    @app.get("/api/prices")
    async def get_prices() -> dict:
        """Current/previous prices and stream status (connecting, open, failed...)."""
        return price_payload(get_subscription())

    @app.get("/api/history/{currency}")
    async def get_history(currency: CurrencyCode, request: Request) -> dict:
        """30 daily prices; an empty list when the upstream fetch failed."""
        client: HistoricalPriceClient = request.app.state.history_client
        history = await client.get_historical_prices(currency)
        return {"currency": currency.value, "prices": [point.to_dict() for point in history]}

    @app.get("/api/holdings")
    async def get_holdings() -> dict:
        """Holdings from Airtable. Failures only affect this endpoint."""
        try:
            client = holdings_client_factory()
        except ConfigurationError as e:
            logger.error("Holdings disabled: %s", e)
            raise HTTPException(status_code=503, detail=str(e)) from e
        try:
            holdings = await client.get_portfolio_holdings()
        except HoldingsError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        return {"holdings": [holding.to_dict() for holding in holdings]}

    @app.get("/api/valuation")
    async def get_valuation(
        btc: str | None = Query(default=None, alias="BTC"),
        eth: str | None = Query(default=None, alias="ETH"),
        usdt: str | None = Query(default=None, alias="USDT"),
    ) -> dict:
        """Total USD value and allocation for user-entered amounts."""
        amounts: dict[CurrencyCode, Decimal] = {
            CurrencyCode.BTC: parse_amount(btc),
            CurrencyCode.ETH: parse_amount(eth),
            CurrencyCode.USDT: parse_amount(usdt),
        }
        prices = get_subscription().read().current
        return {
            "total_value": float(calculate_total_value(amounts, prices)),
            "allocation": [item.to_dict() for item in allocation(amounts, prices)],
        }

    return app


def run() -> None:
    """Serve the dashboard API with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(),
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    run()
