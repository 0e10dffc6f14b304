"""CoinGecko client for 30-day historical prices."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

import requests

from .currencies import CurrencyCode

logger = logging.getLogger(__name__)

COINGECKO_API_URL = "https://api.coingecko.com/api/v3"

COINGECKO_IDS: dict[CurrencyCode, str] = {
    CurrencyCode.BTC: "bitcoin",
    CurrencyCode.ETH: "ethereum",
    CurrencyCode.USDT: "tether",
}


@dataclass(frozen=True, slots=True)
class HistoricalPrice:
    """One daily close."""

    date: str  # ISO-8601, UTC
    price: Decimal

    def to_dict(self) -> dict:
        return {"date": self.date, "price": float(self.price)}


class HistoricalPriceClient:
    """Fetches daily USD prices from CoinGecko's market_chart endpoint.

    Any failure (network, HTTP status, unexpected body) is logged, counted
    in ``failures`` and returns an empty list. The chart simply renders an
    empty series.
    """

    def __init__(
        self,
        api_url: str = COINGECKO_API_URL,
        days: int = 30,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._days = days
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self.failures = 0

    def fetch(self, currency: CurrencyCode | str) -> list[HistoricalPrice]:
        """Synchronous fetch. Never raises for transport or payload problems."""
        currency = CurrencyCode(currency)
        url = f"{self._api_url}/coins/{COINGECKO_IDS[currency]}/market_chart"
        params = {"vs_currency": "usd", "days": self._days, "interval": "daily"}
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
            resp.raise_for_status()
            points = resp.json()["prices"]
            history = _parse_points(points)
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            self.failures += 1
            logger.error("Historical price fetch for %s failed (%d so far): %s", currency, self.failures, e)
            return []

        logger.debug("Fetched %d historical prices for %s", len(history), currency)
        return history

    async def get_historical_prices(self, currency: CurrencyCode | str) -> list[HistoricalPrice]:
        # requests is synchronous; keep it off the event loop
        return await asyncio.to_thread(self.fetch, currency)


def _parse_points(points: list) -> list[HistoricalPrice]:
    """[[timestamp_ms, price], ...] -> HistoricalPrice list, skipping bad rows."""
    history: list[HistoricalPrice] = []
    for point in points:
        try:
            timestamp_ms, price = point[0], point[1]
            date = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
            value = Decimal(str(price))
        except (TypeError, ValueError, IndexError, OverflowError, OSError, InvalidOperation):
            logger.warning("Skipping malformed history point: %r", point)
            continue
        if not value.is_finite():
            logger.warning("Skipping non-finite history price: %r", point)
            continue
        history.append(HistoricalPrice(date=date.isoformat(), price=value))
    return history
