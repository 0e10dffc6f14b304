"""Airtable client for portfolio holdings."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import requests

from .exceptions import ConfigurationError, HoldingsAuthError, HoldingsFetchError

logger = logging.getLogger(__name__)

AIRTABLE_API_URL = "https://api.airtable.com/v0"
AIRTABLE_TABLE_NAME = "Crypto Holdings"


@dataclass(frozen=True, slots=True)
class PortfolioHolding:
    """One row of the holdings table. ``amount`` is None when unreadable."""

    currency: str
    amount: Decimal | None

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "amount": float(self.amount) if self.amount is not None else None,
        }


def _parse_amount(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


class AirtableHoldingsClient:
    """Reads the ``Crypto Holdings`` table (fields: Currency, Amount)."""

    def __init__(
        self,
        token: str,
        base_id: str,
        table_name: str = AIRTABLE_TABLE_NAME,
        api_url: str = AIRTABLE_API_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_id = base_id
        self._table_name = table_name
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {token}"})

    @classmethod
    def from_env(cls, **kwargs: Any) -> AirtableHoldingsClient:
        """Build from AIRTABLE_TOKEN / AIRTABLE_BASE_ID. Raises ConfigurationError."""
        token = os.environ.get("AIRTABLE_TOKEN", "").strip()
        base_id = os.environ.get("AIRTABLE_BASE_ID", "").strip()
        if not token:
            raise ConfigurationError("AIRTABLE_TOKEN")
        if not base_id:
            raise ConfigurationError("AIRTABLE_BASE_ID")
        return cls(token=token, base_id=base_id, **kwargs)

    def fetch_holdings(self) -> list[PortfolioHolding]:
        """All rows of the table, following Airtable's pagination offsets."""
        url = f"{self._api_url}/{self._base_id}/{self._table_name}"
        holdings: list[PortfolioHolding] = []
        params: dict[str, str] = {}

        while True:
            try:
                resp = self._session.get(url, params=params, timeout=self._timeout)
            except requests.RequestException as e:
                logger.error("Holdings request failed: %s", e)
                raise HoldingsFetchError(
                    "Failed to fetch portfolio holdings. Please check your Airtable configuration."
                ) from e

            if resp.status_code in (401, 403):
                logger.error("Airtable rejected credentials (HTTP %d)", resp.status_code)
                raise HoldingsAuthError(
                    "Failed to authorize with Airtable. Please check your AIRTABLE_TOKEN and AIRTABLE_BASE_ID."
                )
            try:
                resp.raise_for_status()
                body = resp.json()
                records = body["records"]
            except (requests.RequestException, ValueError, KeyError, TypeError) as e:
                logger.error("Holdings response unusable: %s", e)
                raise HoldingsFetchError(
                    "Failed to fetch portfolio holdings. Please check your Airtable configuration."
                ) from e

            for record in records:
                fields = record.get("fields", {}) if isinstance(record, dict) else None
                if not isinstance(fields, dict):
                    logger.error("Holdings record has unexpected shape: %.100r", record)
                    raise HoldingsFetchError(
                        "Failed to fetch portfolio holdings. Please check your Airtable configuration."
                    )
                currency = fields.get("Currency")
                if not currency:
                    logger.warning("Skipping holdings row %s without a currency", record.get("id"))
                    continue
                holdings.append(
                    PortfolioHolding(currency=str(currency).upper(), amount=_parse_amount(fields.get("Amount")))
                )

            offset = body.get("offset")
            if not offset:
                break
            params = {"offset": offset}

        logger.info("Fetched %d portfolio holdings", len(holdings))
        return holdings

    async def get_portfolio_holdings(self) -> list[PortfolioHolding]:
        # requests is synchronous; keep it off the event loop
        return await asyncio.to_thread(self.fetch_holdings)
