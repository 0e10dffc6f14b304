"""Thread-safe price reconciliation store."""

from __future__ import annotations

import time
from collections.abc import Mapping
from decimal import Decimal
from threading import Lock
from types import MappingProxyType

from .currencies import INITIAL_PRICES, CurrencyCode
from .models import PriceSnapshot, PriceUpdate


class PriceStore:
    """Current and previous price for each tracked currency.

    Writer: the subscription's message dispatch path (one at a time).
    Readers: API routes, SSE stream, valuation. They only ever receive
    snapshots, never the live tables.
    """

    def __init__(self, initial: Mapping[CurrencyCode, Decimal] | None = None) -> None:
        seed = dict(INITIAL_PRICES)
        if initial:
            seed.update({CurrencyCode(c): Decimal(p) for c, p in initial.items()})
        self._current: dict[CurrencyCode, Decimal] = dict(seed)
        self._previous: dict[CurrencyCode, Decimal] = dict(seed)
        self._timestamps: dict[CurrencyCode, float] = {}
        self._lock = Lock()
        self._version: int = 0  # Monotonically increasing; bumped on every apply

    def apply(
        self,
        currency: CurrencyCode | str,
        price: Decimal,
        timestamp: float | None = None,
    ) -> PriceUpdate:
        """Shift current into previous, then record the new price."""
        currency = CurrencyCode(currency)
        with self._lock:
            ts = time.time() if timestamp is None else timestamp
            self._previous[currency] = self._current[currency]
            self._current[currency] = price
            self._timestamps[currency] = ts
            self._version += 1
            return PriceUpdate(
                currency=currency,
                price=price,
                previous_price=self._previous[currency],
                timestamp=ts,
            )

    def read(self) -> PriceSnapshot:
        """Consistent copy of both tables."""
        with self._lock:
            return PriceSnapshot(
                current=MappingProxyType(dict(self._current)),
                previous=MappingProxyType(dict(self._previous)),
                version=self._version,
            )

    def get(self, currency: CurrencyCode | str) -> PriceUpdate | None:
        """Latest state for one currency, or None if it never received a trade."""
        currency = CurrencyCode(currency)
        with self._lock:
            if currency not in self._timestamps:
                return None
            return PriceUpdate(
                currency=currency,
                price=self._current[currency],
                previous_price=self._previous[currency],
                timestamp=self._timestamps[currency],
            )

    def get_price(self, currency: CurrencyCode | str) -> Decimal:
        """Convenience: current price, including the initial value."""
        with self._lock:
            return self._current[CurrencyCode(currency)]

    @property
    def version(self) -> int:
        """Current version counter. Useful for SSE change detection."""
        return self._version

    def __len__(self) -> int:
        """Number of currencies that have received at least one trade."""
        with self._lock:
            return len(self._timestamps)

    def __contains__(self, currency: object) -> bool:
        with self._lock:
            return currency in self._timestamps
