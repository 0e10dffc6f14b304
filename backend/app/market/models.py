"""Data models for market data."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .currencies import CurrencyCode


def parse_price(text: Any) -> Decimal:
    """Parse a price transmitted as text. Raises ValueError if unusable."""
    try:
        price = Decimal(str(text).strip())
    except InvalidOperation:
        raise ValueError(f"price {text!r} is not a number") from None
    if not price.is_finite() or price <= 0:
        raise ValueError(f"price {text!r} is not a positive finite number")
    return price


def _direction(price: Decimal, previous: Decimal) -> str:
    if price > previous:
        return "up"
    elif price < previous:
        return "down"
    return "flat"


@dataclass(frozen=True, slots=True)
class TradeEvent:
    """One executed trade decoded from the stream."""

    symbol: str
    price: Decimal
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @classmethod
    def from_message(cls, data: Mapping[str, Any]) -> TradeEvent:
        """Build from a raw trade frame. Raises ValueError on a bad payload."""
        symbol = data.get("s")
        if not isinstance(symbol, str) or not symbol:
            raise ValueError(f"trade event has no symbol: {data.get('s')!r}")
        if "p" not in data:
            raise ValueError(f"trade event for {symbol} has no price")
        price = parse_price(data["p"])

        # Exchange trade times are Unix milliseconds
        trade_time = data.get("T")
        if isinstance(trade_time, (int, float)) and not isinstance(trade_time, bool):
            return cls(symbol=symbol, price=price, timestamp=trade_time / 1000.0)
        return cls(symbol=symbol, price=price)


@dataclass(frozen=True, slots=True)
class PriceUpdate:
    """Immutable view of a single currency's price after an update."""

    currency: CurrencyCode
    price: Decimal
    previous_price: Decimal
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @property
    def change(self) -> Decimal:
        """Absolute price change from previous update."""
        return self.price - self.previous_price

    @property
    def change_percent(self) -> float:
        """Percentage change from previous update."""
        if self.previous_price == 0:
            return 0.0
        return round(float((self.price - self.previous_price) / self.previous_price * 100), 4)

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat'."""
        return _direction(self.price, self.previous_price)

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "currency": self.currency.value,
            "price": float(self.price),
            "previous_price": float(self.previous_price),
            "timestamp": self.timestamp,
            "change": float(self.change),
            "change_percent": self.change_percent,
            "direction": self.direction,
        }


@dataclass(frozen=True, slots=True)
class PriceSnapshot:
    """Consistent point-in-time read of current and previous prices."""

    current: Mapping[CurrencyCode, Decimal]
    previous: Mapping[CurrencyCode, Decimal]
    version: int = 0

    def direction(self, currency: CurrencyCode | str) -> str:
        """Trend arrow for a currency: 'up', 'down', or 'flat'."""
        currency = CurrencyCode(currency)
        return _direction(self.current[currency], self.previous[currency])

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "prices": {
                currency.value: {
                    "price": float(price),
                    "previous_price": float(self.previous[currency]),
                    "direction": self.direction(currency),
                }
                for currency, price in self.current.items()
            },
        }


class ConnectionState(str, Enum):
    """Lifecycle of a stream connection. CLOSED and FAILED are terminal."""

    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ConnectionState.CLOSED, ConnectionState.FAILED)


@dataclass(frozen=True, slots=True)
class StreamError:
    """Base for errors reported through a subscription's error callback."""

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def message(self) -> str:
        return self.kind


@dataclass(frozen=True, slots=True)
class TransportError(StreamError):
    """The transport failed: refused, timed out, handshake or network error."""

    reason: str = ""

    @property
    def message(self) -> str:
        return f"Stream transport error: {self.reason}"


@dataclass(frozen=True, slots=True)
class TransportClosed(StreamError):
    """The remote end closed the stream."""

    code: int | None = None
    reason: str = ""

    @property
    def message(self) -> str:
        if self.code is None:
            return "Stream connection closed"
        detail = f"{self.code} {self.reason}".strip()
        return f"Stream connection closed ({detail})"


@dataclass(frozen=True, slots=True)
class ParseError(StreamError):
    """An inbound frame could not be decoded. The frame is dropped."""

    reason: str = ""
    payload: str = ""

    @property
    def message(self) -> str:
        return f"Malformed stream message: {self.reason}"
