"""Currency codes and exchange symbol mapping."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


class CurrencyCode(str, Enum):
    """The closed set of currencies the dashboard tracks."""

    BTC = "BTC"
    ETH = "ETH"
    USDT = "USDT"

    def __str__(self) -> str:
        return self.value


# Prices on the stream are quoted in USDT, treated as USD-pegged
QUOTE_CURRENCY = CurrencyCode.USDT

# Starting values before the first trade arrives
INITIAL_PRICES: dict[CurrencyCode, Decimal] = {
    CurrencyCode.BTC: Decimal("0"),
    CurrencyCode.ETH: Decimal("0"),
    CurrencyCode.USDT: Decimal("1"),
}


def to_wire_symbol(currency: CurrencyCode | str) -> str:
    """'BTC' -> 'BTCUSDT'."""
    return f"{CurrencyCode(currency).value}{QUOTE_CURRENCY.value}"


def map_wire_symbol(symbol: str) -> CurrencyCode | None:
    """Map an exchange symbol to its base currency.

    Returns None when the event must be ignored: the quote currency traded
    against itself ('USDTUSDT'), a symbol not quoted in USDT, or a base
    outside the tracked set.
    """
    symbol = symbol.upper().strip()
    suffix = QUOTE_CURRENCY.value
    if not symbol.endswith(suffix):
        return None

    base = symbol[: -len(suffix)]
    if base == suffix:
        return None
    try:
        return CurrencyCode(base)
    except ValueError:
        return None
