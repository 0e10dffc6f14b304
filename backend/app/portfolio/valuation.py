"""Portfolio valuation helpers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class Allocation:
    """A currency's share of the portfolio."""

    currency: str
    value: Decimal
    percentage: float

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "value": float(self.value),
            "percentage": self.percentage,
        }


def parse_amount(text: str | None) -> Decimal:
    """User input to an amount. Anything unparseable counts as 0."""
    if text is None:
        return ZERO
    try:
        amount = Decimal(str(text).strip())
    except InvalidOperation:
        return ZERO
    return amount if amount.is_finite() else ZERO


def calculate_total_value(amounts: Mapping[str, Decimal], prices: Mapping[str, Decimal]) -> Decimal:
    """Sum of amount * price. Missing amounts or prices count as 0."""
    return sum(
        ((amount or ZERO) * prices.get(currency, ZERO) for currency, amount in amounts.items()),
        ZERO,
    )


def allocation(amounts: Mapping[str, Decimal], prices: Mapping[str, Decimal]) -> list[Allocation]:
    """Value and percentage of total for each currency in ``amounts``."""
    total = calculate_total_value(amounts, prices)
    result = []
    for currency, amount in amounts.items():
        value = (amount or ZERO) * prices.get(currency, ZERO)
        percentage = round(float(value / total * 100), 4) if total > 0 else 0.0
        result.append(Allocation(currency=str(currency), value=value, percentage=percentage))
    return result


def convert_currency(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    prices: Mapping[str, Decimal],
) -> Decimal:
    """Convert via USD. Unknown or zero prices are treated as 1."""
    from_price = prices.get(from_currency) or Decimal("1")
    to_price = prices.get(to_currency) or Decimal("1")
    return amount * from_price / to_price
