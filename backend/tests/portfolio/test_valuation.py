"""Tests for valuation helpers."""

from decimal import Decimal

from app.market.currencies import CurrencyCode
from app.portfolio.valuation import allocation, calculate_total_value, convert_currency, parse_amount

PRICES = {
    CurrencyCode.BTC: Decimal("50000"),
    CurrencyCode.ETH: Decimal("3000"),
    CurrencyCode.USDT: Decimal("1"),
}


class TestValuation:
    """Unit tests for portfolio math."""

    def test_total_value(self):
        """Sum of amount * price."""
        amounts = {"BTC": Decimal("0.5"), "ETH": Decimal("2"), "USDT": Decimal("1000")}
        assert calculate_total_value(amounts, PRICES) == Decimal("32000")

    def test_total_value_missing_price(self):
        """Currencies without a price contribute 0."""
        assert calculate_total_value({"DOGE": Decimal("100")}, PRICES) == 0

    def test_total_value_empty(self):
        """No amounts means a zero total."""
        assert calculate_total_value({}, PRICES) == 0

    def test_allocation(self):
        """Each currency gets its value and share of the total."""
        amounts = {CurrencyCode.BTC: Decimal("0.5"), CurrencyCode.ETH: Decimal("2"), CurrencyCode.USDT: Decimal("1000")}
        result = {item.currency: item for item in allocation(amounts, PRICES)}

        assert result["BTC"].value == Decimal("25000")
        assert result["BTC"].percentage == 78.125
        assert result["ETH"].percentage == 18.75
        assert result["USDT"].percentage == 3.125

    def test_allocation_zero_total(self):
        """With nothing held every share is 0%."""
        amounts = {"BTC": Decimal("0"), "ETH": Decimal("0")}
        assert [item.percentage for item in allocation(amounts, PRICES)] == [0.0, 0.0]

    def test_allocation_to_dict(self):
        """Allocations serialize to plain numbers."""
        (item,) = allocation({"ETH": Decimal("1")}, PRICES)
        assert item.to_dict() == {"currency": "ETH", "value": 3000.0, "percentage": 100.0}

    def test_convert_currency(self):
        """Conversion goes through USD prices."""
        assert convert_currency(Decimal("1"), "BTC", "ETH", PRICES) == Decimal("50000") / Decimal("3000")

    def test_convert_unknown_price_treated_as_one(self):
        """Unknown or zero prices count as 1."""
        assert convert_currency(Decimal("2"), "DOGE", "USDT", PRICES) == Decimal("2")
        assert convert_currency(Decimal("2"), "BTC", "ETH", {"BTC": Decimal("0"), "ETH": Decimal("0")}) == 2

    def test_parse_amount(self):
        """User input parses to Decimal; junk becomes 0."""
        assert parse_amount("1.25") == Decimal("1.25")
        assert parse_amount(" 3 ") == Decimal("3")
        assert parse_amount("") == 0
        assert parse_amount("abc") == 0
        assert parse_amount("NaN") == 0
        assert parse_amount(None) == 0
