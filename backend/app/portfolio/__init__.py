"""Portfolio holdings and valuation.

Public API:
    AirtableHoldingsClient - Reads holdings rows from Airtable
    PortfolioHolding       - One holdings row
    ConfigurationError     - Missing holdings credentials
    calculate_total_value  - Sum of amount * price
    allocation             - Per-currency value and share of total
"""

from .exceptions import ConfigurationError, HoldingsAuthError, HoldingsError, HoldingsFetchError
from .holdings import AirtableHoldingsClient, PortfolioHolding
from .valuation import Allocation, allocation, calculate_total_value, convert_currency, parse_amount

__all__ = [
    "AirtableHoldingsClient",
    "PortfolioHolding",
    "HoldingsError",
    "ConfigurationError",
    "HoldingsAuthError",
    "HoldingsFetchError",
    "Allocation",
    "allocation",
    "calculate_total_value",
    "convert_currency",
    "parse_amount",
]
