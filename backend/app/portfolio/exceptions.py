"""Exceptions for the holdings store."""


class HoldingsError(Exception):
    """Base exception for holdings store errors."""


class ConfigurationError(HoldingsError):
    """Raised when a required credential is missing. Fatal, never retried."""

    def __init__(self, variable: str):
        super().__init__(
            f"{variable} is not set. Set AIRTABLE_TOKEN and AIRTABLE_BASE_ID "
            "in the environment to load portfolio holdings."
        )
        self.variable = variable


class HoldingsAuthError(HoldingsError):
    """Raised when Airtable rejects the credentials."""


class HoldingsFetchError(HoldingsError):
    """Raised when holdings cannot be fetched (network, HTTP or payload error)."""
