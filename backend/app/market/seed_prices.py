"""Seed prices and per-symbol parameters for the simulated trade feed."""

# Rough starting prices, keyed by wire symbol
SEED_PRICES: dict[str, float] = {
    "BTCUSDT": 65000.00,
    "ETHUSDT": 3200.00,
    "USDTUSDT": 1.00,
}

# Per-symbol GBM parameters
# sigma: annualized volatility (higher = more price movement)
# mu: annualized drift / expected return
SYMBOL_PARAMS: dict[str, dict[str, float]] = {
    "BTCUSDT": {"sigma": 0.55, "mu": 0.10},
    "ETHUSDT": {"sigma": 0.70, "mu": 0.10},
    "USDTUSDT": {"sigma": 0.002, "mu": 0.0},  # Pegged
}

# Default parameters for symbols not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.80, "mu": 0.05}

STABLECOINS: set[str] = {"USDTUSDT"}

# Correlation coefficients
MAJORS_CORR = 0.8  # BTC and ETH move together
STABLE_CORR = 0.0  # Pegged coins ignore the market
DEFAULT_CORR = 0.5  # Unknown symbols
