"""GBM-based simulated trade feed.

Speaks the same wire protocol as the Binance stream, so the connection
manager and everything downstream run unchanged without network access.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from collections import deque
from collections.abc import AsyncIterator

import numpy as np
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from .seed_prices import (
    DEFAULT_CORR,
    DEFAULT_PARAMS,
    MAJORS_CORR,
    SEED_PRICES,
    STABLE_CORR,
    STABLECOINS,
    SYMBOL_PARAMS,
)

logger = logging.getLogger(__name__)


def correlation_matrix(symbols: list[str]) -> np.ndarray:
    """Pairwise correlations: majors move together, stablecoins move alone."""
    n = len(symbols)
    corr = np.eye(n)
    for i, j in zip(*np.triu_indices(n, k=1)):
        a, b = symbols[i], symbols[j]
        if a in STABLECOINS or b in STABLECOINS:
            rho = STABLE_CORR
        elif a in SYMBOL_PARAMS and b in SYMBOL_PARAMS:
            rho = MAJORS_CORR
        else:
            rho = DEFAULT_CORR
        corr[i, j] = corr[j, i] = rho
    return corr


class GBMSimulator:
    """Correlated geometric Brownian motion over a fixed set of wire symbols.

        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Z is drawn per step for all symbols at once and correlated through the
    Cholesky factor of correlation_matrix(). Crypto trades around the clock,
    so dt is a fraction of a 365 * 24h year. Non-stablecoins occasionally
    take a 1-4% jump; stablecoins never do.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600
    DEFAULT_DT = 0.5 / SECONDS_PER_YEAR

    def __init__(
        self,
        symbols: list[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._symbols = list(dict.fromkeys(s.upper() for s in symbols))
        self._event_prob = event_probability
        self._rng = rng if rng is not None else np.random.default_rng()

        params = [SYMBOL_PARAMS.get(s, DEFAULT_PARAMS) for s in self._symbols]
        sigma = np.array([p["sigma"] for p in params])
        mu = np.array([p["mu"] for p in params])
        self._drift = (mu - 0.5 * sigma**2) * dt
        self._vol = sigma * np.sqrt(dt)
        self._jumpable = np.array([s not in STABLECOINS for s in self._symbols], dtype=bool)
        self._prices = np.array(
            [SEED_PRICES.get(s) or self._rng.uniform(1.0, 500.0) for s in self._symbols],
            dtype=float,
        )
        self._cholesky = np.linalg.cholesky(correlation_matrix(self._symbols)) if len(self._symbols) > 1 else None

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    def prices(self) -> dict[str, float]:
        """Current unrounded price per symbol."""
        return dict(zip(self._symbols, self._prices.tolist()))

    def step(self) -> dict[str, float]:
        """Advance every symbol one tick. Returns {symbol: price rounded to cents}."""
        n = len(self._symbols)
        if n == 0:
            return {}

        z = self._rng.standard_normal(n)
        if self._cholesky is not None:
            z = self._cholesky @ z
        self._prices *= np.exp(self._drift + self._vol * z)

        jumps = self._jumpable & (self._rng.random(n) < self._event_prob)
        if jumps.any():
            k = int(jumps.sum())
            shocks = self._rng.uniform(0.01, 0.04, k) * self._rng.choice([-1.0, 1.0], k)
            self._prices[jumps] *= 1 + shocks
            logger.debug("Simulated jump on %s", ", ".join(np.array(self._symbols)[jumps]))

        return {symbol: round(price, 2) for symbol, price in zip(self._symbols, self._prices.tolist())}


class SimulatedFeedSocket:
    """In-process stand-in for a trade-stream websocket.

    Answers SUBSCRIBE requests with an ack, then emits one Binance-style
    trade frame per subscribed symbol every ``update_interval`` seconds.
    """

    def __init__(
        self,
        update_interval: float = 0.5,
        event_probability: float = 0.001,
    ) -> None:
        self._interval = update_interval
        self._event_prob = event_probability
        self._sim: GBMSimulator | None = None
        self._pending: deque[str] = deque()
        self._trade_id = 0
        self._closed = False
        self.close_code: int | None = None
        self.close_reason: str | None = None

    @property
    def simulator(self) -> GBMSimulator | None:
        return self._sim

    async def send(self, message: str) -> None:
        if self._closed:
            raise ConnectionClosedOK(Close(1000, ""), Close(1000, ""))
        request = json.loads(message)
        if request.get("method") == "SUBSCRIBE":
            symbols = [param.split("@", 1)[0].upper() for param in request.get("params", [])]
            if self._sim is not None:
                symbols = self._sim.symbols + symbols
            self._sim = GBMSimulator(symbols, event_probability=self._event_prob)
            logger.info("Simulated feed: subscribed %s", ", ".join(symbols))
        self._pending.append(json.dumps({"result": None, "id": request.get("id")}))

    def __aiter__(self) -> AsyncIterator[str]:
        return self._frames()

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.close_code = 1000
            self.close_reason = ""

    async def _frames(self) -> AsyncIterator[str]:
        while not self._closed:
            while self._pending:
                yield self._pending.popleft()
            if self._sim is not None:
                for symbol, price in self._sim.step().items():
                    yield self._trade_frame(symbol, price)
            await asyncio.sleep(self._interval)

    def _trade_frame(self, symbol: str, price: float) -> str:
        self._trade_id += 1
        now_ms = int(time.time() * 1000)
        return json.dumps(
            {
                "e": "trade",
                "E": now_ms,
                "s": symbol,
                "t": self._trade_id,
                "p": f"{price:.8f}",
                "q": f"{random.uniform(0.001, 0.5):.8f}",
                "T": now_ms,
                "m": random.random() < 0.5,
            }
        )


async def simulated_connector(
    url: str,
    update_interval: float = 0.5,
    event_probability: float = 0.001,
) -> SimulatedFeedSocket:
    """Connector for the simulated feed. The URL is ignored."""
    logger.debug("Simulated feed standing in for %s", url)
    return SimulatedFeedSocket(update_interval=update_interval, event_probability=event_probability)
