"""Subscription facade: stream connection -> symbol mapper -> price store."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any

from .cache import PriceStore
from .connection import BINANCE_WS_URL, StreamConnection
from .currencies import CurrencyCode, map_wire_symbol, to_wire_symbol
from .interface import Connector
from .models import ConnectionState, PriceSnapshot, StreamError, TradeEvent

logger = logging.getLogger(__name__)

PriceCallback = Callable[[CurrencyCode, Decimal], Any]


class Subscription:
    """Handle for one live price subscription.

    Owns its StreamConnection and PriceStore. Calling the handle (or
    dispose()) tears the connection down; repeated calls do nothing.
    """

    def __init__(
        self,
        currencies: Iterable[CurrencyCode | str],
        on_price_update: PriceCallback,
        on_connected: Callable[[], Any],
        on_error: Callable[[StreamError], Any],
        *,
        on_state_change: Callable[[ConnectionState], Any] | None = None,
        store: PriceStore | None = None,
        connector: Connector | None = None,
        url: str = BINANCE_WS_URL,
        **options: Any,
    ) -> None:
        self._currencies = sorted({CurrencyCode(c) for c in currencies}, key=list(CurrencyCode).index)
        if not self._currencies:
            raise ValueError("subscribe() needs at least one currency")
        self._store = store if store is not None else PriceStore()
        self._on_price_update = on_price_update
        self._on_connected = on_connected
        self._on_error = on_error
        self._on_state_change = on_state_change
        self.last_error: StreamError | None = None
        self._connection = StreamConnection(
            [to_wire_symbol(c) for c in self._currencies],
            url=url,
            connector=connector,
            **options,
        )

    @property
    def currencies(self) -> list[CurrencyCode]:
        return list(self._currencies)

    @property
    def store(self) -> PriceStore:
        return self._store

    @property
    def connection(self) -> StreamConnection:
        return self._connection

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    def read(self) -> PriceSnapshot:
        """Immutable (current, previous) snapshot for rendering."""
        return self._store.read()

    def start(self) -> None:
        self._connection.start(
            on_open=self._on_connected,
            on_message=self._handle_trade,
            on_error=self._handle_error,
            on_state_change=self._on_state_change,
        )

    def dispose(self) -> None:
        self._connection.dispose()

    __call__ = dispose

    async def wait_closed(self) -> None:
        """Dispose and wait until the connection task has finished."""
        await self._connection.aclose()

    def _handle_trade(self, event: TradeEvent) -> None:
        currency = map_wire_symbol(event.symbol)
        if currency is None:
            logger.debug("Ignoring trade for %s", event.symbol)
            return
        update = self._store.apply(currency, event.price, timestamp=event.timestamp)
        self._on_price_update(update.currency, update.price)

    def _handle_error(self, error: StreamError) -> None:
        self.last_error = error
        self._on_error(error)


def subscribe(
    currencies: Iterable[CurrencyCode | str],
    on_price_update: PriceCallback,
    on_connected: Callable[[], Any],
    on_error: Callable[[StreamError], Any],
    **kwargs: Any,
) -> Subscription:
    """Open a live price subscription and return its handle.

    Must be called with an event loop running. Each call opens its own
    connection; callers keep at most one alive at a time.

    Usage:
        sub = subscribe({"BTC", "ETH"}, on_price, on_connected, on_error)
        snapshot = sub.read()
        ...
        sub()  # dispose
    """
    subscription = Subscription(currencies, on_price_update, on_connected, on_error, **kwargs)
    subscription.start()
    return subscription
