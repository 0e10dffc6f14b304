"""Live crypto market data.

Public API:
    CurrencyCode          - BTC / ETH / USDT
    map_wire_symbol       - 'BTCUSDT' -> BTC (None for ignored symbols)
    PriceStore            - Thread-safe current/previous price table
    PriceSnapshot         - Immutable read of the price table
    StreamConnection      - Trade-stream connection state machine
    subscribe             - Facade wiring stream -> mapper -> store -> callbacks
    create_connector      - Factory that selects Binance or the simulator
    HistoricalPriceClient - 30-day price history from CoinGecko
    create_stream_router  - FastAPI router factory for SSE endpoint
"""

from .cache import PriceStore
from .connection import BINANCE_WS_URL, StreamConnection
from .currencies import INITIAL_PRICES, QUOTE_CURRENCY, CurrencyCode, map_wire_symbol, to_wire_symbol
from .factory import create_connector, stream_url
from .history import HistoricalPrice, HistoricalPriceClient
from .models import (
    ConnectionState,
    ParseError,
    PriceSnapshot,
    PriceUpdate,
    StreamError,
    TradeEvent,
    TransportClosed,
    TransportError,
)
from .stream import create_stream_router, price_payload
from .subscription import Subscription, subscribe

__all__ = [
    "BINANCE_WS_URL",
    "INITIAL_PRICES",
    "QUOTE_CURRENCY",
    "CurrencyCode",
    "map_wire_symbol",
    "to_wire_symbol",
    "PriceStore",
    "PriceSnapshot",
    "PriceUpdate",
    "TradeEvent",
    "ConnectionState",
    "StreamError",
    "TransportError",
    "TransportClosed",
    "ParseError",
    "StreamConnection",
    "Subscription",
    "subscribe",
    "create_connector",
    "stream_url",
    "HistoricalPrice",
    "HistoricalPriceClient",
    "create_stream_router",
    "price_payload",
]
