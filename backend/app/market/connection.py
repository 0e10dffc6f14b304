"""Connection manager for the Binance trade stream."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from .interface import Connector, FeedSocket
from .models import (
    ConnectionState,
    ParseError,
    StreamError,
    TradeEvent,
    TransportClosed,
    TransportError,
)

logger = logging.getLogger(__name__)

BINANCE_WS_URL = "wss://stream.binance.com:9443/ws"
TRADE_CHANNEL_SUFFIX = "@trade"

# Longest slice of a bad frame kept on a ParseError
_PAYLOAD_PREVIEW = 200


async def websocket_connector(url: str) -> FeedSocket:
    """Default connector: a real websocket with keepalive pings."""
    return await websockets.connect(url, ping_interval=20)


class StreamConnection:
    """One trade-stream connection and its lifecycle.

    State machine:
        CONNECTING -> OPEN -> (CLOSED | FAILED)
        CONNECTING/OPEN -> RECONNECTING -> CONNECTING   (while retries remain)

    CLOSED is reached only through dispose(); FAILED once retries are
    exhausted. Both are terminal. Transport failures and closes are reported
    through on_error as TransportError / TransportClosed before any retry.
    The retry counter resets once a trade arrives on a new transport, so a
    server that accepts and then drops the subscription still reaches FAILED.

    Every callback is skipped once dispose() has been called, so no event
    is delivered after the caller tore the subscription down.
    """

    def __init__(
        self,
        symbols: Iterable[str],
        *,
        url: str = BINANCE_WS_URL,
        connector: Connector | None = None,
        open_timeout: float = 10.0,
        max_retries: int = 5,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
        request_id: int = 1,
    ) -> None:
        self._symbols = [s.upper().strip() for s in symbols]
        if not self._symbols:
            raise ValueError("StreamConnection needs at least one symbol")
        self._url = url
        self._connector: Connector = connector or websocket_connector
        self._open_timeout = open_timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._request_id = request_id

        self._state = ConnectionState.CONNECTING
        self._failure_reason: str | None = None
        self._disposed = False
        self._attempt = 0
        self._task: asyncio.Task | None = None
        self.parse_errors = 0

        self._on_open: Callable[[], Any] | None = None
        self._on_message: Callable[[TradeEvent], Any] | None = None
        self._on_error: Callable[[StreamError], Any] | None = None
        self._on_state_change: Callable[[ConnectionState], Any] | None = None

    # --- Public API ---

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def failure_reason(self) -> str | None:
        """Why the connection reached FAILED, else None."""
        return self._failure_reason

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe_message(self) -> dict:
        """Control message sent once per established transport."""
        return {
            "method": "SUBSCRIBE",
            "params": [f"{symbol.lower()}{TRADE_CHANNEL_SUFFIX}" for symbol in self._symbols],
            "id": self._request_id,
        }

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (0-based)."""
        return min(self._backoff_max, self._backoff_base * 2**attempt)

    def start(
        self,
        on_open: Callable[[], Any],
        on_message: Callable[[TradeEvent], Any],
        on_error: Callable[[StreamError], Any],
        on_state_change: Callable[[ConnectionState], Any] | None = None,
    ) -> None:
        """Begin connecting in a background task on the running loop.

        on_open fires after the subscription message has been sent, not on
        the bare transport handshake.
        """
        if self._task is not None:
            raise RuntimeError("StreamConnection.start() called twice")
        if self._disposed:
            return
        self._on_open = on_open
        self._on_message = on_message
        self._on_error = on_error
        self._on_state_change = on_state_change
        self._task = asyncio.create_task(self._run(), name="trade-stream")
        logger.info("Trade stream starting: %s via %s", ", ".join(self._symbols), self._url)

    def dispose(self) -> None:
        """Close the transport and stop. Safe to call multiple times."""
        if self._disposed:
            return
        self._disposed = True
        if not self._state.terminal:
            self._state = ConnectionState.CLOSED
        if self._task and not self._task.done():
            self._task.cancel()
        logger.info("Trade stream disposed")

    async def aclose(self) -> None:
        """dispose() and wait for the background task to finish."""
        self.dispose()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    # --- Internal ---

    async def _run(self) -> None:
        """Connect, stream, and retry until disposed or out of retries."""
        while True:
            error = await self._connect_once()
            if self._disposed:
                return
            self._notify(self._on_error, error)

            if self._attempt >= self._max_retries:
                self._failure_reason = error.message
                self._set_state(ConnectionState.FAILED)
                logger.error(
                    "Trade stream failed after %d retries: %s",
                    self._attempt,
                    error.message,
                )
                return

            delay = self.backoff_delay(self._attempt)
            self._attempt += 1
            self._set_state(ConnectionState.RECONNECTING)
            logger.warning(
                "%s; reconnecting in %.1fs (retry %d/%d)",
                error.message,
                delay,
                self._attempt,
                self._max_retries,
            )
            await asyncio.sleep(delay)

    async def _connect_once(self) -> StreamError:
        """Run one transport from connect to close. Returns why it ended."""
        self._set_state(ConnectionState.CONNECTING)
        try:
            socket = await asyncio.wait_for(self._connector(self._url), timeout=self._open_timeout)
        except asyncio.TimeoutError:
            return TransportError(f"timed out after {self._open_timeout:.1f}s connecting to {self._url}")
        except (OSError, WebSocketException) as e:
            return TransportError(str(e) or type(e).__name__)
        except Exception as e:
            logger.exception("Unexpected error opening trade stream")
            return TransportError(f"{type(e).__name__}: {e}")

        try:
            await socket.send(json.dumps(self.subscribe_message()))
            self._set_state(ConnectionState.OPEN)
            logger.info("Trade stream subscribed: %s", ", ".join(self.subscribe_message()["params"]))
            self._notify(self._on_open)

            async for frame in socket:
                if self._disposed:
                    break
                # Only a delivered trade proves the subscription is live
                if self._handle_frame(frame) and self._attempt:
                    logger.info("Trade stream healthy again; retry budget reset")
                    self._attempt = 0

            return TransportClosed(code=socket.close_code, reason=socket.close_reason or "")
        except ConnectionClosed as e:
            close = e.rcvd
            if close is None:
                return TransportClosed()
            return TransportClosed(code=close.code, reason=close.reason)
        except (OSError, WebSocketException) as e:
            return TransportError(str(e) or type(e).__name__)
        except Exception as e:
            logger.exception("Unexpected error on trade stream")
            return TransportError(f"{type(e).__name__}: {e}")
        finally:
            try:
                await socket.close()
            except Exception as e:
                logger.warning("Error closing trade stream socket: %s", e)

    def _handle_frame(self, frame: str | bytes) -> bool:
        """Decode one inbound frame. Returns True if a trade was dispatched."""
        try:
            data = json.loads(frame)
        except ValueError as e:
            self._report_parse_error(f"invalid JSON ({e})", frame)
            return False

        # Subscription acks ({"result": null, "id": 1}) and other channels
        if not isinstance(data, dict) or data.get("e") != "trade":
            logger.debug("Ignoring non-trade frame: %.100s", frame)
            return False

        try:
            event = TradeEvent.from_message(data)
        except ValueError as e:
            self._report_parse_error(str(e), frame)
            return False
        self._notify(self._on_message, event)
        return True

    def _report_parse_error(self, reason: str, frame: str | bytes) -> None:
        if isinstance(frame, bytes):
            frame = frame.decode("utf-8", errors="replace")
        self.parse_errors += 1
        logger.warning("Dropping malformed frame (%d so far): %s", self.parse_errors, reason)
        self._notify(self._on_error, ParseError(reason=reason, payload=frame[:_PAYLOAD_PREVIEW]))

    def _set_state(self, state: ConnectionState) -> None:
        if self._disposed or self._state.terminal or state == self._state:
            return
        self._state = state
        self._notify(self._on_state_change, state)

    def _notify(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        """Invoke a caller callback unless disposed. Callback errors are logged."""
        if self._disposed or callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Trade stream callback %r failed", callback)
