"""Fixtures for market data tests.

Provides an in-memory stand-in for the trade-stream websocket so the
connection manager and subscription facade can be driven frame by frame
without network access.
"""

import asyncio
import json

import pytest

_CLOSE = object()


class FakeSocket:
    """Scriptable FeedSocket: tests push frames, closes and failures."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.close_code: int | None = None
        self.close_reason: str | None = None
        # Raised by close() when set, like a transport that errors on teardown
        self.close_error: BaseException | None = None
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(message)

    def push(self, frame) -> None:
        """Queue a raw frame (dicts are JSON-encoded)."""
        self._inbox.put_nowait(json.dumps(frame) if isinstance(frame, dict) else frame)

    def push_trade(self, symbol: str, price: str, trade_time_ms: int | None = None) -> None:
        frame = {"e": "trade", "E": 1707580800000, "s": symbol, "p": price, "q": "0.01"}
        if trade_time_ms is not None:
            frame["T"] = trade_time_ms
        self.push(frame)

    def close_remotely(self, code: int = 1000, reason: str = "") -> None:
        """End iteration normally, as a clean close from the server does."""
        self.close_code = code
        self.close_reason = reason
        self._inbox.put_nowait(_CLOSE)

    def fail(self, exc: BaseException) -> None:
        """Make the next read raise ``exc``."""
        self._inbox.put_nowait(exc)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        item = await self._inbox.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeConnector:
    """Connector returning scripted outcomes: FakeSocket instances or exceptions.

    Once the script runs out, every call returns a fresh idle FakeSocket.
    """

    def __init__(self, *outcomes) -> None:
        self._outcomes = list(outcomes)
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []

    async def __call__(self, url: str) -> FakeSocket:
        self.urls.append(url)
        outcome = self._outcomes.pop(0) if self._outcomes else FakeSocket()
        if isinstance(outcome, BaseException):
            raise outcome
        self.sockets.append(outcome)
        return outcome

    @property
    def calls(self) -> int:
        return len(self.urls)


@pytest.fixture
def make_socket():
    """Factory for FakeSocket instances."""
    return FakeSocket


@pytest.fixture
def make_connector():
    """Factory for FakeConnector instances."""
    return FakeConnector


@pytest.fixture
def eventually():
    """Await until a predicate holds (or fail after ``timeout`` seconds)."""

    async def _eventually(predicate, timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)

    return _eventually
