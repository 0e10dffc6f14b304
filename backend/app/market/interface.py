"""Transport contract for the trade stream."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol


class FeedSocket(Protocol):
    """The part of a websocket client connection the stream relies on.

    ``websockets`` client connections satisfy it, and so does the simulated
    feed. Iteration yields raw text frames; it stops when the peer closes
    the connection normally and raises ``ConnectionClosed`` otherwise.

    Lifecycle:
        socket = await connector(url)
        await socket.send('{"method": "SUBSCRIBE", ...}')
        async for frame in socket:
            ...
        await socket.close()
    """

    close_code: int | None
    close_reason: str | None

    async def send(self, message: str) -> None:
        """Send one text frame."""

    def __aiter__(self) -> AsyncIterator[str]:
        """Iterate inbound frames until the connection closes."""

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""


# Opens a socket to the given URL. Must raise OSError, TimeoutError or a
# websockets exception on failure.
Connector = Callable[[str], Awaitable[FeedSocket]]
