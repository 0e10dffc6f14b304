"""Integration tests for the simulated trade feed."""

import json

import pytest

from app.market.currencies import CurrencyCode
from app.market.models import ConnectionState
from app.market.simulator import SimulatedFeedSocket, simulated_connector
from app.market.subscription import subscribe


@pytest.mark.asyncio
class TestSimulatedFeedSocket:
    """The simulated socket speaks the trade-stream protocol."""

    async def test_subscribe_is_acknowledged(self):
        """SUBSCRIBE gets a {result: null, id} ack before any trade."""
        socket = SimulatedFeedSocket(update_interval=0.01)
        await socket.send(json.dumps({"method": "SUBSCRIBE", "params": ["btcusdt@trade"], "id": 7}))

        frames = socket.__aiter__()
        assert json.loads(await frames.__anext__()) == {"result": None, "id": 7}
        await socket.close()

    async def test_emits_trade_frames(self):
        """Trade frames carry e, s, p (text) and T."""
        socket = SimulatedFeedSocket(update_interval=0.01)
        await socket.send(json.dumps({"method": "SUBSCRIBE", "params": ["ethusdt@trade"], "id": 1}))

        frames = socket.__aiter__()
        await frames.__anext__()  # ack
        trade = json.loads(await frames.__anext__())

        assert trade["e"] == "trade"
        assert trade["s"] == "ETHUSDT"
        assert isinstance(trade["p"], str)
        assert float(trade["p"]) > 0
        assert isinstance(trade["T"], int)
        await socket.close()

    async def test_close_ends_iteration(self):
        """After close() iteration stops with a normal close code."""
        socket = SimulatedFeedSocket(update_interval=0.01)
        await socket.close()
        await socket.close()

        frames = [frame async for frame in socket]
        assert frames == []
        assert socket.close_code == 1000

    async def test_connector_ignores_url(self):
        """The simulated connector returns a fresh socket for any URL."""
        socket = await simulated_connector("wss://example.invalid/ws", update_interval=0.01)
        assert isinstance(socket, SimulatedFeedSocket)
        assert socket.simulator is None


@pytest.mark.asyncio
class TestSimulatedSubscription:
    """The full pipeline runs against the simulator."""

    async def test_prices_update_over_time(self, eventually):
        """BTC and ETH receive prices; USDT keeps its initial value."""
        updates = []

        async def connector(url):
            return await simulated_connector(url, update_interval=0.01)

        sub = subscribe(
            {"BTC", "ETH", "USDT"},
            on_price_update=lambda currency, price: updates.append(currency),
            on_connected=lambda: None,
            on_error=lambda error: None,
            connector=connector,
        )

        await eventually(lambda: {CurrencyCode.BTC, CurrencyCode.ETH} <= set(updates))
        assert sub.state is ConnectionState.OPEN
        assert CurrencyCode.USDT not in updates
        snapshot = sub.read()
        assert snapshot.current[CurrencyCode.BTC] > 0
        assert snapshot.current[CurrencyCode.USDT] == 1

        await sub.wait_closed()
        assert sub.state is ConnectionState.CLOSED
