"""Tests for PriceStore."""

from decimal import Decimal

import pytest

from app.market.cache import PriceStore
from app.market.currencies import CurrencyCode


class TestPriceStore:
    """Unit tests for the price reconciliation store."""

    def test_initial_snapshot(self):
        """Untouched currencies hold their initial value in both tables."""
        snapshot = PriceStore().read()
        assert snapshot.current == {CurrencyCode.BTC: 0, CurrencyCode.ETH: 0, CurrencyCode.USDT: 1}
        assert snapshot.previous == snapshot.current
        assert snapshot.version == 0

    def test_apply_returns_update(self):
        """apply() reports the new and previous price."""
        store = PriceStore()
        update = store.apply(CurrencyCode.BTC, Decimal("50000"))
        assert update.currency is CurrencyCode.BTC
        assert update.price == Decimal("50000")
        assert update.previous_price == Decimal("0")

    def test_previous_lags_by_one(self):
        """After p1, p2, p3: current == p3 and previous == p2."""
        store = PriceStore()
        for price in ("100", "200", "300"):
            store.apply("ETH", Decimal(price))

        snapshot = store.read()
        assert snapshot.current[CurrencyCode.ETH] == Decimal("300")
        assert snapshot.previous[CurrencyCode.ETH] == Decimal("200")

    def test_currencies_are_independent(self):
        """Updating one currency leaves the others' pair untouched."""
        store = PriceStore()
        store.apply("BTC", Decimal("50000"))
        store.apply("ETH", Decimal("3000"))
        store.apply("BTC", Decimal("51000"))

        snapshot = store.read()
        assert snapshot.current[CurrencyCode.BTC] == Decimal("51000")
        assert snapshot.previous[CurrencyCode.BTC] == Decimal("50000")
        assert snapshot.current[CurrencyCode.ETH] == Decimal("3000")
        assert snapshot.previous[CurrencyCode.ETH] == Decimal("0")
        assert snapshot.current[CurrencyCode.USDT] == Decimal("1")

    def test_snapshot_is_not_live(self):
        """A snapshot taken earlier does not change after later updates."""
        store = PriceStore()
        before = store.read()
        store.apply("BTC", Decimal("50000"))
        assert before.current[CurrencyCode.BTC] == 0
        assert before.version == 0

    def test_snapshot_is_read_only(self):
        """Snapshot mappings cannot be mutated."""
        snapshot = PriceStore().read()
        with pytest.raises(TypeError):
            snapshot.current[CurrencyCode.BTC] = Decimal("1")

    def test_version_increments(self):
        """Version counter increments on every apply."""
        store = PriceStore()
        v0 = store.version
        store.apply("BTC", Decimal("1"))
        assert store.version == v0 + 1
        store.apply("BTC", Decimal("2"))
        assert store.version == v0 + 2

    def test_get(self):
        """get() returns None until a currency receives a trade."""
        store = PriceStore()
        assert store.get("BTC") is None
        store.apply("BTC", Decimal("50000"), timestamp=1234567890.0)
        update = store.get("BTC")
        assert update is not None
        assert update.price == Decimal("50000")
        assert update.timestamp == 1234567890.0

    def test_get_price_includes_initial(self):
        """get_price() falls back to the initial value."""
        store = PriceStore()
        assert store.get_price("USDT") == Decimal("1")
        store.apply("ETH", Decimal("3000"))
        assert store.get_price(CurrencyCode.ETH) == Decimal("3000")

    def test_len_and_contains(self):
        """len() and ``in`` count currencies that have traded."""
        store = PriceStore()
        assert len(store) == 0
        assert "BTC" not in store
        store.apply("BTC", Decimal("1"))
        assert len(store) == 1
        assert CurrencyCode.BTC in store

    def test_unknown_currency_rejected(self):
        """Only the tracked currencies can be applied."""
        with pytest.raises(ValueError):
            PriceStore().apply("DOGE", Decimal("1"))

    def test_custom_initial(self):
        """Initial values can be overridden per currency."""
        store = PriceStore(initial={"BTC": Decimal("60000")})
        assert store.read().previous[CurrencyCode.BTC] == Decimal("60000")
        assert store.read().current[CurrencyCode.ETH] == 0

    def test_zero_timestamp_kept(self):
        """An explicit epoch timestamp is recorded as given."""
        store = PriceStore()
        assert store.apply("BTC", Decimal("1"), timestamp=0.0).timestamp == 0.0
        assert store.get("BTC").timestamp == 0.0
