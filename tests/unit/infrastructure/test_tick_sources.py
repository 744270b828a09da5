"""
Unit tests for the synthetic tick source and the async tick feed.

Tests:
- Seeded determinism and precision rounding
- Noise bounds and size bounds
- Feed ingestion, error isolation and lifecycle
"""

import asyncio

import pytest

from barsignal.domain.signals.data.bar_store import BarStore
from barsignal.domain.signals.models import Tick
from barsignal.infrastructure.tick_sources import SyntheticTickSource, TickFeed, TickSource

T0 = 1_718_006_400


class TestSyntheticTickSource:
    """Tests for SyntheticTickSource."""

    def test_satisfies_protocol(self, registry) -> None:
        assert isinstance(SyntheticTickSource(registry), TickSource)

    def test_seeded_is_deterministic(self, registry) -> None:
        a = SyntheticTickSource(registry, seed=42, clock=lambda: T0)
        b = SyntheticTickSource(registry, seed=42, clock=lambda: T0)
        assert [a.next_tick("EURUSD") for _ in range(20)] == [b.next_tick("EURUSD") for _ in range(20)]

    def test_prices_within_noise_and_rounded(self, registry) -> None:
        source = SyntheticTickSource(registry, seed=1, clock=lambda: T0)
        for _ in range(200):
            tick = source.next_tick("BTCUSDT")
            assert 110000 - 100 <= tick.price <= 110000 + 100
            assert tick.price == round(tick.price)
            assert 0 <= tick.size < 1.0

    def test_forex_precision(self, registry) -> None:
        source = SyntheticTickSource(registry, seed=5, clock=lambda: T0)
        for _ in range(50):
            price = source.next_tick("EURUSD").price
            assert price == round(price, 4)
            assert abs(price - 1.09) <= 0.0006 + 1e-9

    def test_timestamp_from_clock(self, registry) -> None:
        source = SyntheticTickSource(registry, seed=1, clock=lambda: T0 + 0.9)
        tick = source.next_tick("eurusd")
        assert tick.timestamp == T0
        assert tick.instrument == "EURUSD"

    def test_unknown_instrument_uses_defaults(self, registry) -> None:
        source = SyntheticTickSource(registry, seed=3, clock=lambda: T0)
        tick = source.next_tick("XAUUSD")
        assert tick.instrument == "XAUUSD"
        assert abs(tick.price - 1.0) <= 0.0006 + 1e-9


class _ScriptedSource:
    """Returns queued results per instrument; exceptions are raised."""

    def __init__(self, script):
        self._script = {k: list(v) for k, v in script.items()}

    def next_tick(self, instrument):
        result = self._script[instrument].pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class TestTickFeed:
    """Tests for TickFeed."""

    def test_pump_once_ingests_each_instrument(self, registry) -> None:
        store = BarStore()
        feed = TickFeed(SyntheticTickSource(registry, seed=1, clock=lambda: T0), store, ["BTCUSDT", "EURUSD"])

        assert feed.pump_once() == 2
        assert store.bar_count("BTCUSDT") == 1
        assert store.bar_count("EURUSD") == 1
        assert feed.get_stats()["ticks"] == 2

    def test_errors_are_isolated(self) -> None:
        store = BarStore()
        source = _ScriptedSource(
            {
                "A": [RuntimeError("source down")],
                "B": [Tick("B", -1.0, 1.0, T0)],
                "C": [None],
                "D": [Tick("D", 2.0, 1.0, T0)],
            }
        )
        feed = TickFeed(source, store, ["A", "B", "C", "D"])

        assert feed.pump_once() == 1
        assert store.instruments() == ["D"]
        assert feed.get_stats() == {"ticks": 1, "empty": 1, "errors": 2}

    def test_invalid_interval(self, registry) -> None:
        with pytest.raises(ValueError):
            TickFeed(SyntheticTickSource(registry), BarStore(), ["EURUSD"], interval_sec=0)

    @pytest.mark.asyncio
    async def test_start_stop(self, registry) -> None:
        store = BarStore()
        feed = TickFeed(SyntheticTickSource(registry, seed=2), store, ["EURUSD"], interval_sec=0.01)

        await feed.start()
        assert feed.is_running
        await asyncio.sleep(0.05)
        await feed.stop()

        assert not feed.is_running
        assert feed.get_stats()["ticks"] >= 1
        assert store.bar_count("EURUSD") >= 1
