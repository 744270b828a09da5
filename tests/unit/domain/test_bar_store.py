"""
Unit tests for BarStore.

Tests:
- Tick folding within one bucket
- Bucket rollover and retention eviction
- Invalid and non-finite ticks
- Out-of-order ticks
- Snapshot isolation and concurrent writers
"""

import math
import threading

import pytest

from barsignal.domain.exceptions import InvalidTickError
from barsignal.domain.signals.data.bar_store import BarStore
from barsignal.domain.signals.models import Tick

T0 = 1_718_006_400


class TestIngest:
    """Tests for folding ticks into base bars."""

    def test_single_bucket_ohlcv(self) -> None:
        """Ticks in one second fold into one bar."""
        store = BarStore()
        for price, size in [(100.0, 1.0), (102.0, 2.0), (99.0, 0.5), (101.0, 1.5)]:
            store.ingest("EURUSD", price, size, T0)

        bars = store.snapshot("EURUSD")
        assert len(bars) == 1
        bar = bars[0]
        assert bar.time == T0
        assert bar.open == 100.0
        assert bar.high == 102.0
        assert bar.low == 99.0
        assert bar.close == 101.0
        assert bar.volume == pytest.approx(5.0)

    def test_new_bucket_appends_seeded_bar(self) -> None:
        store = BarStore()
        store.ingest("EURUSD", 1.1, 3.0, T0)
        store.ingest("EURUSD", 1.2, 4.0, T0 + 1)

        bars = store.snapshot("EURUSD")
        assert [b.time for b in bars] == [T0, T0 + 1]
        second = bars[1]
        assert second.open == second.high == second.low == second.close == 1.2
        assert second.volume == 4.0

    def test_bucket_uses_stride(self) -> None:
        """Timestamps inside the same stride share a bar."""
        store = BarStore(base_stride=5)
        store.ingest("X", 10.0, 1.0, T0 + 1)
        store.ingest("X", 11.0, 1.0, T0 + 4)
        store.ingest("X", 12.0, 1.0, T0 + 5)

        bars = store.snapshot("X")
        assert [b.time for b in bars] == [T0, T0 + 5]
        assert bars[0].close == 11.0

    def test_ingest_tick_object(self) -> None:
        store = BarStore()
        store.ingest_tick(Tick("BTCUSDT", 110000.0, 0.25, T0))
        assert store.bar_count("BTCUSDT") == 1

    def test_bar_invariant_holds(self) -> None:
        """low <= min(open, close) <= max(open, close) <= high after every tick."""
        store = BarStore()
        prices = [5.0, 7.5, 3.2, 6.1, 6.0, 2.9, 8.8]
        for i, price in enumerate(prices):
            store.ingest("X", price, 1.0, T0 + i // 3)
            for bar in store.snapshot("X"):
                assert bar.low <= min(bar.open, bar.close)
                assert max(bar.open, bar.close) <= bar.high

    def test_zero_size_allowed(self) -> None:
        store = BarStore()
        store.ingest("X", 1.0, 0.0, T0)
        assert store.snapshot("X")[0].volume == 0.0


class TestRetention:
    """Tests for the capacity-bounded ring."""

    def test_never_exceeds_retention(self) -> None:
        store = BarStore(retention=10)
        for i in range(25):
            store.ingest("X", 1.0 + i, 1.0, T0 + i)
            assert store.bar_count("X") <= 10

    def test_oldest_evicted_first(self) -> None:
        store = BarStore(retention=3)
        for i in range(5):
            store.ingest("X", 1.0 + i, 1.0, T0 + i)

        assert [b.time for b in store.snapshot("X")] == [T0 + 2, T0 + 3, T0 + 4]

    @pytest.mark.parametrize("retention,stride", [(0, 1), (-1, 1), (10, 0)])
    def test_invalid_construction(self, retention: int, stride: int) -> None:
        with pytest.raises(ValueError):
            BarStore(retention=retention, base_stride=stride)


class TestInvalidTicks:
    """Tests for rejected and ignored ticks."""

    @pytest.mark.parametrize("price", [0.0, -1.0])
    def test_non_positive_price_raises(self, price: float) -> None:
        store = BarStore()
        with pytest.raises(InvalidTickError) as exc_info:
            store.ingest("X", price, 1.0, T0)
        assert exc_info.value.field == "price"
        assert store.bar_count("X") == 0

    def test_negative_size_raises(self) -> None:
        store = BarStore()
        with pytest.raises(InvalidTickError):
            store.ingest("X", 1.0, -0.1, T0)

    def test_invalid_tick_is_value_error(self) -> None:
        store = BarStore()
        with pytest.raises(ValueError):
            store.ingest("X", -5.0, 1.0, T0)

    @pytest.mark.parametrize(
        "price,size",
        [(math.nan, 1.0), (math.inf, 1.0), (1.0, math.nan), (1.0, -math.inf)],
    )
    def test_non_finite_is_silent_noop(self, price: float, size: float) -> None:
        store = BarStore()
        store.ingest("X", 1.0, 1.0, T0)
        store.ingest("X", price, size, T0)

        bars = store.snapshot("X")
        assert len(bars) == 1
        assert bars[0].close == 1.0
        assert bars[0].volume == 1.0

    def test_out_of_order_tick_ignored(self) -> None:
        store = BarStore()
        store.ingest("X", 1.0, 1.0, T0 + 10)
        store.ingest("X", 2.0, 1.0, T0 + 5)

        bars = store.snapshot("X")
        assert len(bars) == 1
        assert bars[0].close == 1.0

    def test_rejections_recorded_in_metrics(self, signal_metrics, read_metric) -> None:
        store = BarStore(metrics=signal_metrics)
        store.ingest("X", 1.0, 1.0, T0 + 10)
        store.ingest("X", math.nan, 1.0, T0 + 10)
        store.ingest("X", 1.0, 1.0, T0)
        with pytest.raises(InvalidTickError):
            store.ingest("X", 0.0, 1.0, T0 + 10)

        assert read_metric("barsignal_ticks_ingested_total", instrument="X") == 1
        assert read_metric("barsignal_ticks_rejected_total", reason="non_finite") == 1
        assert read_metric("barsignal_ticks_rejected_total", reason="out_of_order") == 1
        assert read_metric("barsignal_ticks_rejected_total", reason="non_positive_price") == 1


class TestSnapshot:
    """Tests for copy-on-read access."""

    def test_unknown_instrument_empty(self) -> None:
        store = BarStore()
        assert store.snapshot("NOPE") == []
        assert store.bar_count("NOPE") == 0
        assert store.last_bar("NOPE") is None

    def test_snapshot_is_a_copy(self) -> None:
        store = BarStore()
        store.ingest("X", 1.0, 1.0, T0)
        snap = store.snapshot("X")
        snap[0].close = 999.0

        store.ingest("X", 2.0, 1.0, T0)
        assert snap[0].close == 999.0
        assert store.snapshot("X")[0].close == 2.0

    def test_instruments_isolated(self) -> None:
        store = BarStore()
        store.ingest("A", 1.0, 1.0, T0)
        store.ingest("B", 2.0, 1.0, T0)
        store.ingest("B", 3.0, 1.0, T0 + 1)

        assert store.bar_count("A") == 1
        assert store.bar_count("B") == 2
        assert sorted(store.instruments()) == ["A", "B"]

    def test_instrument_keys_case_insensitive(self) -> None:
        """Lowercase feed identifiers land in the same upper-cased series."""
        store = BarStore()
        store.ingest("btcusdt", 1.0, 1.0, T0)
        store.ingest("BtcUsdt", 2.0, 1.0, T0 + 1)
        store.ingest_tick(Tick("btcusdt", 3.0, 1.0, T0 + 2))

        assert store.instruments() == ["BTCUSDT"]
        assert store.bar_count("btcusdt") == 3
        assert store.snapshot("btcusdt") == store.snapshot("BTCUSDT")
        assert store.last_bar("btcusdt").close == 3.0

        store.clear("btcusdt")
        assert store.bar_count("BTCUSDT") == 0

    def test_clear(self) -> None:
        store = BarStore()
        store.ingest("A", 1.0, 1.0, T0)
        store.ingest("B", 1.0, 1.0, T0)

        store.clear("A")
        assert store.instruments() == ["B"]
        store.clear()
        assert store.instruments() == []

    def test_concurrent_writers_same_instrument(self) -> None:
        """Volume is conserved when many threads write one bucket."""
        store = BarStore()
        store.ingest("X", 1.0, 0.0, T0)

        def writer() -> None:
            for _ in range(500):
                store.ingest("X", 1.0, 1.0, T0)

        threads = [threading.Thread(target=writer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        bars = store.snapshot("X")
        assert len(bars) == 1
        assert bars[0].volume == 4000.0
