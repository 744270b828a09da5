"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from config.models import ScoringConfig
from barsignal.domain.signals.data.bar_store import BarStore
from barsignal.domain.signals.instruments import InstrumentRegistry
from barsignal.domain.signals.models import Bar, InstrumentMeta
from barsignal.domain.signals.signal_history import SignalHistory
from barsignal.infrastructure.observability import SignalMetrics

# Epoch seconds aligned to both 60s and 300s buckets
START_TS = 1_718_006_400

FIXED_NOW = datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def registry() -> InstrumentRegistry:
    """Instrument table with one crypto and two forex symbols."""
    return InstrumentRegistry(
        [
            InstrumentMeta("BTCUSDT", category="crypto", precision=0, base_price=110000.0, noise=200.0, max_size=1.0),
            InstrumentMeta("EURUSD", category="forex", precision=4, base_price=1.09),
            InstrumentMeta("USDJPY", category="forex", precision=4, base_price=1.0),
        ]
    )


@pytest.fixture
def bar_store() -> BarStore:
    return BarStore(retention=3600)


@pytest.fixture
def history() -> SignalHistory:
    return SignalHistory(capacity=500)


@pytest.fixture
def scoring_config() -> ScoringConfig:
    """Default scoring parameters with a deterministic boost flag."""
    return ScoringConfig(boost_probability=1.0)


@pytest.fixture
def fill_closes() -> Callable[..., None]:
    """
    Ingest one tick per close into a store.

    Usage:
        fill_closes(store, "EURUSD", [1.1, 1.2], spacing=60, volume=10)
    """

    def _fill(
        store: BarStore,
        instrument: str,
        closes: Sequence[float],
        spacing: int = 1,
        volume: float = 10.0,
        start: int = START_TS,
    ) -> None:
        for i, price in enumerate(closes):
            store.ingest(instrument, float(price), volume, start + i * spacing)

    return _fill


@pytest.fixture
def make_bars() -> Callable[..., List[Bar]]:
    """Build a bar list from (open, high, low, close) tuples, one per stride."""

    def _make(
        ohlc: Sequence[Tuple[float, float, float, float]],
        stride: int = 60,
        volume: float = 1.0,
        start: int = START_TS,
    ) -> List[Bar]:
        return [
            Bar(time=start + i * stride, open=o, high=h, low=l, close=c, volume=volume)
            for i, (o, h, l, c) in enumerate(ohlc)
        ]

    return _make


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def signal_metrics(metric_reader: InMemoryMetricReader) -> SignalMetrics:
    """SignalMetrics backed by an in-memory SDK reader."""
    provider = MeterProvider(metric_readers=[metric_reader])
    return SignalMetrics(provider.get_meter("barsignal-test"))


@pytest.fixture
def read_metric(metric_reader: InMemoryMetricReader) -> Callable[..., float]:
    """
    Sum of a counter's data points, optionally filtered by attributes.

    Usage:
        read_metric("barsignal_errors_total", module="scoring_engine")
    """

    def _read(name: str, **attributes: str) -> float:
        data = metric_reader.get_metrics_data()
        if data is None:
            return 0
        total = 0
        for resource_metrics in data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    if metric.name != name:
                        continue
                    for point in metric.data.data_points:
                        attrs: Dict[str, Optional[str]] = dict(point.attributes or {})
                        if all(attrs.get(k) == v for k, v in attributes.items()):
                            total += getattr(point, "value", None) or getattr(point, "count", 0)
        return total

    return _read
