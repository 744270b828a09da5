"""
BarStore - Folds ticks into fixed-width base bars per instrument.

Each instrument owns a capacity-bounded ring of bars at the base stride
(1 second by default). The last bar is mutated in place while its bucket is
current; older bars are never touched again. Readers get copies.
"""

from __future__ import annotations

import math
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Deque, Dict, List, Optional

from barsignal.domain.exceptions import InvalidTickError
from barsignal.domain.signals.models import Bar, Tick
from barsignal.utils.logging_setup import get_logger

if TYPE_CHECKING:
    from barsignal.infrastructure.observability import SignalMetrics

logger = get_logger(__name__)

DEFAULT_RETENTION = 3600
DEFAULT_BASE_STRIDE = 1


@dataclass
class _Series:
    """Bars for one instrument plus the lock serializing its writers."""

    bars: Deque[Bar]
    lock: threading.RLock = field(default_factory=threading.RLock)


class BarStore:
    """
    Per-instrument ring buffer of base-resolution bars.

    Thread-safe: ingest and snapshot for one instrument are serialized by a
    per-instrument lock, so a snapshot never observes a half-updated bar.
    Different instruments never contend.
    Instrument keys are case-insensitive and stored upper-cased.

    Example:
        store = BarStore(retention=3600)
        store.ingest("BTCUSDT", 110000.0, 0.25, 1718000000)
        bars = store.snapshot("BTCUSDT")
    """

    def __init__(
        self,
        retention: int = DEFAULT_RETENTION,
        base_stride: int = DEFAULT_BASE_STRIDE,
        metrics: Optional["SignalMetrics"] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            retention: Maximum bars kept per instrument (oldest evicted first)
            base_stride: Base bar width in seconds
            metrics: Metrics collector for instrumentation

        Raises:
            ValueError: If retention or base_stride is not positive
        """
        if retention <= 0:
            raise ValueError(f"retention must be positive, got {retention}")
        if base_stride <= 0:
            raise ValueError(f"base_stride must be positive, got {base_stride}")

        self._retention = retention
        self._stride = base_stride
        self._metrics = metrics
        self._series: Dict[str, _Series] = {}
        self._registry_lock = threading.Lock()

    @property
    def retention(self) -> int:
        return self._retention

    @property
    def base_stride(self) -> int:
        return self._stride

    def bucket_for(self, timestamp: int) -> int:
        """Start of the base bucket containing timestamp."""
        return (int(timestamp) // self._stride) * self._stride

    def ingest(self, instrument: str, price: float, size: float, timestamp: int) -> None:
        """
        Fold one tick into the instrument's base series.

        Non-finite price or size is ignored. Out-of-order ticks (older than
        the current bar's bucket) are ignored.

        Args:
            instrument: Instrument identifier (case-insensitive, stored upper-cased)
            price: Trade price (> 0)
            size: Trade size (>= 0)
            timestamp: Epoch seconds

        Raises:
            InvalidTickError: If price <= 0 or size < 0
        """
        instrument = instrument.upper()
        if not (math.isfinite(price) and math.isfinite(size)):
            logger.debug(f"Ignoring non-finite tick for {instrument}: price={price}, size={size}")
            if self._metrics:
                self._metrics.record_tick_rejected(instrument, "non_finite")
            return
        if price <= 0:
            if self._metrics:
                self._metrics.record_tick_rejected(instrument, "non_positive_price")
            raise InvalidTickError(instrument, "price", price)
        if size < 0:
            if self._metrics:
                self._metrics.record_tick_rejected(instrument, "negative_size")
            raise InvalidTickError(instrument, "size", size)

        bucket = self.bucket_for(timestamp)
        series = self._get_or_create(instrument)

        with series.lock:
            bars = series.bars
            last = bars[-1] if bars else None

            if last is not None and bucket < last.time:
                logger.warning(
                    f"Ignoring out-of-order tick for {instrument}: "
                    f"bucket={bucket}, last_bar={last.time}"
                )
                if self._metrics:
                    self._metrics.record_tick_rejected(instrument, "out_of_order")
                return

            if last is None or bucket != last.time:
                # deque(maxlen) evicts the oldest bar on overflow
                bars.append(Bar.seed(bucket, float(price), float(size)))
            else:
                last.fold_tick(float(price), float(size))

        if self._metrics:
            self._metrics.record_tick_ingested(instrument)

    def ingest_tick(self, tick: Tick) -> None:
        """Fold a Tick object (see ingest)."""
        self.ingest(tick.instrument, tick.price, tick.size, tick.timestamp)

    def snapshot(self, instrument: str) -> List[Bar]:
        """
        Consistent copy of the instrument's base series, oldest first.

        Returns:
            List of Bar copies (empty if the instrument is unknown)
        """
        series = self._series.get(instrument.upper())
        if series is None:
            return []
        with series.lock:
            return [bar.copy() for bar in series.bars]

    def last_bar(self, instrument: str) -> Optional[Bar]:
        series = self._series.get(instrument.upper())
        if series is None:
            return None
        with series.lock:
            return series.bars[-1].copy() if series.bars else None

    def bar_count(self, instrument: str) -> int:
        series = self._series.get(instrument.upper())
        if series is None:
            return 0
        with series.lock:
            return len(series.bars)

    def instruments(self) -> List[str]:
        with self._registry_lock:
            return list(self._series)

    def clear(self, instrument: Optional[str] = None) -> None:
        """Drop one instrument's series, or all of them."""
        with self._registry_lock:
            if instrument is None:
                self._series.clear()
            else:
                self._series.pop(instrument.upper(), None)

    def _get_or_create(self, instrument: str) -> _Series:
        series = self._series.get(instrument)
        if series is not None:
            return series
        with self._registry_lock:
            series = self._series.get(instrument)
            if series is None:
                series = _Series(bars=deque(maxlen=self._retention))
                self._series[instrument] = series
                logger.debug(f"Created base series for {instrument} (retention={self._retention})")
            return series
