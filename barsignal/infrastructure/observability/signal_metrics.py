"""
Signal pipeline metrics instrumentation.

Exposes key pipeline metrics through OpenTelemetry:
- Tick ingestion throughput and rejections
- Scoring latency and signal emission rates
- Broadcast deliveries and drops
- Error tracking by module

All metrics are prefixed with 'barsignal_' for namespace isolation.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Generator, Optional

from opentelemetry import metrics

from barsignal.utils.logging_setup import get_logger

logger = get_logger(__name__)


class SignalMetrics:
    """
    Metrics for the signal pipeline (ticks -> bars -> score -> publish).

    Provides counters and histograms for monitoring:
    - Throughput: ticks ingested, signals emitted, messages delivered
    - Latency: scoring time per instrument
    - Errors: failures by module and operation
    """

    def __init__(self, meter: Optional[metrics.Meter] = None) -> None:
        """
        Initialize signal pipeline metrics.

        Args:
            meter: OpenTelemetry Meter for creating instruments. Defaults to
                   the global provider's "barsignal" meter (no-op until an SDK
                   provider is installed).
        """
        self._meter = meter if meter is not None else metrics.get_meter("barsignal")

        # -------------------------------------------------------------------------
        # Counters (monotonically increasing)
        # -------------------------------------------------------------------------

        self._ticks_ingested = self._meter.create_counter(
            name="barsignal_ticks_ingested_total",
            description="Total ticks folded into base bars",
        )

        self._ticks_rejected = self._meter.create_counter(
            name="barsignal_ticks_rejected_total",
            description="Total ticks rejected or ignored by reason",
        )

        self._signals_emitted = self._meter.create_counter(
            name="barsignal_signals_emitted_total",
            description="Total trade signals produced",
        )

        self._scores_skipped = self._meter.create_counter(
            name="barsignal_scores_skipped_total",
            description="Total scoring attempts skipped by reason",
        )

        self._messages_published = self._meter.create_counter(
            name="barsignal_messages_published_total",
            description="Total messages handed to the broadcaster",
        )

        self._messages_dropped = self._meter.create_counter(
            name="barsignal_messages_dropped_total",
            description="Total per-subscriber message drops",
        )

        self._errors = self._meter.create_counter(
            name="barsignal_errors_total",
            description="Total errors in signal pipeline by module",
        )

        # -------------------------------------------------------------------------
        # Histograms (latency distributions)
        # -------------------------------------------------------------------------

        self._score_ms = self._meter.create_histogram(
            name="barsignal_score_ms",
            description="Scoring latency per instrument in milliseconds",
            unit="ms",
        )

    # -------------------------------------------------------------------------
    # Counter Recording Methods
    # -------------------------------------------------------------------------

    def record_tick_ingested(self, instrument: str) -> None:
        self._ticks_ingested.add(1, {"instrument": instrument})

    def record_tick_rejected(self, instrument: str, reason: str) -> None:
        self._ticks_rejected.add(1, {"instrument": instrument, "reason": reason})

    def record_signal_emitted(self, instrument: str, direction: str) -> None:
        self._signals_emitted.add(1, {"instrument": instrument, "direction": direction})

    def record_score_skipped(self, instrument: str, reason: str) -> None:
        self._scores_skipped.add(1, {"instrument": instrument, "reason": reason})

    def record_message_published(self, message_type: str) -> None:
        self._messages_published.add(1, {"type": message_type})

    def record_message_dropped(self, message_type: str, reason: str) -> None:
        self._messages_dropped.add(1, {"type": message_type, "reason": reason})

    def record_error(self, module: str, operation: str) -> None:
        """Record an error in the signal pipeline."""
        self._errors.add(1, {"module": module, "operation": operation})

    # -------------------------------------------------------------------------
    # Histogram Recording Methods
    # -------------------------------------------------------------------------

    def record_score_latency(self, duration_ms: float, instrument: str) -> None:
        self._score_ms.record(duration_ms, {"instrument": instrument})


@contextmanager
def time_scoring(
    metrics_: Optional[SignalMetrics],
    instrument: str,
) -> Generator[None, None, None]:
    """
    Context manager for timing a scoring pass.

    Usage:
        with time_scoring(signal_metrics, "BTCUSDT"):
            signal = engine.score("BTCUSDT")
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        if metrics_:
            duration_ms = (time.perf_counter() - start) * 1000
            metrics_.record_score_latency(duration_ms, instrument)
