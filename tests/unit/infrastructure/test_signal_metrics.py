"""Unit tests for SignalMetrics."""

import pytest

from barsignal.infrastructure.observability import SignalMetrics, time_scoring


class TestSignalMetrics:
    def test_counters(self, signal_metrics, read_metric) -> None:
        signal_metrics.record_tick_ingested("EURUSD")
        signal_metrics.record_tick_ingested("EURUSD")
        signal_metrics.record_tick_rejected("EURUSD", "out_of_order")
        signal_metrics.record_signal_emitted("EURUSD", "CALL")
        signal_metrics.record_message_dropped("signal", "queue_full")
        signal_metrics.record_error("feed", "next_tick")

        assert read_metric("barsignal_ticks_ingested_total", instrument="EURUSD") == 2
        assert read_metric("barsignal_ticks_rejected_total", reason="out_of_order") == 1
        assert read_metric("barsignal_signals_emitted_total", direction="CALL") == 1
        assert read_metric("barsignal_messages_dropped_total", type="signal") == 1
        assert read_metric("barsignal_errors_total", module="feed") == 1

    def test_default_meter_is_noop_safe(self) -> None:
        metrics = SignalMetrics()
        metrics.record_tick_ingested("X")
        metrics.record_score_latency(1.5, "X")


class TestTimeScoring:
    def test_records_latency(self, signal_metrics, read_metric) -> None:
        with time_scoring(signal_metrics, "EURUSD"):
            pass
        assert read_metric("barsignal_score_ms", instrument="EURUSD") == 1

    def test_records_on_error(self, signal_metrics, read_metric) -> None:
        with pytest.raises(RuntimeError):
            with time_scoring(signal_metrics, "EURUSD"):
                raise RuntimeError("boom")
        assert read_metric("barsignal_score_ms", instrument="EURUSD") == 1

    def test_none_metrics(self) -> None:
        with time_scoring(None, "EURUSD"):
            pass
