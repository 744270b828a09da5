"""
Observability module.

Provides OpenTelemetry instrumentation for the tick -> bar -> signal pipeline.
"""

from .signal_metrics import SignalMetrics, time_scoring

__all__ = [
    "SignalMetrics",
    "time_scoring",
]
