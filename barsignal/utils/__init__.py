"""Utility modules."""

from .logging_setup import (
    setup_category_logging,
    shutdown_logging,
    get_logger,
)
from .trace_context import (
    get_cycle_id,
    new_cycle,
    generate_cycle_id,
)
from .perf_logger import (
    log_timing,
    log_timing_async,
)
from .timezone import (
    UTC,
    now_utc,
    to_iso,
)

__all__ = [
    # Logging setup
    "setup_category_logging",
    "shutdown_logging",
    "get_logger",
    # Trace context
    "get_cycle_id",
    "new_cycle",
    "generate_cycle_id",
    # Performance logging
    "log_timing",
    "log_timing_async",
    # Time
    "UTC",
    "now_utc",
    "to_iso",
]
