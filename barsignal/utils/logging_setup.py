"""
Logging setup with categories and cycle ID support.

Provides:
- 4 log categories: system, data, signal, perf
- Automatic module -> category routing
- Cycle ID correlation in all logs
- File logging (one file per category, non-blocking via QueueListener)
- Console output (colored, opt-in)
- JSON formatting for files

Categories:
- system: Startup, shutdown, config, emitter loop, transport boundary
- data: Tick ingestion, bar store, tick sources
- signal: Indicators, scoring, history
- perf: Timing, latency
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import json
from queue import Queue
from pathlib import Path
from typing import Optional, Dict, List
from datetime import datetime

from config.models import LoggingConfig

from .trace_context import get_cycle_id

# =============================================================================
# GLOBAL STATE
# =============================================================================

# Configured category loggers
_category_loggers: Dict[str, logging.Logger] = {}

# Queue listeners for async file logging (one per category)
_queue_listeners: List[logging.handlers.QueueListener] = []

# =============================================================================
# LOG CATEGORIES AND ROUTING
# =============================================================================

ROOT_LOGGER = "barsignal"

CATEGORIES = ["system", "data", "signal", "perf"]

# Module path -> category routing
# More specific paths should come first
MODULE_ROUTING: List[tuple[str, str]] = [
    ("barsignal.domain.signals.data", "data"),
    ("barsignal.infrastructure.tick_sources", "data"),
    ("barsignal.domain.signals", "signal"),
    ("barsignal.infrastructure.observability", "perf"),
    ("barsignal.application", "system"),
    ("config", "system"),

    # Default fallback
    ("barsignal", "system"),
]


def get_category_for_module(module_name: str) -> str:
    """
    Determine the log category for a given module name.

    Args:
        module_name: Full module path (e.g., "barsignal.domain.signals.data.bar_store").

    Returns:
        Category name (system, data, signal, or perf).
    """
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return "system"


# =============================================================================
# FORMATTERS
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging with cycle ID support.

    Formats log records as single-line JSON with timestamp, level,
    category, cycle ID, message, extra data and exception text.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_entry = {
            "ts": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "cat": self._get_category(record.name),
            "cycle": get_cycle_id(),
            "msg": record.getMessage(),
        }

        if hasattr(record, "data") and record.data:
            log_entry["data"] = record.data

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)

    def _get_category(self, logger_name: str) -> str:
        """Extract category from logger name."""
        parts = logger_name.split(".")
        if len(parts) >= 2 and parts[0] == ROOT_LOGGER and parts[1] in CATEGORIES:
            return parts[1]
        return "system"


class ConsoleFormatter(logging.Formatter):
    """
    Console formatter with cycle ID and color support.

    Format: [LEVEL] [cycle] message
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        cycle_id = get_cycle_id()
        level = record.levelname
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if self.use_colors:
            color = self.COLORS.get(level, "")
            return f"{color}[{level:7}]{self.RESET} [{cycle_id}] {message}"
        return f"[{level:7}] [{cycle_id}] {message}"


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for the given module, routed to the correct category.

    Args:
        module_name: Module name (typically __name__).

    Returns:
        Logger instance for the module's category.

    Example:
        from barsignal.utils.logging_setup import get_logger
        logger = get_logger(__name__)
        logger.info("Processing...")
    """
    category = get_category_for_module(module_name)
    return logging.getLogger(f"{ROOT_LOGGER}.{category}")


# =============================================================================
# CATEGORY LOGGING SETUP
# =============================================================================

def setup_category_logging(
    config: LoggingConfig,
    env: str = "dev",
    console: Optional[bool] = None,
    verbose: bool = False,
) -> Dict[str, logging.Logger]:
    """
    Set up one log file per category.

    Creates log files in a date-specific subdirectory:
    - {dir}/{date}/barsignal_{env}_{category}.log

    Args:
        config: Logging configuration.
        env: Environment name (dev/prod).
        console: Override config.console when not None.
        verbose: Force DEBUG level everywhere.

    Returns:
        Dict mapping category name to logger.
    """
    shutdown_logging()

    for category in CATEGORIES:
        logger = logging.getLogger(f"{ROOT_LOGGER}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    level_name = "DEBUG" if verbose else config.level.upper()
    level = getattr(logging, level_name, logging.INFO)
    use_console = config.console if console is None else console

    log_path: Optional[Path] = None
    if config.dir:
        log_path = Path(config.dir) / datetime.now().strftime("%Y-%m-%d")
        log_path.mkdir(parents=True, exist_ok=True)

    for category in CATEGORIES:
        logger = logging.getLogger(f"{ROOT_LOGGER}.{category}")
        logger.setLevel(level)
        logger.propagate = False

        if log_path is not None:
            file_handler = logging.FileHandler(
                filename=str(log_path / f"barsignal_{env}_{category}.log"),
                mode="a",
                encoding="utf-8",
            )
            file_handler.setFormatter(JSONFormatter())
            file_handler.setLevel(level)

            # QueueHandler keeps disk writes off the event loop
            log_queue: Queue = Queue(-1)
            logger.addHandler(logging.handlers.QueueHandler(log_queue))
            listener = logging.handlers.QueueListener(
                log_queue, file_handler, respect_handler_level=True
            )
            listener.start()
            _queue_listeners.append(listener)

        if use_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            console_handler.setLevel(level)
            logger.addHandler(console_handler)

        _category_loggers[category] = logger

    return _category_loggers


def shutdown_logging() -> None:
    """Stop all queue listeners (flushes pending file writes)."""
    for listener in _queue_listeners:
        listener.stop()
    _queue_listeners.clear()
