"""
SignalHistory - bounded newest-first record of emitted signals.

Used for client replay and backtest queries. Nothing is persisted.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from .models import Signal

DEFAULT_CAPACITY = 500


class SignalHistory:
    """
    Thread-safe bounded FIFO of the most recent signals.

    add() prepends; once capacity is reached the oldest signal is dropped.
    Iteration order everywhere is newest first.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._signals: Deque[Signal] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, signal: Signal) -> None:
        with self._lock:
            # appendleft on a full deque(maxlen) discards from the right (oldest)
            self._signals.appendleft(signal)

    def recent(self, limit: Optional[int] = None) -> List[Signal]:
        """Newest-first list, optionally truncated to `limit` entries."""
        with self._lock:
            items = list(self._signals)
        if limit is not None:
            return items[: max(limit, 0)]
        return items

    def to_dicts(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return [signal.to_dict() for signal in self.recent(limit)]

    def clear(self) -> None:
        with self._lock:
            self._signals.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)
