"""
Signal Domain Models.

Defines core domain models for the bar/signal pipeline:
- Tick: transient price print folded into bars
- Bar: fixed-width OHLCV bucket
- Signal: emitted trade signal (immutable)
- InstrumentMeta: explicit per-instrument metadata
- Enums: signal direction
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple

from barsignal.utils.timezone import now_utc, to_iso


class SignalDirection(Enum):
    """Direction of the trade signal."""

    CALL = "CALL"
    PUT = "PUT"


@dataclass(frozen=True, slots=True)
class Tick:
    """Single price print for an instrument."""

    instrument: str
    price: float
    size: float
    timestamp: int  # epoch seconds


@dataclass(slots=True)
class Bar:
    """
    OHLCV bar for one bucket.

    `time` is the bucket start in epoch seconds. Only the last bar of a
    series is ever mutated; readers receive copies.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def seed(cls, time: int, price: float, size: float) -> "Bar":
        """Open a new bar from its first tick."""
        return cls(time=time, open=price, high=price, low=price, close=price, volume=size)

    def fold_tick(self, price: float, size: float) -> None:
        """Apply a tick that belongs to this bar's bucket."""
        self.close = price
        if price > self.high:
            self.high = price
        if price < self.low:
            self.low = price
        self.volume += size

    def copy(self) -> "Bar":
        return Bar(self.time, self.open, self.high, self.low, self.close, self.volume)

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


@dataclass(frozen=True)
class InstrumentMeta:
    """
    Explicit instrument metadata.

    Precision is a property of the instrument's category (crypto quotes in
    whole units, FX to four decimals), supplied by configuration.
    """

    symbol: str
    category: str = "otc"
    precision: int = 4
    base_price: float = 1.0
    noise: float = 0.0012
    max_size: float = 100.0

    def format_price(self, price: float) -> str:
        return f"{price:.{self.precision}f}"


@dataclass(frozen=True)
class Signal:
    """
    Emitted trade signal.

    Created by the ScoringEngine, immutable once emitted, retained in
    SignalHistory and serialized with to_dict() for the publish boundary.
    """

    market: str
    instrument: str
    direction: SignalDirection
    entry_range: Tuple[str, str]
    confidence: int  # 10-99
    boosted_flag: bool
    notes: str = ""
    emitted_at: datetime = field(default_factory=now_utc)
    expires_at: datetime = field(default_factory=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire mapping."""
        return {
            "market": self.market,
            "instrument": self.instrument,
            "direction": self.direction.value,
            "entry_range": list(self.entry_range),
            "confidence": self.confidence,
            "boosted_flag": self.boosted_flag,
            "notes": self.notes,
            "emitted_at": to_iso(self.emitted_at),
            "expires_at": to_iso(self.expires_at),
        }

    def __str__(self) -> str:
        arrow = "▲" if self.direction is SignalDirection.CALL else "▼"
        return (
            f"{arrow} {self.instrument} {self.direction.value} conf:{self.confidence} "
            f"entry {self.entry_range[0]} – {self.entry_range[1]}"
        )
