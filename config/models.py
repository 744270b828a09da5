"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass
class InstrumentConfig:
    """Per-instrument metadata (precision is a category property)."""
    symbol: str
    category: str
    precision: int
    base_price: float = 1.0
    noise: float = 0.0012
    max_size: float = 100.0


@dataclass
class SignalConfig:
    """Signal emission configuration."""
    watch_list: List[str]
    emit_interval_sec: float = 5.0
    market: str = "binary"


@dataclass
class BarStoreConfig:
    """Base bar retention configuration."""
    retention: int = 3600
    base_stride: int = 1


@dataclass
class ScoringWeights:
    """Additive score adjustments (points on a 0-100 scale)."""
    fast_trend: float = 8.0
    slow_trend: float = 6.0
    rsi_extreme: float = 10.0
    volume_spike: float = 8.0
    wick: float = 6.0
    round_number: float = 4.0


@dataclass
class PatternConfig:
    """Structural pattern detector switch and weight."""
    enabled: bool = False
    weight: float = 0.0


@dataclass
class ScoringConfig:
    """Scoring engine parameters."""
    min_bars: int = 30
    fast_stride: int = 60
    slow_stride: int = 300
    lookback_bars: int = 80
    short_period: int = 5
    long_period: int = 20
    rsi_period: int = 14
    rsi_oversold: float = 35.0
    rsi_overbought: float = 65.0
    volume_window: int = 60
    volume_multiplier: float = 2.2
    round_tolerance_pct: float = 0.0005
    entry_band_pct: float = 0.001
    call_threshold: int = 60
    put_threshold: int = 40
    min_confidence: int = 10
    max_confidence: int = 99
    base_score: float = 50.0
    expiry_sec: int = 60
    boost_probability: float = 0.8
    boost_seed: Optional[int] = None
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    patterns: Dict[str, PatternConfig] = field(default_factory=dict)


@dataclass
class HistoryConfig:
    """Signal history retention."""
    capacity: int = 500


@dataclass
class BroadcastConfig:
    """Publish boundary configuration."""
    subscriber_queue_size: int = 100


@dataclass
class FeedConfig:
    """Synthetic tick feed (demo / offline mode)."""
    enabled: bool = False
    tick_interval_sec: float = 1.0
    seed: Optional[int] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    dir: Optional[str] = "./logs"
    console: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    signals: SignalConfig
    bar_store: BarStoreConfig
    scoring: ScoringConfig
    history: HistoryConfig
    broadcast: BroadcastConfig
    feed: FeedConfig
    logging: LoggingConfig
    instruments: Dict[str, InstrumentConfig]
    category_precision: Dict[str, int]
    raw: Dict[str, Any]  # Raw merged config dict
