"""
ScoringEngine - Multi-timeframe heuristic scoring of one instrument.

Pipeline per call:
    BarStore.snapshot -> resample (fast, slow) -> indicators -> additive terms
    -> clamp/round -> direction -> Signal -> SignalHistory

Score terms (points added to a neutral base of 50, weights from config):
    fast_trend    +/- w when fast SMA(short) vs SMA(long) are both defined
    slow_trend    +/- w, same on the slow series
    rsi           +w if fast RSI < oversold, -w if > overbought
    volume        +w if the last base volume exceeds mean * multiplier
    wick          +w lower wick dominates, -w upper wick dominates
    <pattern>     +weight for each firing PatternDetector
    round_number  +w when the latest close is near an integer price

A term whose computation raises is treated as neutral (0), logged, and
recorded as an error; scoring always continues.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, TypeVar

from config.models import ScoringConfig

from barsignal.infrastructure.observability import time_scoring
from barsignal.utils.logging_setup import get_logger
from barsignal.utils.timezone import now_utc
from .boost_policy import BoostPolicy
from .data.bar_store import BarStore
from .data.resampler import closes, resample
from .indicators import rsi, sma
from .instruments import InstrumentRegistry
from .models import Bar, Signal, SignalDirection
from .patterns import PatternDetector
from .signal_history import SignalHistory

if TYPE_CHECKING:
    from barsignal.infrastructure.observability import SignalMetrics

logger = get_logger(__name__)

T = TypeVar("T")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up."""
    return int(math.floor(value + 0.5))


def derive_direction(
    score: int,
    short: Optional[float],
    long: Optional[float],
    call_threshold: int = 60,
    put_threshold: int = 40,
) -> SignalDirection:
    """
    Map a clamped score to a direction.

    Scores at or above call_threshold are CALL, at or below put_threshold
    are PUT. In between, CALL only if both averages are defined and the
    short one is above the long one.
    """
    if score >= call_threshold:
        return SignalDirection.CALL
    if score <= put_threshold:
        return SignalDirection.PUT
    if short is not None and long is not None and short > long:
        return SignalDirection.CALL
    return SignalDirection.PUT


@dataclass
class ScoreBreakdown:
    """Intermediate values of one scoring pass."""

    raw_score: float
    confidence: int
    fast_short: Optional[float] = None
    fast_long: Optional[float] = None
    terms: Dict[str, float] = field(default_factory=dict)

    def notes(self) -> str:
        parts = [f"{name}:{value:+g}" for name, value in self.terms.items() if value]
        return " ".join(parts)


class ScoringEngine:
    """
    Computes trade signals from the bar store.

    Stateless between calls apart from the history it appends to and the
    boost policy's RNG, so concurrent calls for different instruments are
    safe (the store and history are thread-safe).

    Example:
        engine = ScoringEngine(store, history, ScoringConfig(), registry)
        signal = engine.score("EURUSD")
        if signal:
            print(signal.direction, signal.confidence)
    """

    def __init__(
        self,
        bar_store: BarStore,
        history: SignalHistory,
        config: Optional[ScoringConfig] = None,
        instruments: Optional[InstrumentRegistry] = None,
        pattern_detectors: Sequence[PatternDetector] = (),
        boost_policy: Optional[BoostPolicy] = None,
        metrics: Optional["SignalMetrics"] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._store = bar_store
        self._history = history
        self._config = config or ScoringConfig()
        self._instruments = instruments or InstrumentRegistry()
        self._detectors = list(pattern_detectors)
        self._boost = boost_policy or BoostPolicy(
            self._config.boost_probability, self._config.boost_seed
        )
        self._metrics = metrics
        self._clock = clock

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score(self, instrument: str, market: str = "binary") -> Optional[Signal]:
        """
        Score one instrument and record the resulting signal.

        Args:
            instrument: Instrument identifier (upper-cased)
            market: Market label copied onto the signal

        Returns:
            The new Signal, or None if fewer than min_bars base bars exist
        """
        symbol = instrument.upper()
        base = self._store.snapshot(symbol)
        if len(base) < self._config.min_bars:
            logger.debug(
                f"{symbol}: insufficient data ({len(base)}/{self._config.min_bars} bars)"
            )
            if self._metrics:
                self._metrics.record_score_skipped(symbol, "insufficient_data")
            return None

        with time_scoring(self._metrics, symbol):
            signal = self._build_signal(symbol, market, base)

        self._history.add(signal)
        if self._metrics:
            self._metrics.record_signal_emitted(symbol, signal.direction.value)
        logger.info(f"Signal {signal} boosted={signal.boosted_flag} [{signal.notes}]")
        return signal

    def breakdown(self, instrument: str) -> Optional[ScoreBreakdown]:
        """Score terms without emitting a signal (diagnostics)."""
        symbol = instrument.upper()
        base = self._store.snapshot(symbol)
        if len(base) < self._config.min_bars:
            return None
        fast = resample(base, self._config.fast_stride)
        slow = resample(base, self._config.slow_stride)
        return self._compute(symbol, base, fast, slow)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _build_signal(self, symbol: str, market: str, base: List[Bar]) -> Signal:
        cfg = self._config
        fast = resample(base, cfg.fast_stride)
        slow = resample(base, cfg.slow_stride)
        result = self._compute(symbol, base, fast, slow)

        direction = derive_direction(
            result.confidence,
            result.fast_short,
            result.fast_long,
            cfg.call_threshold,
            cfg.put_threshold,
        )

        meta = self._instruments.get(symbol)
        price = fast[-1].close
        entry_range = (
            meta.format_price(price * (1 - cfg.entry_band_pct)),
            meta.format_price(price * (1 + cfg.entry_band_pct)),
        )

        now = self._clock()
        return Signal(
            market=market,
            instrument=symbol,
            direction=direction,
            entry_range=entry_range,
            confidence=result.confidence,
            boosted_flag=self._boost.decide(),
            notes=result.notes(),
            emitted_at=now,
            expires_at=now + timedelta(seconds=cfg.expiry_sec),
        )

    def _compute(
        self,
        symbol: str,
        base: Sequence[Bar],
        fast: Sequence[Bar],
        slow: Sequence[Bar],
    ) -> ScoreBreakdown:
        cfg = self._config
        w = cfg.weights

        fast_closes = closes(fast, cfg.lookback_bars)
        slow_closes = closes(slow, cfg.lookback_bars)

        fast_short = self._guard(symbol, "sma_fast_short", lambda: sma(fast_closes, cfg.short_period), None)
        fast_long = self._guard(symbol, "sma_fast_long", lambda: sma(fast_closes, cfg.long_period), None)
        slow_short = self._guard(symbol, "sma_slow_short", lambda: sma(slow_closes, cfg.short_period), None)
        slow_long = self._guard(symbol, "sma_slow_long", lambda: sma(slow_closes, cfg.long_period), None)
        fast_rsi = self._guard(symbol, "rsi_fast", lambda: rsi(fast_closes, cfg.rsi_period), None)

        terms: Dict[str, float] = {}
        terms["fast_trend"] = _trend_term(fast_short, fast_long, w.fast_trend)
        terms["slow_trend"] = _trend_term(slow_short, slow_long, w.slow_trend)

        rsi_term = 0.0
        if fast_rsi is not None:
            if fast_rsi < cfg.rsi_oversold:
                rsi_term = w.rsi_extreme
            elif fast_rsi > cfg.rsi_overbought:
                rsi_term = -w.rsi_extreme
        terms["rsi"] = rsi_term

        spike = self._guard(symbol, "volume", lambda: self._volume_spike(base), False)
        terms["volume"] = w.volume_spike if spike else 0.0

        terms["wick"] = self._guard(symbol, "wick", lambda: _wick_term(fast[-1], w.wick), 0.0)

        for detector in self._detectors:
            fired = self._guard(
                symbol,
                f"pattern.{detector.name}",
                lambda d=detector: bool(d.detect(symbol, base, fast, slow)),
                False,
            )
            terms[detector.name] = float(detector.weight) if fired else 0.0

        near_round = self._guard(symbol, "round_number", lambda: self._near_round(fast[-1].close), False)
        terms["round_number"] = w.round_number if near_round else 0.0

        raw = cfg.base_score + sum(terms.values())
        confidence = max(cfg.min_confidence, min(cfg.max_confidence, round_half_up(raw)))

        return ScoreBreakdown(
            raw_score=raw,
            confidence=confidence,
            fast_short=fast_short,
            fast_long=fast_long,
            terms=terms,
        )

    def _volume_spike(self, base: Sequence[Bar]) -> bool:
        window = [bar.volume for bar in base[-self._config.volume_window :]]
        if not window:
            return False
        if not all(math.isfinite(v) for v in window):
            raise ValueError("non-finite volume in window")
        avg = sum(window) / len(window)
        return window[-1] > avg * self._config.volume_multiplier

    def _near_round(self, price: float) -> bool:
        if not math.isfinite(price):
            raise ValueError(f"non-finite price {price}")
        return abs(round_half_up(price) - price) < price * self._config.round_tolerance_pct

    def _guard(self, symbol: str, term: str, compute: Callable[[], T], default: T) -> T:
        """Run one term's computation; any failure makes the term neutral."""
        try:
            return compute()
        except Exception as e:
            logger.warning(f"{symbol}: {term} failed, treating as neutral: {e}")
            if self._metrics:
                self._metrics.record_error("scoring_engine", term)
            return default


def _trend_term(short: Optional[float], long: Optional[float], weight: float) -> float:
    if short is None or long is None:
        return 0.0
    return weight if short > long else -weight


def _wick_term(bar: Bar, weight: float) -> float:
    upper = bar.upper_wick
    lower = bar.lower_wick
    if lower > upper:
        return weight
    if upper > lower:
        return -weight
    return 0.0
