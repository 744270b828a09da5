"""
Structural pattern detectors.

Detectors are consulted by the ScoringEngine through the PatternDetector
protocol only; each one that fires adds its weight to the score. Both shipped
detectors look for bullish structure on the fast series and are disabled in
the default configuration.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Protocol, Sequence, runtime_checkable

from config.models import PatternConfig

from barsignal.utils.logging_setup import get_logger
from .models import Bar

logger = get_logger(__name__)


@runtime_checkable
class PatternDetector(Protocol):
    """
    Capability interface for structural heuristics.

    Attributes:
        name: Unique identifier, used in signal notes
        weight: Score contribution when detect() is True
    """

    name: str
    weight: float

    def detect(
        self,
        instrument: str,
        base: Sequence[Bar],
        fast: Sequence[Bar],
        slow: Sequence[Bar],
    ) -> bool:
        ...


class OrderBlockDetector:
    """
    Bullish order block: a bearish candle followed by a bullish run.

    Fires when, within the trailing `scan` fast bars, a bearish candle is
    followed by at least `min_follow` bullish candles out of the next
    `lookahead`, and the latest close sits inside that candle's range
    (high extended by `tolerance_pct`).
    """

    name = "order_block"

    def __init__(
        self,
        weight: float = 10.0,
        lookahead: int = 5,
        min_follow: int = 4,
        scan: int = 30,
        tolerance_pct: float = 0.002,
    ) -> None:
        if min_follow > lookahead:
            raise ValueError(f"min_follow ({min_follow}) cannot exceed lookahead ({lookahead})")
        self.weight = weight
        self._lookahead = lookahead
        self._min_follow = min_follow
        self._scan = scan
        self._tolerance = tolerance_pct

    def detect(
        self,
        instrument: str,
        base: Sequence[Bar],
        fast: Sequence[Bar],
        slow: Sequence[Bar],
    ) -> bool:
        if len(fast) < self._lookahead + 1:
            return False

        price = fast[-1].close
        window = list(fast[-self._scan :])
        # A candidate block needs a full lookahead window after it
        for i in range(len(window) - self._lookahead - 1, -1, -1):
            candle = window[i]
            if not candle.is_bearish:
                continue
            following = window[i + 1 : i + 1 + self._lookahead]
            bullish = sum(1 for bar in following if bar.is_bullish)
            if bullish < self._min_follow:
                continue
            if candle.low <= price <= candle.high * (1 + self._tolerance):
                logger.debug(
                    f"{instrument}: order block at t={candle.time} "
                    f"[{candle.low}, {candle.high}] contains {price}"
                )
                return True
        return False


class FairValueGapDetector:
    """
    Bullish fair value gap: three candles where the third's low is above the
    first's high, the gap is still unfilled, and the latest close is inside it.
    """

    name = "fair_value_gap"

    def __init__(self, weight: float = 8.0, scan: int = 30) -> None:
        self.weight = weight
        self._scan = scan

    def detect(
        self,
        instrument: str,
        base: Sequence[Bar],
        fast: Sequence[Bar],
        slow: Sequence[Bar],
    ) -> bool:
        if len(fast) < 4:
            return False

        price = fast[-1].close
        window = list(fast[-self._scan :])
        # Triples end before the latest bar so the gap has a chance to be revisited
        for i in range(len(window) - 4, -1, -1):
            c1, c3 = window[i], window[i + 2]
            if c3.low <= c1.high:
                continue
            gap_low, gap_high = c1.high, c3.low
            if not gap_low <= price <= gap_high:
                continue
            filled = any(bar.low <= gap_low for bar in window[i + 3 :])
            if not filled:
                logger.debug(f"{instrument}: unfilled FVG [{gap_low}, {gap_high}] contains {price}")
                return True
        return False


DETECTOR_FACTORIES: Dict[str, Callable[[float], PatternDetector]] = {
    OrderBlockDetector.name: lambda weight: OrderBlockDetector(weight=weight),
    FairValueGapDetector.name: lambda weight: FairValueGapDetector(weight=weight),
}


def build_detectors(patterns: Mapping[str, PatternConfig]) -> List[PatternDetector]:
    """
    Instantiate the enabled detectors from configuration.

    Raises:
        ValueError: If an enabled pattern has no registered detector
    """
    detectors: List[PatternDetector] = []
    for name, cfg in patterns.items():
        if not cfg.enabled:
            continue
        factory = DETECTOR_FACTORIES.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown pattern detector '{name}'. Available: {sorted(DETECTOR_FACTORIES)}"
            )
        detectors.append(factory(cfg.weight))
        logger.info(f"Pattern detector enabled: {name} (weight={cfg.weight})")
    return detectors
