"""Unit tests for the structural pattern detectors."""

import pytest

from config.models import PatternConfig
from barsignal.domain.signals.patterns import (
    FairValueGapDetector,
    OrderBlockDetector,
    PatternDetector,
    build_detectors,
)


class TestOrderBlockDetector:
    """Bearish candle followed by a bullish run."""

    def test_detects_retest_of_block(self, make_bars) -> None:
        bars = make_bars(
            [
                (10.0, 10.2, 9.0, 9.2),   # bearish block [9.0, 10.2]
                (9.2, 9.6, 9.1, 9.5),
                (9.5, 9.9, 9.4, 9.8),
                (9.8, 10.3, 9.7, 10.2),
                (10.2, 10.6, 10.1, 10.5),
                (10.5, 10.6, 9.9, 10.0),  # pulls back into the block
            ]
        )
        assert OrderBlockDetector().detect("X", [], bars, []) is True

    def test_price_outside_block(self, make_bars) -> None:
        bars = make_bars(
            [
                (10.0, 10.2, 9.0, 9.2),
                (9.2, 9.6, 9.1, 9.5),
                (9.5, 9.9, 9.4, 9.8),
                (9.8, 10.3, 9.7, 10.2),
                (10.2, 10.6, 10.1, 10.5),
                (10.5, 11.6, 10.4, 11.5),
            ]
        )
        assert OrderBlockDetector().detect("X", [], bars, []) is False

    def test_weak_follow_through(self, make_bars) -> None:
        bars = make_bars(
            [
                (10.0, 10.2, 9.0, 9.2),
                (9.2, 9.6, 9.1, 9.5),
                (9.5, 9.6, 9.2, 9.3),
                (9.3, 9.4, 9.0, 9.1),
                (9.1, 9.6, 9.0, 9.5),
                (9.5, 9.8, 9.4, 9.7),
            ]
        )
        assert OrderBlockDetector().detect("X", [], bars, []) is False

    def test_too_few_bars(self, make_bars) -> None:
        bars = make_bars([(1.0, 1.0, 1.0, 1.0)] * 3)
        assert OrderBlockDetector().detect("X", [], bars, []) is False

    def test_invalid_parameters(self) -> None:
        with pytest.raises(ValueError):
            OrderBlockDetector(lookahead=3, min_follow=4)


class TestFairValueGapDetector:
    """Unfilled upward three-candle gap."""

    def test_detects_unfilled_gap(self, make_bars) -> None:
        bars = make_bars(
            [
                (9.0, 10.0, 8.9, 9.9),    # c1 high 10.0
                (9.9, 11.5, 9.9, 11.4),
                (11.4, 12.0, 11.0, 11.8), # c3 low 11.0 -> gap [10.0, 11.0]
                (11.8, 11.9, 10.4, 10.5), # close inside, low above 10.0
            ]
        )
        assert FairValueGapDetector().detect("X", [], bars, []) is True

    def test_filled_gap(self, make_bars) -> None:
        bars = make_bars(
            [
                (9.0, 10.0, 8.9, 9.9),
                (9.9, 11.5, 9.9, 11.4),
                (11.4, 12.0, 11.0, 11.8),
                (11.8, 11.9, 9.8, 10.5),  # wick trades through the gap low
            ]
        )
        assert FairValueGapDetector().detect("X", [], bars, []) is False

    def test_no_gap(self, make_bars) -> None:
        bars = make_bars([(1.0, 1.1, 0.9, 1.0)] * 6)
        assert FairValueGapDetector().detect("X", [], bars, []) is False


class TestBuildDetectors:
    def test_disabled_by_default(self) -> None:
        patterns = {
            "order_block": PatternConfig(enabled=False, weight=10.0),
            "fair_value_gap": PatternConfig(enabled=False, weight=8.0),
        }
        assert build_detectors(patterns) == []

    def test_enabled_with_weights(self) -> None:
        detectors = build_detectors(
            {
                "order_block": PatternConfig(enabled=True, weight=12.0),
                "fair_value_gap": PatternConfig(enabled=True, weight=5.0),
            }
        )
        assert [d.name for d in detectors] == ["order_block", "fair_value_gap"]
        assert [d.weight for d in detectors] == [12.0, 5.0]
        assert all(isinstance(d, PatternDetector) for d in detectors)

    def test_unknown_enabled_pattern(self) -> None:
        with pytest.raises(ValueError, match="Unknown pattern detector"):
            build_detectors({"head_and_shoulders": PatternConfig(enabled=True, weight=1.0)})

    def test_unknown_disabled_pattern_ignored(self) -> None:
        assert build_detectors({"head_and_shoulders": PatternConfig()}) == []
