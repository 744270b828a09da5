"""
Resampler - derives coarser bar series from a base series.

Pure function of its input: no stored state, input bars are never mutated.
Derived series are recomputed on demand so they always agree with the
current base series.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from barsignal.domain.signals.models import Bar


def resample(bars: Sequence[Bar], target_stride: int) -> List[Bar]:
    """
    Fold a time-ordered bar series into target_stride buckets.

    Consecutive bars whose bucket start (floor(time / stride) * stride)
    matches are folded into one bar: open of the first, close of the last,
    high/low extrema, summed volume. Groups are contiguous in input order;
    the input is assumed sorted and is not re-sorted. A partial trailing
    group is emitted from the bars available.

    Args:
        bars: Base series, oldest first
        target_stride: Output bar width in seconds

    Returns:
        New list of Bars (empty for empty input)

    Raises:
        ValueError: If target_stride is not positive
    """
    if target_stride <= 0:
        raise ValueError(f"target_stride must be positive, got {target_stride}")

    out: List[Bar] = []
    bucket: Optional[Bar] = None

    for bar in bars:
        start = (bar.time // target_stride) * target_stride
        if bucket is None or bucket.time != start:
            bucket = Bar(
                time=start,
                open=bar.open,
                high=bar.high,
                low=bar.low,
                close=bar.close,
                volume=bar.volume,
            )
            out.append(bucket)
        else:
            if bar.high > bucket.high:
                bucket.high = bar.high
            if bar.low < bucket.low:
                bucket.low = bar.low
            bucket.close = bar.close
            bucket.volume += bar.volume

    return out


def closes(bars: Sequence[Bar], lookback: Optional[int] = None) -> List[float]:
    """Closing prices, optionally limited to the trailing lookback bars."""
    values = [bar.close for bar in bars]
    if lookback is not None:
        return values[-lookback:]
    return values
