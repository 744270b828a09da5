"""
Moving averages over a close sequence.

- sma: trailing simple moving average
- ema: exponential moving average seeded with the SMA of the first period

The *_series variants return the full aligned array with NaN for warmup;
the scalar variants return the latest value or None when input is short.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .base import PriceInput, as_price_array, check_period


def sma_series(closes: PriceInput, period: int) -> np.ndarray:
    """SMA aligned with the input; the first period-1 entries are NaN."""
    period = check_period(period)
    close = as_price_array(closes)
    n = len(close)
    out = np.full(n, np.nan, dtype=np.float64)
    if n < period:
        return out

    csum = np.cumsum(np.insert(close, 0, 0.0))
    out[period - 1 :] = (csum[period:] - csum[:-period]) / period
    return out


def sma(closes: PriceInput, period: int) -> Optional[float]:
    """
    Mean of the last `period` closes.

    Returns:
        Latest SMA, or None if fewer than `period` closes are given
    """
    period = check_period(period)
    close = as_price_array(closes)
    if len(close) < period:
        return None
    return float(np.mean(close[-period:]))


def ema_series(closes: PriceInput, period: int) -> np.ndarray:
    period = check_period(period)
    close = as_price_array(closes)
    n = len(close)
    out = np.full(n, np.nan, dtype=np.float64)
    if n < period:
        return out

    alpha = 2.0 / (period + 1)
    out[period - 1] = np.mean(close[:period])
    for i in range(period, n):
        out[i] = alpha * close[i] + (1 - alpha) * out[i - 1]
    return out


def ema(closes: PriceInput, period: int) -> Optional[float]:
    """Latest EMA, or None if fewer than `period` closes are given."""
    series = ema_series(closes, period)
    if not len(series) or np.isnan(series[-1]):
        return None
    return float(series[-1])
