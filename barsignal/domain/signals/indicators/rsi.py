"""
RSI (Relative Strength Index).

Measures the speed and magnitude of recent price changes to evaluate
overbought or oversold conditions. Uses Wilder's smoothing: the first
average is the plain mean of `period` deltas, later ones are
avg = (prev * (period - 1) + current) / period.

Edge cases:
- No losses in the window saturates at 100 (flat prices included)
- No gains with some losses gives 0
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .base import PriceInput, as_price_array, check_period

DEFAULT_PERIOD = 14


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def rsi_series(closes: PriceInput, period: int = DEFAULT_PERIOD) -> np.ndarray:
    """
    RSI aligned with the input.

    Returns:
        float64 array; the first `period` entries are NaN
    """
    period = check_period(period)
    close = as_price_array(closes)
    n = len(close)
    out = np.full(n, np.nan, dtype=np.float64)
    if n < period + 1:
        return out

    delta = np.diff(close)
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(delta)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return out


def rsi(closes: PriceInput, period: int = DEFAULT_PERIOD) -> Optional[float]:
    """
    Latest RSI value in [0, 100].

    Returns:
        RSI, or None if fewer than period + 1 closes are given
    """
    series = rsi_series(closes, period)
    if not len(series) or np.isnan(series[-1]):
        return None
    return float(series[-1])
