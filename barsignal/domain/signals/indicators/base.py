"""
Shared input handling for the indicator functions.

Indicators are stateless functions of an ordered close sequence. Short input
is not an error (callers get None); malformed input is.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from barsignal.domain.exceptions import IndicatorError

PriceInput = Union[Sequence[float], np.ndarray]


def as_price_array(closes: PriceInput) -> np.ndarray:
    """
    Convert closes to a 1-D float64 array.

    Raises:
        IndicatorError: If any value is NaN or infinite, or the input is not 1-D
    """
    arr = np.asarray(closes, dtype=np.float64)
    if arr.ndim != 1:
        raise IndicatorError(f"closes must be one-dimensional, got shape {arr.shape}")
    if arr.size and not np.all(np.isfinite(arr)):
        raise IndicatorError("closes contain non-finite values")
    return arr


def check_period(period: int) -> int:
    if int(period) != period or period <= 0:
        raise IndicatorError(f"period must be a positive integer, got {period!r}")
    return int(period)
