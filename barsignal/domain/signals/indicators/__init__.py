"""
Indicator layer: stateless numeric functions over closing prices.

Each scalar function returns the latest value, or None when the input is
shorter than the indicator's warmup. Non-finite input raises IndicatorError.
"""

from .base import as_price_array
from .moving_average import ema, ema_series, sma, sma_series
from .rsi import rsi, rsi_series

__all__ = [
    "as_price_array",
    "ema",
    "ema_series",
    "rsi",
    "rsi_series",
    "sma",
    "sma_series",
]
