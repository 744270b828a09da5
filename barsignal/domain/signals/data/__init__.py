"""Data pipeline components for the signal engine (bar store, resampling)."""

from .bar_store import BarStore
from .resampler import closes, resample

__all__ = [
    "BarStore",
    "closes",
    "resample",
]
