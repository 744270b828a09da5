"""Tick sources: the TickSource interface, a synthetic generator and an async feed."""

from .base import TickSource
from .feed import TickFeed
from .synthetic import SyntheticTickSource

__all__ = [
    "SyntheticTickSource",
    "TickFeed",
    "TickSource",
]
