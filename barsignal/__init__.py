"""barsignal - tick-to-bar aggregation and multi-timeframe trade signal scoring."""

__version__ = "0.1.0"
