"""Domain exceptions."""

from __future__ import annotations


class BarSignalError(Exception):
    """Base class for domain errors."""


class InvalidTickError(BarSignalError, ValueError):
    """Tick carries a non-positive price or a negative size."""

    def __init__(self, instrument: str, field: str, value: float) -> None:
        self.instrument = instrument
        self.field = field
        self.value = value
        super().__init__(f"Invalid tick for {instrument}: {field}={value!r}")


class IndicatorError(BarSignalError, ValueError):
    """Indicator input is malformed (non-finite values, bad period)."""
