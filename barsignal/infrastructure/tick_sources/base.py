"""Tick source interface."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from barsignal.domain.signals.models import Tick


@runtime_checkable
class TickSource(Protocol):
    """
    Anything that can produce the next tick for an instrument.

    A live exchange connector and the synthetic demo generator both satisfy
    this; consumers never depend on a concrete source.
    """

    def next_tick(self, instrument: str) -> Optional[Tick]:
        """Return the next tick, or None if the source has nothing for it."""
        ...
