"""
Synthetic tick generator for demo and offline runs.

Prices are a per-instrument base price plus uniform noise, rounded to the
instrument's precision; sizes are uniform in [0, max_size).
"""

from __future__ import annotations

import random
import time
from typing import Callable, Optional

from barsignal.domain.signals.instruments import InstrumentRegistry
from barsignal.domain.signals.models import Tick
from barsignal.utils.logging_setup import get_logger

logger = get_logger(__name__)


class SyntheticTickSource:
    """
    Uniform noise around each instrument's base price, no drift.

    Unknown instruments fall back to the registry's default metadata
    (base price 1.0, FX-sized noise).
    """

    def __init__(
        self,
        instruments: InstrumentRegistry,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._instruments = instruments
        self._rng = random.Random(seed)
        self._clock = clock

    def next_tick(self, instrument: str) -> Optional[Tick]:
        meta = self._instruments.get(instrument)
        noise = (self._rng.random() - 0.5) * meta.noise
        price = round(meta.base_price + noise, meta.precision)
        if price <= 0:
            logger.debug(f"{meta.symbol}: synthetic price {price} not positive, skipping")
            return None
        size = self._rng.random() * meta.max_size
        return Tick(
            instrument=meta.symbol,
            price=price,
            size=size,
            timestamp=int(self._clock()),
        )
