"""Boost flag policy for emitted signals."""

from __future__ import annotations

import random
from typing import Optional

DEFAULT_BOOST_PROBABILITY = 0.8


class BoostPolicy:
    """
    Decides the boosted_flag of a signal.

    The flag is True with the configured probability. A seed makes the
    sequence reproducible; probability 0.0 and 1.0 are fully deterministic.
    """

    def __init__(
        self,
        probability: float = DEFAULT_BOOST_PROBABILITY,
        seed: Optional[int] = None,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"boost probability must be in [0, 1], got {probability}")
        self._probability = probability
        self._rng = random.Random(seed)

    @property
    def probability(self) -> float:
        return self._probability

    def decide(self) -> bool:
        return self._rng.random() < self._probability
