"""Instrument metadata table."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping

from config.models import InstrumentConfig

from .models import InstrumentMeta

DEFAULT_PRECISION = 4


class InstrumentRegistry:
    """
    Lookup table of instrument metadata.

    Unknown instruments resolve to an "otc" entry with DEFAULT_PRECISION so
    on-demand requests for unlisted symbols still format sensibly.
    """

    def __init__(self, instruments: Iterable[InstrumentMeta] = ()) -> None:
        self._instruments: Dict[str, InstrumentMeta] = {m.symbol.upper(): m for m in instruments}

    @classmethod
    def from_config(cls, instruments: Mapping[str, InstrumentConfig]) -> "InstrumentRegistry":
        return cls(
            InstrumentMeta(
                symbol=cfg.symbol,
                category=cfg.category,
                precision=cfg.precision,
                base_price=cfg.base_price,
                noise=cfg.noise,
                max_size=cfg.max_size,
            )
            for cfg in instruments.values()
        )

    def get(self, symbol: str) -> InstrumentMeta:
        key = symbol.upper()
        meta = self._instruments.get(key)
        if meta is None:
            return InstrumentMeta(symbol=key, category="otc", precision=DEFAULT_PRECISION)
        return meta

    def symbols(self) -> List[str]:
        return list(self._instruments)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper() in self._instruments

    def __iter__(self) -> Iterator[InstrumentMeta]:
        return iter(self._instruments.values())

    def __len__(self) -> int:
        return len(self._instruments)
