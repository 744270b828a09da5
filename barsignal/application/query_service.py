"""Read-only query boundary: signal history and instrument table."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Sequence

from barsignal.domain.signals.instruments import InstrumentRegistry
from barsignal.domain.signals.signal_history import SignalHistory
from barsignal.utils.timezone import now_utc, to_iso


class QueryService:
    """Backs the history replay and pairs listing endpoints."""

    def __init__(
        self,
        history: SignalHistory,
        instruments: InstrumentRegistry,
        watch_list: Sequence[str] = (),
        clock: Callable[[], datetime] = now_utc,
    ):
        self._history = history
        self._instruments = instruments
        self._watch_list = [s.upper() for s in watch_list]
        self._clock = clock

    def history(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Recent signals, newest first."""
        return {"ok": True, "history": self._history.to_dicts(limit)}

    def pairs(self) -> Dict[str, Any]:
        """
        Watched instruments first, then the remaining configured ones.

        `available` marks instruments on the watch list (scored every cycle).
        Watched symbols missing from the instrument table are listed with
        the default metadata.
        """
        symbols = self._watch_list + [
            s for s in self._instruments.symbols() if s not in self._watch_list
        ]
        pairs = []
        for symbol in symbols:
            meta = self._instruments.get(symbol)
            pairs.append(
                {
                    "symbol": meta.symbol,
                    "type": meta.category,
                    "precision": meta.precision,
                    "available": symbol in self._watch_list,
                }
            )
        return {"ok": True, "pairs": pairs, "server_time": to_iso(self._clock())}
