"""Async pump from a TickSource into the BarStore."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from barsignal.domain.exceptions import InvalidTickError
from barsignal.domain.signals.data.bar_store import BarStore
from barsignal.utils.logging_setup import get_logger
from .base import TickSource

logger = get_logger(__name__)


class TickFeed:
    """
    Pulls one tick per watched instrument every interval and ingests it.

    A source failure or invalid tick for one instrument is logged and does
    not stop the feed.
    """

    def __init__(
        self,
        source: TickSource,
        bar_store: BarStore,
        watch_list: Sequence[str],
        interval_sec: float = 1.0,
    ):
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive, got {interval_sec}")
        self._source = source
        self._store = bar_store
        self._watch_list: List[str] = [s.upper() for s in watch_list]
        self._interval = interval_sec

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._stats = {"ticks": 0, "empty": 0, "errors": 0}

    @property
    def is_running(self) -> bool:
        return self._running

    def pump_once(self) -> int:
        """Pull and ingest one tick per instrument. Returns ticks ingested."""
        ingested = 0
        for instrument in self._watch_list:
            try:
                tick = self._source.next_tick(instrument)
                if tick is None:
                    self._stats["empty"] += 1
                    continue
                self._store.ingest_tick(tick)
                ingested += 1
            except InvalidTickError as e:
                self._stats["errors"] += 1
                logger.warning(f"Feed rejected tick: {e}")
            except Exception as e:
                self._stats["errors"] += 1
                logger.error(f"Tick source error for {instrument}: {e}", exc_info=True)
        self._stats["ticks"] += ingested
        return ingested

    async def start(self) -> None:
        if self._running:
            logger.warning("Tick feed already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Tick feed started: {len(self._watch_list)} instruments every {self._interval}s"
        )

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info(f"Tick feed stopped ({self._stats['ticks']} ticks ingested)")

    async def _run(self) -> None:
        while self._running:
            self.pump_once()
            await asyncio.sleep(self._interval)

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
