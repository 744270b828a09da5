"""
SignalEmitter - periodic driver of the scoring engine.

Every interval, for each watched instrument:
    1. Seed the base series from the tick source while it is short
    2. Score the instrument (off the event loop, one thread per instrument)
    3. Publish {"type": "signal"} and {"type": "log"} messages

Each cycle runs under its own cycle id for log correlation. A failure for one
instrument is logged and never affects its siblings or later cycles.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Set

from barsignal.domain.events.event_types import MessageType, make_message
from barsignal.domain.signals.data.bar_store import BarStore
from barsignal.domain.signals.models import Signal
from barsignal.domain.signals.scoring_engine import ScoringEngine
from barsignal.utils.logging_setup import get_logger
from barsignal.utils.perf_logger import log_timing_async
from barsignal.utils.trace_context import new_cycle
from .broadcaster import SignalBroadcaster

if TYPE_CHECKING:
    from barsignal.infrastructure.observability import SignalMetrics
    from barsignal.infrastructure.tick_sources import TickSource


logger = get_logger(__name__)


class SignalEmitter:
    """
    Periodic signal producer plus the synchronous on-demand path.

    Example:
        emitter = SignalEmitter(store, engine, broadcaster, ["BTCUSDT"], interval_sec=5)
        await emitter.start()
        ...
        await emitter.stop()
    """

    def __init__(
        self,
        bar_store: BarStore,
        scoring_engine: ScoringEngine,
        broadcaster: SignalBroadcaster,
        watch_list: Sequence[str],
        interval_sec: float = 5.0,
        market: str = "binary",
        tick_source: Optional["TickSource"] = None,
        min_bars: int = 30,
        metrics: Optional["SignalMetrics"] = None,
    ):
        """
        Initialize the emitter.

        Args:
            bar_store: Store the seeding fallback writes into
            scoring_engine: Engine producing signals
            broadcaster: Publish boundary
            watch_list: Instruments scored every cycle
            interval_sec: Seconds between cycles
            market: Market label for periodic signals
            tick_source: Optional source used to seed short series
            min_bars: Base bar count below which the seeding fallback runs
            metrics: Metrics collector for error counts
        """
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive, got {interval_sec}")

        self._store = bar_store
        self._engine = scoring_engine
        self._broadcaster = broadcaster
        self._watch_list: List[str] = [s.upper() for s in watch_list]
        self._interval = interval_sec
        self._market = market
        self._tick_source = tick_source
        self._min_bars = min_bars
        self._metrics = metrics

        self._running = False
        self._timer_task: Optional[asyncio.Task] = None
        self._in_flight: Set[str] = set()

        self._stats = {
            "cycles": 0,
            "signals": 0,
            "skipped_in_flight": 0,
            "errors": 0,
        }

    @property
    def watch_list(self) -> List[str]:
        return list(self._watch_list)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the periodic loop. The first cycle runs immediately."""
        if self._running:
            logger.warning("Signal emitter already running")
            return

        self._running = True
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(
            f"Signal emitter started: {','.join(self._watch_list)} every {self._interval}s"
        )

    async def stop(self) -> None:
        """Stop the loop and wait for the current cycle to be cancelled."""
        logger.info("Stopping signal emitter...")
        self._running = False

        if self._timer_task:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        logger.info("Signal emitter stopped")

    async def _timer_loop(self) -> None:
        first_run = True
        while self._running:
            try:
                if first_run:
                    first_run = False
                else:
                    await asyncio.sleep(self._interval)

                with new_cycle() as cycle_id:
                    logger.debug(f"[{cycle_id}] Emit cycle started")
                    async with log_timing_async("emit_cycle", warn_threshold_ms=2000):
                        await self.run_cycle()

            except asyncio.CancelledError:
                logger.debug("Emitter loop cancelled")
                break
            except Exception as e:
                logger.error(f"Emitter loop error: {e}", exc_info=True)

    async def run_cycle(self) -> List[Signal]:
        """
        Score every watched instrument concurrently and publish the results.

        Returns:
            Signals produced this cycle (instruments with too little data,
            in flight, or failing are absent)
        """
        self._stats["cycles"] += 1
        pending = []
        for instrument in self._watch_list:
            if instrument in self._in_flight:
                self._stats["skipped_in_flight"] += 1
                logger.debug(f"{instrument}: previous cycle still running, skipping")
                continue
            pending.append(self._run_instrument(instrument))

        results = await asyncio.gather(*pending)
        return [signal for signal in results if signal is not None]

    async def _run_instrument(self, instrument: str) -> Optional[Signal]:
        self._in_flight.add(instrument)
        try:
            signal = await asyncio.to_thread(self._seed_and_score, instrument)
        except Exception as e:
            self._stats["errors"] += 1
            logger.error(f"Scoring failed for {instrument}: {e}", exc_info=True)
            if self._metrics:
                self._metrics.record_error("signal_emitter", "score")
            return None
        finally:
            self._in_flight.discard(instrument)

        if signal is None:
            return None

        self._stats["signals"] += 1
        self._publish(signal)
        return signal

    def _seed_and_score(self, instrument: str) -> Optional[Signal]:
        if self._tick_source is not None and self._store.bar_count(instrument) < self._min_bars:
            tick = self._tick_source.next_tick(instrument)
            if tick is not None:
                self._store.ingest_tick(tick)
        return self._engine.score(instrument, self._market)

    def _publish(self, signal: Signal) -> None:
        self._broadcaster.publish(make_message(MessageType.SIGNAL, signal.to_dict()))
        self._broadcaster.publish(
            make_message(
                MessageType.LOG,
                f"Signal {signal.instrument} {signal.direction.value} conf:{signal.confidence}",
            )
        )

    def request_signal(self, instrument: str, market: str = "binary") -> Optional[Signal]:
        """
        Score one instrument on demand.

        The result is returned to the caller only; nothing is broadcast.
        The signal is still recorded in history by the engine.
        """
        return self._engine.score(instrument.upper(), market)

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
