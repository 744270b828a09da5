"""
Application Bootstrap - Composition Root for Service Wiring.

AppContainer builds every component from an AppConfig with explicit handles;
nothing is held in module-level state.

Usage:
    container = AppContainer(config)
    container.initialize()
    await container.start()
    # ... run application ...
    await container.cleanup()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from config.models import AppConfig

from barsignal.domain.signals.boost_policy import BoostPolicy
from barsignal.domain.signals.data.bar_store import BarStore
from barsignal.domain.signals.instruments import InstrumentRegistry
from barsignal.domain.signals.patterns import PatternDetector, build_detectors
from barsignal.domain.signals.scoring_engine import ScoringEngine
from barsignal.domain.signals.signal_history import SignalHistory
from barsignal.infrastructure.observability import SignalMetrics
from barsignal.infrastructure.tick_sources import SyntheticTickSource, TickFeed
from barsignal.utils.logging_setup import get_logger
from .broadcaster import SignalBroadcaster
from .message_handler import MessageHandler
from .query_service import QueryService
from .signal_emitter import SignalEmitter

logger = get_logger(__name__)


@dataclass
class AppContainer:
    """
    Composition root for all application services.

    Attributes:
        config: Application configuration.
        metrics: Metrics collector shared by all components (None disables).
    """

    config: AppConfig
    metrics: Optional[SignalMetrics] = None

    instruments: Optional[InstrumentRegistry] = field(default=None, init=False)
    bar_store: Optional[BarStore] = field(default=None, init=False)
    history: Optional[SignalHistory] = field(default=None, init=False)
    detectors: List[PatternDetector] = field(default_factory=list, init=False)
    scoring_engine: Optional[ScoringEngine] = field(default=None, init=False)
    broadcaster: Optional[SignalBroadcaster] = field(default=None, init=False)
    tick_source: Optional[SyntheticTickSource] = field(default=None, init=False)
    feed: Optional[TickFeed] = field(default=None, init=False)
    emitter: Optional[SignalEmitter] = field(default=None, init=False)
    message_handler: Optional[MessageHandler] = field(default=None, init=False)
    query_service: Optional[QueryService] = field(default=None, init=False)

    _initialized: bool = field(default=False, init=False)

    def initialize(self) -> None:
        """Create all components in dependency order."""
        if self._initialized:
            raise RuntimeError("AppContainer already initialized")

        cfg = self.config
        watch_list = cfg.signals.watch_list

        # Phase 1: data
        self.instruments = InstrumentRegistry.from_config(cfg.instruments)
        self.bar_store = BarStore(
            retention=cfg.bar_store.retention,
            base_stride=cfg.bar_store.base_stride,
            metrics=self.metrics,
        )
        self.history = SignalHistory(capacity=cfg.history.capacity)

        # Phase 2: scoring
        self.detectors = build_detectors(cfg.scoring.patterns)
        self.scoring_engine = ScoringEngine(
            bar_store=self.bar_store,
            history=self.history,
            config=cfg.scoring,
            instruments=self.instruments,
            pattern_detectors=self.detectors,
            boost_policy=BoostPolicy(cfg.scoring.boost_probability, cfg.scoring.boost_seed),
            metrics=self.metrics,
        )

        # Phase 3: boundaries and drivers
        self.broadcaster = SignalBroadcaster(
            queue_size=cfg.broadcast.subscriber_queue_size,
            metrics=self.metrics,
        )
        self.tick_source = SyntheticTickSource(self.instruments, seed=cfg.feed.seed)
        if cfg.feed.enabled:
            self.feed = TickFeed(
                self.tick_source,
                self.bar_store,
                watch_list,
                interval_sec=cfg.feed.tick_interval_sec,
            )
        self.emitter = SignalEmitter(
            bar_store=self.bar_store,
            scoring_engine=self.scoring_engine,
            broadcaster=self.broadcaster,
            watch_list=watch_list,
            interval_sec=cfg.signals.emit_interval_sec,
            market=cfg.signals.market,
            tick_source=self.tick_source,
            min_bars=cfg.scoring.min_bars,
            metrics=self.metrics,
        )
        self.message_handler = MessageHandler(
            self.emitter,
            watch_list=watch_list,
            default_market=cfg.signals.market,
        )
        self.query_service = QueryService(self.history, self.instruments, watch_list)

        self._initialized = True
        logger.info(
            f"AppContainer initialized: watching {','.join(watch_list)}, "
            f"feed={'on' if self.feed else 'off'}, detectors={[d.name for d in self.detectors]}"
        )

    async def start(self) -> None:
        if not self._initialized:
            raise RuntimeError("AppContainer not initialized")
        if self.feed:
            await self.feed.start()
        await self.emitter.start()

    async def cleanup(self) -> None:
        """Stop drivers in reverse order and close subscriptions."""
        logger.info("Starting cleanup")
        if self.emitter:
            await self.emitter.stop()
        if self.feed:
            await self.feed.stop()
        if self.broadcaster:
            self.broadcaster.close_all()
        logger.info("Cleanup complete")
