"""
Signal domain: ticks -> base bars -> resampled series -> scored signals.
"""

from .boost_policy import BoostPolicy
from .data import BarStore, resample
from .instruments import InstrumentRegistry
from .models import Bar, InstrumentMeta, Signal, SignalDirection, Tick
from .patterns import FairValueGapDetector, OrderBlockDetector, PatternDetector, build_detectors
from .scoring_engine import ScoreBreakdown, ScoringEngine, derive_direction
from .signal_history import SignalHistory

__all__ = [
    "Bar",
    "BarStore",
    "BoostPolicy",
    "FairValueGapDetector",
    "InstrumentMeta",
    "InstrumentRegistry",
    "OrderBlockDetector",
    "PatternDetector",
    "ScoreBreakdown",
    "ScoringEngine",
    "Signal",
    "SignalDirection",
    "SignalHistory",
    "Tick",
    "build_detectors",
    "derive_direction",
    "resample",
]
