"""
Signal intelligence pipeline.

Detectors scan an AnticipationContext for noteworthy conditions, the
synthesizer ranks and deduplicates them, and the learning side (pattern
learner, feedback loop) tunes future cycles.
"""

from .context import AnticipationContext, build_context_from_store, minimal_context
from .engine import AnticipationEngine
from .feedback_loop import FeedbackLoop, compute_signal_weights
from .morning_brief import MorningBrief, generate_morning_brief
from .patterns import PatternLearner, compute_confidence, learn_patterns
from .signal_store import ActiveSignalStore
from .signals import (
    LifeDomain,
    PatternType,
    ProductivityPattern,
    Signal,
    SignalSeverity,
    SignalType,
    SignalWeight,
)
from .synthesizer import rank_signals, synthesize_priorities

__all__ = [
    "ActiveSignalStore",
    "AnticipationContext",
    "AnticipationEngine",
    "FeedbackLoop",
    "LifeDomain",
    "MorningBrief",
    "PatternLearner",
    "PatternType",
    "ProductivityPattern",
    "Signal",
    "SignalSeverity",
    "SignalType",
    "SignalWeight",
    "build_context_from_store",
    "compute_confidence",
    "compute_signal_weights",
    "generate_morning_brief",
    "learn_patterns",
    "minimal_context",
    "rank_signals",
    "synthesize_priorities",
]
