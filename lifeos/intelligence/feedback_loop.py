"""
Feedback Loop

Learns per-(signal type, domain) weight modifiers from how the user
treated past signals. Signal kinds that keep getting dismissed sink in the
ranking; kinds the user acts on rise.

Only resolved signals (dismissed or acted on) count, so
effectiveness = acted_on / generated.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from lifeos.config import FeedbackConfig

from .signals import LifeDomain, Signal, SignalType, SignalWeight
from .temporal import utcnow

logger = logging.getLogger(__name__)

WEIGHTS_COLLECTION = "signal_weights"
SIGNALS_COLLECTION = "signals"

_DEFAULT_FEEDBACK = FeedbackConfig()


@dataclass
class FeedbackStats:
    signal_type: SignalType
    domain: LifeDomain
    total_generated: int = 0
    total_dismissed: int = 0
    total_acted_on: int = 0

    @property
    def interactions(self) -> int:
        return self.total_acted_on + self.total_dismissed


def aggregate_feedback(signals: Iterable[Signal]) -> dict[tuple[str, str], FeedbackStats]:
    """Group resolved signals by (type, domain) and count outcomes."""
    stats: dict[tuple[str, str], FeedbackStats] = {}
    for signal in signals:
        if not signal.is_resolved:
            continue
        key = (signal.type.value, signal.domain.value)
        if key not in stats:
            stats[key] = FeedbackStats(signal.type, signal.domain)
        entry = stats[key]
        entry.total_generated += 1
        # Acted on wins when both flags are set.
        if signal.is_acted_on:
            entry.total_acted_on += 1
        else:
            entry.total_dismissed += 1
    return stats


def compute_effectiveness(stats: FeedbackStats, config: FeedbackConfig | None = None) -> float:
    """
    Acted-on fraction in [0, 1].

    Below the minimum interaction count the score is neutral.
    """
    config = config or _DEFAULT_FEEDBACK
    if stats.interactions < config.min_interactions or stats.total_generated == 0:
        return config.neutral_effectiveness
    return stats.total_acted_on / stats.total_generated


def compute_weight_modifier(effectiveness: float, config: FeedbackConfig | None = None) -> float:
    """Monotonic map from effectiveness to multiplier (0.3x at 0%, 2.0x at 100% by default)."""
    config = config or _DEFAULT_FEEDBACK
    effectiveness = min(1.0, max(0.0, effectiveness))
    return config.modifier_floor + effectiveness * config.modifier_span


def apply_feedback_weight(score: float, signal: Signal, weights: Iterable[SignalWeight]) -> float:
    """Multiply ``score`` by the matching weight, or return it unchanged."""
    for weight in weights:
        if weight.signal_type == signal.type and weight.domain == signal.domain:
            return score * weight.weight_modifier
    return score


def compute_signal_weights(
    signals: Iterable[Signal],
    now: datetime | None = None,
    config: FeedbackConfig | None = None,
) -> list[SignalWeight]:
    now = now or utcnow()
    weights = []
    for stats in aggregate_feedback(signals).values():
        effectiveness = compute_effectiveness(stats, config)
        weights.append(
            SignalWeight(
                signal_type=stats.signal_type,
                domain=stats.domain,
                total_generated=stats.total_generated,
                total_dismissed=stats.total_dismissed,
                total_acted_on=stats.total_acted_on,
                effectiveness_score=effectiveness,
                weight_modifier=compute_weight_modifier(effectiveness, config),
                last_updated=now,
            )
        )
    return weights


def persist_weights(store, weights: Iterable[SignalWeight]) -> None:
    """Upsert by (signal_type, domain), keeping the existing document id."""
    for weight in weights:
        doc = weight.to_dict()
        existing = store.find_one(
            WEIGHTS_COLLECTION, {"signal_type": doc["signal_type"], "domain": doc["domain"]}
        )
        if existing and existing.get("id"):
            doc["id"] = existing["id"]
        store.upsert(WEIGHTS_COLLECTION, doc, key_fields=("signal_type", "domain"))


def load_weights(store) -> list[SignalWeight]:
    return [SignalWeight.from_dict(doc) for doc in store.find(WEIGHTS_COLLECTION)]


class FeedbackLoop:
    """Reads signal history, computes weights, persists them."""

    def __init__(self, store=None, config: FeedbackConfig | None = None):
        self.store = store
        self.config = config or _DEFAULT_FEEDBACK

    def history(self) -> list[Signal]:
        if self.store is None:
            return []
        signals = []
        for doc in self.store.find(SIGNALS_COLLECTION):
            try:
                signals.append(Signal.from_dict(doc))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed signal record {doc.get('id')}: {e}")
        return signals

    def compute(
        self, now: datetime | None = None, signals: Iterable[Signal] | None = None
    ) -> list[SignalWeight]:
        """
        Compute the weight table.

        Uses ``signals`` when given, otherwise the store's signal history.
        """
        logger.info("Computing signal weights")
        history = list(signals) if signals is not None else self.history()
        weights = compute_signal_weights(history, now, self.config)
        if self.store is not None:
            persist_weights(self.store, weights)
        logger.info(f"Computed {len(weights)} signal weights from {len(history)} signals")
        return weights
