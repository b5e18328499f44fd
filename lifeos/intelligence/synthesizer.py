"""
Priority Synthesizer

Turns the union of candidate signals into one ranked, deduplicated list:

1. Base score from severity
2. Multiplied by the learned weight for (type, domain), when there is one
3. Deduplicated by (type, related ids as a set), highest severity wins
4. Stable sort by score, descending; among equal scores, signals that
   concern an urgent/high task due soon go first

Deterministic for identical inputs.
"""

import logging
from collections.abc import Iterable, Mapping

from lifeos.config import ScoringConfig

from .context import AnticipationContext
from .signals import Signal, SignalSeverity, SignalWeight
from .temporal import parse_date

logger = logging.getLogger(__name__)

_DEFAULT_SCORING = ScoringConfig()

WeightTable = Iterable[SignalWeight] | Mapping[tuple[str, str], SignalWeight]


def score_severity(severity: SignalSeverity, scoring: ScoringConfig | None = None) -> float:
    scoring = scoring or _DEFAULT_SCORING
    return float(scoring.severity_scores[SignalSeverity(severity).value])


def weight_lookup(weights: WeightTable | None) -> dict[tuple[str, str], float]:
    """Normalize a weight table into {(type, domain): modifier}."""
    if not weights:
        return {}
    values = weights.values() if isinstance(weights, Mapping) else weights
    return {w.key: w.weight_modifier for w in values}


def boosted_task_ids(context: AnticipationContext, scoring: ScoringConfig | None = None) -> set[str]:
    """Ids of open urgent/high tasks due within the planning horizon (overdue included)."""
    scoring = scoring or _DEFAULT_SCORING
    ids = set()
    for task in context.tasks:
        if task.get("status") in ("completed", "dismissed"):
            continue
        if task.get("priority") not in scoring.boosted_priorities:
            continue
        due = parse_date(task.get("due_date"))
        if due is None:
            continue
        if (due - context.today).days <= scoring.planning_horizon_days:
            ids.add(str(task.get("id")))
    return ids


def score_signal(
    signal: Signal,
    modifiers: dict[tuple[str, str], float],
    scoring: ScoringConfig | None = None,
) -> float:
    score = score_severity(signal.severity, scoring)
    modifier = modifiers.get((signal.type.value, signal.domain.value))
    if modifier is not None:
        score *= modifier
    return score


def task_boost(signal: Signal, boosted: set[str], scoring: ScoringConfig | None = None) -> float:
    """Tie-break weight; never added to the score."""
    scoring = scoring or _DEFAULT_SCORING
    if boosted and boosted.intersection(signal.related_entity_ids):
        return scoring.priority_task_boost
    return 0.0


def _better(candidate: tuple[Signal, float], current: tuple[Signal, float]) -> bool:
    cand_rank, cur_rank = candidate[0].severity.rank, current[0].severity.rank
    if cand_rank != cur_rank:
        return cand_rank > cur_rank
    return candidate[1] > current[1]


def deduplicate_scored(scored: list[tuple[Signal, float]]) -> list[tuple[Signal, float]]:
    """
    Collapse entries sharing a dedupe key.

    The survivor takes the slot of the key's first occurrence so the later
    stable sort still reflects input order among equal scores.
    """
    slots: dict[tuple, int] = {}
    kept: list[tuple[Signal, float]] = []
    for entry in scored:
        key = entry[0].dedupe_key
        if key not in slots:
            slots[key] = len(kept)
            kept.append(entry)
        elif _better(entry, kept[slots[key]]):
            kept[slots[key]] = entry
    return kept


def deduplicate_signals(signals: list[Signal], scoring: ScoringConfig | None = None) -> list[Signal]:
    """Dedupe without weights or boosts (severity, then base score)."""
    scored = [(s, score_severity(s.severity, scoring)) for s in signals]
    return [s for s, _ in deduplicate_scored(scored)]


def rank_signals(
    signals: list[Signal],
    context: AnticipationContext,
    weights: WeightTable | None = None,
    scoring: ScoringConfig | None = None,
) -> list[tuple[Signal, float]]:
    """Ranked (signal, score) pairs, highest score first."""
    if not signals:
        return []
    scoring = scoring or _DEFAULT_SCORING
    modifiers = weight_lookup(weights)
    boosted = boosted_task_ids(context, scoring)

    scored = [(s, score_signal(s, modifiers, scoring)) for s in signals]
    kept = deduplicate_scored(scored)
    kept.sort(key=lambda pair: (pair[1], task_boost(pair[0], boosted, scoring)), reverse=True)

    if len(kept) < len(scored):
        logger.debug(f"Deduplicated {len(scored) - len(kept)} of {len(scored)} candidate signals")
    return kept


def synthesize_priorities(
    signals: list[Signal],
    context: AnticipationContext,
    weights: WeightTable | None = None,
    scoring: ScoringConfig | None = None,
) -> list[Signal]:
    """Deduplicate and rank candidate signals."""
    return [s for s, _ in rank_signals(signals, context, weights, scoring)]
