"""
Pattern Learner

Six independent computations over historical records. Each returns a
ProductivityPattern, or None when the sample is too small to trust, so
low-confidence patterns are never persisted. Persistence is an upsert
keyed by pattern_type: one current pattern per type.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .detectors.pattern_recognizer import category_has_history
from .signals import PatternType, ProductivityPattern
from .temporal import parse_datetime, utcnow, week_start

logger = logging.getLogger(__name__)

PATTERNS_COLLECTION = "productivity_patterns"

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

MIN_PEAK_EVENTS = 5
MIN_ESTIMATION_SAMPLES = 3
MIN_CADENCE_TASKS = 7
MIN_DEEP_WORK_SESSIONS = 3
MIN_BALANCE_TASKS = 5
NEGLECT_SHARE_PCT = 5.0
LOOKBACK_DAYS = 30
RATE_WINDOW_DAYS = 7


def compute_confidence(sample_size: int) -> float:
    """
    Confidence grows with sample size in three brackets.

    <5 -> 0.1, 5-19 -> 0.3..0.5, 20-99 -> 0.5..0.9, >=100 -> 0.9
    """
    if sample_size < 5:
        return 0.1
    if sample_size < 20:
        return 0.3 + (sample_size / 20) * 0.2
    if sample_size < 100:
        return 0.5 + ((sample_size - 20) / 80) * 0.4
    return 0.9


def _pattern(
    pattern_type: PatternType, description: str, data: dict, sample_size: int, now: datetime
) -> ProductivityPattern:
    return ProductivityPattern(
        pattern_type=pattern_type,
        description=description,
        data=data,
        confidence=compute_confidence(sample_size),
        week_start=week_start(now).isoformat(),
        created_at=now,
    )


def _completed_tasks(tasks, since: datetime | None = None, until: datetime | None = None):
    """(task, completed_at) pairs for completed tasks, optionally windowed."""
    result = []
    for task in tasks:
        if task.get("status") != "completed":
            continue
        done_at = parse_datetime(task.get("completed_date"))
        if done_at is None:
            continue
        if since is not None and done_at < since:
            continue
        if until is not None and done_at > until:
            continue
        result.append((task, done_at))
    return result


# =============================================================================
# INDIVIDUAL PATTERNS
# =============================================================================


def compute_peak_hours(events, now: datetime) -> ProductivityPattern | None:
    """Top three hours of day by task-completion events."""
    hours = []
    for event in events:
        if event.get("event_type") != "task_complete":
            continue
        ts = parse_datetime(event.get("timestamp"))
        if ts is not None:
            hours.append(ts.hour)
    if len(hours) < MIN_PEAK_EVENTS:
        return None

    counts: dict[int, int] = {}
    for hour in sorted(hours):
        counts[hour] = counts.get(hour, 0) + 1
    top = [h for h, _ in sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:3]]

    return _pattern(
        PatternType.PEAK_HOURS,
        f"Peak productivity hours: {', '.join(f'{h}:00' for h in top)}",
        {"hours": top, "distribution": {str(h): c for h, c in counts.items()}},
        len(hours),
        now,
    )


def compute_estimation_calibration(sub_tasks, now: datetime) -> ProductivityPattern | None:
    """Mean actual/estimate ratio over completed subtasks with both values."""
    ratios = []
    for sub in sub_tasks:
        if not sub.get("is_completed"):
            continue
        estimate = sub.get("time_estimate_minutes") or 0
        actual = sub.get("time_actual_minutes") or 0
        if estimate > 0 and actual > 0:
            ratios.append(actual / estimate)
    if len(ratios) < MIN_ESTIMATION_SAMPLES:
        return None

    avg = sum(ratios) / len(ratios)
    under = sum(1 for r in ratios if r > 1.1)
    over = sum(1 for r in ratios if r < 0.9)

    if avg > 1.1:
        bias = "underestimate"
        description = f"Tasks take {(avg - 1) * 100:.0f}% longer than estimated"
    elif avg < 0.9:
        bias = "overestimate"
        description = f"Tasks take {(1 - avg) * 100:.0f}% less time than estimated"
    else:
        bias = "calibrated"
        description = "Task estimates are well-calibrated"

    return _pattern(
        PatternType.TASK_ESTIMATION,
        description,
        {
            "avg_ratio": avg,
            "underestimate_pct": under / len(ratios) * 100,
            "overestimate_pct": over / len(ratios) * 100,
            "bias": bias,
            "sample_size": len(ratios),
        },
        len(ratios),
        now,
    )


def compute_day_of_week(tasks, now: datetime) -> ProductivityPattern | None:
    """Per-weekday average completions per week seen, plus share of the total."""
    completed = _completed_tasks(tasks)
    if len(completed) < MIN_CADENCE_TASKS:
        return None

    counts = {day: 0 for day in DAY_NAMES}
    weeks: dict[str, set] = {day: set() for day in DAY_NAMES}
    for _, done_at in completed:
        day = DAY_NAMES[done_at.weekday()]
        counts[day] += 1
        iso = done_at.isocalendar()
        weeks[day].add((iso[0], iso[1]))

    total = len(completed)
    days = {
        day: {
            "avg_tasks": counts[day] / max(len(weeks[day]), 1),
            "share": counts[day] / total,
        }
        for day in DAY_NAMES
    }
    best_day = max(DAY_NAMES, key=lambda d: counts[d])

    return _pattern(
        PatternType.DAY_OF_WEEK,
        f"Most productive day: {best_day.capitalize()}",
        {"days": days, "best_day": best_day, "total_tasks": total},
        total,
        now,
    )


def compute_deep_work_ratio(sessions, now: datetime) -> ProductivityPattern | None:
    """Share of completed sessions in the last 30 days that were focus sessions."""
    since = now - timedelta(days=LOOKBACK_DAYS)
    recent = []
    for session in sessions:
        if session.get("status") != "completed":
            continue
        started = parse_datetime(session.get("started_at"))
        if started is not None and since <= started <= now:
            recent.append(session)
    if len(recent) < MIN_DEEP_WORK_SESSIONS:
        return None

    focus = [s for s in recent if s.get("type") == "focus"]
    total_focus = sum(float(s.get("duration_minutes") or 0) for s in focus)
    ratio = len(focus) / len(recent)

    return _pattern(
        PatternType.DEEP_WORK_RATIO,
        f"Deep work ratio: {ratio * 100:.0f}% of sessions are focus sessions",
        {
            "ratio": ratio,
            "avg_focus_minutes": total_focus / len(focus) if focus else 0.0,
            "total_focus_minutes": total_focus,
            "sessions_count": len(recent),
        },
        len(recent),
        now,
    )


def compute_domain_balance(tasks, categories, now: datetime) -> ProductivityPattern | None:
    """
    Share of the last 30 days' completions per category.

    Categories that have been used but had no completions in the window
    appear at 0%. Categories that were never used are left out.
    """
    completed = _completed_tasks(tasks, since=now - timedelta(days=LOOKBACK_DAYS), until=now)
    if len(completed) < MIN_BALANCE_TASKS:
        return None

    names = {str(c.get("id")): c.get("name") or "Unnamed" for c in categories}
    counts: dict[str, int] = {}
    for task, _ in completed:
        cat_id = str(task.get("category_id") or "uncategorized")
        counts[cat_id] = counts.get(cat_id, 0) + 1
    for category in categories:
        cat_id = str(category.get("id"))
        if cat_id not in counts and category_has_history(category):
            counts[cat_id] = 0

    total = len(completed)
    distribution = {
        cat_id: {
            "count": count,
            "percent": count / total * 100,
            "name": names.get(cat_id, "Uncategorized"),
        }
        for cat_id, count in counts.items()
    }
    neglected = [d["name"] for d in distribution.values() if d["percent"] <= NEGLECT_SHARE_PCT]

    description = (
        f"Neglected areas: {', '.join(neglected)}"
        if neglected
        else "Life categories are well-balanced"
    )
    return _pattern(
        PatternType.DOMAIN_BALANCE,
        description,
        {"distribution": distribution, "neglected_categories": neglected, "total_tasks": total},
        total,
        now,
    )


def compute_completion_rate(tasks, now: datetime) -> ProductivityPattern | None:
    """
    Completions per day over the trailing week.

    The divisor is the smaller of seven days and the calendar span since
    the earliest completion in the window, so a brand-new dataset is not
    diluted by empty days.
    """
    recent = _completed_tasks(tasks, since=now - timedelta(days=RATE_WINDOW_DAYS), until=now)
    if not recent:
        return None

    earliest = min(done_at for _, done_at in recent)
    span = min(RATE_WINDOW_DAYS, (now.date() - earliest.date()).days + 1)
    rate = len(recent) / span

    return _pattern(
        PatternType.COMPLETION_RATE,
        f"Completing {rate:.1f} tasks per day ({span}-day average)",
        {"rate": rate, "completed_count": len(recent), "period_days": span},
        len(recent),
        now,
    )


# =============================================================================
# LEARNER
# =============================================================================


@dataclass
class LearningInputs:
    """Raw history the learner reads."""

    tasks: list[dict] = field(default_factory=list)
    sub_tasks: list[dict] = field(default_factory=list)
    categories: list[dict] = field(default_factory=list)
    analytics_events: list[dict] = field(default_factory=list)
    pomodoro_sessions: list[dict] = field(default_factory=list)

    @classmethod
    def from_store(cls, store) -> "LearningInputs":
        return cls(
            tasks=store.find("tasks"),
            sub_tasks=store.find("sub_tasks"),
            categories=store.find("categories"),
            analytics_events=store.find("analytics_events"),
            pomodoro_sessions=store.find("pomodoro_sessions"),
        )


def learn_patterns(inputs: LearningInputs, now: datetime | None = None) -> list[ProductivityPattern]:
    """Run all six computations; patterns below their minimum sample are omitted."""
    now = now or utcnow()
    candidates = [
        compute_peak_hours(inputs.analytics_events, now),
        compute_estimation_calibration(inputs.sub_tasks, now),
        compute_day_of_week(inputs.tasks, now),
        compute_deep_work_ratio(inputs.pomodoro_sessions, now),
        compute_domain_balance(inputs.tasks, inputs.categories, now),
        compute_completion_rate(inputs.tasks, now),
    ]
    return [p for p in candidates if p is not None]


def persist_patterns(store, patterns: list[ProductivityPattern]) -> None:
    """Upsert by pattern_type, keeping the existing document id."""
    for pattern in patterns:
        existing = store.find_one(PATTERNS_COLLECTION, {"pattern_type": pattern.pattern_type.value})
        doc = pattern.to_dict()
        if existing and existing.get("id"):
            doc["id"] = existing["id"]
        store.upsert(PATTERNS_COLLECTION, doc, key_fields=("pattern_type",))


def load_patterns(store) -> list[ProductivityPattern]:
    return [ProductivityPattern.from_dict(doc) for doc in store.find(PATTERNS_COLLECTION)]


class PatternLearner:
    """Loads history from a document store, learns, and persists."""

    def __init__(self, store=None):
        self.store = store

    def learn(self, now: datetime | None = None, inputs: LearningInputs | None = None) -> list[ProductivityPattern]:
        now = now or utcnow()
        if inputs is None:
            inputs = LearningInputs.from_store(self.store) if self.store is not None else LearningInputs()

        logger.info("Pattern learning cycle starting")
        patterns = learn_patterns(inputs, now)
        if self.store is not None:
            persist_patterns(self.store, patterns)
        logger.info(
            f"Learned {len(patterns)} patterns: {', '.join(p.pattern_type.value for p in patterns) or 'none'}"
        )
        return patterns
