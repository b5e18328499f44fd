"""
Pattern Recognizer

Compares the live context against learned productivity patterns:
- Completion rate falling below 80% of the learned rate
- Current hour inside a learned peak window
- Learned cadence for today's weekday
- Categories with no activity for a week or more
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any

from ..context import AnticipationContext
from ..signals import LifeDomain, PatternType, Signal, SignalSeverity, SignalType
from ..temporal import parse_date, parse_datetime
from .base import BaseDetector
from .domains import map_category_to_domain

logger = logging.getLogger(__name__)


def compute_completion_rate(tasks, now: datetime, days: int = 7) -> float:
    """
    Tasks completed per day over the trailing ``days`` window.

    Divides by the smaller of ``days`` and the calendar span since the
    earliest completion in the window, matching the learned rate.
    """
    cutoff = now - timedelta(days=days)
    done = []
    for task in tasks:
        if task.get("status") != "completed":
            continue
        done_at = parse_datetime(task.get("completed_date"))
        if done_at is not None and cutoff <= done_at <= now:
            done.append(done_at)
    if not done:
        return 0.0
    span = min(days, (now.date() - min(done).date()).days + 1)
    return len(done) / span


def category_has_history(category: dict) -> bool:
    return bool(
        (category.get("streak_count") or 0) > 0
        or (category.get("current_progress") or 0) > 0
        or category.get("last_active_date")
    )


def find_neglected_categories(categories, today: date, days: int = 7) -> list[dict]:
    """
    Categories idle for ``days`` or more.

    Categories that were never used are skipped; a category with history
    but no last-active date counts as neglected.
    """
    neglected = []
    for category in categories:
        if not category_has_history(category):
            continue
        last_active = parse_date(category.get("last_active_date"))
        if last_active is None or (today - last_active).days >= days:
            neglected.append(category)
    return neglected


class PatternRecognizer(BaseDetector):
    """
    Turns learned patterns into timely nudges.

    Signal types produced:
    - pattern_insight
    """

    detector_id = "pattern-recognizer"
    version = "1.0.0"
    description = "Compares live behavior against learned productivity patterns"
    signal_types = [SignalType.PATTERN_INSIGHT]

    DECLINE_RATIO = 0.8
    NEGLECT_DAYS = 7

    def get_parameters(self) -> dict[str, Any]:
        return {"decline_ratio": self.DECLINE_RATIO, "neglect_days": self.NEGLECT_DAYS}

    def detect(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for check in (self._check_completion_rate, self._check_peak_hours, self._check_day_of_week):
            signal = check(context)
            if signal is not None:
                signals.append(signal)
        signals.extend(self._check_neglect(context))
        return signals

    def _check_completion_rate(self, context: AnticipationContext) -> Signal | None:
        pattern = context.pattern(PatternType.COMPLETION_RATE)
        if pattern is None:
            return None

        historical = float(pattern.data.get("rate") or 0)
        current = compute_completion_rate(context.tasks, context.now, 7)
        if current >= historical * self.DECLINE_RATIO:
            return None

        return self.create_signal(
            context,
            SignalType.PATTERN_INSIGHT,
            SignalSeverity.INFO,
            LifeDomain.PERSONAL_GROWTH,
            "Completion rate declining",
            f"Your task completion rate has dropped to {current:.1f} tasks/day "
            f"from {historical:.1f} tasks/day",
            suggested_action="Pick one small task and finish it to rebuild momentum",
        )

    def _check_peak_hours(self, context: AnticipationContext) -> Signal | None:
        pattern = context.pattern(PatternType.PEAK_HOURS)
        if pattern is None:
            return None

        hours = [int(h) for h in pattern.data.get("hours") or []]
        if context.current_hour not in hours:
            return None

        return self.create_signal(
            context,
            SignalType.PATTERN_INSIGHT,
            SignalSeverity.INFO,
            LifeDomain.PERSONAL_GROWTH,
            "Peak productivity window",
            f"You're in your peak productivity window ({context.current_time}). "
            "Consider scheduling deep work now.",
            suggested_action="Block time for your most demanding tasks",
        )

    def _check_day_of_week(self, context: AnticipationContext) -> Signal | None:
        pattern = context.pattern(PatternType.DAY_OF_WEEK)
        if pattern is None:
            return None

        day = context.day_of_week
        day_data = (pattern.data.get("days") or {}).get(day.lower()) or {}
        if "avg_tasks" not in day_data or "share" not in day_data:
            return None

        text = (
            f"Typically on {day}s you complete {float(day_data['avg_tasks']):.1f} tasks "
            f"({float(day_data['share']) * 100:.0f}% of your weekly completions)"
        )
        if pattern.data.get("best_day") == day.lower():
            text += ". This is usually your most productive day."

        return self.create_signal(
            context,
            SignalType.PATTERN_INSIGHT,
            SignalSeverity.INFO,
            LifeDomain.PERSONAL_GROWTH,
            f"{day} productivity pattern",
            text,
        )

    def _check_neglect(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for category in find_neglected_categories(context.categories, context.today, self.NEGLECT_DAYS):
            name = category.get("name") or "Unnamed"
            signals.append(
                self.create_signal(
                    context,
                    SignalType.PATTERN_INSIGHT,
                    SignalSeverity.ATTENTION,
                    map_category_to_domain(name),
                    f"{name} category neglected",
                    f"No activity in {name} for {self.NEGLECT_DAYS}+ days. "
                    f"Last active: {category.get('last_active_date') or 'never'}",
                    suggested_action=f"Schedule a task in {name} to maintain balance",
                    related_entity_ids=[category.get("id")],
                )
            )
        return signals
