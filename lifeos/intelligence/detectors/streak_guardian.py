"""
Streak Guardian

Warns before a category streak lapses and reports when one has broken.
"""

from ..context import AnticipationContext
from ..signals import Signal, SignalSeverity, SignalType
from ..temporal import parse_date
from .base import BaseDetector
from .domains import map_category_to_domain


class StreakGuardian(BaseDetector):
    """
    Signal types produced:
    - streak_at_risk
    """

    detector_id = "streak-guardian"
    version = "1.0.0"
    description = "Protects category activity streaks"
    signal_types = [SignalType.STREAK_AT_RISK]

    LONG_STREAK_DAYS = 7

    def get_parameters(self):
        return {"long_streak_days": self.LONG_STREAK_DAYS}

    def detect(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for category in context.categories:
            streak = int(category.get("streak_count") or 0)
            last_active = parse_date(category.get("last_active_date"))
            if streak <= 0 or last_active is None:
                continue

            name = category.get("name") or "Unnamed"
            days_since = (context.today - last_active).days
            if days_since == 1:
                if streak >= self.LONG_STREAK_DAYS:
                    severity = SignalSeverity.URGENT
                    text = (
                        f"Your {name} streak of {streak} days is still alive "
                        "but needs action today to continue."
                    )
                else:
                    severity = SignalSeverity.ATTENTION
                    text = (
                        f"Your {name} streak of {streak} days was last active yesterday. "
                        "Complete a task today to keep it going."
                    )
            elif days_since >= 2:
                severity = SignalSeverity.CRITICAL
                text = (
                    f"Your {name} streak of {streak} days has been broken. "
                    f"Last activity was {days_since} days ago."
                )
            else:
                continue

            signals.append(
                self.create_signal(
                    context,
                    SignalType.STREAK_AT_RISK,
                    severity,
                    map_category_to_domain(name),
                    f"{name} streak at risk ({streak} days)",
                    text,
                    suggested_action=f"Complete a {name} task today to maintain your streak",
                    related_entity_ids=[category.get("id")],
                )
            )
        return signals
