"""
Deadline Radar

Maps due dates onto a severity ladder using date-only comparison, and
warns about timed calendar events starting in the next half hour.
"""

import logging
from datetime import timedelta
from typing import Any

from ..context import AnticipationContext
from ..signals import LifeDomain, Signal, SignalSeverity, SignalType
from ..temporal import parse_date, parse_datetime
from .base import BaseDetector

logger = logging.getLogger(__name__)

TERMINAL_TASK_STATUSES = {"completed", "dismissed"}
TERMINAL_PROJECT_STATUSES = {"completed"}


def _plural(n: int, word: str = "day") -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def task_severity(days_until: int) -> SignalSeverity | None:
    """Task ladder: overdue critical, today urgent, tomorrow attention, <=3 days info."""
    if days_until < 0:
        return SignalSeverity.CRITICAL
    if days_until == 0:
        return SignalSeverity.URGENT
    if days_until == 1:
        return SignalSeverity.ATTENTION
    if days_until <= 3:
        return SignalSeverity.INFO
    return None


def project_severity(days_until: int) -> SignalSeverity | None:
    """Project ladder: overdue critical, <=3 days urgent, <=7 days attention."""
    if days_until < 0:
        return SignalSeverity.CRITICAL
    if days_until <= 3:
        return SignalSeverity.URGENT
    if days_until <= 7:
        return SignalSeverity.ATTENTION
    return None


class DeadlineRadar(BaseDetector):
    """
    Detects approaching and missed deadlines.

    Signal types produced:
    - deadline_approaching: Task or project due soon / overdue
    - calendar_conflict: Timed event starting within the lookahead window
    """

    detector_id = "deadline-radar"
    version = "1.0.0"
    description = "Severity ladder over task/project due dates and imminent events"
    signal_types = [SignalType.DEADLINE_APPROACHING, SignalType.CALENDAR_CONFLICT]

    EVENT_LOOKAHEAD_MINUTES = 30

    def get_parameters(self) -> dict[str, Any]:
        return {"event_lookahead_minutes": self.EVENT_LOOKAHEAD_MINUTES}

    def detect(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        signals.extend(self._detect_tasks(context))
        signals.extend(self._detect_projects(context))
        signals.extend(self._detect_events(context))
        return signals

    def _detect_tasks(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for task in context.tasks:
            if task.get("status") in TERMINAL_TASK_STATUSES:
                continue
            due = parse_date(task.get("due_date"))
            if due is None:
                continue

            days_until = (due - context.today).days
            severity = task_severity(days_until)
            if severity is None:
                continue

            title = task.get("title") or "Untitled task"
            if days_until < 0:
                prefix = "OVERDUE"
                message = f'Task "{title}" was due {_plural(abs(days_until))} ago.'
                action = "Address this overdue task immediately"
            elif days_until == 0:
                prefix = "Due today"
                message = f'Task "{title}" is due today.'
                action = "Schedule time to complete this task"
            elif days_until == 1:
                prefix = "Due tomorrow"
                message = f'Task "{title}" is due tomorrow.'
                action = "Schedule time to complete this task"
            else:
                prefix = f"Due in {days_until} days"
                message = f'Task "{title}" is due in {days_until} days.'
                action = "Schedule time to complete this task"

            signals.append(
                self.create_signal(
                    context,
                    SignalType.DEADLINE_APPROACHING,
                    severity,
                    LifeDomain.PERSONAL_GROWTH,
                    f"{prefix}: {title}",
                    message,
                    suggested_action=action,
                    related_entity_ids=[task.get("id")],
                )
            )
        return signals

    def _detect_projects(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for project in context.projects:
            if project.get("status") in TERMINAL_PROJECT_STATUSES:
                continue
            due = parse_date(project.get("due_date"))
            if due is None:
                continue

            days_until = (due - context.today).days
            severity = project_severity(days_until)
            if severity is None:
                continue

            title = project.get("title") or "Untitled project"
            if days_until < 0:
                prefix = "OVERDUE"
                message = f'Project "{title}" was due {_plural(abs(days_until))} ago.'
                action = "Review and reschedule this overdue project"
            else:
                prefix = f"Due in {_plural(days_until)}"
                message = f'Project "{title}" is due in {_plural(days_until)}.'
                action = "Review project progress and plan next actions"

            signals.append(
                self.create_signal(
                    context,
                    SignalType.DEADLINE_APPROACHING,
                    severity,
                    LifeDomain.PERSONAL_GROWTH,
                    f"{prefix}: {title}",
                    message,
                    suggested_action=action,
                    related_entity_ids=[project.get("id")],
                )
            )
        return signals

    def _detect_events(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for event in context.calendar_events:
            if event.get("all_day"):
                continue
            start = parse_datetime(event.get("start_time"))
            if start is None:
                continue

            minutes_until = int((start - context.now) // timedelta(minutes=1))
            if not 0 <= minutes_until <= self.EVENT_LOOKAHEAD_MINUTES:
                continue

            summary = event.get("summary") or "Untitled event"
            signals.append(
                self.create_signal(
                    context,
                    SignalType.CALENDAR_CONFLICT,
                    SignalSeverity.ATTENTION,
                    LifeDomain.PERSONAL_GROWTH,
                    f"Upcoming event in {minutes_until} min: {summary}",
                    f'Calendar event "{summary}" starts at {start:%H:%M}.',
                    suggested_action="Wrap up current work and prepare for this event",
                    related_entity_ids=[event.get("id")],
                    expires_at=start,
                )
            )
        return signals
