"""
Context Switch Prep

Escalates as a timed event approaches: 30 minutes out info, 15 attention,
5 urgent. Focus blocks get a deep-work preparation message. Signals expire
when the event starts.
"""

from datetime import timedelta

from ..context import AnticipationContext
from ..signals import LifeDomain, Signal, SignalSeverity, SignalType
from ..temporal import parse_datetime
from .base import BaseDetector
from .domains import infer_domain_from_event


def severity_by_proximity(minutes_until: int) -> SignalSeverity:
    if minutes_until <= 5:
        return SignalSeverity.URGENT
    if minutes_until <= 15:
        return SignalSeverity.ATTENTION
    return SignalSeverity.INFO


def switch_suggestion(minutes_until: int) -> str:
    if minutes_until <= 5:
        return "Wrap up current task and prepare to transition"
    if minutes_until <= 15:
        return "Begin wrapping up current work and gather materials for upcoming event"
    return "Be aware of upcoming transition and plan accordingly"


class ContextSwitchPrep(BaseDetector):
    """
    Signal types produced:
    - context_switch_prep
    """

    detector_id = "context-switch-prep"
    version = "1.0.0"
    description = "Prepares for upcoming calendar transitions"
    signal_types = [SignalType.CONTEXT_SWITCH_PREP]

    LOOKAHEAD_MINUTES = 30

    def get_parameters(self):
        return {"lookahead_minutes": self.LOOKAHEAD_MINUTES}

    def detect(self, context: AnticipationContext) -> list[Signal]:
        now = context.now
        horizon = now + timedelta(minutes=self.LOOKAHEAD_MINUTES)

        upcoming = []
        for event in context.calendar_events:
            if event.get("all_day"):
                continue
            start = parse_datetime(event.get("start_time"))
            if start is None or not now < start <= horizon:
                continue
            upcoming.append((start, event))
        upcoming.sort(key=lambda pair: pair[0])

        signals = []
        for start, event in upcoming:
            minutes_until = int((start - now).total_seconds() // 60)
            severity = severity_by_proximity(minutes_until)
            summary = event.get("summary") or "Untitled event"

            if event.get("is_focus_block"):
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.CONTEXT_SWITCH_PREP,
                        severity,
                        LifeDomain.PERSONAL_GROWTH,
                        "Deep work session approaching",
                        f'Focus block "{summary}" starts in {minutes_until} minutes at {start:%H:%M}',
                        suggested_action="Prepare your environment: close distractions, "
                        "silence notifications, gather materials",
                        related_entity_ids=[event.get("id")],
                        expires_at=start,
                    )
                )
            else:
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.CONTEXT_SWITCH_PREP,
                        severity,
                        infer_domain_from_event(event),
                        "Upcoming context switch",
                        f'"{summary}" starts in {minutes_until} minutes at {start:%H:%M}',
                        suggested_action=switch_suggestion(minutes_until),
                        related_entity_ids=[event.get("id")],
                        expires_at=start,
                    )
                )
        return signals
