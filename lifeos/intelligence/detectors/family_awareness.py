"""
Family Awareness

Watches shared family calendars:
- Overlap with one of your own timed events -> critical
- Starts within two hours -> urgent
- Later today -> attention
"""

from datetime import datetime, timedelta

from ..context import AnticipationContext
from ..signals import LifeDomain, Signal, SignalSeverity, SignalType
from ..temporal import parse_datetime
from .base import BaseDetector


def time_until(start: datetime, end: datetime) -> str:
    """Human-readable gap, e.g. 'in 45 minutes' or 'in 1h 30m'."""
    minutes = int((end - start).total_seconds() // 60)
    if minutes < 60:
        return f"in {minutes} minutes"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"in {hours} hour{'s' if hours > 1 else ''}"
    return f"in {hours}h {rest}m"


def find_conflicting_event(start: datetime, end: datetime, calendar_events) -> dict | None:
    for event in calendar_events:
        if event.get("all_day"):
            continue
        ev_start = parse_datetime(event.get("start_time"))
        ev_end = parse_datetime(event.get("end_time"))
        if ev_start is None or ev_end is None:
            continue
        if ev_start < end and ev_end > start:
            return event
    return None


class FamilyAwareness(BaseDetector):
    """
    Signal types produced:
    - family_awareness
    """

    detector_id = "family-awareness"
    version = "1.0.0"
    description = "Surfaces family calendar events and conflicts"
    signal_types = [SignalType.FAMILY_AWARENESS]

    SOON_HOURS = 2

    def get_parameters(self):
        return {"soon_hours": self.SOON_HOURS}

    def detect(self, context: AnticipationContext) -> list[Signal]:
        family_events = context.integrations.get("family_calendars") or []
        if not family_events:
            return []

        now = context.now
        soon = now + timedelta(hours=self.SOON_HOURS)
        signals = []

        for event in family_events:
            start = parse_datetime(event.get("start_time"))
            end = parse_datetime(event.get("end_time")) or start
            if start is None or end < now:
                continue

            member = event.get("member") or "Family"
            summary = event.get("summary") or "event"

            conflict = find_conflicting_event(start, end, context.calendar_events)
            if conflict is not None:
                own = conflict.get("summary") or "event"
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.FAMILY_AWARENESS,
                        SignalSeverity.CRITICAL,
                        LifeDomain.FAMILY,
                        "Family event conflicts with your schedule",
                        f'{member}\'s event "{summary}" at {start:%H:%M} overlaps with your "{own}"',
                        suggested_action=f'Reschedule "{own}" or notify {member}',
                        related_entity_ids=[event.get("id"), conflict.get("id")],
                    )
                )
                continue

            if now < start <= soon:
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.FAMILY_AWARENESS,
                        SignalSeverity.URGENT,
                        LifeDomain.FAMILY,
                        f"{member}'s event starting soon",
                        f'"{summary}" starts at {start:%H:%M} ({time_until(now, start)})',
                        suggested_action="Be aware and prepare to wrap up current work",
                        related_entity_ids=[event.get("id")],
                    )
                )
            elif start > soon and start.date() == context.today:
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.FAMILY_AWARENESS,
                        SignalSeverity.ATTENTION,
                        LifeDomain.FAMILY,
                        f"{member} has event today",
                        f'"{summary}" at {start:%H:%M}',
                        suggested_action="Plan your day accordingly",
                        related_entity_ids=[event.get("id")],
                    )
                )
        return signals
