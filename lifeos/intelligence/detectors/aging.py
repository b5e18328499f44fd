"""
Aging Detector

Detects things that have been waiting too long:
- Unanswered emails (attention / urgent / critical by age)
- Unanswered emails tied to an open deal (lead response window)
- Active tasks that have gone stale
"""

import logging
from typing import Any

from lifeos.config import AgingConfig

from ..context import AnticipationContext
from ..signals import LifeDomain, Signal, SignalSeverity, SignalType
from ..temporal import parse_datetime
from .base import BaseDetector

logger = logging.getLogger(__name__)

SKIPPED_EMAIL_STATUSES = {"replied", "archived"}
SKIPPED_EMAIL_TIERS = {"promotions", "social", "unsubscribe"}
CLOSED_DEAL_STATUSES = {"closed", "dead"}


class AgingDetector(BaseDetector):
    """
    Flags emails and tasks by elapsed time.

    Signal types produced:
    - aging_email: Email waiting for a reply
    - follow_up_due: Active task older than the stale threshold
    """

    detector_id = "aging-detector"
    version = "1.1.0"
    description = "Flags unanswered emails and stale tasks by age"
    signal_types = [SignalType.AGING_EMAIL, SignalType.FOLLOW_UP_DUE]

    def __init__(self, config: AgingConfig | None = None):
        self.config = config or AgingConfig()

    def get_parameters(self) -> dict[str, Any]:
        return {
            "email_attention_hours": self.config.email_attention_hours,
            "email_urgent_hours": self.config.email_urgent_hours,
            "email_critical_hours": self.config.email_critical_hours,
            "task_stale_days": self.config.task_stale_days,
            "lead_response_hours": self.config.lead_response_hours,
        }

    def email_severity(self, hours: float) -> SignalSeverity | None:
        """Map hours since receipt onto the severity ladder (None = not aging)."""
        if hours >= self.config.email_critical_hours:
            return SignalSeverity.CRITICAL
        if hours >= self.config.email_urgent_hours:
            return SignalSeverity.URGENT
        if hours >= self.config.email_attention_hours:
            return SignalSeverity.ATTENTION
        return None

    def detect(self, context: AnticipationContext) -> list[Signal]:
        return self._detect_emails(context) + self._detect_stale_tasks(context)

    def _lead_email_ids(self, context: AnticipationContext) -> set[str]:
        ids = set()
        for deal in context.deals:
            if deal.get("status") in CLOSED_DEAL_STATUSES:
                continue
            ids.update(str(i) for i in deal.get("linked_email_ids") or [])
        return ids

    def _detect_emails(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        lead_ids = self._lead_email_ids(context)

        for email in context.emails:
            if email.get("status") in SKIPPED_EMAIL_STATUSES:
                continue
            tier = email.get("tier_override") or email.get("tier")
            if tier in SKIPPED_EMAIL_TIERS:
                continue

            received_at = parse_datetime(email.get("received_at"))
            if received_at is None:
                continue

            hours = (context.now - received_at).total_seconds() / 3600
            severity = self.email_severity(hours)
            sender = email.get("from") or "unknown sender"
            subject = email.get("subject") or "(no subject)"

            is_lead = str(email.get("id")) in lead_ids
            if is_lead and hours >= self.config.lead_response_hours:
                if severity is None or severity.rank < SignalSeverity.URGENT.rank:
                    severity = SignalSeverity.URGENT

            if severity is None:
                continue

            if is_lead:
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.AGING_EMAIL,
                        severity,
                        LifeDomain.BUSINESS_RE,
                        f"Lead email from {sender} waiting ({int(hours)}h)",
                        f'Subject: "{subject}" is linked to an open deal and has waited '
                        f"{int(hours)} hours (response window {self.config.lead_response_hours:g}h)",
                        suggested_action=f"Reply to {sender} before the lead goes cold",
                        related_entity_ids=[email.get("id")],
                    )
                )
            else:
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.AGING_EMAIL,
                        severity,
                        LifeDomain.BUSINESS_TECH,
                        f"Email from {sender} aging ({int(hours)}h)",
                        f'Subject: "{subject}" received {int(hours)} hours ago',
                        suggested_action=f"Review and respond to email from {sender}",
                        related_entity_ids=[email.get("id")],
                    )
                )
        return signals

    def _detect_stale_tasks(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        for task in context.tasks:
            if task.get("status") != "active":
                continue
            created = parse_datetime(task.get("created_date") or task.get("created_at"))
            if created is None:
                continue

            days = (context.now - created).total_seconds() / 86400
            if days <= self.config.task_stale_days:
                continue

            title = task.get("title") or "Untitled task"
            signals.append(
                self.create_signal(
                    context,
                    SignalType.FOLLOW_UP_DUE,
                    SignalSeverity.ATTENTION,
                    LifeDomain.BUSINESS_TECH,
                    f'Task "{title}" has been active for {int(days)} days',
                    f"Created {int(days)} days ago with priority {task.get('priority') or 'unset'}",
                    suggested_action=f'Review progress or complete task "{title}"',
                    related_entity_ids=[task.get("id")],
                )
            )
        return signals
