"""
Tests for AgingDetector.

Covers:
- Email severity ladder (24h / 48h / 72h, inclusive)
- Skipped statuses and tiers
- Lead emails linked to open deals
- Stale active tasks
"""

from datetime import timedelta

import pytest

from lifeos.config import AgingConfig
from lifeos.intelligence.detectors import AgingDetector
from lifeos.intelligence.signals import LifeDomain, SignalSeverity, SignalType


def _email(now, hours, **extra):
    return {
        "id": extra.pop("id", "em-1"),
        "from": "alice@example.com",
        "subject": "Quarterly numbers",
        "received_at": (now - timedelta(hours=hours)).isoformat(),
        "status": "unread",
        **extra,
    }


@pytest.fixture
def detector():
    return AgingDetector()


# =============================================================================
# EMAILS
# =============================================================================


class TestEmailAging:
    @pytest.mark.parametrize(
        "hours,expected",
        [
            (10, None),
            (23.9, None),
            (24, SignalSeverity.ATTENTION),
            (47, SignalSeverity.ATTENTION),
            (48, SignalSeverity.URGENT),
            (71.5, SignalSeverity.URGENT),
            (72, SignalSeverity.CRITICAL),
            (500, SignalSeverity.CRITICAL),
        ],
    )
    def test_severity_ladder(self, detector, make_context, now, hours, expected):
        signals = detector.detect(make_context(emails=[_email(now, hours)]))

        if expected is None:
            assert signals == []
        else:
            assert len(signals) == 1
            assert signals[0].severity == expected
            assert signals[0].type == SignalType.AGING_EMAIL

    def test_signal_fields(self, detector, make_context, now):
        signal = detector.detect(make_context(emails=[_email(now, 50)]))[0]

        assert signal.source == "aging-detector"
        assert signal.domain == LifeDomain.BUSINESS_TECH
        assert signal.related_entity_ids == ["em-1"]
        assert signal.created_at == now
        assert "alice@example.com" in signal.title
        assert "50h" in signal.title
        assert signal.suggested_action

    @pytest.mark.parametrize("status", ["replied", "archived"])
    def test_handled_emails_skipped(self, detector, make_context, now, status):
        assert detector.detect(make_context(emails=[_email(now, 100, status=status)])) == []

    @pytest.mark.parametrize("tier", ["promotions", "social", "unsubscribe"])
    def test_low_value_tiers_skipped(self, detector, make_context, now, tier):
        assert detector.detect(make_context(emails=[_email(now, 100, tier=tier)])) == []

    def test_tier_override_wins(self, detector, make_context, now):
        email = _email(now, 100, tier="promotions", tier_override="primary")
        assert len(detector.detect(make_context(emails=[email]))) == 1

    def test_unparseable_timestamp_skipped(self, detector, make_context, now):
        email = _email(now, 100)
        email["received_at"] = "last tuesday"
        assert detector.detect(make_context(emails=[email])) == []

    def test_custom_thresholds(self, make_context, now):
        detector = AgingDetector(AgingConfig(email_attention_hours=2, email_urgent_hours=4, email_critical_hours=6))
        signals = detector.detect(make_context(emails=[_email(now, 5)]))
        assert signals[0].severity == SignalSeverity.URGENT


class TestLeadEmails:
    def test_lead_escalated_to_urgent(self, detector, make_context, now):
        deals = [{"id": "deal-1", "status": "active", "linked_email_ids": ["em-1"]}]
        signals = detector.detect(make_context(emails=[_email(now, 5)], deals=deals))

        assert len(signals) == 1
        assert signals[0].severity == SignalSeverity.URGENT
        assert signals[0].domain == LifeDomain.BUSINESS_RE

    def test_lead_keeps_higher_severity(self, detector, make_context, now):
        deals = [{"id": "deal-1", "status": "active", "linked_email_ids": ["em-1"]}]
        signals = detector.detect(make_context(emails=[_email(now, 80)], deals=deals))
        assert signals[0].severity == SignalSeverity.CRITICAL

    def test_lead_inside_window_not_flagged(self, detector, make_context, now):
        deals = [{"id": "deal-1", "status": "active", "linked_email_ids": ["em-1"]}]
        assert detector.detect(make_context(emails=[_email(now, 2)], deals=deals)) == []

    def test_closed_deal_is_not_a_lead(self, detector, make_context, now):
        deals = [{"id": "deal-1", "status": "closed", "linked_email_ids": ["em-1"]}]
        assert detector.detect(make_context(emails=[_email(now, 5)], deals=deals)) == []


# =============================================================================
# TASKS
# =============================================================================


class TestStaleTasks:
    def test_stale_active_task(self, detector, make_context, now):
        task = {
            "id": "t-1",
            "title": "Write report",
            "status": "active",
            "created_date": (now - timedelta(days=5)).isoformat(),
        }
        signals = detector.detect(make_context(tasks=[task]))

        assert len(signals) == 1
        assert signals[0].type == SignalType.FOLLOW_UP_DUE
        assert signals[0].severity == SignalSeverity.ATTENTION
        assert "5 days" in signals[0].title

    def test_exactly_three_days_not_stale(self, detector, make_context, now):
        task = {"id": "t-1", "status": "active", "created_date": (now - timedelta(days=3)).isoformat()}
        assert detector.detect(make_context(tasks=[task])) == []

    def test_only_active_tasks(self, detector, make_context, now):
        task = {"id": "t-1", "status": "pending", "created_date": (now - timedelta(days=10)).isoformat()}
        assert detector.detect(make_context(tasks=[task])) == []

    def test_empty_context(self, detector, make_context):
        assert detector.detect(make_context()) == []
