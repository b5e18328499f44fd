"""
Tests for the signal model.

Covers:
- Severity ordering
- Dedupe keys (type + related ids as a set)
- Expiry boundary
- Dict conversion for the document store
"""

from datetime import datetime, timedelta

import pytest

from lifeos.intelligence.signals import (
    LifeDomain,
    PatternType,
    ProductivityPattern,
    Signal,
    SignalSeverity,
    SignalType,
    SignalWeight,
)

NOW = datetime(2026, 2, 13, 10, 0, 0)

# =============================================================================
# ENUMS
# =============================================================================


class TestSeverity:
    def test_rank_order(self):
        ordered = sorted(SignalSeverity, key=lambda s: s.rank)
        assert ordered == ["info", "attention", "urgent", "critical"]

    def test_values_are_lowercase_strings(self):
        assert SignalSeverity.CRITICAL == "critical"
        assert SignalType.LEARNED_SUGGESTION == "learned_suggestion"
        assert LifeDomain.BUSINESS_RE == "business_re"

    def test_signal_type_catalog(self):
        assert len(SignalType) == 15
        assert len(LifeDomain) == 10


# =============================================================================
# SIGNAL
# =============================================================================


class TestSignal:
    def test_string_enums_are_coerced(self, make_signal):
        signal = make_signal(type="deadline_approaching", severity="urgent", domain="finance")

        assert signal.type is SignalType.DEADLINE_APPROACHING
        assert signal.severity is SignalSeverity.URGENT
        assert signal.domain is LifeDomain.FINANCE

    def test_invalid_severity_rejected(self, make_signal):
        with pytest.raises(ValueError):
            make_signal(severity="panic")

    def test_ids_are_unique(self, make_signal):
        assert make_signal().id != make_signal().id

    def test_dedupe_key_ignores_id_order(self, make_signal):
        a = make_signal(related_entity_ids=["t1", "t2"])
        b = make_signal(related_entity_ids=["t2", "t1", "t1"])

        assert a.dedupe_key == b.dedupe_key

    def test_dedupe_key_differs_by_type(self, make_signal):
        a = make_signal(type="aging_email", related_entity_ids=["x"])
        b = make_signal(type="follow_up_due", related_entity_ids=["x"])

        assert a.dedupe_key != b.dedupe_key

    def test_expiry_boundary_is_inclusive(self, make_signal):
        signal = make_signal(expires_at=NOW)

        assert signal.is_expired(NOW)
        assert not signal.is_expired(NOW - timedelta(seconds=1))

    def test_no_expiry_never_expires(self, make_signal):
        assert not make_signal().is_expired(NOW + timedelta(days=3650))

    def test_resolved_flags(self, make_signal):
        assert not make_signal().is_resolved
        assert make_signal(is_dismissed=True).is_resolved
        assert make_signal(is_acted_on=True).is_resolved

    def test_dict_round_trip(self, make_signal):
        signal = make_signal(
            related_entity_ids=["e1"],
            expires_at=NOW + timedelta(hours=2),
            suggested_action="Reply",
        )

        data = signal.to_dict()
        restored = Signal.from_dict(data)

        assert data["type"] == "aging_email"
        assert data["created_at"] == "2026-02-13T10:00:00"
        assert restored == signal


# =============================================================================
# LEARNED RECORDS
# =============================================================================


class TestLearnedRecords:
    def test_weight_key(self):
        weight = SignalWeight(signal_type="aging_email", domain="business_tech")
        assert weight.key == ("aging_email", "business_tech")
        assert weight.weight_modifier == 1.0

    def test_weight_from_dict_defaults(self):
        weight = SignalWeight.from_dict({"signal_type": "deal_update", "domain": "business_re"})
        assert weight.effectiveness_score == 0.5
        assert weight.total_generated == 0

    def test_pattern_from_dict(self):
        pattern = ProductivityPattern.from_dict(
            {
                "pattern_type": "peak_hours",
                "description": "Peak at 9:00",
                "data": {"peak_hours": [9]},
                "confidence": 0.4,
                "week_start": "2026-02-09",
            }
        )
        assert pattern.pattern_type is PatternType.PEAK_HOURS
        assert pattern.data == {"peak_hours": [9]}
