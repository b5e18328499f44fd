"""
Tests for CrossDomainCorrelator.

Covers:
- Domain overload (three or more active signals)
- Real estate + finance correlation
- Family + business correlation
- Resolved, expired and self-produced signals are ignored
"""

from datetime import timedelta

import pytest

from lifeos.intelligence.detectors import CrossDomainCorrelator
from lifeos.intelligence.signals import LifeDomain, SignalSeverity, SignalType


@pytest.fixture
def correlator():
    return CrossDomainCorrelator()


class TestOverload:
    def test_three_signals_in_one_domain(self, correlator, make_context, make_signal):
        active = [make_signal(domain="finance", related_entity_ids=[f"x{i}"]) for i in range(3)]
        signals = correlator.detect(make_context(signals=active))

        assert len(signals) == 1
        overload = signals[0]
        assert overload.type == SignalType.PATTERN_INSIGHT
        assert overload.severity == SignalSeverity.ATTENTION
        assert overload.domain == LifeDomain.FINANCE
        assert overload.title == "Domain Overload: finance"
        assert sorted(overload.related_entity_ids) == sorted(s.id for s in active)

    def test_two_signals_is_not_overload(self, correlator, make_context, make_signal):
        active = [make_signal(domain="finance") for _ in range(2)]
        assert correlator.detect(make_context(signals=active)) == []


class TestPairs:
    def test_real_estate_and_finance(self, correlator, make_context, make_signal):
        re_signal = make_signal(domain="business_re")
        fin_signal = make_signal(domain="finance")
        signals = correlator.detect(make_context(signals=[re_signal, fin_signal]))

        assert len(signals) == 1
        assert signals[0].type == SignalType.FINANCIAL_UPDATE
        assert signals[0].domain == LifeDomain.BUSINESS_RE
        assert set(signals[0].related_entity_ids) == {re_signal.id, fin_signal.id}

    def test_family_and_business(self, correlator, make_context, make_signal):
        family = make_signal(domain="family")
        trading = make_signal(domain="business_trading")
        signals = correlator.detect(make_context(signals=[family, trading]))

        assert len(signals) == 1
        assert signals[0].type == SignalType.CONTEXT_SWITCH_PREP
        assert signals[0].domain == LifeDomain.FAMILY
        assert "business_trading" in signals[0].context

    def test_family_alone(self, correlator, make_context, make_signal):
        assert correlator.detect(make_context(signals=[make_signal(domain="family")])) == []


class TestFiltering:
    def test_no_active_signals(self, correlator, make_context):
        assert correlator.detect(make_context()) == []

    def test_resolved_and_expired_ignored(self, correlator, make_context, make_signal, now):
        active = [
            make_signal(domain="finance"),
            make_signal(domain="finance", is_dismissed=True),
            make_signal(domain="finance", expires_at=now - timedelta(minutes=1)),
        ]
        assert correlator.detect(make_context(signals=active)) == []

    def test_own_outputs_ignored(self, correlator, make_context, make_signal):
        active = [make_signal(domain="finance", source=correlator.detector_id) for _ in range(3)]
        assert correlator.detect(make_context(signals=active)) == []

    def test_stable_across_repeated_runs(self, correlator, make_context, make_signal):
        active = [make_signal(domain="finance") for _ in range(3)]
        first = correlator.detect(make_context(signals=active))
        second = correlator.detect(make_context(signals=active + first))

        assert [s.dedupe_key for s in first] == [s.dedupe_key for s in second]
