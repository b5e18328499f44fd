"""
Tests for AnticipationContext and context assembly from the document store.
"""

from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest

from lifeos.intelligence.context import build_context_from_store, minimal_context
from lifeos.intelligence.patterns import PATTERNS_COLLECTION
from lifeos.intelligence.signals import PatternType, ProductivityPattern


class TestAnticipationContext:
    def test_derived_fields(self, make_context):
        context = make_context()
        assert context.current_time == "10:00"
        assert context.current_hour == 10
        assert context.day_of_week == "Friday"
        assert context.today.isoformat() == "2026-02-13"

    def test_read_only(self, make_context):
        context = make_context(tasks=[{"id": "t1"}], integrations={"portfolio": {}})
        with pytest.raises(FrozenInstanceError):
            context.tasks = ()
        with pytest.raises(TypeError):
            context.integrations["portfolio"] = None
        assert isinstance(context.tasks, tuple)

    def test_active_signals_filter(self, make_context, make_signal, now):
        live = make_signal()
        done = make_signal(is_acted_on=True)
        gone = make_signal(expires_at=now)
        assert make_context(signals=[live, done, gone]).active_signals == [live]

    def test_latest_pattern(self, make_context, now):
        old = ProductivityPattern("peak_hours", "old", {}, 0.5, "2026-02-02", created_at=now - timedelta(days=7))
        new = ProductivityPattern("peak_hours", "new", {}, 0.5, "2026-02-09", created_at=now)
        context = make_context(historical_patterns=[new, old])

        assert context.pattern(PatternType.PEAK_HOURS) is new
        assert context.pattern(PatternType.DEEP_WORK_RATIO) is None

    def test_minimal_context(self, now, make_signal):
        signal = make_signal()
        context = minimal_context(now, [signal])
        assert context.emails == ()
        assert context.signals == (signal,)


class TestBuildFromStore:
    def test_collections_loaded(self, store, now):
        store.insert("tasks", {"id": "t1", "title": "Write"})
        store.insert("emails", {"id": "e1"})
        store.insert("family_events", {"id": "f1"})
        store.insert("portfolio_snapshots", {"id": "p1", "date": "2026-02-11", "equity": 1})
        store.insert("portfolio_snapshots", {"id": "p2", "date": "2026-02-12", "equity": 2})
        store.insert(
            PATTERNS_COLLECTION,
            ProductivityPattern("peak_hours", "9am", {"hours": [9]}, 0.5, "2026-02-09").to_dict(),
        )

        context = build_context_from_store(store, now)

        assert [t["id"] for t in context.tasks] == ["t1"]
        assert len(context.emails) == 1
        assert context.integrations["family_calendars"] == [{"id": "f1"}]
        assert context.integrations["portfolio"]["equity"] == 2
        assert context.historical_patterns[0].pattern_type == PatternType.PEAK_HOURS

    def test_explicit_patterns_win(self, store, now):
        store.insert(PATTERNS_COLLECTION, ProductivityPattern("peak_hours", "x", {}, 0.5, "2026-02-09").to_dict())
        assert build_context_from_store(store, now, patterns=[]).historical_patterns == ()

    def test_no_portfolio(self, store, now):
        assert "portfolio" not in build_context_from_store(store, now).integrations
