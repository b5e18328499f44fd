"""
Tests for the anticipation engine.

Covers:
- Detectors run in registry order over one context
- A raising detector is isolated and recorded as a failed phase
- Async detectors are awaited
- Candidates are ranked by the synthesizer
"""

import asyncio

from lifeos.cycle_result import CycleResult
from lifeos.intelligence.detectors import BaseDetector, DetectorRegistry
from lifeos.intelligence.engine import AnticipationEngine
from lifeos.intelligence.signals import SignalSeverity, SignalType, SignalWeight
from lifeos.observability import detector_failures


class StaticDetector(BaseDetector):
    def __init__(self, detector_id, signals):
        self.detector_id = detector_id
        self.signals = signals
        self.seen = []

    def detect(self, context):
        self.seen.append(context)
        return list(self.signals)


class AsyncDetector(StaticDetector):
    async def detect(self, context):
        await asyncio.sleep(0)
        return list(self.signals)


class BrokenDetector(BaseDetector):
    detector_id = "broken"

    def detect(self, context):
        raise RuntimeError("boom")


def _run(engine, context, **kwargs) -> CycleResult:
    return asyncio.run(engine.run_cycle(context, **kwargs))


class TestEngine:
    def test_ranks_all_candidates(self, make_context, make_signal):
        low = make_signal(severity="info", related_entity_ids=["a"])
        high = make_signal(severity="critical", related_entity_ids=["b"])
        engine = AnticipationEngine(
            DetectorRegistry([StaticDetector("one", [low]), StaticDetector("two", [high])])
        )

        result = _run(engine, make_context(), cycle_number=3)

        assert result.cycle_number == 3
        assert result.candidates == [low, high]
        assert result.ranked == [high, low]
        assert result.scores == [100, 25]
        assert result.overall_success
        assert result.succeeded_phases == ["one", "two"]

    def test_replacing_sources_listed(self, make_context):
        restating = StaticDetector("restating", [])
        restating.replaces_previous = True
        registry = DetectorRegistry([restating, StaticDetector("plain", []), BrokenDetector()])

        result = _run(AnticipationEngine(registry), make_context())

        assert result.replacing_sources == ["restating"]

    def test_same_context_for_every_detector(self, make_context):
        first, second = StaticDetector("one", []), StaticDetector("two", [])
        context = make_context()
        _run(AnticipationEngine(DetectorRegistry([first, second])), context)
        assert first.seen == [context]
        assert second.seen == [context]

    def test_failing_detector_isolated(self, make_context, make_signal):
        signal = make_signal()
        engine = AnticipationEngine(
            DetectorRegistry([BrokenDetector(), StaticDetector("ok", [signal])])
        )
        before = detector_failures.value

        result = _run(engine, make_context())

        assert result.ranked == [signal]
        assert result.failed_phases == ["broken"]
        assert not result.overall_success
        assert "broken" in result.error
        assert result.phases[0].error == "boom"
        assert detector_failures.value == before + 1

    def test_async_detector_awaited(self, make_context, make_signal):
        signal = make_signal(type=SignalType.LEARNED_SUGGESTION, severity=SignalSeverity.INFO)
        engine = AnticipationEngine(DetectorRegistry([AsyncDetector("async", [signal])]))
        assert _run(engine, make_context()).ranked == [signal]

    def test_weights_applied(self, make_context, make_signal):
        signal = make_signal()
        weights = [SignalWeight(signal_type="aging_email", domain="business_tech", weight_modifier=2.0)]
        engine = AnticipationEngine(DetectorRegistry([StaticDetector("one", [signal])]))

        assert _run(engine, make_context(), weights=weights).scores == [100]

    def test_summary_shape(self, make_context, make_signal, now):
        engine = AnticipationEngine(
            DetectorRegistry([StaticDetector("one", [make_signal()]), BrokenDetector()]),
            clock=lambda: now,
        )
        summary = _run(engine, make_context()).to_summary()

        assert set(summary) == {"timestamp", "signal_count", "services_run", "duration_ms"}
        assert summary["timestamp"] == now.isoformat()
        assert summary["signal_count"] == 1
        assert summary["services_run"] == ["one"]
        assert isinstance(summary["duration_ms"], int)

    def test_empty_registry(self, make_context):
        result = _run(AnticipationEngine(DetectorRegistry()), make_context())
        assert result.ranked == []
        assert result.overall_success
