"""
Tests for the anticipation worker.

Covers:
- Single-flight detection cycles (overlapping ticks are skipped)
- start / stop / idempotent start / disabled worker
- A failed cycle leaves the active set unchanged
- Learning cycle caches and failure handling
- update_config
"""

import asyncio
from datetime import datetime

import pytest

from lifeos.config import WorkerConfig
from lifeos.intelligence.detectors import AgingDetector, BaseDetector, DetectorRegistry
from lifeos.intelligence.signals import ProductivityPattern
from lifeos.worker import AnticipationWorker

NOW = datetime(2026, 2, 13, 10, 0, 0)

# Intervals long enough that the timers never fire during a test
QUIET = WorkerConfig(interval_ms=3_600_000, learning_interval_ms=3_600_000)


class StaticDetector(BaseDetector):
    detector_id = "static"

    def __init__(self, signals=()):
        self.signals = list(signals)
        self.calls = 0

    def detect(self, context):
        self.calls += 1
        return list(self.signals)


def _worker(detector=None, config=QUIET, **kwargs) -> AnticipationWorker:
    registry = DetectorRegistry([detector or StaticDetector()])
    return AnticipationWorker(config, registry=registry, clock=lambda: NOW, **kwargs)


# =============================================================================
# DETECTION CYCLE
# =============================================================================


class TestDetectionCycle:
    def test_cycle_populates_store(self, make_signal):
        signal = make_signal()
        worker = _worker(StaticDetector([signal]))

        summary = asyncio.run(worker.run_cycle())

        assert summary["signal_count"] == 1
        assert summary["services_run"] == ["static"]
        assert worker.signal_store.active(NOW) == [signal]
        assert worker.cycle_count == 1
        assert worker.last_run_at == NOW

    def test_overlapping_tick_is_skipped(self, make_context):
        async def scenario():
            gate = asyncio.Event()
            calls = []

            async def slow_provider():
                calls.append(1)
                await gate.wait()
                return make_context()

            worker = _worker(context_provider=slow_provider)
            first = asyncio.create_task(worker.run_cycle())
            await asyncio.sleep(0)

            worker._tick_detection()
            overlapping = await worker.run_cycle()
            gate.set()
            summary = await first
            await worker.wait_idle()
            return worker, calls, overlapping, summary

        worker, calls, overlapping, summary = asyncio.run(scenario())

        assert overlapping is None
        assert summary is not None
        assert len(calls) == 1
        assert worker.cycle_count == 1
        assert worker.skipped_count == 2

    def test_failed_cycle_keeps_active_set(self, make_signal, make_context):
        state = {"fail": False}

        def provider():
            if state["fail"]:
                raise RuntimeError("store offline")
            return make_context()

        signal = make_signal()
        worker = _worker(StaticDetector([signal]), context_provider=provider)
        asyncio.run(worker.run_cycle())
        state["fail"] = True

        assert asyncio.run(worker.run_cycle()) is None
        assert worker.signal_store.signals == [signal]
        assert worker.error_count == 1
        assert worker.cycle_count == 1
        assert not worker.is_running

    def test_expired_signals_purged(self, make_signal):
        stale = make_signal(related_entity_ids=["old"], expires_at=NOW)
        worker = _worker()
        worker.signal_store.replace_all([stale])

        asyncio.run(worker.run_cycle())

        assert worker.signal_store.signals == []

    def test_minimal_context_without_provider(self, make_signal):
        worker = _worker()
        held = make_signal()
        worker.signal_store.add_signal(held, NOW)

        context = asyncio.run(worker.acquire_context())

        assert context.now == NOW
        assert context.tasks == ()
        assert list(context.signals) == [held]


# =============================================================================
# LIFECYCLE
# =============================================================================


class TestLifecycle:
    def test_start_primes_and_is_idempotent(self):
        detector = StaticDetector()
        worker = _worker(detector)

        async def scenario():
            await worker.start()
            await worker.start()
            status = worker.get_status()
            worker.stop()
            return status

        status = asyncio.run(scenario())

        assert status["is_active"] is True
        assert status["cycle_count"] == 1
        assert status["learning_count"] == 1
        assert detector.calls == 1
        assert not worker.is_active

    def test_disabled_worker_does_not_start(self):
        worker = _worker(config=WorkerConfig(enabled=False))
        asyncio.run(worker.start())
        assert not worker.is_active
        assert worker.cycle_count == 0

    def test_stop_when_idle_is_noop(self):
        worker = _worker()
        worker.stop()
        assert not worker.is_active

    @pytest.mark.slow
    def test_timer_drives_cycles(self):
        worker = _worker(config=WorkerConfig(interval_ms=20, learning_interval_ms=3_600_000))

        async def scenario():
            await worker.start()
            await asyncio.sleep(0.15)
            worker.stop()
            await worker.wait_idle()

        asyncio.run(scenario())
        assert worker.cycle_count >= 2

    def test_status_shape(self):
        status = _worker().get_status()
        assert status["detectors"] == ["static"]
        assert status["config"]["interval_ms"] == 3_600_000
        assert status["last_run_at"] is None
        assert status["last_summary"] is None


# =============================================================================
# LEARNING
# =============================================================================


class TestLearning:
    def test_learning_without_store_uses_held_signals(self, make_signal):
        worker = _worker()
        worker.signal_store.replace_all([make_signal(is_dismissed=True) for _ in range(5)])

        assert asyncio.run(worker.run_learning_cycle())
        assert worker.weights[0].weight_modifier == pytest.approx(0.3)
        assert worker.last_learning_at == NOW

    def test_learning_failure_keeps_caches(self, monkeypatch):
        worker = _worker()
        pattern = ProductivityPattern("completion_rate", "3 a day", {"rate": 3}, 0.35, "2026-02-09")
        worker._patterns = [pattern]

        def explode(now, inputs=None):
            raise RuntimeError("db locked")

        monkeypatch.setattr(worker.pattern_learner, "learn", explode)

        assert asyncio.run(worker.run_learning_cycle()) is False
        assert worker.patterns == [pattern]
        assert worker.learning_count == 0

    def test_caches_loaded_from_store(self, store, make_signal):
        for _ in range(6):
            store.upsert("signals", make_signal(is_acted_on=True).to_dict())
        first = AnticipationWorker(QUIET, store=store, registry=DetectorRegistry(), clock=lambda: NOW)
        asyncio.run(first.run_learning_cycle())

        second = AnticipationWorker(QUIET, store=store, registry=DetectorRegistry(), clock=lambda: NOW)
        assert [w.weight_modifier for w in second.weights] == [pytest.approx(2.0)]


# =============================================================================
# CONFIG
# =============================================================================


class TestUpdateConfig:
    def test_updates_aging_thresholds(self):
        worker = AnticipationWorker(QUIET, clock=lambda: NOW)
        asyncio.run(worker.update_config(email_attention_hours=6, interval_ms=60_000))

        aging = worker.engine.registry.get(AgingDetector.detector_id)
        assert aging.config.email_attention_hours == 6
        assert worker.config.interval_ms == 60_000
        assert not worker.is_active

    def test_unknown_key_rejected(self):
        worker = _worker()
        with pytest.raises(ValueError):
            asyncio.run(worker.update_config(colour="blue"))

    def test_restarts_active_worker(self):
        worker = _worker()

        async def scenario():
            await worker.start()
            await worker.update_config(interval_ms=1_800_000)
            active = worker.is_active
            worker.stop()
            return active

        assert asyncio.run(scenario()) is True
        assert worker.config.interval_ms == 1_800_000
        assert worker.cycle_count == 2
