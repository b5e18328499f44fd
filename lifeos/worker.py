"""
Anticipation Worker - detection and learning scheduler.

Runs two independent loops on the asyncio event loop:
- Detection cycle (default every 5 minutes): context -> detectors ->
  synthesizer -> active signal store, then purge expired signals
- Learning cycle (default every 60 minutes): pattern learner + feedback
  loop, cached for the detection cycles that follow

Each loop is single-flight: a tick that fires while the previous cycle
is still executing is skipped, not queued. stop() cancels the timers but
lets an in-flight cycle finish and apply its results.

Usage:
    worker = AnticipationWorker(config, store=DocumentStore())
    await worker.start()
    ...
    worker.stop()
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from lifeos.config import FeedbackConfig, ScoringConfig, WorkerConfig
from lifeos.intelligence.context import AnticipationContext, minimal_context
from lifeos.intelligence.detectors import AgingDetector, DetectorRegistry, InsightGenerator, default_registry
from lifeos.intelligence.engine import AnticipationEngine
from lifeos.intelligence.feedback_loop import FeedbackLoop, load_weights
from lifeos.intelligence.patterns import PatternLearner, load_patterns
from lifeos.intelligence.signal_store import ActiveSignalStore
from lifeos.intelligence.signals import ProductivityPattern, SignalWeight
from lifeos.intelligence.temporal import to_iso, utcnow
from lifeos.observability import (
    CycleContext,
    active_signals,
    detection_cycle_duration,
    detection_cycle_errors,
    detection_cycles,
    detection_cycles_skipped,
    learning_cycles,
    signals_emitted,
)

logger = logging.getLogger(__name__)

ContextProvider = Callable[[], AnticipationContext | Awaitable[AnticipationContext]]


class AnticipationWorker:
    """Owns the active signal set, the weight cache and both timers."""

    def __init__(
        self,
        config: WorkerConfig | None = None,
        *,
        store=None,
        registry: DetectorRegistry | None = None,
        text_client=None,
        signal_store: ActiveSignalStore | None = None,
        scoring: ScoringConfig | None = None,
        feedback_config: FeedbackConfig | None = None,
        context_provider: ContextProvider | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config or WorkerConfig()
        self.store = store
        self.clock = clock
        self.context_provider = context_provider

        if registry is None:
            registry = default_registry(
                self.config.aging,
                text_client=text_client,
                insight_timeout_seconds=self.config.insight_timeout_seconds,
            )
        self.engine = AnticipationEngine(registry, scoring, clock=clock)
        self.signal_store = signal_store or ActiveSignalStore(store, clock=clock)
        self.pattern_learner = PatternLearner(store)
        self.feedback_loop = FeedbackLoop(store, feedback_config)

        self._detection_task: asyncio.Task | None = None
        self._learning_task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._cycle_running = False
        self._learning_running = False

        self._weights: list[SignalWeight] = []
        self._patterns: list[ProductivityPattern] = []

        self.last_run_at: datetime | None = None
        self.last_learning_at: datetime | None = None
        self.last_summary: dict | None = None
        self.cycle_count = 0
        self.skipped_count = 0
        self.error_count = 0
        self.learning_count = 0

        if store is not None:
            self._weights = load_weights(store)
            self._patterns = load_patterns(store)

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._detection_task is not None

    @property
    def is_running(self) -> bool:
        return self._cycle_running

    @property
    def weights(self) -> list[SignalWeight]:
        return list(self._weights)

    @property
    def patterns(self) -> list[ProductivityPattern]:
        return list(self._patterns)

    def set_context_provider(self, provider: ContextProvider | None) -> None:
        self.context_provider = provider

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Prime both cycles once, then start the timers. No-op if already active."""
        if self.is_active:
            return
        if not self.config.enabled:
            logger.info("Anticipation worker disabled, not starting")
            return

        logger.info(
            f"Starting anticipation worker: detection every {self.config.interval_ms}ms, "
            f"learning every {self.config.learning_interval_ms}ms"
        )
        # Claim the slot before awaiting so a concurrent start() is a no-op.
        self._detection_task = asyncio.create_task(
            self._timer(self.config.interval_ms, self._tick_detection, "detection")
        )
        self._learning_task = asyncio.create_task(
            self._timer(self.config.learning_interval_ms, self._tick_learning, "learning")
        )
        await self.run_learning_cycle()
        await self.run_cycle()

    def stop(self) -> None:
        """Cancel both timers. An in-flight cycle is left to finish."""
        if not self.is_active:
            return
        for task in (self._detection_task, self._learning_task):
            if task is not None:
                task.cancel()
        self._detection_task = None
        self._learning_task = None
        logger.info("Anticipation worker stopped")

    async def update_config(self, **updates: Any) -> None:
        """Apply config changes; restarts the timers if the worker was active."""
        was_active = self.is_active
        if was_active:
            self.stop()
        self.config = self.config.with_updates(**updates)

        aging = self.engine.registry.get(AgingDetector.detector_id)
        if isinstance(aging, AgingDetector):
            aging.config = self.config.aging
        insight = self.engine.registry.get(InsightGenerator.detector_id)
        if isinstance(insight, InsightGenerator):
            insight.timeout_seconds = self.config.insight_timeout_seconds

        logger.info(f"Worker config updated: {sorted(updates)}")
        if was_active and self.config.enabled:
            await self.start()

    async def _timer(self, interval_ms: int, tick: Callable[[], None], name: str) -> None:
        interval = interval_ms / 1000
        try:
            while True:
                await asyncio.sleep(interval)
                tick()
        except asyncio.CancelledError:
            logger.debug(f"{name} timer cancelled")
            raise

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _tick_detection(self) -> None:
        if self._cycle_running:
            self._record_skip()
            return
        self._spawn(self.run_cycle())

    def _tick_learning(self) -> None:
        if self._learning_running:
            logger.warning("Skipping learning tick: previous learning cycle still running")
            return
        self._spawn(self.run_learning_cycle())

    def _record_skip(self) -> None:
        self.skipped_count += 1
        detection_cycles_skipped.inc()
        logger.warning("Skipping detection tick: previous cycle still running")

    async def wait_idle(self) -> None:
        """Wait for cycles spawned by the timers to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # ------------------------------------------------------------------
    # cycles
    # ------------------------------------------------------------------

    async def acquire_context(self, now: datetime | None = None) -> AnticipationContext:
        """Snapshot from the context provider, or a minimal one built from worker state."""
        now = now or self.clock()
        if self.context_provider is None:
            return minimal_context(now, self.signal_store.active(now), self._patterns)
        context = self.context_provider()
        if inspect.isawaitable(context):
            context = await context
        return context

    async def run_cycle(self) -> dict | None:
        """
        One detection cycle.

        Returns the run summary, or None when skipped or failed. Failures
        leave the active signal set as it was.
        """
        if self._cycle_running:
            self._record_skip()
            return None

        self._cycle_running = True
        try:
            with CycleContext() as ctx:
                now = self.clock()
                logger.info(f"▶ Detection cycle {self.cycle_count + 1} ({ctx.cycle_id})")
                context = await self.acquire_context(now)
                result = await self.engine.run_cycle(
                    context, weights=self._weights, cycle_number=self.cycle_count + 1
                )

                for source in result.replacing_sources:
                    self.signal_store.retire_superseded(source, result.ranked)
                added = self.signal_store.add_signals(result.ranked, now)
                purged = self.signal_store.clear_expired(now)

                self.last_run_at = now
                self.cycle_count += 1
                self.last_summary = result.to_summary()

                detection_cycles.inc()
                detection_cycle_duration.observe(result.duration_seconds)
                signals_emitted.inc(len(added))
                active_signals.set(len(self.signal_store.active(now)))

                logger.info(
                    f"✓ Detection cycle complete: {len(result.ranked)} ranked, {len(added)} new, "
                    f"{purged} expired, {len(result.succeeded_phases)} detectors ran "
                    f"in {self.last_summary['duration_ms']}ms"
                )
                return self.last_summary
        except Exception as e:
            self.error_count += 1
            detection_cycle_errors.inc()
            logger.exception(f"✗ Detection cycle failed: {e}")
            return None
        finally:
            self._cycle_running = False

    async def run_learning_cycle(self) -> bool:
        """Recompute patterns and weights. On failure the previous caches stay."""
        if self._learning_running:
            logger.warning("Skipping learning cycle: previous learning cycle still running")
            return False

        self._learning_running = True
        try:
            now = self.clock()
            logger.info("▶ Learning cycle")
            patterns = self.pattern_learner.learn(now)
            history = None if self.store is not None else self.signal_store.signals
            weights = self.feedback_loop.compute(now, signals=history)

            self._patterns = patterns
            self._weights = weights
            self.last_learning_at = now
            self.learning_count += 1
            learning_cycles.inc()
            logger.info(f"✓ Learning cycle complete: {len(patterns)} patterns, {len(weights)} weights")
            return True
        except Exception as e:
            logger.exception(f"✗ Learning cycle failed: {e}")
            return False
        finally:
            self._learning_running = False

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    def get_status(self) -> dict[str, Any]:
        return {
            "is_active": self.is_active,
            "is_running": self.is_running,
            "is_learning": self._learning_running,
            "last_run_at": to_iso(self.last_run_at),
            "last_learning_at": to_iso(self.last_learning_at),
            "config": self.config.to_dict(),
            "weights_count": len(self._weights),
            "patterns_count": len(self._patterns),
            "cycle_count": self.cycle_count,
            "skipped_count": self.skipped_count,
            "error_count": self.error_count,
            "learning_count": self.learning_count,
            "last_summary": self.last_summary,
            "detectors": self.engine.registry.ids(),
        }
