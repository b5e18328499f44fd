"""
Anticipation Engine

Runs every registered detector in order over one context snapshot, then
hands the candidates to the priority synthesizer. A detector that raises
is logged, counted and recorded as a failed phase; the rest still run.
"""

import inspect
import logging
import time
from collections.abc import Callable
from datetime import datetime

from lifeos.config import ScoringConfig
from lifeos.cycle_result import CycleResult, PhaseResult
from lifeos.observability import detector_failures

from .context import AnticipationContext
from .detectors import DetectorRegistry, default_registry
from .synthesizer import WeightTable, rank_signals
from .temporal import utcnow

logger = logging.getLogger(__name__)


class AnticipationEngine:
    """Detectors plus synthesizer for one detection cycle."""

    def __init__(
        self,
        registry: DetectorRegistry | None = None,
        scoring: ScoringConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.scoring = scoring or ScoringConfig()
        self.clock = clock

    async def run_cycle(
        self,
        context: AnticipationContext,
        weights: WeightTable | None = None,
        cycle_number: int = 0,
    ) -> CycleResult:
        started_at = self.clock()
        t0 = time.perf_counter()
        phases: list[PhaseResult] = []
        candidates = []
        replacing = []

        for detector in self.registry:
            name = detector.detector_id
            phase_start = time.perf_counter()
            try:
                found = detector.detect(context)
                if inspect.isawaitable(found):
                    found = await found
                found = list(found or [])
            except Exception as e:
                detector_failures.inc()
                logger.exception(f"✗ {name} failed: {e}")
                phases.append(
                    PhaseResult(
                        name=name,
                        success=False,
                        error=str(e),
                        duration_seconds=time.perf_counter() - phase_start,
                    )
                )
                continue

            candidates.extend(found)
            if getattr(detector, "replaces_previous", False):
                replacing.append(name)
            phases.append(
                PhaseResult(
                    name=name,
                    success=True,
                    duration_seconds=time.perf_counter() - phase_start,
                    data={"signals": len(found)},
                )
            )
            logger.debug(f"✓ {name}: {len(found)} signals")

        ranked = rank_signals(candidates, context, weights, self.scoring)
        duration = time.perf_counter() - t0

        result = CycleResult(
            cycle_number=cycle_number,
            started_at=started_at,
            completed_at=self.clock(),
            phases=phases,
            candidates=candidates,
            ranked=[s for s, _ in ranked],
            scores=[score for _, score in ranked],
            replacing_sources=replacing,
            duration_seconds=duration,
            overall_success=not any(not p.success for p in phases),
        )
        if result.failed_phases:
            result.error = f"Detectors failed: {', '.join(result.failed_phases)}"

        logger.info(
            f"Cycle {cycle_number} complete in {duration * 1000:.1f}ms: "
            f"{len(candidates)} candidates, {len(result.ranked)} ranked, "
            f"{len(result.succeeded_phases)}/{len(phases)} detectors succeeded"
        )
        return result
