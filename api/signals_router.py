"""
Signals API Router

Exposes the anticipation worker's active signal set, its status, the
learned patterns and the morning brief.

Read endpoints are open; mutations (dismiss, act, run) require auth when
LIFEOS_API_TOKEN is set.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.auth import require_auth
from api.response_models import (
    BriefResponse,
    PatternListResponse,
    RunSummaryResponse,
    SignalCountsResponse,
    SignalListResponse,
    SignalMutationResponse,
    WorkerStatusResponse,
)
from lifeos.daemon import morning_brief
from lifeos.intelligence.detectors.insight_generator import build_weekly_digest
from lifeos.intelligence.signals import LifeDomain, SignalSeverity, SignalType
from lifeos.intelligence.synthesizer import rank_signals
from lifeos.worker import AnticipationWorker

logger = logging.getLogger(__name__)

signals_router = APIRouter(tags=["signals"])


def get_worker(request: Request) -> AnticipationWorker:
    """The worker attached to the app by create_app()."""
    worker = getattr(request.app.state, "worker", None)
    if worker is None:
        raise HTTPException(status_code=503, detail="Anticipation worker not initialized")
    return worker


def _enum_or_400(enum_cls, value: str | None, name: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise HTTPException(status_code=400, detail=f"Invalid {name} '{value}'. Use one of: {allowed}")


# =============================================================================
# SIGNALS
# =============================================================================


@signals_router.get("/signals", response_model=SignalListResponse)
async def list_signals(
    domain: str | None = Query(None, description="Filter by life domain"),
    signal_type: str | None = Query(None, alias="type", description="Filter by signal type"),
    min_severity: str | None = Query(None, description="Lowest severity to include"),
    limit: int = Query(50, ge=1, le=500),
    worker: AnticipationWorker = Depends(get_worker),
):
    """Active signals, ranked the same way a detection cycle ranks them."""
    domain_filter = _enum_or_400(LifeDomain, domain, "domain")
    type_filter = _enum_or_400(SignalType, signal_type, "type")
    severity_floor = _enum_or_400(SignalSeverity, min_severity, "severity")

    context = await worker.acquire_context()
    active = worker.signal_store.active(context.now)
    if domain_filter is not None:
        active = [s for s in active if s.domain == domain_filter]
    if type_filter is not None:
        active = [s for s in active if s.type == type_filter]
    if severity_floor is not None:
        active = [s for s in active if s.severity.rank >= severity_floor.rank]

    ranked = rank_signals(active, context, worker.weights, worker.engine.scoring)
    items = [{**signal.to_dict(), "score": round(score, 4)} for signal, score in ranked]
    return {"items": items[:limit], "total": len(items)}


@signals_router.get("/signals/counts", response_model=SignalCountsResponse)
def signal_counts(worker: AnticipationWorker = Depends(get_worker)):
    return worker.signal_store.counts()


@signals_router.post(
    "/signals/{signal_id}/dismiss",
    response_model=SignalMutationResponse,
    dependencies=[Depends(require_auth)],
)
def dismiss_signal(signal_id: str, worker: AnticipationWorker = Depends(get_worker)):
    """Dismiss a signal. Counts against its (type, domain) weight at the next learning cycle."""
    signal = worker.signal_store.dismiss(signal_id)
    if signal is None:
        raise HTTPException(status_code=404, detail=f"Signal {signal_id} not found")
    logger.info(f"Signal dismissed: {signal.type.value} {signal.id}")
    return {"success": True, "signal": signal.to_dict()}


@signals_router.post(
    "/signals/{signal_id}/act",
    response_model=SignalMutationResponse,
    dependencies=[Depends(require_auth)],
)
def act_on_signal(signal_id: str, worker: AnticipationWorker = Depends(get_worker)):
    """Mark a signal as acted on."""
    signal = worker.signal_store.act_on(signal_id)
    if signal is None:
        raise HTTPException(status_code=404, detail=f"Signal {signal_id} not found")
    logger.info(f"Signal acted on: {signal.type.value} {signal.id}")
    return {"success": True, "signal": signal.to_dict()}


# =============================================================================
# WORKER
# =============================================================================


@signals_router.get("/worker/status", response_model=WorkerStatusResponse)
def worker_status(worker: AnticipationWorker = Depends(get_worker)):
    return worker.get_status()


@signals_router.post(
    "/worker/run", response_model=RunSummaryResponse, dependencies=[Depends(require_auth)]
)
async def run_worker_cycle(worker: AnticipationWorker = Depends(get_worker)):
    """Run one detection cycle now. Returns ran=false if one is already in flight."""
    summary = await worker.run_cycle()
    return {"ran": summary is not None, "summary": summary}


# =============================================================================
# PATTERNS & BRIEF
# =============================================================================


@signals_router.get("/patterns", response_model=PatternListResponse)
def list_patterns(worker: AnticipationWorker = Depends(get_worker)):
    patterns = worker.patterns
    return {
        "items": [p.to_dict() for p in patterns],
        "total": len(patterns),
        "digest": build_weekly_digest(patterns),
    }


@signals_router.get("/brief", response_model=BriefResponse)
async def get_morning_brief(worker: AnticipationWorker = Depends(get_worker)):
    brief = await morning_brief(worker)
    return brief.to_dict()
