"""
Shared Pydantic response models for API endpoints.

These models give FastAPI the type information it needs to generate
accurate OpenAPI schemas instead of empty `schema: {}`.

Usage:
    from api.response_models import SignalListResponse

    @router.get("/signals", response_model=SignalListResponse)
    async def list_signals(): ...
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Signal ====
# Mirrors Signal.to_dict(); datetimes are ISO strings.


class SignalModel(BaseModel):
    """One anticipation signal."""

    id: str
    type: str
    severity: str
    domain: str
    source: str
    title: str
    context: str
    suggested_action: str | None = None
    auto_actionable: bool = False
    is_dismissed: bool = False
    is_acted_on: bool = False
    related_entity_ids: list[str] = Field(default_factory=list)
    created_at: str
    expires_at: str | None = None
    score: float | None = Field(default=None, description="Ranking score, list endpoint only")


# ==== List Envelope ====
# Shape: {items, total}


class SignalListResponse(BaseModel):
    """Ranked active signals."""

    items: list[SignalModel] = Field(default_factory=list, description="Active signals, ranked")
    total: int = Field(description="Total count")


class SignalCountsResponse(BaseModel):
    """Active signal counts by severity."""

    total: int = 0
    urgent: int = Field(default=0, description="urgent and critical")
    attention: int = 0
    info: int = 0


# ==== Mutation Result ====


class SignalMutationResponse(BaseModel):
    """Result of dismiss / act."""

    success: bool = Field(description="Whether the operation succeeded")
    signal: SignalModel


# ==== Worker ====


class WorkerStatusResponse(BaseModel):
    """Anticipation worker status."""

    is_active: bool
    is_running: bool
    is_learning: bool = False
    last_run_at: str | None = None
    last_learning_at: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    weights_count: int = 0
    patterns_count: int = 0
    cycle_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    learning_count: int = 0
    last_summary: dict[str, Any] | None = None
    detectors: list[str] = Field(default_factory=list)


class RunSummaryResponse(BaseModel):
    """Outcome of a manually triggered detection cycle."""

    ran: bool = Field(description="False when a cycle was already running or the cycle failed")
    summary: dict[str, Any] | None = Field(
        default=None, description="{timestamp, signal_count, services_run, duration_ms}"
    )


# ==== Patterns ====


class PatternModel(BaseModel):
    id: str
    pattern_type: str
    description: str
    data: dict[str, Any] = Field(default_factory=dict)
    confidence: float
    week_start: str
    created_at: str


class PatternListResponse(BaseModel):
    """Learned productivity patterns plus the weekly digest text."""

    items: list[PatternModel] = Field(default_factory=list)
    total: int
    digest: str


# ==== Morning Brief ====


class BriefResponse(BaseModel):
    """Morning brief; shape follows MorningBrief.to_dict()."""

    id: str
    date: str
    urgent_signals: list[SignalModel] = Field(default_factory=list)
    attention_signals: list[SignalModel] = Field(default_factory=list)
    portfolio_pulse: dict[str, Any] | None = None
    calendar_summary: list[str] = Field(default_factory=list)
    family_summary: list[str] = Field(default_factory=list)
    day_summary: str
    learned_suggestions: list[str] = Field(default_factory=list)
    generated_at: str


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or error")
    version: str = Field(description="Package version string")
    timestamp: str = Field(description="ISO timestamp")
