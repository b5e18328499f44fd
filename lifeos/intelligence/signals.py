"""
Signal model for the anticipation pipeline.

A Signal is one detected noteworthy condition. ProductivityPattern and
SignalWeight are the two derived records the learning cycle produces.
All three round-trip through plain dicts for the document store.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from .temporal import parse_datetime, to_iso, utcnow

# =============================================================================
# ENUMS
# =============================================================================


class SignalSeverity(StrEnum):
    """Ordered severity levels, lowest first."""

    INFO = "info"
    ATTENTION = "attention"
    URGENT = "urgent"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    SignalSeverity.INFO: 0,
    SignalSeverity.ATTENTION: 1,
    SignalSeverity.URGENT: 2,
    SignalSeverity.CRITICAL: 3,
}


class SignalType(StrEnum):
    """Kinds of signal the detectors emit."""

    AGING_EMAIL = "aging_email"
    DEADLINE_APPROACHING = "deadline_approaching"
    STREAK_AT_RISK = "streak_at_risk"
    CALENDAR_CONFLICT = "calendar_conflict"
    DEAL_UPDATE = "deal_update"
    PORTFOLIO_ALERT = "portfolio_alert"
    PATTERN_INSIGHT = "pattern_insight"
    FAMILY_AWARENESS = "family_awareness"
    HEALTH_REMINDER = "health_reminder"
    WEEKLY_REVIEW = "weekly_review"
    FINANCIAL_UPDATE = "financial_update"
    DOCUMENT_ACTION = "document_action"
    FOLLOW_UP_DUE = "follow_up_due"
    CONTEXT_SWITCH_PREP = "context_switch_prep"
    LEARNED_SUGGESTION = "learned_suggestion"


class LifeDomain(StrEnum):
    """Life domains the system tracks."""

    BUSINESS_RE = "business_re"
    BUSINESS_TRADING = "business_trading"
    BUSINESS_TECH = "business_tech"
    PERSONAL_GROWTH = "personal_growth"
    HEALTH_FITNESS = "health_fitness"
    FAMILY = "family"
    FINANCE = "finance"
    SOCIAL = "social"
    CREATIVE = "creative"
    SPIRITUAL = "spiritual"


BUSINESS_DOMAINS = (
    LifeDomain.BUSINESS_RE,
    LifeDomain.BUSINESS_TRADING,
    LifeDomain.BUSINESS_TECH,
)


class PatternType(StrEnum):
    """Statistics the pattern learner can derive."""

    PEAK_HOURS = "peak_hours"
    TASK_ESTIMATION = "task_estimation"
    DAY_OF_WEEK = "day_of_week"
    DEEP_WORK_RATIO = "deep_work_ratio"
    DOMAIN_BALANCE = "domain_balance"
    COMPLETION_RATE = "completion_rate"


def generate_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# SIGNAL
# =============================================================================


@dataclass
class Signal:
    """A single detected condition."""

    type: SignalType
    severity: SignalSeverity
    domain: LifeDomain
    source: str
    title: str
    context: str
    suggested_action: str | None = None
    auto_actionable: bool = False
    is_dismissed: bool = False
    is_acted_on: bool = False
    related_entity_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    expires_at: datetime | None = None
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = SignalType(self.type)
        if isinstance(self.severity, str):
            self.severity = SignalSeverity(self.severity)
        if isinstance(self.domain, str):
            self.domain = LifeDomain(self.domain)
        self.related_entity_ids = list(self.related_entity_ids)

    @property
    def dedupe_key(self) -> tuple[str, tuple[str, ...]]:
        """Type plus the related ids as a set; order does not matter."""
        return (self.type.value, tuple(sorted(set(self.related_entity_ids))))

    @property
    def is_resolved(self) -> bool:
        return self.is_dismissed or self.is_acted_on

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "domain": self.domain.value,
            "source": self.source,
            "title": self.title,
            "context": self.context,
            "suggested_action": self.suggested_action,
            "auto_actionable": self.auto_actionable,
            "is_dismissed": self.is_dismissed,
            "is_acted_on": self.is_acted_on,
            "related_entity_ids": list(self.related_entity_ids),
            "created_at": to_iso(self.created_at),
            "expires_at": to_iso(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Signal":
        return cls(
            id=data.get("id") or generate_id(),
            type=data["type"],
            severity=data["severity"],
            domain=data["domain"],
            source=data.get("source", ""),
            title=data.get("title", ""),
            context=data.get("context", ""),
            suggested_action=data.get("suggested_action"),
            auto_actionable=bool(data.get("auto_actionable", False)),
            is_dismissed=bool(data.get("is_dismissed", False)),
            is_acted_on=bool(data.get("is_acted_on", False)),
            related_entity_ids=data.get("related_entity_ids") or [],
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
            expires_at=parse_datetime(data.get("expires_at")),
        )


# =============================================================================
# LEARNED RECORDS
# =============================================================================


@dataclass
class ProductivityPattern:
    """A statistical summary of past behavior. Not a signal."""

    pattern_type: PatternType
    description: str
    data: dict[str, Any]
    confidence: float
    week_start: str
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        if isinstance(self.pattern_type, str):
            self.pattern_type = PatternType(self.pattern_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pattern_type": self.pattern_type.value,
            "description": self.description,
            "data": self.data,
            "confidence": self.confidence,
            "week_start": self.week_start,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductivityPattern":
        return cls(
            id=data.get("id") or generate_id(),
            pattern_type=data["pattern_type"],
            description=data.get("description", ""),
            data=data.get("data") or {},
            confidence=float(data.get("confidence", 0.0)),
            week_start=data.get("week_start", ""),
            created_at=parse_datetime(data.get("created_at")) or utcnow(),
        )


@dataclass
class SignalWeight:
    """Learned ranking multiplier for one (signal type, domain) pair."""

    signal_type: SignalType
    domain: LifeDomain
    total_generated: int = 0
    total_dismissed: int = 0
    total_acted_on: int = 0
    effectiveness_score: float = 0.5
    weight_modifier: float = 1.0
    last_updated: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        if isinstance(self.signal_type, str):
            self.signal_type = SignalType(self.signal_type)
        if isinstance(self.domain, str):
            self.domain = LifeDomain(self.domain)

    @property
    def key(self) -> tuple[str, str]:
        return (self.signal_type.value, self.domain.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "signal_type": self.signal_type.value,
            "domain": self.domain.value,
            "total_generated": self.total_generated,
            "total_dismissed": self.total_dismissed,
            "total_acted_on": self.total_acted_on,
            "effectiveness_score": self.effectiveness_score,
            "weight_modifier": self.weight_modifier,
            "last_updated": to_iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SignalWeight":
        return cls(
            id=data.get("id") or generate_id(),
            signal_type=data["signal_type"],
            domain=data["domain"],
            total_generated=int(data.get("total_generated", 0)),
            total_dismissed=int(data.get("total_dismissed", 0)),
            total_acted_on=int(data.get("total_acted_on", 0)),
            effectiveness_score=float(data.get("effectiveness_score", 0.5)),
            weight_modifier=float(data.get("weight_modifier", 1.0)),
            last_updated=parse_datetime(data.get("last_updated")) or utcnow(),
        )
