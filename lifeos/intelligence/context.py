"""
AnticipationContext: the read-only snapshot every detector receives.

Entity records (tasks, emails, calendar events, ...) are plain dicts as
they come out of the document store. The pipeline never mutates them.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from .signals import PatternType, ProductivityPattern, Signal
from .temporal import format_hhmm, parse_date, utcnow

logger = logging.getLogger(__name__)

INTEGRATION_KEYS = ("portfolio", "family_calendars", "recent_docs", "notion_updates")


@dataclass(frozen=True)
class AnticipationContext:
    """Snapshot of the user's world at one instant."""

    now: datetime
    tasks: tuple[dict, ...] = ()
    projects: tuple[dict, ...] = ()
    categories: tuple[dict, ...] = ()
    emails: tuple[dict, ...] = ()
    calendar_events: tuple[dict, ...] = ()
    deals: tuple[dict, ...] = ()
    signals: tuple[Signal, ...] = ()
    integrations: Mapping[str, Any] = field(default_factory=dict)
    historical_patterns: tuple[ProductivityPattern, ...] = ()

    def __post_init__(self):
        for name in ("tasks", "projects", "categories", "emails", "calendar_events", "deals"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "signals", tuple(self.signals))
        object.__setattr__(self, "historical_patterns", tuple(self.historical_patterns))
        object.__setattr__(self, "integrations", MappingProxyType(dict(self.integrations)))

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def current_time(self) -> str:
        """HH:MM"""
        return format_hhmm(self.now)

    @property
    def current_hour(self) -> int:
        return self.now.hour

    @property
    def day_of_week(self) -> str:
        """Full English weekday name, e.g. 'Friday'."""
        return self.now.strftime("%A")

    @property
    def active_signals(self) -> list[Signal]:
        """Signals not yet dismissed, acted on, or expired."""
        return [s for s in self.signals if not s.is_resolved and not s.is_expired(self.now)]

    def pattern(self, pattern_type: PatternType) -> ProductivityPattern | None:
        """Most recent learned pattern of the given type, if any."""
        matches = [p for p in self.historical_patterns if p.pattern_type == pattern_type]
        if not matches:
            return None
        return max(matches, key=lambda p: p.created_at)


def minimal_context(
    now: datetime | None = None,
    signals: Iterable[Signal] = (),
    patterns: Iterable[ProductivityPattern] = (),
) -> AnticipationContext:
    """Context with empty entity lists, used when no provider is registered."""
    return AnticipationContext(
        now=now or utcnow(),
        signals=tuple(signals),
        historical_patterns=tuple(patterns),
    )


def _latest_portfolio(snapshots: list[dict]) -> dict | None:
    dated = [s for s in snapshots if parse_date(s.get("date"))]
    if not dated:
        return snapshots[-1] if snapshots else None
    return max(dated, key=lambda s: parse_date(s.get("date")))


def build_context_from_store(
    store,
    now: datetime | None = None,
    signals: Iterable[Signal] = (),
    patterns: Iterable[ProductivityPattern] | None = None,
) -> AnticipationContext:
    """
    Assemble a snapshot from the document store collections.

    ``patterns`` defaults to whatever the last learning cycle persisted.
    """
    if patterns is None:
        patterns = [
            ProductivityPattern.from_dict(doc) for doc in store.find("productivity_patterns")
        ]

    integrations: dict[str, Any] = {
        "family_calendars": store.find("family_events"),
        "recent_docs": store.find("recent_docs"),
        "notion_updates": store.find("notion_updates"),
    }
    portfolio = _latest_portfolio(store.find("portfolio_snapshots"))
    if portfolio is not None:
        integrations["portfolio"] = portfolio

    context = AnticipationContext(
        now=now or utcnow(),
        tasks=store.find("tasks"),
        projects=store.find("projects"),
        categories=store.find("categories"),
        emails=store.find("emails"),
        calendar_events=store.find("calendar_events"),
        deals=store.find("deals"),
        signals=tuple(signals),
        integrations=integrations,
        historical_patterns=tuple(patterns),
    )
    logger.debug(
        f"Context built: {len(context.tasks)} tasks, {len(context.emails)} emails, "
        f"{len(context.calendar_events)} events, {len(context.signals)} signals"
    )
    return context
