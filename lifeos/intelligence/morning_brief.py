"""
Morning Brief

Daily synthesis of the active signal set: what is urgent, what needs
attention, the portfolio pulse, today's calendar and family events, and
a rule-based one-line read on the day.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .context import AnticipationContext
from .signals import Signal, SignalSeverity, generate_id
from .temporal import format_hhmm, parse_datetime, to_iso

ACTIVE_DEAL_STATUSES = {"prospect", "analyzing", "offer", "under_contract"}
MAX_CALENDAR_ITEMS = 5


@dataclass
class PortfolioPulse:
    equity: float
    day_pnl: float
    day_pnl_pct: float
    positions_count: int
    active_deals_count: int
    total_deal_value: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "equity": self.equity,
            "day_pnl": self.day_pnl,
            "day_pnl_pct": self.day_pnl_pct,
            "positions_count": self.positions_count,
            "active_deals_count": self.active_deals_count,
            "total_deal_value": self.total_deal_value,
        }


@dataclass
class MorningBrief:
    date: str
    urgent_signals: list[Signal]
    attention_signals: list[Signal]
    calendar_summary: list[str]
    family_summary: list[str]
    day_summary: str
    generated_at: datetime
    portfolio_pulse: PortfolioPulse | None = None
    learned_suggestions: list[str] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "urgent_signals": [s.to_dict() for s in self.urgent_signals],
            "attention_signals": [s.to_dict() for s in self.attention_signals],
            "portfolio_pulse": self.portfolio_pulse.to_dict() if self.portfolio_pulse else None,
            "calendar_summary": self.calendar_summary,
            "family_summary": self.family_summary,
            "day_summary": self.day_summary,
            "learned_suggestions": self.learned_suggestions,
            "generated_at": to_iso(self.generated_at),
        }


def build_portfolio_pulse(context: AnticipationContext) -> PortfolioPulse | None:
    portfolio = context.integrations.get("portfolio")
    if not portfolio:
        return None

    equity = float(portfolio.get("equity") or 0)
    day_pnl = float(portfolio.get("day_pnl") or 0)
    active_deals = [d for d in context.deals if d.get("status") in ACTIVE_DEAL_STATUSES]
    return PortfolioPulse(
        equity=equity,
        day_pnl=day_pnl,
        day_pnl_pct=(day_pnl / equity * 100) if equity > 0 else 0.0,
        positions_count=len(portfolio.get("positions") or []),
        active_deals_count=len(active_deals),
        total_deal_value=sum(float(d.get("purchase_price") or 0) for d in active_deals),
    )


def _events_today(events, context: AnticipationContext) -> list[tuple[datetime, dict]]:
    todays = []
    for event in events:
        start = parse_datetime(event.get("start_time"))
        if start is not None and start.date() == context.today:
            todays.append((start, event))
    todays.sort(key=lambda pair: pair[0])
    return todays


def build_calendar_summary(context: AnticipationContext) -> list[str]:
    todays = _events_today(context.calendar_events, context)[:MAX_CALENDAR_ITEMS]
    return [f"{format_hhmm(start)} - {event.get('summary') or 'Untitled'}" for start, event in todays]


def build_family_summary(context: AnticipationContext) -> list[str]:
    family = context.integrations.get("family_calendars") or []
    return [
        f"{event.get('member') or 'Family'}: {event.get('summary') or 'event'} at {format_hhmm(start)}"
        for start, event in _events_today(family, context)
    ]


def summarize_day(urgent: list[Signal], attention: list[Signal], context: AnticipationContext) -> str:
    urgent_count, attention_count = len(urgent), len(attention)
    total = urgent_count + attention_count

    if urgent_count >= 5:
        return (
            f"High-priority day ahead: {urgent_count} urgent items requiring immediate attention. "
            "Prioritize ruthlessly and delegate where possible."
        )
    if urgent_count >= 2:
        return (
            f"{urgent_count} urgent items need your attention today. Focus on these first, "
            f"then address {attention_count} attention-level items."
        )
    if urgent_count == 1:
        kind = urgent[0].type.value.replace("_", " ")
        rest = f"{attention_count} items to be aware of" if attention_count else "clear day ahead"
        return f"One urgent item ({kind}) needs your attention. Otherwise, {rest}."
    if attention_count >= 3:
        return (
            f"{attention_count} items on your radar today. No urgent fires, "
            "a good opportunity to make progress on strategic work."
        )
    if total <= 2:
        if context.calendar_events:
            return "Clear day ahead. Focus on deep work between scheduled commitments."
        return "Ideal conditions for deep work: minimal distractions, clear calendar. Make it count."
    return f"{total} items to track today. Balance attention between signals and proactive work."


def generate_morning_brief(
    context: AnticipationContext,
    signals: list[Signal],
    learned_suggestions: list[str] | None = None,
) -> MorningBrief:
    urgent = [s for s in signals if s.severity in (SignalSeverity.URGENT, SignalSeverity.CRITICAL)]
    attention = [s for s in signals if s.severity == SignalSeverity.ATTENTION]
    return MorningBrief(
        date=context.today.isoformat(),
        urgent_signals=urgent,
        attention_signals=attention,
        portfolio_pulse=build_portfolio_pulse(context),
        calendar_summary=build_calendar_summary(context),
        family_summary=build_family_summary(context),
        day_summary=summarize_day(urgent, attention, context),
        learned_suggestions=list(learned_suggestions or []),
        generated_at=context.now,
    )
