"""
Insight Generator

Asks an external text-generation model for one to three insights drawn
from learned patterns and the last day of signals. The call is bounded by
a timeout and fails soft: any error means zero signals this cycle.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any

from lifeos.observability import insight_failures

from ..context import AnticipationContext
from ..signals import LifeDomain, ProductivityPattern, Signal, SignalSeverity, SignalType
from .base import BaseDetector

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 3
MAX_TITLE_LENGTH = 60
INSIGHT_TTL = timedelta(hours=24)
ALLOWED_SEVERITIES = {SignalSeverity.INFO.value, SignalSeverity.ATTENTION.value}
VALID_DOMAINS = {d.value for d in LifeDomain}

SYSTEM_PROMPT = f"""You are a personal productivity advisor analyzing behavior patterns for a Life OS dashboard.

Given the user's productivity patterns and recent signals, generate 1-3 actionable insights.

Each insight must have:
- title: short descriptive title (max {MAX_TITLE_LENGTH} chars)
- context: 1-2 sentence explanation of the insight
- suggested_action: specific actionable recommendation
- severity: "info" for general observations, "attention" for actionable items
- domain: one of {", ".join(f'"{d}"' for d in sorted(VALID_DOMAINS))}

Focus on:
- Cross-domain correlations (e.g., exercise patterns affecting productivity)
- Non-obvious patterns the user might not notice
- Timing-based suggestions based on detected rhythms
- Balance warnings across life domains

Return ONLY a JSON array of insight objects. No explanation text."""


def _counts(values) -> dict[str, int]:
    counts: dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def build_insight_prompt(
    patterns: list[ProductivityPattern],
    recent_signals: list[Signal],
    context: AnticipationContext,
) -> str:
    """Render patterns plus a 24h signal digest as the user prompt."""
    pattern_lines = "\n".join(
        f"- {p.pattern_type.value}: {p.description} (confidence: {p.confidence * 100:.0f}%)"
        for p in patterns
    )

    since = context.now - timedelta(hours=24)
    recent = [s for s in recent_signals if s.created_at > since]
    by_type = _counts(s.type.value for s in recent)
    by_domain = _counts(s.domain.value for s in recent)
    type_lines = "\n".join(f"  {k}: {v}" for k, v in by_type.items())
    domain_lines = "\n".join(f"  {k}: {v}" for k, v in by_domain.items())
    active_projects = sum(1 for p in context.projects if p.get("status") == "active")

    return f"""## Current Date & Time
{context.day_of_week}, {context.today.isoformat()} at {context.current_time}

## Detected Productivity Patterns
{pattern_lines or "No patterns detected yet."}

## Recent Signals (last 24h): {len(recent)} total
By type:
{type_lines or "  None"}
By domain:
{domain_lines or "  None"}

## Active Context
- Tasks: {len(context.tasks)} total
- Calendar events: {len(context.calendar_events)}
- Active projects: {active_projects}

Generate 1-3 proactive insights based on these patterns."""


def parse_insights(raw: Any) -> list[dict[str, str]]:
    """
    Validate model output and clamp every field to the allowed values.

    Items without a string title and context are dropped. At most three
    survive. Unknown severities become info; unknown domains become
    personal_growth.
    """
    if isinstance(raw, dict) and isinstance(raw.get("insights"), list):
        raw = raw["insights"]
    if not isinstance(raw, list):
        return []

    insights = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if not isinstance(item.get("title"), str) or not isinstance(item.get("context"), str):
            continue
        severity = str(item.get("severity") or "")
        domain = str(item.get("domain") or "")
        insights.append(
            {
                "title": item["title"][:MAX_TITLE_LENGTH],
                "context": item["context"],
                "suggested_action": str(item.get("suggested_action") or ""),
                "severity": severity if severity in ALLOWED_SEVERITIES else SignalSeverity.INFO.value,
                "domain": domain if domain in VALID_DOMAINS else LifeDomain.PERSONAL_GROWTH.value,
            }
        )
        if len(insights) == MAX_INSIGHTS:
            break
    return insights


def insights_to_signals(insights: list[dict[str, str]], now: datetime, source: str) -> list[Signal]:
    return [
        Signal(
            type=SignalType.LEARNED_SUGGESTION,
            severity=insight["severity"],
            domain=insight["domain"],
            source=source,
            title=insight["title"],
            context=insight["context"],
            suggested_action=insight["suggested_action"] or None,
            created_at=now,
            expires_at=now + INSIGHT_TTL,
        )
        for insight in insights
    ]


def build_weekly_digest(patterns: list[ProductivityPattern]) -> str:
    """Bullet list of confident pattern descriptions."""
    if not patterns:
        return "Not enough data yet to generate a weekly digest."

    lines = ["Based on your patterns this week:"]
    lines.extend(f"• {p.description}" for p in patterns if p.confidence >= 0.3)
    if len(lines) == 1:
        return "Not enough confident patterns to generate a digest."
    return "\n".join(lines)


class InsightGenerator(BaseDetector):
    """
    Model-backed detector.

    Signal types produced:
    - learned_suggestion (expires after 24h)
    """

    detector_id = "insight-generator"
    version = "1.0.0"
    description = "Asks a text-generation model for cross-domain insights"
    signal_types = [SignalType.LEARNED_SUGGESTION]

    def __init__(self, client, timeout_seconds: float = 15.0):
        self.client = client
        self.timeout_seconds = timeout_seconds

    def get_parameters(self) -> dict[str, Any]:
        return {"timeout_seconds": self.timeout_seconds, "max_insights": MAX_INSIGHTS}

    async def detect(self, context: AnticipationContext) -> list[Signal]:
        patterns = list(context.historical_patterns)
        if not patterns:
            return []

        prompt = build_insight_prompt(patterns, list(context.signals), context)
        try:
            raw = await asyncio.wait_for(
                self.client.ask_structured(prompt, SYSTEM_PROMPT),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            insight_failures.inc()
            logger.warning(f"Insight generation timed out after {self.timeout_seconds}s")
            return []
        except Exception as e:
            insight_failures.inc()
            logger.warning(f"Insight generation failed: {e}")
            return []

        insights = parse_insights(raw)
        if not insights:
            logger.warning("Insight generation returned no usable insights")
        return insights_to_signals(insights, context.now, self.detector_id)
