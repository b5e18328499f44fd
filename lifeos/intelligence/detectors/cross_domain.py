"""
Cross-Domain Correlator

Reasons over the signals that are already active rather than raw entities:
- Domain overload: three or more active signals in one domain
- Real estate and finance signals active together
- Family and business signals active together

Each output references the ids of the signals it correlates. When the
correlated set changes, the new output supersedes the old one, so a domain
carries at most one overload signal at a time.
"""

import logging
from typing import Any

from ..context import AnticipationContext
from ..signals import BUSINESS_DOMAINS, LifeDomain, Signal, SignalSeverity, SignalType
from .base import BaseDetector

logger = logging.getLogger(__name__)


class CrossDomainCorrelator(BaseDetector):
    """
    Finds correlations between active signals across life domains.

    Signal types produced:
    - pattern_insight: Domain overload
    - financial_update: Real estate + finance
    - context_switch_prep: Family + business
    """

    detector_id = "cross-domain-correlator"
    version = "1.0.0"
    description = "Correlates active signals across life domains"
    signal_types = [
        SignalType.PATTERN_INSIGHT,
        SignalType.FINANCIAL_UPDATE,
        SignalType.CONTEXT_SWITCH_PREP,
    ]

    replaces_previous = True

    OVERLOAD_THRESHOLD = 3

    def get_parameters(self) -> dict[str, Any]:
        return {"overload_threshold": self.OVERLOAD_THRESHOLD}

    def detect(self, context: AnticipationContext) -> list[Signal]:
        # Own outputs are excluded so correlations do not feed on themselves.
        active = [s for s in context.active_signals if s.source != self.detector_id]
        if not active:
            return []

        by_domain: dict[LifeDomain, list[Signal]] = {}
        for signal in active:
            by_domain.setdefault(signal.domain, []).append(signal)

        signals = []
        for domain, grouped in by_domain.items():
            if len(grouped) < self.OVERLOAD_THRESHOLD:
                continue
            severities = ", ".join(s.severity.value for s in grouped)
            signals.append(
                self.create_signal(
                    context,
                    SignalType.PATTERN_INSIGHT,
                    SignalSeverity.ATTENTION,
                    domain,
                    f"Domain Overload: {domain.value}",
                    f"{len(grouped)} signals detected in {domain.value} domain "
                    f"(severities: {severities}). This domain may need focused attention.",
                    suggested_action=f"Block time to address {domain.value} items systematically",
                    related_entity_ids=[s.id for s in grouped],
                )
            )

        re_signals = by_domain.get(LifeDomain.BUSINESS_RE, [])
        finance_signals = by_domain.get(LifeDomain.FINANCE, [])
        if re_signals and finance_signals:
            signals.append(
                self.create_signal(
                    context,
                    SignalType.FINANCIAL_UPDATE,
                    SignalSeverity.ATTENTION,
                    LifeDomain.BUSINESS_RE,
                    "Real Estate + Finance Activity Detected",
                    f"{len(re_signals)} real estate signal(s) and {len(finance_signals)} "
                    "finance signal(s) active. Deal pipeline and portfolio both need attention.",
                    suggested_action="Review cash flow availability for real estate deals "
                    "given portfolio status",
                    related_entity_ids=[s.id for s in re_signals + finance_signals],
                )
            )

        family_signals = by_domain.get(LifeDomain.FAMILY, [])
        business_domains = [d for d in BUSINESS_DOMAINS if d in by_domain]
        if family_signals and business_domains:
            business_signals = [s for d in business_domains for s in by_domain[d]]
            signals.append(
                self.create_signal(
                    context,
                    SignalType.CONTEXT_SWITCH_PREP,
                    SignalSeverity.ATTENTION,
                    LifeDomain.FAMILY,
                    "Work-Life Balance: Family + Business Activity",
                    f"{len(family_signals)} family signal(s) and {len(business_signals)} "
                    f"business signal(s) across {', '.join(d.value for d in business_domains)}. "
                    "Context switching may be needed.",
                    suggested_action="Plan transition time between family and business "
                    "responsibilities",
                    related_entity_ids=[s.id for s in family_signals + business_signals],
                )
            )
        return signals
