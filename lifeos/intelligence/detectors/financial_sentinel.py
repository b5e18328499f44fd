"""
Financial Sentinel

Portfolio day P&L alerts and stale real estate deals.
"""

from datetime import timedelta

from ..context import AnticipationContext
from ..signals import LifeDomain, Signal, SignalSeverity, SignalType
from ..temporal import parse_datetime
from .base import BaseDetector

CLOSED_DEAL_STATUSES = {"closed", "dead"}


class FinancialSentinel(BaseDetector):
    """
    Signal types produced:
    - portfolio_alert: Day loss beyond thresholds
    - deal_update: Open deal without a fresh analysis
    """

    detector_id = "financial-sentinel"
    version = "1.0.0"
    description = "Monitors portfolio P&L and the deal pipeline"
    signal_types = [SignalType.PORTFOLIO_ALERT, SignalType.DEAL_UPDATE]

    CRITICAL_LOSS = -500.0
    URGENT_LOSS = -100.0
    STALE_DEAL_DAYS = 7

    def get_parameters(self):
        return {
            "critical_loss": self.CRITICAL_LOSS,
            "urgent_loss": self.URGENT_LOSS,
            "stale_deal_days": self.STALE_DEAL_DAYS,
        }

    def detect(self, context: AnticipationContext) -> list[Signal]:
        return self._check_portfolio(context) + self._check_deals(context)

    def _check_portfolio(self, context: AnticipationContext) -> list[Signal]:
        portfolio = context.integrations.get("portfolio")
        if not portfolio:
            return []

        day_pnl = float(portfolio.get("day_pnl") or 0)
        equity = float(portfolio.get("equity") or 0)
        positions = portfolio.get("positions") or []

        if day_pnl < self.CRITICAL_LOSS:
            severity = SignalSeverity.CRITICAL
            title = f"Critical Portfolio Loss: ${abs(day_pnl):,.2f}"
            action = "Review positions immediately and consider risk management actions"
        elif day_pnl < self.URGENT_LOSS:
            severity = SignalSeverity.URGENT
            title = f"Portfolio Loss: ${abs(day_pnl):,.2f}"
            action = "Review underperforming positions"
        else:
            return []

        return [
            self.create_signal(
                context,
                SignalType.PORTFOLIO_ALERT,
                severity,
                LifeDomain.FINANCE,
                title,
                f"Day P&L is ${day_pnl:,.2f} with {len(positions)} active positions. "
                f"Equity: ${equity:,.2f}",
                suggested_action=action,
            )
        ]

    def _check_deals(self, context: AnticipationContext) -> list[Signal]:
        signals = []
        stale_after = timedelta(days=self.STALE_DEAL_DAYS)
        for deal in context.deals:
            status = deal.get("status")
            if status in CLOSED_DEAL_STATUSES:
                continue
            last_analysis = parse_datetime(deal.get("last_analysis_at"))
            if last_analysis is None:
                continue

            age = context.now - last_analysis
            if age <= stale_after:
                continue

            days = age.days
            address = deal.get("address") or "unknown address"
            if status == "under_contract":
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.DEAL_UPDATE,
                        SignalSeverity.URGENT,
                        LifeDomain.BUSINESS_RE,
                        f"Under-Contract Deal Needs Analysis: {address}",
                        f"Deal under contract for {days} days without fresh analysis. "
                        "Due diligence period may be ending.",
                        suggested_action="Update analysis and verify all contingencies are complete",
                        related_entity_ids=[deal.get("id")],
                    )
                )
            else:
                signals.append(
                    self.create_signal(
                        context,
                        SignalType.DEAL_UPDATE,
                        SignalSeverity.ATTENTION,
                        LifeDomain.BUSINESS_RE,
                        f"Stale Deal: {address}",
                        f"Deal has been in {status or 'unknown'} status for {days} days without "
                        f"analysis. Strategy: {deal.get('strategy') or 'unset'}",
                        suggested_action="Run fresh comps and update deal analysis",
                        related_entity_ids=[deal.get("id")],
                    )
                )
        return signals
