"""Position analytics — risk assessment, user summaries and text reports."""
from __future__ import annotations

import logging
import math
from fractions import Fraction

from ..config import AppConfig
from ..fixed_point import (
    compute_health_factor,
    compute_ltv,
    to_abbreviated_string,
)
from ..interfaces.history_source import HistorySource
from ..models import (
    Position,
    PositionReport,
    PositionStatus,
    TimelinePoint,
    UserHistory,
    UserPositionRecord,
    UserSummary,
)
from ..subgraph import SubgraphClient
from ..timeline import build_performance_timeline, days_since, effective_apy

logger = logging.getLogger(__name__)

_STATUS_LABELS = {
    PositionStatus.HEALTHY: "✅ Healthy",
    PositionStatus.AT_RISK: "⚠️ At Risk",
    PositionStatus.LIQUIDATABLE: "🚨 Liquidatable",
    PositionStatus.INSOLVENT: "🚨 Insolvent (debt without collateral)",
}


class PositionAnalytics:
    """Derives the figures a dashboard shows for a position and its history."""

    def __init__(
        self, config: AppConfig, history_source: HistorySource | None = None
    ) -> None:
        self._config = config
        self._params = config.protocol
        self._thresholds = config.thresholds
        self._display = config.display
        self._history_source = history_source

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    def _amount(self, value: int) -> str:
        text = to_abbreviated_string(abs(value), self._display.decimals)
        sign = "-" if value < 0 else ""
        return f"{sign}{text} {self._display.token_symbol}"

    @staticmethod
    def _health(health_factor: float) -> str:
        return "∞" if math.isinf(health_factor) else f"{health_factor:.2f}"

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    def _get_status(
        self, collateral: int, debt: int, ltv: float, health_factor: float
    ) -> PositionStatus:
        if debt > 0 and collateral == 0:
            return PositionStatus.INSOLVENT
        if health_factor < 1.0:
            return PositionStatus.LIQUIDATABLE
        if (
            health_factor < self._thresholds.health_factor_warning
            or ltv >= self._thresholds.ltv_warning
        ):
            return PositionStatus.AT_RISK
        return PositionStatus.HEALTHY

    def max_borrow(self, position: Position) -> int:
        """Additional debt allowed before reaching the protocol's max LTV."""
        limit = position.collateral_value * Fraction(self._params.max_ltv_percent) / 100
        return max(math.floor(limit) - position.debt, 0)

    def assess(self, position: Position) -> PositionReport:
        collateral = position.collateral_value
        debt = position.debt
        threshold = self._params.liquidation_threshold

        ltv = compute_ltv(collateral, debt)
        health_factor = compute_health_factor(collateral, debt, threshold)
        status = self._get_status(collateral, debt, ltv, health_factor)

        logger.debug(
            "Assessed position — LTV: %.2f%%  HF: %s  Status: %s",
            ltv, self._health(health_factor), status.value,
        )
        return PositionReport(
            position=position,
            ltv=ltv,
            health_factor=health_factor,
            liquidation_threshold=threshold,
            status=status,
            max_borrow=self.max_borrow(position),
        )

    def render_report(self, report: PositionReport) -> str:
        position = report.position
        lines = [
            f"📊 Position · {_STATUS_LABELS[report.status]}",
            "",
            f"Collateral: {self._amount(position.collateral_value)}",
            f"Principal: {self._amount(position.principal)}",
            f"Accrued Interest: {self._amount(position.accrued_interest)}",
            f"Total Debt: {self._amount(position.debt)}",
            "",
            f"LTV: {report.ltv:.2f}% (max {self._params.max_ltv_percent:.0f}%)",
            f"Health Factor: {self._health(report.health_factor)}",
            f"Liquidation Threshold: {report.liquidation_threshold:.2f}%",
            f"Available to Borrow: {self._amount(report.max_borrow)}",
        ]
        if report.status is PositionStatus.LIQUIDATABLE:
            lines += ["", "⚠️ Add collateral or repay debt immediately!"]
        elif report.status is PositionStatus.AT_RISK:
            lines += ["", "Consider adding collateral or reducing borrowed amount."]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # User analytics
    # ------------------------------------------------------------------

    def summarize_user(
        self,
        record: UserPositionRecord,
        supply_interest: int | None = None,
        borrow_interest: int | None = None,
        now: int | None = None,
    ) -> UserSummary:
        """Net interest, net worth and effective APYs since first interaction.

        Live interest figures read from the contracts take precedence over
        the indexed totals when given.
        """
        earned = record.total_supply_interest if supply_interest is None else supply_interest
        owed = record.total_borrow_interest if borrow_interest is None else borrow_interest
        days = days_since(record.first_interaction_timestamp, now)

        assets = record.total_supplied + earned + record.collateral_value
        debts = record.total_borrowed + owed
        return UserSummary(
            net_interest=earned - owed,
            net_worth=assets - debts,
            supply_apy=effective_apy(earned, record.total_supplied, days),
            borrow_apy=effective_apy(owed, record.total_borrowed, days),
            days_active=days,
        )

    def render_summary(self, summary: UserSummary) -> str:
        return "\n".join(
            [
                f"Net Interest: {self._amount(summary.net_interest)}",
                f"Net Worth: {self._amount(summary.net_worth)}",
                f"Effective Supply APY: {summary.supply_apy:.2f}%",
                f"Effective Borrow APY: {summary.borrow_apy:.2f}%",
                f"Days Active: {summary.days_active}",
            ]
        )

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def timeline_from_history(
        self, history: UserHistory, now: int | None = None
    ) -> list[TimelinePoint]:
        record = history.position or UserPositionRecord()
        return build_performance_timeline(
            history.events,
            record.total_supply_interest,
            record.total_borrow_interest,
            now=now,
            decimals=self._display.decimals,
            include_now=history.position is not None,
        )

    async def fetch_history(self, address: str) -> UserHistory:
        if self._history_source is None:
            self._history_source = SubgraphClient(self._config.subgraph)

        history = await self._history_source.fetch_user_history(address)
        if not history.events:
            logger.info("No indexed activity for %s", address)
        return history

    async def timeline(
        self, address: str, now: int | None = None
    ) -> list[TimelinePoint]:
        """Fetch a user's history and build their performance timeline."""
        history = await self.fetch_history(address)
        return self.timeline_from_history(history, now=now)
