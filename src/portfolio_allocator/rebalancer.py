"""
Portfolio Rebalancing Calculator
Calculates buy/sell amounts needed to move each category toward its target allocation
"""

import logging
from typing import Dict, List

from .constants import (
    HIGH_PRIORITY_THRESHOLD,
    MEDIUM_PRIORITY_THRESHOLD,
    REBALANCE_THRESHOLD
)
from .models import (
    PRIORITY_RANK,
    Action,
    Allocation,
    Category,
    Priority,
    RebalancingRecommendation
)

logger = logging.getLogger(__name__)


class PortfolioRebalancer:
    """Calculates rebalancing recommendations between current and target allocations"""

    def __init__(
        self,
        rebalance_threshold: float = REBALANCE_THRESHOLD,
        high_priority_threshold: float = HIGH_PRIORITY_THRESHOLD,
        medium_priority_threshold: float = MEDIUM_PRIORITY_THRESHOLD
    ):
        """
        Initialize rebalancer with thresholds

        Args:
            rebalance_threshold: Allocation difference (%) at or below which a category is left alone
            high_priority_threshold: Difference (%) above which a trade is HIGH priority
            medium_priority_threshold: Difference (%) above which a trade is MEDIUM priority
        """
        self.rebalance_threshold = rebalance_threshold
        self.high_priority_threshold = high_priority_threshold
        self.medium_priority_threshold = medium_priority_threshold

    def get_priority(self, allocation_diff: float) -> Priority:
        gap = abs(allocation_diff)
        if gap > self.high_priority_threshold:
            return Priority.HIGH
        if gap > self.medium_priority_threshold:
            return Priority.MEDIUM
        return Priority.LOW

    def calculate_rebalancing(
        self,
        current_allocation: Allocation,
        target_allocation: Allocation,
        total_value: float
    ) -> List[RebalancingRecommendation]:
        """
        Calculate rebalancing recommendations for every category

        Args:
            current_allocation: Current percentage per category
            target_allocation: Target percentage per category
            total_value: Total portfolio value used to size trades

        Returns:
            List of RebalancingRecommendation objects, HIGH priority first.
            Equal priorities keep category enumeration order.
        """
        recommendations = []

        for category in Category:
            current_pct = current_allocation.get(category, 0.0)
            target_pct = target_allocation.get(category, 0.0)
            allocation_diff = target_pct - current_pct

            if abs(allocation_diff) <= self.rebalance_threshold:
                continue

            recommendations.append(RebalancingRecommendation(
                category=category,
                current_percentage=current_pct,
                target_percentage=target_pct,
                action=Action.BUY if allocation_diff > 0 else Action.SELL,
                amount=abs(allocation_diff) / 100 * total_value,
                priority=self.get_priority(allocation_diff)
            ))

        # sort() is stable, so ties stay in category order
        recommendations.sort(key=lambda r: PRIORITY_RANK[r.priority])

        logger.debug("Generated %d rebalancing recommendations", len(recommendations))
        return recommendations

    def get_rebalancing_summary(self, recommendations: List[RebalancingRecommendation]) -> Dict:
        """
        Get a summary dictionary of rebalancing recommendations

        Args:
            recommendations: List of RebalancingRecommendation objects

        Returns:
            Dictionary with summary statistics
        """
        buys = [r for r in recommendations if r.action == Action.BUY]
        sells = [r for r in recommendations if r.action == Action.SELL]

        total_buy_value = sum(r.amount for r in buys)
        total_sell_value = sum(r.amount for r in sells)

        return {
            "total_actions": len(recommendations),
            "buy_count": len(buys),
            "sell_count": len(sells),
            "high_priority_count": sum(1 for r in recommendations if r.priority == Priority.HIGH),
            "total_buy_value": total_buy_value,
            "total_sell_value": total_sell_value,
            "net_cash_needed": max(0.0, total_buy_value - total_sell_value)
        }
