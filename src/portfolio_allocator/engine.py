"""
Allocation Engine
Runs the full allocation, limit, rebalancing and risk pipeline over a set of holdings
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .allocation import calculate_allocation, calculate_portfolio_value, get_target_allocation
from .analytics import (
    average_volatility,
    category_performance,
    diversification_score,
    largest_position,
    roi_summary
)
from .config import EngineConfig
from .levels import apply_level_reductions, get_level_progress
from .limits import detect_violations, limit_profile_errors
from .models import (
    Allocation,
    CategoryLimit,
    Holding,
    MarketSnapshot,
    PortfolioLevel,
    RebalancingRecommendation,
    Violation
)
from .rebalancer import PortfolioRebalancer
from .risk import calculate_risk_score, get_weight_set

logger = logging.getLogger(__name__)


@dataclass
class PortfolioAnalysis:
    """Everything derived from one evaluation of the portfolio"""
    total_value: float
    current_allocation: Allocation
    target_allocation: Allocation
    level: PortfolioLevel
    next_level: Optional[PortfolioLevel]
    level_progress: float
    base_limits: List[CategoryLimit]
    adjusted_limits: List[CategoryLimit]
    limit_errors: List[str]
    violations: List[Violation]
    recommendations: List[RebalancingRecommendation]
    rebalancing_summary: Dict
    risk_scores: Dict[str, float]
    risk_score: float
    volatility: float
    diversification_score: float
    roi: Dict
    category_performance: Dict
    largest_position: Optional[Holding]
    market: MarketSnapshot
    holding_count: int = 0
    notes: List[str] = field(default_factory=list)

    @property
    def limits_valid(self) -> bool:
        return not self.limit_errors


class AllocationEngine:
    """Evaluates holdings against target allocation and category limits"""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize engine

        Args:
            config: Engine configuration. All defaults (limit profile,
                    thresholds, weight sets) come from here.
        """
        self.config = config or EngineConfig()
        self.rebalancer = PortfolioRebalancer(rebalance_threshold=self.config.rebalance_threshold)

    def target_allocation(self, snapshot: MarketSnapshot) -> Allocation:
        if self.config.custom_allocation:
            return dict(self.config.custom_allocation)
        return get_target_allocation(snapshot.btc_dominance, self.config.auto_mode)

    def risk_scores(
        self,
        allocation: Allocation,
        snapshot: MarketSnapshot,
        level: PortfolioLevel,
        holding_count: int
    ) -> Dict[str, float]:
        """Risk score under every configured weight set"""
        return {
            name: calculate_risk_score(
                allocation,
                trend=snapshot.trend,
                limit_reduction=level.limit_reduction,
                weight_set=weight_set,
                holding_count=holding_count
            )
            for name, weight_set in self.config.risk_weight_sets.items()
        }

    def evaluate(self, holdings: List[Holding], snapshot: MarketSnapshot) -> PortfolioAnalysis:
        """
        Evaluate holdings against the current market snapshot

        Args:
            holdings: Current holdings
            snapshot: Latest market snapshot

        Returns:
            PortfolioAnalysis
        """
        total_value = calculate_portfolio_value(holdings)
        current = calculate_allocation(holdings)
        target = self.target_allocation(snapshot)

        level, next_level, progress = get_level_progress(total_value, self.config.levels)
        adjusted_limits = apply_level_reductions(self.config.base_limits, level)
        limit_errors = limit_profile_errors(self.config.base_limits)
        violations = detect_violations(current, adjusted_limits)

        recommendations = self.rebalancer.calculate_rebalancing(current, target, total_value)

        scores = self.risk_scores(current, snapshot, level, len(holdings))
        # Raises KeyError if the configured set is missing
        get_weight_set(self.config.risk_weight_set, self.config.risk_weight_sets)

        notes = []
        if total_value >= self.config.levels[-1].max_value:
            notes.append(
                f"Portfolio value {total_value:,.2f} is above the top level range; "
                f"level {level.level} limits are applied"
            )

        if violations:
            logger.info("%d category limit violation(s) at level %d", len(violations), level.level)

        return PortfolioAnalysis(
            total_value=total_value,
            current_allocation=current,
            target_allocation=target,
            level=level,
            next_level=next_level,
            level_progress=progress,
            base_limits=self.config.base_limits,
            adjusted_limits=adjusted_limits,
            limit_errors=limit_errors,
            violations=violations,
            recommendations=recommendations,
            rebalancing_summary=self.rebalancer.get_rebalancing_summary(recommendations),
            risk_scores=scores,
            risk_score=scores[self.config.risk_weight_set],
            volatility=average_volatility(holdings),
            diversification_score=diversification_score(current),
            roi=roi_summary(holdings),
            category_performance=category_performance(holdings, current),
            largest_position=largest_position(holdings),
            market=snapshot,
            holding_count=len(holdings),
            notes=notes
        )
