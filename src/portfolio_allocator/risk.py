"""
Risk Scorer
Heuristic 0-100 risk score from category allocation using named weight sets
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import (
    DEFAULT_RISK_WEIGHT_SET,
    DIVERSIFICATION_FULL_COUNT,
    MAX_RISK_SCORE,
    RISK_WEIGHT_SETS
)
from .models import Allocation, Category, MarketTrend


@dataclass(frozen=True)
class RiskWeightSet:
    """
    Weights and modifiers for one version of the risk heuristic

    Attributes:
        name: Versioned identifier, e.g. "analytics-v1"
        weights: Multiplier applied to each category's percentage
        level_scaled: Categories whose weight shrinks with the level's limit reduction
        trend_multipliers: Factor applied to the total for each market trend
        diversification_discount: Maximum fractional discount for holding many tokens
    """
    name: str
    weights: Dict[Category, float]
    level_scaled: List[Category] = field(default_factory=list)
    trend_multipliers: Dict[MarketTrend, float] = field(default_factory=dict)
    diversification_discount: float = 0.0

    @classmethod
    def from_dict(cls, name: str, data: Dict) -> "RiskWeightSet":
        return cls(
            name=name,
            weights={Category(k): float(v) for k, v in data["weights"].items()},
            level_scaled=[Category(k) for k in data.get("level_scaled", [])],
            trend_multipliers={
                MarketTrend(k): float(v) for k, v in data.get("trend_multipliers", {}).items()
            },
            diversification_discount=float(data.get("diversification_discount", 0.0))
        )


WEIGHT_SETS: Dict[str, RiskWeightSet] = {
    name: RiskWeightSet.from_dict(name, data) for name, data in RISK_WEIGHT_SETS.items()
}


def get_weight_set(name: str, weight_sets: Optional[Dict[str, RiskWeightSet]] = None) -> RiskWeightSet:
    """Look up a weight set by name. Raises KeyError for unknown names."""
    sets = weight_sets if weight_sets is not None else WEIGHT_SETS
    if name not in sets:
        raise KeyError(f"Unknown risk weight set: {name}")
    return sets[name]


def calculate_risk_score(
    allocation: Allocation,
    trend: MarketTrend = MarketTrend.SIDEWAYS,
    limit_reduction: float = 0.0,
    weight_set: Optional[RiskWeightSet] = None,
    holding_count: int = 0
) -> float:
    """
    Calculate heuristic portfolio risk score

    Not a statistical measure: a weighted sum of category percentages,
    adjusted for level, market trend and number of holdings according to
    the chosen weight set. Capped at 100; no lower bound is applied.

    Args:
        allocation: Current allocation per category
        trend: Current market trend
        limit_reduction: Portfolio level limit reduction (%)
        weight_set: Weight set to use (defaults to the analytics weights)
        holding_count: Number of holdings, used for the diversification discount

    Returns:
        Risk score (higher = riskier)
    """
    weight_set = weight_set or WEIGHT_SETS[DEFAULT_RISK_WEIGHT_SET]
    level_factor = 1 - limit_reduction / 100

    score = 0.0
    for category, weight in weight_set.weights.items():
        contribution = allocation.get(category, 0.0) * weight
        if category in weight_set.level_scaled:
            contribution *= level_factor
        score += contribution

    score *= weight_set.trend_multipliers.get(trend, 1.0)

    if weight_set.diversification_discount:
        diversification = min(holding_count / DIVERSIFICATION_FULL_COUNT, 1.0)
        score *= 1 - diversification * weight_set.diversification_discount

    return min(score, MAX_RISK_SCORE)
