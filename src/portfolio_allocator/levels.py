"""
Portfolio Levels
Resolves value tiers and tightens category limits as the portfolio grows
"""

from dataclasses import replace
from typing import List, Optional, Tuple

from .constants import PORTFOLIO_LEVEL_TABLE, UNMATCHED_VALUE_FALLBACK_LEVEL
from .models import Allocation, CategoryLimit, PortfolioLevel


PORTFOLIO_LEVELS: List[PortfolioLevel] = [
    PortfolioLevel(
        level=level,
        name=name,
        min_value=min_value,
        max_value=max_value,
        limit_reduction=reduction,
        description=description
    )
    for level, name, min_value, max_value, reduction, description in PORTFOLIO_LEVEL_TABLE
]


def _fallback_level(levels: List[PortfolioLevel]) -> PortfolioLevel:
    return next(
        (lvl for lvl in levels if lvl.level == UNMATCHED_VALUE_FALLBACK_LEVEL),
        levels[0]
    )


def get_portfolio_level(
    total_value: float,
    levels: Optional[List[PortfolioLevel]] = None
) -> PortfolioLevel:
    """
    Determine portfolio level from total value

    Args:
        total_value: Total portfolio value
        levels: Ordered tier table (defaults to PORTFOLIO_LEVELS)

    Returns:
        First level whose range contains the value. Values outside every
        range (including anything at or above the top tier's max_value)
        resolve to the UNMATCHED_VALUE_FALLBACK_LEVEL tier.
    """
    levels = levels or PORTFOLIO_LEVELS
    for level in levels:
        if level.contains(total_value):
            return level
    return _fallback_level(levels)


def apply_level_reductions(
    base_limits: List[CategoryLimit],
    level: PortfolioLevel
) -> List[CategoryLimit]:
    """
    Scale each enabled limit band by the level's reduction

    Args:
        base_limits: Base limit profile
        level: Resolved portfolio level

    Returns:
        New list of CategoryLimit objects. Disabled limits pass through unchanged.
    """
    if level.limit_reduction == 0:
        return [replace(limit) for limit in base_limits]

    multiplier = (100 - level.limit_reduction) / 100
    adjusted = []
    for limit in base_limits:
        if not limit.enabled:
            adjusted.append(replace(limit))
            continue
        adjusted.append(replace(
            limit,
            min_percentage=max(0.0, limit.min_percentage * multiplier),
            max_percentage=min(100.0, limit.max_percentage * multiplier)
        ))
    return adjusted


def get_adjusted_allocation(allocation: Allocation, level: PortfolioLevel) -> Allocation:
    """Scale every category of an allocation by the level's reduction"""
    if level.limit_reduction == 0:
        return dict(allocation)

    multiplier = (100 - level.limit_reduction) / 100
    return {category: pct * multiplier for category, pct in allocation.items()}


def get_next_level(
    level: PortfolioLevel,
    levels: Optional[List[PortfolioLevel]] = None
) -> Optional[PortfolioLevel]:
    levels = levels or PORTFOLIO_LEVELS
    return next((lvl for lvl in levels if lvl.level == level.level + 1), None)


def get_level_progress(
    total_value: float,
    levels: Optional[List[PortfolioLevel]] = None
) -> Tuple[PortfolioLevel, Optional[PortfolioLevel], float]:
    """
    How far the portfolio is through its current tier

    Returns:
        Tuple of (current level, next level or None, progress percentage).
        Progress is 100 on the top tier.
    """
    current = get_portfolio_level(total_value, levels)
    next_level = get_next_level(current, levels)

    if next_level is None:
        return current, None, 100.0

    current_range = current.max_value - current.min_value
    progress = min(100.0, (total_value - current.min_value) / current_range * 100)
    return current, next_level, progress


def get_level_benefits(
    level: PortfolioLevel,
    levels: Optional[List[PortfolioLevel]] = None
) -> List[str]:
    """Human-readable description lines for a level"""
    benefits = [
        f"Level {level.level}: {level.name}",
        level.description
    ]

    if level.level > 1:
        benefits.append(f"Limit reduction: {level.limit_reduction:g}%")

    next_level = get_next_level(level, levels)
    if next_level is not None:
        benefits.append(f"Next level: {next_level.name} (from ${next_level.min_value:,.0f})")

    return benefits
