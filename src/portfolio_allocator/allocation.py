"""
Allocation Calculator
Derives category allocation from holdings and target allocation from BTC dominance
"""

from typing import Iterable, List, Sequence

from .constants import (
    DOMINANCE_TARGET_BUCKETS,
    LOW_DOMINANCE_TARGET,
    UNIFORM_TARGET
)
from .models import Allocation, Category, Holding


def empty_allocation() -> Allocation:
    """Allocation with every category at 0%"""
    return {category: 0.0 for category in Category}


def allocation_from_tuple(values: Sequence[float]) -> Allocation:
    """Build an Allocation from values in category enumeration order"""
    return {category: float(value) for category, value in zip(Category, values)}


def calculate_portfolio_value(holdings: Iterable[Holding]) -> float:
    """Total value of all holdings"""
    return sum(holding.value for holding in holdings)


def calculate_allocation(holdings: List[Holding]) -> Allocation:
    """
    Calculate current percentage allocation per category

    Args:
        holdings: List of Holding objects

    Returns:
        Allocation covering all four categories. All zero when the
        portfolio has no value.
    """
    allocation = empty_allocation()
    total_value = calculate_portfolio_value(holdings)

    if total_value == 0:
        return allocation

    for holding in holdings:
        allocation[holding.token.category] += holding.value / total_value * 100

    return allocation


def refresh_percentages(holdings: List[Holding]) -> None:
    """Update each holding's share of total portfolio value in place"""
    total_value = calculate_portfolio_value(holdings)
    for holding in holdings:
        holding.percentage = (holding.value / total_value * 100) if total_value > 0 else 0.0


def get_target_allocation(
    btc_dominance: float,
    auto_mode: bool = True
) -> Allocation:
    """
    Target allocation implied by market BTC dominance

    Weight shifts from BTC toward DeFi/altcoins as dominance falls.

    Args:
        btc_dominance: Bitcoin share of total market cap (0-100)
        auto_mode: If False, every category gets 25%

    Returns:
        Target Allocation
    """
    if not auto_mode:
        return allocation_from_tuple(UNIFORM_TARGET)

    for lower_bound, values in DOMINANCE_TARGET_BUCKETS:
        if btc_dominance > lower_bound:
            return allocation_from_tuple(values)

    return allocation_from_tuple(LOW_DOMINANCE_TARGET)
