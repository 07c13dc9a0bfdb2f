"""
Category Limits
Violation detection, limit profile validation and preset profiles
"""

import time
from typing import Dict, List, Optional, Tuple

from .allocation import allocation_from_tuple
from .constants import DEFAULT_CATEGORY_LIMITS
from .models import Allocation, Category, CategoryLimit, LimitPreset, Violation


def limits_from_mapping(
    bands: Dict[str, Tuple[float, float]],
    disabled: Optional[List[str]] = None
) -> List[CategoryLimit]:
    """
    Build a limit profile from a {category name: (min, max)} mapping

    Args:
        bands: Mapping of category names to (min %, max %)
        disabled: Category names whose limit should be disabled

    Returns:
        List of CategoryLimit objects in category enumeration order
    """
    disabled = disabled or []
    limits = []
    for category in Category:
        if category.value not in bands:
            continue
        min_pct, max_pct = bands[category.value]
        limits.append(CategoryLimit(
            category=category,
            min_percentage=float(min_pct),
            max_percentage=float(max_pct),
            enabled=category.value not in disabled
        ))
    return limits


def default_category_limits() -> List[CategoryLimit]:
    return limits_from_mapping(DEFAULT_CATEGORY_LIMITS)


def detect_violations(allocation: Allocation, limits: List[CategoryLimit]) -> List[Violation]:
    """
    Compare current allocation against (adjusted) category limits

    Args:
        allocation: Current allocation per category
        limits: Limit profile, usually already level-adjusted

    Returns:
        One Violation per enabled category outside its band
    """
    violations = []

    for limit in limits:
        if not limit.enabled:
            continue

        current = allocation.get(limit.category, 0.0)
        if current < limit.min_percentage:
            violations.append(Violation(
                category=limit.category,
                kind="below_minimum",
                current_percentage=current,
                limit_percentage=limit.min_percentage,
                description=f"Below minimum ({current:.1f}% < {limit.min_percentage:.1f}%)"
            ))
        elif current > limit.max_percentage:
            violations.append(Violation(
                category=limit.category,
                kind="above_maximum",
                current_percentage=current,
                limit_percentage=limit.max_percentage,
                description=f"Above maximum ({current:.1f}% > {limit.max_percentage:.1f}%)"
            ))

    return violations


def limit_profile_errors(limits: List[CategoryLimit]) -> List[str]:
    """
    Explain why a limit profile cannot be satisfied

    Only enabled limits are checked. A feasible profile needs minima
    summing to at most 100, maxima summing to at least 100, and
    0 <= min <= max <= 100 for each limit.

    Returns:
        List of error messages, empty when the profile is valid
    """
    errors = []
    enabled = [limit for limit in limits if limit.enabled]

    total_min = sum(limit.min_percentage for limit in enabled)
    if total_min > 100:
        errors.append(f"Minimum percentages sum to {total_min:.1f}%, which exceeds 100%")

    total_max = sum(limit.max_percentage for limit in enabled)
    if total_max < 100:
        errors.append(f"Maximum percentages sum to {total_max:.1f}%, which is below 100%")

    for limit in enabled:
        name = limit.category.value
        if limit.min_percentage < 0:
            errors.append(f"{name}: minimum ({limit.min_percentage:.1f}%) is negative")
        if limit.max_percentage > 100:
            errors.append(f"{name}: maximum ({limit.max_percentage:.1f}%) exceeds 100%")
        if limit.min_percentage > limit.max_percentage:
            errors.append(
                f"{name}: minimum ({limit.min_percentage:.1f}%) is above "
                f"maximum ({limit.max_percentage:.1f}%)"
            )

    return errors


def validate_category_limits(limits: List[CategoryLimit]) -> bool:
    return not limit_profile_errors(limits)


def _preset(preset_id, name, description, dominance_range, allocation, bands) -> LimitPreset:
    return LimitPreset(
        id=preset_id,
        name=name,
        description=description,
        btc_dominance_range=dominance_range,
        allocation=allocation_from_tuple(allocation),
        category_limits=limits_from_mapping(dict(zip([c.value for c in Category], bands)))
    )


# Allocation tuples and bands are in category enumeration order:
# BTC, ETH_BLUECHIPS, STABLECOINS, DEFI_ALTCOINS
LIMIT_PRESETS: List[LimitPreset] = [
    _preset("conservative", "Conservative", "High BTC dominance - focus on safety",
            (50.0, 100.0), (35, 25, 30, 10),
            [(30, 40), (20, 30), (25, 35), (5, 15)]),
    _preset("balanced", "Balanced", "Medium BTC dominance - moderate risk",
            (40.0, 50.0), (30, 25, 25, 20),
            [(25, 35), (20, 30), (20, 30), (15, 25)]),
    _preset("aggressive", "Aggressive", "Low BTC dominance - high risk/return",
            (0.0, 40.0), (25, 25, 20, 30),
            [(20, 30), (20, 30), (15, 25), (25, 35)]),
    _preset("defi-focused", "DeFi Focus", "Focus on decentralised finance",
            (0.0, 100.0), (20, 30, 15, 35),
            [(15, 25), (25, 35), (10, 20), (30, 40)]),
    _preset("stable-focused", "Stability", "Focus on stable assets",
            (0.0, 100.0), (30, 20, 40, 10),
            [(25, 35), (15, 25), (35, 45), (5, 15)]),
]

DEFAULT_PRESET_ID = "balanced"


def get_preset(preset_id: str) -> Optional[LimitPreset]:
    return next((p for p in LIMIT_PRESETS if p.id == preset_id), None)


def get_preset_by_btc_dominance(btc_dominance: float) -> LimitPreset:
    """First preset whose inclusive dominance range contains the reading"""
    for preset in LIMIT_PRESETS:
        low, high = preset.btc_dominance_range
        if low <= btc_dominance <= high:
            return preset
    return get_preset(DEFAULT_PRESET_ID)


def create_custom_preset(
    name: str,
    description: str,
    allocation: Allocation,
    category_limits: List[CategoryLimit]
) -> LimitPreset:
    """Build a user-defined preset that applies at any dominance"""
    return LimitPreset(
        id=f"custom-{int(time.time() * 1000)}",
        name=name,
        description=description,
        btc_dominance_range=(0.0, 100.0),
        allocation=dict(allocation),
        category_limits=list(category_limits)
    )
