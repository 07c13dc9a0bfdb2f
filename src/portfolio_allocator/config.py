"""
Engine Configuration
Default limit profile, target policy and thresholds, optionally loaded from JSON
"""

import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import (
    ALLOCATION_SUM_TOLERANCE,
    COINGECKO_BASE_URL,
    DEFAULT_CONFIG_PATH,
    DEFAULT_CURRENCY,
    DEFAULT_RISK_WEIGHT_SET,
    MARKET_REFRESH_INTERVAL,
    REBALANCE_THRESHOLD
)
from .levels import PORTFOLIO_LEVELS
from .limits import default_category_limits
from .models import Allocation, Category, CategoryLimit, PortfolioLevel
from .risk import WEIGHT_SETS, RiskWeightSet

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a configuration file cannot be parsed"""


def _parse_target_allocation(raw: Dict) -> Allocation:
    """Custom target allocation covering every category and summing to 100%"""
    allocation = {Category(name): float(pct) for name, pct in raw.items()}

    missing = [c.value for c in Category if c not in allocation]
    if missing:
        raise ConfigError(f"custom_allocation is missing categories: {missing}")

    if not all(math.isfinite(pct) and pct >= 0 for pct in allocation.values()):
        raise ConfigError("custom_allocation percentages must be finite and non-negative")

    total = sum(allocation.values())
    if abs(total - 100.0) > ALLOCATION_SUM_TOLERANCE:
        raise ConfigError(f"Target allocations must sum to 100%, but sum to {total:.2f}%")

    return {category: allocation[category] for category in Category}


@dataclass
class EngineConfig:
    base_limits: List[CategoryLimit] = field(default_factory=default_category_limits)
    auto_mode: bool = True
    custom_allocation: Optional[Allocation] = None
    rebalance_threshold: float = REBALANCE_THRESHOLD
    levels: List[PortfolioLevel] = field(default_factory=lambda: list(PORTFOLIO_LEVELS))
    risk_weight_sets: Dict[str, RiskWeightSet] = field(default_factory=lambda: dict(WEIGHT_SETS))
    risk_weight_set: str = DEFAULT_RISK_WEIGHT_SET
    market_refresh_interval: float = MARKET_REFRESH_INTERVAL
    coingecko_base_url: str = COINGECKO_BASE_URL
    currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_dict(cls, data: Dict) -> "EngineConfig":
        """
        Build a config from a parsed JSON document

        Example:
            {
                "auto_mode": true,
                "custom_allocation": {"BTC": 40, "ETH_BLUECHIPS": 30, "STABLECOINS": 20, "DEFI_ALTCOINS": 10},
                "category_limits": {"BTC": {"min": 20, "max": 30, "enabled": true}},
                "rebalance_threshold": 2.0,
                "risk_weight_set": "analytics-v1",
                "market_refresh_interval": 300
            }

        Raises:
            ConfigError: on unknown categories or bad values
        """
        config = cls()
        try:
            if "auto_mode" in data:
                config.auto_mode = bool(data["auto_mode"])

            if data.get("custom_allocation"):
                config.custom_allocation = _parse_target_allocation(data["custom_allocation"])

            if data.get("category_limits"):
                overrides = data["category_limits"]
                limits = []
                for limit in config.base_limits:
                    entry = overrides.get(limit.category.value)
                    if entry is None:
                        limits.append(limit)
                        continue
                    limits.append(CategoryLimit(
                        category=limit.category,
                        min_percentage=float(entry.get("min", limit.min_percentage)),
                        max_percentage=float(entry.get("max", limit.max_percentage)),
                        enabled=bool(entry.get("enabled", True))
                    ))
                unknown = set(overrides) - {c.value for c in Category}
                if unknown:
                    raise ConfigError(f"Unknown categories in category_limits: {sorted(unknown)}")
                config.base_limits = limits

            if "rebalance_threshold" in data:
                config.rebalance_threshold = float(data["rebalance_threshold"])

            if "risk_weight_set" in data:
                if data["risk_weight_set"] not in config.risk_weight_sets:
                    raise ConfigError(f"Unknown risk weight set: {data['risk_weight_set']}")
                config.risk_weight_set = data["risk_weight_set"]

            if "market_refresh_interval" in data:
                config.market_refresh_interval = float(data["market_refresh_interval"])

            if "currency" in data:
                config.currency = str(data["currency"]).lower()

            if "coingecko_base_url" in data:
                config.coingecko_base_url = str(data["coingecko_base_url"])

        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        return config


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> EngineConfig:
    """
    Load engine configuration from a JSON file

    Args:
        config_path: Path to the JSON config file

    Returns:
        EngineConfig with defaults for anything the file omits, or plain
        defaults if the file does not exist

    Raises:
        ConfigError: if the file exists but is not valid
    """
    if not os.path.exists(config_path):
        logger.info("Config file not found: %s. Using defaults", config_path)
        return EngineConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Error reading config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a JSON object")

    return EngineConfig.from_dict(data)
