"""
Portfolio Allocator Package
Category allocation, limit and rebalancing tools for crypto portfolios
"""

__version__ = "1.0.0"

from .models import (
    Category,
    MarketTrend,
    Action,
    Priority,
    Token,
    Holding,
    CategoryLimit,
    PortfolioLevel,
    MarketSnapshot,
    Violation,
    RebalancingRecommendation,
    LimitPreset
)

from .classifier import classify_token

from .allocation import (
    calculate_allocation,
    calculate_portfolio_value,
    get_target_allocation
)

from .levels import (
    PORTFOLIO_LEVELS,
    get_portfolio_level,
    apply_level_reductions,
    get_level_progress
)

from .limits import (
    LIMIT_PRESETS,
    detect_violations,
    validate_category_limits,
    get_preset_by_btc_dominance
)

from .rebalancer import PortfolioRebalancer

from .risk import RiskWeightSet, calculate_risk_score

from .market_data import CoinGeckoClient, MarketDataError

from .poller import MarketDataPoller

from .portfolio import (
    Portfolio,
    PortfolioError,
    HoldingNotFoundError,
    InvalidHoldingError
)

from .config import EngineConfig, ConfigError, load_config

from .engine import AllocationEngine, PortfolioAnalysis

__all__ = [
    'Category',
    'MarketTrend',
    'Action',
    'Priority',
    'Token',
    'Holding',
    'CategoryLimit',
    'PortfolioLevel',
    'MarketSnapshot',
    'Violation',
    'RebalancingRecommendation',
    'LimitPreset',
    'classify_token',
    'calculate_allocation',
    'calculate_portfolio_value',
    'get_target_allocation',
    'PORTFOLIO_LEVELS',
    'get_portfolio_level',
    'apply_level_reductions',
    'get_level_progress',
    'LIMIT_PRESETS',
    'detect_violations',
    'validate_category_limits',
    'get_preset_by_btc_dominance',
    'PortfolioRebalancer',
    'RiskWeightSet',
    'calculate_risk_score',
    'CoinGeckoClient',
    'MarketDataError',
    'MarketDataPoller',
    'Portfolio',
    'PortfolioError',
    'HoldingNotFoundError',
    'InvalidHoldingError',
    'EngineConfig',
    'ConfigError',
    'load_config',
    'AllocationEngine',
    'PortfolioAnalysis'
]
