"""
Portfolio Models
Data models for tokens, holdings, category limits, levels and recommendations
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum


class Category(Enum):
    """Fixed four-way partition of all tokens"""
    BTC = "BTC"
    ETH_BLUECHIPS = "ETH_BLUECHIPS"
    STABLECOINS = "STABLECOINS"
    DEFI_ALTCOINS = "DEFI_ALTCOINS"


class MarketTrend(Enum):
    BULL = "BULL"
    BEAR = "BEAR"
    SIDEWAYS = "SIDEWAYS"


class Action(Enum):
    BUY = "BUY"
    SELL = "SELL"


class Priority(Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# Sort rank for priorities (lower sorts first)
PRIORITY_RANK = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2
}


# Mapping from each category to a percentage
Allocation = Dict[Category, float]


@dataclass
class Token:
    """A tradeable token with its latest market price"""
    id: str
    symbol: str
    name: str
    current_price: float
    price_change_24h: float
    category: Category
    market_cap: float = 0.0
    image: str = ""


@dataclass
class Holding:
    """A manually entered position in a token"""
    token: Token
    amount: float
    purchase_price: Optional[float] = None
    transaction_link: Optional[str] = None
    percentage: float = 0.0  # Share of total portfolio value, kept current by the store

    @property
    def value(self) -> float:
        return self.amount * self.token.current_price

    @property
    def roi(self) -> Optional[float]:
        """Percentage change from purchase price to current price"""
        if not self.purchase_price:
            return None
        return (self.token.current_price - self.purchase_price) / self.purchase_price * 100


@dataclass
class CategoryLimit:
    """Allowed percentage band for one category"""
    category: Category
    min_percentage: float
    max_percentage: float
    enabled: bool = True


@dataclass(frozen=True)
class PortfolioLevel:
    """Value tier over the half-open range [min_value, max_value)"""
    level: int
    name: str
    min_value: float
    max_value: float
    limit_reduction: float  # Percentage reduction applied to base limits
    description: str

    def contains(self, total_value: float) -> bool:
        return self.min_value <= total_value < self.max_value


@dataclass
class MarketSnapshot:
    """Global market reading used by the target policy and risk scorer"""
    btc_dominance: float
    total_market_cap: float
    trend: MarketTrend


@dataclass
class Violation:
    """A category whose current allocation falls outside its adjusted band"""
    category: Category
    kind: str  # "below_minimum" or "above_maximum"
    current_percentage: float
    limit_percentage: float
    description: str


@dataclass
class RebalancingRecommendation:
    """Suggested trade to move a category toward its target"""
    category: Category
    current_percentage: float
    target_percentage: float
    action: Action
    amount: float          # Value to buy or sell, always positive
    priority: Priority

    @property
    def difference(self) -> float:
        return self.target_percentage - self.current_percentage


@dataclass
class LimitPreset:
    """Named allocation and limit profile suited to a BTC dominance range"""
    id: str
    name: str
    description: str
    btc_dominance_range: Tuple[float, float]  # Inclusive (min, max)
    allocation: Allocation
    category_limits: List[CategoryLimit] = field(default_factory=list)
