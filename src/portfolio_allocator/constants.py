"""
Constants and configuration for the category allocation tracker
"""

# CoinGecko API endpoint
COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# API configuration
API_RETRY_COUNT = 3
API_TIMEOUT = 5
API_RATE_LIMIT_BACKOFF_BASE = 0.5  # Base seconds for backoff after a 429
API_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "CryptoPortfolioManager/1.0"
}

# Currency
DEFAULT_CURRENCY = "usd"

# Category classification tables (CoinGecko ids are lowercase, symbols uppercase)
BTC_IDS = {"bitcoin"}
BTC_SYMBOLS = {"BTC"}
ETH_BLUECHIP_IDS = {"ethereum", "binancecoin", "bnb", "cardano", "ada", "solana", "sol", "polkadot", "dot"}
ETH_BLUECHIP_SYMBOLS = {"ETH", "BNB", "ADA", "SOL", "DOT"}
STABLECOIN_IDS = {"usd-coin", "tether", "dai", "busd", "true-usd", "frax"}
STABLECOIN_SYMBOLS = {"USDC", "USDT", "DAI", "BUSD", "TUSD", "FRAX"}

# Target allocations by BTC dominance: (exclusive lower bound, BTC, ETH_BLUECHIPS, STABLECOINS, DEFI_ALTCOINS)
# Checked top-down, first match wins. The final row has no bound and catches the rest.
DOMINANCE_TARGET_BUCKETS = [
    (55.0, (40.0, 25.0, 20.0, 15.0)),
    (50.0, (35.0, 25.0, 25.0, 15.0)),
    (45.0, (30.0, 25.0, 25.0, 20.0)),
    (40.0, (25.0, 25.0, 25.0, 25.0)),
]
LOW_DOMINANCE_TARGET = (20.0, 25.0, 25.0, 30.0)
UNIFORM_TARGET = (25.0, 25.0, 25.0, 25.0)

# Portfolio levels: (level, name, min_value, max_value, limit_reduction, description)
PORTFOLIO_LEVEL_TABLE = [
    (1, "Novice", 0.0, 5000.0, 0.0, "Base limits unchanged"),
    (2, "Beginner", 5000.0, 10000.0, 5.0, "Limits reduced by 5%"),
    (3, "Intermediate", 10000.0, 20000.0, 10.0, "Limits reduced by 10%"),
    (4, "Advanced", 20000.0, 50000.0, 15.0, "Limits reduced by 15%"),
    (5, "Expert", 50000.0, 100000.0, 20.0, "Limits reduced by 20%"),
]

# Level returned when no tier contains the value (this includes values >= 100000).
# Kept at tier 1 until the intended top-tier behaviour is decided.
UNMATCHED_VALUE_FALLBACK_LEVEL = 1

# Base category limits (min %, max %) used when no profile is configured
DEFAULT_CATEGORY_LIMITS = {
    "BTC": (20.0, 30.0),
    "ETH_BLUECHIPS": (20.0, 30.0),
    "STABLECOINS": (20.0, 30.0),
    "DEFI_ALTCOINS": (20.0, 30.0),
}

# Rebalancing thresholds
REBALANCE_THRESHOLD = 2.0  # Minimum allocation difference (%) to trigger rebalancing
HIGH_PRIORITY_THRESHOLD = 10.0
MEDIUM_PRIORITY_THRESHOLD = 5.0

# Market trend classification from 24h market cap change (%)
BULL_TREND_THRESHOLD = 2.0
BEAR_TREND_THRESHOLD = -2.0

# Risk score weight sets, keyed by versioned name
RISK_WEIGHT_SETS = {
    "analytics-v1": {
        "weights": {"BTC": 0.6, "ETH_BLUECHIPS": 0.5, "STABLECOINS": 0.1, "DEFI_ALTCOINS": 0.8},
        "level_scaled": ["DEFI_ALTCOINS"],
        "trend_multipliers": {"BULL": 0.9, "BEAR": 1.2, "SIDEWAYS": 1.0},
        "diversification_discount": 0.0,
    },
    "overview-v1": {
        "weights": {"BTC": 0.3, "ETH_BLUECHIPS": 0.5, "STABLECOINS": 0.1, "DEFI_ALTCOINS": 0.8},
        "level_scaled": [],
        "trend_multipliers": {"BULL": 1.0, "BEAR": 1.0, "SIDEWAYS": 1.0},
        "diversification_discount": 0.2,
    },
}
DEFAULT_RISK_WEIGHT_SET = "analytics-v1"
DIVERSIFICATION_FULL_COUNT = 10  # Holding count at which the full discount applies
MAX_RISK_SCORE = 100.0

# Market data refresh
MARKET_REFRESH_INTERVAL = 300  # Seconds between market snapshot fetches

# Fallback data for when the API fails
FALLBACK_BTC_DOMINANCE = 52.5
FALLBACK_TOTAL_MARKET_CAP = 2500000000000.0
FALLBACK_MARKET_TREND = "SIDEWAYS"
FALLBACK_UNKNOWN_PRICE = 1.0

FALLBACK_PRICES = {
    "bitcoin": 45000.0,
    "ethereum": 2500.0,
    "usd-coin": 1.0,
    "tether": 1.0,
    "binancecoin": 300.0,
    "cardano": 0.5,
    "solana": 100.0,
    "polkadot": 7.0
}

# id -> (symbol, name, price, market_cap, 24h change, image)
FALLBACK_TOKENS = {
    "bitcoin": ("BTC", "Bitcoin", 45000.0, 850000000000.0, 2.5,
                "https://assets.coingecko.com/coins/images/1/small/bitcoin.png"),
    "ethereum": ("ETH", "Ethereum", 2500.0, 300000000000.0, 1.8,
                 "https://assets.coingecko.com/coins/images/279/small/ethereum.png"),
    "usd-coin": ("USDC", "USD Coin", 1.0, 25000000000.0, 0.0,
                 "https://assets.coingecko.com/coins/images/6319/small/USD_Coin_icon.png"),
}

# Config file read by load_config
DEFAULT_CONFIG_PATH = "portfolio_config.json"

# Tolerance when checking that a target allocation sums to 100%
ALLOCATION_SUM_TOLERANCE = 0.01
