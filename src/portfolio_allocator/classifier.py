"""
Category Classifier
Maps a token id/symbol onto one of the four portfolio categories
"""

from .constants import (
    BTC_IDS,
    BTC_SYMBOLS,
    ETH_BLUECHIP_IDS,
    ETH_BLUECHIP_SYMBOLS,
    STABLECOIN_IDS,
    STABLECOIN_SYMBOLS
)
from .models import Category


def classify_token(token_id: str, symbol: str = "") -> Category:
    """
    Determine the category of a token

    Rules are checked in order: Bitcoin, then Ethereum and large caps,
    then stablecoins. Anything else is treated as DeFi/altcoin.

    Args:
        token_id: CoinGecko token id (case-insensitive)
        symbol: Ticker symbol (case-insensitive)

    Returns:
        Category for the token, DEFI_ALTCOINS when no rule matches
    """
    id_lower = (token_id or "").lower()
    symbol_upper = (symbol or "").upper()

    if id_lower in BTC_IDS or symbol_upper in BTC_SYMBOLS:
        return Category.BTC

    if id_lower in ETH_BLUECHIP_IDS or symbol_upper in ETH_BLUECHIP_SYMBOLS:
        return Category.ETH_BLUECHIPS

    if id_lower in STABLECOIN_IDS or symbol_upper in STABLECOIN_SYMBOLS:
        return Category.STABLECOINS

    return Category.DEFI_ALTCOINS
