"""
Market Data Client
Fetches token prices and global market statistics from the CoinGecko API.
Every public method fails soft: errors are logged and a fallback value is returned.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

import requests

from .classifier import classify_token
from .constants import (
    API_HEADERS,
    API_RATE_LIMIT_BACKOFF_BASE,
    API_RETRY_COUNT,
    API_TIMEOUT,
    BEAR_TREND_THRESHOLD,
    BULL_TREND_THRESHOLD,
    COINGECKO_BASE_URL,
    DEFAULT_CURRENCY,
    FALLBACK_BTC_DOMINANCE,
    FALLBACK_MARKET_TREND,
    FALLBACK_PRICES,
    FALLBACK_TOKENS,
    FALLBACK_TOTAL_MARKET_CAP,
    FALLBACK_UNKNOWN_PRICE
)
from .models import MarketSnapshot, MarketTrend, Token

logger = logging.getLogger(__name__)


class MarketDataError(Exception):
    """Raised when the API cannot be reached after all retries"""


def fallback_market_snapshot() -> MarketSnapshot:
    return MarketSnapshot(
        btc_dominance=FALLBACK_BTC_DOMINANCE,
        total_market_cap=FALLBACK_TOTAL_MARKET_CAP,
        trend=MarketTrend(FALLBACK_MARKET_TREND)
    )


def fallback_token(token_id: str) -> Optional[Token]:
    if token_id not in FALLBACK_TOKENS:
        return None
    symbol, name, price, market_cap, change_24h, image = FALLBACK_TOKENS[token_id]
    return Token(
        id=token_id,
        symbol=symbol,
        name=name,
        current_price=price,
        price_change_24h=change_24h,
        category=classify_token(token_id, symbol),
        market_cap=market_cap,
        image=image
    )


def determine_market_trend(change_24h: float) -> MarketTrend:
    """Classify 24h total market cap change (%) as a trend"""
    if change_24h > BULL_TREND_THRESHOLD:
        return MarketTrend.BULL
    if change_24h < BEAR_TREND_THRESHOLD:
        return MarketTrend.BEAR
    return MarketTrend.SIDEWAYS


class CoinGeckoClient:
    """Thin CoinGecko client used for prices and the global market snapshot"""

    def __init__(
        self,
        base_url: str = COINGECKO_BASE_URL,
        currency: str = DEFAULT_CURRENCY,
        timeout: float = API_TIMEOUT,
        retry_count: int = API_RETRY_COUNT,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize client

        Args:
            base_url: API base URL
            currency: Quote currency for prices
            timeout: Per-request timeout in seconds
            retry_count: Attempts per request before giving up
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self.retry_count = max(1, retry_count)
        self.session = session or requests.Session()
        self.session.headers.update(API_HEADERS)

    def _get(self, path: str, params: Optional[Dict] = None):
        """
        GET a JSON document with retry for rate limits and transport errors

        Raises:
            MarketDataError: if every attempt fails
        """
        url = f"{self.base_url}{path}"
        last_error = None

        for attempt in range(self.retry_count):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)

                # Handle rate limiting (429 Too Many Requests)
                if response.status_code == 429:
                    last_error = MarketDataError(f"Rate limit exceeded for {path}")
                    if attempt < self.retry_count - 1:
                        wait_time = (attempt + 1) * API_RATE_LIMIT_BACKOFF_BASE
                        logger.warning("Rate limit hit on %s, retrying in %.1fs", path, wait_time)
                        time.sleep(wait_time)
                    continue

                response.raise_for_status()
                return response.json()

            except requests.exceptions.RequestException as e:
                last_error = e
                if attempt < self.retry_count - 1:
                    wait_time = (attempt + 1) * API_RATE_LIMIT_BACKOFF_BASE
                    logger.warning("Request error on %s: %s. Retrying in %.1fs", path, e, wait_time)
                    time.sleep(wait_time)

        raise MarketDataError(f"Failed to fetch {path} after {self.retry_count} attempts: {last_error}")

    def fetch_token_price(self, token_id: str) -> float:
        """
        Fetch the current price of a single token

        Returns:
            Price, 0 if the API has no price for the token, or a fallback
            price if the request fails
        """
        try:
            data = self._get("/simple/price", {"ids": token_id, "vs_currencies": self.currency})
            price = (data or {}).get(token_id, {}).get(self.currency)
            if price:
                return float(price)
            logger.warning("No price data found for token: %s", token_id)
            return 0.0
        except (MarketDataError, ValueError) as e:
            logger.error("Error fetching token price for %s: %s", token_id, e)
            return FALLBACK_PRICES.get(token_id, FALLBACK_UNKNOWN_PRICE)

    def fetch_token_data(self, token_id: str) -> Optional[Token]:
        """
        Fetch token details and classify it

        Returns:
            Token, or None if the token is unknown. Falls back to built-in
            data for a few major tokens when the request fails.
        """
        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
            "sparkline": "false"
        }
        try:
            data = self._get(f"/coins/{token_id}", params)
        except (MarketDataError, ValueError) as e:
            logger.error("Error fetching token data for %s: %s", token_id, e)
            return fallback_token(token_id)

        if not data or not data.get("market_data"):
            logger.warning("Invalid data received for token: %s", token_id)
            return None

        market = data["market_data"]
        symbol = (data.get("symbol") or "").upper()
        return Token(
            id=data.get("id", token_id),
            symbol=symbol,
            name=data.get("name", symbol),
            current_price=float((market.get("current_price") or {}).get(self.currency) or 0),
            price_change_24h=float(market.get("price_change_percentage_24h") or 0),
            category=classify_token(data.get("id", token_id), symbol),
            market_cap=float((market.get("market_cap") or {}).get(self.currency) or 0),
            image=(data.get("image") or {}).get("small", "")
        )

    def fetch_market_snapshot(self) -> MarketSnapshot:
        """
        Fetch BTC dominance, total market cap and trend

        Returns:
            MarketSnapshot, or the fallback snapshot if the request fails
        """
        try:
            payload = self._get("/global")
            data = (payload or {}).get("data")
            if not data:
                raise MarketDataError("Invalid market data response")
        except (MarketDataError, ValueError) as e:
            logger.error("Error fetching market data: %s", e)
            return fallback_market_snapshot()

        return MarketSnapshot(
            btc_dominance=float((data.get("market_cap_percentage") or {}).get("btc") or FALLBACK_BTC_DOMINANCE),
            total_market_cap=float((data.get("total_market_cap") or {}).get(self.currency) or FALLBACK_TOTAL_MARKET_CAP),
            trend=determine_market_trend(float(data.get("market_cap_change_percentage_24h_usd") or 0))
        )

    def fetch_batch_prices(self, token_ids: Iterable[str]) -> Dict[str, float]:
        """
        Fetch prices for several tokens in one request

        Falls back to one request per token if the batch request fails.
        Tokens without a positive price are left out of the result.

        Returns:
            Dictionary mapping token id to price
        """
        ids: List[str] = list(dict.fromkeys(token_ids))
        if not ids:
            return {}

        try:
            data = self._get("/simple/price", {"ids": ",".join(ids), "vs_currencies": self.currency}) or {}
        except (MarketDataError, ValueError) as e:
            logger.error("Error updating portfolio prices: %s. Falling back to single requests", e)
            prices = {}
            for token_id in ids:
                price = self.fetch_token_price(token_id)
                if price > 0:
                    prices[token_id] = price
            return prices

        prices = {}
        for token_id in ids:
            price = (data.get(token_id) or {}).get(self.currency)
            if price and price > 0:
                prices[token_id] = float(price)
        return prices
