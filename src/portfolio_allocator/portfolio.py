"""
Portfolio Store
In-memory collection of manually entered holdings
"""

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional

from .allocation import calculate_portfolio_value, refresh_percentages
from .models import Category, Holding, Token

logger = logging.getLogger(__name__)


class PortfolioError(Exception):
    """Base error for portfolio store operations"""


class HoldingNotFoundError(PortfolioError):
    pass


class InvalidHoldingError(PortfolioError):
    pass


def _check_amount(amount: float) -> None:
    if amount is None or not math.isfinite(amount) or amount < 0:
        raise InvalidHoldingError("Amount must be a finite number, zero or greater")


def _check_prices(purchase_price: Optional[float], current_price: Optional[float]) -> None:
    if purchase_price is not None and (not math.isfinite(purchase_price) or purchase_price <= 0):
        raise InvalidHoldingError("Purchase price must be a finite number greater than zero")
    if current_price is not None and (not math.isfinite(current_price) or current_price < 0):
        raise InvalidHoldingError("Current price must be a finite number, zero or greater")


class Portfolio:
    """Holds the current holdings only; no history is kept"""

    def __init__(self, holdings: Optional[List[Holding]] = None):
        self._holdings: Dict[str, Holding] = {}
        for holding in holdings or []:
            if holding.token.id in self._holdings:
                raise InvalidHoldingError(f"Token already in portfolio: {holding.token.id}")
            _check_amount(holding.amount)
            _check_prices(holding.purchase_price, holding.token.current_price)
            self._holdings[holding.token.id] = holding
        refresh_percentages(self.holdings)

    @property
    def holdings(self) -> List[Holding]:
        return list(self._holdings.values())

    @property
    def total_value(self) -> float:
        return calculate_portfolio_value(self._holdings.values())

    def __len__(self) -> int:
        return len(self._holdings)

    def __contains__(self, token_id: str) -> bool:
        return token_id in self._holdings

    def get(self, token_id: str) -> Holding:
        if token_id not in self._holdings:
            raise HoldingNotFoundError(f"No holding for token: {token_id}")
        return self._holdings[token_id]

    def add_holding(
        self,
        token: Token,
        amount: float,
        purchase_price: Optional[float] = None,
        current_price: Optional[float] = None,
        transaction_link: Optional[str] = None,
        category: Optional[Category] = None
    ) -> Holding:
        """
        Add a new holding

        Args:
            token: Token as fetched from the market data client
            amount: Quantity held (>= 0)
            purchase_price: Optional purchase price per unit (> 0), used for ROI
            current_price: Optional manual price overriding the fetched one
            transaction_link: Optional external reference link
            category: Optional manual category overriding the classifier

        Returns:
            The new Holding

        Raises:
            InvalidHoldingError: on negative or non-finite amounts/prices or a duplicate token
        """
        if token.id in self._holdings:
            raise InvalidHoldingError(f"Token already in portfolio: {token.id}")
        _check_amount(amount)
        _check_prices(purchase_price, current_price)

        overrides = {}
        if current_price:
            overrides["current_price"] = current_price
        if category is not None:
            overrides["category"] = category

        holding = Holding(
            token=replace(token, **overrides),
            amount=amount,
            purchase_price=purchase_price,
            transaction_link=transaction_link
        )
        self._holdings[token.id] = holding
        refresh_percentages(self.holdings)

        logger.info("Added %s %s (%s)", amount, holding.token.symbol, holding.token.category.value)
        return holding

    def update_amount(self, token_id: str, amount: float) -> Holding:
        _check_amount(amount)
        holding = self.get(token_id)
        holding.amount = amount
        refresh_percentages(self.holdings)
        return holding

    def remove_holding(self, token_id: str) -> Holding:
        holding = self.get(token_id)
        del self._holdings[token_id]
        refresh_percentages(self.holdings)
        logger.info("Removed %s", token_id)
        return holding

    def refresh_prices(self, prices: Dict[str, float]) -> int:
        """
        Apply new prices to matching holdings

        Non-positive and non-finite prices are ignored.

        Returns:
            Number of holdings updated
        """
        updated = 0
        for token_id, price in prices.items():
            holding = self._holdings.get(token_id)
            if holding is None or not price or not math.isfinite(price) or price <= 0:
                continue
            holding.token.current_price = price
            updated += 1

        refresh_percentages(self.holdings)
        return updated
