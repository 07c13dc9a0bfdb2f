"""
Portfolio Analytics
ROI, volatility, diversification and per-category performance statistics
"""

from typing import Dict, List, Optional

from .models import Allocation, Category, Holding


def average_volatility(holdings: List[Holding]) -> float:
    """Mean absolute 24h price change across holdings"""
    total_change = sum(abs(h.token.price_change_24h or 0) for h in holdings)
    return total_change / max(len(holdings), 1)


def diversification_score(allocation: Allocation) -> float:
    """25 points per category with a non-zero allocation, capped at 100"""
    populated = sum(1 for pct in allocation.values() if pct > 0)
    return float(min(populated * 25, 100))


def largest_position(holdings: List[Holding]) -> Optional[Holding]:
    if not holdings:
        return None
    return max(holdings, key=lambda h: h.value)


def roi_summary(holdings: List[Holding], top_n: int = 3) -> Dict:
    """
    Summarise return on investment across holdings

    Holdings without a purchase price count as 0% ROI.

    Returns:
        Dictionary with average ROI, profitable/loss counts and the
        best and worst performers
    """
    rois = [(h, h.roi or 0.0) for h in holdings]
    average = sum(roi for _, roi in rois) / len(rois) if rois else 0.0

    best_first = sorted(rois, key=lambda pair: pair[1], reverse=True)
    worst_first = sorted(rois, key=lambda pair: pair[1])

    return {
        "average_roi": average,
        "profitable_count": sum(1 for _, roi in rois if roi > 0),
        "loss_count": sum(1 for _, roi in rois if roi < 0),
        "top_performers": [h for h, _ in best_first[:top_n]],
        "worst_performers": [h for h, _ in worst_first[:top_n]]
    }


def category_performance(holdings: List[Holding], allocation: Allocation) -> Dict[Category, Dict]:
    """Allocation, average 24h change, token count and value for each category"""
    performance = {}
    for category in Category:
        members = [h for h in holdings if h.token.category == category]
        avg_change = (
            sum(h.token.price_change_24h for h in members) / len(members)
            if members else 0.0
        )
        performance[category] = {
            "allocation": allocation.get(category, 0.0),
            "average_price_change_24h": round(avg_change, 2),
            "token_count": len(members),
            "total_value": sum(h.value for h in members)
        }
    return performance
