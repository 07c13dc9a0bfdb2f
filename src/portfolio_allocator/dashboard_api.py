"""
Dashboard API Backend
Flask JSON API for the portfolio allocation dashboard
"""

from flask import Flask, jsonify, request
from flask_cors import CORS
from datetime import datetime
from typing import Dict, Optional
import logging
import math

from .config import load_config
from .engine import AllocationEngine, PortfolioAnalysis
from .levels import apply_level_reductions, get_level_benefits, get_level_progress, get_portfolio_level
from .limits import LIMIT_PRESETS, limit_profile_errors, limits_from_mapping
from .market_data import CoinGeckoClient
from .models import Category, CategoryLimit, Holding, LimitPreset, MarketSnapshot, PortfolioLevel
from .poller import MarketDataPoller
from .portfolio import HoldingNotFoundError, InvalidHoldingError, Portfolio
from .risk import calculate_risk_score, get_weight_set

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for the browser dashboard

# Presentation-only lookups; the computation modules never see these
CATEGORY_LABELS = {
    Category.BTC: "Bitcoin",
    Category.ETH_BLUECHIPS: "ETH & Blue Chips",
    Category.STABLECOINS: "Stablecoins",
    Category.DEFI_ALTCOINS: "DeFi & Altcoins"
}

CATEGORY_COLORS = {
    Category.BTC: "#f7931a",
    Category.ETH_BLUECHIPS: "#627eea",
    Category.STABLECOINS: "#00d4aa",
    Category.DEFI_ALTCOINS: "#ff6b6b"
}

# In-memory state, lost on restart
_config = load_config()
_engine = AllocationEngine(_config)
_client = CoinGeckoClient(base_url=_config.coingecko_base_url, currency=_config.currency)
_poller = MarketDataPoller(_client, interval=_config.market_refresh_interval)
_portfolio = Portfolio()

# Market snapshot cache used when the background poller is not running
_market_cache: Optional[MarketSnapshot] = None
_market_cache_timestamp: Optional[datetime] = None


def get_market_snapshot(force_refresh: bool = False) -> MarketSnapshot:
    """Latest market snapshot, refreshed at most once per refresh interval"""
    global _market_cache, _market_cache_timestamp

    if _poller.is_running() and not force_refresh:
        return _poller.current()

    if not force_refresh and _market_cache is not None and _market_cache_timestamp is not None:
        cache_age = (datetime.now() - _market_cache_timestamp).total_seconds()
        if cache_age < _config.market_refresh_interval:
            return _market_cache

    _market_cache = _client.fetch_market_snapshot()
    _market_cache_timestamp = datetime.now()
    return _market_cache


def category_label(category: Category) -> str:
    return CATEGORY_LABELS.get(category, category.value)


def allocation_to_dict(allocation: Dict[Category, float]) -> Dict[str, float]:
    return {category.value: allocation.get(category, 0.0) for category in Category}


def holding_to_dict(holding: Holding) -> Dict:
    """Convert Holding object to dictionary"""
    token = holding.token
    return {
        'id': token.id,
        'symbol': token.symbol,
        'name': token.name,
        'category': token.category.value,
        'category_label': category_label(token.category),
        'category_color': CATEGORY_COLORS.get(token.category),
        'current_price': token.current_price,
        'price_change_24h': token.price_change_24h,
        'market_cap': token.market_cap,
        'image': token.image,
        'amount': holding.amount,
        'value': holding.value,
        'percentage': holding.percentage,
        'purchase_price': holding.purchase_price,
        'transaction_link': holding.transaction_link,
        'roi': holding.roi
    }


def limit_to_dict(limit: CategoryLimit) -> Dict:
    return {
        'category': limit.category.value,
        'min_percentage': limit.min_percentage,
        'max_percentage': limit.max_percentage,
        'enabled': limit.enabled
    }


def level_to_dict(level: Optional[PortfolioLevel]) -> Optional[Dict]:
    if level is None:
        return None
    return {
        'level': level.level,
        'name': level.name,
        'min_value': level.min_value,
        'max_value': level.max_value,
        'limit_reduction': level.limit_reduction,
        'description': level.description
    }


def market_to_dict(snapshot: MarketSnapshot) -> Dict:
    return {
        'btc_dominance': snapshot.btc_dominance,
        'total_market_cap': snapshot.total_market_cap,
        'trend': snapshot.trend.value
    }


def preset_to_dict(preset: LimitPreset) -> Dict:
    return {
        'id': preset.id,
        'name': preset.name,
        'description': preset.description,
        'btc_dominance_range': list(preset.btc_dominance_range),
        'allocation': allocation_to_dict(preset.allocation),
        'category_limits': [limit_to_dict(limit) for limit in preset.category_limits]
    }


def recommendations_to_list(recommendations) -> list:
    return [
        {
            'category': rec.category.value,
            'category_label': category_label(rec.category),
            'current_percentage': rec.current_percentage,
            'target_percentage': rec.target_percentage,
            'action': rec.action.value,
            'amount': rec.amount,
            'priority': rec.priority.value
        }
        for rec in recommendations
    ]


def analysis_to_dict(analysis: PortfolioAnalysis, holdings) -> Dict:
    """Convert PortfolioAnalysis object to dictionary"""
    roi = analysis.roi
    largest = analysis.largest_position
    return {
        'holdings': [holding_to_dict(h) for h in holdings],
        'total_value': analysis.total_value,
        'holding_count': analysis.holding_count,
        'current_allocation': allocation_to_dict(analysis.current_allocation),
        'target_allocation': allocation_to_dict(analysis.target_allocation),
        'level': level_to_dict(analysis.level),
        'next_level': level_to_dict(analysis.next_level),
        'level_progress': analysis.level_progress,
        'level_benefits': get_level_benefits(analysis.level, _config.levels),
        'base_limits': [limit_to_dict(l) for l in analysis.base_limits],
        'adjusted_limits': [limit_to_dict(l) for l in analysis.adjusted_limits],
        'limits_valid': analysis.limits_valid,
        'limit_errors': analysis.limit_errors,
        'violations': [
            {
                'category': v.category.value,
                'category_label': category_label(v.category),
                'kind': v.kind,
                'current_percentage': v.current_percentage,
                'limit_percentage': v.limit_percentage,
                'violation': v.description
            }
            for v in analysis.violations
        ],
        'rebalancing_plan': recommendations_to_list(analysis.recommendations),
        'rebalancing_summary': analysis.rebalancing_summary,
        'risk_score': analysis.risk_score,
        'risk_scores': analysis.risk_scores,
        'volatility': analysis.volatility,
        'diversification_score': analysis.diversification_score,
        'roi': {
            'average_roi': roi['average_roi'],
            'profitable_count': roi['profitable_count'],
            'loss_count': roi['loss_count'],
            'top_performers': [h.token.id for h in roi['top_performers']],
            'worst_performers': [h.token.id for h in roi['worst_performers']]
        },
        'category_performance': {
            category.value: {**stats, 'label': category_label(category)}
            for category, stats in analysis.category_performance.items()
        },
        'largest_position': largest.token.id if largest else None,
        'market': market_to_dict(analysis.market),
        'notes': analysis.notes,
        'timestamp': datetime.now().isoformat()
    }


def evaluate_portfolio() -> PortfolioAnalysis:
    return _engine.evaluate(_portfolio.holdings, get_market_snapshot())


def _parse_category(value) -> Optional[Category]:
    if value in (None, ""):
        return None
    try:
        return Category(str(value).upper())
    except ValueError:
        raise InvalidHoldingError(f"Unknown category: {value}")


def _parse_float(data: Dict, key: str, required: bool = False) -> Optional[float]:
    value = data.get(key)
    if value in (None, ""):
        if required:
            raise InvalidHoldingError(f"Missing required field: {key}")
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidHoldingError(f"Invalid number for {key}: {value}")
    if not math.isfinite(number):
        raise InvalidHoldingError(f"Invalid number for {key}: {value}")
    return number


@app.route('/api/portfolio/current')
def get_current_portfolio():
    """Get current portfolio state with full analysis"""
    try:
        analysis = evaluate_portfolio()
        return jsonify(analysis_to_dict(analysis, _portfolio.holdings))
    except Exception as e:
        logger.exception("Error evaluating portfolio")
        return jsonify({'error': str(e)}), 500


@app.route('/api/portfolio/holdings', methods=['POST'])
def add_holding():
    """Add a token to the portfolio"""
    data = request.get_json(silent=True) or {}
    token_id = (data.get('token_id') or '').strip().lower()

    try:
        if not token_id:
            raise InvalidHoldingError("Missing required field: token_id")
        amount = _parse_float(data, 'amount', required=True)
        purchase_price = _parse_float(data, 'purchase_price')
        current_price = _parse_float(data, 'current_price')
        category = _parse_category(data.get('category'))

        token = _client.fetch_token_data(token_id)
        if token is None:
            return jsonify({'error': 'Token not found. Please check the token ID.'}), 404

        holding = _portfolio.add_holding(
            token,
            amount,
            purchase_price=purchase_price,
            current_price=current_price,
            transaction_link=data.get('transaction_link') or None,
            category=category
        )
        return jsonify(holding_to_dict(holding)), 201
    except InvalidHoldingError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Error adding holding")
        return jsonify({'error': str(e)}), 500


@app.route('/api/portfolio/holdings/<token_id>', methods=['PATCH'])
def update_holding(token_id: str):
    """Change the amount held of a token"""
    data = request.get_json(silent=True) or {}
    try:
        amount = _parse_float(data, 'amount', required=True)
        holding = _portfolio.update_amount(token_id, amount)
        return jsonify(holding_to_dict(holding))
    except HoldingNotFoundError as e:
        return jsonify({'error': str(e)}), 404
    except InvalidHoldingError as e:
        return jsonify({'error': str(e)}), 400


@app.route('/api/portfolio/holdings/<token_id>', methods=['DELETE'])
def remove_holding(token_id: str):
    """Remove a token from the portfolio"""
    try:
        _portfolio.remove_holding(token_id)
        return jsonify({'status': 'success', 'removed': token_id})
    except HoldingNotFoundError as e:
        return jsonify({'error': str(e)}), 404


@app.route('/api/portfolio/refresh', methods=['POST'])
def refresh_prices():
    """Force refresh of holding prices and market data"""
    try:
        prices = _client.fetch_batch_prices([h.token.id for h in _portfolio.holdings])
        updated = _portfolio.refresh_prices(prices)
        snapshot = get_market_snapshot(force_refresh=True)
        return jsonify({
            'message': 'Portfolio prices refreshed',
            'updated': updated,
            'market': market_to_dict(snapshot),
            'timestamp': datetime.now().isoformat()
        })
    except Exception as e:
        logger.exception("Error refreshing prices")
        return jsonify({'error': str(e)}), 500


@app.route('/api/market')
def get_market():
    """Get current market snapshot"""
    return jsonify(market_to_dict(get_market_snapshot()))


@app.route('/api/portfolio/rebalancing')
def get_rebalancing():
    """Get rebalancing recommendations"""
    try:
        analysis = evaluate_portfolio()
        return jsonify({
            'actions': recommendations_to_list(analysis.recommendations),
            'summary': analysis.rebalancing_summary,
            'current_allocation': allocation_to_dict(analysis.current_allocation),
            'target_allocation': allocation_to_dict(analysis.target_allocation),
            'total_value': analysis.total_value
        })
    except Exception as e:
        logger.exception("Error calculating rebalancing")
        return jsonify({'error': str(e)}), 500


@app.route('/api/levels')
def get_levels():
    """Get the level table and the portfolio's progress through it"""
    current, next_level, progress = get_level_progress(_portfolio.total_value, _config.levels)
    return jsonify({
        'levels': [level_to_dict(level) for level in _config.levels],
        'current': level_to_dict(current),
        'next': level_to_dict(next_level),
        'progress': progress,
        'benefits': get_level_benefits(current, _config.levels)
    })


@app.route('/api/limits/presets')
def get_limit_presets():
    """Get predefined limit presets"""
    return jsonify([preset_to_dict(preset) for preset in LIMIT_PRESETS])


@app.route('/api/limits/validate', methods=['POST'])
def validate_limits():
    """
    Validate a limit profile and show it adjusted for a portfolio value

    Body: {"category_limits": {"BTC": {"min": 20, "max": 30, "enabled": true}, ...},
           "total_value": 15000}
    """
    data = request.get_json(silent=True) or {}
    raw_limits = data.get('category_limits') or {}

    try:
        bands = {name: (float(entry['min']), float(entry['max'])) for name, entry in raw_limits.items()}
        disabled = [name for name, entry in raw_limits.items() if not entry.get('enabled', True)]
        total_value = float(data.get('total_value', _portfolio.total_value))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        return jsonify({'error': f'Invalid limit profile: {e}'}), 400

    numbers = [total_value] + [pct for band in bands.values() for pct in band]
    if not all(math.isfinite(n) for n in numbers):
        return jsonify({'error': 'Invalid limit profile: values must be finite numbers'}), 400

    unknown = set(bands) - {c.value for c in Category}
    if unknown:
        return jsonify({'error': f'Unknown categories: {sorted(unknown)}'}), 400

    limits = limits_from_mapping(bands, disabled)
    errors = limit_profile_errors(limits)
    level = get_portfolio_level(total_value, _config.levels)

    return jsonify({
        'valid': not errors,
        'errors': errors,
        'level': level_to_dict(level),
        'adjusted': [limit_to_dict(l) for l in apply_level_reductions(limits, level)]
    })


@app.route('/api/risk')
def get_risk():
    """Risk score under a chosen weight set"""
    name = request.args.get('weight_set', _config.risk_weight_set)
    try:
        weight_set = get_weight_set(name, _config.risk_weight_sets)
    except KeyError:
        return jsonify({'error': f'Unknown weight set: {name}'}), 400

    analysis = evaluate_portfolio()
    score = calculate_risk_score(
        analysis.current_allocation,
        trend=analysis.market.trend,
        limit_reduction=analysis.level.limit_reduction,
        weight_set=weight_set,
        holding_count=analysis.holding_count
    )
    return jsonify({
        'weight_set': weight_set.name,
        'risk_score': score,
        'available_weight_sets': sorted(_config.risk_weight_sets)
    })


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    _poller.start()

    print("Starting Portfolio Allocation Dashboard API...")
    print("API will be available at: http://localhost:5000")
    print("Press Ctrl+C to stop the server")

    try:
        app.run(debug=False, host='127.0.0.1', port=5000)
    finally:
        _poller.stop()
