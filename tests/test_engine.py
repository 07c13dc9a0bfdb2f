import unittest
import sys
import os

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from portfolio_allocator.allocation import allocation_from_tuple
from portfolio_allocator.config import EngineConfig
from portfolio_allocator.engine import AllocationEngine
from portfolio_allocator.models import Action, Category, Holding, MarketSnapshot, MarketTrend, Token


def make_holding(token_id, category, price, amount, purchase_price=None):
    token = Token(token_id, token_id.upper(), token_id.title(), price, 2.0, category)
    return Holding(token=token, amount=amount, purchase_price=purchase_price)


class TestAllocationEngine(unittest.TestCase):
    def setUp(self):
        self.snapshot = MarketSnapshot(btc_dominance=57.0, total_market_cap=3e12, trend=MarketTrend.SIDEWAYS)
        # 15,000 total: level 3 (10% reduction)
        self.holdings = [
            make_holding("bitcoin", Category.BTC, 50000.0, 0.03, purchase_price=40000.0),  # 1500 (10%)
            make_holding("ethereum", Category.ETH_BLUECHIPS, 2500.0, 1.8),                # 4500 (30%)
            make_holding("usd-coin", Category.STABLECOINS, 1.0, 3000.0),                  # 3000 (20%)
            make_holding("uniswap", Category.DEFI_ALTCOINS, 10.0, 600.0)                  # 6000 (40%)
        ]

    def test_full_evaluation(self):
        analysis = AllocationEngine().evaluate(self.holdings, self.snapshot)

        self.assertAlmostEqual(analysis.total_value, 15000.0)
        self.assertAlmostEqual(analysis.current_allocation[Category.DEFI_ALTCOINS], 40.0)
        self.assertEqual(analysis.target_allocation, allocation_from_tuple((40, 25, 20, 15)))

        self.assertEqual(analysis.level.level, 3)
        self.assertEqual(analysis.next_level.level, 4)
        self.assertAlmostEqual(analysis.level_progress, 50.0)

        # Base 20-30 reduced by 10% -> 18-27
        self.assertAlmostEqual(analysis.adjusted_limits[0].min_percentage, 18.0)
        self.assertAlmostEqual(analysis.adjusted_limits[0].max_percentage, 27.0)
        self.assertTrue(analysis.limits_valid)

        kinds = {v.category: v.kind for v in analysis.violations}
        self.assertEqual(kinds, {
            Category.BTC: "below_minimum",
            Category.ETH_BLUECHIPS: "above_maximum",
            Category.DEFI_ALTCOINS: "above_maximum"
        })

        actions = {r.category: r.action for r in analysis.recommendations}
        self.assertEqual(actions[Category.BTC], Action.BUY)
        self.assertEqual(actions[Category.DEFI_ALTCOINS], Action.SELL)
        self.assertNotIn(Category.STABLECOINS, actions)
        self.assertEqual(analysis.rebalancing_summary["total_actions"], len(analysis.recommendations))

        self.assertEqual(set(analysis.risk_scores), {"analytics-v1", "overview-v1"})
        self.assertEqual(analysis.risk_score, analysis.risk_scores["analytics-v1"])
        self.assertEqual(analysis.diversification_score, 100.0)
        self.assertEqual(analysis.largest_position.token.id, "uniswap")
        self.assertEqual(analysis.holding_count, 4)
        self.assertEqual(analysis.notes, [])

    def test_empty_portfolio(self):
        analysis = AllocationEngine().evaluate([], self.snapshot)
        self.assertEqual(analysis.total_value, 0)
        self.assertEqual(analysis.level.level, 1)
        # Every enabled minimum is violated at 0%
        self.assertEqual(len(analysis.violations), 4)
        self.assertTrue(all(r.amount == 0 for r in analysis.recommendations))
        self.assertIsNone(analysis.largest_position)

    def test_custom_allocation_overrides_policy(self):
        custom = allocation_from_tuple((10, 40, 10, 40))
        analysis = AllocationEngine(EngineConfig(custom_allocation=custom)).evaluate(self.holdings, self.snapshot)
        self.assertEqual(analysis.target_allocation, custom)

    def test_manual_mode(self):
        analysis = AllocationEngine(EngineConfig(auto_mode=False)).evaluate(self.holdings, self.snapshot)
        self.assertEqual(set(analysis.target_allocation.values()), {25.0})

    def test_selected_weight_set(self):
        engine = AllocationEngine(EngineConfig(risk_weight_set="overview-v1"))
        analysis = engine.evaluate(self.holdings, self.snapshot)
        self.assertEqual(analysis.risk_score, analysis.risk_scores["overview-v1"])

    def test_unknown_weight_set(self):
        engine = AllocationEngine(EngineConfig(risk_weight_set="missing"))
        with self.assertRaises(KeyError):
            engine.evaluate(self.holdings, self.snapshot)

    def test_value_above_top_level(self):
        holdings = [make_holding("bitcoin", Category.BTC, 100000.0, 2.0)]
        analysis = AllocationEngine().evaluate(holdings, self.snapshot)
        self.assertEqual(analysis.level.level, 1)
        self.assertEqual(len(analysis.notes), 1)
        self.assertIn("above the top level range", analysis.notes[0])

    def test_invalid_limit_profile_reported(self):
        config = EngineConfig.from_dict({"category_limits": {"BTC": {"min": 90, "max": 100}}})
        analysis = AllocationEngine(config).evaluate(self.holdings, self.snapshot)
        self.assertFalse(analysis.limits_valid)
        self.assertTrue(analysis.limit_errors)


if __name__ == '__main__':
    unittest.main()
