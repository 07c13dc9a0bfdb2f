import unittest
import sys
import os
import json
import tempfile

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from portfolio_allocator.config import ConfigError, EngineConfig, load_config
from portfolio_allocator.models import Category


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "portfolio_config.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, content):
        with open(self.path, 'w') as f:
            if isinstance(content, str):
                f.write(content)
            else:
                json.dump(content, f)

    def test_missing_file_gives_defaults(self):
        config = load_config(os.path.join(self.tmpdir.name, "missing.json"))
        self.assertTrue(config.auto_mode)
        self.assertIsNone(config.custom_allocation)
        self.assertEqual(config.rebalance_threshold, 2.0)
        self.assertEqual(config.risk_weight_set, "analytics-v1")
        self.assertEqual(len(config.base_limits), 4)
        self.assertEqual(len(config.levels), 5)

    def test_overrides(self):
        self.write({
            "auto_mode": False,
            "custom_allocation": {"BTC": 40, "ETH_BLUECHIPS": 30, "STABLECOINS": 20, "DEFI_ALTCOINS": 10},
            "category_limits": {"BTC": {"min": 35, "max": 45}, "DEFI_ALTCOINS": {"enabled": False}},
            "rebalance_threshold": 3.5,
            "risk_weight_set": "overview-v1",
            "market_refresh_interval": 60,
            "currency": "EUR"
        })
        config = load_config(self.path)

        self.assertFalse(config.auto_mode)
        self.assertEqual(config.custom_allocation[Category.BTC], 40.0)
        limits = {limit.category: limit for limit in config.base_limits}
        self.assertEqual(limits[Category.BTC].min_percentage, 35.0)
        self.assertEqual(limits[Category.BTC].max_percentage, 45.0)
        self.assertFalse(limits[Category.DEFI_ALTCOINS].enabled)
        self.assertEqual(limits[Category.DEFI_ALTCOINS].max_percentage, 30.0)
        self.assertEqual(limits[Category.STABLECOINS].min_percentage, 20.0)
        self.assertEqual(config.rebalance_threshold, 3.5)
        self.assertEqual(config.risk_weight_set, "overview-v1")
        self.assertEqual(config.market_refresh_interval, 60.0)
        self.assertEqual(config.currency, "eur")

    def test_malformed_json(self):
        self.write("{not json")
        with self.assertRaises(ConfigError):
            load_config(self.path)

    def test_non_object(self):
        self.write([1, 2, 3])
        with self.assertRaises(ConfigError):
            load_config(self.path)

    def test_unknown_category(self):
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({"category_limits": {"MEMES": {"min": 0, "max": 10}}})
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({"custom_allocation": {"MEMES": 100}})

    def test_custom_allocation_must_be_complete(self):
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({"custom_allocation": {"BTC": 40}})
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({"custom_allocation": {"BTC": 100}})

    def test_custom_allocation_must_sum_to_100(self):
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({
                "custom_allocation": {"BTC": 40, "ETH_BLUECHIPS": 30, "STABLECOINS": 20, "DEFI_ALTCOINS": 5}
            })
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({
                "custom_allocation": {"BTC": 120, "ETH_BLUECHIPS": -20, "STABLECOINS": 0, "DEFI_ALTCOINS": 0}
            })
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({
                "custom_allocation": {"BTC": "nan", "ETH_BLUECHIPS": 30, "STABLECOINS": 20, "DEFI_ALTCOINS": 10}
            })

        # Within tolerance, stored in category order
        config = EngineConfig.from_dict({
            "custom_allocation": {"DEFI_ALTCOINS": 10, "STABLECOINS": 20, "ETH_BLUECHIPS": 30, "BTC": 40.005}
        })
        self.assertEqual(list(config.custom_allocation), list(Category))
        self.assertAlmostEqual(sum(config.custom_allocation.values()), 100.005)

    def test_partial_custom_allocation_file_rejected(self):
        self.write({"custom_allocation": {"BTC": 40}})
        with self.assertRaises(ConfigError):
            load_config(self.path)

    def test_unknown_weight_set(self):
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({"risk_weight_set": "v0"})

    def test_bad_number(self):
        with self.assertRaises(ConfigError):
            EngineConfig.from_dict({"rebalance_threshold": "lots"})

    def test_defaults_are_independent(self):
        first = EngineConfig()
        second = EngineConfig()
        first.base_limits[0].min_percentage = 0
        self.assertEqual(second.base_limits[0].min_percentage, 20.0)


if __name__ == '__main__':
    unittest.main()
