import unittest
import sys
import os

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from portfolio_allocator.limits import (
    LIMIT_PRESETS,
    create_custom_preset,
    default_category_limits,
    detect_violations,
    get_preset,
    get_preset_by_btc_dominance,
    limit_profile_errors,
    limits_from_mapping,
    validate_category_limits
)
from portfolio_allocator.models import Category, CategoryLimit


class TestViolations(unittest.TestCase):
    def test_below_and_above(self):
        limits = default_category_limits()
        allocation = {
            Category.BTC: 10.0,
            Category.ETH_BLUECHIPS: 25.0,
            Category.STABLECOINS: 25.0,
            Category.DEFI_ALTCOINS: 40.0
        }
        violations = detect_violations(allocation, limits)

        self.assertEqual(len(violations), 2)
        self.assertEqual(violations[0].category, Category.BTC)
        self.assertEqual(violations[0].kind, "below_minimum")
        self.assertEqual(violations[0].description, "Below minimum (10.0% < 20.0%)")
        self.assertEqual(violations[1].category, Category.DEFI_ALTCOINS)
        self.assertEqual(violations[1].description, "Above maximum (40.0% > 30.0%)")

    def test_band_edges_are_allowed(self):
        limits = [CategoryLimit(Category.BTC, 20.0, 30.0)]
        self.assertEqual(detect_violations({Category.BTC: 20.0}, limits), [])
        self.assertEqual(detect_violations({Category.BTC: 30.0}, limits), [])

    def test_disabled_limit_never_violates(self):
        limits = [CategoryLimit(Category.BTC, 20.0, 30.0, enabled=False)]
        self.assertEqual(detect_violations({Category.BTC: 90.0}, limits), [])

    def test_inverted_band_gives_single_violation(self):
        limits = [CategoryLimit(Category.BTC, 40.0, 30.0)]
        violations = detect_violations({Category.BTC: 35.0}, limits)
        self.assertEqual(len(violations), 1)
        self.assertEqual(violations[0].kind, "below_minimum")

    def test_missing_category_counts_as_zero(self):
        violations = detect_violations({}, [CategoryLimit(Category.STABLECOINS, 5.0, 30.0)])
        self.assertEqual(violations[0].current_percentage, 0.0)


class TestLimitValidation(unittest.TestCase):
    def test_default_profile_is_valid(self):
        self.assertTrue(validate_category_limits(default_category_limits()))

    def test_minimums_over_100(self):
        limits = limits_from_mapping({c.value: (30, 40) for c in Category})
        errors = limit_profile_errors(limits)
        self.assertFalse(validate_category_limits(limits))
        self.assertTrue(any("exceeds 100%" in e for e in errors))

    def test_maximums_under_100(self):
        limits = limits_from_mapping({c.value: (0, 20) for c in Category})
        self.assertTrue(any("below 100%" in e for e in limit_profile_errors(limits)))

    def test_per_limit_checks(self):
        limits = limits_from_mapping({
            "BTC": (-5, 50),
            "ETH_BLUECHIPS": (10, 120),
            "STABLECOINS": (30, 20)
        })
        errors = limit_profile_errors(limits)
        self.assertTrue(any(e.startswith("BTC: minimum") for e in errors))
        self.assertTrue(any(e.startswith("ETH_BLUECHIPS: maximum") for e in errors))
        self.assertTrue(any("is above maximum" in e for e in errors))

    def test_disabled_limits_ignored(self):
        limits = limits_from_mapping(
            {"BTC": (90, 100), "ETH_BLUECHIPS": (20, 100)},
            disabled=["BTC"]
        )
        self.assertTrue(validate_category_limits(limits))


class TestPresets(unittest.TestCase):
    def test_presets_are_valid(self):
        for preset in LIMIT_PRESETS:
            self.assertAlmostEqual(sum(preset.allocation.values()), 100.0, msg=preset.id)
            self.assertTrue(validate_category_limits(preset.category_limits), preset.id)

    def test_get_preset(self):
        self.assertEqual(get_preset("balanced").name, "Balanced")
        self.assertIsNone(get_preset("missing"))

    def test_preset_by_dominance(self):
        self.assertEqual(get_preset_by_btc_dominance(60).id, "conservative")
        self.assertEqual(get_preset_by_btc_dominance(45).id, "balanced")
        self.assertEqual(get_preset_by_btc_dominance(30).id, "aggressive")
        # Ranges are inclusive, first match wins
        self.assertEqual(get_preset_by_btc_dominance(50).id, "conservative")
        self.assertEqual(get_preset_by_btc_dominance(40).id, "balanced")

    def test_custom_preset(self):
        allocation = {c: 25.0 for c in Category}
        preset = create_custom_preset("Mine", "My profile", allocation, default_category_limits())
        self.assertTrue(preset.id.startswith("custom-"))
        self.assertEqual(preset.btc_dominance_range, (0.0, 100.0))
        self.assertIsNot(preset.allocation, allocation)


if __name__ == '__main__':
    unittest.main()
