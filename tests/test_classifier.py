import unittest
import sys
import os

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from portfolio_allocator.classifier import classify_token
from portfolio_allocator.models import Category


class TestClassifier(unittest.TestCase):
    def test_bitcoin(self):
        self.assertEqual(classify_token("bitcoin", "btc"), Category.BTC)
        self.assertEqual(classify_token("wrapped-thing", "BTC"), Category.BTC)

    def test_blue_chips(self):
        for token_id, symbol in [("ethereum", "eth"), ("solana", "sol"), ("cardano", "ada"),
                                 ("binancecoin", "bnb"), ("polkadot", "dot")]:
            self.assertEqual(classify_token(token_id, symbol), Category.ETH_BLUECHIPS)

    def test_stablecoins(self):
        self.assertEqual(classify_token("usd-coin", "usdc"), Category.STABLECOINS)
        self.assertEqual(classify_token("tether", "USDT"), Category.STABLECOINS)
        self.assertEqual(classify_token("unknown", "dai"), Category.STABLECOINS)

    def test_case_insensitive(self):
        self.assertEqual(classify_token("BITCOIN"), Category.BTC)
        self.assertEqual(classify_token("Ethereum"), Category.ETH_BLUECHIPS)

    def test_everything_else_is_defi(self):
        self.assertEqual(classify_token("uniswap", "UNI"), Category.DEFI_ALTCOINS)
        self.assertEqual(classify_token("", ""), Category.DEFI_ALTCOINS)
        self.assertEqual(classify_token(None), Category.DEFI_ALTCOINS)

    def test_rule_order(self):
        """Bitcoin rule wins over later rules"""
        self.assertEqual(classify_token("bitcoin", "USDC"), Category.BTC)


if __name__ == '__main__':
    unittest.main()
