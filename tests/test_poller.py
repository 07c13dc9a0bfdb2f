import unittest
from unittest.mock import MagicMock
import sys
import os
import time

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from portfolio_allocator.models import MarketSnapshot, MarketTrend
from portfolio_allocator.poller import MarketDataPoller


class TestMarketDataPoller(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.snapshot = MarketSnapshot(btc_dominance=58.0, total_market_cap=3e12, trend=MarketTrend.BULL)
        self.client.fetch_market_snapshot.return_value = self.snapshot

    def test_current_before_first_fetch_is_fallback(self):
        poller = MarketDataPoller(self.client)
        self.assertEqual(poller.current().btc_dominance, 52.5)
        self.client.fetch_market_snapshot.assert_not_called()

    def test_refresh_replaces_snapshot(self):
        poller = MarketDataPoller(self.client)
        self.assertIs(poller.refresh(), self.snapshot)
        self.assertIs(poller.current(), self.snapshot)

    def test_failed_refresh_keeps_previous_snapshot(self):
        poller = MarketDataPoller(self.client)
        poller.refresh()

        self.client.fetch_market_snapshot.side_effect = RuntimeError("boom")
        self.assertIs(poller.refresh(), self.snapshot)
        self.assertIs(poller.current(), self.snapshot)

    def test_start_and_stop(self):
        poller = MarketDataPoller(self.client, interval=60)
        poller.start()
        try:
            self.assertTrue(poller.is_running())
            # The first fetch happens immediately
            deadline = time.time() + 2
            while self.client.fetch_market_snapshot.call_count == 0 and time.time() < deadline:
                time.sleep(0.01)
            self.assertEqual(self.client.fetch_market_snapshot.call_count, 1)

            # Starting again does not spawn a second thread
            poller.start()
        finally:
            poller.stop(timeout=2)

        self.assertFalse(poller.is_running())
        self.assertIs(poller.current(), self.snapshot)


if __name__ == '__main__':
    unittest.main()
