"""
Market Data Poller
Refreshes the market snapshot on a fixed interval in a background thread
"""

import logging
import threading
from typing import Optional

from .constants import MARKET_REFRESH_INTERVAL
from .market_data import CoinGeckoClient, fallback_market_snapshot
from .models import MarketSnapshot

logger = logging.getLogger(__name__)


class MarketDataPoller:
    """
    Keeps the latest MarketSnapshot current

    A fresh snapshot replaces the previous one. If a fetch raises, the
    previous snapshot (or the fallback snapshot) is kept. Only one fetch
    is in flight at a time.
    """

    def __init__(self, client: CoinGeckoClient, interval: float = MARKET_REFRESH_INTERVAL):
        self.client = client
        self.interval = interval
        self._snapshot: Optional[MarketSnapshot] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def current(self) -> MarketSnapshot:
        with self._lock:
            return self._snapshot or fallback_market_snapshot()

    def refresh(self) -> MarketSnapshot:
        """Fetch a snapshot now and store it"""
        try:
            snapshot = self.client.fetch_market_snapshot()
        except Exception as e:
            logger.error("Market snapshot refresh failed, keeping previous data: %s", e)
            return self.current()

        with self._lock:
            self._snapshot = snapshot
        return snapshot

    def _run(self):
        while not self._stop_event.is_set():
            self.refresh()
            self._stop_event.wait(self.interval)

    def start(self):
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="market-data-poller", daemon=True)
        self._thread.start()
        logger.info("Market data poller started (interval %ss)", self.interval)

    def stop(self, timeout: Optional[float] = None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Market data poller stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
