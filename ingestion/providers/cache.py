"""
TTL cache in front of a price history provider.
Explicit component with an injected clock so staleness is testable.
"""

import logging
import os
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv

from ingestion.models import AssetClass, PricePoint
from ingestion.providers.base import PriceHistoryProvider

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


CacheKey = Tuple[str, int, AssetClass]


class CachedHistoryProvider(PriceHistoryProvider):
    """
    Wraps another provider and reuses its histories for ttl_seconds.

    Empty histories are not cached, so a failed fetch is retried on the
    next request. Entries are keyed by (symbol, days, asset class).

    Args:
        provider: Provider doing the real fetch
        ttl_seconds: Entry lifetime (default: PRICE_CACHE_TTL_S or 60)
        clock: Monotonic seconds source (default: time.monotonic)
    """

    def __init__(
        self,
        provider: PriceHistoryProvider,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        if ttl_seconds is None:
            ttl_seconds = float(os.getenv('PRICE_CACHE_TTL_S', '60'))

        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be non-negative, got {ttl_seconds}")

        self._provider = provider
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, List[PricePoint]]] = {}
        self._lock = threading.Lock()

    def get_history(
        self,
        symbol: str,
        days: int,
        asset_class: Union[AssetClass, str] = AssetClass.STOCKS
    ) -> List[PricePoint]:
        key = (symbol.upper(), days, AssetClass.parse(asset_class))

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                stored_at, history = entry
                if self._clock() - stored_at < self._ttl:
                    logger.debug(f"Cache hit for {symbol} ({days}d)")
                    return list(history)
                del self._entries[key]

        # Fetch outside the lock so concurrent symbols do not serialize
        history = self._provider.get_history(symbol, days, key[2])

        if history:
            with self._lock:
                self._entries[key] = (self._clock(), list(history))

        return list(history)

    def invalidate(self, symbol: Optional[str] = None) -> None:
        """Drop every entry, or only those for one symbol."""
        with self._lock:
            if symbol is None:
                self._entries.clear()
                return

            for key in [k for k in self._entries if k[0] == symbol.upper()]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
