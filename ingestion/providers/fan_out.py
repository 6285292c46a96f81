"""
Concurrent multi-symbol history fetch.
Fans out one provider call per request on a thread pool and joins before returning.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple, Union

from dotenv import load_dotenv

from ingestion.models import AssetClass, PricePoint
from ingestion.providers.base import PriceHistoryProvider

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


HistoryRequest = Tuple[str, Union[AssetClass, str]]


def fetch_history_safe(
    provider: PriceHistoryProvider,
    symbol: str,
    days: int,
    asset_class: Union[AssetClass, str]
) -> List[PricePoint]:
    """Single fetch where any provider failure degrades to an empty history."""
    try:
        return list(provider.get_history(symbol, days, asset_class) or [])
    except Exception as e:
        logger.warning(f"History fetch failed for {symbol}, treating as no data: {e}")
        return []


def fetch_histories(
    provider: PriceHistoryProvider,
    requests: Sequence[HistoryRequest],
    days: int,
    workers: Optional[int] = None
) -> List[List[PricePoint]]:
    """
    Fetch several histories concurrently.

    Fetches have no ordering dependency on each other; results are joined
    and returned in request order. A failed fetch yields an empty list in
    its slot.

    Args:
        provider: History source
        requests: (symbol, asset_class) pairs
        days: Lookback window for every request
        workers: Thread pool size (default: FETCH_WORKERS or 8)

    Returns:
        One history per request, same order as requests
    """
    if not requests:
        return []

    if workers is None:
        workers = int(os.getenv('FETCH_WORKERS', '8'))

    workers = max(1, min(workers, len(requests)))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(fetch_history_safe, provider, symbol, days, asset_class)
            for symbol, asset_class in requests
        ]
        histories = [future.result() for future in futures]

    logger.info(
        f"Fetched {len(requests)} histories "
        f"({sum(1 for h in histories if not h)} empty) over {days} days"
    )
    return histories
