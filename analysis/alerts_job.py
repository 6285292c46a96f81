"""
Volatility alert workflows over live market snapshots.
Snapshot rows -> LiveQuotes -> pair alerts per market -> dashboard selection.
"""

import logging
from dataclasses import replace
from typing import Dict, Any, List, Mapping, Optional, Sequence

from analysis.calculations.divergence import get_volatility_pair_alerts, select_diverse_pairs
from analysis.known_correlations import KnownCorrelationsError, load_known_correlations
from analysis.models import VolatilityAlert
from ingestion.models import AssetClass
from ingestion.transforms.normalizers import normalize_live_quotes

# Set up logger
logger = logging.getLogger(__name__)


MARKETS = [AssetClass.STOCKS.value, AssetClass.CRYPTO.value, AssetClass.COMMODITIES.value]
DASHBOARD_PAIRS_PER_MARKET = 2


def get_volatility_alerts_by_market(
    snapshots: Mapping[str, Sequence[Dict[str, Any]]],
    known_correlations: Optional[Mapping[str, float]] = None
) -> Dict[str, List[VolatilityAlert]]:
    """
    Volatility alerts computed separately for each market.

    Pairs are only formed within one market; cross-market pairs are not
    considered here.

    Args:
        snapshots: Market name ('stocks', 'crypto', 'commodities') to live
            snapshot rows
        known_correlations: 'A-B' keyed table (default: loaded from
            KNOWN_CORRELATIONS_PATH; an unreadable table means no
            known correlations)

    Returns:
        Market name to alerts sorted by divergence; every known market is
        present, empty when it has no snapshot
    """
    if known_correlations is None:
        try:
            known_correlations = load_known_correlations()
        except KnownCorrelationsError as e:
            logger.warning(f"Known correlations unavailable, alerting without them: {e}")
            known_correlations = {}

    markets = list(MARKETS)
    markets.extend(m for m in snapshots if m not in markets)

    grouped = {}
    for market in markets:
        quotes = normalize_live_quotes(snapshots.get(market, []), market=market)
        alerts = get_volatility_pair_alerts(quotes, known_correlations)
        grouped[market] = [replace(alert, market=market) for alert in alerts]

    logger.info(
        "Volatility alerts by market: "
        + ", ".join(f"{market}={len(alerts)}" for market, alerts in grouped.items())
    )
    return grouped


def get_dashboard_volatility_alerts(
    snapshots: Mapping[str, Sequence[Dict[str, Any]]],
    known_correlations: Optional[Mapping[str, float]] = None,
    per_market: int = DASHBOARD_PAIRS_PER_MARKET
) -> List[VolatilityAlert]:
    """
    Compact alert list for a dashboard.

    Takes up to per_market alerts from each market in market order, never
    repeating an asset within a market.

    Returns:
        Stocks alerts first, then crypto, then commodities
    """
    grouped = get_volatility_alerts_by_market(snapshots, known_correlations)

    selected = []
    for alerts in grouped.values():
        selected.extend(select_diverse_pairs(alerts, per_market))

    return selected
