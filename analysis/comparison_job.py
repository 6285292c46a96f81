"""
Two-asset comparison workflows.
Fetch -> append live price -> align -> returns -> correlation, trend and what-if.
"""

import logging
import os
from datetime import date
from typing import Dict, Any, List, Optional, Sequence, Union

from dotenv import load_dotenv

from analysis.calculations.alignment import align_and_fill, append_live_price
from analysis.calculations.correlation import (
    analyze_correlation_trend,
    classify_correlation,
    correlation_insight,
    pearson_correlation,
)
from analysis.calculations.results import is_error
from analysis.calculations.returns import dated_daily_returns, return_values
from analysis.calculations.what_if import what_if_analysis, what_if_insight
from analysis.models import AssetComparison
from ingestion.models import AssetClass
from ingestion.providers.base import PriceHistoryProvider
from ingestion.providers.fan_out import fetch_histories, fetch_history_safe
from ingestion.transforms.symbol_mapper import guess_asset_class

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


def _lookback_days(days: Optional[int]) -> int:
    if days is not None:
        return days
    return int(os.getenv('CORRELATION_LOOKBACK_DAYS', '90'))


def _aligned_returns(history1, history2):
    """Align two histories and return their dated return series."""
    aligned = align_and_fill(history1, history2)
    returns1 = dated_daily_returns(list(zip(aligned.common_dates, aligned.aligned1)))
    returns2 = dated_daily_returns(list(zip(aligned.common_dates, aligned.aligned2)))
    return returns1, returns2


def compare_assets(
    provider: PriceHistoryProvider,
    symbol1: str,
    symbol2: str,
    asset_class1: Union[AssetClass, str, None] = None,
    asset_class2: Union[AssetClass, str, None] = None,
    days: Optional[int] = None,
    live_price1: Optional[float] = None,
    live_price2: Optional[float] = None,
    what_if_move: float = 5.0,
    today: Optional[date] = None
) -> AssetComparison:
    """
    Full correlation analysis of two assets.

    Pipeline stages:
    1. Fetch both histories concurrently
    2. Append today's live price where the history has not closed today
    3. Align by date (crypto vs equity calendars)
    4. Dated daily returns from the aligned prices
    5. Correlation, classification, trend and what-if projection

    Args:
        provider: History source
        symbol1: Driving asset
        symbol2: Compared asset
        asset_class1: Market of symbol1 (guessed when omitted)
        asset_class2: Market of symbol2 (guessed when omitted)
        days: Lookback window (default: CORRELATION_LOOKBACK_DAYS or 90)
        live_price1: Current live price of symbol1, if known
        live_price2: Current live price of symbol2, if known
        what_if_move: Hypothesised move of symbol1 in percent
        today: Override for the live point date

    Returns:
        AssetComparison; a correlation that cannot be computed is kept as a
        CalculationError and the classification is None
    """
    days = _lookback_days(days)
    class1 = AssetClass.parse(asset_class1) if asset_class1 else guess_asset_class(symbol1)
    class2 = AssetClass.parse(asset_class2) if asset_class2 else guess_asset_class(symbol2)

    history1, history2 = fetch_histories(provider, [(symbol1, class1), (symbol2, class2)], days)

    history1 = append_live_price(history1, live_price1, today)
    history2 = append_live_price(history2, live_price2, today)

    dated1, dated2 = _aligned_returns(history1, history2)
    returns1 = return_values(dated1)
    returns2 = return_values(dated2)

    correlation = pearson_correlation(returns1, returns2)
    trend = analyze_correlation_trend(returns1, returns2)

    if is_error(correlation):
        logger.warning(f"Correlation {symbol1}/{symbol2} unavailable: {correlation.reason}")
        classification = None
        insight = f"Not enough overlapping data to correlate {symbol1} and {symbol2}: {correlation.reason}"
    else:
        classification = classify_correlation(correlation)
        insight = correlation_insight(symbol1, symbol2, correlation, trend.trend, days)

    what_if = what_if_analysis(returns1, returns2, what_if_move)

    return AssetComparison(
        asset1=symbol1,
        asset2=symbol2,
        days=days,
        correlation=correlation,
        classification=classification,
        trend=trend,
        insight=insight,
        what_if=what_if,
        what_if_insight=what_if_insight(symbol1, symbol2, what_if_move, what_if),
        returns1=dated1,
        returns2=dated2
    )


def calculate_asset_correlation(
    provider: PriceHistoryProvider,
    symbol1: str,
    symbol2: str,
    days: Optional[int] = None
) -> Dict[str, Any]:
    """
    Correlation summary for two symbols with guessed asset classes.

    A correlation that cannot be computed degrades to 0.0 with a warning.

    Returns:
        Dictionary with asset symbols, correlation, strength, direction and days
    """
    days = _lookback_days(days)

    history1, history2 = fetch_histories(
        provider,
        [(symbol1, guess_asset_class(symbol1)), (symbol2, guess_asset_class(symbol2))],
        days
    )
    dated1, dated2 = _aligned_returns(history1, history2)
    correlation = pearson_correlation(return_values(dated1), return_values(dated2))

    if is_error(correlation):
        logger.warning(f"Correlation calculation failed: {correlation.reason}")
        correlation = 0.0

    classification = classify_correlation(correlation)

    return {
        'asset1': symbol1,
        'asset2': symbol2,
        'correlation': correlation,
        'strength': classification.strength.value,
        'direction': classification.direction.value,
        'timeframe_days': days
    }


def find_top_correlated_assets(
    provider: PriceHistoryProvider,
    target_symbol: str,
    candidates: Sequence[Dict[str, Any]],
    days: Optional[int] = None,
    top_n: int = 5
) -> List[Dict[str, Any]]:
    """
    Rank candidate assets by absolute correlation with a target.

    Args:
        provider: History source
        target_symbol: Asset to compare against
        candidates: Rows with 'symbol' and optional 'name' and 'market'
        days: Lookback window
        top_n: Number of results

    Returns:
        Up to top_n rows sorted by |correlation| descending; candidates
        whose correlation cannot be computed are skipped
    """
    days = _lookback_days(days)
    others = [c for c in candidates if c.get('symbol') and c['symbol'] != target_symbol]

    if not others:
        return []

    target_history = fetch_history_safe(provider, target_symbol, days, guess_asset_class(target_symbol))
    histories = fetch_histories(
        provider,
        [(c['symbol'], c.get('market') or guess_asset_class(c['symbol'])) for c in others],
        days
    )

    results = []
    for candidate, history in zip(others, histories):
        dated1, dated2 = _aligned_returns(target_history, history)
        correlation = pearson_correlation(return_values(dated1), return_values(dated2))

        if is_error(correlation):
            logger.warning(f"Failed to calculate correlation for {candidate['symbol']}: {correlation.reason}")
            continue

        classification = classify_correlation(correlation)
        results.append({
            'symbol': candidate['symbol'],
            'name': candidate.get('name'),
            'correlation': correlation,
            'strength': classification.strength.value,
            'direction': classification.direction.value
        })

    results.sort(key=lambda r: abs(r['correlation']), reverse=True)
    return results[:top_n]
