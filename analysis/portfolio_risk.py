"""
Portfolio risk engine.
Fetches holding histories through a PriceHistoryProvider, builds the
portfolio value series and derives Sharpe ratio, volatility, beta and the
holdings correlation matrix.
"""

import logging
import os
from typing import Dict, Any, List, Optional, Sequence

import pandas as pd
from dotenv import load_dotenv

from analysis.calculations.alignment import align_and_fill, close_series
from analysis.calculations.correlation import pearson_correlation
from analysis.calculations.results import is_error
from analysis.calculations.returns import daily_returns
from analysis.calculations.risk import (
    annualized_volatility,
    beta,
    sharpe_ratio,
    total_return_pct,
    MARKET_BETA,
)
from analysis.models import CorrelationMatrixEntry, PortfolioMetrics, PortfolioValuePoint
from ingestion.models import AssetClass, Holding, Position, PricePoint
from ingestion.providers.base import PriceHistoryProvider
from ingestion.providers.fan_out import fetch_histories, fetch_history_safe

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


def _benchmark_symbol(benchmark_symbol: Optional[str]) -> str:
    return benchmark_symbol or os.getenv('BENCHMARK_SYMBOL', 'SPY')


def _risk_free_rate(risk_free_rate: Optional[float]) -> float:
    if risk_free_rate is not None:
        return risk_free_rate
    return float(os.getenv('RISK_FREE_RATE', '0.02'))


def portfolio_value_series(
    holdings: Sequence[Holding],
    histories: Sequence[Sequence[PricePoint]]
) -> List[PortfolioValuePoint]:
    """
    Build the daily portfolio value series from holding histories.

    For every date observed in any history, sums quantity × close over the
    holdings that have a price on that date. Holdings without a price that
    day are left out of that day's total (partial coverage). Dates whose
    total is not positive are dropped.

    Args:
        holdings: Portfolio positions
        histories: One history per holding, same order

    Returns:
        PortfolioValuePoints ascending by date; the first has no daily return
    """
    if len(holdings) != len(histories):
        raise ValueError(f"Got {len(holdings)} holdings but {len(histories)} histories")

    columns = {}
    for i, (holding, history) in enumerate(zip(holdings, histories)):
        closes = close_series(history)
        if not closes.empty:
            columns[i] = closes * holding.quantity

    if not columns:
        return []

    frame = pd.concat(columns, axis=1, join='outer').sort_index()
    totals = frame.sum(axis=1, min_count=1)
    totals = totals[totals > 0]

    points = []
    previous_value = None
    for timestamp, value in totals.items():
        daily_return = None
        if previous_value is not None:
            daily_return = (value - previous_value) / previous_value
        points.append(PortfolioValuePoint(
            date=timestamp.date(),
            portfolio_value=float(value),
            daily_return=daily_return
        ))
        previous_value = value

    return points


def calculate_portfolio_returns(
    provider: PriceHistoryProvider,
    holdings: Sequence[Holding],
    days: int = 30
) -> List[PortfolioValuePoint]:
    """
    Fetch all holding histories concurrently and build the value series.

    Returns:
        PortfolioValuePoints, empty when there are no holdings or no data
    """
    if not holdings:
        return []

    histories = fetch_histories(provider, [(h.symbol, h.asset_class) for h in holdings], days)
    return portfolio_value_series(holdings, histories)


def calculate_portfolio_beta(
    provider: PriceHistoryProvider,
    values: Sequence[PortfolioValuePoint],
    benchmark_symbol: Optional[str] = None,
    days: int = 90,
    benchmark_class: AssetClass = AssetClass.STOCKS
) -> float:
    """
    Beta of the portfolio against a benchmark, aligned by date.

    The portfolio value series and the benchmark history are put on one
    date axis with align_and_fill before returns are taken, so portfolios
    trading on other calendars (crypto weekends) line up with the
    benchmark day by day.

    Returns:
        Beta rounded to 2 decimals; 1.0 when data is insufficient
    """
    if not values or len(values) < 2:
        return MARKET_BETA

    symbol = _benchmark_symbol(benchmark_symbol)
    benchmark_history = fetch_history_safe(provider, symbol, days, benchmark_class)

    if not benchmark_history:
        logger.warning(f"No benchmark history for {symbol}, using market beta")
        return MARKET_BETA

    aligned = align_and_fill(
        [(point.date, point.portfolio_value) for point in values],
        benchmark_history
    )

    portfolio_returns = daily_returns(aligned.aligned1)
    benchmark_returns = daily_returns(aligned.aligned2)

    return beta(portfolio_returns, benchmark_returns)


def calculate_correlation_matrix(
    provider: PriceHistoryProvider,
    holdings: Sequence[Holding],
    days: int = 90
) -> List[CorrelationMatrixEntry]:
    """
    Pairwise return correlation for every pair of holdings.

    One fetch per holding, shared by its row and column. Each pair is
    aligned by date before correlating; a pair that cannot be correlated
    (no overlap, zero variance) is reported as 0.0.

    Returns:
        N×N entries in row-major order; diagonal fixed at 1.0; empty with
        fewer than 2 holdings
    """
    if not holdings or len(holdings) < 2:
        return []

    histories = fetch_histories(provider, [(h.symbol, h.asset_class) for h in holdings], days)

    pair_cache: Dict[tuple, float] = {}

    def pair_correlation(i: int, j: int) -> float:
        key = (min(i, j), max(i, j))
        if key not in pair_cache:
            aligned = align_and_fill(histories[key[0]], histories[key[1]])
            correlation = pearson_correlation(
                daily_returns(aligned.aligned1),
                daily_returns(aligned.aligned2)
            )
            if is_error(correlation):
                logger.warning(
                    f"Correlation {holdings[key[0]].symbol}/{holdings[key[1]].symbol} "
                    f"unavailable: {correlation.reason}"
                )
                correlation = 0.0
            pair_cache[key] = correlation
        return pair_cache[key]

    entries = []
    for i, holding1 in enumerate(holdings):
        for j, holding2 in enumerate(holdings):
            entries.append(CorrelationMatrixEntry(
                asset1=holding1.symbol,
                asset2=holding2.symbol,
                coefficient=1.0 if i == j else pair_correlation(i, j),
                row=i,
                col=j
            ))

    return entries


def calculate_portfolio_metrics(
    provider: PriceHistoryProvider,
    holdings: Sequence[Holding],
    days: int = 30,
    benchmark_symbol: Optional[str] = None,
    risk_free_rate: Optional[float] = None
) -> PortfolioMetrics:
    """
    Risk summary of a portfolio over the last `days` days.

    Args:
        provider: History source
        holdings: Portfolio positions
        days: Lookback window
        benchmark_symbol: Beta benchmark (default: BENCHMARK_SYMBOL or SPY)
        risk_free_rate: Annual rate for Sharpe (default: RISK_FREE_RATE or 0.02)

    Returns:
        PortfolioMetrics computed fresh for this request
    """
    values = calculate_portfolio_returns(provider, holdings, days)

    if not values:
        logger.warning("No portfolio history available, returning neutral metrics")
        return PortfolioMetrics(sharpe_ratio=0.0, volatility_pct=0.0, beta=MARKET_BETA, total_return_pct=0.0)

    return PortfolioMetrics(
        sharpe_ratio=sharpe_ratio(values, _risk_free_rate(risk_free_rate)),
        volatility_pct=annualized_volatility(values),
        beta=calculate_portfolio_beta(provider, values, benchmark_symbol, days),
        total_return_pct=total_return_pct([v.portfolio_value for v in values])
    )


def portfolio_summary(positions: Sequence[Position]) -> Dict[str, Any]:
    """
    Summary statistics for a point-in-time portfolio snapshot.

    Returns:
        Totals, overall return percent and best/worst performer by gain %
    """
    if not positions:
        return {
            'total_holdings': 0,
            'total_value': 0.0,
            'total_cost': 0.0,
            'total_gain_loss': 0.0,
            'total_return_pct': 0.0,
            'best_performer': None,
            'worst_performer': None
        }

    total_value = sum(p.market_value for p in positions)
    total_cost = sum(p.cost_basis for p in positions)
    total_gain_loss = total_value - total_cost

    ranked = [p for p in positions if p.gain_loss_percent is not None]
    best = max(ranked, key=lambda p: p.gain_loss_percent) if ranked else None
    worst = min(ranked, key=lambda p: p.gain_loss_percent) if ranked else None

    return {
        'total_holdings': len(positions),
        'total_value': round(total_value, 2),
        'total_cost': round(total_cost, 2),
        'total_gain_loss': round(total_gain_loss, 2),
        'total_return_pct': round(total_gain_loss / total_cost * 100, 2) if total_cost > 0 else 0.0,
        'best_performer': {'symbol': best.symbol, 'return': round(best.gain_loss_percent, 2)} if best else None,
        'worst_performer': {'symbol': worst.symbol, 'return': round(worst.gain_loss_percent, 2)} if worst else None
    }
