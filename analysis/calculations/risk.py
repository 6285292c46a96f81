"""
Risk ratio utilities.
Pure functions for Sharpe ratio, annualized volatility and beta over daily returns.
Degenerate input returns a safe default instead of raising.
"""

import math
from typing import Any, List, Sequence

import numpy as np

from analysis.calculations.inputs import is_sequence
from analysis.models import DatedReturn, PortfolioValuePoint


TRADING_DAYS = 252
DEFAULT_RISK_FREE_RATE = 0.02
MARKET_BETA = 1.0

# Spread below this is float noise from averaging identical values
ZERO_SPREAD = 1e-12


def return_array(returns: Sequence[Any]) -> np.ndarray:
    """
    Normalize a return series to a float array.

    Accepts plain numbers, DatedReturn or PortfolioValuePoint entries;
    entries without a return (first portfolio point) are dropped.
    """
    if returns is None or not is_sequence(returns):
        return np.array([])

    values: List[float] = []
    for entry in returns:
        if isinstance(entry, DatedReturn):
            value = entry.value
        elif isinstance(entry, PortfolioValuePoint):
            value = entry.daily_return
        else:
            value = entry
        if value is not None:
            values.append(float(value))

    return np.array(values, dtype=float)


def sharpe_ratio(returns: Sequence[Any], risk_free_rate: float = DEFAULT_RISK_FREE_RATE) -> float:
    """
    Calculate annualized Sharpe ratio from daily returns.

    Formula: (mean × 252 - rf) / (σ × √252), σ = population std

    Args:
        returns: Daily returns as decimals
        risk_free_rate: Annual risk-free rate (0.02 = 2%)

    Returns:
        Sharpe ratio rounded to 2 decimals; 0.0 with fewer than 2 returns
        or zero variance
    """
    daily = return_array(returns)
    if len(daily) < 2:
        return 0.0

    std_dev = float(np.std(daily))
    if std_dev < ZERO_SPREAD or not math.isfinite(std_dev):
        return 0.0

    annualized_return = float(np.mean(daily)) * TRADING_DAYS
    annualized_std = std_dev * math.sqrt(TRADING_DAYS)

    return round((annualized_return - risk_free_rate) / annualized_std, 2)


def annualized_volatility(returns: Sequence[Any]) -> float:
    """
    Calculate annualized volatility in percent.

    Formula: σ × √252 × 100, σ = population std of daily returns

    Returns:
        Volatility rounded to 1 decimal (25.3 = 25.3%); 0.0 with fewer than 2 returns
    """
    daily = return_array(returns)
    if len(daily) < 2:
        return 0.0

    std_dev = float(np.std(daily))
    if not math.isfinite(std_dev):
        return 0.0

    return round(std_dev * math.sqrt(TRADING_DAYS) * 100, 1)


def beta(portfolio_returns: Sequence[Any], benchmark_returns: Sequence[Any]) -> float:
    """
    Calculate beta of a portfolio against a benchmark.

    Formula: β = Cov(R_p, R_m) / Var(R_m), population moments

    Both series must already be aligned day by day (see
    analysis.portfolio_risk.calculate_portfolio_beta).

    Returns:
        Beta rounded to 2 decimals; 1.0 when data is insufficient, lengths
        differ or the benchmark has no variance
    """
    portfolio = return_array(portfolio_returns)
    benchmark = return_array(benchmark_returns)

    if len(portfolio) < 2 or len(benchmark) < 2 or len(portfolio) != len(benchmark):
        return MARKET_BETA

    portfolio_dev = portfolio - portfolio.mean()
    benchmark_dev = benchmark - benchmark.mean()

    covariance = float(np.mean(portfolio_dev * benchmark_dev))
    benchmark_variance = float(np.mean(benchmark_dev ** 2))

    if benchmark_variance < ZERO_SPREAD ** 2 or not math.isfinite(benchmark_variance):
        return MARKET_BETA

    return round(covariance / benchmark_variance, 2)


def total_return_pct(values: Sequence[float]) -> float:
    """Simple return from first to last value in percent, rounded to 2 decimals."""
    if values is None or len(values) < 2 or values[0] <= 0:
        return 0.0

    return round((values[-1] - values[0]) / values[0] * 100, 2)
