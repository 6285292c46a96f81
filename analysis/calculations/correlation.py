"""
Correlation calculation utilities.
Pearson correlation of return series, strength classification and trend.
"""

from typing import Sequence, Union

import numpy as np

from analysis.calculations.inputs import is_sequence
from analysis.calculations.results import CalculationError, ErrorKind, is_error
from analysis.models import CorrelationResult, Direction, Strength, Trend, TrendResult


CORRELATION_DECIMALS = 4
HIGH_THRESHOLD = 0.6
MODERATE_THRESHOLD = 0.3

TREND_MIN_POINTS = 60
TREND_WINDOW = 30
TREND_THRESHOLD = 0.1


def pearson_correlation(
    returns1: Sequence[float],
    returns2: Sequence[float]
) -> Union[float, CalculationError]:
    """
    Calculate Pearson correlation coefficient between two return series.

    Formula:
        r = Σ[(x_i - x̄)(y_i - ȳ)] / √[Σ(x_i - x̄)² · Σ(y_i - ȳ)²]

    Args:
        returns1: Daily returns for asset 1
        returns2: Daily returns for asset 2 (same length)

    Returns:
        Coefficient rounded to 4 decimals and clamped to [-1, 1], or
        CalculationError describing the first failed validation

    Example:
        returns1 = [0.01, -0.02, 0.015]
        returns2 = [0.005, -0.018, 0.012]
        Result: 0.9957 (very strong positive correlation)
    """
    if returns1 is None:
        return CalculationError(ErrorKind.MISSING_INPUT, "First returns array is null or undefined")
    if returns2 is None:
        return CalculationError(ErrorKind.MISSING_INPUT, "Second returns array is null or undefined")

    if not is_sequence(returns1) or not is_sequence(returns2):
        return CalculationError(ErrorKind.INVALID_TYPE, "Both inputs must be arrays")

    if len(returns1) < 2 or len(returns2) < 2:
        return CalculationError(ErrorKind.INSUFFICIENT_DATA, "Both arrays must have at least 2 items")

    if len(returns1) != len(returns2):
        return CalculationError(
            ErrorKind.LENGTH_MISMATCH,
            f"Arrays must have same length (got {len(returns1)} and {len(returns2)})"
        )

    try:
        x = np.asarray(returns1, dtype=float)
        y = np.asarray(returns2, dtype=float)
    except (TypeError, ValueError):
        return CalculationError(ErrorKind.INVALID_VALUE, "Arrays must contain only numbers")

    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        return CalculationError(ErrorKind.INVALID_VALUE, "Arrays must not contain NaN or infinite values")

    diff_x = x - x.mean()
    diff_y = y - y.mean()

    numerator = float(np.sum(diff_x * diff_y))
    denominator = float(np.sqrt(np.sum(diff_x * diff_x) * np.sum(diff_y * diff_y)))

    if denominator == 0:
        return CalculationError(ErrorKind.ZERO_VARIANCE, "Standard deviation is 0 (all values are identical)")

    correlation = round(numerator / denominator, CORRELATION_DECIMALS)

    # Floating point can overshoot the mathematical bounds
    return max(-1.0, min(1.0, correlation))


def classify_correlation(correlation: float) -> CorrelationResult:
    """
    Classify correlation strength and direction.

    Boundaries are exclusive: |r| = 0.6 is moderate, |r| = 0.3 is low.
    Zero counts as positive.
    """
    abs_corr = abs(correlation)

    if abs_corr > HIGH_THRESHOLD:
        strength = Strength.HIGH
    elif abs_corr > MODERATE_THRESHOLD:
        strength = Strength.MODERATE
    else:
        strength = Strength.LOW

    direction = Direction.POSITIVE if correlation >= 0 else Direction.NEGATIVE

    return CorrelationResult(coefficient=correlation, strength=strength, direction=direction)


def analyze_correlation_trend(returns1: Sequence[float], returns2: Sequence[float]) -> TrendResult:
    """
    Detect whether a correlation is strengthening, weakening or stable.

    Compares the correlation of the last 30 returns with the 30 before them.
    With fewer than 60 returns in either series both figures are the
    full-series correlation and the trend is stable.

    Args:
        returns1: First asset returns
        returns2: Second asset returns

    Returns:
        TrendResult(current, previous, trend)
    """
    short = (
        not is_sequence(returns1) or not is_sequence(returns2)
        or len(returns1) < TREND_MIN_POINTS or len(returns2) < TREND_MIN_POINTS
    )
    if short:
        correlation = pearson_correlation(returns1, returns2)
        return TrendResult(current=correlation, previous=correlation, trend=Trend.STABLE)

    recent = pearson_correlation(list(returns1[-TREND_WINDOW:]), list(returns2[-TREND_WINDOW:]))
    previous = pearson_correlation(
        list(returns1[-2 * TREND_WINDOW:-TREND_WINDOW]),
        list(returns2[-2 * TREND_WINDOW:-TREND_WINDOW])
    )

    if is_error(recent) or is_error(previous):
        return TrendResult(current=recent, previous=previous, trend=Trend.STABLE)

    diff = recent - previous
    if diff > TREND_THRESHOLD:
        trend = Trend.INCREASING
    elif diff < -TREND_THRESHOLD:
        trend = Trend.DECREASING
    else:
        trend = Trend.STABLE

    return TrendResult(current=recent, previous=previous, trend=trend)


def correlation_insight(
    symbol1: str,
    symbol2: str,
    correlation: float,
    trend: Trend,
    days: int = 90
) -> str:
    """Human-readable summary of a correlation and its trend."""
    abs_corr = abs(correlation)
    direction = 'positively' if correlation >= 0 else 'negatively'
    strength = 'strongly' if abs_corr > 0.7 else 'moderately' if abs_corr > 0.4 else 'weakly'
    move_direction = 'together' if correlation >= 0 else 'in opposite directions'
    percent_together = round((0.5 + abs_corr * 0.5) * 100)

    if trend == Trend.INCREASING:
        trend_text = 'This relationship has been strengthening recently.'
    elif trend == Trend.DECREASING:
        trend_text = 'This relationship has been weakening recently.'
    else:
        trend_text = 'This relationship has remained relatively stable.'

    return (
        f"{symbol1} and {symbol2} are {strength} {direction} correlated and have historically "
        f"moved {move_direction} {percent_together}% of the time over the last {days} days. "
        f"{trend_text}"
    )
