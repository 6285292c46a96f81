"""
Returns calculation utilities.
Pure functions for daily simple returns over ordered price series.
"""

from typing import Any, List, Sequence, Union

from analysis.calculations.inputs import is_missing, is_sequence, point_date_close
from analysis.calculations.results import CalculationError, ErrorKind
from analysis.models import DatedReturn


RETURN_DECIMALS = 4


def _daily_return(previous_price: Any, current_price: Any) -> Union[float, None]:
    """Single-step return, or None when the row must be skipped."""
    # Previous price must be a positive number
    if is_missing(previous_price) or previous_price <= 0:
        return None

    # Current price may be zero (a -100% day) but not missing or negative
    if is_missing(current_price) or current_price < 0:
        return None

    return round((current_price - previous_price) / previous_price, RETURN_DECIMALS)


def daily_returns(prices: Sequence[float]) -> Union[List[float], CalculationError]:
    """
    Calculate daily simple returns from a price series.

    Formula: r_t = (P_t - P_{t-1}) / P_{t-1}, rounded to 4 decimals

    Rows are skipped, not zero-filled, when the previous price is missing or
    non-positive or the current price is missing or negative. Skipping breaks
    index correspondence with the price dates; use dated_daily_returns when
    dates matter.

    Args:
        prices: Prices in chronological order

    Returns:
        List of returns as decimals (0.02 = 2%), or CalculationError for
        missing or non-array input

    Example:
        [100, 102, 100, 103] -> [0.02, -0.0196, 0.03]
    """
    if prices is None:
        return CalculationError(ErrorKind.MISSING_INPUT, "Input prices array is null or undefined")

    if not is_sequence(prices):
        return CalculationError(ErrorKind.INVALID_TYPE, "Input must be an array of prices")

    if len(prices) < 2:
        return []

    values = list(prices)
    returns = []

    for i in range(1, len(values)):
        ret = _daily_return(values[i - 1], values[i])
        if ret is not None:
            returns.append(ret)

    return returns


def dated_daily_returns(history: Sequence[Any]) -> Union[List[DatedReturn], CalculationError]:
    """
    Calculate daily returns keeping the date of each return.

    Same skipping rules as daily_returns. Each return carries the date of the
    later of its two prices, so skipped rows never shift dates.

    Args:
        history: PricePoints, {'date', 'close'} rows or (date, close) pairs

    Returns:
        List of DatedReturn, or CalculationError for missing or non-array input
    """
    if history is None:
        return CalculationError(ErrorKind.MISSING_INPUT, "Input history is null or undefined")

    if not is_sequence(history):
        return CalculationError(ErrorKind.INVALID_TYPE, "Input must be an array of price points")

    if len(history) < 2:
        return []

    rows = [point_date_close(row) for row in history]
    returns = []

    for (_, previous_price), (current_date, current_price) in zip(rows, rows[1:]):
        ret = _daily_return(previous_price, current_price)
        if ret is not None:
            returns.append(DatedReturn(date=current_date, value=ret))

    return returns


def return_values(dated: Sequence[DatedReturn]) -> List[float]:
    """Strip dates from a dated return series."""
    return [r.value for r in dated]
