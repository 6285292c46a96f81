"""
Series alignment utilities.
Pure functions for putting two irregular price histories on one date axis.
"""

from datetime import date
from typing import Any, List, Optional, Sequence

import pandas as pd

from analysis.calculations.inputs import is_missing, point_date_close
from analysis.models import AlignedSeries
from ingestion.models import PricePoint


def close_series(history: Sequence[Any]) -> pd.Series:
    """Closing prices indexed by date; last observation wins on duplicates."""
    dates = []
    closes = []
    for row in history:
        row_date, close = point_date_close(row)
        if is_missing(close):
            continue
        dates.append(pd.Timestamp(row_date))
        closes.append(float(close))

    series = pd.Series(closes, index=pd.DatetimeIndex(dates), dtype=float)
    series = series[~series.index.duplicated(keep='last')]
    return series.sort_index()


def align_and_fill(history1: Sequence[Any], history2: Sequence[Any]) -> AlignedSeries:
    """
    Align two price histories by date, forward-filling gaps.

    Walks the sorted union of both date sets, carrying the last known close of
    each series forward. A date contributes a row once both series have a
    known value; after one history ends its last close keeps being carried.
    Histories that never overlap in time align to nothing.

    Example:
        Crypto trades Saturday, equities do not. The equity close of Friday
        is carried into Saturday so both arrays stay the same length.

    Args:
        history1: First price history (ascending by date)
        history2: Second price history (ascending by date)

    Returns:
        AlignedSeries with equal-length aligned1, aligned2 and common_dates
    """
    if history1 is None or history2 is None or len(history1) == 0 or len(history2) == 0:
        return AlignedSeries()

    closes1 = close_series(history1)
    closes2 = close_series(history2)

    if closes1.empty or closes2.empty:
        return AlignedSeries()

    if closes1.index[-1] < closes2.index[0] or closes2.index[-1] < closes1.index[0]:
        return AlignedSeries()

    frame = pd.concat([closes1.rename('close1'), closes2.rename('close2')], axis=1, join='outer')
    frame = frame.sort_index().ffill().dropna()

    return AlignedSeries(
        aligned1=frame['close1'].tolist(),
        aligned2=frame['close2'].tolist(),
        common_dates=[ts.date() for ts in frame.index]
    )


def append_live_price(
    history: Sequence[PricePoint],
    current_price: Optional[float],
    today: Optional[date] = None
) -> List[PricePoint]:
    """
    Extend a history with today's not-yet-closed live price.

    A synthetic flat point dated today is appended only when the history does
    not already end today and the live price is a positive number.

    Args:
        history: Daily history ascending by date
        current_price: Latest live price (None when the feed has none)
        today: Override for the current date

    Returns:
        New list; the input history is never modified
    """
    if today is None:
        today = date.today()

    extended = list(history)

    if is_missing(current_price) or current_price <= 0:
        return extended

    if extended:
        last_date, _ = point_date_close(extended[-1])
        if last_date == today:
            return extended

    extended.append(PricePoint.flat(today, float(current_price)))
    return extended
