"""
Input coercion shared by the calculation modules.
"""

import math
from datetime import date, datetime
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd

from ingestion.models import PricePoint


def is_sequence(value: Any) -> bool:
    """True for the array-like inputs calculations accept (not strings)."""
    return isinstance(value, (list, tuple, np.ndarray, pd.Series))


def is_missing(value: Any) -> bool:
    """None, NaN and non-numeric values count as missing."""
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return True


def coerce_date(value: Any) -> date:
    # datetime is a date subclass - check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.split('T')[0])
    raise TypeError(f"Unsupported date value: {value!r}")


def point_date_close(row: Any) -> Tuple[date, Optional[float]]:
    """
    Extract (date, close) from a history row.

    Accepts PricePoint objects, mappings with 'date' and 'close' keys, or
    (date, close) pairs. Dates may be date/datetime objects or ISO strings,
    with or without a time component.
    """
    if isinstance(row, PricePoint):
        raw_date, close = row.date, row.close
    elif isinstance(row, dict):
        raw_date, close = row.get('date'), row.get('close')
    else:
        raw_date, close = row

    return coerce_date(raw_date), close
