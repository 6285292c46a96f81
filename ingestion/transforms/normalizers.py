"""
Normalizers for transforming provider data to canonical shape.
Pure functions - no IO, network, or side effects.
Minimal normalization - only when necessary.
"""

from datetime import date, datetime
from typing import Dict, Any, Iterable, List, Optional

from ingestion.models import LiveQuote, PricePoint


class NormalizationError(ValueError):
    """Raised when a raw row cannot be turned into a canonical value."""
    pass


def _parse_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str) and raw:
        # Providers may send full timestamps - keep the calendar day
        return date.fromisoformat(raw.split('T')[0].split(' ')[0])
    raise NormalizationError(f"Unparseable date: {raw!r}")


def normalize_prices(raw_rows: List[Dict[str, Any]]) -> List[PricePoint]:
    """
    Transform provider-native price rows to PricePoints.

    Minimal normalization:
    - Date strings to date objects
    - Field name mapping (yfinance 'Open'/'Close', or lower-case keys)
    - Missing open/high/low default to close (close-only feeds)
    - Deduplication by date (keep last to handle corrections)
    - Ascending date order

    Args:
        raw_rows: List of provider-specific price dictionaries

    Returns:
        List of PricePoints ascending by date

    Raises:
        NormalizationError: If a row has no date or no close
    """
    if not raw_rows:
        return []

    by_date: Dict[date, PricePoint] = {}

    for raw in raw_rows:
        row_date = _parse_date(raw.get('Date', raw.get('date')))

        close = raw.get('Close', raw.get('close'))
        if close is None:
            raise NormalizationError(f"Row for {row_date} has no close price")
        close = float(close)

        by_date[row_date] = PricePoint(
            date=row_date,
            open=float(raw.get('Open', raw.get('open', close))),
            high=float(raw.get('High', raw.get('high', close))),
            low=float(raw.get('Low', raw.get('low', close))),
            close=close,
        )

    return [by_date[d] for d in sorted(by_date)]


def normalize_live_quotes(
    raw_rows: Iterable[Dict[str, Any]],
    *,
    market: Optional[str] = None
) -> List[LiveQuote]:
    """
    Transform live feed snapshot rows to LiveQuotes.

    Feeds disagree on the change field name ('change_percent', 'changePercent'
    or 'change'); the first present wins, defaulting to 0. Rows without a
    symbol are dropped; symbols are upper-cased to match correlation table
    keys.

    Args:
        raw_rows: Snapshot rows, one per asset
        market: Market tag to stamp on quotes lacking one

    Returns:
        List of LiveQuotes in feed order
    """
    quotes = []

    for raw in raw_rows or []:
        symbol = str(raw.get('symbol') or '').strip().upper()
        if not symbol:
            continue

        change = None
        for key in ('change_percent', 'changePercent', 'change'):
            if raw.get(key) is not None:
                change = raw[key]
                break

        price = raw.get('price')
        market_cap = raw.get('market_cap', raw.get('marketCap'))

        quotes.append(LiveQuote(
            symbol=symbol,
            change_percent=float(change) if change is not None else 0.0,
            price=float(price) if price is not None else None,
            market_cap=float(market_cap) if market_cap is not None else None,
            name=raw.get('name'),
            market=raw.get('market', market),
        ))

    return quotes
