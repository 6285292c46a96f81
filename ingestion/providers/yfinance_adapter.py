"""
yfinance adapter - fetch price data from Yahoo Finance.
Network IO allowed here, but minimal business logic.
"""

import logging
import os
from datetime import date, timedelta
from typing import Dict, Any, List, Optional, Union

import pandas as pd
import yfinance as yf
from dotenv import load_dotenv

from ingestion.models import AssetClass, PricePoint
from ingestion.providers.base import PriceHistoryProvider
from ingestion.transforms.normalizers import normalize_prices, NormalizationError
from ingestion.transforms.symbol_mapper import to_vendor_symbol, SymbolMappingError
from ingestion.transforms.validators import (
    check_price_date_monotonicity,
    validate_price_point,
    ValidationError
)

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


class YFinanceError(Exception):
    """Raised when yfinance operations fail."""
    pass


def fetch_prices_window(ticker: str, start: date, end: date) -> List[Dict[str, Any]]:
    """
    Fetch price data for a ticker within date window.
    Returns raw data in provider format - no normalization.

    Args:
        ticker: Yahoo ticker (e.g., 'AAPL', 'BTC-USD', 'GC=F')
        start: Start date (inclusive)
        end: End date (inclusive)

    Returns:
        List of raw price dictionaries in yfinance format

    Raises:
        YFinanceError: If fetch fails or validation fails
    """
    # Validate inputs
    _validate_date_range(start, end)
    _validate_ticker(ticker)

    try:
        # yfinance uses exclusive end dates, so add 1 day
        yf_end = end + timedelta(days=1)

        # No progress bar for clean logs
        data = yf.download(
            ticker,
            start=start.isoformat(),
            end=yf_end.isoformat(),
            progress=False,
            auto_adjust=False
        )

        if data is None or len(data) == 0:
            return []

        # Handle multi-level columns (when yfinance returns ticker-specific columns)
        if isinstance(data.columns, pd.MultiIndex):
            data.columns = data.columns.get_level_values(0)

        # Keep yfinance field names - normalization happens later
        rows = []
        for date_idx, row in data.iterrows():
            row_dict = {'Date': date_idx.strftime('%Y-%m-%d')}

            for field in ['Open', 'High', 'Low', 'Close', 'Adj Close', 'Volume']:
                if field in data.columns and pd.notna(row[field]):
                    row_dict[field] = float(row[field]) if field != 'Volume' else int(row[field])

            rows.append(row_dict)

        return rows

    except Exception as e:
        raise YFinanceError(f"Failed to fetch prices for {ticker}: {str(e)}") from e


def _validate_date_range(start: date, end: date) -> None:
    """
    Validate date range parameters.

    Raises:
        YFinanceError: If validation fails
    """
    if start > end:
        raise YFinanceError(f"start date ({start}) must be <= end date ({end})")

    # Don't allow future dates
    today = date.today()
    if start > today or end > today:
        raise YFinanceError("Future dates not allowed for historical data")

    # Reasonable range limit (prevent excessive API calls)
    max_days = int(os.getenv('MAX_HISTORY_DAYS', '1095'))
    if (end - start).days > max_days:
        raise YFinanceError(f"Date range too long (max {max_days} days)")


def _validate_ticker(ticker: str) -> None:
    """
    Basic ticker validation.

    Raises:
        YFinanceError: If ticker is invalid
    """
    if not ticker or not isinstance(ticker, str):
        raise YFinanceError("Ticker must be non-empty string")

    if len(ticker) > 12:
        raise YFinanceError("Ticker too long (max 12 characters)")

    # Alphanumeric plus the separators Yahoo uses for crypto and futures
    allowed_chars = set('ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.-=^')
    if not set(ticker.upper()).issubset(allowed_chars):
        raise YFinanceError(f"Ticker contains invalid characters: {ticker}")


class YFinanceHistoryProvider(PriceHistoryProvider):
    """
    PriceHistoryProvider over Yahoo Finance daily bars.

    Composes: symbol mapping -> fetch -> normalize -> validate. Rows failing
    validation are dropped with a warning; any fetch failure is logged and
    returned as an empty history.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    def get_history(
        self,
        symbol: str,
        days: int,
        asset_class: Union[AssetClass, str] = AssetClass.STOCKS
    ) -> List[PricePoint]:
        end = self._today or date.today()
        start = end - timedelta(days=days)

        try:
            ticker = to_vendor_symbol(symbol, asset_class)
            raw_rows = fetch_prices_window(ticker, start, end)

            # Today's partial bar often has no close yet
            priced_rows = []
            for raw in raw_rows:
                if raw.get('Close') is None:
                    logger.warning(f"Dropping {symbol} {raw.get('Date')}: no close price")
                    continue
                priced_rows.append(raw)

            points = normalize_prices(priced_rows)
        except (YFinanceError, SymbolMappingError, NormalizationError, ValueError) as e:
            logger.error(f"Failed to fetch history for {symbol}: {e}")
            return []

        valid_points = []
        for point in points:
            try:
                validate_price_point(point)
                valid_points.append(point)
            except ValidationError as e:
                logger.warning(f"Dropping {symbol} {point.date}: {e}")

        try:
            check_price_date_monotonicity(valid_points)
        except ValidationError as e:
            logger.error(f"Rejecting history for {symbol}: {e}")
            return []

        logger.info(f"Fetched {len(valid_points)} daily points for {symbol} ({ticker})")
        return valid_points
