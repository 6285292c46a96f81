"""
Tests for normalizers - pure functions transforming provider rows to canonical values.
"""

import pytest
from datetime import date, datetime

from ingestion.models import LiveQuote, PricePoint
from ingestion.transforms.normalizers import (
    normalize_live_quotes,
    normalize_prices,
    NormalizationError
)


class TestNormalizePrices:
    """Tests for normalize_prices function."""

    def test_yfinance_rows(self):
        """yfinance field names map to PricePoints."""
        raw = [{
            'Date': '2024-01-15',
            'Open': 185.25,
            'High': 186.80,
            'Low': 184.50,
            'Close': 185.92,
            'Adj Close': 185.75,
            'Volume': 65284300
        }]

        assert normalize_prices(raw) == [PricePoint(date(2024, 1, 15), 185.25, 186.80, 184.50, 185.92)]

    def test_lowercase_close_only(self):
        """Close-only rows get flat OHLC."""
        result = normalize_prices([{'date': '2024-01-15T21:00:00', 'close': 42000}])

        assert result == [PricePoint.flat(date(2024, 1, 15), 42000.0)]

    def test_dedupe_and_sort(self):
        """Later rows for a date win and output is ascending."""
        raw = [
            {'date': '2024-01-16', 'close': 11.0},
            {'date': '2024-01-15', 'close': 10.0},
            {'date': '2024-01-16', 'close': 12.0},
        ]

        result = normalize_prices(raw)

        assert [p.date for p in result] == [date(2024, 1, 15), date(2024, 1, 16)]
        assert result[1].close == 12.0

    def test_date_objects(self):
        """Date and datetime values are accepted as-is."""
        raw = [
            {'date': date(2024, 1, 15), 'close': 1.0},
            {'date': datetime(2024, 1, 16, 9, 30), 'close': 2.0},
        ]

        assert [p.date for p in normalize_prices(raw)] == [date(2024, 1, 15), date(2024, 1, 16)]

    def test_empty(self):
        """No rows, no points."""
        assert normalize_prices([]) == []
        assert normalize_prices(None) == []

    def test_missing_close(self):
        """A row without a close cannot be normalized."""
        with pytest.raises(NormalizationError, match="no close price"):
            normalize_prices([{'date': '2024-01-15', 'open': 1.0}])

    def test_missing_date(self):
        """A row without a date cannot be normalized."""
        with pytest.raises(NormalizationError, match="Unparseable date"):
            normalize_prices([{'close': 1.0}])


class TestNormalizeLiveQuotes:
    """Tests for normalize_live_quotes function."""

    def test_change_key_priority(self):
        """change_percent beats changePercent beats change."""
        rows = [
            {'symbol': 'A', 'change_percent': 1.0, 'changePercent': 2.0, 'change': 3.0},
            {'symbol': 'B', 'changePercent': 2.0, 'change': 3.0},
            {'symbol': 'C', 'change': 3.0},
            {'symbol': 'D'},
        ]

        quotes = normalize_live_quotes(rows)

        assert [q.change_percent for q in quotes] == [1.0, 2.0, 3.0, 0.0]

    def test_fields_and_market(self):
        """Prices, market caps and market tags are carried over."""
        rows = [
            {'symbol': 'BTC', 'price': '43000', 'marketCap': 8.4e11, 'name': 'Bitcoin', 'change': -1.2},
            {'symbol': 'ETH', 'change': 0.4, 'market': 'defi'},
        ]

        quotes = normalize_live_quotes(rows, market='crypto')

        assert quotes[0] == LiveQuote(
            symbol='BTC', change_percent=-1.2, price=43000.0,
            market_cap=8.4e11, name='Bitcoin', market='crypto'
        )
        assert quotes[1].market == 'defi'
        assert quotes[1].price is None

    def test_rows_without_symbol_dropped(self):
        """Symbol-less rows are skipped."""
        quotes = normalize_live_quotes([{'change': 1.0}, {'symbol': '', 'change': 2.0}, {'symbol': 'X'}])

        assert [q.symbol for q in quotes] == ['X']

    def test_symbols_upper_cased(self):
        """Lower-case feed symbols match the upper-case correlation keys."""
        quotes = normalize_live_quotes([{'symbol': ' btc', 'change': -2.0}, {'symbol': 'eth', 'change': 1.5}])

        assert [q.symbol for q in quotes] == ['BTC', 'ETH']
