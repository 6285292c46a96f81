"""
Tests for yfinance adapter - mocked network calls, no live API hits in CI.
"""

import pytest
from unittest.mock import patch
from datetime import date, timedelta
import pandas as pd

from ingestion.models import AssetClass, PricePoint
from ingestion.providers.yfinance_adapter import (
    fetch_prices_window,
    YFinanceError,
    YFinanceHistoryProvider,
    _validate_date_range,
    _validate_ticker
)


def _frame(closes, start='2024-01-15'):
    """yfinance-shaped daily frame with sane OHLC around each close."""
    index = pd.date_range(start, periods=len(closes), freq='D', name='Date')
    return pd.DataFrame({
        'Open': closes,
        'High': [c + 1 for c in closes],
        'Low': [c - 1 for c in closes],
        'Close': closes,
        'Adj Close': closes,
        'Volume': [1000] * len(closes)
    }, index=index)


class TestFetchPricesWindow:
    """Tests for fetch_prices_window function."""

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_fetch_prices_window_success(self, mock_download):
        """Test successful price fetch with mocked yfinance."""
        mock_data = pd.DataFrame({
            'Open': [185.25, 186.10],
            'High': [186.80, 187.45],
            'Low': [184.50, 185.80],
            'Close': [185.92, 187.11],
            'Adj Close': [185.75, 186.94],
            'Volume': [65284300, 58414500]
        }, index=pd.DatetimeIndex(['2024-01-15', '2024-01-16'], name='Date'))

        mock_download.return_value = mock_data

        result = fetch_prices_window(
            ticker='AAPL',
            start=date(2024, 1, 15),
            end=date(2024, 1, 16)
        )

        mock_download.assert_called_once_with(
            'AAPL',
            start='2024-01-15',
            end='2024-01-17',  # yfinance end is exclusive
            progress=False,
            auto_adjust=False
        )

        assert len(result) == 2
        assert result[0]['Date'] == '2024-01-15'
        assert result[0]['Open'] == 185.25
        assert result[0]['Volume'] == 65284300
        assert result[1]['Close'] == 187.11

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_multiindex_columns_flattened(self, mock_download):
        """Ticker-level column headers are dropped."""
        frame = _frame([100.0, 101.0])
        frame.columns = pd.MultiIndex.from_product([list(frame.columns), ['BTC-USD']])
        mock_download.return_value = frame

        result = fetch_prices_window('BTC-USD', date(2024, 1, 15), date(2024, 1, 16))

        assert [row['Close'] for row in result] == [100.0, 101.0]

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_empty_response(self, mock_download):
        """No data is an empty list, not an error."""
        mock_download.return_value = pd.DataFrame()

        assert fetch_prices_window('AAPL', date(2024, 1, 15), date(2024, 1, 16)) == []

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_network_error_wrapped(self, mock_download):
        """Provider exceptions surface as YFinanceError."""
        mock_download.side_effect = ConnectionError("timeout")

        with pytest.raises(YFinanceError, match="Failed to fetch prices for AAPL"):
            fetch_prices_window('AAPL', date(2024, 1, 15), date(2024, 1, 16))


class TestValidation:
    """Tests for date range and ticker guards."""

    def test_start_after_end(self):
        """Inverted ranges are rejected."""
        with pytest.raises(YFinanceError, match="must be <="):
            _validate_date_range(date(2024, 1, 16), date(2024, 1, 15))

    def test_future_dates(self):
        """Historical fetches cannot reach into the future."""
        tomorrow = date.today() + timedelta(days=1)

        with pytest.raises(YFinanceError, match="Future dates"):
            _validate_date_range(date(2024, 1, 1), tomorrow)

    def test_range_limit_from_environment(self, monkeypatch):
        """MAX_HISTORY_DAYS caps the window."""
        monkeypatch.setenv('MAX_HISTORY_DAYS', '10')

        with pytest.raises(YFinanceError, match="max 10 days"):
            _validate_date_range(date(2024, 1, 1), date(2024, 1, 20))

    def test_vendor_tickers_allowed(self):
        """Crypto and futures tickers pass validation."""
        for ticker in ('AAPL', 'BRK.B', 'BTC-USD', 'GC=F', '^GSPC'):
            _validate_ticker(ticker)

    def test_bad_tickers(self):
        """Empty, long or oddly spelled tickers fail."""
        for ticker in ('', 'ABCDEFGHIJKLM', 'AA PL', 'AAPL;'):
            with pytest.raises(YFinanceError):
                _validate_ticker(ticker)


class TestYFinanceHistoryProvider:
    """Tests for YFinanceHistoryProvider."""

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_crypto_history(self, mock_download):
        """Crypto symbols are fetched as SYMBOL-USD over the lookback window."""
        mock_download.return_value = _frame([42000.0, 43000.0])
        provider = YFinanceHistoryProvider(today=date(2024, 1, 16))

        history = provider.get_history('BTC', 1, AssetClass.CRYPTO)

        args, kwargs = mock_download.call_args
        assert args == ('BTC-USD',)
        assert kwargs['start'] == '2024-01-15'
        assert history == [
            PricePoint(date(2024, 1, 15), 42000.0, 42001.0, 41999.0, 42000.0),
            PricePoint(date(2024, 1, 16), 43000.0, 43001.0, 42999.0, 43000.0),
        ]

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_commodity_mapping(self, mock_download):
        """Commodity names map to futures tickers."""
        mock_download.return_value = _frame([2000.0])
        provider = YFinanceHistoryProvider(today=date(2024, 1, 16))

        provider.get_history('GOLD', 5, 'commodities')

        assert mock_download.call_args[0] == ('GC=F',)

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_invalid_rows_dropped(self, mock_download):
        """Rows failing OHLC validation are skipped."""
        frame = _frame([100.0, 101.0, 102.0])
        frame.iloc[1, frame.columns.get_loc('High')] = 50.0  # high below low
        mock_download.return_value = frame
        provider = YFinanceHistoryProvider(today=date(2024, 1, 17))

        history = provider.get_history('AAPL', 5)

        assert [p.close for p in history] == [100.0, 102.0]

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_partial_bar_without_close_dropped(self, mock_download):
        """A row with a NaN close is skipped, the rest of the history kept."""
        frame = _frame([100.0, 101.0, 102.0], start='2024-01-10')
        frame.iloc[2, frame.columns.get_loc('Close')] = float('nan')
        mock_download.return_value = frame
        provider = YFinanceHistoryProvider(today=date(2024, 1, 12))

        history = provider.get_history('AAPL', 5)

        assert [p.date for p in history] == [date(2024, 1, 10), date(2024, 1, 11)]
        assert [p.close for p in history] == [100.0, 101.0]

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_failure_returns_empty(self, mock_download):
        """Fetch failures are logged and returned as no data."""
        mock_download.side_effect = RuntimeError("rate limited")
        provider = YFinanceHistoryProvider(today=date(2024, 1, 16))

        assert provider.get_history('AAPL', 5) == []

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_unknown_commodity_skips_fetch(self, mock_download):
        """Unmappable symbols never reach the network."""
        provider = YFinanceHistoryProvider(today=date(2024, 1, 16))

        assert provider.get_history('UNOBTAINIUM', 5, AssetClass.COMMODITIES) == []
        mock_download.assert_not_called()
