"""
Tests for the portfolio risk engine.
Stub provider with fixed histories - no network.
"""

import threading
from datetime import date, timedelta

import pytest

from analysis.portfolio_risk import (
    calculate_correlation_matrix,
    calculate_portfolio_beta,
    calculate_portfolio_metrics,
    calculate_portfolio_returns,
    portfolio_summary,
    portfolio_value_series,
)
from analysis.models import PortfolioMetrics, PortfolioValuePoint
from ingestion.models import AssetClass, Holding, Position, PricePoint
from ingestion.providers.base import PriceHistoryProvider


START = date(2024, 1, 2)


def _history(closes, start=START):
    return [PricePoint.flat(start + timedelta(days=i), float(c)) for i, c in enumerate(closes)]


class StubProvider(PriceHistoryProvider):
    """Serves canned histories and records every request."""

    def __init__(self, histories):
        self.histories = histories
        self.calls = []
        self._lock = threading.Lock()

    def get_history(self, symbol, days, asset_class=AssetClass.STOCKS):
        with self._lock:
            self.calls.append((symbol, days, asset_class))
        if symbol not in self.histories:
            raise KeyError(symbol)
        return list(self.histories[symbol])


class TestPortfolioValueSeries:
    """Tests for portfolio_value_series function."""

    def test_quantity_weighted_sum(self):
        """Each day sums quantity × close across holdings."""
        holdings = [Holding('AAPL', 2), Holding('BTC', 1, AssetClass.CRYPTO)]
        histories = [_history([100, 110]), _history([50, 40])]

        points = portfolio_value_series(holdings, histories)

        assert [p.portfolio_value for p in points] == [250.0, 260.0]
        assert points[0].daily_return is None
        assert points[1].daily_return == pytest.approx(0.04)
        assert points[0].date == START

    def test_partial_coverage(self):
        """Days where a holding has no price count only the others."""
        holdings = [Holding('AAPL', 2), Holding('BTC', 1, AssetClass.CRYPTO)]
        histories = [_history([100, 110]), _history([50, 40, 60])]

        points = portfolio_value_series(holdings, histories)

        assert [p.portfolio_value for p in points] == [250.0, 260.0, 60.0]

    def test_empty_histories(self):
        """No price data gives no points."""
        assert portfolio_value_series([Holding('AAPL', 1)], [[]]) == []

    def test_mismatched_lengths(self):
        """Holdings and histories must pair up."""
        with pytest.raises(ValueError):
            portfolio_value_series([Holding('AAPL', 1)], [])


class TestPortfolioMetrics:
    """Tests for calculate_portfolio_metrics function."""

    def test_constant_prices(self):
        """Flat prices give zero Sharpe, zero volatility and market beta."""
        provider = StubProvider({'AAPL': _history([100] * 10), 'SPY': _history([400] * 10)})

        metrics = calculate_portfolio_metrics(provider, [Holding('AAPL', 5)], days=10, benchmark_symbol='SPY')

        assert metrics == PortfolioMetrics(sharpe_ratio=0.0, volatility_pct=0.0, beta=1.0, total_return_pct=0.0)

    def test_benchmark_twin(self):
        """A portfolio tracking the benchmark has beta 1."""
        provider = StubProvider({
            'AAPL': _history([100, 102, 101, 104]),
            'SPY': _history([200, 204, 202, 208]),
        })

        metrics = calculate_portfolio_metrics(provider, [Holding('AAPL', 1)], days=10, benchmark_symbol='SPY')

        assert metrics.beta == 1.0
        assert metrics.total_return_pct == 4.0
        assert metrics.volatility_pct > 0

    def test_benchmark_from_environment(self, monkeypatch):
        """BENCHMARK_SYMBOL picks the beta benchmark."""
        monkeypatch.setenv('BENCHMARK_SYMBOL', 'QQQ')
        provider = StubProvider({'AAPL': _history([100, 102, 101]), 'QQQ': _history([10, 11, 12])})

        calculate_portfolio_metrics(provider, [Holding('AAPL', 1)], days=10)

        assert ('QQQ', 10, AssetClass.STOCKS) in provider.calls

    def test_no_holdings(self):
        """An empty portfolio gets neutral metrics."""
        metrics = calculate_portfolio_metrics(StubProvider({}), [], days=30)

        assert metrics == PortfolioMetrics(sharpe_ratio=0.0, volatility_pct=0.0, beta=1.0, total_return_pct=0.0)

    def test_returns_fetch_each_holding_once(self):
        """One provider call per holding."""
        provider = StubProvider({'AAPL': _history([1, 2]), 'MSFT': _history([3, 4])})

        calculate_portfolio_returns(provider, [Holding('AAPL', 1), Holding('MSFT', 1)], days=30)

        assert sorted(call[0] for call in provider.calls) == ['AAPL', 'MSFT']


class TestPortfolioBeta:
    """Tests for calculate_portfolio_beta function."""

    def test_missing_benchmark(self):
        """A failing benchmark fetch falls back to market beta."""
        values = [
            PortfolioValuePoint(START, 100.0),
            PortfolioValuePoint(START + timedelta(days=1), 110.0, 0.1),
        ]

        assert calculate_portfolio_beta(StubProvider({}), values, 'SPY') == 1.0

    def test_aligned_by_date(self):
        """Benchmark days outside the portfolio window are ignored."""
        values = [
            PortfolioValuePoint(START + timedelta(days=2), 100.0),
            PortfolioValuePoint(START + timedelta(days=3), 102.0),
            PortfolioValuePoint(START + timedelta(days=4), 101.0),
        ]
        # Two leading benchmark days with a huge move outside the window
        provider = StubProvider({'SPY': _history([10, 50, 100, 102, 101])})

        assert calculate_portfolio_beta(provider, values, 'SPY') == 1.0

    def test_too_few_values(self):
        """Fewer than two portfolio values give market beta."""
        assert calculate_portfolio_beta(StubProvider({}), [PortfolioValuePoint(START, 1.0)]) == 1.0


class TestCorrelationMatrix:
    """Tests for calculate_correlation_matrix function."""

    def test_matrix_shape_and_values(self):
        """N×N row-major entries, unit diagonal, symmetric, errors as 0."""
        provider = StubProvider({
            'AAPL': _history([100, 102, 100, 103]),
            'MSFT': _history([200, 204, 200, 206]),
            'CASH': _history([1, 1, 1, 1]),
        })
        holdings = [Holding('AAPL', 1), Holding('MSFT', 1), Holding('CASH', 1)]

        entries = calculate_correlation_matrix(provider, holdings, days=30)

        assert len(entries) == 9
        grid = {(e.row, e.col): e.coefficient for e in entries}
        assert [grid[(i, i)] for i in range(3)] == [1.0, 1.0, 1.0]
        assert grid[(0, 1)] == 1.0
        assert grid[(0, 1)] == grid[(1, 0)]
        assert grid[(0, 2)] == 0.0
        assert entries[1].asset1 == 'AAPL' and entries[1].asset2 == 'MSFT'
        assert len(provider.calls) == 3

    def test_single_holding(self):
        """One holding has no pairs."""
        assert calculate_correlation_matrix(StubProvider({}), [Holding('AAPL', 1)]) == []


class TestPortfolioSummary:
    """Tests for portfolio_summary function."""

    def test_summary(self):
        """Totals and best/worst performers by gain percent."""
        positions = [Position('AAPL', 150.0, 100.0), Position('MSFT', 90.0, 100.0)]

        summary = portfolio_summary(positions)

        assert summary['total_holdings'] == 2
        assert summary['total_value'] == 240.0
        assert summary['total_cost'] == 200.0
        assert summary['total_gain_loss'] == 40.0
        assert summary['total_return_pct'] == 20.0
        assert summary['best_performer'] == {'symbol': 'AAPL', 'return': 50.0}
        assert summary['worst_performer'] == {'symbol': 'MSFT', 'return': -10.0}

    def test_empty(self):
        """No positions give a zeroed summary."""
        summary = portfolio_summary([])

        assert summary['total_holdings'] == 0
        assert summary['best_performer'] is None
