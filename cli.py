#!/usr/bin/env python3
"""
Command line driver for the cross-asset analytics core.
Usage: python cli.py COMMAND [options]
"""

import argparse
import json
import logging
import os
import sys
from typing import Dict, Any, List, Optional

from dotenv import load_dotenv

from analysis.alerts_job import get_dashboard_volatility_alerts, get_volatility_alerts_by_market
from analysis.comparison_job import compare_assets, find_top_correlated_assets
from analysis.known_correlations import KnownCorrelationsError, load_known_correlations
from analysis.portfolio_risk import calculate_correlation_matrix, calculate_portfolio_metrics
from ingestion.models import AssetClass, Holding
from ingestion.providers.base import PriceHistoryProvider
from ingestion.providers.cache import CachedHistoryProvider
from ingestion.providers.yfinance_adapter import YFinanceHistoryProvider

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


def build_provider() -> PriceHistoryProvider:
    """yfinance provider behind the TTL cache."""
    return CachedHistoryProvider(YFinanceHistoryProvider())


def parse_holdings(text: str) -> List[Holding]:
    """
    Parse holdings from 'SYMBOL:QTY[:CLASS]' entries separated by commas.

    Example:
        >>> parse_holdings('AAPL:10,BTC:0.5:crypto')[1].asset_class
        <AssetClass.CRYPTO: 'crypto'>

    Raises:
        ValueError: If an entry is malformed
    """
    holdings = []

    for entry in text.split(','):
        entry = entry.strip()
        if not entry:
            continue

        parts = entry.split(':')
        if len(parts) not in (2, 3):
            raise ValueError(f"Holding must look like SYMBOL:QTY[:CLASS], got {entry!r}")

        asset_class = AssetClass.parse(parts[2]) if len(parts) == 3 else AssetClass.STOCKS
        holdings.append(Holding(symbol=parts[0].upper(), quantity=float(parts[1]), asset_class=asset_class))

    if not holdings:
        raise ValueError("No holdings given")

    return holdings


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _load_snapshots(path: str) -> Dict[str, List[Dict[str, Any]]]:
    with open(path, 'r', encoding='utf-8') as f:
        snapshots = json.load(f)

    if not isinstance(snapshots, dict):
        raise ValueError("Snapshot file must map market names to lists of rows")

    return snapshots


def cmd_compare(args, provider: PriceHistoryProvider) -> int:
    comparison = compare_assets(
        provider,
        args.symbol1.upper(),
        args.symbol2.upper(),
        asset_class1=args.class1,
        asset_class2=args.class2,
        days=args.days,
        live_price1=args.live1,
        live_price2=args.live2,
        what_if_move=args.move
    )
    _print_json(comparison.to_dict())
    return 0


def cmd_top(args, provider: PriceHistoryProvider) -> int:
    candidates = [{'symbol': s.strip().upper()} for s in args.candidates.split(',') if s.strip()]
    results = find_top_correlated_assets(provider, args.target.upper(), candidates, days=args.days, top_n=args.top)
    _print_json(results)
    return 0


def cmd_portfolio(args, provider: PriceHistoryProvider) -> int:
    holdings = parse_holdings(args.holdings)
    metrics = calculate_portfolio_metrics(
        provider,
        holdings,
        days=args.days,
        benchmark_symbol=args.benchmark,
        risk_free_rate=args.risk_free_rate
    )
    _print_json(metrics.to_dict())
    return 0


def cmd_matrix(args, provider: PriceHistoryProvider) -> int:
    holdings = parse_holdings(args.holdings)
    entries = calculate_correlation_matrix(provider, holdings, days=args.days)
    _print_json([entry.to_dict() for entry in entries])
    return 0


def cmd_alerts(args, provider: Optional[PriceHistoryProvider] = None) -> int:
    snapshots = _load_snapshots(args.snapshots)
    known = load_known_correlations(args.correlations) if args.correlations else None

    if args.by_market:
        grouped = get_volatility_alerts_by_market(snapshots, known)
        _print_json({market: [a.to_dict() for a in alerts] for market, alerts in grouped.items()})
    else:
        alerts = get_dashboard_volatility_alerts(snapshots, known, per_market=args.per_market)
        _print_json([a.to_dict() for a in alerts])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Cross-asset correlation, what-if, portfolio risk and divergence alerts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py compare AAPL BTC --move 5
  python cli.py top NVDA --candidates AMD,MSFT,BTC,GOLD
  python cli.py portfolio --holdings AAPL:10,BTC:0.5:crypto,GOLD:2:commodities
  python cli.py matrix --holdings AAPL:10,MSFT:5,ETH:1:crypto
  python cli.py alerts --snapshots ./data/snapshots.json
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    compare = subparsers.add_parser('compare', help='Correlation, trend and what-if for two assets')
    compare.add_argument('symbol1', help='Driving asset (e.g., AAPL)')
    compare.add_argument('symbol2', help='Compared asset (e.g., BTC)')
    compare.add_argument('--class1', help='Asset class of symbol1 (stocks, crypto, commodities)')
    compare.add_argument('--class2', help='Asset class of symbol2')
    compare.add_argument('--days', type=int, help='Lookback days (default: CORRELATION_LOOKBACK_DAYS or 90)')
    compare.add_argument('--move', type=float, default=5.0, help='What-if move of symbol1 in percent (default: 5)')
    compare.add_argument('--live1', type=float, help='Live price of symbol1 to append')
    compare.add_argument('--live2', type=float, help='Live price of symbol2 to append')
    compare.set_defaults(handler=cmd_compare)

    top = subparsers.add_parser('top', help='Rank candidates by correlation with a target')
    top.add_argument('target', help='Target asset')
    top.add_argument('--candidates', required=True, help='Comma separated candidate symbols')
    top.add_argument('--days', type=int, help='Lookback days')
    top.add_argument('--top', type=int, default=5, help='Number of results (default: 5)')
    top.set_defaults(handler=cmd_top)

    portfolio = subparsers.add_parser('portfolio', help='Sharpe, volatility, beta and total return')
    portfolio.add_argument('--holdings', required=True, help='SYMBOL:QTY[:CLASS] entries, comma separated')
    portfolio.add_argument('--days', type=int, default=30, help='Lookback days (default: 30)')
    portfolio.add_argument('--benchmark', help='Beta benchmark (default: BENCHMARK_SYMBOL or SPY)')
    portfolio.add_argument('--risk-free-rate', type=float, help='Annual risk free rate (default: RISK_FREE_RATE or 0.02)')
    portfolio.set_defaults(handler=cmd_portfolio)

    matrix = subparsers.add_parser('matrix', help='Pairwise correlation matrix of holdings')
    matrix.add_argument('--holdings', required=True, help='SYMBOL:QTY[:CLASS] entries, comma separated')
    matrix.add_argument('--days', type=int, default=90, help='Lookback days (default: 90)')
    matrix.set_defaults(handler=cmd_matrix)

    alerts = subparsers.add_parser('alerts', help='Divergence alerts from a live snapshot file')
    alerts.add_argument('--snapshots', required=True, help='JSON file mapping market to snapshot rows')
    alerts.add_argument('--correlations', help='Known correlations YAML (default: KNOWN_CORRELATIONS_PATH)')
    alerts.add_argument('--per-market', type=int, default=2, help='Dashboard alerts per market (default: 2)')
    alerts.add_argument('--by-market', action='store_true', help='Print every alert grouped by market')
    alerts.set_defaults(handler=cmd_alerts)

    return parser


def main(argv: Optional[List[str]] = None, provider: Optional[PriceHistoryProvider] = None) -> int:
    """Main CLI entry point."""
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr
    )

    args = build_parser().parse_args(argv)

    if provider is None and args.command != 'alerts':
        provider = build_provider()

    try:
        return args.handler(args, provider)
    except (ValueError, KnownCorrelationsError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
