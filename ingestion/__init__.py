"""
Data Ingestion Module

Handles fetching and validating price data from external sources:
- yfinance for OHLC price history (stocks, crypto, commodities)
- Live snapshot normalization for divergence alerts
- TTL cache and concurrent fan-out around any history provider
"""

__version__ = "0.0.1"
