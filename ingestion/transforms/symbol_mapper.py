"""
Symbol mapping between display symbols and vendor tickers.
Crypto trades as SYMBOL-USD on Yahoo, commodities as front-month futures.
"""

from typing import Dict, Union

from ingestion.models import AssetClass


# Display symbol -> Yahoo futures ticker. Both common names and the
# exchange codes the live feed uses (XAU, CL, ...) are accepted.
COMMODITY_TICKERS: Dict[str, str] = {
    'GOLD': 'GC=F',
    'XAU': 'GC=F',
    'SILVER': 'SI=F',
    'XAG': 'SI=F',
    'OIL': 'CL=F',
    'CL': 'CL=F',
    'BRENT': 'BZ=F',
    'BZ': 'BZ=F',
    'NATGAS': 'NG=F',
    'NG': 'NG=F',
    'COPPER': 'HG=F',
    'HG': 'HG=F',
    'PLATINUM': 'PL=F',
    'PL': 'PL=F',
    'PALLADIUM': 'PA=F',
    'PA': 'PA=F',
    'WHEAT': 'ZW=F',
    'ZW': 'ZW=F',
    'CORN': 'ZC=F',
    'ZC': 'ZC=F',
}

CRYPTO_SYMBOLS = {
    'BTC', 'ETH', 'USDT', 'BNB', 'SOL', 'XRP', 'USDC', 'ADA', 'AVAX', 'DOGE',
    'DOT', 'TRX', 'LINK', 'MATIC', 'TON', 'SHIB', 'DAI', 'LTC', 'BCH', 'UNI',
    'ATOM', 'ETC', 'XLM', 'FIL', 'ARB', 'OP', 'APT', 'NEAR', 'ALGO', 'AAVE',
}


class SymbolMappingError(ValueError):
    """Raised when a symbol cannot be mapped for its asset class."""
    pass


def to_vendor_symbol(symbol: str, asset_class: Union[AssetClass, str]) -> str:
    """
    Map a display symbol to the Yahoo Finance ticker.

    Examples:
        ('AAPL', stocks)     -> 'AAPL'
        ('BTC', crypto)      -> 'BTC-USD'
        ('GOLD', commodities) -> 'GC=F'

    Raises:
        SymbolMappingError: If the symbol is empty or an unknown commodity
    """
    if not symbol or not isinstance(symbol, str):
        raise SymbolMappingError("Symbol must be non-empty string")

    asset_class = AssetClass.parse(asset_class)
    upper = symbol.strip().upper()

    if asset_class == AssetClass.CRYPTO:
        return upper if upper.endswith('-USD') else f"{upper}-USD"

    if asset_class == AssetClass.COMMODITIES:
        if upper.endswith('=F'):
            return upper
        if upper not in COMMODITY_TICKERS:
            raise SymbolMappingError(f"Unknown commodity symbol: {symbol}")
        return COMMODITY_TICKERS[upper]

    return upper


def guess_asset_class(symbol: str) -> AssetClass:
    """Best-effort asset class for a bare symbol; defaults to stocks."""
    upper = (symbol or '').strip().upper()

    if upper in CRYPTO_SYMBOLS or upper.endswith('-USD'):
        return AssetClass.CRYPTO

    if upper in COMMODITY_TICKERS or upper.endswith('=F'):
        return AssetClass.COMMODITIES

    return AssetClass.STOCKS
