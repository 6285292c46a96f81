"""
Canonical value objects exchanged between providers and the analysis core.
Frozen dataclasses - created per call, never mutated.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class AssetClass(Enum):
    """Market an asset trades on. Drives symbol mapping and calendars."""
    STOCKS = "stocks"
    CRYPTO = "crypto"
    COMMODITIES = "commodities"

    @classmethod
    def parse(cls, value) -> "AssetClass":
        """Accept enum members, plural or singular names ('stock', 'commodity')."""
        if isinstance(value, cls):
            return value

        text = str(value).strip().lower()
        aliases = {
            'stock': 'stocks',
            'equity': 'stocks',
            'equities': 'stocks',
            'commodity': 'commodities',
        }
        text = aliases.get(text, text)
        return cls(text)


@dataclass(frozen=True)
class PricePoint:
    """One daily OHLC observation."""
    date: date
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def flat(cls, on: date, price: float) -> "PricePoint":
        """Synthetic point where every field equals one price."""
        return cls(date=on, open=price, high=price, low=price, close=price)


@dataclass(frozen=True)
class LiveQuote:
    """Instantaneous snapshot of one asset from a live feed."""
    symbol: str
    change_percent: float
    price: Optional[float] = None
    market_cap: Optional[float] = None
    name: Optional[str] = None
    market: Optional[str] = None


@dataclass(frozen=True)
class Holding:
    """A portfolio position the risk engine values over time."""
    symbol: str
    quantity: float
    asset_class: AssetClass = AssetClass.STOCKS

    def __post_init__(self):
        if not self.symbol or not isinstance(self.symbol, str):
            raise ValueError("symbol must be non-empty string")

        if self.quantity <= 0:
            raise ValueError(f"quantity must be positive, got {self.quantity}")

        # Frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, 'asset_class', AssetClass.parse(self.asset_class))


@dataclass(frozen=True)
class Position:
    """Point-in-time holding snapshot used for portfolio summaries."""
    symbol: str
    market_value: float
    cost_basis: float

    @property
    def gain_loss(self) -> float:
        return self.market_value - self.cost_basis

    @property
    def gain_loss_percent(self) -> Optional[float]:
        if self.cost_basis <= 0:
            return None
        return self.gain_loss / self.cost_basis * 100
