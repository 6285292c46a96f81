"""
Port (interface) for price history providers.
The analysis core depends only on this interface; vendor adapters implement it.
"""

from abc import ABC, abstractmethod
from typing import List, Union

from ingestion.models import AssetClass, PricePoint


class PriceHistoryProvider(ABC):
    """
    Supplies daily price history for one symbol.

    Contract: points ascending by date; any failure (network, unknown
    symbol, bad data) yields an empty list and never raises into the core.
    """

    @abstractmethod
    def get_history(
        self,
        symbol: str,
        days: int,
        asset_class: Union[AssetClass, str] = AssetClass.STOCKS
    ) -> List[PricePoint]: ...
