"""
Tests for canonical ingestion value objects.
"""

import pytest

from ingestion.models import AssetClass, Holding, Position


class TestAssetClass:
    """Tests for AssetClass.parse."""

    @pytest.mark.parametrize("raw,expected", [
        (AssetClass.CRYPTO, AssetClass.CRYPTO),
        ('stocks', AssetClass.STOCKS),
        ('Stock', AssetClass.STOCKS),
        ('equity', AssetClass.STOCKS),
        ('commodity', AssetClass.COMMODITIES),
        (' CRYPTO ', AssetClass.CRYPTO),
    ])
    def test_aliases(self, raw, expected):
        """Plural, singular and enum inputs are accepted."""
        assert AssetClass.parse(raw) == expected

    def test_unknown(self):
        """Unknown markets raise ValueError."""
        with pytest.raises(ValueError):
            AssetClass.parse('bonds')


class TestHolding:
    """Tests for Holding validation."""

    def test_asset_class_coerced(self):
        """String asset classes become enum members."""
        assert Holding('BTC', 0.5, 'crypto').asset_class == AssetClass.CRYPTO

    @pytest.mark.parametrize("symbol,quantity", [('', 1), ('AAPL', 0), ('AAPL', -2)])
    def test_invalid(self, symbol, quantity):
        """Empty symbols and non-positive quantities are rejected."""
        with pytest.raises(ValueError):
            Holding(symbol, quantity)


class TestPosition:
    """Tests for Position gain helpers."""

    def test_gain(self):
        """Gain is market value minus cost."""
        position = Position('AAPL', 120.0, 100.0)

        assert position.gain_loss == 20.0
        assert position.gain_loss_percent == 20.0

    def test_zero_cost(self):
        """Gain percent is undefined without a cost basis."""
        assert Position('AIRDROP', 50.0, 0.0).gain_loss_percent is None
