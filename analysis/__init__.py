"""
Analysis Engine Module

Cross-asset analytics over aligned price histories:
- Date alignment with forward fill and live price append
- Daily returns and Pearson correlation (strength, direction, trend)
- What-if projection of one asset's move onto another
- Portfolio risk (Sharpe, volatility, beta, correlation matrix)
- Divergence detection on live market snapshots
"""

__version__ = "0.0.1"
