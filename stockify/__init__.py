"""
Stockify - weekly multi-layer equity scoring for Indian listed stocks.

A weekly batch that turns a fundamentals/technicals snapshot into a
risk-capped portfolio recommendation.

Outputs:
    - Per-stock composite score in [0, 100] with a recommendation label
    - Position weights under stock, sector and concentration caps
    - Top picks, watchlist, exclusion reasons and a week-over-week diff

Design Philosophy:
    - Quality gates first: a stock that fails never gets a score
    - Layer weights follow the market regime, nothing else is adaptive
    - Caps are never breached; what cannot be placed is held as cash
"""

from stockify.core.types import (
    CompositeResult,
    MarketCondition,
    PortfolioAllocation,
    RecommendationLabel,
    StockRecord,
)

__version__ = "1.0.0"

__all__ = [
    "CompositeResult",
    "MarketCondition",
    "PortfolioAllocation",
    "RecommendationLabel",
    "StockRecord",
    "__version__",
]
