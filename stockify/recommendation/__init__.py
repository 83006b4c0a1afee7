"""Recommendation assembly, history diff, insights and single-stock analysis."""

from stockify.recommendation.analysis import (
    InvestmentVerdict,
    StockAnalysis,
    analyze_stock,
    find_stock,
)
from stockify.recommendation.assembler import RecommendationAssembler
from stockify.recommendation.diff import compare_recommendations
from stockify.recommendation.models import (
    ExclusionReason,
    Recommendation,
    RecommendationDiff,
    TopPick,
    WatchlistEntry,
    WeightChange,
)
from stockify.recommendation.week import get_week_id

__all__ = [
    "ExclusionReason",
    "InvestmentVerdict",
    "Recommendation",
    "RecommendationAssembler",
    "RecommendationDiff",
    "StockAnalysis",
    "TopPick",
    "WatchlistEntry",
    "WeightChange",
    "analyze_stock",
    "compare_recommendations",
    "find_stock",
    "get_week_id",
]
