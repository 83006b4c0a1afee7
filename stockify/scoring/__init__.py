"""Scoring module for Stockify: market regime, composite and engine."""

from stockify.scoring.composite import calculate_composite, calculate_stock_score
from stockify.scoring.engine import ScoringEngine, generate_scoring_stats
from stockify.scoring.regime import detect_market_condition, get_dynamic_weights

__all__ = [
    "ScoringEngine",
    "calculate_composite",
    "calculate_stock_score",
    "detect_market_condition",
    "generate_scoring_stats",
    "get_dynamic_weights",
]
