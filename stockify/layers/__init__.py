"""The five scoring layers. Each returns a LayerScore in [0, 100]."""

from stockify.layers.external import UniverseView, calculate_external_score
from stockify.layers.fundamental import calculate_fundamental_score
from stockify.layers.momentum import calculate_momentum_score
from stockify.layers.risk import calculate_risk_score
from stockify.layers.valuation import calculate_valuation_score, count_trap_indicators

__all__ = [
    "UniverseView",
    "calculate_external_score",
    "calculate_fundamental_score",
    "calculate_momentum_score",
    "calculate_risk_score",
    "calculate_valuation_score",
    "count_trap_indicators",
]
