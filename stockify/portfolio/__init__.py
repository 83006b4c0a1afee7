"""Portfolio construction: position sizing and allocation checks."""

from stockify.portfolio.sizing import calculate_portfolio_weights, stock_weight_cap
from stockify.portfolio.validation import validate_weights

__all__ = [
    "calculate_portfolio_weights",
    "stock_weight_cap",
    "validate_weights",
]
