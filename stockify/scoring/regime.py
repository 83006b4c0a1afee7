"""
Market regime detection and regime-dependent composite weights.

The regime is computed once per run over the full loaded universe,
before the quality gate, and is global to the run.

Rules:
    BULLISH  if avg 3M return > 10% and positive ratio > 0.7
    BEARISH  if avg 3M return < -10% and positive ratio < 0.3
    NEUTRAL  otherwise (including an empty universe)
"""

import logging
from collections.abc import Sequence

import numpy as np

from stockify.core.constants import (
    BEARISH_AVG_RETURN,
    BEARISH_POSITIVE_RATIO,
    BULLISH_AVG_RETURN,
    BULLISH_POSITIVE_RATIO,
    REGIME_WEIGHTS,
)
from stockify.core.types import CompositeWeights, MarketCondition, StockRecord

logger = logging.getLogger(__name__)


def market_breadth(universe: Sequence[StockRecord]) -> tuple[float, float]:
    """
    Average 3-month return and share of stocks with a positive return.

    Args:
        universe: Every stock in this run

    Returns:
        (average return %, positive ratio); (0.0, 0.0) for an empty universe
    """
    if not universe:
        return 0.0, 0.0

    returns = np.array([s.return_3m for s in universe], dtype=float)
    return float(returns.mean()), float((returns > 0).mean())


def detect_market_condition(universe: Sequence[StockRecord]) -> MarketCondition:
    """
    Classify the market regime from the universe's 3-month returns.

    Args:
        universe: Every stock in this run (pre-gate)

    Returns:
        MarketCondition
    """
    if not universe:
        logger.warning("Empty universe, defaulting market condition to NEUTRAL")
        return MarketCondition.NEUTRAL

    avg_return, positive_ratio = market_breadth(universe)

    if avg_return > BULLISH_AVG_RETURN and positive_ratio > BULLISH_POSITIVE_RATIO:
        condition = MarketCondition.BULLISH
    elif avg_return < BEARISH_AVG_RETURN and positive_ratio < BEARISH_POSITIVE_RATIO:
        condition = MarketCondition.BEARISH
    else:
        condition = MarketCondition.NEUTRAL

    logger.info(
        f"Market condition: {condition.value} "
        f"(avg 3M return {avg_return:.1f}%, {positive_ratio:.0%} positive)"
    )
    return condition


def get_dynamic_weights(condition: MarketCondition | str) -> CompositeWeights:
    """
    Composite weights for a market regime.

    Args:
        condition: MarketCondition (or its string value)

    Returns:
        CompositeWeights summing to 1.0; unknown values fall back to NEUTRAL
    """
    key = condition.value if isinstance(condition, MarketCondition) else str(condition)
    table = REGIME_WEIGHTS.get(key, REGIME_WEIGHTS[MarketCondition.NEUTRAL.value])
    return CompositeWeights(**table)
