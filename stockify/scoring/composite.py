"""
Composite score calculation for Stockify.

Formula:
    S = w_safety*S_risk + w_fund*S_fund + w_val*S_val
        + w_mom*S_mom + w_ext*S_ext

The weights come from the market regime table and always sum to 1.0.
Stocks failing the quality gate are never scored: composite 0, EXCLUDED.
"""

import logging

from stockify.core.numeric import round_half_up
from stockify.core.types import (
    CompositeResult,
    CompositeWeights,
    LayerScores,
    MarketCondition,
    RecommendationLabel,
    StockRecord,
)
from stockify.gates.quality import check_quality_gates
from stockify.layers import (
    UniverseView,
    calculate_external_score,
    calculate_fundamental_score,
    calculate_momentum_score,
    calculate_risk_score,
    calculate_valuation_score,
)
from stockify.scoring.regime import get_dynamic_weights
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)


def calculate_layer_scores(
    stock: StockRecord,
    view: UniverseView,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScores:
    """
    Run all five layers for one stock.

    Args:
        stock: Stock to score
        view: Per-run universe aggregates (external layer)
        sectors: Sector lookup tables

    Returns:
        LayerScores
    """
    return LayerScores(
        risk=calculate_risk_score(stock, sectors),
        fundamental=calculate_fundamental_score(stock, sectors),
        valuation=calculate_valuation_score(stock),
        momentum=calculate_momentum_score(stock),
        external=calculate_external_score(stock, view, sectors),
    )


def calculate_composite(
    scores: LayerScores,
    weights: CompositeWeights,
) -> tuple[float, RecommendationLabel]:
    """
    Combine layer scores into the composite and its label.

    The label is taken from the unrounded composite; the returned
    composite is rounded half-up to an integer.

    Args:
        scores: Five layer scores
        weights: Regime weights

    Returns:
        Tuple of (rounded composite, recommendation label)
    """
    composite = weights.apply(scores)
    label = RecommendationLabel.from_scores(composite, scores.risk.score)
    return round_half_up(composite), label


def calculate_stock_score(
    stock: StockRecord,
    view: UniverseView,
    condition: MarketCondition,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> CompositeResult:
    """
    Gate, score and label one stock.

    Args:
        stock: Stock to score
        view: Per-run universe aggregates
        condition: Market regime for this run
        sectors: Sector lookup tables

    Returns:
        CompositeResult (EXCLUDED with composite 0 when the gate fails)
    """
    gate = check_quality_gates(stock, sectors)

    if not gate.passed:
        return CompositeResult(
            stock=stock,
            gate=gate,
            market_condition=condition,
            composite_score=0,
            recommendation=RecommendationLabel.EXCLUDED,
        )

    scores = calculate_layer_scores(stock, view, sectors)
    weights = get_dynamic_weights(condition)
    composite, label = calculate_composite(scores, weights)

    logger.debug(
        f"{stock.code or stock.name}: composite {composite:.0f} ({label.value}), "
        f"safety {scores.risk.score:.1f}"
    )

    return CompositeResult(
        stock=stock,
        gate=gate,
        market_condition=condition,
        composite_score=composite,
        recommendation=label,
        scores=scores,
        weights=weights,
    )


def get_layer_contributions(result: CompositeResult) -> dict[str, float]:
    """
    Weighted contribution of each layer to the composite.

    Args:
        result: Scored CompositeResult

    Returns:
        Dict of layer name -> weight * score (empty for excluded stocks)
    """
    if result.scores is None or result.weights is None:
        return {}

    w = result.weights
    s = result.scores
    return {
        "risk": w.safety * s.risk.score,
        "fundamental": w.fundamental * s.fundamental.score,
        "valuation": w.valuation * s.valuation.score,
        "momentum": w.momentum * s.momentum.score,
        "external": w.external * s.external.score,
    }
