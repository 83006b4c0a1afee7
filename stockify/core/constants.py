"""
Constants for Stockify.

These values are FROZEN conceptual allocations, not fitted parameters.
Every weight table must sum to 1.0.
"""

from typing import Final

# =============================================================================
# LAYER COMPONENT WEIGHTS (FROZEN)
# =============================================================================

RISK_WEIGHTS: Final[dict[str, float]] = {
    "fundamentalRisk": 0.35,  # Financial stability
    "volatilityRisk": 0.25,  # Drawdown and DMA deviation
    "liquidityRisk": 0.15,  # Ability to exit
    "governanceRisk": 0.15,  # Promoter behaviour
    "concentrationRisk": 0.10,  # Business model concentration
}

FUNDAMENTAL_WEIGHTS: Final[dict[str, float]] = {
    "earningsPower": 0.30,
    "growthQuality": 0.25,
    "cashConversion": 0.20,
    "competitiveMoat": 0.15,
    "capitalAllocation": 0.10,
}

VALUATION_WEIGHTS: Final[dict[str, float]] = {
    "relativeValue": 0.35,
    "intrinsicValueGap": 0.30,
    "valueTrapFilter": 0.20,
    "catalystScore": 0.15,
}

MOMENTUM_WEIGHTS: Final[dict[str, float]] = {
    "trendQuality": 0.30,
    "pullbackQuality": 0.30,
    "volumeAnalysis": 0.25,
    "regimeFilter": 0.15,
}

EXTERNAL_WEIGHTS: Final[dict[str, float]] = {
    "sectorMomentum": 0.40,
    "peerPerformance": 0.30,
    "macroSensitivity": 0.30,
}

# =============================================================================
# REGIME-DEPENDENT COMPOSITE WEIGHTS (FROZEN)
# =============================================================================
# Keys are layer names; "safety" is the risk layer (higher = safer).

REGIME_WEIGHTS: Final[dict[str, dict[str, float]]] = {
    "BEARISH": {
        "safety": 0.40,
        "fundamental": 0.25,
        "valuation": 0.25,
        "momentum": 0.05,
        "external": 0.05,
    },
    "BULLISH": {
        "safety": 0.20,
        "fundamental": 0.30,
        "valuation": 0.20,
        "momentum": 0.20,
        "external": 0.10,
    },
    "NEUTRAL": {
        "safety": 0.30,
        "fundamental": 0.25,
        "valuation": 0.20,
        "momentum": 0.15,
        "external": 0.10,
    },
}

for _table in (
    RISK_WEIGHTS,
    FUNDAMENTAL_WEIGHTS,
    VALUATION_WEIGHTS,
    MOMENTUM_WEIGHTS,
    EXTERNAL_WEIGHTS,
    *REGIME_WEIGHTS.values(),
):
    assert abs(sum(_table.values()) - 1.0) < 1e-9, "Weights must sum to 1.0"

# =============================================================================
# RISK LAYER
# =============================================================================

TAIL_RISK_FLOOR: Final[float] = 30.0  # Worst component below this is penalized
TAIL_RISK_MULTIPLIER: Final[float] = 0.5

# =============================================================================
# MARKET REGIME DETECTION
# =============================================================================

BULLISH_AVG_RETURN: Final[float] = 10.0  # Avg 3-month return (%) must exceed
BULLISH_POSITIVE_RATIO: Final[float] = 0.7
BEARISH_AVG_RETURN: Final[float] = -10.0  # Avg 3-month return (%) must be below
BEARISH_POSITIVE_RATIO: Final[float] = 0.3

# Momentum regime filter compares against this 3-month market return (%)
ASSUMED_MARKET_RETURN_3M: Final[float] = -5.0

# =============================================================================
# QUALITY GATES
# =============================================================================

MIN_PROMOTER_HOLDING: Final[float] = 26.0  # %
PROMOTER_SELLING_WARN: Final[float] = -2.0  # Change in promoter holding (pts)
MIN_MARKET_CAP_CR: Final[float] = 300.0  # Rs Crore
MIN_AVG_VOLUME: Final[float] = 5000.0  # 1-month average volume
PROFITABILITY_CHECKS_REQUIRED: Final[int] = 2  # Out of 3
AVG_ROCE_THRESHOLD_FACTOR: Final[float] = 0.8

# =============================================================================
# POSITION SIZING DEFAULTS
# =============================================================================

# (minimum safety score, per-stock cap %); below the last tier the floor applies
SAFETY_CAP_TIERS: Final[tuple[tuple[float, float], ...]] = (
    (65.0, 10.0),
    (55.0, 8.0),
)
TOP_SAFETY_TIER: Final[float] = 75.0  # Safety at or above gets max_single_stock
FLOOR_STOCK_CAP: Final[float] = 5.0
MIN_SAFETY_MULTIPLIER: Final[float] = 0.5  # Conviction is at most halved
TOP_N_CONCENTRATION: Final[int] = 5

# Validator tolerances (self-check on the engine's own output)
VALIDATION_TOTAL_TOLERANCE: Final[float] = 1.0
VALIDATION_MAX_SECTOR: Final[float] = 26.0
VALIDATION_MAX_STOCK: Final[float] = 13.0
VALIDATION_MAX_TOP5: Final[float] = 52.0

# =============================================================================
# RECOMMENDATION ASSEMBLY
# =============================================================================

TOP_PICKS_COUNT: Final[int] = 20
WATCHLIST_COUNT: Final[int] = 10
WATCHLIST_MIN_SCORE: Final[float] = 50.0
TOP_SCORERS_COUNT: Final[int] = 10  # Also the averageScore sample in the summary
WEIGHT_CHANGE_THRESHOLD: Final[float] = 0.5  # pts
HISTORY_WEEKS_RETAINED: Final[int] = 52
STOCK_HISTORY_ROWS_RETAINED: Final[int] = 1000

# Qualitative enrichment blend
NEUTRAL_QUALITATIVE_SCORE: Final[float] = 50.0
QUANT_BLEND_WEIGHT: Final[float] = 0.8
QUALITATIVE_BLEND_WEIGHT: Final[float] = 0.2

# =============================================================================
# LAYER NAMES
# =============================================================================

LAYER_NAMES: Final[tuple[str, ...]] = (
    "risk",
    "fundamental",
    "valuation",
    "momentum",
    "external",
)
