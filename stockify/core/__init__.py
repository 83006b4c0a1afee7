"""Core types, constants, configuration, and exceptions for Stockify."""

from stockify.core.config import Settings, get_settings, load_yaml
from stockify.core.constants import (
    LAYER_NAMES,
    REGIME_WEIGHTS,
    TOP_PICKS_COUNT,
    WATCHLIST_COUNT,
)
from stockify.core.exceptions import (
    ConfigurationError,
    DataLoadError,
    EnrichmentError,
    InvalidInputError,
    StockifyError,
    StorageError,
)
from stockify.core.types import (
    CompositeResult,
    CompositeWeights,
    GateResult,
    LayerScore,
    LayerScores,
    MarketCondition,
    PortfolioAllocation,
    RecommendationLabel,
    RiskLevel,
    ScoringRun,
    SizingConfig,
    StockRecord,
)

__all__ = [
    # Types
    "CompositeResult",
    "CompositeWeights",
    "GateResult",
    "LayerScore",
    "LayerScores",
    "MarketCondition",
    "PortfolioAllocation",
    "RecommendationLabel",
    "RiskLevel",
    "ScoringRun",
    "SizingConfig",
    "StockRecord",
    # Constants
    "LAYER_NAMES",
    "REGIME_WEIGHTS",
    "TOP_PICKS_COUNT",
    "WATCHLIST_COUNT",
    # Config
    "Settings",
    "get_settings",
    "load_yaml",
    # Exceptions
    "ConfigurationError",
    "DataLoadError",
    "EnrichmentError",
    "InvalidInputError",
    "StockifyError",
    "StorageError",
]
