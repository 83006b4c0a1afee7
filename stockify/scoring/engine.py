"""
Scoring engine for Stockify.

Orchestrates one scoring pass:
1. Detect the market regime over the full universe
2. Build the per-run universe view (sector and peer aggregates)
3. Gate and score every stock
4. Split passed/failed and rank passed stocks (stable sort)
"""

import logging
from collections import Counter
from collections.abc import Collection
from typing import Any

from stockify.core.constants import TOP_SCORERS_COUNT
from stockify.core.exceptions import InvalidInputError
from stockify.core.types import CompositeResult, ScoringRun, StockRecord
from stockify.layers import UniverseView
from stockify.scoring.composite import calculate_stock_score
from stockify.scoring.regime import detect_market_condition
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)

SCORE_RANGES: tuple[tuple[str, float, float], ...] = (
    ("Strong Buy (70+)", 70, float("inf")),
    ("Buy (60-70)", 60, 70),
    ("Accumulate (50-60)", 50, 60),
    ("Hold (40-50)", 40, 50),
    ("Watch (<40)", float("-inf"), 40),
)


class ScoringEngine:
    """
    Stockify scoring engine.

    Transforms a universe of StockRecords into ranked CompositeResults.
    Holds no state between runs apart from the injected sector config.
    """

    def __init__(self, sectors: SectorConfig | None = None) -> None:
        """
        Initialize scoring engine.

        Args:
            sectors: Sector lookup tables (built-in tables if not provided)
        """
        self.sectors = sectors or DEFAULT_SECTOR_CONFIG

    def score_all(self, stocks: Collection[StockRecord]) -> ScoringRun:
        """
        Score every stock in the universe.

        Args:
            stocks: Ordered collection of StockRecords

        Returns:
            ScoringRun with regime, ranked passed results and failed results

        Raises:
            InvalidInputError: If stocks is not a collection of StockRecords
        """
        universe = _validate_universe(stocks)

        condition = detect_market_condition(universe)
        view = UniverseView.build(universe, self.sectors)

        results = [
            calculate_stock_score(stock, view, condition, self.sectors) for stock in universe
        ]

        passed = [r for r in results if r.passed]
        failed = [r for r in results if not r.passed]
        # sorted() is stable: ties keep input order
        passed = sorted(passed, key=lambda r: r.composite_score, reverse=True)

        run = ScoringRun(
            market_condition=condition,
            passed=tuple(passed),
            failed=tuple(failed),
        )

        logger.info(
            f"Scored {run.total} stocks: {len(passed)} passed gates, "
            f"{len(failed)} excluded, avg composite {run.average_composite:.0f}"
        )
        return run

    def score_stock(
        self,
        stock: StockRecord,
        universe: Collection[StockRecord],
    ) -> CompositeResult:
        """
        Score one stock against a universe.

        Args:
            stock: Stock to score
            universe: Universe used for regime and peer aggregates

        Returns:
            CompositeResult
        """
        universe = _validate_universe(universe)
        condition = detect_market_condition(universe)
        view = UniverseView.build(universe, self.sectors)
        return calculate_stock_score(stock, view, condition, self.sectors)


def _validate_universe(stocks: Any) -> list[StockRecord]:
    """Reject anything that is not a collection of StockRecords."""
    if isinstance(stocks, (str, bytes, dict)) or not isinstance(stocks, Collection):
        raise InvalidInputError(
            "Stock universe must be a collection of StockRecord",
            received=type(stocks).__name__,
        )

    universe = list(stocks)
    for item in universe:
        if not isinstance(item, StockRecord):
            raise InvalidInputError(
                "Stock universe must contain only StockRecord items",
                received=type(item).__name__,
            )
    return universe


def generate_scoring_stats(run: ScoringRun) -> dict[str, Any]:
    """
    Summary statistics for a scoring run.

    Args:
        run: ScoringRun

    Returns:
        Dict with score-band distribution, passed count per industry group,
        failure-reason histogram and the top scorers
    """
    score_ranges = {
        label: sum(1 for r in run.passed if low <= r.composite_score < high)
        for label, low, high in SCORE_RANGES
    }

    sector_counts = Counter(r.stock.industry_group or "Other" for r in run.passed)

    # Reason is the text before the first ":"
    failure_reasons = Counter(
        failure.split(":")[0] for r in run.failed for failure in r.gate.failures
    )

    return {
        "marketCondition": run.market_condition.value,
        "scoreRanges": score_ranges,
        "sectorCounts": dict(sector_counts),
        "failureReasons": dict(failure_reasons),
        "topScorers": [
            {
                "name": r.name,
                "code": r.stock.nse_code,
                "score": r.composite_score,
                "recommendation": r.recommendation.value,
            }
            for r in run.passed[:TOP_SCORERS_COUNT]
        ],
    }
