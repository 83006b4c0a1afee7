"""
Weekly pipeline for Stockify.

Orchestrates one full analysis run:
1. Load and validate the CSV snapshot
2. Score the universe (regime, gates, five layers, composite)
3. Size the portfolio and assemble the recommendation
4. Enrich top picks with the qualitative score (optional)
5. Diff against the previous week and persist
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from stockify.core.config import Settings, get_settings
from stockify.core.exceptions import ConfigurationError
from stockify.core.types import ScoringRun
from stockify.ingest.loader import get_data_summary, load_stock_data, validate_stock_data
from stockify.ingest.qualitative import GroqQualitativeScorer, QualitativeScorer
from stockify.recommendation.analysis import StockAnalysis, analyze_stock, find_stock
from stockify.recommendation.assembler import RecommendationAssembler
from stockify.recommendation.diff import compare_recommendations
from stockify.recommendation.models import Recommendation, RecommendationDiff
from stockify.scoring.engine import ScoringEngine, generate_scoring_stats
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig
from stockify.storage.store import RecommendationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyRunResult:
    """Everything one weekly run produced."""

    recommendation: Recommendation
    diff: RecommendationDiff
    scoring: ScoringRun
    stats: dict[str, Any]
    data_summary: dict[str, Any]
    dropped_rows: int = 0


class WeeklyPipeline:
    """
    Weekly Stockify analysis pipeline.

    This is the main entry point for a run. Wires the loader, scoring
    engine, assembler and store together.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        sectors: SectorConfig | None = None,
        store: RecommendationStore | None = None,
        scorer: QualitativeScorer | None = None,
        use_qualitative: bool = True,
    ) -> None:
        """
        Initialize weekly pipeline.

        Args:
            settings: Application settings
            sectors: Sector tables (config/sectors.yaml if present, else built-in)
            store: History store (under settings.db_dir if not provided)
            scorer: Qualitative scorer (Groq client when enabled and keyed)
            use_qualitative: Set False to skip enrichment entirely
        """
        self.settings = settings or get_settings()
        self.sectors = sectors or self._load_sectors()
        self.store = store or RecommendationStore(self.settings.db_dir)

        if scorer is None and use_qualitative and self.settings.qualitative_enabled:
            scorer = GroqQualitativeScorer(settings=self.settings)
        self.scorer = scorer if use_qualitative else None

        self.engine = ScoringEngine(sectors=self.sectors)
        self.assembler = RecommendationAssembler(
            sectors=self.sectors,
            scorer=self.scorer,
            qualitative_timeout=self.settings.qualitative_timeout,
        )

    def __enter__(self) -> "WeeklyPipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the qualitative scorer's HTTP session, if it holds one."""
        close = getattr(self.scorer, "close", None)
        if callable(close):
            close()

    def _load_sectors(self) -> SectorConfig:
        """Sector tables from YAML when available."""
        path = self.settings.sectors_file
        if not path.exists():
            logger.debug(f"No sector config at {path}, using built-in tables")
            return DEFAULT_SECTOR_CONFIG
        try:
            return SectorConfig.from_yaml(path)
        except ConfigurationError as e:
            logger.error(f"Invalid sector config {path}: {e}")
            raise

    async def run(
        self,
        csv_path: Path | str,
        run_at: datetime | None = None,
        persist: bool = True,
    ) -> WeeklyRunResult:
        """
        Run the weekly analysis.

        Args:
            csv_path: CSV snapshot to analyze
            run_at: Run timestamp (default: now)
            persist: Save the recommendation to the store

        Returns:
            WeeklyRunResult
        """
        run_at = run_at or datetime.now()
        logger.info(f"Starting weekly analysis for {run_at:%Y-%m-%d} from {csv_path}")

        # Load and validate
        stocks = load_stock_data(csv_path)
        validation = validate_stock_data(stocks)
        universe = list(validation.valid)
        data_summary = get_data_summary(universe)

        # Score
        scoring = self.engine.score_all(universe)
        stats = generate_scoring_stats(scoring)

        # Assemble and enrich
        recommendation = await self.assembler.generate(scoring, run_at=run_at)

        # Diff against the last stored week before overwriting
        previous = self.store.get_previous(recommendation.week_id)
        diff = compare_recommendations(recommendation, previous)

        if persist:
            self.store.save(recommendation)

        logger.info(
            f"Weekly analysis {recommendation.week_id}: "
            f"{recommendation.market_condition.value}, "
            f"{len(recommendation.allocation.stocks)} positions, "
            f"{len(diff.new)} new / {len(diff.removed)} removed"
        )

        return WeeklyRunResult(
            recommendation=recommendation,
            diff=diff,
            scoring=scoring,
            stats=stats,
            data_summary=data_summary,
            dropped_rows=validation.dropped,
        )

    def analyze(self, csv_path: Path | str, query: str) -> StockAnalysis | None:
        """
        Deep analysis of one stock from the snapshot.

        Args:
            csv_path: CSV snapshot to search
            query: NSE code, BSE code or (part of) the company name

        Returns:
            StockAnalysis, or None if no row matches
        """
        stock = find_stock(load_stock_data(csv_path), query)
        if stock is None:
            logger.warning(f"Stock not found: {query}")
            return None
        return analyze_stock(stock, self.sectors)


def run_weekly_sync(
    csv_path: Path | str,
    run_at: datetime | None = None,
    use_qualitative: bool = True,
) -> WeeklyRunResult:
    """
    Synchronous wrapper for the weekly pipeline.

    Args:
        csv_path: CSV snapshot to analyze
        run_at: Run timestamp
        use_qualitative: Run qualitative enrichment when configured

    Returns:
        WeeklyRunResult
    """
    with WeeklyPipeline(use_qualitative=use_qualitative) as pipeline:
        return asyncio.run(pipeline.run(csv_path, run_at))
