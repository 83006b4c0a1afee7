"""
Recommendation assembly for Stockify.

Packages one scoring run into a Recommendation:
1. Size the portfolio and self-check the weights
2. Pick the top allocated stocks with strengths and risks
3. Build the watchlist and the exclusion-reason histogram
4. Optionally enrich top picks with a qualitative score (async)

The qualitative scorer is an injected, fallible side channel. Every call
is time-bounded; a failure, timeout or empty answer degrades to the
neutral score and never fails the run.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from stockify.core.constants import (
    NEUTRAL_QUALITATIVE_SCORE,
    QUALITATIVE_BLEND_WEIGHT,
    QUANT_BLEND_WEIGHT,
    TOP_PICKS_COUNT,
    WATCHLIST_COUNT,
    WATCHLIST_MIN_SCORE,
)
from stockify.core.numeric import round_half_up
from stockify.core.types import (
    AllocationEntry,
    CompositeResult,
    PortfolioAllocation,
    ScoringRun,
    SizingConfig,
)
from stockify.ingest.qualitative import QualitativeScorer
from stockify.portfolio import calculate_portfolio_weights, validate_weights
from stockify.recommendation.insights import build_insights
from stockify.recommendation.models import (
    ExclusionReason,
    Recommendation,
    TopPick,
    WatchlistEntry,
)
from stockify.recommendation.templates import get_risks, get_strengths, get_watchlist_reason
from stockify.recommendation.week import get_week_id, recommendation_id
from stockify.scoring.engine import generate_scoring_stats
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)

DEFAULT_QUALITATIVE_TIMEOUT = 20.0
MAX_CONCURRENT_QUALITATIVE = 4


class RecommendationAssembler:
    """
    Builds Recommendations from scoring runs.

    Example:
        assembler = RecommendationAssembler(scorer=GroqQualitativeScorer())
        recommendation = await assembler.generate(run, run_at=datetime.now())
    """

    def __init__(
        self,
        sectors: SectorConfig | None = None,
        sizing: SizingConfig | None = None,
        scorer: QualitativeScorer | None = None,
        qualitative_timeout: float = DEFAULT_QUALITATIVE_TIMEOUT,
        top_picks_count: int = TOP_PICKS_COUNT,
        watchlist_count: int = WATCHLIST_COUNT,
        include_insights: bool = True,
    ) -> None:
        """
        Initialize the assembler.

        Args:
            sectors: Sector lookup tables
            sizing: Position sizing limits
            scorer: Optional qualitative scorer for top-pick enrichment
            qualitative_timeout: Per-call timeout in seconds
            top_picks_count: Number of top picks
            watchlist_count: Maximum watchlist size
            include_insights: Attach sector trends and contrarian picks
        """
        self.sectors = sectors or DEFAULT_SECTOR_CONFIG
        self.sizing = sizing or SizingConfig()
        self.scorer = scorer
        self.qualitative_timeout = qualitative_timeout
        self.top_picks_count = top_picks_count
        self.watchlist_count = watchlist_count
        self.include_insights = include_insights

    def build(self, run: ScoringRun, run_at: datetime | None = None) -> Recommendation:
        """
        Assemble a Recommendation without qualitative enrichment.

        Args:
            run: Scoring run
            run_at: Run timestamp (default: now)

        Returns:
            Recommendation
        """
        run_at = run_at or datetime.now()
        week_id = get_week_id(run_at)

        stats = generate_scoring_stats(run)
        allocation = calculate_portfolio_weights(run.passed, self.sizing, self.sectors)
        validation = validate_weights(allocation)

        top_scores = [t["score"] for t in stats["topScorers"]]
        summary = {
            "totalAnalyzed": run.total,
            "passedGates": len(run.passed),
            "failedGates": len(run.failed),
            "recommendedStocks": len(allocation.stocks),
            "averageScore": (
                round_half_up(sum(top_scores) / len(top_scores)) if top_scores else 0
            ),
        }

        recommendation = Recommendation(
            id=recommendation_id(week_id),
            week_id=week_id,
            timestamp=run_at,
            market_condition=run.market_condition,
            summary=summary,
            allocation=allocation,
            top_picks=tuple(
                build_top_pick(e) for e in allocation.stocks[: self.top_picks_count]
            ),
            watchlist=build_watchlist(run.passed, allocation, self.watchlist_count),
            excluded_count=len(run.failed),
            exclusion_reasons=summarize_exclusions(run.failed),
            validation=validation,
            insights=build_insights(run.passed, self.sectors) if self.include_insights else None,
        )

        logger.info(
            f"Recommendation {recommendation.id}: {len(allocation.stocks)} positions, "
            f"{allocation.cash_allocation:.1f}% cash, "
            f"{len(recommendation.watchlist)} on watchlist"
        )
        return recommendation

    async def generate(
        self,
        run: ScoringRun,
        run_at: datetime | None = None,
    ) -> Recommendation:
        """
        Assemble a Recommendation and enrich its top picks.

        Args:
            run: Scoring run
            run_at: Run timestamp (default: now)

        Returns:
            Recommendation (unenriched if no scorer is configured)
        """
        return await self.enrich(self.build(run, run_at))

    async def enrich(self, recommendation: Recommendation) -> Recommendation:
        """
        Blend qualitative scores into the top picks.

        Enriched composite = 80% quantitative + 20% qualitative, rounded;
        top picks are re-sorted and allocation rows pick up aiScore.

        Args:
            recommendation: Recommendation to enrich

        Returns:
            New Recommendation
        """
        if self.scorer is None or not recommendation.top_picks:
            return recommendation

        logger.info(f"Running qualitative scoring on {len(recommendation.top_picks)} top picks")
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_QUALITATIVE)
        ai_scores = await asyncio.gather(
            *(self._qualitative_score(p, semaphore) for p in recommendation.top_picks)
        )

        picks = [
            replace(
                pick,
                ai_score=ai_score,
                composite_score=blend_scores(pick.composite_score, ai_score),
            )
            for pick, ai_score in zip(recommendation.top_picks, ai_scores)
        ]
        picks.sort(key=lambda p: p.composite_score, reverse=True)

        # Codeless rows are matched by name
        by_key = {p.code or p.name: p for p in picks}
        stocks = []
        for entry in recommendation.allocation.stocks:
            pick = by_key.get(entry.code or entry.name)
            if pick is not None:
                entry = replace(
                    entry, composite_score=pick.composite_score, ai_score=pick.ai_score
                )
            stocks.append(entry)

        return replace(
            recommendation,
            top_picks=tuple(picks),
            allocation=replace(recommendation.allocation, stocks=tuple(stocks)),
        )

    async def _qualitative_score(
        self,
        pick: TopPick,
        semaphore: asyncio.Semaphore,
    ) -> float:
        """One bounded qualitative call; any failure yields the neutral score."""
        async with semaphore:
            try:
                score = await asyncio.wait_for(
                    self.scorer.score(pick.name, pick.industry),
                    timeout=self.qualitative_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Qualitative scoring timed out for {pick.name} "
                    f"after {self.qualitative_timeout:.0f}s"
                )
                return NEUTRAL_QUALITATIVE_SCORE
            except Exception as e:
                logger.warning(f"Qualitative scoring failed for {pick.name}: {e}")
                return NEUTRAL_QUALITATIVE_SCORE

        if score is None:
            return NEUTRAL_QUALITATIVE_SCORE
        return float(score)


def blend_scores(composite: float, ai_score: float) -> float:
    """80/20 blend of quantitative composite and qualitative score, rounded."""
    return round_half_up(composite * QUANT_BLEND_WEIGHT + ai_score * QUALITATIVE_BLEND_WEIGHT)


def build_top_pick(entry: AllocationEntry) -> TopPick:
    """Top pick with strengths, risks and layer breakdown for one position."""
    scores = entry.scores
    return TopPick(
        name=entry.name,
        code=entry.code,
        weight=entry.weight,
        price=entry.current_price,
        industry=entry.industry,
        composite_score=entry.composite_score,
        recommendation=entry.recommendation,
        strengths=tuple(get_strengths(scores, entry.composite_score)),
        risks=tuple(get_risks(scores, entry.risk_level)),
        score_breakdown={
            "safety": scores["risk"],
            "fundamental": scores["fundamental"],
            "valuation": scores["valuation"],
            "momentum": scores["momentum"],
            "external": scores["external"],
        },
    )


def build_watchlist(
    passed: Sequence[CompositeResult],
    allocation: PortfolioAllocation,
    limit: int = WATCHLIST_COUNT,
) -> tuple[WatchlistEntry, ...]:
    """
    Well-scored gate-passed stocks that did not make the allocation.

    Args:
        passed: Ranked gate-passed results
        allocation: Final allocation
        limit: Maximum entries

    Returns:
        Watchlist in rank order
    """
    allocated = {s.code or s.name for s in allocation.stocks}
    candidates = [
        r
        for r in passed
        if (r.code or r.name) not in allocated and r.composite_score >= WATCHLIST_MIN_SCORE
    ]

    return tuple(
        WatchlistEntry(
            name=r.name,
            code=r.code,
            industry=r.industry,
            composite_score=r.composite_score,
            recommendation=r.recommendation,
            reason=get_watchlist_reason(r),
        )
        for r in candidates[:limit]
    )


def summarize_exclusions(failed: Sequence[CompositeResult]) -> tuple[ExclusionReason, ...]:
    """Gate-failure categories (text before the first ":"), most common first."""
    counts = Counter(
        failure.split(":")[0] for r in failed for failure in r.gate.failures
    )
    return tuple(ExclusionReason(reason, count) for reason, count in counts.most_common())
