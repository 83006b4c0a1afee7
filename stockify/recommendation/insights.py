"""
Optional insights over composite results.

Pure post-processing: reads names, codes, industries, layer scores and
return series only. Never feeds back into scoring or sizing.
"""

from collections import defaultdict
from collections.abc import Sequence
from typing import Any

from stockify.core.numeric import round_half_up
from stockify.core.types import CompositeResult
from stockify.layers.valuation import count_trap_indicators
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

CONTRARIAN_MIN_FUNDAMENTAL = 60
CONTRARIAN_MIN_SAFETY = 50
CONTRARIAN_MAX_RETURN_3M = -10.0
CONTRARIAN_PICKS_COUNT = 10


def sector_trends(
    results: Sequence[CompositeResult],
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> list[dict[str, Any]]:
    """
    Average returns and composite per sector group.

    Args:
        results: Gate-passed composite results
        sectors: Sector lookup tables

    Returns:
        One row per sector group, strongest 3-month return first
    """
    grouped: dict[str, list[CompositeResult]] = defaultdict(list)
    for result in results:
        if result.passed:
            grouped[sectors.sector_group(result.industry)].append(result)

    rows = []
    for sector, members in grouped.items():
        n = len(members)
        rows.append(
            {
                "sector": sector,
                "stockCount": n,
                "avgReturn1w": round_half_up(sum(m.stock.return_1w for m in members) / n, 1),
                "avgReturn1m": round_half_up(sum(m.stock.return_1m for m in members) / n, 1),
                "avgReturn3m": round_half_up(sum(m.stock.return_3m for m in members) / n, 1),
                "avgCompositeScore": round_half_up(
                    sum(m.composite_score for m in members) / n
                ),
            }
        )

    rows.sort(key=lambda r: r["avgReturn3m"], reverse=True)
    return rows


def contrarian_picks(
    results: Sequence[CompositeResult],
    limit: int = CONTRARIAN_PICKS_COUNT,
) -> list[dict[str, Any]]:
    """
    Sound businesses whose price has fallen hard.

    Gate-passed, fundamental >= 60, safety >= 50, 3-month return <= -10%
    and no value-trap indicators.

    Args:
        results: Composite results
        limit: Maximum picks returned

    Returns:
        Picks sorted by fundamental score, best first
    """
    picks = [
        r
        for r in results
        if r.passed
        and r.scores is not None
        and r.scores.fundamental.score >= CONTRARIAN_MIN_FUNDAMENTAL
        and r.scores.risk.score >= CONTRARIAN_MIN_SAFETY
        and r.stock.return_3m <= CONTRARIAN_MAX_RETURN_3M
        and count_trap_indicators(r.stock) == 0
    ]
    picks.sort(key=lambda r: r.scores.fundamental.score, reverse=True)

    return [
        {
            "name": r.name,
            "code": r.code,
            "industry": r.industry,
            "compositeScore": r.composite_score,
            "fundamentalScore": r.scores.fundamental.score,
            "safetyScore": round_half_up(r.scores.risk.score),
            "return3m": r.stock.return_3m,
        }
        for r in picks[:limit]
    ]


def build_insights(
    results: Sequence[CompositeResult],
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> dict[str, Any]:
    """Sector trends and contrarian picks in one mapping."""
    return {
        "sectorTrends": sector_trends(results, sectors),
        "contrarianPicks": contrarian_picks(results),
    }
