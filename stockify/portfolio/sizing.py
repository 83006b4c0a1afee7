"""
Position sizing engine for Stockify.

Turns ranked composite results into bounded portfolio weights:

1. Eligibility: gate-passed, composite >= 45, top 20 by score
2. Conviction = composite * max(0.5, safety/100)
3. Raw weight: conviction share of the 90% equity target
4. Per-stock cap by safety tier (12/10/8/5%)
5. Sector cap: bounded fixed-point pass (at most 10 iterations)
6. Top-5 cap: scale the five largest together
7. Prune weights below 2% (mass not redistributed here)
8. Normalize toward the target without breaching any ceiling, round down
   to one decimal, absorb the rounding residual in the largest position
   with headroom under every ceiling
9. Cash = 100 - equity

Design Rule:
    Caps are ceilings. Normalization scales every surviving weight by one
    common factor, the largest factor that keeps every per-stock, sector
    and top-5 ceiling intact. Equity that cannot be placed stays in cash.

All weights live in one numpy vector during the capping passes.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np

from stockify.core.constants import (
    FLOOR_STOCK_CAP,
    MIN_SAFETY_MULTIPLIER,
    SAFETY_CAP_TIERS,
    TOP_N_CONCENTRATION,
    TOP_SAFETY_TIER,
)
from stockify.core.numeric import round_half_up
from stockify.core.types import (
    AllocationEntry,
    CompositeResult,
    PortfolioAllocation,
    RiskLevel,
    SectorWeight,
    SizingConfig,
)
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)

# Smallest step representable after rounding to one decimal
WEIGHT_STEP = 0.1

# Float slack when comparing rounded weights against ceilings
CEILING_TOLERANCE = 1e-9


def stock_weight_cap(safety_score: float, config: SizingConfig) -> float:
    """
    Per-stock ceiling for a safety score.

    Args:
        safety_score: Risk-layer score (higher = safer)
        config: Sizing limits

    Returns:
        Maximum weight in %
    """
    if safety_score >= TOP_SAFETY_TIER:
        return config.max_single_stock
    for floor, cap in SAFETY_CAP_TIERS:
        if safety_score >= floor:
            return min(cap, config.max_single_stock)
    return min(FLOOR_STOCK_CAP, config.max_single_stock)


def calculate_conviction(result: CompositeResult) -> float:
    """Composite score scaled down (at most halved) for low safety."""
    return result.composite_score * max(MIN_SAFETY_MULTIPLIER, result.safety_score / 100)


def select_eligible(
    scored: Sequence[CompositeResult],
    config: SizingConfig,
) -> list[CompositeResult]:
    """
    Gate-passed stocks above the minimum composite, best first, capped in count.

    Args:
        scored: Composite results (any order)
        config: Sizing limits

    Returns:
        Eligible results ranked by composite (stable)
    """
    eligible = [
        r
        for r in scored
        if r.passed and r.scores is not None and r.composite_score >= config.min_composite_score
    ]
    eligible = sorted(eligible, key=lambda r: r.composite_score, reverse=True)
    return eligible[: config.max_candidates]


def apply_sector_caps(
    weights: np.ndarray,
    sector_index: np.ndarray,
    max_per_sector: float,
    max_iterations: int,
) -> int:
    """
    Scale down overflowing sectors in place until none exceeds the cap.

    Each pass recomputes sector totals and scales every member of an
    overflowing sector by cap / total. Bounded by max_iterations.

    Args:
        weights: Weight vector (modified in place)
        sector_index: Sector id per position
        max_per_sector: Sector ceiling in %
        max_iterations: Hard upper bound on passes

    Returns:
        Number of passes run
    """
    n_sectors = int(sector_index.max()) + 1 if len(sector_index) else 0

    for iteration in range(1, max_iterations + 1):
        totals = np.bincount(sector_index, weights=weights, minlength=n_sectors)
        overflow = totals > max_per_sector
        if not overflow.any():
            return iteration

        factors = np.ones(n_sectors)
        factors[overflow] = max_per_sector / totals[overflow]
        weights *= factors[sector_index]

    logger.warning(f"Sector cap pass stopped after {max_iterations} iterations")
    return max_iterations


def apply_top_n_cap(weights: np.ndarray, max_top: float, n: int = TOP_N_CONCENTRATION) -> None:
    """Scale the n largest weights together (in place) if they exceed max_top."""
    order = np.argsort(-weights, kind="stable")
    top = order[:n]
    top_total = weights[top].sum()
    if top_total > max_top:
        weights[top] *= max_top / top_total


def feasible_scale(
    weights: np.ndarray,
    caps: np.ndarray,
    sector_index: np.ndarray,
    config: SizingConfig,
) -> float:
    """
    Largest common factor toward the equity target that breaks no ceiling.

    Args:
        weights: Surviving weights (all > 0)
        caps: Per-stock ceilings
        sector_index: Sector id per position
        config: Sizing limits

    Returns:
        Scale factor
    """
    total = weights.sum()
    limits = [config.target_equity_allocation / total, float((caps / weights).min())]

    sector_totals = np.bincount(sector_index, weights=weights)
    occupied = sector_totals > 0
    limits.append(float((config.max_per_sector / sector_totals[occupied]).min()))

    top_total = np.sort(weights)[::-1][:TOP_N_CONCENTRATION].sum()
    limits.append(config.max_top5 / top_total)

    return min(limits)


def floor_weight(weight: float) -> float:
    """Round a weight down to one decimal so no ceiling is crossed by rounding."""
    return math.floor(weight * 10 + 1e-6) / 10


def within_ceilings(
    weights: Sequence[float],
    caps: np.ndarray,
    sector_index: np.ndarray,
    config: SizingConfig,
) -> bool:
    """Whether every per-stock, sector and top-N ceiling holds."""
    w = np.asarray(weights, dtype=float)
    if (w > caps + CEILING_TOLERANCE).any():
        return False
    sector_totals = np.bincount(sector_index, weights=w)
    if (sector_totals > config.max_per_sector + CEILING_TOLERANCE).any():
        return False
    top_total = np.sort(w)[::-1][:TOP_N_CONCENTRATION].sum()
    return bool(top_total <= config.max_top5 + CEILING_TOLERANCE)


def absorb_residual(
    weights: list[float],
    caps: np.ndarray,
    sector_index: np.ndarray,
    config: SizingConfig,
    residual: float,
) -> float:
    """
    Push the rounding residual into the largest positions (in place).

    The residual moves in 0.1 steps to the largest position that can take
    a step without breaking its per-stock, sector or top-N ceiling. Steps
    that fit nowhere stay in cash.

    Args:
        weights: Rounded weights, largest first
        caps: Per-stock ceilings
        sector_index: Sector id per position
        config: Sizing limits
        residual: Equity still to place (>= 0)

    Returns:
        Residual left unplaced
    """
    steps = int(round_half_up(residual / WEIGHT_STEP))
    order = sorted(range(len(weights)), key=lambda i: weights[i], reverse=True)

    for i in order:
        while steps > 0:
            weights[i] = round_half_up(weights[i] + WEIGHT_STEP, 1)
            if not within_ceilings(weights, caps, sector_index, config):
                weights[i] = round_half_up(weights[i] - WEIGHT_STEP, 1)
                break
            steps -= 1

    left = round_half_up(max(steps, 0) * WEIGHT_STEP, 1)
    if left:
        logger.debug(f"No headroom for rounding residual {left:.1f}, left in cash")
    return left


def calculate_portfolio_weights(
    scored: Sequence[CompositeResult],
    config: SizingConfig | None = None,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> PortfolioAllocation:
    """
    Build a capped, normalized allocation from composite results.

    Args:
        scored: Composite results (typically ScoringRun.passed)
        config: Sizing limits (defaults if not provided)
        sectors: Sector lookup tables (sector groups)

    Returns:
        PortfolioAllocation sorted by weight descending; an empty, all-cash
        allocation when nothing is eligible
    """
    config = config or SizingConfig()
    eligible = select_eligible(scored, config)

    if not eligible:
        logger.info("No eligible stocks for allocation, holding 100% cash")
        return PortfolioAllocation()

    # Step 1-2: conviction and raw weights
    conviction = np.array([calculate_conviction(r) for r in eligible], dtype=float)
    total_conviction = conviction.sum()
    if total_conviction <= 0:
        logger.warning("Total conviction is zero, holding 100% cash")
        return PortfolioAllocation()

    weights = conviction / total_conviction * config.target_equity_allocation

    # Step 3: per-stock caps
    caps = np.array([stock_weight_cap(r.safety_score, config) for r in eligible])
    weights = np.minimum(weights, caps)

    # Step 4: sector caps
    groups = [sectors.sector_group(r.industry) for r in eligible]
    sector_names, sector_index = np.unique(groups, return_inverse=True)
    sector_index = sector_index.astype(int).ravel()
    passes = apply_sector_caps(
        weights, sector_index, config.max_per_sector, config.max_sector_iterations
    )
    logger.debug(f"Sector caps settled after {passes} pass(es) over {len(sector_names)} sectors")

    # Step 5: top-N concentration
    apply_top_n_cap(weights, config.max_top5)

    # Step 6: prune small positions
    keep = (weights >= config.min_stock_weight) & (weights > 0)
    excluded_count = int((~keep).sum())
    if excluded_count:
        logger.info(f"Pruned {excluded_count} position(s) below {config.min_stock_weight}%")

    if not keep.any():
        return PortfolioAllocation(excluded_count=excluded_count)

    kept = np.flatnonzero(keep)
    kept = kept[np.argsort(-weights[kept], kind="stable")]  # Largest first
    weights = weights[kept]
    caps = caps[kept]
    sector_index = sector_index[kept]

    # Step 7: normalize within the ceilings, round down, absorb residual
    scale = feasible_scale(weights, caps, sector_index, config)
    scaled = weights * scale
    reachable = round_half_up(float(scaled.sum()), 1)
    if reachable < config.target_equity_allocation:
        logger.info(
            f"Ceilings limit equity to {reachable:.1f}% "
            f"(target {config.target_equity_allocation:.0f}%), remainder held in cash"
        )

    final = [floor_weight(float(w)) for w in scaled]
    residual = round_half_up(reachable - sum(final), 1)
    absorb_residual(final, caps, sector_index, config, residual)

    # Step 8: cash
    equity = round_half_up(sum(final), 1)
    cash = round_half_up(100 - equity, 1)

    entries = [
        _build_entry(eligible[i], weight, groups[i], conviction[i])
        for i, weight in zip(kept.tolist(), final)
    ]
    entries.sort(key=lambda e: e.weight, reverse=True)

    allocation = PortfolioAllocation(
        stocks=tuple(entries),
        total_weight=equity,
        cash_allocation=cash,
        sector_allocation=calculate_sector_allocation(entries),
        excluded_count=excluded_count,
    )

    logger.info(
        f"Allocated {len(entries)} positions: {equity:.1f}% equity, {cash:.1f}% cash"
    )
    return allocation


def calculate_sector_allocation(
    entries: Sequence[AllocationEntry],
) -> tuple[SectorWeight, ...]:
    """Summed weight per sector group, largest first."""
    totals: dict[str, float] = {}
    for entry in entries:
        totals[entry.sector_group] = totals.get(entry.sector_group, 0.0) + entry.weight

    allocation = [SectorWeight(sector, round_half_up(w, 1)) for sector, w in totals.items()]
    allocation.sort(key=lambda s: s.weight, reverse=True)
    return tuple(allocation)


def _build_entry(
    result: CompositeResult,
    weight: float,
    sector_group: str,
    conviction: float,
) -> AllocationEntry:
    stock = result.stock
    return AllocationEntry(
        name=stock.name,
        nse_code=stock.nse_code,
        bse_code=stock.bse_code,
        industry=stock.industry,
        sector_group=sector_group,
        current_price=stock.current_price,
        market_cap=stock.market_cap,
        weight=weight,
        composite_score=result.composite_score,
        recommendation=result.recommendation,
        scores=result.scores.as_scores(),
        risk_level=RiskLevel.from_score(result.safety_score),
        conviction=round_half_up(float(conviction)),
        return_1w=stock.return_1w,
        return_1m=stock.return_1m,
        return_3m=stock.return_3m,
    )
