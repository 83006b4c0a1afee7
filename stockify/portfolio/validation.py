"""
Allocation self-check.

Re-checks the sizing invariants on the engine's own output. Violations are
reported and logged as warnings, never raised: this is a monitoring aid,
not an enforcement gate.
"""

import logging

from stockify.core.constants import (
    TOP_N_CONCENTRATION,
    VALIDATION_MAX_SECTOR,
    VALIDATION_MAX_STOCK,
    VALIDATION_MAX_TOP5,
    VALIDATION_TOTAL_TOLERANCE,
)
from stockify.core.numeric import round_half_up
from stockify.core.types import PortfolioAllocation, WeightValidation

logger = logging.getLogger(__name__)


def validate_weights(allocation: PortfolioAllocation) -> WeightValidation:
    """
    Check an allocation against the sizing limits (with tolerance).

    Checks:
        - Summed weights match the reported total within 1pt
        - No sector group above 26%
        - No single stock above 13%
        - Top 5 positions at most 52%

    Args:
        allocation: PortfolioAllocation to check

    Returns:
        WeightValidation with issues and a summary
    """
    issues: list[str] = []

    total = sum(s.weight for s in allocation.stocks)
    if abs(total - allocation.total_weight) > VALIDATION_TOTAL_TOLERANCE:
        issues.append(
            f"Weight mismatch: calculated {total:.1f}, reported {allocation.total_weight}"
        )

    for sector in allocation.sector_allocation:
        if sector.weight > VALIDATION_MAX_SECTOR:
            issues.append(f"Sector {sector.sector} exceeds 25% limit at {sector.weight}%")

    for stock in allocation.stocks:
        if stock.weight > VALIDATION_MAX_STOCK:
            issues.append(f"Stock {stock.code} exceeds 12% limit at {stock.weight}%")

    ranked = sorted((s.weight for s in allocation.stocks), reverse=True)
    top_weight = sum(ranked[:TOP_N_CONCENTRATION])
    if top_weight > VALIDATION_MAX_TOP5:
        issues.append(f"Top 5 concentration {top_weight:.1f}% exceeds 50% limit")

    for issue in issues:
        logger.warning(f"Allocation check: {issue}")

    return WeightValidation(
        valid=not issues,
        issues=tuple(issues),
        summary={
            "stockCount": len(allocation.stocks),
            "totalWeight": allocation.total_weight,
            "cashAllocation": allocation.cash_allocation,
            "sectorCount": len(allocation.sector_allocation),
            "top5Weight": round_half_up(top_weight, 1),
        },
    )
