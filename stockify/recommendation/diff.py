"""
History diff between two recommendations.

Works on Recommendation objects or on their stored dict form, so a fresh
run can be compared against the previous week loaded from the store.
"""

import logging
from collections.abc import Mapping
from typing import Any

from stockify.core.constants import WEIGHT_CHANGE_THRESHOLD
from stockify.core.numeric import round_half_up
from stockify.recommendation.models import Recommendation, RecommendationDiff, WeightChange

logger = logging.getLogger(__name__)

RecommendationLike = Recommendation | Mapping[str, Any]


def _as_dict(recommendation: RecommendationLike) -> Mapping[str, Any]:
    if isinstance(recommendation, Recommendation):
        return recommendation.to_dict()
    return recommendation


def _allocation_rows(recommendation: Mapping[str, Any]) -> list[dict[str, Any]]:
    return list(recommendation.get("allocation", {}).get("stocks", []))


def _row_code(row: Mapping[str, Any]) -> str:
    """NSE code, else BSE code, else the company name."""
    return row.get("nseCode") or row.get("bseCode") or row.get("name", "")


def compare_recommendations(
    current: RecommendationLike,
    previous: RecommendationLike | None,
) -> RecommendationDiff:
    """
    Compare the current allocation with the previous one.

    Args:
        current: This run's recommendation
        previous: Previous recommendation, or None for the first run

    Returns:
        RecommendationDiff with new and removed positions, weight changes
        above 0.5pt (largest move first) and any market regime change
    """
    current_data = _as_dict(current)
    current_rows = _allocation_rows(current_data)

    if previous is None:
        return RecommendationDiff(new=tuple(current_rows))

    previous_data = _as_dict(previous)
    previous_rows = _allocation_rows(previous_data)

    current_by_code = {_row_code(r): r for r in current_rows}
    previous_by_code = {_row_code(r): r for r in previous_rows}

    new = tuple(r for r in current_rows if _row_code(r) not in previous_by_code)
    removed = tuple(r for r in previous_rows if _row_code(r) not in current_by_code)

    changes: list[WeightChange] = []
    for row in current_rows:
        prior = previous_by_code.get(_row_code(row))
        if prior is None:
            continue
        change = row["weight"] - prior["weight"]
        if abs(change) > WEIGHT_CHANGE_THRESHOLD:
            changes.append(
                WeightChange(
                    code=_row_code(row),
                    name=row.get("name", ""),
                    previous_weight=prior["weight"],
                    current_weight=row["weight"],
                    change=round_half_up(change, 1),
                )
            )
    changes.sort(key=lambda c: abs(c.change), reverse=True)

    regime_change = None
    if current_data.get("marketCondition") != previous_data.get("marketCondition"):
        regime_change = {
            "from": previous_data.get("marketCondition"),
            "to": current_data.get("marketCondition"),
        }

    diff = RecommendationDiff(
        new=new,
        removed=removed,
        weight_changes=tuple(changes),
        market_condition_change=regime_change,
    )
    logger.info(
        f"Diff vs {previous_data.get('weekId')}: {len(new)} new, {len(removed)} removed, "
        f"{len(changes)} weight changes"
    )
    return diff
