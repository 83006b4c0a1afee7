"""
Recommendation records.

A Recommendation is created once per analysis run, persisted, and kept in
history keyed by its week id. to_dict() is the stable JSON surface read by
the store, the dashboard and any API consumer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from stockify.core.types import (
    MarketCondition,
    PortfolioAllocation,
    RecommendationLabel,
    WeightValidation,
)


@dataclass(frozen=True)
class TopPick:
    """An allocated stock with its strengths, risks and score breakdown."""

    name: str
    code: str
    weight: float
    price: float
    industry: str
    composite_score: float
    recommendation: RecommendationLabel
    strengths: tuple[str, ...] = ()
    risks: tuple[str, ...] = ()
    score_breakdown: dict[str, float] = field(default_factory=dict)
    ai_score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        breakdown = dict(self.score_breakdown)
        data: dict[str, Any] = {
            "name": self.name,
            "code": self.code,
            "weight": self.weight,
            "price": self.price,
            "industry": self.industry,
            "compositeScore": self.composite_score,
            "recommendation": self.recommendation.value,
            "strengths": list(self.strengths),
            "risks": list(self.risks),
            "scoreBreakdown": breakdown,
        }
        if self.ai_score is not None:
            data["aiScore"] = self.ai_score
            breakdown["ai"] = self.ai_score
        return data


@dataclass(frozen=True)
class WatchlistEntry:
    """A gate-passed stock that scored well but was not allocated."""

    name: str
    code: str
    industry: str
    composite_score: float
    recommendation: RecommendationLabel
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "code": self.code,
            "industry": self.industry,
            "compositeScore": self.composite_score,
            "recommendation": self.recommendation.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ExclusionReason:
    """Count of gate failures sharing one category."""

    reason: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"reason": self.reason, "count": self.count}


@dataclass(frozen=True)
class Recommendation:
    """
    Per-run output aggregate.

    Identified by week id (rec_<weekId>); a later run in the same week
    supersedes it in history.
    """

    id: str
    week_id: str
    timestamp: datetime
    market_condition: MarketCondition
    summary: dict[str, Any]
    allocation: PortfolioAllocation
    top_picks: tuple[TopPick, ...] = ()
    watchlist: tuple[WatchlistEntry, ...] = ()
    excluded_count: int = 0
    exclusion_reasons: tuple[ExclusionReason, ...] = ()
    validation: WeightValidation = field(default_factory=lambda: WeightValidation(valid=True))
    insights: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "id": self.id,
            "weekId": self.week_id,
            "timestamp": self.timestamp.isoformat(),
            "marketCondition": self.market_condition.value,
            "summary": dict(self.summary),
            "allocation": {
                "stocks": [s.to_dict() for s in self.allocation.stocks],
                "totalEquity": self.allocation.total_weight,
                "cash": self.allocation.cash_allocation,
                "sectorBreakdown": [s.to_dict() for s in self.allocation.sector_allocation],
            },
            "topPicks": [p.to_dict() for p in self.top_picks],
            "watchlist": [w.to_dict() for w in self.watchlist],
            "excluded": {
                "count": self.excluded_count,
                "reasons": [r.to_dict() for r in self.exclusion_reasons],
            },
            "validation": self.validation.to_dict(),
        }
        if self.insights is not None:
            data["insights"] = self.insights
        return data


@dataclass(frozen=True)
class WeightChange:
    """A position whose weight moved by more than the change threshold."""

    code: str
    name: str
    previous_weight: float
    current_weight: float
    change: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "previousWeight": self.previous_weight,
            "currentWeight": self.current_weight,
            "change": self.change,
        }


@dataclass(frozen=True)
class RecommendationDiff:
    """Changes between two recommendations."""

    new: tuple[dict[str, Any], ...] = ()
    removed: tuple[dict[str, Any], ...] = ()
    weight_changes: tuple[WeightChange, ...] = ()
    market_condition_change: dict[str, str] | None = None

    @property
    def has_changes(self) -> bool:
        return bool(
            self.new or self.removed or self.weight_changes or self.market_condition_change
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "new": list(self.new),
            "removed": list(self.removed),
            "weightChanges": [c.to_dict() for c in self.weight_changes],
            "marketConditionChange": self.market_condition_change,
        }
