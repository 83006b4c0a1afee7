"""Tests for recommendation assembly, templates and the history diff."""

import json
from datetime import date, datetime

import pytest

from stockify.core.types import (
    AllocationEntry,
    CompositeResult,
    GateResult,
    LayerScore,
    LayerScores,
    MarketCondition,
    PortfolioAllocation,
    RecommendationLabel,
    RiskLevel,
)
from stockify.recommendation import RecommendationAssembler, compare_recommendations
from stockify.recommendation.assembler import build_watchlist, summarize_exclusions
from stockify.recommendation.insights import contrarian_picks, sector_trends
from stockify.recommendation.templates import get_risks, get_strengths, get_watchlist_reason
from stockify.recommendation.week import get_week_id, recommendation_id
from stockify.scoring.engine import ScoringEngine


def layered_result(stock, composite: float, **layer_scores: float) -> CompositeResult:
    """Gate-passed result with explicit layer scores (default 60)."""

    def layer(name: str) -> LayerScore:
        return LayerScore(name=name, score=layer_scores.get(name, 60.0), weight=1.0)

    return CompositeResult(
        stock=stock,
        gate=GateResult(passed=True),
        market_condition=MarketCondition.NEUTRAL,
        composite_score=composite,
        recommendation=RecommendationLabel.from_scores(composite, layer_scores.get("risk", 60.0)),
        scores=LayerScores(
            risk=layer("risk"),
            fundamental=layer("fundamental"),
            valuation=layer("valuation"),
            momentum=layer("momentum"),
            external=layer("external"),
        ),
    )


def held_entry(code: str) -> AllocationEntry:
    return AllocationEntry(
        name=f"{code} Ltd",
        nse_code=code,
        bse_code="",
        industry="Pharmaceuticals",
        sector_group="Healthcare",
        current_price=100.0,
        market_cap=5000.0,
        weight=10.0,
        composite_score=75,
        recommendation=RecommendationLabel.STRONG_BUY,
        scores={},
        risk_level=RiskLevel.LOW,
        conviction=45,
    )


def stored(week_id: str, condition: str, weights: dict[str, float]) -> dict:
    """Minimal stored recommendation dict."""
    return {
        "id": recommendation_id(week_id),
        "weekId": week_id,
        "marketCondition": condition,
        "allocation": {
            "stocks": [
                {"nseCode": code, "name": f"{code} Ltd", "weight": weight}
                for code, weight in weights.items()
            ]
        },
    }


class TestWeekId:
    """Tests for ISO week ids."""

    def test_mid_january(self):
        assert get_week_id(date(2024, 1, 15)) == "2024-W03"

    def test_datetime_accepted(self):
        assert get_week_id(datetime(2024, 1, 15, 23, 59)) == "2024-W03"

    def test_iso_year_boundaries(self):
        assert get_week_id(date(2024, 12, 30)) == "2025-W01"
        assert get_week_id(date(2021, 1, 1)) == "2020-W53"

    def test_recommendation_id(self):
        assert recommendation_id("2024-W03") == "rec_2024-W03"


class TestCompareRecommendations:
    """Tests for the week-over-week diff."""

    def test_first_run_everything_new(self):
        current = stored("2024-W03", "NEUTRAL", {"AAA": 10.0, "BBB": 8.0})

        diff = compare_recommendations(current, None)

        assert [row["nseCode"] for row in diff.new] == ["AAA", "BBB"]
        assert diff.removed == ()
        assert diff.weight_changes == ()
        assert diff.market_condition_change is None

    def test_changes(self):
        previous = stored(
            "2024-W02", "NEUTRAL", {"AAA": 10.0, "BBB": 8.0, "EEE": 5.0, "OLD": 4.0}
        )
        current = stored(
            "2024-W03", "BULLISH", {"AAA": 10.5, "BBB": 9.0, "EEE": 2.0, "NEW": 6.0}
        )

        diff = compare_recommendations(current, previous)

        assert [row["nseCode"] for row in diff.new] == ["NEW"]
        assert [row["nseCode"] for row in diff.removed] == ["OLD"]
        # AAA moved exactly 0.5 and is not reported
        assert [(c.code, c.change) for c in diff.weight_changes] == [("EEE", -3.0), ("BBB", 1.0)]
        assert diff.market_condition_change == {"from": "NEUTRAL", "to": "BULLISH"}
        assert diff.has_changes

    def test_identical_recommendations(self):
        rec = stored("2024-W03", "NEUTRAL", {"AAA": 10.0})

        diff = compare_recommendations(rec, rec)

        assert not diff.has_changes

    def test_bse_code_fallback(self):
        previous = {"allocation": {"stocks": [{"bseCode": "500001", "weight": 5.0}]}}
        current = {"allocation": {"stocks": [{"bseCode": "500001", "weight": 7.0}]}}

        diff = compare_recommendations(current, previous)

        assert diff.new == ()
        assert diff.weight_changes[0].code == "500001"

    def test_codeless_rows_keyed_by_name(self):
        previous = {
            "allocation": {
                "stocks": [
                    {"name": "Alpha Ltd", "weight": 5.0},
                    {"name": "Beta Ltd", "weight": 4.0},
                ]
            }
        }
        current = {
            "allocation": {
                "stocks": [
                    {"name": "Alpha Ltd", "weight": 7.0},
                    {"name": "Gamma Ltd", "weight": 3.0},
                ]
            }
        }

        diff = compare_recommendations(current, previous)

        assert [row["name"] for row in diff.new] == ["Gamma Ltd"]
        assert [row["name"] for row in diff.removed] == ["Beta Ltd"]
        assert [(c.code, c.change) for c in diff.weight_changes] == [("Alpha Ltd", 2.0)]


class TestTemplates:
    """Tests for strength, risk and watchlist texts."""

    def test_strengths_from_thresholds(self):
        scores = {"risk": 75, "fundamental": 72, "valuation": 50, "momentum": 65, "external": 40}

        assert get_strengths(scores, 68) == [
            "Low risk profile",
            "Strong fundamentals",
            "Positive momentum",
        ]

    def test_balanced_profile_fallback(self):
        scores = {"risk": 65, "fundamental": 65, "valuation": 65, "momentum": 55, "external": 55}

        assert get_strengths(scores, 60) == ["Balanced overall profile"]
        assert get_strengths(scores, 50) == []

    def test_risks(self):
        scores = {"risk": 40, "fundamental": 60, "valuation": 35, "momentum": 60, "external": 60}

        assert get_risks(scores, RiskLevel.HIGH) == [
            "Above average risk",
            "Valuation concerns",
            "Elevated overall risk",
        ]
        assert get_risks({"risk": 80, "momentum": 80, "valuation": 80}, RiskLevel.LOW) == []

    def test_watchlist_reason_order(self, healthy_stock):
        assert (
            get_watchlist_reason(layered_result(healthy_stock, 60, momentum=40))
            == "Good fundamentals, waiting for better entry point"
        )
        assert (
            get_watchlist_reason(layered_result(healthy_stock, 60, valuation=40))
            == "Quality stock but currently expensive"
        )
        assert (
            get_watchlist_reason(layered_result(healthy_stock, 60))
            == "Monitor for allocation opportunity"
        )


class TestWatchlistAndExclusions:
    """Tests for watchlist building and the exclusion histogram."""

    def test_watchlist_skips_allocated_and_weak(self, make_stock):
        results = [
            layered_result(make_stock(name="Held", nse_code="HELD"), 75),
            layered_result(make_stock(name="Next", nse_code="NEXT"), 58),
            layered_result(make_stock(name="Also", nse_code="ALSO"), 52),
            layered_result(make_stock(name="Weak", nse_code="WEAK"), 49),
        ]
        allocation = PortfolioAllocation(stocks=(held_entry("HELD"),), total_weight=10.0)

        watchlist = build_watchlist(results, allocation)

        assert [w.code for w in watchlist] == ["NEXT", "ALSO"]
        assert watchlist[0].reason == "Monitor for allocation opportunity"
        assert [w.code for w in build_watchlist(results, allocation, limit=1)] == ["NEXT"]

    def test_exclusion_reasons(self, make_stock):
        run = ScoringEngine().score_all(
            [
                make_stock(name="A", nse_code="A", market_cap=100.0),
                make_stock(name="B", nse_code="B", market_cap=150.0, promoter_holding=10.0),
                make_stock(name="C", nse_code="C", roce=1.0, roce_3y_avg=2.0),
            ]
        )

        reasons = summarize_exclusions(run.failed)

        assert reasons[0].reason == "Market cap too low"
        assert reasons[0].count == 2
        assert {r.reason for r in reasons} == {
            "Market cap too low",
            "Low promoter holding",
            "Profitability",
        }


class TestInsights:
    """Tests for sector trends and contrarian picks."""

    def test_sector_trends(self, make_stock):
        results = [
            layered_result(make_stock(name="P1", return_3m=10.0), 70),
            layered_result(make_stock(name="P2", return_3m=20.0), 60),
            layered_result(
                make_stock(name="S1", industry="Software Products", return_3m=30.0), 65
            ),
        ]

        trends = sector_trends(results)

        assert [t["sector"] for t in trends] == ["Technology", "Healthcare"]
        assert trends[1]["avgReturn3m"] == 15.0
        assert trends[1]["avgCompositeScore"] == 65
        assert trends[1]["stockCount"] == 2

    def test_contrarian_picks(self, make_stock):
        beaten = make_stock(name="Beaten", nse_code="BEAT", return_3m=-25.0)
        rising = make_stock(name="Rising", nse_code="RISE", return_3m=15.0)
        results = [
            layered_result(beaten, 62, fundamental=75, risk=60),
            layered_result(rising, 70, fundamental=80, risk=70),
        ]

        picks = contrarian_picks(results)

        assert [p["code"] for p in picks] == ["BEAT"]
        assert picks[0]["fundamentalScore"] == 75


class TestRecommendationAssembler:
    """Tests for building the recommendation."""

    @pytest.fixture
    def recommendation(self, mixed_universe, run_at):
        run = ScoringEngine().score_all(mixed_universe)
        return RecommendationAssembler().build(run, run_at=run_at)

    def test_identity(self, recommendation):
        assert recommendation.week_id == "2024-W03"
        assert recommendation.id == "rec_2024-W03"
        assert recommendation.market_condition == MarketCondition.NEUTRAL

    def test_summary(self, recommendation):
        summary = recommendation.summary

        assert summary["totalAnalyzed"] == 6
        assert summary["passedGates"] == 5
        assert summary["failedGates"] == 1
        assert summary["recommendedStocks"] == len(recommendation.allocation.stocks)
        assert 0 <= summary["averageScore"] <= 100

    def test_top_picks_follow_allocation(self, recommendation):
        allocated = [s.code for s in recommendation.allocation.stocks]
        picks = [p.code for p in recommendation.top_picks]

        assert picks == allocated[: len(picks)]
        for pick in recommendation.top_picks:
            assert set(pick.score_breakdown) == {
                "safety",
                "fundamental",
                "valuation",
                "momentum",
                "external",
            }
            assert pick.ai_score is None

    def test_exclusions(self, recommendation):
        assert recommendation.excluded_count == 1
        assert [r.to_dict() for r in recommendation.exclusion_reasons] == [
            {"reason": "Market cap too low", "count": 1}
        ]

    def test_allocation_checks_out(self, recommendation):
        allocation = recommendation.allocation

        assert recommendation.validation.valid
        assert allocation.total_weight + allocation.cash_allocation == pytest.approx(100.0)

    def test_serializable(self, recommendation):
        data = json.loads(json.dumps(recommendation.to_dict()))

        assert data["weekId"] == "2024-W03"
        assert data["marketCondition"] == "NEUTRAL"
        assert data["allocation"]["cash"] == recommendation.allocation.cash_allocation
        assert data["excluded"]["count"] == 1
        assert set(data["insights"]) == {"sectorTrends", "contrarianPicks"}
        for stock in data["allocation"]["stocks"]:
            assert {"compositeScore", "weight", "riskLevel"} <= set(stock)

    def test_insights_optional(self, mixed_universe, run_at):
        run = ScoringEngine().score_all(mixed_universe)

        recommendation = RecommendationAssembler(include_insights=False).build(run, run_at)

        assert recommendation.insights is None
        assert "insights" not in recommendation.to_dict()
