"""Tests for position sizing and the allocation self-check."""

import numpy as np
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
    SectorWeight,
    SizingConfig,
    StockRecord,
)
from stockify.portfolio import calculate_portfolio_weights, stock_weight_cap, validate_weights
from stockify.portfolio.sizing import (
    absorb_residual,
    calculate_conviction,
    floor_weight,
    select_eligible,
    within_ceilings,
)
from stockify.scoring.regime import get_dynamic_weights

# One industry per sector group
INDUSTRIES = (
    "Pharmaceuticals",
    "Software Products",
    "Diversified FMCG",
    "Civil Construction",
    "Heavy Electrical Equipment",
    "Iron & Steel Products",
    "Auto Components & Equipments",
    "Non Banking Financial Company (NBFC)",
    "Unlisted Industry",
)


def scored_result(
    code: str,
    composite: float,
    safety: float,
    industry: str = "Pharmaceuticals",
) -> CompositeResult:
    """Gate-passed result with the given composite and safety scores."""
    stock = StockRecord(
        name=f"{code} Ltd", nse_code=code, industry=industry, current_price=100.0
    )
    scores = LayerScores(
        risk=LayerScore("risk", safety, 1.0),
        fundamental=LayerScore("fundamental", composite, 1.0),
        valuation=LayerScore("valuation", composite, 1.0),
        momentum=LayerScore("momentum", composite, 1.0),
        external=LayerScore("external", composite, 1.0),
    )
    return CompositeResult(
        stock=stock,
        gate=GateResult(passed=True),
        market_condition=MarketCondition.NEUTRAL,
        composite_score=composite,
        recommendation=RecommendationLabel.from_scores(composite, safety),
        scores=scores,
        weights=get_dynamic_weights(MarketCondition.NEUTRAL),
    )


def excluded_result(code: str) -> CompositeResult:
    return CompositeResult(
        stock=StockRecord(name=f"{code} Ltd", nse_code=code),
        gate=GateResult(passed=False, failures=("Market cap too low: ₹100 Cr (min: ₹300 Cr)",)),
        market_condition=MarketCondition.NEUTRAL,
        composite_score=0,
        recommendation=RecommendationLabel.EXCLUDED,
    )


def entry(code: str, weight: float, sector: str = "Healthcare") -> AllocationEntry:
    return AllocationEntry(
        name=f"{code} Ltd",
        nse_code=code,
        bse_code="",
        industry="Pharmaceuticals",
        sector_group=sector,
        current_price=100.0,
        market_cap=5000.0,
        weight=weight,
        composite_score=70,
        recommendation=RecommendationLabel.BUY,
        scores={},
        risk_level=RiskLevel.LOW,
        conviction=56,
    )


def assert_sums_to_hundred(allocation: PortfolioAllocation) -> None:
    total = sum(s.weight for s in allocation.stocks)
    assert total == pytest.approx(allocation.total_weight, abs=1e-6)
    assert allocation.total_weight + allocation.cash_allocation == pytest.approx(100.0)


class TestStockCaps:
    """Tests for per-stock ceilings."""

    @pytest.mark.parametrize(
        "safety, cap",
        [
            (95, 12.0),
            (75, 12.0),
            (74.9, 10.0),
            (65, 10.0),
            (60, 8.0),
            (55, 8.0),
            (54.9, 5.0),
            (0, 5.0),
        ],
    )
    def test_safety_tiers(self, safety, cap):
        assert stock_weight_cap(safety, SizingConfig()) == cap

    def test_tiers_respect_max_single_stock(self):
        config = SizingConfig(max_single_stock=9.0)

        assert stock_weight_cap(90, config) == 9.0
        assert stock_weight_cap(70, config) == 9.0
        assert stock_weight_cap(60, config) == 8.0

    def test_conviction_halved_at_most(self):
        assert calculate_conviction(scored_result("A", 80, 80)) == pytest.approx(64.0)
        assert calculate_conviction(scored_result("B", 80, 20)) == pytest.approx(40.0)


class TestEligibility:
    """Tests for candidate selection."""

    def test_filters_and_ranks(self):
        results = [
            scored_result("LOW", 44, 80),
            scored_result("MID", 60, 80),
            excluded_result("OUT"),
            scored_result("TOP", 85, 80),
        ]

        eligible = select_eligible(results, SizingConfig())

        assert [r.code for r in eligible] == ["TOP", "MID"]

    def test_candidate_limit(self):
        results = [scored_result(f"S{i:02d}", 90 - i, 80) for i in range(30)]

        eligible = select_eligible(results, SizingConfig())

        assert len(eligible) == 20
        assert eligible[-1].code == "S19"


class TestPortfolioWeights:
    """Tests for the sizing engine."""

    def test_three_stock_cap_scenario(self):
        """Raw shares of 90% would be ~30% each; every position stops at 12%."""
        results = [
            scored_result("AAA", 80, 80, "Pharmaceuticals"),
            scored_result("BBB", 70, 80, "Software Products"),
            scored_result("CCC", 60, 80, "Diversified FMCG"),
        ]

        allocation = calculate_portfolio_weights(results, SizingConfig(target_equity_allocation=90))

        assert [s.weight for s in allocation.stocks] == [12.0, 12.0, 12.0]
        assert allocation.total_weight == pytest.approx(36.0)
        assert allocation.cash_allocation == pytest.approx(64.0)
        assert_sums_to_hundred(allocation)

    def test_sector_cap(self):
        results = [scored_result(f"PH{i}", 80 - i, 80, "Pharmaceuticals") for i in range(3)]

        allocation = calculate_portfolio_weights(results)

        assert len(allocation.stocks) == 3
        assert allocation.sector_allocation[0].sector == "Healthcare"
        assert allocation.sector_allocation[0].weight <= 25.0
        assert [s.weight for s in allocation.stocks] == [8.4, 8.3, 8.3]
        assert all(s.weight <= 12.0 for s in allocation.stocks)
        assert_sums_to_hundred(allocation)

    def test_top_five_cap(self):
        results = [scored_result(f"T{i}", 90, 90, INDUSTRIES[i]) for i in range(6)]

        allocation = calculate_portfolio_weights(results)

        top5 = sum(sorted((s.weight for s in allocation.stocks), reverse=True)[:5])
        assert top5 <= 50.0 + 1e-9
        assert validate_weights(allocation).valid
        assert_sums_to_hundred(allocation)

    def test_small_positions_pruned(self):
        results = [
            scored_result("AAA", 90, 90, "Pharmaceuticals"),
            scored_result("BBB", 90, 90, "Software Products"),
            scored_result("CCC", 50, 50, "Diversified FMCG"),  # Capped at 5%
        ]

        allocation = calculate_portfolio_weights(results, SizingConfig(min_stock_weight=6.0))

        assert allocation.codes == ["AAA", "BBB"]
        assert allocation.excluded_count == 1
        assert allocation.cash_allocation == pytest.approx(76.0)

    def test_large_universe_invariants(self):
        results = [
            scored_result(
                f"S{i:02d}",
                composite=95 - i * 2,
                safety=50 + (i * 7) % 45,
                industry=INDUSTRIES[i % len(INDUSTRIES)],
            )
            for i in range(25)
        ]

        allocation = calculate_portfolio_weights(results)

        assert 0 < len(allocation.stocks) <= 20
        assert_sums_to_hundred(allocation)
        assert allocation.total_weight <= 90.0 + 1e-6

        by_code = {r.code: r for r in results}
        for stock in allocation.stocks:
            assert stock.weight > 0
            cap = stock_weight_cap(by_code[stock.code].safety_score, SizingConfig())
            assert stock.weight <= cap

        weights = [s.weight for s in allocation.stocks]
        assert weights == sorted(weights, reverse=True)
        assert validate_weights(allocation).valid

    def test_empty_input_all_cash(self):
        allocation = calculate_portfolio_weights([])

        assert allocation.stocks == ()
        assert allocation.total_weight == 0.0
        assert allocation.cash_allocation == 100.0

    def test_nothing_eligible_all_cash(self):
        results = [scored_result("LOW", 40, 90), excluded_result("OUT")]

        allocation = calculate_portfolio_weights(results)

        assert allocation.is_empty
        assert allocation.cash_allocation == 100.0

    def test_deterministic(self):
        results = [scored_result(f"S{i}", 90 - i * 3, 70, INDUSTRIES[i]) for i in range(8)]

        assert calculate_portfolio_weights(results) == calculate_portfolio_weights(results)

    def test_entry_fields(self):
        allocation = calculate_portfolio_weights([scored_result("AAA", 80, 70)])

        stock = allocation.stocks[0]
        assert stock.sector_group == "Healthcare"
        assert stock.risk_level == RiskLevel.LOW
        assert stock.conviction == 56
        assert stock.to_dict()["scores"]["risk"] == 70


    @pytest.mark.parametrize("count", [3, 4, 7, 11])
    def test_crowded_sector_stays_within_ceilings(self, count):
        results = [
            scored_result(f"PH{i:02d}", 92 - i * 1.7, 60 + i * 3.1, "Pharmaceuticals")
            for i in range(count)
        ] + [
            scored_result(f"OT{i}", 88 - i * 2.3, 81, INDUSTRIES[1 + i])
            for i in range(5)
        ]

        allocation = calculate_portfolio_weights(results)

        for sector in allocation.sector_allocation:
            assert sector.weight <= 25.0
        top5 = sum(sorted((s.weight for s in allocation.stocks), reverse=True)[:5])
        assert round(top5, 1) <= 50.0
        assert validate_weights(allocation).valid
        assert_sums_to_hundred(allocation)


class TestResidualAbsorption:
    """Tests for rounding and placing the leftover tenths."""

    @pytest.mark.parametrize(
        "weight, expected",
        [(8.3333, 8.3), (8.39, 8.3), (12.0, 12.0), (9.9999999999, 10.0), (2.05, 2.0)],
    )
    def test_floor_weight(self, weight, expected):
        assert floor_weight(weight) == expected

    def test_goes_to_largest_with_headroom(self):
        weights = [10.0, 8.3, 8.3, 8.3]
        caps = np.array([12.0, 12.0, 12.0, 12.0])

        left = absorb_residual(weights, caps, np.array([0, 1, 2, 3]), SizingConfig(), 0.2)

        assert left == 0.0
        assert weights == [10.2, 8.3, 8.3, 8.3]

    def test_stock_and_sector_ceilings_respected(self):
        # Largest is at its cap; the other three share a sector one step from 25%
        weights = [12.0, 8.3, 8.3, 8.3]
        caps = np.array([12.0, 12.0, 12.0, 12.0])
        sector_index = np.array([0, 1, 1, 1])

        left = absorb_residual(weights, caps, sector_index, SizingConfig(), 0.2)

        assert weights == [12.0, 8.4, 8.3, 8.3]
        assert left == 0.1
        assert within_ceilings(weights, caps, sector_index, SizingConfig())

    def test_top_five_ceiling_respected(self):
        weights = [10.0, 10.0, 10.0, 10.0, 10.0, 9.9]
        caps = np.full(6, 12.0)
        sector_index = np.arange(6)

        left = absorb_residual(weights, caps, sector_index, SizingConfig(), 0.2)

        # The sixth can rise to tie the top five but no further
        assert weights == [10.0, 10.0, 10.0, 10.0, 10.0, 10.0]
        assert left == 0.1

    def test_nothing_to_absorb(self):
        weights = [10.0, 8.0]
        caps = np.array([12.0, 12.0])

        left = absorb_residual(weights, caps, np.array([0, 1]), SizingConfig(), 0.0)

        assert weights == [10.0, 8.0]
        assert left == 0.0

    def test_within_ceilings(self):
        caps = np.array([12.0, 12.0])
        sector_index = np.array([0, 0])
        config = SizingConfig()

        assert within_ceilings([12.0, 12.0], caps, sector_index, config)
        assert not within_ceilings([12.1, 11.0], caps, sector_index, config)
        tight = SizingConfig(max_per_sector=20.0)
        assert not within_ceilings([12.0, 12.0], caps, sector_index, tight)

class TestValidateWeights:
    """Tests for the allocation self-check."""

    def test_clean_allocation(self):
        allocation = PortfolioAllocation(
            stocks=(entry("AAA", 12.0), entry("BBB", 10.0, "Technology")),
            total_weight=22.0,
            cash_allocation=78.0,
            sector_allocation=(SectorWeight("Healthcare", 12.0), SectorWeight("Technology", 10.0)),
        )

        validation = validate_weights(allocation)

        assert validation.valid
        assert validation.summary["stockCount"] == 2
        assert validation.summary["top5Weight"] == 22.0

    def test_violations_reported_not_raised(self):
        stocks = tuple(entry(f"S{i}", 14.0) for i in range(4))
        allocation = PortfolioAllocation(
            stocks=stocks,
            total_weight=50.0,
            cash_allocation=50.0,
            sector_allocation=(SectorWeight("Healthcare", 56.0),),
        )

        validation = validate_weights(allocation)

        assert not validation.valid
        assert any(i.startswith("Weight mismatch") for i in validation.issues)
        assert any(i.startswith("Sector Healthcare") for i in validation.issues)
        assert sum(i.startswith("Stock ") for i in validation.issues) == 4
        assert any(i.startswith("Top 5") for i in validation.issues)

    def test_empty_allocation_valid(self):
        assert validate_weights(PortfolioAllocation()).valid
