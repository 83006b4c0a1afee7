"""Tests for the five scoring layers."""

from dataclasses import fields

import pytest

from stockify.core.constants import RISK_WEIGHTS
from stockify.core.types import (
    NUMERIC_COLUMNS,
    Grade,
    LayerScore,
    MomentumSignal,
    RiskLevel,
    StockRecord,
    ValuationVerdict,
)
from stockify.layers import (
    UniverseView,
    calculate_external_score,
    calculate_fundamental_score,
    calculate_momentum_score,
    calculate_risk_score,
    calculate_valuation_score,
    count_trap_indicators,
)
from stockify.layers.external import peer_performance, sector_momentum
from stockify.layers.risk import combine_risk, tail_risk_penalty


def extreme_stock(value: float, industry: str = "Pharmaceuticals") -> StockRecord:
    """Every numeric field set to the same value."""
    numeric = {f.name: value for f in fields(StockRecord) if f.name in NUMERIC_COLUMNS}
    return StockRecord(name="Extreme", nse_code="EXTR", industry=industry, **numeric)


def all_layers(stock: StockRecord, universe: list[StockRecord]) -> list[LayerScore]:
    return [
        calculate_risk_score(stock),
        calculate_fundamental_score(stock),
        calculate_valuation_score(stock),
        calculate_momentum_score(stock),
        calculate_external_score(stock, universe),
    ]


def risk_components(**scores: float) -> tuple[LayerScore, ...]:
    return tuple(
        LayerScore(name=name, score=scores.get(name, 100.0), weight=weight)
        for name, weight in RISK_WEIGHTS.items()
    )


class TestLayerBounds:
    """Every layer and sub-component stays inside [0, 100]."""

    @pytest.mark.parametrize("value", [-1e9, -100.0, 0.0, 0.5, 100.0, 1e9])
    def test_extreme_inputs_bounded(self, value):
        stock = extreme_stock(value)

        for layer in all_layers(stock, [stock]):
            assert 0 <= layer.score <= 100
            for component in layer.components:
                assert 0 <= component.score <= 100

    def test_empty_record_bounded(self):
        stock = StockRecord()

        for layer in all_layers(stock, [stock]):
            assert 0 <= layer.score <= 100

    def test_component_weights_sum_to_one(self, healthy_stock):
        for layer in all_layers(healthy_stock, [healthy_stock]):
            assert sum(c.weight for c in layer.components) == pytest.approx(1.0)

    def test_deterministic(self, healthy_stock):
        first = all_layers(healthy_stock, [healthy_stock])
        second = all_layers(healthy_stock, [healthy_stock])

        assert first == second

    def test_non_risk_layers_are_integers(self, healthy_stock):
        for layer in all_layers(healthy_stock, [healthy_stock])[1:]:
            assert layer.score == int(layer.score)


class TestRiskLayer:
    """Tests for the safety layer and its tail-risk penalty."""

    def test_all_components_perfect(self):
        result = combine_risk(risk_components())

        assert result.score == pytest.approx(100.0)
        assert result.penalty == 0.0
        assert result.label == RiskLevel.VERY_LOW.value

    def test_tail_risk_penalty_applied(self):
        result = combine_risk(risk_components(fundamentalRisk=10.0))

        # 0.35*10 + 0.65*100 = 68.5, minus (30 - 10) * 0.5
        assert result.penalty == pytest.approx(10.0)
        assert result.score == pytest.approx(58.5)
        assert "tailRisk" in result.detail_map

    def test_penalty_threshold(self):
        assert tail_risk_penalty(30.0) == 0.0
        assert tail_risk_penalty(29.0) == pytest.approx(0.5)
        assert tail_risk_penalty(0.0) == pytest.approx(15.0)

    def test_distressed_stock_is_less_safe(self, healthy_stock, make_stock):
        distressed = make_stock(
            roce=3.0,
            op_margin=0.02,
            debt_geni=0.0,
            profit_growth=-40.0,
            return_3m=-35.0,
            promoter_holding_change=-6.0,
        )

        assert calculate_risk_score(distressed).score < calculate_risk_score(healthy_stock).score
        assert calculate_risk_score(distressed).penalty > 0

    def test_risk_components_named(self, healthy_stock):
        result = calculate_risk_score(healthy_stock)

        assert [c.name for c in result.components] == list(RISK_WEIGHTS)


class TestFundamentalLayer:
    """Tests for the fundamental layer."""

    def test_quality_compounder_grades_high(self, make_stock):
        stock = make_stock(
            roce=50.0,
            roce_3y_avg=45.0,
            profit_growth_3y=35.0,
            sales_growth_3y=15.0,
            cash_flow=500.0,
            eps_geni=3.0,
            roce_v2=2.0,
            master_score=10.0,
            equity_reduce=1.0,
        )

        result = calculate_fundamental_score(stock)

        assert result.score >= 75
        assert result.label in (Grade.A.value, Grade.A_PLUS.value)

    def test_grade_bands(self):
        assert Grade.from_score(85) == Grade.A_PLUS
        assert Grade.from_score(84.9) == Grade.A
        assert Grade.from_score(34.9) == Grade.D


class TestValuationLayer:
    """Tests for the valuation layer and trap filter."""

    def test_value_trap_indicators(self, make_stock):
        trap = make_stock(
            profit_growth=-10.0,
            profit_growth_3y=-5.0,
            sales_growth=-3.0,
            cash_flow=-20.0,
        )

        assert count_trap_indicators(trap) == 2
        assert calculate_valuation_score(trap).component("valueTrapFilter").score < 70

    def test_clean_stock_has_no_trap(self, healthy_stock):
        assert count_trap_indicators(healthy_stock) == 0
        assert calculate_valuation_score(healthy_stock).component("valueTrapFilter").score == 90

    def test_cheaper_scores_higher(self, make_stock):
        cheap = calculate_valuation_score(make_stock(pe=12.0))
        rich = calculate_valuation_score(make_stock(pe=60.0))

        assert cheap.score > rich.score

    def test_verdict_bands(self):
        assert ValuationVerdict.from_score(75) == ValuationVerdict.SIGNIFICANTLY_UNDERVALUED
        assert ValuationVerdict.from_score(30) == ValuationVerdict.OVERVALUED


class TestMomentumLayer:
    """Tests for the momentum layer."""

    def test_falling_knife_penalized(self, make_stock, healthy_stock):
        knife = make_stock(return_3m=-40.0, current_price=700.0)

        component = calculate_momentum_score(knife).component("pullbackQuality")

        assert "fallingKnife" in component.detail_map
        assert calculate_momentum_score(knife).score < calculate_momentum_score(healthy_stock).score

    def test_signal_bands(self):
        assert MomentumSignal.from_score(70) == MomentumSignal.STRONG_BUY
        assert MomentumSignal.from_score(44.9) == MomentumSignal.CAUTION


class TestExternalLayer:
    """Tests for the universe-dependent external layer."""

    def test_peer_leader(self, make_stock):
        leader = make_stock(name="Leader", nse_code="LEAD", return_3m=30.0, pe=10.0)
        peers = [
            make_stock(name="Peer One", nse_code="PEER1", return_3m=0.0, pe=22.0),
            make_stock(name="Peer Two", nse_code="PEER2", return_3m=0.0, pe=22.0),
        ]
        view = UniverseView.build([leader, *peers])

        component = peer_performance(leader, view)

        assert component.score == 75
        assert "sectorLeader" in component.detail_map
        assert "cheapVsPeers" in component.detail_map
        assert component.detail_map["peerCount"] == "2 industry peers"

    def test_no_peers_is_neutral(self, healthy_stock):
        view = UniverseView.build([healthy_stock])

        component = peer_performance(healthy_stock, view)

        assert component.score == 50
        assert view.peers(healthy_stock) == ()

    def test_lone_sector_member_gets_no_sector_signal(self, healthy_stock):
        view = UniverseView.build([healthy_stock])

        component = sector_momentum(healthy_stock, view)

        assert "sectorStrong" not in component.detail_map
        assert component.label == "Healthcare"

    def test_strong_sector_rewarded(self, make_stock):
        universe = [
            make_stock(name=f"Pharma {i}", nse_code=f"PH{i}", return_3m=12.0) for i in range(3)
        ]
        view = UniverseView.build(universe)

        component = sector_momentum(universe[0], view)

        assert "sectorStrong" in component.detail_map
        assert view.sector_average("Healthcare") == (pytest.approx(12.0), 3)

    def test_raw_universe_matches_view(self, mixed_universe):
        stock = mixed_universe[0]
        view = UniverseView.build(mixed_universe)

        assert calculate_external_score(stock, mixed_universe) == calculate_external_score(
            stock, view
        )

    @pytest.mark.parametrize(
        "industry_pe, expected",
        [
            (40.0, "expensiveSector"),
            (35.0, None),
            (15.0, None),
            (12.0, "cheapSector"),
            # Unreported industry PE reads as 0
            (0.0, "cheapSector"),
        ],
    )
    def test_sector_valuation(self, make_stock, industry_pe, expected):
        stock = make_stock(industry_pe=industry_pe)

        detail_map = sector_momentum(stock, UniverseView.build([stock])).detail_map

        flags = {"expensiveSector", "cheapSector"} & set(detail_map)
        assert flags == ({expected} if expected else set())
