"""Tests for single-stock deep analysis."""

import json

import pytest

from stockify.recommendation.analysis import (
    Importance,
    InvestmentVerdict,
    Sentiment,
    SignalType,
    analyze_stock,
    build_checklist,
    find_stock,
    quarterly_signals,
    research_links,
    technical_signals,
)
from stockify.sectors.config import SectorConfig


def texts(signals):
    return [(s.type, s.text) for s in signals]


class TestQuarterlySignals:
    """Tests for the quarter-on-quarter signal thresholds."""

    def test_quiet_quarter(self, healthy_stock):
        assert quarterly_signals(healthy_stock) == ()

    @pytest.mark.parametrize(
        "overrides, expected",
        [
            (
                {"yoy_quarterly_profit_growth": 31.0},
                [(SignalType.POSITIVE, "Strong quarterly profit growth: 31.0%")],
            ),
            ({"yoy_quarterly_profit_growth": 30.0}, []),
            (
                {"yoy_quarterly_profit_growth": -21.0},
                [(SignalType.NEGATIVE, "Quarterly profit decline: -21.0%")],
            ),
            ({"yoy_quarterly_profit_growth": -20.0}, []),
            (
                {"yoy_quarterly_sales_growth": 20.5},
                [(SignalType.POSITIVE, "Strong quarterly sales growth: 20.5%")],
            ),
            ({"yoy_quarterly_sales_growth": 20.0}, []),
            (
                {"yoy_quarterly_sales_growth": -11.0},
                [(SignalType.NEGATIVE, "Quarterly sales decline: -11.0%")],
            ),
            ({"yoy_quarterly_sales_growth": -10.0}, []),
        ],
    )
    def test_thresholds(self, make_stock, overrides, expected):
        assert texts(quarterly_signals(make_stock(**overrides))) == expected

    def test_operating_leverage(self, make_stock):
        # 30 > 14 * 1.5
        signals = quarterly_signals(make_stock(profit_growth=30.0, sales_growth=14.0))

        assert texts(signals) == [
            (SignalType.POSITIVE, "Operating leverage: Profit growing faster than sales")
        ]

    def test_no_operating_leverage_at_ratio(self, make_stock):
        assert quarterly_signals(make_stock(profit_growth=21.0, sales_growth=14.0)) == ()

    def test_consistent_grower(self, make_stock):
        signals = quarterly_signals(make_stock(quarterly_growers=1.0))

        assert texts(signals) == [(SignalType.POSITIVE, "Consistent quarterly growth pattern")]

    def test_signal_order(self, make_stock):
        stock = make_stock(
            yoy_quarterly_profit_growth=45.0,
            yoy_quarterly_sales_growth=-15.0,
            quarterly_growers=1.0,
        )

        assert [s.type for s in quarterly_signals(stock)] == [
            SignalType.POSITIVE,
            SignalType.NEGATIVE,
            SignalType.POSITIVE,
        ]


class TestTechnicalSignals:
    """Tests for moving-average, momentum and volume signals."""

    def test_uptrend(self, healthy_stock):
        assert texts(technical_signals(healthy_stock)) == [
            (SignalType.POSITIVE, "Price above both DMAs - Strong uptrend")
        ]

    def test_downtrend(self, make_stock):
        stock = make_stock(current_price=900.0, dma_50=950.0, dma_200=1000.0)

        assert texts(technical_signals(stock)) == [
            (SignalType.NEGATIVE, "Price below both DMAs - Downtrend")
        ]

    def test_between_averages(self, make_stock):
        stock = make_stock(current_price=960.0, dma_50=980.0, dma_200=950.0)

        assert technical_signals(stock) == ()

    @pytest.mark.parametrize(
        "return_3m, expected",
        [
            (16.0, [(SignalType.POSITIVE, "Strong 3-month momentum: +16.0%")]),
            (15.0, []),
            (-16.0, [(SignalType.NEGATIVE, "Weak 3-month performance: -16.0%")]),
        ],
    )
    def test_momentum(self, make_stock, return_3m, expected):
        stock = make_stock(current_price=960.0, return_3m=return_3m)

        assert texts(technical_signals(stock)) == expected

    def test_volume_increase(self, make_stock):
        stock = make_stock(current_price=960.0, volume_incr=1.0)

        assert texts(technical_signals(stock)) == [
            (SignalType.POSITIVE, "Increasing volume - Accumulation")
        ]


class TestInvestmentChecklist:
    """Tests for the weighted checklist and its verdict."""

    def test_composition(self, healthy_stock):
        checklist = build_checklist(healthy_stock)
        importances = [c.importance for c in checklist.checks]

        assert len(checklist.checks) == 14
        assert importances.count(Importance.CRITICAL) == 7
        assert importances.count(Importance.IMPORTANT) == 6
        assert importances.count(Importance.OPTIONAL) == 1

    def test_healthy_stock_invests(self, healthy_stock):
        checklist = build_checklist(healthy_stock)
        summary = checklist.to_dict()["summary"]

        assert checklist.passed == 9
        assert summary["criticalPassed"] == 5
        assert summary["importantPassed"] == 4
        assert summary["failed"] == 5
        assert summary["passRate"] == "64"
        assert checklist.verdict == InvestmentVerdict.INVEST

    def test_failed_checks(self, healthy_stock):
        failed = [c.name for c in build_checklist(healthy_stock).checks if not c.passed]

        assert failed == [
            "Sales Acceleration",
            "Consistent Quarterly Growth",
            "Capacity Expansion",
            "GARP Score",
            "Smart Money Accumulation",
        ]

    def test_strong_conviction(self, make_stock):
        checklist = build_checklist(make_stock(quarterly_growers=1.0, public_holding_decr=1.0))

        assert checklist.passed == 11
        assert checklist.critical_rate == 1.0
        assert checklist.verdict == InvestmentVerdict.STRONG_CONVICTION
        assert checklist.to_dict()["color"] == "success"

    def test_speculative(self, make_stock):
        # ROCE 18 fails both capital-efficiency checks: 4/7 critical, 7/14 total
        checklist = build_checklist(make_stock(roce=18.0))

        assert checklist.passed == 7
        assert checklist.verdict == InvestmentVerdict.SPECULATIVE
        assert checklist.to_dict()["color"] == "warning"

    def test_avoid(self, make_stock):
        stock = make_stock(bs_checklist=3.0, cash_flow=-10.0, pe=40.0, roce=10.0)

        checklist = build_checklist(stock)

        assert checklist.passed == 3
        assert checklist.verdict == InvestmentVerdict.AVOID
        assert checklist.to_dict()["color"] == "danger"

    @pytest.mark.parametrize(
        "critical_rate, total_rate, expected",
        [
            (0.8, 0.75, InvestmentVerdict.STRONG_CONVICTION),
            (1.0, 0.74, InvestmentVerdict.INVEST),
            (0.79, 1.0, InvestmentVerdict.INVEST),
            (0.6, 0.6, InvestmentVerdict.INVEST),
            (0.59, 0.9, InvestmentVerdict.SPECULATIVE),
            (1.0, 0.5, InvestmentVerdict.SPECULATIVE),
            (1.0, 0.49, InvestmentVerdict.AVOID),
            (0.0, 0.0, InvestmentVerdict.AVOID),
        ],
    )
    def test_verdict_bands(self, critical_rate, total_rate, expected):
        assert InvestmentVerdict.from_rates(critical_rate, total_rate) == expected

    def test_displayed_values(self, make_stock):
        checks = {c.name: c for c in build_checklist(make_stock(debt_reduce=1.0)).checks}

        assert checks["Strong Balance Sheet"].value == "Score: 7/10"
        assert checks["Discount to Industry"].value == "22 vs 30"
        assert checks["Debt Management"].value == "Reducing Debt"
        assert checks["Promoter Confidence"].value == "0.5% change"

    def test_margin_of_safety_via_growth(self, make_stock):
        checks = {
            c.name: c for c in build_checklist(make_stock(pe=40.0, profit_growth_3y=25.0)).checks
        }

        assert checks["Margin of Safety"].passed
        assert not checks["Discount to Industry"].passed

    def test_roce_v2_counts_as_improving(self, make_stock):
        checks = {c.name: c for c in build_checklist(make_stock(roce=18.0, roce_v2=1.0)).checks}

        assert checks["Improving Capital Returns"].passed


class TestSentiment:
    """Tests for the overall sentiment call."""

    def test_neutral(self, healthy_stock):
        assert analyze_stock(healthy_stock).sentiment == Sentiment.NEUTRAL

    def test_bullish(self, make_stock):
        stock = make_stock(quarterly_growers=1.0, return_3m=20.0)

        assert analyze_stock(stock).sentiment == Sentiment.BULLISH

    def test_bearish(self, make_stock):
        stock = make_stock(
            current_price=900.0,
            dma_50=950.0,
            dma_200=1000.0,
            return_3m=-20.0,
            yoy_quarterly_profit_growth=-30.0,
        )

        assert analyze_stock(stock).sentiment == Sentiment.BEARISH

    def test_lead_of_one_is_neutral(self, make_stock):
        # Two positives (uptrend, grower) vs one negative (sales decline)
        stock = make_stock(quarterly_growers=1.0, yoy_quarterly_sales_growth=-15.0)

        assert analyze_stock(stock).sentiment == Sentiment.NEUTRAL


class TestResearchLinks:
    """Tests for the company research links."""

    def test_both_codes(self, healthy_stock):
        links = {link["source"]: link["url"] for link in research_links(healthy_stock)}

        assert list(links) == [
            "Google News",
            "Moneycontrol",
            "Economic Times",
            "Screener.in",
            "BSE",
            "NSE",
        ]
        assert links["Google News"].startswith(
            "https://news.google.com/search?q=Healthy%20Pharma%20Ltd%20HLTHPH%20stock"
        )
        assert links["BSE"] == (
            "https://www.bseindia.com/stock-share-price/healthy-pharma-ltd/500001"
        )
        assert links["Screener.in"] == "https://www.screener.in/company/HLTHPH/"

    def test_nse_only(self, make_stock):
        links = {link["source"]: link["url"] for link in research_links(make_stock(bse_code=""))}

        assert "BSE" not in links
        assert links["Moneycontrol"].endswith("sc_id=HLTHPH")


class TestFindStock:
    """Tests for looking a stock up by code or name."""

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("BETA", "Beta Soft"),
            ("Gamma FMCG", "Gamma FMCG"),
            ("delta", "Delta Pharma"),
            (" EPSLN ", "Epsilon Electric"),
        ],
    )
    def test_found(self, mixed_universe, query, expected):
        assert find_stock(mixed_universe, query).name == expected

    def test_bse_code(self, mixed_universe):
        # Every fixture row shares BSE code 500001; the first wins
        assert find_stock(mixed_universe, "500001").name == "Alpha Pharma"

    @pytest.mark.parametrize("query", ["NOPE", "", "   "])
    def test_not_found(self, mixed_universe, query):
        assert find_stock(mixed_universe, query) is None


class TestAnalyzeStock:
    """Tests for the assembled analysis."""

    def test_to_dict(self, healthy_stock):
        data = analyze_stock(healthy_stock).to_dict()

        assert data["code"] == "HLTHPH"
        assert data["sectorGroup"] == "Healthcare"
        assert data["overallSentiment"] == "Neutral"
        assert data["fundamentals"]["industryPE"] == 30.0
        assert data["technicals"]["signals"] == [
            {"type": "positive", "text": "Price above both DMAs - Strong uptrend"}
        ]
        assert data["quarterlyAnalysis"]["signals"] == []
        assert data["checklist"]["recommendation"] == InvestmentVerdict.INVEST.value
        assert len(data["newsLinks"]) == 6
        json.dumps(data)

    def test_custom_sector_groups(self, healthy_stock):
        sectors = SectorConfig(sector_groups={"Pharma": ("Pharmaceuticals",)})

        assert analyze_stock(healthy_stock, sectors).sector_group == "Pharma"
