"""
Pytest configuration and fixtures for Stockify tests.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from stockify.core.types import StockRecord

# A profitable, liquid, fairly valued pharma stock that clears every gate
HEALTHY_STOCK: dict[str, Any] = {
    "name": "Healthy Pharma Ltd",
    "nse_code": "HLTHPH",
    "bse_code": "500001",
    "industry_group": "Healthcare",
    "industry": "Pharmaceuticals",
    "current_price": 1000.0,
    "market_cap": 20000.0,
    "dma_50": 980.0,
    "dma_200": 950.0,
    "dma_50_prev": 978.0,
    "dma_200_prev": 949.0,
    "volume": 200000.0,
    "volume_1w_avg": 190000.0,
    "volume_1m_avg": 180000.0,
    "profit_growth": 18.0,
    "profit_growth_3y": 16.0,
    "sales_growth": 14.0,
    "sales_growth_3y": 12.0,
    "roce": 24.0,
    "roce_3y_avg": 21.0,
    "np_margin": 0.14,
    "op_margin": 0.22,
    "pe": 22.0,
    "industry_pe": 30.0,
    "gordon_iv": 0.2,
    "discount1": 0.25,
    "discount2": 0.2,
    "geni_score1": 6.0,
    "return_1w": 1.5,
    "return_1m": 4.0,
    "return_3m": 8.0,
    "bs_checklist": 7.0,
    "canslim": 1.0,
    "master_score": 7.0,
    "accumulation": 1.0,
    "promoter_holding": 55.0,
    "promoter_holding_change": 0.5,
    "cash_flow": 350.0,
    "debt_geni": 4.0,
}


def build_stock(**overrides: Any) -> StockRecord:
    """Healthy stock with the given fields replaced."""
    return StockRecord(**{**HEALTHY_STOCK, **overrides})


@pytest.fixture
def run_at() -> datetime:
    """Standard run timestamp (ISO week 2024-W03)."""
    return datetime(2024, 1, 15, 9, 30)


@pytest.fixture
def healthy_stock() -> StockRecord:
    """A stock that passes every quality gate."""
    return build_stock()


@pytest.fixture
def make_stock() -> Callable[..., StockRecord]:
    """Factory for healthy stocks with overrides."""
    return build_stock


@pytest.fixture
def failing_stock() -> StockRecord:
    """A stock failing profitability 0-of-3 (ROCE 5 vs threshold 15)."""
    return build_stock(
        name="Weak Returns Ltd",
        nse_code="WEAKRT",
        bse_code="500002",
        roce=5.0,
        roce_3y_avg=6.0,
    )


@pytest.fixture
def mixed_universe() -> list[StockRecord]:
    """Six stocks across four sector groups; the last one fails the gate."""
    return [
        build_stock(name="Alpha Pharma", nse_code="ALPHA", return_3m=12.0),
        build_stock(
            name="Beta Soft",
            nse_code="BETA",
            industry="Computers - Software & Consulting",
            industry_group="Information Technology",
            roce=45.0,
            roce_3y_avg=40.0,
            return_3m=6.0,
        ),
        build_stock(
            name="Gamma FMCG",
            nse_code="GAMMA",
            industry="Diversified FMCG",
            industry_group="Fast Moving Consumer Goods",
            roce=40.0,
            roce_3y_avg=36.0,
            return_3m=3.0,
        ),
        build_stock(
            name="Delta Pharma",
            nse_code="DELTA",
            pe=35.0,
            return_3m=-4.0,
        ),
        build_stock(
            name="Epsilon Electric",
            nse_code="EPSLN",
            industry="Heavy Electrical Equipment",
            industry_group="Capital Goods",
            return_3m=15.0,
        ),
        build_stock(
            name="Tiny Cap Ltd",
            nse_code="TINY",
            market_cap=120.0,
            return_3m=2.0,
        ),
    ]
