"""
Risk (Safety) layer.

Higher score = SAFER. Five components start at 100 and collect penalties:

    S_risk = 0.35*fundamental + 0.25*volatility + 0.15*liquidity
             + 0.15*governance + 0.10*concentration - tail_penalty

Tail risk penalty:
    If the worst single component is below 30, subtract
    (30 - worst) * 0.5 so one severe risk is never averaged away.
"""

import logging
from collections.abc import Sequence

from stockify.core.constants import RISK_WEIGHTS, TAIL_RISK_FLOOR, TAIL_RISK_MULTIPLIER
from stockify.core.numeric import clamp
from stockify.core.types import LayerScore, RiskLevel, StockRecord
from stockify.layers.base import ComponentBuilder, collect_details, weighted_sum
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)


def calculate_risk_score(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """
    Calculate the risk (safety) layer for one stock.

    Args:
        stock: Stock to score
        sectors: Sector lookup tables

    Returns:
        LayerScore labelled with the RiskLevel, penalty set to the tail-risk
        penalty applied
    """
    components = (
        fundamental_risk(stock),
        volatility_risk(stock),
        liquidity_risk(stock),
        governance_risk(stock),
        concentration_risk(stock, sectors),
    )
    return combine_risk(components)


def combine_risk(components: Sequence[LayerScore]) -> LayerScore:
    """
    Combine risk components with the tail-risk penalty.

    Args:
        components: The five risk components

    Returns:
        Top-level risk LayerScore
    """
    linear = weighted_sum(components, RISK_WEIGHTS)
    worst = min(c.score for c in components)
    penalty = tail_risk_penalty(worst)
    score = clamp(linear - penalty)

    details = collect_details(components)
    if penalty > 0:
        details += (
            ("tailRisk", f"Worst component at {worst:.0f} costs {penalty:.1f} points"),
        )

    return LayerScore(
        name="risk",
        score=score,
        weight=1.0,
        details=details,
        components=tuple(components),
        label=RiskLevel.from_score(score).value,
        penalty=penalty,
    )


def tail_risk_penalty(worst_component: float) -> float:
    """Penalty for the worst component falling below the tail-risk floor."""
    if worst_component < TAIL_RISK_FLOOR:
        return (TAIL_RISK_FLOOR - worst_component) * TAIL_RISK_MULTIPLIER
    return 0.0


def fundamental_risk(stock: StockRecord) -> LayerScore:
    """Financial stability: distress proxies from ROCE, margins and debt."""
    c = ComponentBuilder("fundamentalRisk", base=100, weight=RISK_WEIGHTS["fundamentalRisk"])

    if stock.roce < 5:
        c.add(-25, "lowROCE", "ROCE < 5% indicates potential distress")
    elif stock.roce < 10:
        c.add(-10)

    # Operating margin stands in for interest coverage
    if stock.op_margin < 0.05:
        c.add(-20, "lowMargins", "Operating margin < 5%")
    elif stock.op_margin < 0.10:
        c.add(-10)

    if stock.debt_geni >= 4:
        c.add(5)
    elif stock.debt_geni <= 1:
        c.add(-15, "debtConcern", "Poor debt metrics")

    if stock.profit_growth < -20 or stock.profit_growth_3y < -10:
        c.add(-15, "earningsDecline", "Significant profit decline")

    return c.build()


def volatility_risk(stock: StockRecord) -> LayerScore:
    """Price volatility and drawdown."""
    c = ComponentBuilder("volatilityRisk", base=100, weight=RISK_WEIGHTS["volatilityRisk"])

    price = stock.current_price
    dma200 = stock.dma_200 or price

    if dma200 > 0:
        deviation = abs(price - dma200) / dma200 * 100
        if deviation > 30:
            c.add(-20, "highVolatility", f"Price {deviation:.1f}% from 200DMA")
        elif deviation > 20:
            c.add(-10)

    if stock.return_3m < -30:
        c.add(-25, "severeDrawdown", f"3-month return: {stock.return_3m:.1f}%")
    elif stock.return_3m < -20:
        c.add(-15)
    elif stock.return_3m < -10:
        c.add(-5)

    recent_swing = abs(stock.return_1w) + abs(stock.return_1m - stock.return_1w)
    if recent_swing > 30:
        c.add(-10, "recentVolatile", "High recent price swings")

    return c.build()


def liquidity_risk(stock: StockRecord) -> LayerScore:
    """Can the position be exited when needed?"""
    c = ComponentBuilder("liquidityRisk", base=100, weight=RISK_WEIGHTS["liquidityRisk"])

    market_cap = stock.market_cap
    if market_cap < 500:
        c.add(-25, "smallCap", f"Market cap ₹{market_cap:.0f} Cr")
    elif market_cap < 1000:
        c.add(-15)
    elif market_cap < 2000:
        c.add(-5)

    if market_cap > 0:
        daily_turnover_cr = stock.volume_1m_avg * stock.current_price / 1e7
        turnover_ratio = daily_turnover_cr / market_cap * 100
        if turnover_ratio < 0.1:
            c.add(-20, "lowTurnover", "Daily turnover < 0.1% of market cap")
        elif turnover_ratio < 0.3:
            c.add(-10)

    if stock.volume_1m_avg > 0 and stock.volume > 0:
        if stock.volume / stock.volume_1m_avg < 0.3:
            c.add(-10, "volumeDrying", "Recent volume significantly below average")

    public_holding = 100 - stock.promoter_holding
    if public_holding < 20:
        c.add(-15, "lowFloat", f"Public holding only {public_holding:.1f}%")

    return c.build()


def governance_risk(stock: StockRecord) -> LayerScore:
    """Management trust factors."""
    c = ComponentBuilder("governanceRisk", base=100, weight=RISK_WEIGHTS["governanceRisk"])

    change = stock.promoter_holding_change
    if change < -5:
        c.add(-30, "promoterSelling", f"Promoter reduced stake by {abs(change):.2f}%")
    elif change < -2:
        c.add(-15)
    elif change > 2:
        c.add(10, "promoterBuying", "Promoter increasing stake")

    if stock.public_holding_decr > 0:
        c.add(-10, "publicExiting", "Public holding decreasing")

    if stock.bs_checklist >= 8:
        c.add(5)
    elif stock.bs_checklist <= 4:
        c.add(-10)

    return c.build()


def concentration_risk(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """Business model concentration: cyclicality, margins, lumpy quarters."""
    c = ComponentBuilder(
        "concentrationRisk", base=100, weight=RISK_WEIGHTS["concentrationRisk"]
    )

    cyclicality = sectors.cyclicality(stock.industry)
    if cyclicality == "high":
        c.add(-15, "cyclical", "Highly cyclical industry")
    elif cyclicality == "medium":
        c.add(-5)

    if stock.op_margin < 0.05:
        c.add(-15, "lowMargin", "Low operating margins indicate competitive pressure")

    if abs(stock.yoy_quarterly_sales_growth) > 50 or abs(stock.yoy_quarterly_profit_growth) > 100:
        c.add(-10, "volatileQuarters", "High quarterly volatility")

    return c.build()
