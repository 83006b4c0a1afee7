"""
Fundamental layer.

Assesses sustainable earnings power, growth quality and competitive moat.

    S_fund = 0.30*earningsPower + 0.25*growthQuality + 0.20*cashConversion
             + 0.15*competitiveMoat + 0.10*capitalAllocation

Every component starts at a neutral 50. The layer carries a letter grade.
"""

from stockify.core.constants import FUNDAMENTAL_WEIGHTS
from stockify.core.numeric import round_half_up
from stockify.core.types import Grade, LayerScore, StockRecord
from stockify.layers.base import ComponentBuilder, collect_details, weighted_sum
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig


def calculate_fundamental_score(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """
    Calculate the fundamental layer for one stock.

    Args:
        stock: Stock to score
        sectors: Sector lookup tables (ROCE thresholds)

    Returns:
        LayerScore with integer score and Grade label
    """
    components = (
        earnings_power(stock, sectors),
        growth_quality(stock),
        cash_conversion(stock),
        competitive_moat(stock),
        capital_allocation(stock),
    )
    total = weighted_sum(components, FUNDAMENTAL_WEIGHTS)

    return LayerScore(
        name="fundamental",
        score=round_half_up(total),
        weight=1.0,
        details=collect_details(components),
        components=components,
        label=Grade.from_score(total).value,
    )


def earnings_power(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """Sustainable profitability against the sector-adjusted ROCE threshold."""
    c = ComponentBuilder("earningsPower", base=50, weight=FUNDAMENTAL_WEIGHTS["earningsPower"])

    roce = stock.roce
    roce_ratio = roce / sectors.roce_threshold(stock.industry or "default")

    if roce_ratio >= 2.0:
        c.add(30, "excellentROCE", f"ROCE {roce:.1f}% is 2x+ sector threshold")
    elif roce_ratio >= 1.5:
        c.add(20)
    elif roce_ratio >= 1.0:
        c.add(10)
    elif roce_ratio < 0.8:
        c.add(-15, "weakROCE", f"ROCE {roce:.1f}% below sector threshold")

    # Missing 3Y average falls back to the current ROCE
    roce_3y = stock.roce_3y_avg or roce
    if roce_3y > 0:
        consistency = min(roce, roce_3y) / max(roce, roce_3y)
    else:
        consistency = 0.0

    if consistency >= 0.8:
        c.add(10, "consistentROCE", "Stable ROCE over 3 years")
    elif consistency < 0.5:
        c.add(-10, "volatileROCE", "Volatile ROCE")

    if roce > roce_3y * 1.1:
        c.add(10, "improvingROCE", "ROCE trending up")
    elif roce < roce_3y * 0.8:
        c.add(-10, "decliningROCE", "ROCE trending down")

    if stock.op_margin >= 0.20:
        c.add(10)
    elif stock.op_margin >= 0.12:
        c.add(5)
    elif stock.op_margin < 0.05:
        c.add(-10)

    return c.build()


def growth_quality(stock: StockRecord) -> LayerScore:
    """Sustainable, efficient growth."""
    c = ComponentBuilder("growthQuality", base=50, weight=FUNDAMENTAL_WEIGHTS["growthQuality"])

    growth_3y = stock.profit_growth_3y

    if growth_3y >= 30:
        c.add(20, "strongGrowth", f"3Y profit CAGR: {growth_3y:.1f}%")
    elif growth_3y >= 15:
        c.add(10)
    elif growth_3y < 0:
        c.add(-15, "negativeGrowth", "Negative 3Y profit growth")

    # Operating leverage: profit outgrowing sales
    if stock.sales_growth_3y > 0:
        leverage = growth_3y / stock.sales_growth_3y
        if leverage >= 1.5:
            c.add(15, "goodLeverage", "Profit growth outpacing sales")
        elif leverage < 0.7:
            c.add(-10, "marginCompression", "Margins under pressure")

    if stock.profit_growth > growth_3y + 10:
        c.add(10, "accelerating", "Growth accelerating")
    elif stock.profit_growth < growth_3y - 20:
        c.add(-10, "decelerating", "Growth decelerating")

    quarterly = stock.yoy_quarterly_profit_growth
    if quarterly >= 20:
        c.add(10, "quarterlyStrong", f"Latest quarter: +{quarterly:.1f}%")
    elif quarterly < -10:
        c.add(-10, "quarterlyWeak", "Weak latest quarter")

    return c.build()


def cash_conversion(stock: StockRecord) -> LayerScore:
    """Quality of earnings."""
    c = ComponentBuilder("cashConversion", base=50, weight=FUNDAMENTAL_WEIGHTS["cashConversion"])

    if stock.cash_flow >= 1.0:
        c.add(20, "excellentCash", "Strong cash generation")
    elif stock.cash_flow >= 0.5:
        c.add(10)
    elif stock.cash_flow < 0:
        c.add(-15, "poorCash", "Negative operating cash flow")

    if stock.op_margin > 0:
        conversion = stock.np_margin / stock.op_margin
        if conversion >= 0.7:
            c.add(10, "efficientConversion", "Good profit conversion")
        elif conversion < 0.4:
            c.add(-10, "leakage", "Significant profit leakage below EBIT")

    if stock.eps_geni >= 2.5:
        c.add(15)
    elif stock.eps_geni >= 1.5:
        c.add(5)
    elif stock.eps_geni < 0.5:
        c.add(-10)

    return c.build()


def competitive_moat(stock: StockRecord) -> LayerScore:
    """Durability of advantages."""
    c = ComponentBuilder("competitiveMoat", base=50, weight=FUNDAMENTAL_WEIGHTS["competitiveMoat"])

    if stock.roce >= 25 and stock.roce_3y_avg >= 25:
        c.add(25, "wideMoat", "Sustained high ROCE suggests moat")
    elif stock.roce >= 20 and stock.roce_3y_avg >= 18:
        c.add(15, "narrowMoat", "Good sustained profitability")

    if stock.op_margin >= 0.15:
        c.add(10, "pricingPower", "High margins indicate pricing power")

    if stock.roce_v2 >= 1.5:
        c.add(10, "sectorLeader", "ROCE well above sector")

    if stock.market_cap >= 20000:
        c.add(5, "scaleAdvantage", "Large scale provides advantages")

    return c.build()


def capital_allocation(stock: StockRecord) -> LayerScore:
    """Management quality: reinvestment, debt discipline, dilution."""
    c = ComponentBuilder(
        "capitalAllocation", base=50, weight=FUNDAMENTAL_WEIGHTS["capitalAllocation"]
    )

    if stock.roce >= 25:
        c.add(15)
    elif stock.roce >= 15:
        c.add(5)

    if stock.debt_reduce > 0 or stock.debt_geni >= 4:
        c.add(15, "debtDiscipline", "Good debt management")
    elif stock.debt_geni <= 1:
        c.add(-10, "debtConcern", "Debt management concerns")

    if stock.equity_reduce > 0:
        c.add(10, "buybacks", "Shareholder-friendly (buybacks/no dilution)")

    if stock.master_score >= 10:
        c.add(10)
    elif stock.master_score >= 7:
        c.add(5)

    return c.build()
