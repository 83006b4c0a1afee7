"""
Valuation layer.

Multi-method valuation with a value-trap filter and catalyst detection.
Higher score = more undervalued.

    S_val = 0.35*relativeValue + 0.30*intrinsicValueGap
            + 0.20*valueTrapFilter + 0.15*catalystScore

The value-trap filter starts optimistic at 70 and loses points for each
trap indicator; the catalyst score starts conservative at 40.
"""

from stockify.core.constants import VALUATION_WEIGHTS
from stockify.core.numeric import round_half_up
from stockify.core.types import LayerScore, StockRecord, ValuationVerdict
from stockify.layers.base import ComponentBuilder, collect_details, weighted_sum

PEG_GROWTH_CAP = 40.0  # % growth used for PEG is capped here
QUALITY_PE_BASE_ROCE = 15.0  # Quality-adjusted PE normalizes to this ROCE


def calculate_valuation_score(stock: StockRecord) -> LayerScore:
    """
    Calculate the valuation layer for one stock.

    Args:
        stock: Stock to score

    Returns:
        LayerScore with integer score and ValuationVerdict label
    """
    components = (
        relative_value(stock),
        intrinsic_value_gap(stock),
        value_trap_filter(stock),
        catalyst_score(stock),
    )
    total = weighted_sum(components, VALUATION_WEIGHTS)

    return LayerScore(
        name="valuation",
        score=round_half_up(total),
        weight=1.0,
        details=collect_details(components),
        components=components,
        label=ValuationVerdict.from_score(total).value,
    )


def relative_value(stock: StockRecord) -> LayerScore:
    """PE against the industry, quality-adjusted PE and PEG."""
    c = ComponentBuilder("relativeValue", base=50, weight=VALUATION_WEIGHTS["relativeValue"])

    pe = stock.pe
    industry_pe = stock.industry_pe or pe

    if pe > 0 and industry_pe > 0:
        pe_ratio = pe / industry_pe
        if pe_ratio <= 0.6:
            c.add(25, "deepDiscount", f"PE {pe:.1f} vs Industry {industry_pe:.1f}")
        elif pe_ratio <= 0.8:
            c.add(15, "discount", "Trading at discount to sector")
        elif pe_ratio <= 1.0:
            c.add(5)
        elif pe_ratio > 1.3:
            c.add(-15, "premium", "Trading at premium to sector")

    roce = stock.roce or QUALITY_PE_BASE_ROCE
    if pe > 0 and roce > 0:
        quality_pe = pe / (roce / QUALITY_PE_BASE_ROCE)
        if quality_pe < 15:
            c.add(10, "qualityValue", "Good value for quality")
        elif quality_pe > 30:
            c.add(-10, "expensiveForQuality", "Expensive relative to quality")

    if pe > 0 and stock.profit_growth_3y > 5:
        peg = pe / min(stock.profit_growth_3y, PEG_GROWTH_CAP)
        if peg <= 0.8:
            c.add(15, "lowPEG", f"PEG ratio: {peg:.2f}")
        elif peg <= 1.2:
            c.add(5)
        elif peg > 2.0:
            c.add(-10, "highPEG", "High PEG ratio")

    return c.build()


def intrinsic_value_gap(stock: StockRecord) -> LayerScore:
    """Margin of safety against intrinsic value proxies."""
    c = ComponentBuilder(
        "intrinsicValueGap", base=50, weight=VALUATION_WEIGHTS["intrinsicValueGap"]
    )

    gordon = stock.gordon_iv
    if gordon >= 0.30:
        c.add(20, "gordonDiscount", f"Gordon IV discount: {gordon * 100:.0f}%")
    elif gordon >= 0.15:
        c.add(10)
    elif gordon < 0:
        c.add(-10, "gordonPremium", "Trading above Gordon IV")

    avg_discount = (stock.discount1 + stock.discount2) / 2
    if avg_discount >= 0.40:
        c.add(20, "largeDiscount", "Significant discount to intrinsic value")
    elif avg_discount >= 0.20:
        c.add(10)
    elif avg_discount < 0:
        c.add(-15, "overvalued", "Trading above intrinsic value estimates")

    if stock.geni_score1 >= 7:
        c.add(10, "geniValue", "High geni score")
    elif stock.geni_score1 < 3:
        c.add(-10)

    return c.build()


def value_trap_filter(stock: StockRecord) -> LayerScore:
    """
    Penalize cheap-but-deteriorating businesses.

    Trap indicators: declining business, margin erosion, cash burn without
    growth, quarterly deterioration. Zero indicators plus 3Y growth above
    10% earns a bonus.
    """
    c = ComponentBuilder("valueTrapFilter", base=70, weight=VALUATION_WEIGHTS["valueTrapFilter"])
    trap_indicators = 0

    if stock.profit_growth < 0 and stock.profit_growth_3y < 0 and stock.sales_growth < 0:
        c.add(-30, "decliningBusiness", "Revenue and profit both declining")
        trap_indicators += 1

    if stock.op_margin < 0.05 and stock.profit_growth < stock.sales_growth:
        c.add(-20, "marginErosion", "Margins under pressure")
        trap_indicators += 1

    if stock.cash_flow < 0 and stock.profit_growth_3y < 10:
        c.add(-15, "cashBurner", "Negative cash flow without growth")
        trap_indicators += 1

    if stock.yoy_quarterly_profit_growth < -20 and stock.yoy_quarterly_sales_growth < -10:
        c.add(-15, "quarterlyWeak", "Recent quarter shows deterioration")
        trap_indicators += 1

    # Not a trap indicator on its own, but still costs points
    if stock.accumulation == 0 and stock.volume_incr == 0:
        c.add(-10, "noInterest", "No accumulation signals")

    if trap_indicators == 0 and stock.profit_growth_3y > 10:
        c.add(20, "healthy", "No value trap indicators detected")

    return c.build()


def catalyst_score(stock: StockRecord) -> LayerScore:
    """Is there a reason for a re-rating?"""
    c = ComponentBuilder("catalystScore", base=40, weight=VALUATION_WEIGHTS["catalystScore"])

    if stock.debt_reduce > 0 or stock.debt_geni >= 4:
        c.add(15, "debtCatalyst", "Debt reduction in progress")

    if stock.profit_growth > stock.profit_growth_3y + 15:
        c.add(15, "earningsAccel", "Earnings accelerating")

    if stock.capacity_expansion > 0:
        c.add(15, "capacityCatalyst", "Capacity expansion underway")

    if stock.profit_growth_3y < 10 and stock.yoy_quarterly_profit_growth > 20:
        c.add(15, "turnaround", "Turnaround signs in recent quarter")

    if stock.accumulation > 0 or stock.rsi_incr > 0:
        c.add(10, "technicalSetup", "Positive accumulation signals")

    if stock.garp > 0:
        c.add(10, "garpPositive", "GARP criteria met")

    return c.build()


def count_trap_indicators(stock: StockRecord) -> int:
    """Number of value-trap indicators present (0-4)."""
    return sum(
        (
            stock.profit_growth < 0 and stock.profit_growth_3y < 0 and stock.sales_growth < 0,
            stock.op_margin < 0.05 and stock.profit_growth < stock.sales_growth,
            stock.cash_flow < 0 and stock.profit_growth_3y < 10,
            stock.yoy_quarterly_profit_growth < -20 and stock.yoy_quarterly_sales_growth < -10,
        )
    )
