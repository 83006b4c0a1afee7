"""
Momentum layer.

Smart momentum: trends need fundamental backing, pullbacks are only
attractive with intact fundamentals, and volume separates accumulation
from distribution.

    S_mom = 0.30*trendQuality + 0.30*pullbackQuality
            + 0.25*volumeAnalysis + 0.15*regimeFilter
"""

from stockify.core.constants import ASSUMED_MARKET_RETURN_3M, MOMENTUM_WEIGHTS
from stockify.core.numeric import round_half_up
from stockify.core.types import LayerScore, MomentumSignal, StockRecord
from stockify.layers.base import ComponentBuilder, collect_details, weighted_sum

FALLING_KNIFE_PULLBACK = 30.0  # % decline over 3 months
FALLING_KNIFE_DMA_FACTOR = 0.85  # Price below 0.85 x 200DMA
NEAR_DMA_BAND = 0.05  # Within 5% of a DMA counts as testing it


def calculate_momentum_score(
    stock: StockRecord,
    market_return_3m: float = ASSUMED_MARKET_RETURN_3M,
) -> LayerScore:
    """
    Calculate the momentum layer for one stock.

    Args:
        stock: Stock to score
        market_return_3m: Market baseline for relative strength (%)

    Returns:
        LayerScore with integer score and MomentumSignal label
    """
    components = (
        trend_quality(stock),
        pullback_quality(stock),
        volume_analysis(stock),
        regime_filter(stock, market_return_3m),
    )
    total = weighted_sum(components, MOMENTUM_WEIGHTS)

    return LayerScore(
        name="momentum",
        score=round_half_up(total),
        weight=1.0,
        details=collect_details(components),
        components=components,
        label=MomentumSignal.from_score(total).value,
    )


def trend_quality(stock: StockRecord) -> LayerScore:
    """Is the trend sustainable?"""
    c = ComponentBuilder("trendQuality", base=50, weight=MOMENTUM_WEIGHTS["trendQuality"])

    price = stock.current_price
    dma50 = stock.dma_50 or price
    dma200 = stock.dma_200 or price
    dma50_prev = stock.dma_50_prev or dma50
    dma200_prev = stock.dma_200_prev or dma200

    # Price trend confirmed (or contradicted) by earnings
    if stock.return_3m > 0 and stock.profit_growth > 0:
        c.add(15, "confirmedTrend", "Price trend backed by fundamentals")
    elif stock.return_3m > 0 and stock.profit_growth < -10:
        c.add(-15, "divergence", "Warning: Price up but earnings down")
    elif stock.return_3m < -15 and stock.profit_growth > 10:
        c.add(5, "opportunity", "Fundamentals strong despite price weakness")

    dma50_rising = dma50 > dma50_prev
    dma200_rising = dma200 > dma200_prev

    if price > dma50 > dma200:
        c.add(15, "bullishAlignment", "Price > 50DMA > 200DMA")
        if dma50_rising and dma200_rising:
            c.add(5, "risingDMAs", "Both DMAs rising")
    elif price < dma50 < dma200:
        c.add(-15, "bearishAlignment", "Price below both DMAs")
        if not dma50_rising and not dma200_rising:
            c.add(-5, "fallingDMAs", "Both DMAs falling")

    if dma200 > 0:
        strength = (price - dma200) / dma200 * 100
        if strength > 30:
            c.add(-10, "extended", f"{strength:.0f}% above 200DMA - extended")
        elif strength > 10:
            c.add(5)
        elif strength > 0:
            c.add(10)

    if stock.momentum_score >= 4:
        c.add(10, "strongMomentum", "High momentum score")
    elif stock.momentum_score <= 1:
        c.add(-5)

    return c.build()


def pullback_quality(stock: StockRecord) -> LayerScore:
    """
    Is this a buying opportunity?

    A 10-25% pullback above the 200DMA with intact fundamentals scores
    highest; a >30% slide or a breach of 0.85 x 200DMA is a falling knife.
    """
    c = ComponentBuilder("pullbackQuality", base=50, weight=MOMENTUM_WEIGHTS["pullbackQuality"])

    price = stock.current_price
    dma50 = stock.dma_50 or price
    dma200 = stock.dma_200 or price
    pullback = -stock.return_3m  # Positive when the price fell

    fundamentals_intact = (
        stock.profit_growth_3y > 5 and stock.yoy_quarterly_profit_growth > -10
    )

    if fundamentals_intact:
        if 10 <= pullback <= 25 and price > dma200:
            c.add(25, "idealPullback", f"{pullback:.0f}% pullback with intact fundamentals")
        elif 5 <= pullback <= 15 and price > dma50:
            c.add(15, "shallowPullback", "Shallow pullback near support")

    near_dma50 = dma50 > 0 and abs(price - dma50) / dma50 < NEAR_DMA_BAND
    near_dma200 = dma200 > 0 and abs(price - dma200) / dma200 < NEAR_DMA_BAND

    if near_dma50 and price > dma200:
        c.add(10, "near50DMA", "Testing 50DMA support")
    if near_dma200 and fundamentals_intact:
        c.add(15, "near200DMA", "Testing 200DMA support with good fundamentals")

    if stock.return_3m < -10 and stock.return_1w > 0:
        c.add(10, "recoveryStarting", "Recent week showing recovery")

    if pullback > FALLING_KNIFE_PULLBACK or price < dma200 * FALLING_KNIFE_DMA_FACTOR:
        c.add(-20, "fallingKnife", "Severe decline - potential falling knife")

    if stock.rsi_incr > 0 and stock.return_3m < 0:
        c.add(10, "rsiTurning", "RSI turning positive")

    return c.build()


def volume_analysis(stock: StockRecord) -> LayerScore:
    """Accumulation vs distribution."""
    c = ComponentBuilder("volumeAnalysis", base=50, weight=MOMENTUM_WEIGHTS["volumeAnalysis"])

    volume_1m = stock.volume_1m_avg
    if volume_1m > 0:
        ratio = stock.volume / volume_1m
        if ratio > 1.5 and stock.return_1w > 0:
            c.add(20, "volumeExpansion", "Rising volume on price increase - accumulation")
        elif ratio > 1.5 and stock.return_1w < 0:
            c.add(-15, "distribution", "Rising volume on price decrease - distribution")
        elif ratio < 0.5:
            c.add(-5, "lowVolume", "Below average volume")

    if stock.volume_incr > 0:
        c.add(15, "volumeTrending", "Volume trending up")

    if stock.accumulation > 0:
        c.add(15, "accumulationDetected", "Accumulation pattern detected")

    if stock.return_3m < -10 and stock.volume < volume_1m * 0.7:
        c.add(10, "healthyPullback", "Low volume on pullback (healthy)")

    return c.build()


def regime_filter(
    stock: StockRecord,
    market_return_3m: float = ASSUMED_MARKET_RETURN_3M,
) -> LayerScore:
    """Market context: relative strength, sector valuation, cyclical timing."""
    c = ComponentBuilder("regimeFilter", base=50, weight=MOMENTUM_WEIGHTS["regimeFilter"])

    relative_strength = stock.return_3m - market_return_3m
    if relative_strength > 10:
        c.add(15, "outperforming", "Outperforming market")
    elif relative_strength < -10:
        c.add(-10, "underperforming", "Underperforming market")

    pe, industry_pe = stock.pe, stock.industry_pe
    if pe > 0 and industry_pe > 0:
        if industry_pe > 30 and pe < industry_pe * 0.7:
            c.add(10, "sectorExpensive", "Cheap in expensive sector")
        if industry_pe < 15 and pe < 10:
            c.add(-5, "sectorDistress", "Very cheap sector - check for distress")

    if stock.cyclical_triggers > 0:
        c.add(15, "cyclicalTiming", "Cyclical upturn detected")

    return c.build()
