"""
Single-stock deep analysis.

Reads one snapshot row and reports:

1. Quarterly signals: year-on-year quarter growth, operating leverage,
   consistent quarterly growth
2. Fundamentals block: returns on capital, growth, valuation, holdings
3. Technical signals: price vs 50/200 DMA, 3-month momentum, volume
4. Overall sentiment from the signal counts
5. Investment checklist: fourteen weighted checks in five categories and a
   verdict from the critical and total pass rates
6. Research links for the company

Pure read-only view of the row. Never feeds back into scoring or sizing.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

from stockify.core.types import StockRecord
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

# Quarterly signal thresholds (YoY %)
STRONG_QUARTERLY_PROFIT_GROWTH = 30.0
QUARTERLY_PROFIT_DECLINE = -20.0
STRONG_QUARTERLY_SALES_GROWTH = 20.0
QUARTERLY_SALES_DECLINE = -10.0
OPERATING_LEVERAGE_RATIO = 1.5

# Technical signal thresholds (%)
STRONG_MOMENTUM_3M = 15.0
WEAK_MOMENTUM_3M = -15.0

# Checklist thresholds
MIN_BALANCE_SHEET_SCORE = 7
MIN_DEBT_SCORE = 4
MAX_SAFE_PE = 25.0
HIGH_GROWTH_3Y = 20.0
HIGH_ROCE = 20.0

# Verdict bands: (min critical rate, min total rate)
STRONG_CONVICTION_RATES = (0.8, 0.75)
INVEST_RATES = (0.6, 0.6)
SPECULATIVE_MIN_TOTAL_RATE = 0.5

CHECKLIST_GUIDANCE = {
    "ideal": "Match >80% Critical Checks (Smart Money + Balance Sheet)",
    "acceptable": ">60% Total Pass Rate",
    "caution": "Declining Margins or Public Holding Increase",
    "avoid": "Weak Balance Sheet (Score < 5)",
}


class SignalType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class Importance(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    OPTIONAL = "optional"


class Sentiment(str, Enum):
    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"

    @classmethod
    def from_signals(cls, signals: Sequence["Signal"]) -> "Sentiment":
        """Bullish or bearish only when one side leads by two or more."""
        positive = sum(1 for s in signals if s.type == SignalType.POSITIVE)
        negative = sum(1 for s in signals if s.type == SignalType.NEGATIVE)
        if positive > negative + 1:
            return cls.BULLISH
        if negative > positive + 1:
            return cls.BEARISH
        return cls.NEUTRAL


class InvestmentVerdict(str, Enum):
    """Checklist verdict with its display color."""

    STRONG_CONVICTION = "STRONG CONVICTION - Institutional quality"
    INVEST = "INVEST - Good quality, monitor risks"
    SPECULATIVE = "SPECULATIVE - Mixed signals"
    AVOID = "AVOID - Fundamental weakness"

    @classmethod
    def from_rates(cls, critical_rate: float, total_rate: float) -> "InvestmentVerdict":
        """
        Verdict from the share of critical checks and of all checks passed.

        Args:
            critical_rate: Passed / total critical checks (0-1)
            total_rate: Passed / total checks (0-1)

        Returns:
            First band whose floors are both met
        """
        if critical_rate >= STRONG_CONVICTION_RATES[0] and total_rate >= STRONG_CONVICTION_RATES[1]:
            return cls.STRONG_CONVICTION
        if critical_rate >= INVEST_RATES[0] and total_rate >= INVEST_RATES[1]:
            return cls.INVEST
        if total_rate >= SPECULATIVE_MIN_TOTAL_RATE:
            return cls.SPECULATIVE
        return cls.AVOID

    @property
    def color(self) -> str:
        if self in (InvestmentVerdict.STRONG_CONVICTION, InvestmentVerdict.INVEST):
            return "success"
        if self == InvestmentVerdict.SPECULATIVE:
            return "warning"
        return "danger"


@dataclass(frozen=True)
class Signal:
    type: SignalType
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "text": self.text}


@dataclass(frozen=True)
class ChecklistItem:
    """One pass/fail check with its displayed value."""

    category: str
    name: str
    description: str
    passed: bool
    value: str
    importance: Importance

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "name": self.name,
            "description": self.description,
            "passed": self.passed,
            "value": self.value,
            "importance": self.importance.value,
        }


@dataclass(frozen=True)
class InvestmentChecklist:
    """Checklist results and the verdict derived from them."""

    checks: tuple[ChecklistItem, ...]

    def _count(self, importance: Importance | None = None, passed: bool | None = None) -> int:
        return sum(
            1
            for c in self.checks
            if (importance is None or c.importance == importance)
            and (passed is None or c.passed == passed)
        )

    @property
    def passed(self) -> int:
        return self._count(passed=True)

    @property
    def critical_rate(self) -> float:
        total = self._count(Importance.CRITICAL)
        return self._count(Importance.CRITICAL, passed=True) / total if total else 0.0

    @property
    def total_rate(self) -> float:
        return self.passed / len(self.checks) if self.checks else 0.0

    @property
    def verdict(self) -> InvestmentVerdict:
        return InvestmentVerdict.from_rates(self.critical_rate, self.total_rate)

    def to_dict(self) -> dict[str, Any]:
        total = len(self.checks)
        return {
            "checks": [c.to_dict() for c in self.checks],
            "summary": {
                "total": total,
                "passed": self.passed,
                "failed": total - self.passed,
                "criticalTotal": self._count(Importance.CRITICAL),
                "criticalPassed": self._count(Importance.CRITICAL, passed=True),
                "importantTotal": self._count(Importance.IMPORTANT),
                "importantPassed": self._count(Importance.IMPORTANT, passed=True),
                "passRate": f"{self.total_rate * 100:.0f}",
            },
            "recommendation": self.verdict.value,
            "color": self.verdict.color,
            "guidance": dict(CHECKLIST_GUIDANCE),
        }


@dataclass(frozen=True)
class StockAnalysis:
    """Deep-dive view of one stock."""

    stock: StockRecord
    sector_group: str
    quarterly_signals: tuple[Signal, ...]
    technical_signals: tuple[Signal, ...]
    checklist: InvestmentChecklist
    research_links: tuple[dict[str, str], ...] = ()

    @property
    def sentiment(self) -> Sentiment:
        return Sentiment.from_signals(self.quarterly_signals + self.technical_signals)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        s = self.stock
        return {
            "name": s.name,
            "code": s.code,
            "industry": s.industry,
            "sectorGroup": self.sector_group,
            "quarterlyAnalysis": {
                "yoyQuarterlySalesGrowth": s.yoy_quarterly_sales_growth,
                "yoyQuarterlyProfitGrowth": s.yoy_quarterly_profit_growth,
                "quarterlyGrowers": s.quarterly_growers,
                "profitGrowth": s.profit_growth,
                "salesGrowth": s.sales_growth,
                "npMargin": s.np_margin,
                "opMargin": s.op_margin,
                "signals": [sig.to_dict() for sig in self.quarterly_signals],
            },
            "fundamentals": fundamentals_block(s),
            "technicals": {
                "dma50": s.dma_50,
                "dma200": s.dma_200,
                "currentPrice": s.current_price,
                "return1m": s.return_1m,
                "return3m": s.return_3m,
                "momentumScore": s.momentum_score,
                "volumeIncr": s.volume_incr,
                "rsiIncr": s.rsi_incr,
                "signals": [sig.to_dict() for sig in self.technical_signals],
            },
            "newsLinks": [dict(link) for link in self.research_links],
            "checklist": self.checklist.to_dict(),
            "overallSentiment": self.sentiment.value,
        }


def fundamentals_block(stock: StockRecord) -> dict[str, float]:
    return {
        "roce": stock.roce,
        "roce3y": stock.roce_3y_avg,
        "profitGrowth3y": stock.profit_growth_3y,
        "salesGrowth3y": stock.sales_growth_3y,
        "pe": stock.pe,
        "industryPE": stock.industry_pe,
        "promoterHolding": stock.promoter_holding,
        "promoterChange": stock.promoter_holding_change,
        "bSchklist": stock.bs_checklist,
        "canslim": stock.canslim,
        "masterScore": stock.master_score,
        "debtGeni": stock.debt_geni,
        "cashFlow": stock.cash_flow,
    }


def quarterly_signals(stock: StockRecord) -> tuple[Signal, ...]:
    """
    Signals from the latest quarter and the growth mix.

    Args:
        stock: Snapshot row

    Returns:
        Signals in a fixed order: profit, sales, operating leverage, consistency
    """
    signals = []
    profit_q = stock.yoy_quarterly_profit_growth
    sales_q = stock.yoy_quarterly_sales_growth

    if profit_q > STRONG_QUARTERLY_PROFIT_GROWTH:
        signals.append(
            Signal(SignalType.POSITIVE, f"Strong quarterly profit growth: {profit_q:.1f}%")
        )
    elif profit_q < QUARTERLY_PROFIT_DECLINE:
        signals.append(Signal(SignalType.NEGATIVE, f"Quarterly profit decline: {profit_q:.1f}%"))

    if sales_q > STRONG_QUARTERLY_SALES_GROWTH:
        signals.append(
            Signal(SignalType.POSITIVE, f"Strong quarterly sales growth: {sales_q:.1f}%")
        )
    elif sales_q < QUARTERLY_SALES_DECLINE:
        signals.append(Signal(SignalType.NEGATIVE, f"Quarterly sales decline: {sales_q:.1f}%"))

    if stock.profit_growth > stock.sales_growth * OPERATING_LEVERAGE_RATIO:
        signals.append(
            Signal(SignalType.POSITIVE, "Operating leverage: Profit growing faster than sales")
        )

    if stock.quarterly_growers >= 1:
        signals.append(Signal(SignalType.POSITIVE, "Consistent quarterly growth pattern"))

    return tuple(signals)


def technical_signals(stock: StockRecord) -> tuple[Signal, ...]:
    """Signals from the moving averages, 3-month return and volume trend."""
    signals = []
    price, dma_50, dma_200 = stock.current_price, stock.dma_50, stock.dma_200

    if price > dma_50 > dma_200:
        signals.append(Signal(SignalType.POSITIVE, "Price above both DMAs - Strong uptrend"))
    elif price < dma_50 < dma_200:
        signals.append(Signal(SignalType.NEGATIVE, "Price below both DMAs - Downtrend"))

    if stock.return_3m > STRONG_MOMENTUM_3M:
        signals.append(
            Signal(SignalType.POSITIVE, f"Strong 3-month momentum: +{stock.return_3m:.1f}%")
        )
    elif stock.return_3m < WEAK_MOMENTUM_3M:
        signals.append(
            Signal(SignalType.NEGATIVE, f"Weak 3-month performance: {stock.return_3m:.1f}%")
        )

    if stock.volume_incr >= 1:
        signals.append(Signal(SignalType.POSITIVE, "Increasing volume - Accumulation"))

    return tuple(signals)


def _num(value: float) -> str:
    return f"{value:g}"


def build_checklist(stock: StockRecord) -> InvestmentChecklist:
    """
    Run the fourteen investment checks.

    Categories: financial fortitude, growth trajectory, valuation,
    capital efficiency and institutional action. Seven checks are
    critical, six important and one optional.

    Args:
        stock: Snapshot row

    Returns:
        InvestmentChecklist
    """
    s = stock
    debt_reducing = s.debt_reduce == 1
    consistent = s.quarterly_growers == 1
    expanding = s.capacity_expansion == 1
    smart_money = s.public_holding_decr == 1
    accumulating = s.accumulation == 1
    cash_positive = s.cash_flow > 0

    checks = (
        ChecklistItem(
            "Financial Fortitude",
            "Strong Balance Sheet",
            f"Balance Sheet Checklist Score ≥ {MIN_BALANCE_SHEET_SCORE}/10",
            s.bs_checklist >= MIN_BALANCE_SHEET_SCORE,
            f"Score: {_num(s.bs_checklist)}/10",
            Importance.CRITICAL,
        ),
        ChecklistItem(
            "Financial Fortitude",
            "Positive Operating Cash Flow",
            "Company generates real cash from operations",
            cash_positive,
            "Positive" if cash_positive else "Negative/Low",
            Importance.CRITICAL,
        ),
        ChecklistItem(
            "Financial Fortitude",
            "Debt Management",
            f"Active debt reduction or low debt (Score ≥ {MIN_DEBT_SCORE})",
            debt_reducing or s.debt_geni >= MIN_DEBT_SCORE,
            "Reducing Debt" if debt_reducing else f"Score: {_num(s.debt_geni)}",
            Importance.IMPORTANT,
        ),
        ChecklistItem(
            "Growth Trajectory",
            "Sales Acceleration",
            "Quarterly sales growth > 3Y average",
            s.yoy_quarterly_sales_growth > s.sales_growth_3y,
            f"Q: {_num(s.yoy_quarterly_sales_growth)}% vs 3Y: {_num(s.sales_growth_3y)}%",
            Importance.IMPORTANT,
        ),
        ChecklistItem(
            "Growth Trajectory",
            "Consistent Quarterly Growth",
            "Classified as a consistent quarterly grower",
            consistent,
            "Yes" if consistent else "No",
            Importance.CRITICAL,
        ),
        ChecklistItem(
            "Growth Trajectory",
            "Capacity Expansion",
            "Company is expanding capacity for future growth",
            expanding,
            "Expanding" if expanding else "No",
            Importance.OPTIONAL,
        ),
        ChecklistItem(
            "Valuation",
            "GARP Score",
            "Growth At Reasonable Price score > 0",
            s.garp > 0,
            f"Score: {_num(s.garp)}",
            Importance.IMPORTANT,
        ),
        ChecklistItem(
            "Valuation",
            "Discount to Industry",
            "Trading at P/E lower than industry average",
            s.pe < s.industry_pe,
            f"{_num(s.pe)} vs {_num(s.industry_pe)}",
            Importance.IMPORTANT,
        ),
        ChecklistItem(
            "Valuation",
            "Margin of Safety",
            f"P/E < {MAX_SAFE_PE:g} OR High Growth (>{HIGH_GROWTH_3Y:g}%)",
            s.pe < MAX_SAFE_PE or s.profit_growth_3y > HIGH_GROWTH_3Y,
            f"P/E: {_num(s.pe)}, Gr: {_num(s.profit_growth_3y)}%",
            Importance.CRITICAL,
        ),
        ChecklistItem(
            "Capital Efficiency",
            "Improving Capital Returns",
            "Current ROCE > 3Y Average",
            s.roce_v2 > 0 or s.roce > s.roce_3y_avg,
            f"{_num(s.roce)}% vs {_num(s.roce_3y_avg)}%",
            Importance.IMPORTANT,
        ),
        ChecklistItem(
            "Capital Efficiency",
            f"High ROCE (>{HIGH_ROCE:g}%)",
            "Superior capital efficiency",
            s.roce > HIGH_ROCE,
            f"{_num(s.roce)}%",
            Importance.CRITICAL,
        ),
        ChecklistItem(
            "Institutional Action",
            "Smart Money Accumulation",
            "Public shareholding is decreasing (Institutions buying)",
            smart_money,
            "Yes (Accumulating)" if smart_money else "No",
            Importance.CRITICAL,
        ),
        ChecklistItem(
            "Institutional Action",
            "Volume Accumulation",
            "Price volume action suggests accumulation",
            accumulating,
            "Detected" if accumulating else "None",
            Importance.IMPORTANT,
        ),
        ChecklistItem(
            "Institutional Action",
            "Promoter Confidence",
            "Promoters are not reducing stake",
            s.promoter_holding_change >= 0,
            f"{_num(s.promoter_holding_change)}% change",
            Importance.CRITICAL,
        ),
    )
    return InvestmentChecklist(checks=checks)


def research_links(stock: StockRecord) -> tuple[dict[str, str], ...]:
    """News and exchange pages for the company; exchange links need their code."""
    name, nse, bse = stock.name, stock.nse_code, stock.bse_code
    query = quote(f"{name} {nse} stock news quarterly results", safe="")

    links = [
        ("Google News", f"https://news.google.com/search?q={query}&hl=en-IN&gl=IN&ceid=IN:en"),
        (
            "Moneycontrol",
            f"https://www.moneycontrol.com/stocks/company_info/stock_news.php?sc_id={bse or nse}",
        ),
        ("Economic Times", f"https://economictimes.indiatimes.com/topic/{quote(name, safe='')}"),
        ("Screener.in", f"https://www.screener.in/company/{nse or bse}/"),
    ]
    if bse:
        slug = quote("-".join(name.lower().split()), safe="")
        links.append(("BSE", f"https://www.bseindia.com/stock-share-price/{slug}/{bse}"))
    if nse:
        links.append(("NSE", f"https://www.nseindia.com/get-quotes/equity?symbol={nse}"))

    return tuple({"source": source, "url": url} for source, url in links)


def find_stock(stocks: Sequence[StockRecord], query: str) -> StockRecord | None:
    """
    Look up a stock by NSE code, BSE code or name.

    Exact code or name matches win; otherwise the first row whose name
    contains the query (case-insensitive).
    """
    query = query.strip()
    if not query:
        return None

    for stock in stocks:
        if query in (stock.nse_code, stock.bse_code, stock.name):
            return stock

    needle = query.lower()
    return next((s for s in stocks if needle in s.name.lower()), None)


def analyze_stock(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> StockAnalysis:
    """
    Build the deep analysis for one stock.

    Args:
        stock: Snapshot row
        sectors: Sector lookup tables (sector group shown with the analysis)

    Returns:
        StockAnalysis
    """
    return StockAnalysis(
        stock=stock,
        sector_group=sectors.sector_group(stock.industry),
        quarterly_signals=quarterly_signals(stock),
        technical_signals=technical_signals(stock),
        checklist=build_checklist(stock),
        research_links=research_links(stock),
    )
