"""
Core type definitions for Stockify.

Defines the stock record, per-layer score records, gate results,
composite results, portfolio allocation records and the label enums
shared by every scoring layer.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, TypeAlias

from stockify.core.numeric import round_half_up, to_float

# (tag, human-readable explanation)
Signal: TypeAlias = tuple[str, str]


# =============================================================================
# STOCK RECORD
# =============================================================================

# Attribute name -> snapshot column name
STRING_COLUMNS: dict[str, str] = {
    "name": "Name",
    "bse_code": "BSE Code",
    "nse_code": "NSE Code",
    "isin_code": "ISIN Code",
    "industry_group": "Industry Group",
    "industry": "Industry",
}

NUMERIC_COLUMNS: dict[str, str] = {
    # Price and market data
    "current_price": "Current Price",
    "market_cap": "Market Capitalization",
    "dma_50": "DMA 50",
    "dma_200": "DMA 200",
    "dma_50_prev": "DMA 50 previous day",
    "dma_200_prev": "DMA 200 previous day",
    # Volume
    "volume": "Volume",
    "volume_1w_avg": "Volume 1week average",
    "volume_1m_avg": "Volume 1month average",
    # Growth
    "profit_growth": "Profit growth",
    "profit_growth_3y": "Profit growth 3Years",
    "sales_growth": "Sales growth",
    "sales_growth_3y": "Sales growth 3Years",
    # Profitability
    "roce": "Return on capital employed",
    "roce_3y_avg": "Average return on capital employed 3Years",
    "roce_v2": "rocev2",
    "np_margin": "npmargin",
    "op_margin": "opmargin",
    "margin": "margin",
    # Valuation
    "pe": "Price to Earning",
    "industry_pe": "Industry PE",
    "gordon_iv": "gordanIV",
    "discount1": "discount1",
    "discount2": "discount2",
    "geni_score1": "geniscore1",
    "eps_geni": "epsgeni",
    # Returns (%)
    "return_1w": "Return over 1week",
    "return_1m": "Return over 1month",
    "return_3m": "Return over 3months",
    # Quality scores
    "bs_checklist": "BSchklist",
    "canslim": "Canslim",
    "master_score": "master score",
    "momentum_score": "momentumscore",
    "garp": "garp",
    # Technical flags
    "volume_incr": "volumeincr",
    "rsi_incr": "rsiincr",
    "accumulation": "accumulation",
    # Ownership
    "promoter_holding": "Promoter holding",
    "promoter_holding_change": "Change in promoter holding",
    "public_holding_decr": "pubholdingdecr",
    # Financial health
    "cash_flow": "CashFlow",
    "debt_geni": "debtgeni",
    "debt_reduce": "debtreduce",
    "equity_reduce": "equityreduce",
    # Quarterly
    "quarterly_growers": "Quarterly Growers",
    "yoy_quarterly_sales_growth": "YOY Quarterly sales growth",
    "yoy_quarterly_profit_growth": "YOY Quarterly profit growth",
    # Special metrics
    "eps_growth": "epsgrowth",
    "eps_growth_by_discount": "epsgrowthbydiscount",
    "eps_growth_by_discount2": "epsgrowthbydiscount2",
    "eps_growth_by_price2": "epsgrowthbyprice2",
    "roic_reinv": "roicreinv",
    "cyclical_triggers": "cyclicaltriggers",
    "capacity_expansion": "capacity expansion",
    "fundamental_value": "fundamental value",
}


@dataclass(frozen=True)
class StockRecord:
    """
    One row of the fundamentals/technicals snapshot.

    Immutable input to scoring. Every numeric field defaults to 0.0 and
    every string field to "" so the scorers never see a missing value.
    """

    name: str = ""
    bse_code: str = ""
    nse_code: str = ""
    isin_code: str = ""
    industry_group: str = ""
    industry: str = ""

    current_price: float = 0.0
    market_cap: float = 0.0  # Rs Crore
    dma_50: float = 0.0
    dma_200: float = 0.0
    dma_50_prev: float = 0.0
    dma_200_prev: float = 0.0

    volume: float = 0.0
    volume_1w_avg: float = 0.0
    volume_1m_avg: float = 0.0

    profit_growth: float = 0.0
    profit_growth_3y: float = 0.0
    sales_growth: float = 0.0
    sales_growth_3y: float = 0.0

    roce: float = 0.0
    roce_3y_avg: float = 0.0
    roce_v2: float = 0.0
    np_margin: float = 0.0  # Fraction, e.g. 0.12
    op_margin: float = 0.0  # Fraction
    margin: float = 0.0

    pe: float = 0.0
    industry_pe: float = 0.0
    gordon_iv: float = 0.0  # Discount to Gordon intrinsic value (fraction)
    discount1: float = 0.0
    discount2: float = 0.0
    geni_score1: float = 0.0
    eps_geni: float = 0.0

    return_1w: float = 0.0
    return_1m: float = 0.0
    return_3m: float = 0.0

    bs_checklist: float = 0.0
    canslim: float = 0.0
    master_score: float = 0.0
    momentum_score: float = 0.0
    garp: float = 0.0

    volume_incr: float = 0.0
    rsi_incr: float = 0.0
    accumulation: float = 0.0

    promoter_holding: float = 0.0
    promoter_holding_change: float = 0.0
    public_holding_decr: float = 0.0

    cash_flow: float = 0.0
    debt_geni: float = 0.0
    debt_reduce: float = 0.0
    equity_reduce: float = 0.0

    quarterly_growers: float = 0.0
    yoy_quarterly_sales_growth: float = 0.0
    yoy_quarterly_profit_growth: float = 0.0

    eps_growth: float = 0.0
    eps_growth_by_discount: float = 0.0
    eps_growth_by_discount2: float = 0.0
    eps_growth_by_price2: float = 0.0
    roic_reinv: float = 0.0
    cyclical_triggers: float = 0.0
    capacity_expansion: float = 0.0
    fundamental_value: float = 0.0

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "StockRecord":
        """
        Build a record from a snapshot row.

        Accepts either snapshot column names ("Return on capital employed")
        or attribute names ("roce"). Unknown keys are ignored.

        Args:
            row: Mapping of column name -> raw value

        Returns:
            StockRecord with defaults applied
        """
        values: dict[str, Any] = {}
        for attr, column in STRING_COLUMNS.items():
            raw = row.get(column, row.get(attr))
            values[attr] = "" if raw is None else str(raw).strip()
        for attr, column in NUMERIC_COLUMNS.items():
            values[attr] = to_float(row.get(column, row.get(attr)))
        # pandas hands NaN strings through as "nan"
        for attr in STRING_COLUMNS:
            if values[attr].lower() == "nan":
                values[attr] = ""
        return cls(**values)

    @property
    def code(self) -> str:
        """Primary identifier: NSE code, falling back to BSE code."""
        return self.nse_code or self.bse_code

    def to_row(self) -> dict[str, Any]:
        """Convert back to snapshot column names."""
        columns = {**STRING_COLUMNS, **NUMERIC_COLUMNS}
        return {columns[f.name]: getattr(self, f.name) for f in fields(self)}


# =============================================================================
# LABEL ENUMS
# =============================================================================


class MarketCondition(str, Enum):
    """
    Overall market regime for one scoring run.

    Derived from the whole universe's 3-month returns; global to a run,
    never stored per stock.
    """

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class RecommendationLabel(str, Enum):
    """Per-stock action label. Both composite AND safety must clear a tier."""

    STRONG_BUY = "STRONG BUY"
    BUY = "BUY"
    ACCUMULATE = "ACCUMULATE"
    HOLD = "HOLD"
    WATCH = "WATCH"
    EXCLUDED = "EXCLUDED"

    @classmethod
    def from_scores(cls, composite: float, safety: float) -> "RecommendationLabel":
        """
        Map composite and safety scores to a label.

        Args:
            composite: Composite score in [0, 100]
            safety: Risk-layer score in [0, 100] (higher = safer)

        Returns:
            Recommendation label (never EXCLUDED)
        """
        if composite >= 70 and safety >= 60:
            return cls.STRONG_BUY
        elif composite >= 60 and safety >= 50:
            return cls.BUY
        elif composite >= 50:
            return cls.ACCUMULATE
        elif composite >= 40:
            return cls.HOLD
        else:
            return cls.WATCH


class RiskLevel(str, Enum):
    """Risk level label derived from the safety score."""

    VERY_LOW = "Very Low"
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        if score >= 80:
            return cls.VERY_LOW
        elif score >= 65:
            return cls.LOW
        elif score >= 50:
            return cls.MODERATE
        elif score >= 35:
            return cls.HIGH
        else:
            return cls.VERY_HIGH

    @property
    def is_elevated(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.VERY_HIGH)


class Grade(str, Enum):
    """Letter grade for the fundamental layer."""

    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C_PLUS = "C+"
    C = "C"
    D = "D"

    @classmethod
    def from_score(cls, score: float) -> "Grade":
        bands = (
            (85, cls.A_PLUS),
            (75, cls.A),
            (65, cls.B_PLUS),
            (55, cls.B),
            (45, cls.C_PLUS),
            (35, cls.C),
        )
        for floor, grade in bands:
            if score >= floor:
                return grade
        return cls.D


class ValuationVerdict(str, Enum):
    """Verdict label for the valuation layer (higher score = cheaper)."""

    SIGNIFICANTLY_UNDERVALUED = "Significantly Undervalued"
    UNDERVALUED = "Undervalued"
    FAIRLY_VALUED = "Fairly Valued"
    SLIGHTLY_OVERVALUED = "Slightly Overvalued"
    OVERVALUED = "Overvalued"

    @classmethod
    def from_score(cls, score: float) -> "ValuationVerdict":
        if score >= 75:
            return cls.SIGNIFICANTLY_UNDERVALUED
        elif score >= 60:
            return cls.UNDERVALUED
        elif score >= 45:
            return cls.FAIRLY_VALUED
        elif score >= 35:
            return cls.SLIGHTLY_OVERVALUED
        else:
            return cls.OVERVALUED


class MomentumSignal(str, Enum):
    """Signal label for the momentum layer."""

    STRONG_BUY = "Strong Buy"
    BUY = "Buy"
    NEUTRAL = "Neutral"
    CAUTION = "Caution"
    AVOID = "Avoid"

    @classmethod
    def from_score(cls, score: float) -> "MomentumSignal":
        if score >= 70:
            return cls.STRONG_BUY
        elif score >= 55:
            return cls.BUY
        elif score >= 45:
            return cls.NEUTRAL
        elif score >= 35:
            return cls.CAUTION
        else:
            return cls.AVOID


# =============================================================================
# SCORE RECORDS
# =============================================================================


@dataclass(frozen=True)
class LayerScore:
    """
    A scored layer or sub-component.

    Every layer and every sub-component has the same shape so each
    contributing signal stays auditable: the score, the weight it carries
    in its parent, and the ordered explanations behind it.
    """

    name: str
    score: float  # Always in [0, 100]
    weight: float  # Weight within the parent (1.0 for top-level layers)
    details: tuple[Signal, ...] = ()
    components: tuple["LayerScore", ...] = ()
    label: str | None = None  # Grade / verdict / signal / risk level
    penalty: float = 0.0  # Tail-risk penalty (risk layer only)

    def component(self, name: str) -> "LayerScore | None":
        """Look up a sub-component by name."""
        for c in self.components:
            if c.name == name:
                return c
        return None

    @property
    def detail_map(self) -> dict[str, str]:
        """Explanations as an ordered mapping."""
        return dict(self.details)

    @property
    def worst_component(self) -> "LayerScore | None":
        if not self.components:
            return None
        return min(self.components, key=lambda c: c.score)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "score": self.score,
            "weight": self.weight,
            "details": self.detail_map,
        }
        if self.components:
            data["components"] = {c.name: c.to_dict() for c in self.components}
        if self.label is not None:
            data["label"] = self.label
        if self.penalty:
            data["tailRiskPenalty"] = round(self.penalty, 2)
        return data


@dataclass(frozen=True)
class LayerScores:
    """The five top-level layer scores for one stock."""

    risk: LayerScore
    fundamental: LayerScore
    valuation: LayerScore
    momentum: LayerScore
    external: LayerScore

    def as_scores(self) -> dict[str, float]:
        """Layer name -> score."""
        return {
            "risk": self.risk.score,
            "fundamental": self.fundamental.score,
            "valuation": self.valuation.score,
            "momentum": self.momentum.score,
            "external": self.external.score,
        }

    def __iter__(self):
        return iter(
            (self.risk, self.fundamental, self.valuation, self.momentum, self.external)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk": self.risk.to_dict(),
            "fundamental": self.fundamental.to_dict(),
            "valuation": self.valuation.to_dict(),
            "momentum": self.momentum.to_dict(),
            "external": self.external.to_dict(),
        }


@dataclass(frozen=True)
class ProfitabilityCheck:
    """One of the three profitability gate checks."""

    name: str
    passed: bool
    value: float
    threshold: float


@dataclass(frozen=True)
class GateResult:
    """
    Result of the quality gate for one stock.

    A stock passes when it has zero hard failures, regardless of warnings.
    """

    passed: bool
    failures: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    profitability: tuple[ProfitabilityCheck, ...] = ()

    @property
    def profitability_passed(self) -> int:
        return sum(1 for c in self.profitability if c.passed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "failures": list(self.failures),
            "warnings": list(self.warnings),
            "profitabilityDetails": [
                {
                    "name": c.name,
                    "passed": c.passed,
                    "value": c.value,
                    "threshold": round(c.threshold, 2),
                }
                for c in self.profitability
            ],
        }


@dataclass(frozen=True)
class CompositeWeights:
    """Regime-dependent weights for the five layers. Sum to 1.0."""

    safety: float
    fundamental: float
    valuation: float
    momentum: float
    external: float

    @property
    def total(self) -> float:
        return (
            self.safety + self.fundamental + self.valuation + self.momentum + self.external
        )

    def apply(self, scores: LayerScores) -> float:
        """Weighted sum of the five layer scores."""
        return (
            self.safety * scores.risk.score
            + self.fundamental * scores.fundamental.score
            + self.valuation * scores.valuation.score
            + self.momentum * scores.momentum.score
            + self.external * scores.external.score
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "safety": self.safety,
            "fundamental": self.fundamental,
            "valuation": self.valuation,
            "momentum": self.momentum,
            "external": self.external,
        }


@dataclass(frozen=True)
class CompositeResult:
    """
    Composite scoring result for one stock.

    Derived and recomputed every run; identified only by the stock code.
    Stocks failing the quality gate carry scores=None, composite 0 and
    the EXCLUDED label.
    """

    stock: StockRecord
    gate: GateResult
    market_condition: MarketCondition
    composite_score: float
    recommendation: RecommendationLabel
    scores: LayerScores | None = None
    weights: CompositeWeights | None = None

    @property
    def passed(self) -> bool:
        return self.gate.passed

    @property
    def code(self) -> str:
        return self.stock.code

    @property
    def name(self) -> str:
        return self.stock.name

    @property
    def industry(self) -> str:
        return self.stock.industry

    @property
    def safety_score(self) -> float:
        return self.scores.risk.score if self.scores else 0.0

    @property
    def risk_level(self) -> RiskLevel | None:
        if self.scores is None:
            return None
        return RiskLevel.from_score(self.scores.risk.score)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.stock.name,
            "nseCode": self.stock.nse_code,
            "bseCode": self.stock.bse_code,
            "industry": self.stock.industry,
            "industryGroup": self.stock.industry_group,
            "currentPrice": self.stock.current_price,
            "marketCap": self.stock.market_cap,
            "passed": self.passed,
            "gateResult": self.gate.to_dict(),
            "scores": self.scores.to_dict() if self.scores else None,
            "weights": self.weights.to_dict() if self.weights else None,
            "marketCondition": self.market_condition.value,
            "compositeScore": self.composite_score,
            "recommendation": self.recommendation.value,
            "riskLevel": self.risk_level.value if self.risk_level else None,
            "return1w": self.stock.return_1w,
            "return1m": self.stock.return_1m,
            "return3m": self.stock.return_3m,
        }


# =============================================================================
# PORTFOLIO TYPES
# =============================================================================


@dataclass(frozen=True)
class SizingConfig:
    """
    Position sizing limits (all in % of the portfolio).

    Design Rule:
        Caps are ceilings, never floors. A capped weight is never scaled up
        past its ceiling to make the equity target.
    """

    max_single_stock: float = 12.0
    max_top5: float = 50.0
    max_per_sector: float = 25.0
    min_stock_weight: float = 2.0
    target_equity_allocation: float = 90.0
    min_composite_score: float = 45.0
    max_candidates: int = 20
    max_sector_iterations: int = 10


@dataclass(frozen=True)
class AllocationEntry:
    """One position in the final allocation."""

    name: str
    nse_code: str
    bse_code: str
    industry: str
    sector_group: str
    current_price: float
    market_cap: float
    weight: float  # % of portfolio, one decimal
    composite_score: float
    recommendation: RecommendationLabel
    scores: dict[str, float]
    risk_level: RiskLevel
    conviction: float
    return_1w: float = 0.0
    return_1m: float = 0.0
    return_3m: float = 0.0
    ai_score: float | None = None

    @property
    def code(self) -> str:
        return self.nse_code or self.bse_code

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "nseCode": self.nse_code,
            "bseCode": self.bse_code,
            "industry": self.industry,
            "sectorGroup": self.sector_group,
            "currentPrice": self.current_price,
            "marketCap": self.market_cap,
            "weight": self.weight,
            "compositeScore": self.composite_score,
            "recommendation": self.recommendation.value,
            "scores": dict(self.scores),
            "riskLevel": self.risk_level.value,
            "conviction": self.conviction,
            "return1w": self.return_1w,
            "return1m": self.return_1m,
            "return3m": self.return_3m,
        }
        if self.ai_score is not None:
            data["aiScore"] = self.ai_score
        return data


@dataclass(frozen=True)
class SectorWeight:
    """Summed weight of one sector group."""

    sector: str
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {"sector": self.sector, "weight": self.weight}


@dataclass(frozen=True)
class PortfolioAllocation:
    """
    Final allocation produced by the position sizing engine.

    Invariant: sum(weight) + cash_allocation == 100 within rounding.
    """

    stocks: tuple[AllocationEntry, ...] = ()
    total_weight: float = 0.0
    cash_allocation: float = 100.0
    sector_allocation: tuple[SectorWeight, ...] = ()
    excluded_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.stocks

    @property
    def codes(self) -> list[str]:
        return [s.code for s in self.stocks]

    def to_dict(self) -> dict[str, Any]:
        return {
            "stocks": [s.to_dict() for s in self.stocks],
            "totalWeight": self.total_weight,
            "cashAllocation": self.cash_allocation,
            "sectorAllocation": [s.to_dict() for s in self.sector_allocation],
            "excludedCount": self.excluded_count,
        }


@dataclass(frozen=True)
class WeightValidation:
    """Self-check of an allocation. Violations are reported, never raised."""

    valid: bool
    issues: tuple[str, ...] = ()
    summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": list(self.issues),
            "summary": dict(self.summary),
        }


@dataclass(frozen=True)
class ScoringRun:
    """
    Output of one scoring pass over the universe.

    passed is sorted descending by composite score with ties kept in input
    order; failed keeps input order.
    """

    market_condition: MarketCondition
    passed: tuple[CompositeResult, ...] = ()
    failed: tuple[CompositeResult, ...] = ()

    @property
    def total(self) -> int:
        return len(self.passed) + len(self.failed)

    @property
    def average_composite(self) -> float:
        """Average composite of gate-passed stocks, rounded half-up."""
        if not self.passed:
            return 0
        mean = sum(r.composite_score for r in self.passed) / len(self.passed)
        return round_half_up(mean)

    @property
    def summary(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passedGates": len(self.passed),
            "failedGates": len(self.failed),
            "avgCompositeScore": self.average_composite,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "marketCondition": self.market_condition.value,
            "passed": [r.to_dict() for r in self.passed],
            "failed": [r.to_dict() for r in self.failed],
            "summary": self.summary,
        }
