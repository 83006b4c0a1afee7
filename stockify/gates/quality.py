"""
Quality gates for Stockify.

Hard pass/fail filter evaluated before any scoring. A stock with zero hard
failures passes regardless of how many warnings it collects; a failing
stock is never scored and keeps its failure list for reporting.

Rules:
    - Profitability: 2-of-3 checks on ROCE (hard failure)
    - Promoter holding: >= 26% when disclosed (hard failure), selling (warning)
    - Liquidity: market cap >= Rs 300 Cr (hard failure), volume (warning)
    - Quality scores: at least one of BSchklist/Canslim/master score (warning)
    - Cash flow: negative without high growth, non-cyclicals only (warning)
    - Debt sanity: non-financials only (warning)
"""

import logging

from stockify.core.constants import (
    AVG_ROCE_THRESHOLD_FACTOR,
    MIN_AVG_VOLUME,
    MIN_MARKET_CAP_CR,
    MIN_PROMOTER_HOLDING,
    PROFITABILITY_CHECKS_REQUIRED,
    PROMOTER_SELLING_WARN,
)
from stockify.core.types import GateResult, ProfitabilityCheck, StockRecord
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)


def check_quality_gates(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> GateResult:
    """
    Run every quality gate against one stock.

    Deterministic: the same stock and sector config always produce an
    identical GateResult.

    Args:
        stock: Stock to check
        sectors: Sector lookup tables

    Returns:
        GateResult with ordered failures and warnings
    """
    failures: list[str] = []
    warnings: list[str] = []
    industry = stock.industry or "default"

    # 1. Profitability (2-of-3)
    profitability = profitability_checks(stock, sectors)
    passed_checks = sum(1 for c in profitability if c.passed)
    if passed_checks < PROFITABILITY_CHECKS_REQUIRED:
        failures.append(f"Profitability: Only {passed_checks}/3 criteria passed")

    # 2. Promoter holding. Zero means widely held / not disclosed.
    promoter = stock.promoter_holding
    if 0 < promoter < MIN_PROMOTER_HOLDING:
        failures.append(
            f"Low promoter holding: {promoter:.1f}% (min: {MIN_PROMOTER_HOLDING:.0f}%)"
        )
    if stock.promoter_holding_change < PROMOTER_SELLING_WARN:
        warnings.append(f"Promoter reducing stake: {stock.promoter_holding_change:.2f}%")

    # 3. Liquidity
    if stock.market_cap < MIN_MARKET_CAP_CR:
        failures.append(
            f"Market cap too low: ₹{stock.market_cap:.0f} Cr (min: ₹{MIN_MARKET_CAP_CR:.0f} Cr)"
        )
    if stock.volume_1m_avg < MIN_AVG_VOLUME:
        warnings.append(f"Low liquidity: {stock.volume_1m_avg:.0f} avg volume")

    # 4. Quality scores
    quality_hits = (
        (stock.bs_checklist >= 5) + (stock.canslim >= 1) + (stock.master_score >= 6)
    )
    if quality_hits < 1:
        warnings.append(
            f"Low quality scores: BSchklist={stock.bs_checklist:g}, "
            f"Canslim={stock.canslim:g}, Master={stock.master_score:g}"
        )

    # 5. Cash flow, tolerated for highly cyclical sectors
    if stock.cash_flow < 0 and stock.sales_growth < 20:
        if sectors.cyclicality(industry) != "high":
            warnings.append("Negative cash flow without high growth")

    # 6. Debt sanity (non-financials)
    if not sectors.is_financial(industry) and stock.debt_geni < 1:
        warnings.append(f"Debt concerns: debtgeni score = {stock.debt_geni:g}")

    result = GateResult(
        passed=not failures,
        failures=tuple(failures),
        warnings=tuple(warnings),
        profitability=profitability,
    )

    if not result.passed:
        logger.debug(f"{stock.code or stock.name} excluded: {'; '.join(failures)}")

    return result


def profitability_checks(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> tuple[ProfitabilityCheck, ...]:
    """
    The three profitability checks behind the 2-of-3 rule.

    Args:
        stock: Stock to check
        sectors: Sector lookup tables

    Returns:
        (current ROCE, 3Y average ROCE, ROCE improving) checks
    """
    threshold = sectors.roce_threshold(stock.industry or "default")
    avg_threshold = threshold * AVG_ROCE_THRESHOLD_FACTOR

    return (
        ProfitabilityCheck(
            name="Current ROCE",
            passed=stock.roce >= threshold,
            value=stock.roce,
            threshold=threshold,
        ),
        ProfitabilityCheck(
            name="3Y Avg ROCE",
            passed=stock.roce_3y_avg >= avg_threshold,
            value=stock.roce_3y_avg,
            threshold=avg_threshold,
        ),
        ProfitabilityCheck(
            name="ROCE Improving",
            passed=stock.roce >= stock.roce_3y_avg,
            value=stock.roce,
            threshold=stock.roce_3y_avg,
        ),
    )


def gate_summary(result: GateResult) -> dict:
    """
    Display summary of a gate result.

    Args:
        result: GateResult

    Returns:
        Dict with status, color and the relevant messages
    """
    if result.passed:
        return {
            "status": "PASSED",
            "color": "green",
            "warnings": list(result.warnings),
        }
    return {
        "status": "FAILED",
        "color": "red",
        "failures": list(result.failures),
        "warnings": list(result.warnings),
    }
