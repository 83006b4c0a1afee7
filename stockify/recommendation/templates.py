"""
Text templates for Stockify recommendations.

Strengths, risks and watchlist reasons are read off fixed thresholds on the
layer scores, so every line of text traces back to a score.
"""

from collections.abc import Mapping

from stockify.core.types import CompositeResult, RiskLevel

# (layer, minimum score, text); first entry uses the safety layer
STRENGTH_TEMPLATES: tuple[tuple[str, float, str], ...] = (
    ("risk", 70, "Low risk profile"),
    ("fundamental", 70, "Strong fundamentals"),
    ("valuation", 70, "Attractive valuation"),
    ("momentum", 60, "Positive momentum"),
    ("external", 60, "Favorable sector trends"),
)
BALANCED_PROFILE = "Balanced overall profile"
BALANCED_PROFILE_MIN_COMPOSITE = 55

# (layer, score below, text)
RISK_TEMPLATES: tuple[tuple[str, float, str], ...] = (
    ("risk", 50, "Above average risk"),
    ("momentum", 40, "Weak momentum"),
    ("valuation", 40, "Valuation concerns"),
)
ELEVATED_RISK = "Elevated overall risk"

# Checked in order; the first match wins
WATCHLIST_REASONS: tuple[tuple[str, float, str], ...] = (
    ("momentum", 45, "Good fundamentals, waiting for better entry point"),
    ("valuation", 45, "Quality stock but currently expensive"),
    ("risk", 50, "Potential but needs risk reduction"),
)
DEFAULT_WATCHLIST_REASON = "Monitor for allocation opportunity"


def get_strengths(scores: Mapping[str, float], composite_score: float) -> list[str]:
    """
    Strengths for a stock.

    Args:
        scores: Layer name -> score
        composite_score: Composite score

    Returns:
        Ordered list of strength texts
    """
    strengths = [
        text for layer, floor, text in STRENGTH_TEMPLATES if scores.get(layer, 0) >= floor
    ]
    if not strengths and composite_score >= BALANCED_PROFILE_MIN_COMPOSITE:
        strengths.append(BALANCED_PROFILE)
    return strengths


def get_risks(scores: Mapping[str, float], risk_level: RiskLevel | None) -> list[str]:
    """
    Risks for a stock.

    Args:
        scores: Layer name -> score
        risk_level: Risk level label (elevated levels add a risk line)

    Returns:
        Ordered list of risk texts
    """
    risks = [
        text for layer, ceiling, text in RISK_TEMPLATES if scores.get(layer, 100) < ceiling
    ]
    if risk_level is not None and risk_level.is_elevated:
        risks.append(ELEVATED_RISK)
    return risks


def get_watchlist_reason(result: CompositeResult) -> str:
    """Why a well-scored stock sits on the watchlist instead of the allocation."""
    if result.scores is None:
        return DEFAULT_WATCHLIST_REASON

    scores = result.scores.as_scores()
    for layer, ceiling, text in WATCHLIST_REASONS:
        if scores[layer] < ceiling:
            return text
    return DEFAULT_WATCHLIST_REASON
