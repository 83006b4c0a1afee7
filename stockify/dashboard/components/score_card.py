"""
Market condition card for the Stockify dashboard.

Displays the detected regime with the headline run numbers.
"""

from typing import Any

import streamlit as st


CONDITION_COLORS = {
    "BULLISH": "#22c55e",
    "NEUTRAL": "#eab308",
    "BEARISH": "#ef4444",
}

CONDITION_DESCRIPTIONS = {
    "BULLISH": "Broad positive momentum, momentum weighted up",
    "NEUTRAL": "Mixed tape, balanced weights",
    "BEARISH": "Weak breadth, safety weighted up",
}


def render_score_card(
    market_condition: str,
    week_id: str,
    summary: dict[str, Any],
) -> None:
    """
    Render the market condition card.

    Args:
        market_condition: BULLISH / NEUTRAL / BEARISH
        week_id: ISO week id of the recommendation
        summary: Recommendation summary dict
    """
    color = CONDITION_COLORS.get(market_condition, "#6b7280")
    description = CONDITION_DESCRIPTIONS.get(market_condition, "Unknown")

    st.markdown(
        f"""
        <div style="
            background: linear-gradient(135deg, {color}20, {color}10);
            border-left: 4px solid {color};
            padding: 1.5rem;
            border-radius: 0.5rem;
            margin-bottom: 1rem;
        ">
            <div style="font-size: 0.875rem; color: #6b7280; margin-bottom: 0.5rem;">
                Stockify - {week_id}
            </div>
            <div style="font-size: 2.5rem; font-weight: bold; color: {color};">
                {market_condition}
            </div>
            <div style="font-size: 1rem; color: {color}; margin-top: 0.5rem;">
                {description}
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Analyzed", f"{summary.get('totalAnalyzed', 0):,}")
    with col2:
        st.metric("Passed Gates", f"{summary.get('passedGates', 0):,}")
    with col3:
        st.metric("Positions", summary.get("recommendedStocks", 0))
    with col4:
        st.metric("Avg Top Score", summary.get("averageScore", 0))
