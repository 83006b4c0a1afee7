"""
Stockify Streamlit Dashboard.

Main entry point for the dashboard application.
Run with: streamlit run stockify/dashboard/app.py
"""

import pandas as pd
import streamlit as st

from stockify.core.config import get_settings
from stockify.core.exceptions import StorageError
from stockify.dashboard.components.allocation_chart import render_sector_pie, render_weight_bars
from stockify.dashboard.components.score_card import render_score_card
from stockify.recommendation.diff import compare_recommendations
from stockify.storage.store import RecommendationStore


def main() -> None:
    """Main dashboard application."""
    st.set_page_config(
        page_title="Stockify",
        page_icon="📈",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    st.title("Stockify")
    st.markdown("**Weekly multi-layer equity scoring and allocation**")

    store = RecommendationStore(get_settings().db_dir)

    try:
        history = store.get_history(limit=52)
    except StorageError as e:
        st.error(f"Could not read recommendation history: {e}")
        return

    if not history:
        st.warning(
            "No recommendations stored yet. Run the weekly pipeline first:\n"
            "```\npython scripts/run_weekly.py --csv data/stocks.csv\n```"
        )
        return

    # Sidebar
    with st.sidebar:
        st.header("About Stockify")
        st.markdown(
            """
            Each stock passes three quality gates, then is scored on five
            layers whose weights follow the market regime.

            **Layers:**
            - Safety: volatility, drawdown, leverage, liquidity
            - Fundamental: returns on capital, growth, cash flow
            - Valuation: PE / PEG / EV-EBITDA vs sector
            - Momentum: trend, RSI, relative strength
            - External: sector, peers, macro sensitivity
            """
        )

        st.divider()

        week_ids = [h["weekId"] for h in history]
        selected = st.selectbox("Week", week_ids, index=0)

    index = week_ids.index(selected)
    current = history[index]["data"]
    previous = history[index + 1]["data"] if index + 1 < len(history) else None

    allocation = current.get("allocation", {})
    stocks = allocation.get("stocks", [])

    render_score_card(
        market_condition=current.get("marketCondition", "NEUTRAL"),
        week_id=current.get("weekId", ""),
        summary=current.get("summary", {}),
    )

    # Allocation
    st.markdown("### Allocation")
    col1, col2 = st.columns([2, 1])
    with col1:
        render_weight_bars(stocks)
    with col2:
        render_sector_pie(allocation)
        st.metric("Equity", f"{allocation.get('totalEquity', 0):.1f}%")
        st.metric("Cash", f"{allocation.get('cash', 0):.1f}%")

    validation = current.get("validation", {})
    if validation and not validation.get("valid", True):
        for issue in validation.get("issues", []):
            st.warning(issue)

    # Top picks
    st.markdown("### Top Picks")
    for pick in current.get("topPicks", []):
        title = (
            f"{pick['name']} ({pick['code']}) - {pick['recommendation']} "
            f"- score {pick['compositeScore']} - {pick['weight']:.1f}%"
        )
        with st.expander(title):
            pcol1, pcol2, pcol3 = st.columns(3)
            with pcol1:
                st.markdown("**Strengths**")
                for s in pick.get("strengths", []):
                    st.markdown(f"- {s}")
            with pcol2:
                st.markdown("**Risks**")
                for r in pick.get("risks", []):
                    st.markdown(f"- {r}")
            with pcol3:
                st.markdown("**Layer Scores**")
                st.dataframe(
                    pd.Series(pick.get("scoreBreakdown", {}), name="score"),
                    use_container_width=True,
                )

    # Week-over-week changes
    st.markdown("### Changes vs Previous Week")
    if previous is None:
        st.info("No earlier week to compare against.")
    else:
        diff = compare_recommendations(current, previous)
        if not diff.has_changes:
            st.success("No changes from the previous week.")
        else:
            change = diff.market_condition_change
            if change:
                st.warning(f"Market condition: {change['from']} → {change['to']}")
            dcol1, dcol2 = st.columns(2)
            with dcol1:
                st.markdown("**New**")
                for s in diff.new:
                    st.markdown(f"- {s.get('name')} ({s.get('weight', 0):.1f}%)")
            with dcol2:
                st.markdown("**Removed**")
                for s in diff.removed:
                    st.markdown(f"- {s.get('name')} ({s.get('weight', 0):.1f}%)")
            if diff.weight_changes:
                st.dataframe(
                    pd.DataFrame([c.to_dict() for c in diff.weight_changes]),
                    use_container_width=True,
                )

    # Watchlist and exclusions
    wcol1, wcol2 = st.columns(2)
    with wcol1:
        st.markdown("### Watchlist")
        watchlist = current.get("watchlist", [])
        if watchlist:
            st.dataframe(pd.DataFrame(watchlist), use_container_width=True)
        else:
            st.info("Watchlist is empty.")
    with wcol2:
        st.markdown("### Exclusions")
        excluded = current.get("excluded", {})
        st.metric("Failed Gates", excluded.get("count", 0))
        reasons = excluded.get("reasons", [])
        if reasons:
            st.dataframe(pd.DataFrame(reasons), use_container_width=True)

    # History
    st.markdown("### Recommendation History")
    rows = [
        {
            "weekId": h["weekId"],
            "marketCondition": h["marketCondition"],
            "positions": len(h["data"].get("allocation", {}).get("stocks", [])),
            "cash": h["data"].get("allocation", {}).get("cash", 0),
            "averageScore": h["data"].get("summary", {}).get("averageScore", 0),
        }
        for h in history
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True)

    stats = store.get_stats()
    if stats["frequentPicks"]:
        with st.expander("Most Frequent Picks"):
            st.dataframe(pd.DataFrame(stats["frequentPicks"]), use_container_width=True)


if __name__ == "__main__":
    main()
