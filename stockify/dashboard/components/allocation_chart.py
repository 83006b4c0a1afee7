"""
Allocation charts for the Stockify dashboard.

Sector pie (cash included) and per-stock weight bars.
"""

from typing import Any

import plotly.graph_objects as go
import streamlit as st

RECOMMENDATION_COLORS = {
    "STRONG BUY": "#15803d",
    "BUY": "#22c55e",
    "ACCUMULATE": "#84cc16",
    "HOLD": "#eab308",
    "WATCH": "#f97316",
    "EXCLUDED": "#6b7280",
}


def render_sector_pie(allocation: dict[str, Any]) -> None:
    """
    Render sector weights as a donut chart.

    Args:
        allocation: Recommendation allocation dict
    """
    sectors = allocation.get("sectorBreakdown", [])
    if not sectors:
        st.info("No sector allocation available.")
        return

    labels = [s["sector"] for s in sectors] + ["Cash"]
    values = [s["weight"] for s in sectors] + [allocation.get("cash", 0)]

    fig = go.Figure(
        go.Pie(
            labels=labels,
            values=values,
            hole=0.45,
            textinfo="label+percent",
            sort=False,
        )
    )
    fig.update_layout(
        title="Sector Allocation",
        showlegend=False,
        height=360,
        margin=dict(l=0, r=0, t=50, b=0),
    )

    st.plotly_chart(fig, use_container_width=True, key="sector_pie")


def render_weight_bars(stocks: list[dict[str, Any]]) -> None:
    """
    Render position weights as horizontal bars colored by recommendation.

    Args:
        stocks: Allocation rows
    """
    if not stocks:
        st.info("No positions allocated.")
        return

    ordered = list(reversed(stocks))
    fig = go.Figure(
        go.Bar(
            x=[s["weight"] for s in ordered],
            y=[s["name"] for s in ordered],
            orientation="h",
            marker_color=[
                RECOMMENDATION_COLORS.get(s.get("recommendation", ""), "#6b7280")
                for s in ordered
            ],
            text=[f"{s['weight']:.1f}%" for s in ordered],
            textposition="outside",
        )
    )
    fig.update_layout(
        xaxis_title="Weight (%)",
        showlegend=False,
        height=max(300, 28 * len(stocks)),
        margin=dict(l=0, r=0, t=30, b=0),
    )

    st.plotly_chart(fig, use_container_width=True, key="weight_bars")
