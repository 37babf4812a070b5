"""Summary metric components for the collection dashboard."""
from __future__ import annotations

import math
from typing import Iterable, Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from binmap.models import Category, Route
from binmap.progress import route_progress_rows
from binmap.stats import BinStatistics
from binmap.theme import DEFAULT_PALETTE, Palette

__all__ = [
    "render_statistics",
    "render_category_chips",
    "route_progress_frame",
    "build_route_progress_figure",
    "render_route_progress",
]

_CHIP_LABELS = {
    Category.ALL: "All",
    Category.URGENT: "Urgent",
    Category.FILLING: "Filling",
    Category.NORMAL: "Normal",
    Category.OFFLINE: "Offline",
    Category.MAINTENANCE: "Maintenance",
}


def _format_value(value: Optional[float], *, percentage: bool = False) -> str:
    """Format ``value`` for display in a Streamlit metric widget."""

    if value is None:
        return "n/a"
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return "n/a"
    if percentage:
        return f"{value:.0f}%"
    return f"{value:,.0f}"


def render_statistics(stats: BinStatistics) -> None:
    """Render the headline bin counts, average fill level and efficiency."""

    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Total bins", stats.total)
    col2.metric("Urgent", stats.count(Category.URGENT))
    col3.metric("Filling", stats.count(Category.FILLING))
    col4.metric("Normal", stats.count(Category.NORMAL))
    col5.metric("Offline", stats.count(Category.OFFLINE))

    detail_cols = st.columns(3)
    detail_cols[0].metric(
        "Average fill level",
        _format_value(stats.average_fill_level if stats.total else None, percentage=True),
    )
    detail_cols[1].metric(
        "Collection efficiency",
        _format_value(stats.collection_efficiency if stats.total else None, percentage=True),
        help=f"{stats.recently_collected} bin(s) collected in the last week",
    )
    detail_cols[2].metric("Maintenance", stats.count(Category.MAINTENANCE))


def render_category_chips(
    stats: BinStatistics,
    selected: Category,
    *,
    key: str = "bin_category",
) -> Category:
    """Render the filter chips and return the chosen category."""

    options = list(_CHIP_LABELS)
    current = Category.parse(selected)
    if current is Category.FULL:
        current = Category.URGENT
    choice = st.radio(
        "Show bins",
        options,
        index=options.index(current),
        format_func=lambda category: f"{_CHIP_LABELS[category]} ({stats.count(category)})",
        horizontal=True,
        key=key,
    )
    return Category.parse(choice)


def route_progress_frame(routes: Iterable[Route]) -> pd.DataFrame:
    """Return one row per route with recomputed and reported completion."""

    return pd.DataFrame(
        route_progress_rows(list(routes)),
        columns=[
            "route_id",
            "name",
            "status",
            "total_stops",
            "completed_stops",
            "skipped_stops",
            "completion_percentage",
            "reported_completion",
            "drawable",
        ],
    )


def build_route_progress_figure(
    routes: Iterable[Route], *, palette: Palette = DEFAULT_PALETTE
) -> go.Figure:
    """Bar chart of stop-based completion per route.

    Reported completion from the route payload is overlaid as markers so
    drift between the two is visible.
    """

    df = route_progress_frame(routes)
    fig = go.Figure()
    fig.update_layout(
        title="Route progress",
        xaxis_title="Route",
        yaxis_title="Completed stops (%)",
        yaxis=dict(range=[0, 100]),
    )
    if df.empty:
        fig.add_annotation(
            text="No routes to show.",
            xref="paper",
            yref="paper",
            x=0.5,
            y=0.5,
            showarrow=False,
            font=dict(color="#555", size=13),
        )
        return fig

    labels = df["name"].astype(str)
    fig.add_trace(
        go.Bar(
            x=labels,
            y=df["completion_percentage"],
            name="Stops completed",
            marker_color=palette.primary,
            customdata=df[["completed_stops", "total_stops", "status"]].to_numpy(),
            hovertemplate="%{x}<br>%{customdata[0]}/%{customdata[1]} stops"
            "<br>Status: %{customdata[2]}<br>%{y}%<extra></extra>",
        )
    )
    reported = df["reported_completion"].astype(float)
    if reported.notna().any():
        fig.add_trace(
            go.Scatter(
                x=labels,
                y=reported,
                mode="markers",
                name="Reported",
                marker=dict(color=palette.warning, size=12, symbol="diamond"),
            )
        )
    return fig


def render_route_progress(routes: Iterable[Route]) -> None:
    routes = list(routes)
    if not routes:
        st.caption("No routes loaded.")
        return
    st.plotly_chart(build_route_progress_figure(routes), use_container_width=True)
    st.dataframe(route_progress_frame(routes), use_container_width=True, hide_index=True)
