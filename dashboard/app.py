"""Streamlit page combining the collection map, filters and route progress."""
from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from binmap.theme import load_settings

from .components.maps import render_collection_map
from .components.summary import (
    render_category_chips,
    render_route_progress,
    render_statistics,
)
from .data import prepare_dashboard_data, resolve_data_path
from .state import get_map_canvas, persist_view_params

logger = logging.getLogger(__name__)


def render_collection_dashboard(data_path: Optional[str] = None) -> None:
    """Render the bin collection dashboard."""

    st.set_page_config(page_title="Bin collection map", layout="wide")
    st.title("Bin collection map")

    try:
        settings = load_settings()
    except ValueError as exc:
        logger.warning("Invalid map configuration: %s", exc)
        st.error(f"Invalid map configuration: {exc}")
        return

    with st.sidebar:
        st.header("Data")
        data_path = st.text_input("Snapshot file", value=resolve_data_path(data_path))

    prepared = prepare_dashboard_data(data_path)
    if prepared.dataset_error:
        st.error(prepared.dataset_error)
        return
    if not prepared.data_available:
        st.info(f"No bins or routes found in {prepared.data_path}.")
        return

    with st.sidebar:
        st.header("Map")
        show_routes = st.checkbox("Show routes", value=bool(prepared.snapshot.routes))

    canvas = get_map_canvas(prepared.snapshot, settings, show_routes=show_routes)

    render_statistics(canvas.statistics)
    chosen = render_category_chips(canvas.statistics, canvas.state.category)
    if chosen is not canvas.state.category:
        canvas.set_category(chosen)

    render_collection_map(canvas, width=settings.width)
    persist_view_params(canvas)

    selected_bin = st.session_state.get("selected_bin")
    if selected_bin:
        st.caption(f"Selected bin: {selected_bin}")

    if prepared.snapshot.routes:
        st.subheader("Route progress")
        render_route_progress(prepared.snapshot.routes)

