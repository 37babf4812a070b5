"""State and session helpers for the Streamlit dashboards."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import streamlit as st

from binmap.canvas import MapCanvas
from binmap.models import Category, MapMode
from binmap.snapshot import Snapshot
from binmap.theme import MapSettings
from binmap.viewport import ManualScheduler, RegionCamera

logger = logging.getLogger(__name__)

__all__ = [
    "_set_query_params",
    "_get_query_params",
    "_first_non_empty",
    "initial_view_params",
    "persist_view_params",
    "get_map_canvas",
]

CANVAS_KEY = "collection_map_canvas"
SNAPSHOT_KEY = "collection_map_snapshot"


def _set_query_params(**params: str) -> None:
    """Set Streamlit query parameters using the stable API when available."""

    query_params = getattr(st, "query_params", None)
    if query_params is not None:
        query_params.from_dict(params)
        return

    # Fallback for older Streamlit versions.
    st.experimental_set_query_params(**params)


def _get_query_params() -> Dict[str, List[str]]:
    """Return query parameters as a dictionary of lists."""

    query_params = getattr(st, "query_params", None)
    if query_params is not None:
        return {key: query_params.get_all(key) for key in query_params.keys()}
    return st.experimental_get_query_params()


def _first_non_empty(values: Optional[List[str]]) -> Optional[str]:
    for value in values or []:
        if value:
            return value
    return None


def initial_view_params() -> Dict[str, str]:
    """Category and map mode carried in the page URL, when valid."""

    params = _get_query_params()
    resolved: Dict[str, str] = {}
    category = _first_non_empty(params.get("category"))
    if category:
        try:
            resolved["category"] = Category.parse(category).value
        except ValueError:
            logger.warning("Ignoring unknown category in URL: %s", category)
    map_mode = _first_non_empty(params.get("map_mode"))
    if map_mode:
        try:
            resolved["map_mode"] = MapMode.parse(map_mode).value
        except ValueError:
            logger.warning("Ignoring unknown map mode in URL: %s", map_mode)
    return resolved


def persist_view_params(canvas: MapCanvas) -> None:
    _set_query_params(
        category=canvas.state.category.value,
        map_mode=canvas.state.map_mode.value,
    )


def get_map_canvas(
    snapshot: Snapshot,
    settings: MapSettings,
    *,
    show_routes: bool = False,
) -> MapCanvas:
    """Return the session's canvas, feeding it ``snapshot`` when it changed.

    The canvas lives in ``st.session_state`` so camera, filter and legend
    state survive reruns. Fits are queued on a manual scheduler and the map
    component flushes them once per run.
    """

    canvas: Optional[MapCanvas] = st.session_state.get(CANVAS_KEY)
    if canvas is None or canvas.show_routes != show_routes:
        if canvas is not None:
            canvas.close()
        params = initial_view_params()
        canvas = MapCanvas(
            RegionCamera(settings.default_region, width=settings.width, height=settings.height),
            ManualScheduler(),
            bins=snapshot.bins,
            routes=snapshot.routes,
            category=params.get("category", Category.ALL.value),
            map_mode=params.get("map_mode", MapMode.STANDARD.value),
            show_routes=show_routes,
            settings=settings,
            on_bin_selected=lambda bin: st.session_state.update(selected_bin=bin.id),
            on_route_selected=lambda route: st.session_state.update(selected_route=route.id),
        )
        st.session_state[CANVAS_KEY] = canvas
        st.session_state[SNAPSHOT_KEY] = snapshot
        return canvas

    if st.session_state.get(SNAPSHOT_KEY) is not snapshot:
        canvas.set_data(bins=snapshot.bins, routes=snapshot.routes)
        st.session_state[SNAPSHOT_KEY] = snapshot
    return canvas
