"""pydeck rendering of the collection map for the Streamlit dashboard."""
from __future__ import annotations

import inspect
import math
from typing import Any, Dict, List, Optional

import pandas as pd
import pydeck as pdk
import streamlit as st

from binmap.canvas import MapCanvas, MapFrame
from binmap.models import MapMode, Region
from binmap.panels import MAP_TYPE_OPTIONS, LegendItem, legend_items, map_type_icon
from binmap.progress import Polyline, RouteRender
from binmap.styling import hex_to_rgba

__all__ = [
    "build_collection_deck",
    "render_collection_map",
    "render_map_controls",
    "render_legend",
    "render_legend_panel",
    "markers_frame",
    "route_paths_frame",
    "stops_frame",
    "region_to_view_state",
]


_TILE_URLS = {
    MapMode.STANDARD: ["https://tile.openstreetmap.org/{z}/{x}/{y}.png"],
    MapMode.SATELLITE: [
        "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}"
    ],
    MapMode.HYBRID: [
        "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        "https://server.arcgisonline.com/ArcGIS/rest/services/Reference/World_Boundaries_and_Places/MapServer/tile/{z}/{y}/{x}",
    ],
    MapMode.TERRAIN: ["https://a.tile.opentopomap.org/{z}/{x}/{y}.png"],
}

_MARKER_COLUMNS = ["id", "label", "lon", "lat", "colour", "radius", "priority", "tooltip"]
_PATH_COLUMNS = ["route_id", "path", "colour", "width", "tooltip"]
_STOP_COLUMNS = ["route_id", "lon", "lat", "label", "colour", "radius", "tooltip"]


def region_to_view_state(region: Region, *, width: int = 400, transition_ms: int = 0) -> pdk.ViewState:
    """Return a ``pdk.ViewState`` showing ``region`` in a ``width`` pixel map."""

    span = max(region.longitude_delta, 1e-6)
    zoom = math.log2(360.0 * width / (256.0 * span))
    zoom = max(0.0, min(20.0, zoom))
    kwargs: Dict[str, Any] = {}
    if transition_ms:
        kwargs["transition_duration"] = transition_ms
    return pdk.ViewState(
        latitude=region.latitude,
        longitude=region.longitude,
        zoom=zoom,
        pitch=0,
        bearing=0,
        **kwargs,
    )


def markers_frame(frame: MapFrame) -> pd.DataFrame:
    rows = [
        {
            "id": marker.bin.id,
            "label": marker.label,
            "lon": marker.coordinates.lng,
            "lat": marker.coordinates.lat,
            "colour": hex_to_rgba(marker.colour, 230),
            "radius": 14 if marker.urgent_badge else 10,
            "priority": marker.priority.value,
            "tooltip": "<br>".join(marker.callout),
        }
        for marker in frame.markers
    ]
    return pd.DataFrame(rows, columns=_MARKER_COLUMNS)


def _path_row(rendered: RouteRender, line: Polyline, tooltip: str) -> Dict[str, Any]:
    return {
        "route_id": rendered.route.id,
        "path": [point.as_lon_lat() for point in line.coordinates],
        "colour": hex_to_rgba(line.colour, 200 if line.dash_pattern else 255),
        "width": line.width,
        "tooltip": tooltip,
    }


def route_paths_frame(frame: MapFrame, *, progress: bool = False) -> pd.DataFrame:
    """Return base polylines, or the progress overlays when ``progress`` is set."""

    rows: List[Dict[str, Any]] = []
    for rendered in frame.routes:
        route = rendered.route
        title = route.name or route.id
        if progress:
            if rendered.progress is None:
                continue
            rows.append(
                _path_row(
                    rendered,
                    rendered.progress,
                    f"{title}: {route.completed_stops}/{route.total_stops} stops completed",
                )
            )
        else:
            rows.append(
                _path_row(
                    rendered,
                    rendered.base,
                    f"{title} ({route.status.value}) · {rendered.completion_percentage}%",
                )
            )
    return pd.DataFrame(rows, columns=_PATH_COLUMNS)


def stops_frame(frame: MapFrame) -> pd.DataFrame:
    rows = [
        {
            "route_id": rendered.route.id,
            "lon": stop.coordinates.lng,
            "lat": stop.coordinates.lat,
            "label": stop.label,
            "colour": hex_to_rgba(stop.colour),
            "radius": 35 if stop.emphasised else 30,
            "tooltip": f"Stop {stop.label}: {stop.stop.status.value}"
            + (f" ({stop.stop.reason})" if stop.stop.reason else ""),
        }
        for rendered in frame.routes
        for stop in rendered.stops
    ]
    return pd.DataFrame(rows, columns=_STOP_COLUMNS)


def _tile_layers(mode: MapMode) -> List[pdk.Layer]:
    return [
        pdk.Layer(
            "TileLayer",
            data=url,
            min_zoom=0,
            max_zoom=19,
            tile_size=256,
            id=f"tiles-{index}",
        )
        for index, url in enumerate(_TILE_URLS[mode])
    ]


def build_collection_deck(frame: MapFrame, *, width: int = 400, transition_ms: int = 0) -> pdk.Deck:
    """Return the deck for ``frame``: tiles, routes, progress, stops, bins."""

    layers: List[pdk.Layer] = _tile_layers(frame.map_mode)

    base_paths = route_paths_frame(frame)
    if not base_paths.empty:
        layers.append(
            pdk.Layer(
                "PathLayer",
                data=base_paths,
                id="routes",
                get_path="path",
                get_color="colour",
                get_width="width",
                width_units="pixels",
                pickable=True,
            )
        )

    progress_paths = route_paths_frame(frame, progress=True)
    if not progress_paths.empty:
        # Listed after the base paths so the overlay draws above them.
        layers.append(
            pdk.Layer(
                "PathLayer",
                data=progress_paths,
                id="route-progress",
                get_path="path",
                get_color="colour",
                get_width="width",
                width_units="pixels",
                pickable=True,
            )
        )

    stops = stops_frame(frame)
    if not stops.empty:
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=stops,
                id="stops",
                get_position="[lon, lat]",
                get_fill_color="colour",
                get_radius="radius",
                radius_units="pixels",
                radius_scale=0.5,
                stroked=True,
                get_line_color=[255, 255, 255],
                line_width_min_pixels=2,
                pickable=True,
            )
        )
        layers.append(
            pdk.Layer(
                "TextLayer",
                data=stops,
                id="stop-labels",
                get_position="[lon, lat]",
                get_text="label",
                get_color=[255, 255, 255],
                get_size=12,
            )
        )

    markers = markers_frame(frame)
    if not markers.empty:
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=markers,
                id="bins",
                get_position="[lon, lat]",
                get_fill_color="colour",
                get_radius="radius",
                radius_units="pixels",
                stroked=True,
                get_line_color=[255, 255, 255],
                line_width_min_pixels=2,
                pickable=True,
            )
        )
        layers.append(
            pdk.Layer(
                "TextLayer",
                data=markers,
                id="bin-labels",
                get_position="[lon, lat]",
                get_text="label",
                get_color=[255, 255, 255],
                get_size=10,
            )
        )

    return pdk.Deck(
        layers=layers,
        initial_view_state=region_to_view_state(
            frame.region, width=width, transition_ms=transition_ms
        ),
        tooltip={"html": "{tooltip}", "style": {"color": "white"}},
        map_style=None,
    )


def _supports_selection() -> bool:
    try:
        return "on_select" in inspect.signature(st.pydeck_chart).parameters
    except (TypeError, ValueError):  # pragma: no cover - exotic Streamlit builds
        return False


def _selected_object(event: Any, layer_id: str) -> Optional[Dict[str, Any]]:
    selection = getattr(event, "selection", None) or {}
    objects = selection.get("objects", {}) if isinstance(selection, dict) else {}
    picked = objects.get(layer_id) or []
    return picked[0] if picked else None


def render_map_controls(canvas: MapCanvas, *, key: str) -> None:
    """Render the zoom, pan, location and map type buttons for ``canvas``."""

    if not canvas.show_controls:
        return
    controls = canvas.controls
    columns = st.columns(7)
    if controls.show_zoom_controls:
        if columns[0].button("+", key=f"{key}_zoom_in", help="Zoom in"):
            canvas.zoom_in()
        if columns[1].button("−", key=f"{key}_zoom_out", help="Zoom out"):
            canvas.zoom_out()
        for column, (label, direction) in zip(
            columns[2:6], (("↑", "north"), ("↓", "south"), ("←", "west"), ("→", "east"))
        ):
            if column.button(label, key=f"{key}_pan_{direction}", help=f"Pan {direction}"):
                canvas.pan(direction)
    if controls.show_location_button:
        if columns[6].button("📍", key=f"{key}_my_location", help="My location"):
            canvas.my_location()
            st.info("Location services would be used here to center the map on your current position.")

    if controls.show_map_type_selector:
        modes = [option.mode for option in MAP_TYPE_OPTIONS]
        labels = {option.mode: f"{option.icon} {option.label}" for option in MAP_TYPE_OPTIONS}
        chosen = st.radio(
            f"Map type {map_type_icon(canvas.state.map_mode)}",
            modes,
            index=modes.index(canvas.state.map_mode),
            format_func=lambda mode: labels[mode],
            horizontal=True,
            key=f"{key}_map_type",
        )
        if chosen is not canvas.state.map_mode:
            canvas.choose_map_type(chosen)


def render_legend(items: List[LegendItem]) -> None:
    if not items:
        return
    legend_cols = st.columns(len(items))
    for item, column in zip(items, legend_cols):
        column.markdown(
            f"<div style='color:{item.colour}; font-weight:bold'>{item.icon} {item.label}</div>",
            unsafe_allow_html=True,
        )


def render_collection_map(canvas: MapCanvas, *, key: str = "collection_map", width: int = 400) -> None:
    """Draw ``canvas`` with pydeck and forward picks to its callbacks."""

    render_map_controls(canvas, key=key)

    # Reruns collapse a burst of input changes into one pass; commit the
    # outstanding fit before drawing so the frame uses the settled region.
    canvas.fitter.flush()
    frame = canvas.render()
    if not frame.markers and not frame.routes:
        st.info("No bins or routes with coordinates match the current filter.")

    deck = build_collection_deck(
        frame, width=width, transition_ms=getattr(canvas.camera, "transition_ms", 0)
    )
    if _supports_selection():
        event = st.pydeck_chart(
            deck,
            height=frame.height,
            on_select="rerun",
            selection_mode="single-object",
            key=f"{key}_deck",
        )
        picked_bin = _selected_object(event, "bins")
        if picked_bin is not None:
            canvas.select_bin(str(picked_bin.get("id")))
        picked_route = _selected_object(event, "routes") or _selected_object(event, "route-progress")
        if picked_route is not None:
            canvas.select_route(str(picked_route.get("route_id")))
    else:
        st.pydeck_chart(deck, height=frame.height)

    if canvas.show_legend:
        render_legend_panel(canvas, key=key)


def render_legend_panel(canvas: MapCanvas, *, key: str) -> None:
    """Legend rows with the compact expand and collapse toggles."""

    if not canvas.legend.expanded:
        if st.button("🗺️ Map Legend", key=f"{key}_legend_expand"):
            canvas.expand_legend()
    elif canvas.legend.compact:
        if st.button("✕ Hide legend", key=f"{key}_legend_collapse"):
            canvas.collapse_legend()
    render_legend(legend_items(canvas.legend, canvas.palette))
