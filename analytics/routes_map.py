"""Helpers for exporting the collection map to a standalone Folium page."""

from __future__ import annotations

import html
import logging
from collections.abc import Iterable, Sequence
from typing import List, Optional, Tuple

from binmap.canvas import MapFrame
from binmap.models import Coordinates, MapMode, Region
from binmap.panels import LegendItem
from binmap.progress import Polyline

logger = logging.getLogger(__name__)

# Tile sources per map mode: (url, attribution, overlay labels url or None).
MAP_MODE_TILES = {
    MapMode.STANDARD: (
        "OpenStreetMap",
        None,
        None,
    ),
    MapMode.SATELLITE: (
        "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        "Tiles © Esri",
        None,
    ),
    MapMode.HYBRID: (
        "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        "Tiles © Esri",
        "https://server.arcgisonline.com/ArcGIS/rest/services/Reference/World_Boundaries_and_Places/MapServer/tile/{z}/{y}/{x}",
    ),
    MapMode.TERRAIN: (
        "https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
        "© OpenTopoMap (CC-BY-SA)",
        None,
    ),
}


def compute_map_center(coordinates: Iterable[Coordinates], fallback: Region) -> list[float]:
    """Return ``[lat, lon]`` representing the average coordinate centre."""

    coords = [point for point in coordinates if point is not None]
    if not coords:
        return [fallback.latitude, fallback.longitude]

    count = len(coords)
    return [sum(point.lat for point in coords) / count, sum(point.lng for point in coords) / count]


def _latlon(points: Sequence[Coordinates]) -> List[List[float]]:
    return [[point.lat, point.lng] for point in points]


def _polyline(line: Polyline, tooltip: str, *, opacity: float) -> "folium.PolyLine":
    import folium

    dash_array = None
    if line.dash_pattern:
        dash_array = ", ".join(str(part) for part in line.dash_pattern)
    return folium.PolyLine(
        _latlon(line.coordinates),
        color=line.colour,
        weight=line.width,
        opacity=opacity,
        dash_array=dash_array,
        tooltip=tooltip,
    )


def region_bounds(region: Region) -> List[List[float]]:
    """Return Folium ``[[south, west], [north, east]]`` bounds for ``region``."""

    (south, west), (north, east) = region.bounds()
    return [[south, west], [north, east]]


def legend_html(items: Sequence[LegendItem]) -> str:
    rows = "".join(
        f'<span style="color:{item.colour};">●</span> {html.escape(item.label)}<br>'
        for item in items
    )
    return f"""
    <div style="position: fixed; bottom: 20px; left: 20px; z-index: 9999; background: white; padding: 8px 10px; border: 1px solid #bbb; border-radius: 6px; font-size: 12px;">
      <b>Map Legend</b><br>
      {rows}
    </div>
    """


def build_collection_map(frame: MapFrame, *, zoom_start: int = 13) -> "folium.Map":
    """Return a Folium map visualising ``frame``.

    Bin markers and route layers go into separate feature groups so they can
    be toggled from the layer control. The map is framed on the frame's
    current region.
    """

    try:
        import folium
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise SystemExit("Folium not installed. Run: pip install folium") from exc

    tiles, attribution, labels = MAP_MODE_TILES[frame.map_mode]
    fmap = folium.Map(
        location=[frame.region.latitude, frame.region.longitude],
        zoom_start=zoom_start,
        tiles=tiles,
        attr=attribution,
    )
    if labels:
        folium.TileLayer(tiles=labels, attr=attribution, name="Labels", overlay=True).add_to(fmap)

    bins_group = folium.FeatureGroup(name="Bins", show=True)
    routes_group = folium.FeatureGroup(name="Routes", show=True)
    progress_group = folium.FeatureGroup(name="Route progress", show=True)
    stops_group = folium.FeatureGroup(name="Stops", show=True)

    for marker in frame.markers:
        popup = "<br>".join(html.escape(line) for line in marker.callout)
        bins_group.add_child(
            folium.CircleMarker(
                [marker.coordinates.lat, marker.coordinates.lng],
                radius=12 if marker.urgent_badge else 9,
                color=marker.colour,
                fill=True,
                fill_color=marker.colour,
                fill_opacity=0.85,
                popup=folium.Popup(popup, max_width=300),
                tooltip=f"{marker.bin.display_label} · {marker.label}",
            )
        )

    for rendered in frame.routes:
        route = rendered.route
        title = route.name or route.id
        tooltip = f"{title} · {route.status.value} · {rendered.completion_percentage}%"
        routes_group.add_child(_polyline(rendered.base, tooltip, opacity=0.8))
        if rendered.progress is not None:
            progress_group.add_child(
                _polyline(rendered.progress, f"{title} completed stops", opacity=0.95)
            )
        for stop in rendered.stops:
            size = 35 if stop.emphasised else 30
            label_html = (
                f'<div style="width:{size}px;height:{size}px;border-radius:50%;'
                f"background:{stop.colour};border:2px solid white;color:white;"
                f"font-size:12px;font-weight:bold;display:flex;align-items:center;"
                f'justify-content:center;">{html.escape(stop.label)}</div>'
            )
            stops_group.add_child(
                folium.Marker(
                    [stop.coordinates.lat, stop.coordinates.lng],
                    icon=folium.DivIcon(
                        html=label_html,
                        icon_size=(size, size),
                        icon_anchor=(size // 2, size // 2),
                    ),
                    tooltip=f"{title} stop {stop.position + 1}: {stop.stop.status.value}",
                )
            )

    bins_group.add_to(fmap)
    if frame.routes:
        # Progress is added after the base lines so it draws on top.
        routes_group.add_to(fmap)
        progress_group.add_to(fmap)
        stops_group.add_to(fmap)

    folium.LayerControl(collapsed=False).add_to(fmap)

    if frame.legend_items:
        fmap.get_root().html.add_child(folium.Element(legend_html(frame.legend_items)))

    fmap.fit_bounds(region_bounds(frame.region))
    logger.debug(
        "Built Folium map with %d marker(s) and %d route(s)",
        len(frame.markers),
        len(frame.routes),
    )
    return fmap


def frame_coordinates(frame: MapFrame) -> List[Coordinates]:
    """Return every coordinate drawn in ``frame``."""

    coords: List[Coordinates] = [marker.coordinates for marker in frame.markers]
    for rendered in frame.routes:
        coords.extend(rendered.base.coordinates)
    return coords


def frame_summary(frame: MapFrame) -> Tuple[int, int, Optional[list[float]]]:
    coords = frame_coordinates(frame)
    center = compute_map_center(coords, frame.region) if coords else None
    return len(frame.markers), len(frame.routes), center
