"""Collection map core: bins, routes, camera and route progress."""

from .canvas import MapCanvas, MapFrame, MapState, reduce_map_state
from .categories import classify, filter_bins, matches
from .models import (
    Bin,
    BinStatus,
    Category,
    Coordinates,
    MapMode,
    Region,
    Route,
    RouteStatus,
    RouteStop,
    StopStatus,
)
from .progress import path_for, progress_prefix, render_route
from .stats import BinStatistics, compute_bin_statistics
from .styling import colour_for_bin, priority_for_bin
from .theme import DEFAULT_PALETTE, MapSettings, Palette, load_settings
from .viewport import ManualScheduler, RegionCamera, ViewportFitter

__all__ = [
    "Bin",
    "BinStatistics",
    "BinStatus",
    "Category",
    "Coordinates",
    "DEFAULT_PALETTE",
    "ManualScheduler",
    "MapCanvas",
    "MapFrame",
    "MapMode",
    "MapSettings",
    "MapState",
    "Palette",
    "Region",
    "RegionCamera",
    "Route",
    "RouteStatus",
    "RouteStop",
    "StopStatus",
    "ViewportFitter",
    "classify",
    "colour_for_bin",
    "compute_bin_statistics",
    "filter_bins",
    "load_settings",
    "matches",
    "path_for",
    "priority_for_bin",
    "progress_prefix",
    "reduce_map_state",
    "render_route",
]
