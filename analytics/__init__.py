"""Export helpers for the collection map."""

# Folium itself is imported lazily inside ``build_collection_map`` so the
# package can be imported where only the dashboard stack is installed.
from .routes_map import (
    build_collection_map,
    compute_map_center,
    frame_coordinates,
    region_bounds,
)

__all__ = [
    "build_collection_map",
    "compute_map_center",
    "frame_coordinates",
    "region_bounds",
]
