"""Generate a Folium map of bins and collection routes.

Reads a JSON snapshot exported from the collection API, applies the same
category filter and route progress rules as the dashboard, fits the map to
the visible bins and writes a standalone HTML page.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from analytics.routes_map import build_collection_map, frame_summary
from binmap.canvas import MapCanvas, MapFrame
from binmap.models import Category, MapMode
from binmap.snapshot import Snapshot, load_snapshot
from binmap.theme import load_settings
from binmap.viewport import ManualScheduler, RegionCamera

DATA_PATH = "bins.json"


def build_frame(
    snapshot: Snapshot,
    *,
    category: str = "all",
    map_mode: str = "standard",
    show_bins: bool = True,
    show_routes: bool = False,
) -> MapFrame:
    """Run the map canvas once over ``snapshot`` and return the settled frame."""

    settings = load_settings()
    camera = RegionCamera(settings.default_region, width=settings.width, height=settings.height)
    scheduler = ManualScheduler()
    with MapCanvas(
        camera,
        scheduler,
        bins=snapshot.bins,
        routes=snapshot.routes,
        category=category,
        map_mode=map_mode,
        show_bins=show_bins,
        show_routes=show_routes,
        compact_legend=False,
        settings=settings,
    ) as canvas:
        scheduler.run_all()
        return canvas.render()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a Folium map of bins and routes")
    parser.add_argument("--data", default=DATA_PATH, help="Path to the JSON snapshot")
    parser.add_argument("--out", default="bins_map.html", help="Output HTML map path")
    parser.add_argument(
        "--category",
        default=Category.ALL.value,
        choices=[category.value for category in Category],
        help="Only show bins in this category",
    )
    parser.add_argument(
        "--map-mode",
        default=MapMode.STANDARD.value,
        choices=[mode.value for mode in MapMode],
    )
    parser.add_argument(
        "--show-routes",
        action="store_true",
        help="Draw route polylines, progress overlays and stop markers",
    )
    parser.add_argument("--no-bins", action="store_true", help="Hide bin markers")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    try:
        snapshot = load_snapshot(args.data)
    except (OSError, ValueError) as exc:
        print(f"Could not read {args.data}: {exc}")
        return 1

    frame = build_frame(
        snapshot,
        category=args.category,
        map_mode=args.map_mode,
        show_bins=not args.no_bins,
        show_routes=args.show_routes,
    )
    markers, routes, center = frame_summary(frame)
    if not markers and not routes:
        print("Nothing to draw. Check that bins or route stops have coordinates.")
        return 1

    fmap = build_collection_map(frame)
    fmap.save(args.out)
    print(f"Map saved to {args.out} ({markers} bin(s), {routes} route(s))")
    if center is not None:
        print(f"Centred on {center[0]:.5f}, {center[1]:.5f}")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
