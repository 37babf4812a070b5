"""Route polylines, completion overlays and numbered stop markers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Coordinates, Route, RouteStatus, RouteStop, StopStatus
from .styling import route_colour, stop_colour
from .theme import DEFAULT_PALETTE, DEFAULT_SETTINGS, MapSettings, Palette

MIN_POLYLINE_POINTS = 2


@dataclass(frozen=True)
class Polyline:
    coordinates: Tuple[Coordinates, ...]
    colour: str
    width: int
    dash_pattern: Optional[Tuple[int, int]] = None
    z_index: int = 0


@dataclass(frozen=True)
class StopMarker:
    stop: RouteStop
    coordinates: Coordinates
    position: int
    label: str
    colour: str
    is_start: bool = False
    is_end: bool = False

    @property
    def emphasised(self) -> bool:
        return self.is_start or self.is_end


@dataclass(frozen=True)
class RouteRender:
    route: Route
    base: Polyline
    progress: Optional[Polyline] = None
    stops: Tuple[StopMarker, ...] = field(default_factory=tuple)

    @property
    def completion_percentage(self) -> int:
        return self.route.completion_percentage


def _stops_with_coordinates(route: Route) -> List[RouteStop]:
    return [stop for stop in route.stops if stop.coordinates is not None]


def path_for(route: Route) -> List[Coordinates]:
    """Return the drawable path of ``route``.

    Stops without coordinates are dropped. A path with fewer than two points
    cannot be drawn and is returned empty.
    """

    path = [stop.coordinates for stop in _stops_with_coordinates(route)]
    if len(path) < MIN_POLYLINE_POINTS:
        return []
    return path


def progress_length(completed: int, total: int, path_points: int) -> int:
    """Return ``ceil(completed / total * path_points)`` without float error."""

    if total <= 0 or completed <= 0 or path_points <= 0:
        return 0
    completed = min(completed, total)
    return -(-completed * path_points // total)


def progress_prefix(route: Route) -> List[Coordinates]:
    """Return the leading part of the path covered by completed stops.

    Completed stops without coordinates still count towards progress; the
    fraction is taken over every stop of the route.
    """

    if route.status is not RouteStatus.IN_PROGRESS:
        return []
    path = path_for(route)
    length = progress_length(route.completed_stops, route.total_stops, len(path))
    return path[:length]


def stop_markers(route: Route, palette: Palette = DEFAULT_PALETTE) -> List[StopMarker]:
    located = _stops_with_coordinates(route)
    last = len(located) - 1
    markers: List[StopMarker] = []
    for position, stop in enumerate(located):
        is_start = position == 0
        is_end = position == last and not is_start
        if is_start:
            label = "S"
        elif is_end:
            label = "E"
        else:
            label = str(position + 1)
        markers.append(
            StopMarker(
                stop=stop,
                coordinates=stop.coordinates,
                position=position,
                label=label,
                colour=stop_colour(stop.status, palette),
                is_start=is_start,
                is_end=is_end,
            )
        )
    return markers


def render_route(
    route: Route,
    palette: Palette = DEFAULT_PALETTE,
    settings: MapSettings = DEFAULT_SETTINGS,
    *,
    show_stops: bool = True,
    show_progress: Optional[bool] = None,
) -> Optional[RouteRender]:
    """Return the polylines and stop markers for ``route``.

    ``None`` means the route has no drawable path and nothing, not even its
    stop markers, should be shown.
    """

    path = path_for(route)
    if not path:
        return None

    base = Polyline(
        coordinates=tuple(path),
        colour=route_colour(route.status, palette),
        width=settings.base_stroke_width,
        dash_pattern=settings.draft_dash_pattern if route.status is RouteStatus.DRAFT else None,
    )

    if show_progress is None:
        show_progress = route.status is RouteStatus.IN_PROGRESS

    progress: Optional[Polyline] = None
    if show_progress:
        prefix = progress_prefix(route)
        if prefix:
            progress = Polyline(
                coordinates=tuple(prefix),
                colour=palette.success,
                width=settings.progress_stroke_width,
                z_index=1,
            )

    markers = tuple(stop_markers(route, palette)) if show_stops else ()
    return RouteRender(route=route, base=base, progress=progress, stops=markers)


def route_progress_rows(routes: Sequence[Route]) -> List[Dict[str, object]]:
    """Summarise recomputed and server-reported completion per route."""

    rows: List[Dict[str, object]] = []
    for route in routes:
        completed = route.completed_stops
        skipped = sum(1 for stop in route.stops if stop.status is StopStatus.SKIPPED)
        rows.append(
            {
                "route_id": route.id,
                "name": route.name or route.id,
                "status": route.status.value,
                "total_stops": route.total_stops,
                "completed_stops": completed,
                "skipped_stops": skipped,
                "completion_percentage": route.completion_percentage,
                "reported_completion": route.reported_completion,
                "drawable": bool(path_for(route)),
            }
        )
    return rows
