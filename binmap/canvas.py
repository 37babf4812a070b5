"""Interactive collection map: camera state, filtering and composition.

``MapCanvas`` is the piece a host screen talks to. It keeps the camera
region, active category and map mode in a small immutable ``MapState``
updated by :func:`reduce_map_state`, re-derives the filtered bins and their
statistics whenever the inputs change, asks the :class:`ViewportFitter` to
frame the visible bins, and turns everything into a ``MapFrame`` that a
renderer (pydeck, Folium) can draw. Taps flow back to the host through the
``on_*`` callbacks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from .categories import filter_bins
from .models import Bin, Category, Coordinates, MapMode, Region, Route
from .panels import (
    ControlsState,
    LegendItem,
    LegendState,
    MapTypeChosen,
    ToggleMapTypeMenu,
    CollapseLegend,
    ExpandLegend,
    legend_items,
    reduce_controls,
    reduce_legend,
)
from .progress import RouteRender, path_for, render_route
from .stats import BinStatistics, compute_bin_statistics
from .styling import BinMarker, build_bin_marker
from .theme import DEFAULT_PALETTE, DEFAULT_SETTINGS, MapSettings, Palette
from .viewport import Camera, PanDirection, Scheduler, ViewportFitter, pan_region, zoom_in, zoom_out

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# State and reducer
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MapState:
    region: Region
    category: Category = Category.ALL
    map_mode: MapMode = MapMode.STANDARD


@dataclass(frozen=True)
class RegionChanged:
    region: Region


@dataclass(frozen=True)
class ZoomIn:
    pass


@dataclass(frozen=True)
class ZoomOut:
    pass


@dataclass(frozen=True)
class Pan:
    direction: PanDirection


@dataclass(frozen=True)
class MapModeSelected:
    mode: MapMode


@dataclass(frozen=True)
class CategorySelected:
    category: Category


MapEvent = Union[RegionChanged, ZoomIn, ZoomOut, Pan, MapModeSelected, CategorySelected]


def reduce_map_state(state: MapState, event: MapEvent) -> MapState:
    if isinstance(event, RegionChanged):
        return replace(state, region=event.region)
    if isinstance(event, ZoomIn):
        return replace(state, region=zoom_in(state.region))
    if isinstance(event, ZoomOut):
        return replace(state, region=zoom_out(state.region))
    if isinstance(event, Pan):
        return replace(state, region=pan_region(state.region, event.direction))
    if isinstance(event, MapModeSelected):
        return replace(state, map_mode=MapMode.parse(event.mode))
    if isinstance(event, CategorySelected):
        return replace(state, category=Category.parse(event.category))
    raise TypeError(f"Unsupported map event: {event!r}")


# ----------------------------------------------------------------------
# Derived snapshot and frame
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MapSnapshot:
    """Filtered bins and statistics derived together from one input set."""

    bins: Tuple[Bin, ...]
    routes: Tuple[Route, ...]
    category: Category
    visible_bins: Tuple[Bin, ...]
    statistics: BinStatistics


@dataclass(frozen=True)
class MapFrame:
    region: Region
    map_mode: MapMode
    height: int
    markers: Tuple[BinMarker, ...] = field(default_factory=tuple)
    routes: Tuple[RouteRender, ...] = field(default_factory=tuple)
    controls: ControlsState = field(default_factory=ControlsState)
    legend: LegendState = field(default_factory=LegendState)
    legend_items: Tuple[LegendItem, ...] = field(default_factory=tuple)


BinCallback = Callable[[Bin], Any]
RouteCallback = Callable[[Route], Any]


class MapCanvas:
    def __init__(
        self,
        camera: Camera,
        scheduler: Scheduler,
        *,
        bins: Iterable[Bin] = (),
        routes: Iterable[Route] = (),
        category: Any = Category.ALL,
        map_mode: Any = MapMode.STANDARD,
        initial_region: Optional[Region] = None,
        height: Optional[int] = None,
        show_bins: bool = True,
        show_routes: bool = False,
        show_controls: bool = True,
        show_legend: bool = True,
        compact_legend: bool = True,
        on_bin_selected: Optional[BinCallback] = None,
        on_route_selected: Optional[RouteCallback] = None,
        on_map_mode_changed: Optional[Callable[[MapMode], Any]] = None,
        on_my_location: Optional[Callable[[], Any]] = None,
        palette: Palette = DEFAULT_PALETTE,
        settings: MapSettings = DEFAULT_SETTINGS,
        clock: Callable[[], Optional[datetime]] = lambda: None,
    ) -> None:
        self.settings = settings
        self.palette = palette
        self.camera = camera
        self.height = height or self.settings.height
        self.show_bins = show_bins
        self.show_routes = show_routes
        self.show_controls = show_controls
        self.show_legend = show_legend
        self.on_bin_selected = on_bin_selected
        self.on_route_selected = on_route_selected
        self.on_map_mode_changed = on_map_mode_changed
        self.on_my_location = on_my_location
        self._clock = clock

        self._state = MapState(
            region=initial_region or self.settings.default_region,
            category=Category.parse(category),
            map_mode=MapMode.parse(map_mode),
        )
        self.controls = ControlsState()
        self.legend = LegendState.initial(
            compact=compact_legend,
            show_bin_legend=show_bins,
            show_route_legend=show_routes,
        )
        self.last_fit: Optional[Region] = None
        self.fitter = ViewportFitter(
            camera,
            scheduler,
            quiet_period=self.settings.fit_debounce_seconds,
            edge_padding=self.settings.edge_padding,
            on_commit=self._fit_committed,
        )
        self._snapshot = self._derive(tuple(bins), tuple(routes), self._state.category)
        self._request_fit()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> MapState:
        return self._state

    @property
    def region(self) -> Region:
        return self._state.region

    @property
    def snapshot(self) -> MapSnapshot:
        return self._snapshot

    @property
    def visible_bins(self) -> Tuple[Bin, ...]:
        return self._snapshot.visible_bins

    @property
    def statistics(self) -> BinStatistics:
        return self._snapshot.statistics

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def _derive(self, bins: Tuple[Bin, ...], routes: Tuple[Route, ...], category: Category) -> MapSnapshot:
        return MapSnapshot(
            bins=bins,
            routes=routes,
            category=category,
            visible_bins=tuple(filter_bins(bins, category)),
            statistics=compute_bin_statistics(
                bins,
                now=self._clock(),
                window_days=self.settings.collection_window_days,
            ),
        )

    def fit_coordinates(self) -> List[Coordinates]:
        """Coordinates the camera should frame for the current snapshot."""

        coords: List[Coordinates] = []
        if self.show_bins:
            coords.extend(bin.coordinates for bin in self._snapshot.visible_bins if bin.coordinates)
        if self.show_routes:
            for route in self._snapshot.routes:
                coords.extend(path_for(route))
        return coords

    def _request_fit(self) -> None:
        self.fitter.request_fit(self.fit_coordinates())

    def set_data(
        self,
        *,
        bins: Optional[Iterable[Bin]] = None,
        routes: Optional[Iterable[Route]] = None,
    ) -> None:
        new_bins = self._snapshot.bins if bins is None else tuple(bins)
        new_routes = self._snapshot.routes if routes is None else tuple(routes)
        self._snapshot = self._derive(new_bins, new_routes, self._state.category)
        self._request_fit()

    def set_category(self, category: Any) -> Category:
        return self.dispatch(CategorySelected(Category.parse(category))).category

    def _fit_committed(self, region: Optional[Region]) -> None:
        if region is None:
            return
        self.last_fit = region
        self._state = reduce_map_state(self._state, RegionChanged(region))

    # ------------------------------------------------------------------
    # Gestures and control commands
    # ------------------------------------------------------------------
    def dispatch(self, event: MapEvent) -> MapState:
        """Apply ``event`` and issue the matching camera command."""

        self._state = reduce_map_state(self._state, event)
        if isinstance(event, (ZoomIn, ZoomOut, Pan)):
            self.camera.animate_to_region(self._state.region, self.settings.zoom_duration_ms)
        elif isinstance(event, MapModeSelected):
            self._emit(self.on_map_mode_changed, self._state.map_mode)
        elif isinstance(event, CategorySelected):
            self._snapshot = self._derive(
                self._snapshot.bins, self._snapshot.routes, self._state.category
            )
            self._request_fit()
        return self._state

    def region_changed(self, region: Region) -> None:
        """Record a region reported by a user gesture; no refit follows."""

        self.dispatch(RegionChanged(region))

    def zoom_in(self) -> Region:
        return self.dispatch(ZoomIn()).region

    def zoom_out(self) -> Region:
        return self.dispatch(ZoomOut()).region

    def pan(self, direction: Any) -> Region:
        return self.dispatch(Pan(PanDirection(direction))).region

    def set_map_mode(self, mode: Any) -> MapMode:
        return self.dispatch(MapModeSelected(MapMode.parse(mode))).map_mode

    def toggle_map_type_menu(self) -> ControlsState:
        self.controls = reduce_controls(self.controls, ToggleMapTypeMenu())
        return self.controls

    def choose_map_type(self, mode: Any) -> MapMode:
        chosen = MapMode.parse(mode)
        self.controls = reduce_controls(self.controls, MapTypeChosen(chosen))
        return self.set_map_mode(chosen)

    def expand_legend(self) -> LegendState:
        self.legend = reduce_legend(self.legend, ExpandLegend())
        return self.legend

    def collapse_legend(self) -> LegendState:
        self.legend = reduce_legend(self.legend, CollapseLegend())
        return self.legend

    def my_location(self) -> None:
        logger.info("Location services are not available; keeping the current region")
        self._emit(self.on_my_location)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_bin(self, bin_or_id: Union[Bin, str]) -> Optional[Bin]:
        bin = bin_or_id if isinstance(bin_or_id, Bin) else self._find_bin(str(bin_or_id))
        if bin is None:
            logger.debug("Ignoring press on unknown bin %s", bin_or_id)
            return None
        self._emit(self.on_bin_selected, bin)
        return bin

    def select_route(self, route_or_id: Union[Route, str]) -> Optional[Route]:
        if isinstance(route_or_id, Route):
            route: Optional[Route] = route_or_id
        else:
            route = next((r for r in self._snapshot.routes if r.id == str(route_or_id)), None)
        if route is None:
            logger.debug("Ignoring press on unknown route %s", route_or_id)
            return None
        self._emit(self.on_route_selected, route)
        return route

    def _find_bin(self, identifier: str) -> Optional[Bin]:
        for bin in self._snapshot.bins:
            if bin.id == identifier or bin.label == identifier:
                return bin
        return None

    def _emit(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as exc:
            logger.warning("Map callback %r failed: %s", callback, exc)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def render(self) -> MapFrame:
        now = self._clock()
        markers: List[BinMarker] = []
        if self.show_bins:
            for bin in self._snapshot.visible_bins:
                marker = build_bin_marker(bin, self.palette, now=now)
                if marker is not None:
                    markers.append(marker)

        routes: List[RouteRender] = []
        if self.show_routes:
            for route in self._snapshot.routes:
                rendered = render_route(route, self.palette, self.settings)
                if rendered is not None:
                    routes.append(rendered)

        return MapFrame(
            region=self._state.region,
            map_mode=self._state.map_mode,
            height=self.height,
            markers=tuple(markers),
            routes=tuple(routes),
            controls=self.controls,
            legend=self.legend,
            legend_items=tuple(legend_items(self.legend, self.palette)) if self.show_legend else (),
        )

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.fitter.cancel()

    def __enter__(self) -> "MapCanvas":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
