"""State for the map control and legend overlays."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, NamedTuple, Union

from .models import MapMode
from .theme import DEFAULT_PALETTE, Palette


class MapTypeOption(NamedTuple):
    mode: MapMode
    label: str
    icon: str


MAP_TYPE_OPTIONS = (
    MapTypeOption(MapMode.STANDARD, "Standard", "🗺️"),
    MapTypeOption(MapMode.SATELLITE, "Satellite", "🛰️"),
    MapTypeOption(MapMode.HYBRID, "Hybrid", "🌍"),
    MapTypeOption(MapMode.TERRAIN, "Terrain", "🏔️"),
)


def map_type_icon(mode: MapMode) -> str:
    for option in MAP_TYPE_OPTIONS:
        if option.mode is mode:
            return option.icon
    return MAP_TYPE_OPTIONS[0].icon


@dataclass(frozen=True)
class ControlsState:
    menu_open: bool = False
    show_zoom_controls: bool = True
    show_location_button: bool = True
    show_map_type_selector: bool = True


@dataclass(frozen=True)
class ToggleMapTypeMenu:
    pass


@dataclass(frozen=True)
class MapTypeChosen:
    mode: MapMode


ControlsEvent = Union[ToggleMapTypeMenu, MapTypeChosen]


def reduce_controls(state: ControlsState, event: ControlsEvent) -> ControlsState:
    if isinstance(event, ToggleMapTypeMenu):
        return replace(state, menu_open=not state.menu_open)
    if isinstance(event, MapTypeChosen):
        return replace(state, menu_open=False)
    raise TypeError(f"Unsupported controls event: {event!r}")


class LegendPosition(str, Enum):
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"


@dataclass(frozen=True)
class LegendState:
    expanded: bool = True
    compact: bool = False
    position: LegendPosition = LegendPosition.BOTTOM_LEFT
    show_bin_legend: bool = True
    show_route_legend: bool = False

    @classmethod
    def initial(cls, *, compact: bool = False, **kwargs) -> "LegendState":
        """Compact legends start collapsed."""

        return cls(expanded=not compact, compact=compact, **kwargs)


@dataclass(frozen=True)
class ExpandLegend:
    pass


@dataclass(frozen=True)
class CollapseLegend:
    pass


LegendEvent = Union[ExpandLegend, CollapseLegend]


def reduce_legend(state: LegendState, event: LegendEvent) -> LegendState:
    if isinstance(event, ExpandLegend):
        return replace(state, expanded=True)
    if isinstance(event, CollapseLegend):
        # Only compact legends can be collapsed.
        return replace(state, expanded=not state.compact)
    raise TypeError(f"Unsupported legend event: {event!r}")


class LegendItem(NamedTuple):
    colour: str
    label: str
    icon: str


def legend_items(state: LegendState, palette: Palette = DEFAULT_PALETTE) -> List[LegendItem]:
    """Return the rows to show for ``state``; empty while collapsed."""

    if not state.expanded:
        return []
    items: List[LegendItem] = []
    if state.show_bin_legend:
        items.extend(
            [
                LegendItem(palette.error, "Full Bins (≥90%)", "🔴"),
                LegendItem(palette.filling, "Filling Bins (70-89%)", "🟠"),
                LegendItem(palette.success, "Normal Bins (<70%)", "🟢"),
                LegendItem(palette.offline, "Offline Bins", "⚫"),
                LegendItem(palette.warning, "Maintenance", "🟡"),
            ]
        )
    if state.show_route_legend:
        items.extend(
            [
                LegendItem(palette.success, "Completed Route", "✅"),
                LegendItem(palette.primary, "In Progress", "🚛"),
                LegendItem(palette.info, "Assigned Route", "📋"),
                LegendItem(palette.gray, "Draft Route", "📝"),
            ]
        )
    return items
