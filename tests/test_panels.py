from __future__ import annotations

import pytest

from binmap.models import MapMode
from binmap.panels import (
    MAP_TYPE_OPTIONS,
    CollapseLegend,
    ControlsState,
    ExpandLegend,
    LegendState,
    MapTypeChosen,
    ToggleMapTypeMenu,
    legend_items,
    map_type_icon,
    reduce_controls,
    reduce_legend,
)
from binmap.theme import DEFAULT_PALETTE


def test_map_type_menu_toggles_and_closes_on_choice():
    state = ControlsState()
    opened = reduce_controls(state, ToggleMapTypeMenu())
    assert opened.menu_open is True
    assert reduce_controls(opened, ToggleMapTypeMenu()).menu_open is False
    assert reduce_controls(opened, MapTypeChosen(MapMode.SATELLITE)).menu_open is False


def test_controls_reject_unknown_events():
    with pytest.raises(TypeError):
        reduce_controls(ControlsState(), ExpandLegend())


def test_map_type_options_cover_every_mode():
    assert {option.mode for option in MAP_TYPE_OPTIONS} == set(MapMode)
    assert map_type_icon(MapMode.TERRAIN) == "🏔️"


def test_compact_legend_starts_collapsed_and_toggles():
    state = LegendState.initial(compact=True)
    assert state.expanded is False
    expanded = reduce_legend(state, ExpandLegend())
    assert expanded.expanded is True
    assert reduce_legend(expanded, CollapseLegend()).expanded is False


def test_full_legend_cannot_collapse():
    state = LegendState.initial(compact=False)
    assert reduce_legend(state, CollapseLegend()).expanded is True


def test_legend_rows():
    assert len(legend_items(LegendState())) == 5
    both = legend_items(LegendState(show_route_legend=True))
    assert len(both) == 9
    assert both[0].colour == DEFAULT_PALETTE.error
    assert both[-1].label == "Draft Route"
    assert legend_items(LegendState.initial(compact=True)) == []
    assert legend_items(LegendState(show_bin_legend=False)) == []
