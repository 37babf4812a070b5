from __future__ import annotations

from datetime import datetime, timezone

import pytest

from binmap.canvas import (
    CategorySelected,
    MapCanvas,
    MapModeSelected,
    MapState,
    Pan,
    RegionChanged,
    ZoomIn,
    reduce_map_state,
)
from binmap.models import (
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
from binmap.panels import ExpandLegend
from binmap.theme import DEFAULT_SETTINGS, MapSettings
from binmap.viewport import ManualScheduler, PanDirection, bounding_region

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
SETTINGS = MapSettings()
REGION = SETTINGS.default_region


class RecordingCamera:
    def __init__(self):
        self.fits = []
        self.animations = []

    def fit_to_coordinates(self, coordinates, *, edge_padding, animated):
        self.fits.append(list(coordinates))
        return bounding_region(coordinates)

    def animate_to_region(self, region, duration_ms):
        self.animations.append((region, duration_ms))


def make_bins():
    return [
        Bin(id="a", label="BIN-A", fill_level=95, coordinates=Coordinates(6.90, 79.80)),
        Bin(id="b", label="BIN-B", fill_level=75, coordinates=Coordinates(6.95, 79.85)),
        Bin(id="c", label="BIN-C", fill_level=10, coordinates=Coordinates(7.00, 79.90)),
        Bin(id="d", label="BIN-D", fill_level=99, status=BinStatus.OFFLINE),
    ]


def make_route():
    return Route(
        id="r1",
        status=RouteStatus.IN_PROGRESS,
        stops=(
            RouteStop(status=StopStatus.COMPLETED, coordinates=Coordinates(6.80, 79.70)),
            RouteStop(status=StopStatus.COMPLETED, coordinates=Coordinates(6.85, 79.75)),
            RouteStop(status=StopStatus.PENDING, coordinates=Coordinates(6.90, 79.80)),
            RouteStop(status=StopStatus.PENDING, coordinates=Coordinates(6.95, 79.85)),
        ),
    )


@pytest.fixture()
def camera():
    return RecordingCamera()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


def build_canvas(camera, scheduler, **kwargs):
    kwargs.setdefault("bins", make_bins())
    kwargs.setdefault("settings", SETTINGS)
    kwargs.setdefault("clock", lambda: NOW)
    return MapCanvas(camera, scheduler, **kwargs)


def test_reducer_transitions():
    state = MapState(region=REGION)
    assert reduce_map_state(state, ZoomIn()).region.latitude_delta == pytest.approx(0.05)
    assert reduce_map_state(state, Pan(PanDirection.NORTH)).region.latitude > REGION.latitude
    moved = Region(1.0, 2.0, 0.3, 0.3)
    assert reduce_map_state(state, RegionChanged(moved)).region == moved
    assert reduce_map_state(state, MapModeSelected(MapMode.HYBRID)).map_mode is MapMode.HYBRID
    assert reduce_map_state(state, CategorySelected("urgent")).category is Category.URGENT
    with pytest.raises(TypeError):
        reduce_map_state(state, ExpandLegend())


def test_initial_fit_is_debounced(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    assert camera.fits == []
    assert canvas.region == REGION

    scheduler.advance(SETTINGS.fit_debounce_seconds)

    assert camera.fits == [[bin.coordinates for bin in make_bins()[:3]]]
    assert canvas.region == bounding_region(camera.fits[0])
    assert canvas.last_fit == canvas.region


def test_category_change_refilters_and_refits(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    scheduler.run_all()

    canvas.set_category("urgent")

    assert [bin.id for bin in canvas.visible_bins] == ["a", "d"]
    assert canvas.statistics.total == 4
    scheduler.run_all()
    assert camera.fits[-1] == [Coordinates(6.90, 79.80)]


def test_rapid_changes_collapse_into_one_fit(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    scheduler.run_all()

    canvas.set_category(Category.URGENT)
    scheduler.advance(0.1)
    canvas.set_category(Category.NORMAL)
    scheduler.advance(0.1)
    canvas.set_data(bins=make_bins()[1:])
    scheduler.advance(SETTINGS.fit_debounce_seconds)

    assert len(camera.fits) == 2
    assert camera.fits[-1] == [Coordinates(7.00, 79.90)]


def test_statistics_follow_new_data(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    assert canvas.statistics.count(Category.URGENT) == 2
    canvas.set_data(bins=make_bins()[:1])
    assert canvas.statistics.total == 1
    assert canvas.snapshot.visible_bins == tuple(make_bins()[:1])


def test_zoom_is_applied_immediately_without_refit(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    scheduler.run_all()
    before = canvas.region

    region = canvas.zoom_in()

    assert region.latitude_delta == pytest.approx(before.latitude_delta / 2)
    assert canvas.region == region
    assert camera.animations == [(region, SETTINGS.zoom_duration_ms)]
    assert scheduler.pending == 0

    canvas.zoom_out()
    assert canvas.region.latitude_delta == pytest.approx(before.latitude_delta)


def test_user_gesture_does_not_trigger_refit(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    scheduler.run_all()
    moved = Region(7.5, 80.5, 0.2, 0.2)

    canvas.region_changed(moved)

    assert canvas.region == moved
    assert scheduler.pending == 0
    assert len(camera.fits) == 1


def test_pan_moves_camera(camera, scheduler):
    canvas = build_canvas(camera, scheduler, bins=[])
    region = canvas.pan("east")
    assert region.longitude > REGION.longitude
    assert camera.animations[-1][0] == region


def test_map_mode_callback(camera, scheduler):
    chosen = []
    canvas = build_canvas(camera, scheduler, on_map_mode_changed=chosen.append)

    canvas.toggle_map_type_menu()
    assert canvas.controls.menu_open
    canvas.choose_map_type("satellite")

    assert chosen == [MapMode.SATELLITE]
    assert canvas.state.map_mode is MapMode.SATELLITE
    assert not canvas.controls.menu_open


def test_selection_callbacks(camera, scheduler):
    pressed_bins, pressed_routes = [], []
    canvas = build_canvas(
        camera,
        scheduler,
        routes=[make_route()],
        on_bin_selected=pressed_bins.append,
        on_route_selected=pressed_routes.append,
    )

    assert canvas.select_bin("b").id == "b"
    assert canvas.select_bin("BIN-C").id == "c"
    assert canvas.select_bin("missing") is None
    assert canvas.select_route("r1").id == "r1"
    assert canvas.select_route("nope") is None

    assert [bin.id for bin in pressed_bins] == ["b", "c"]
    assert [route.id for route in pressed_routes] == ["r1"]


def test_failing_callback_is_logged_not_raised(camera, scheduler, caplog):
    def explode(_bin):
        raise RuntimeError("boom")

    canvas = build_canvas(camera, scheduler, on_bin_selected=explode)
    assert canvas.select_bin("a").id == "a"
    assert "boom" in caplog.text


def test_my_location_emits_callback(camera, scheduler):
    calls = []
    canvas = build_canvas(camera, scheduler, on_my_location=lambda: calls.append(True))
    canvas.my_location()
    assert calls == [True]


def test_render_skips_bins_without_coordinates(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    frame = canvas.render()

    assert [marker.bin.id for marker in frame.markers] == ["a", "b", "c"]
    assert frame.routes == ()
    assert frame.height == SETTINGS.height
    assert frame.legend_items == ()


def test_render_routes_and_legend(camera, scheduler):
    canvas = build_canvas(
        camera,
        scheduler,
        routes=[make_route()],
        show_routes=True,
        compact_legend=False,
    )
    frame = canvas.render()

    (rendered,) = frame.routes
    assert len(rendered.progress.coordinates) == 2
    assert [stop.label for stop in rendered.stops] == ["S", "2", "3", "E"]
    assert len(frame.legend_items) == 9


def test_route_paths_join_the_fit(camera, scheduler):
    canvas = build_canvas(camera, scheduler, bins=[], routes=[make_route()], show_routes=True)
    scheduler.run_all()
    assert len(camera.fits) == 1
    assert len(camera.fits[0]) == 4


def test_hidden_bins_are_not_drawn_or_fitted(camera, scheduler):
    canvas = build_canvas(camera, scheduler, show_bins=False)
    scheduler.run_all()
    assert canvas.render().markers == ()
    assert camera.fits == []


def test_empty_canvas_keeps_default_region(camera, scheduler):
    canvas = build_canvas(camera, scheduler, bins=[])
    scheduler.run_all()
    frame = canvas.render()
    assert camera.fits == []
    assert frame.region == REGION
    assert frame.markers == ()


def test_compact_legend_expands_on_request(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    assert canvas.render().legend_items == ()
    canvas.expand_legend()
    assert len(canvas.render().legend_items) == 5
    canvas.collapse_legend()
    assert canvas.render().legend_items == ()


def test_close_cancels_pending_fit(camera, scheduler):
    with build_canvas(camera, scheduler) as canvas:
        assert canvas.fitter.pending
    scheduler.run_all()
    assert camera.fits == []


def test_unknown_category_is_rejected(camera, scheduler):
    with pytest.raises(ValueError):
        build_canvas(camera, scheduler, category="overflowing")


def test_repeated_category_changes_keep_scheduler_queue_bounded(camera, scheduler):
    canvas = build_canvas(camera, scheduler)
    canvas.fitter.flush()

    for category in ["urgent", "normal", "all"] * 100:
        canvas.set_category(category)
        canvas.fitter.flush()

    assert scheduler.pending == 0
    assert len(scheduler._queue) == 0


def test_canvas_without_settings_ignores_environment(monkeypatch, camera, scheduler):
    monkeypatch.setenv("BINMAP_FIT_DEBOUNCE_MS", "soon")
    canvas = MapCanvas(camera, scheduler, bins=make_bins())
    assert canvas.settings is DEFAULT_SETTINGS
    canvas.close()
