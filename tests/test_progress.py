from __future__ import annotations

import pytest

from binmap.models import Coordinates, Route, RouteStatus, RouteStop, StopStatus
from binmap.progress import (
    path_for,
    progress_length,
    progress_prefix,
    render_route,
    route_progress_rows,
    stop_markers,
)
from binmap.theme import DEFAULT_PALETTE, MapSettings


def make_route(statuses, status=RouteStatus.IN_PROGRESS, missing=()):
    stops = []
    for index, stop_status in enumerate(statuses):
        coords = None if index in missing else Coordinates(6.9 + index * 0.01, 79.8)
        stops.append(RouteStop(status=StopStatus(stop_status), coordinates=coords))
    return Route(id="r1", status=status, stops=tuple(stops))


def test_half_completed_route_highlights_first_half():
    route = make_route(["completed", "completed", "pending", "pending"])
    prefix = progress_prefix(route)
    assert prefix == path_for(route)[:2]

    rendered = render_route(route)
    assert rendered.progress is not None
    assert rendered.progress.coordinates == tuple(prefix)
    assert rendered.progress.colour == DEFAULT_PALETTE.success
    assert rendered.progress.width == 6
    assert rendered.progress.z_index == 1
    assert rendered.base.width == 4
    assert rendered.base.z_index == 0
    assert rendered.completion_percentage == 50


def test_single_located_stop_draws_nothing():
    route = make_route(["completed", "pending"], missing={1})
    assert path_for(route) == []
    assert render_route(route) is None


def test_route_without_stops_draws_nothing():
    assert render_route(Route(id="empty", status=RouteStatus.IN_PROGRESS)) is None


def test_prefix_grows_monotonically_to_full_path():
    total = 5
    lengths = []
    for completed in range(total + 1):
        statuses = ["completed"] * completed + ["pending"] * (total - completed)
        lengths.append(len(progress_prefix(make_route(statuses))))
    assert lengths == sorted(lengths)
    assert lengths[0] == 0
    assert lengths[-1] == total


def test_stops_without_coordinates_still_count_towards_progress():
    route = make_route(["completed", "pending", "pending", "pending"], missing={3})
    assert len(path_for(route)) == 3
    # ceil(1 / 4 * 3) == 1: a one-point prefix.
    assert len(progress_prefix(route)) == 1


@pytest.mark.parametrize(
    "completed, total, points, expected",
    [
        (0, 4, 4, 0),
        (1, 4, 4, 1),
        (2, 4, 4, 2),
        (1, 3, 2, 1),
        (2, 3, 2, 2),
        (3, 3, 5, 5),
        (5, 3, 5, 5),
        (1, 0, 4, 0),
    ],
)
def test_progress_length_is_exact_ceiling(completed, total, points, expected):
    assert progress_length(completed, total, points) == expected


@pytest.mark.parametrize(
    "status",
    [RouteStatus.COMPLETED, RouteStatus.ASSIGNED, RouteStatus.DRAFT, RouteStatus.CANCELLED],
)
def test_only_in_progress_routes_get_an_overlay(status):
    route = make_route(["completed", "completed", "pending"], status=status)
    assert progress_prefix(route) == []
    assert render_route(route).progress is None


def test_progress_can_be_forced_off():
    route = make_route(["completed", "pending"])
    assert render_route(route, show_progress=False).progress is None


@pytest.mark.parametrize(
    "status, colour, dashed",
    [
        (RouteStatus.COMPLETED, DEFAULT_PALETTE.success, False),
        (RouteStatus.IN_PROGRESS, DEFAULT_PALETTE.primary, False),
        (RouteStatus.ASSIGNED, DEFAULT_PALETTE.info, False),
        (RouteStatus.DRAFT, DEFAULT_PALETTE.gray, True),
        (RouteStatus.UNKNOWN, DEFAULT_PALETTE.gray, False),
    ],
)
def test_base_line_styling(status, colour, dashed):
    rendered = render_route(make_route(["pending", "pending"], status=status))
    assert rendered.base.colour == colour
    assert (rendered.base.dash_pattern == (10, 5)) is dashed
    if not dashed:
        assert rendered.base.dash_pattern is None


def test_stroke_widths_follow_settings():
    settings = MapSettings(base_stroke_width=2, progress_stroke_width=9)
    rendered = render_route(make_route(["completed", "pending"]), settings=settings)
    assert rendered.base.width == 2
    assert rendered.progress.width == 9


def test_stop_markers_label_start_and_end():
    markers = stop_markers(make_route(["completed", "skipped", "pending"]))
    assert [marker.label for marker in markers] == ["S", "2", "E"]
    assert [marker.emphasised for marker in markers] == [True, False, True]
    assert [marker.colour for marker in markers] == [
        DEFAULT_PALETTE.success,
        DEFAULT_PALETTE.warning,
        DEFAULT_PALETTE.primary,
    ]


def test_stop_markers_skip_stops_without_coordinates():
    markers = stop_markers(make_route(["pending", "pending", "pending"], missing={1}))
    assert [marker.label for marker in markers] == ["S", "E"]


def test_render_without_stops():
    rendered = render_route(make_route(["pending", "pending"]), show_stops=False)
    assert rendered.stops == ()


def test_route_progress_rows_expose_reported_and_recomputed():
    route = Route(
        id="r9",
        name="Harbour",
        status=RouteStatus.IN_PROGRESS,
        stops=(
            RouteStop(status=StopStatus.COMPLETED),
            RouteStop(status=StopStatus.SKIPPED),
            RouteStop(status=StopStatus.PENDING),
        ),
        reported_completion=80.0,
    )
    (row,) = route_progress_rows([route])
    assert row["name"] == "Harbour"
    assert row["completed_stops"] == 1
    assert row["skipped_stops"] == 1
    assert row["completion_percentage"] == 33
    assert row["reported_completion"] == 80.0
    assert row["drawable"] is False
