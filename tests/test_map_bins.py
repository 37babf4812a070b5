"""Tests for the map export command in :mod:`map_bins`."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from binmap.models import Category
from binmap.snapshot import parse_snapshot
from map_bins import build_frame, main, parse_args

PAYLOAD = {
    "bins": [
        {
            "_id": "1",
            "binId": "BIN-001",
            "fillLevel": 95,
            "status": "active",
            "location": {"coordinates": {"lat": 6.92, "lng": 79.86}, "address": "Galle Road"},
        },
        {
            "_id": "2",
            "binId": "BIN-002",
            "fillLevel": 30,
            "status": "active",
            "location": {"coordinates": {"lat": 6.95, "lng": 79.88}},
        },
    ],
    "routes": [
        {
            "_id": "r1",
            "routeName": "Morning",
            "status": "in-progress",
            "stops": [
                {"status": "completed", "location": {"coordinates": {"lat": 6.92, "lng": 79.86}}},
                {"status": "pending", "location": {"coordinates": {"lat": 6.95, "lng": 79.88}}},
            ],
        }
    ],
}


@pytest.fixture()
def data_file(tmp_path):
    path = tmp_path / "bins.json"
    path.write_text(json.dumps(PAYLOAD), encoding="utf-8")
    return path


def test_parse_args_defaults():
    args = parse_args([])
    assert args.data == "bins.json"
    assert args.category == Category.ALL.value
    assert args.show_routes is False
    assert args.no_bins is False


def test_build_frame_applies_category_and_fit():
    frame = build_frame(parse_snapshot(PAYLOAD), category="urgent")
    assert [marker.bin.id for marker in frame.markers] == ["1"]
    assert frame.routes == ()
    south_west, north_east = frame.region.bounds()
    assert south_west[0] < 6.92 < north_east[0]


def test_build_frame_with_routes():
    frame = build_frame(parse_snapshot(PAYLOAD), show_routes=True, show_bins=False)
    assert frame.markers == ()
    assert [rendered.route.id for rendered in frame.routes] == ["r1"]


def test_main_writes_html(data_file, tmp_path, capsys):
    out = tmp_path / "map.html"
    assert main(["--data", str(data_file), "--out", str(out), "--show-routes"]) == 0
    assert out.exists()
    output = capsys.readouterr().out
    assert "Map saved" in output
    assert "Centred on 6.93500, 79.87000" in output


def test_main_reports_unreadable_snapshot(tmp_path, capsys):
    assert main(["--data", str(tmp_path / "missing.json"), "--out", str(tmp_path / "m.html")]) == 1
    assert "Could not read" in capsys.readouterr().out


def test_main_with_nothing_to_draw(tmp_path, capsys):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps([{"_id": "x", "fillLevel": 50}]), encoding="utf-8")
    out = tmp_path / "m.html"
    assert main(["--data", str(path), "--out", str(out)]) == 1
    assert not out.exists()
    assert "Nothing to draw" in capsys.readouterr().out
