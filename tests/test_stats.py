from __future__ import annotations

from datetime import datetime, timedelta, timezone

from binmap.models import Bin, BinStatus, Category, Coordinates
from binmap.stats import compute_bin_statistics

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def _bins():
    here = Coordinates(6.9, 79.8)
    return [
        Bin(id="a", fill_level=95, coordinates=here, last_collection=(NOW - timedelta(days=2)).isoformat()),
        Bin(
            id="b",
            fill_level=75,
            status=BinStatus.OFFLINE,
            coordinates=here,
            last_collection=(NOW - timedelta(days=10)).isoformat(),
        ),
        Bin(id="c", fill_level=40, status=BinStatus.MAINTENANCE, coordinates=here),
        Bin(
            id="d",
            fill_level=10,
            last_collection=int((NOW - timedelta(days=1)).timestamp() * 1000),
        ),
    ]


def test_statistics_for_mixed_bins():
    stats = compute_bin_statistics(_bins(), now=NOW)

    assert stats.total == 4
    assert stats.count(Category.ALL) == 4
    assert stats.count(Category.URGENT) == 1
    assert stats.count(Category.FULL) == 1
    assert stats.count("filling") == 1
    assert stats.count(Category.NORMAL) == 2
    assert stats.count(Category.OFFLINE) == 1
    assert stats.count(Category.MAINTENANCE) == 1
    assert stats.average_fill_level == 55
    assert stats.recently_collected == 2
    assert stats.collection_efficiency == 50
    assert stats.with_coordinates == 3


def test_collection_window_is_configurable():
    stats = compute_bin_statistics(_bins(), now=NOW, window_days=14)
    assert stats.recently_collected == 3
    assert stats.collection_efficiency == 75


def test_average_fill_level_rounds_half_up():
    bins = [Bin(id="a", fill_level=1), Bin(id="b", fill_level=2)]
    assert compute_bin_statistics(bins, now=NOW).average_fill_level == 2


def test_empty_statistics():
    stats = compute_bin_statistics([], now=NOW)
    assert stats.total == 0
    assert stats.average_fill_level == 0
    assert stats.collection_efficiency == 0
    assert all(count == 0 for count in stats.counts.values())


def test_invalid_collection_dates_are_not_recent():
    bins = [Bin(id="a", last_collection="soon"), Bin(id="b")]
    assert compute_bin_statistics(bins, now=NOW).recently_collected == 0
