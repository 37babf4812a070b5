"""Bin statistics shared by the map and the statistic widgets."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Sequence

from .categories import count_by_category
from .models import Bin, Category, parse_timestamp, round_half_up


@dataclass(frozen=True)
class BinStatistics:
    total: int
    counts: Dict[Category, int]
    average_fill_level: int
    collection_efficiency: int
    recently_collected: int
    with_coordinates: int

    def count(self, category: Category) -> int:
        category = Category.parse(category)
        if category is Category.ALL:
            return self.total
        if category is Category.FULL:
            category = Category.URGENT
        return self.counts.get(category, 0)


def compute_bin_statistics(
    bins: Sequence[Bin],
    *,
    now: Optional[datetime] = None,
    window_days: int = 7,
) -> BinStatistics:
    """Return counts, average fill level and collection efficiency for ``bins``.

    Bins without coordinates are counted like any other bin.
    """

    total = len(bins)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    cutoff = current - timedelta(days=window_days)

    recently_collected = 0
    for bin in bins:
        collected = parse_timestamp(bin.last_collection)
        if collected is not None and collected >= cutoff:
            recently_collected += 1

    if total:
        average = round_half_up(sum(bin.fill_level for bin in bins) / total)
        efficiency = round_half_up(recently_collected / total * 100)
    else:
        average = 0
        efficiency = 0

    return BinStatistics(
        total=total,
        counts=count_by_category(bins),
        average_fill_level=average,
        collection_efficiency=efficiency,
        recently_collected=recently_collected,
        with_coordinates=sum(1 for bin in bins if bin.coordinates is not None),
    )
