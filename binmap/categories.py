"""Category predicates used to filter bins on the map and in statistics.

Each category is an independent predicate. The fill-level bands (urgent,
filling, normal) partition every bin; the status categories (offline,
maintenance) are evaluated separately, so a bin may match a band and a
status category at once.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, FrozenSet, Iterable, List

from .models import Bin, BinStatus, Category

URGENT_THRESHOLD = 90
FILLING_THRESHOLD = 70

FILL_BANDS = (Category.URGENT, Category.FILLING, Category.NORMAL)
COUNTED_CATEGORIES = (
    Category.URGENT,
    Category.FILLING,
    Category.NORMAL,
    Category.OFFLINE,
    Category.MAINTENANCE,
)


def classify(bin: Bin) -> Category:
    """Return the fill-level band of ``bin``."""

    if bin.fill_level >= URGENT_THRESHOLD:
        return Category.URGENT
    if bin.fill_level >= FILLING_THRESHOLD:
        return Category.FILLING
    return Category.NORMAL


_PREDICATES: Dict[Category, Callable[[Bin], bool]] = {
    Category.ALL: lambda bin: True,
    Category.URGENT: lambda bin: bin.fill_level >= URGENT_THRESHOLD,
    Category.FULL: lambda bin: bin.fill_level >= URGENT_THRESHOLD,
    Category.FILLING: lambda bin: FILLING_THRESHOLD <= bin.fill_level < URGENT_THRESHOLD,
    Category.NORMAL: lambda bin: bin.fill_level < FILLING_THRESHOLD,
    Category.OFFLINE: lambda bin: bin.status is BinStatus.OFFLINE,
    Category.MAINTENANCE: lambda bin: bin.status is BinStatus.MAINTENANCE,
}


def matches(bin: Bin, category: Any) -> bool:
    return _PREDICATES[Category.parse(category)](bin)


def categories_for(bin: Bin) -> FrozenSet[Category]:
    """Return every category ``bin`` satisfies, ``all`` included."""

    return frozenset(category for category, predicate in _PREDICATES.items() if predicate(bin))


def filter_bins(bins: Iterable[Bin], category: Any = Category.ALL) -> List[Bin]:
    """Return the bins matching ``category`` in their original order."""

    predicate = _PREDICATES[Category.parse(category)]
    return [bin for bin in bins if predicate(bin)]


def count_by_category(bins: Iterable[Bin]) -> Dict[Category, int]:
    counts = {category: 0 for category in COUNTED_CATEGORIES}
    for bin in bins:
        for category in COUNTED_CATEGORIES:
            if _PREDICATES[category](bin):
                counts[category] += 1
    return counts
