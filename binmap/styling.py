"""Colour, priority and label mappings for map markers and polylines."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .categories import FILLING_THRESHOLD, URGENT_THRESHOLD
from .models import Bin, BinStatus, Coordinates, RouteStatus, StopStatus, parse_timestamp
from .theme import DEFAULT_PALETTE, Palette


class Priority(str, Enum):
    URGENT = "URGENT"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# Palette attribute names per status. Every enum member must appear; the
# tests guard against a new status falling back to a default colour.
BIN_STATUS_TONES: Dict[BinStatus, str] = {
    BinStatus.ACTIVE: "success",
    BinStatus.OFFLINE: "offline",
    BinStatus.MAINTENANCE: "warning",
    BinStatus.FULL: "error",
    BinStatus.UNKNOWN: "gray",
}

ROUTE_STATUS_TONES: Dict[RouteStatus, str] = {
    RouteStatus.COMPLETED: "success",
    RouteStatus.IN_PROGRESS: "primary",
    RouteStatus.ASSIGNED: "info",
    RouteStatus.DRAFT: "gray",
    RouteStatus.CANCELLED: "gray",
    RouteStatus.UNKNOWN: "gray",
}

STOP_STATUS_TONES: Dict[StopStatus, str] = {
    StopStatus.COMPLETED: "success",
    StopStatus.SKIPPED: "warning",
    StopStatus.PENDING: "primary",
}


def bin_status_colour(status: BinStatus, palette: Palette = DEFAULT_PALETTE) -> str:
    return getattr(palette, BIN_STATUS_TONES[status])


def route_colour(status: RouteStatus, palette: Palette = DEFAULT_PALETTE) -> str:
    return getattr(palette, ROUTE_STATUS_TONES[status])


def stop_colour(status: StopStatus, palette: Palette = DEFAULT_PALETTE) -> str:
    return getattr(palette, STOP_STATUS_TONES[status])


def colour_for_bin(bin: Bin, palette: Palette = DEFAULT_PALETTE) -> str:
    """Return the marker colour for ``bin``.

    Status wins over fill level: offline and maintenance bins keep their
    status colour even when they would also count as urgent.
    """

    if bin.status is BinStatus.OFFLINE:
        return bin_status_colour(BinStatus.OFFLINE, palette)
    if bin.status is BinStatus.MAINTENANCE:
        return bin_status_colour(BinStatus.MAINTENANCE, palette)
    if bin.fill_level >= URGENT_THRESHOLD:
        return palette.error
    if bin.fill_level >= FILLING_THRESHOLD:
        return palette.filling
    return palette.success


def priority_for_bin(bin: Bin) -> Priority:
    if bin.fill_level >= URGENT_THRESHOLD:
        return Priority.URGENT
    if bin.fill_level >= FILLING_THRESHOLD:
        return Priority.MEDIUM
    return Priority.LOW


def format_last_collection(value: Any, now: Optional[datetime] = None) -> str:
    """Return a human label for a last-collection timestamp."""

    if value is None or value == "":
        return "Never"
    collected = parse_timestamp(value)
    if collected is None:
        return "Invalid Date"

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    elapsed = abs((current - collected).total_seconds())
    days = math.ceil(elapsed / 86_400)

    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    return collected.date().isoformat()


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    """Convert a ``#rgb`` or ``#rrggbb`` colour into an ``(r, g, b)`` tuple."""

    colour = value.strip()
    if not colour.startswith("#"):
        raise ValueError(f"Unsupported colour format: {value}")
    digits = colour.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        raise ValueError(f"Unsupported hex colour format: {value}")
    return tuple(int(digits[idx : idx + 2], 16) for idx in (0, 2, 4))  # type: ignore[return-value]


def hex_to_rgba(value: str, alpha: int = 255) -> List[int]:
    return [*hex_to_rgb(value), int(alpha)]


@dataclass(frozen=True)
class BinMarker:
    """Presentation record for one bin on the map."""

    bin: Bin
    coordinates: Coordinates
    colour: str
    priority: Priority
    label: str
    urgent_badge: bool
    callout: Tuple[str, ...]


def build_bin_marker(
    bin: Bin,
    palette: Palette = DEFAULT_PALETTE,
    *,
    now: Optional[datetime] = None,
) -> Optional[BinMarker]:
    """Return the marker for ``bin`` or ``None`` when it cannot be placed."""

    if bin.coordinates is None:
        return None

    priority = priority_for_bin(bin)
    callout = (
        bin.display_label,
        f"Priority: {priority.value}",
        f"📍 {bin.address or 'Unknown Location'}",
        f"Fill Level: {bin.fill_level}%",
        f"Status: {bin.status.value if bin.status is not BinStatus.UNKNOWN else 'Unknown'}",
        f"Last Collection: {format_last_collection(bin.last_collection, now)}",
    )
    return BinMarker(
        bin=bin,
        coordinates=bin.coordinates,
        colour=colour_for_bin(bin, palette),
        priority=priority,
        label=f"{bin.fill_level}%",
        urgent_badge=priority is Priority.URGENT,
        callout=callout,
    )
