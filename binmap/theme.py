"""Colour palette and map settings injected into the renderers."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple

from .models import Region

DEFAULT_REGION = Region(
    latitude=6.9271,  # Colombo, Sri Lanka
    longitude=79.8612,
    latitude_delta=0.1,
    longitude_delta=0.1,
)


@dataclass(frozen=True)
class Palette:
    primary: str = "#2E7D32"
    success: str = "#4CAF50"
    error: str = "#F44336"
    warning: str = "#FF9800"
    filling: str = "#FFA500"
    info: str = "#2196F3"
    gray: str = "#9E9E9E"
    offline: str = "#757575"
    white: str = "#FFFFFF"


@dataclass(frozen=True)
class EdgePadding:
    """Padding around fitted coordinates, in logical pixels."""

    top: int = 50
    right: int = 50
    bottom: int = 50
    left: int = 50


@dataclass(frozen=True)
class MapSettings:
    fit_debounce_seconds: float = 0.5
    edge_padding: EdgePadding = field(default_factory=EdgePadding)
    zoom_duration_ms: int = 300
    default_region: Region = DEFAULT_REGION
    height: int = 300
    width: int = 400
    base_stroke_width: int = 4
    progress_stroke_width: int = 6
    draft_dash_pattern: Tuple[int, int] = (10, 5)
    collection_window_days: int = 7


DEFAULT_PALETTE = Palette()
DEFAULT_SETTINGS = MapSettings()


def _parse_number(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from None


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    *,
    base: MapSettings = DEFAULT_SETTINGS,
) -> MapSettings:
    """Return ``base`` overridden by ``BINMAP_*`` environment variables."""

    env = os.environ if environ is None else environ
    settings = base

    raw = env.get("BINMAP_FIT_DEBOUNCE_MS")
    if raw:
        debounce_ms = _parse_number("BINMAP_FIT_DEBOUNCE_MS", raw)
        if debounce_ms < 0:
            raise ValueError("BINMAP_FIT_DEBOUNCE_MS must not be negative")
        settings = replace(settings, fit_debounce_seconds=debounce_ms / 1000.0)

    raw = env.get("BINMAP_ZOOM_DURATION_MS")
    if raw:
        settings = replace(
            settings, zoom_duration_ms=int(_parse_number("BINMAP_ZOOM_DURATION_MS", raw))
        )

    raw = env.get("BINMAP_EDGE_PADDING")
    if raw:
        parts = [int(_parse_number("BINMAP_EDGE_PADDING", part)) for part in raw.split(",")]
        if len(parts) == 1:
            parts = parts * 4
        if len(parts) != 4:
            raise ValueError("BINMAP_EDGE_PADDING takes one value or top,right,bottom,left")
        settings = replace(settings, edge_padding=EdgePadding(*parts))

    raw = env.get("BINMAP_DEFAULT_CENTER")
    if raw:
        parts = [_parse_number("BINMAP_DEFAULT_CENTER", part) for part in raw.split(",")]
        if len(parts) != 2:
            raise ValueError("BINMAP_DEFAULT_CENTER must be 'lat,lng'")
        settings = replace(
            settings,
            default_region=replace(settings.default_region, latitude=parts[0], longitude=parts[1]),
        )

    raw = env.get("BINMAP_COLLECTION_WINDOW_DAYS")
    if raw:
        settings = replace(
            settings,
            collection_window_days=int(_parse_number("BINMAP_COLLECTION_WINDOW_DAYS", raw)),
        )

    return settings
