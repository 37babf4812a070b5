"""Camera regions, debounced viewport fitting and zoom/pan arithmetic."""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence

from .models import Coordinates, Region
from .theme import EdgePadding

logger = logging.getLogger(__name__)

MIN_DELTA = 1e-6
MAX_LATITUDE_DELTA = 180.0
MAX_LONGITUDE_DELTA = 360.0
SINGLE_POINT_DELTA = 0.005


class PanDirection(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


def bounding_region(coordinates: Sequence[Coordinates]) -> Optional[Region]:
    """Return the smallest region covering ``coordinates`` or ``None``."""

    points = [point for point in coordinates if point is not None]
    if not points:
        return None
    lats = [point.lat for point in points]
    lngs = [point.lng for point in points]
    south, north = min(lats), max(lats)
    west, east = min(lngs), max(lngs)
    return Region(
        latitude=(south + north) / 2.0,
        longitude=(west + east) / 2.0,
        latitude_delta=north - south,
        longitude_delta=east - west,
    )


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _wrap_longitude(value: float) -> float:
    return ((value + 180.0) % 360.0) - 180.0


def scale_region(region: Region, factor: float) -> Region:
    return replace(
        region,
        latitude_delta=_clamp(region.latitude_delta * factor, MIN_DELTA, MAX_LATITUDE_DELTA),
        longitude_delta=_clamp(region.longitude_delta * factor, MIN_DELTA, MAX_LONGITUDE_DELTA),
    )


def zoom_in(region: Region) -> Region:
    return scale_region(region, 0.5)


def zoom_out(region: Region) -> Region:
    return scale_region(region, 2.0)


def pan_region(region: Region, direction: PanDirection, fraction: float = 0.5) -> Region:
    """Shift ``region`` by ``fraction`` of its span towards ``direction``."""

    direction = PanDirection(direction)
    lat_step = region.latitude_delta * fraction
    lng_step = region.longitude_delta * fraction
    latitude = region.latitude
    longitude = region.longitude
    if direction is PanDirection.NORTH:
        latitude += lat_step
    elif direction is PanDirection.SOUTH:
        latitude -= lat_step
    elif direction is PanDirection.EAST:
        longitude += lng_step
    else:
        longitude -= lng_step
    return replace(
        region,
        latitude=_clamp(latitude, -90.0, 90.0),
        longitude=_wrap_longitude(longitude),
    )


# ----------------------------------------------------------------------
# Timers
# ----------------------------------------------------------------------
class Scheduler(Protocol):
    def schedule(self, delay: float, action: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


@dataclass(order=True)
class ManualTimer:
    due: float
    sequence: int
    action: Callable[[], None] = field(compare=False)


class ManualScheduler:
    """Scheduler driven by an explicit clock.

    Nothing fires until :meth:`advance` or :meth:`run_all` is called, which
    keeps timer order deterministic in tests and in rerun-based hosts.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)
        self._queue: List[ManualTimer] = []
        self._counter = itertools.count()

    def schedule(self, delay: float, action: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + max(0.0, float(delay)), next(self._counter), action)
        heapq.heappush(self._queue, timer)
        return timer

    def cancel(self, handle: ManualTimer) -> None:
        if handle in self._queue:
            self._queue.remove(handle)
            heapq.heapify(self._queue)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run every timer that came due."""

        target = self.now + float(seconds)
        fired = 0
        while self._queue and self._queue[0].due <= target:
            timer = heapq.heappop(self._queue)
            self.now = timer.due
            timer.action()
            fired += 1
        self.now = target
        return fired

    def run_all(self) -> int:
        fired = 0
        while self._queue:
            timer = heapq.heappop(self._queue)
            self.now = max(self.now, timer.due)
            timer.action()
            fired += 1
        return fired


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, delay: float, action: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, float(delay)), action)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


# ----------------------------------------------------------------------
# Camera
# ----------------------------------------------------------------------
class Camera(Protocol):
    """Commands understood by the host map primitive."""

    def fit_to_coordinates(
        self,
        coordinates: Sequence[Coordinates],
        *,
        edge_padding: EdgePadding,
        animated: bool,
    ) -> Optional[Region]:
        ...

    def animate_to_region(self, region: Region, duration_ms: int) -> None:
        ...


class RegionCamera:
    """Camera that records the region a static renderer should display.

    Fitted regions grow so that ``edge_padding`` pixels stay free around the
    coordinates for a map of ``width`` x ``height`` pixels.
    """

    def __init__(self, region: Region, *, width: int = 400, height: int = 300) -> None:
        self.region = region
        self.width = width
        self.height = height
        self.last_fit: Optional[List[Coordinates]] = None
        self.last_padding: Optional[EdgePadding] = None
        self.transition_ms = 0

    def _expand(self, span: float, pixels: int, pad_a: int, pad_b: int) -> float:
        usable = pixels - pad_a - pad_b
        if usable <= 0:
            return span
        return span * pixels / usable

    def fit_to_coordinates(
        self,
        coordinates: Sequence[Coordinates],
        *,
        edge_padding: EdgePadding = EdgePadding(),
        animated: bool = True,
    ) -> Optional[Region]:
        bounds = bounding_region(coordinates)
        if bounds is None:
            return None
        lat_span = max(bounds.latitude_delta, SINGLE_POINT_DELTA)
        lng_span = max(bounds.longitude_delta, SINGLE_POINT_DELTA)
        self.region = replace(
            bounds,
            latitude_delta=self._expand(
                lat_span, self.height, edge_padding.top, edge_padding.bottom
            ),
            longitude_delta=self._expand(
                lng_span, self.width, edge_padding.left, edge_padding.right
            ),
        )
        self.last_fit = list(coordinates)
        self.last_padding = edge_padding
        self.transition_ms = 500 if animated else 0
        return self.region

    def animate_to_region(self, region: Region, duration_ms: int) -> None:
        self.region = region
        self.transition_ms = duration_ms


# ----------------------------------------------------------------------
# Debounced fitting
# ----------------------------------------------------------------------
class ViewportFitter:
    """Fit the camera to a coordinate set once input has settled.

    A new request always cancels the outstanding one, so a burst of requests
    within ``quiet_period`` commits a single fit targeting the last set.
    """

    def __init__(
        self,
        camera: Camera,
        scheduler: Scheduler,
        *,
        quiet_period: float = 0.5,
        edge_padding: EdgePadding = EdgePadding(),
        on_commit: Optional[Callable[[Region], None]] = None,
    ) -> None:
        self.camera = camera
        self.scheduler = scheduler
        self.quiet_period = quiet_period
        self.edge_padding = edge_padding
        self.on_commit = on_commit
        self.commits = 0
        self._handle: Any = None
        self._pending: Optional[List[Coordinates]] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def request_fit(self, coordinates: Sequence[Optional[Coordinates]]) -> bool:
        """Schedule a fit to ``coordinates``; return ``False`` when nothing to fit."""

        self.cancel()
        points = [point for point in coordinates if point is not None]
        if not points:
            logger.debug("No coordinates to fit; leaving camera unchanged")
            return False
        self._pending = points
        self._handle = self.scheduler.schedule(self.quiet_period, self._commit)
        return True

    def flush(self) -> bool:
        """Commit the outstanding request immediately."""

        if self._handle is None:
            return False
        self.scheduler.cancel(self._handle)
        self._commit()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
        self._handle = None
        self._pending = None

    def _commit(self) -> None:
        points = self._pending
        self._handle = None
        self._pending = None
        if not points:
            return
        region = self.camera.fit_to_coordinates(
            points, edge_padding=self.edge_padding, animated=True
        )
        self.commits += 1
        logger.debug("Fitted camera to %d coordinate(s)", len(points))
        if self.on_commit is not None:
            self.on_commit(region or bounding_region(points))
