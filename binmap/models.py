"""Domain records for bins, routes and map regions."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Timestamp = Union[str, int, float, datetime, date]


class BinStatus(str, Enum):
    ACTIVE = "active"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"
    FULL = "full"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "BinStatus":
        return _parse_enum(cls, value, cls.UNKNOWN)


class StopStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @classmethod
    def parse(cls, value: Any) -> "StopStatus":
        return _parse_enum(cls, value, cls.PENDING)


class RouteStatus(str, Enum):
    DRAFT = "draft"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "RouteStatus":
        if isinstance(value, str):
            # The API occasionally reports ``in_progress``.
            value = value.replace("_", "-")
        return _parse_enum(cls, value, cls.UNKNOWN)


class Category(str, Enum):
    """Filter buckets offered by the map and statistic widgets."""

    ALL = "all"
    URGENT = "urgent"
    FULL = "full"
    FILLING = "filling"
    NORMAL = "normal"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if value is None:
            return cls.ALL
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown bin category: {value!r}") from None


class MapMode(str, Enum):
    STANDARD = "standard"
    SATELLITE = "satellite"
    HYBRID = "hybrid"
    TERRAIN = "terrain"

    @classmethod
    def parse(cls, value: Any) -> "MapMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown map mode: {value!r}") from None


def _parse_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return default


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    @classmethod
    def from_value(cls, value: Any) -> Optional["Coordinates"]:
        """Return coordinates parsed from ``value`` or ``None`` when malformed.

        Mappings may use ``lat``/``latitude`` with ``lng``/``lon``/``longitude``.
        Sequences follow the GeoJSON ``[lon, lat]`` order.
        """

        if value is None:
            return None
        if isinstance(value, Coordinates):
            return value

        lat: Any
        lng: Any
        if isinstance(value, Mapping):
            lat = _first_present(value, ("lat", "latitude"))
            lng = _first_present(value, ("lng", "lon", "longitude"))
        elif isinstance(value, (list, tuple)) and len(value) >= 2:
            lng, lat = value[0], value[1]
        else:
            return None

        try:
            lat_f = float(lat)
            lng_f = float(lng)
        except (TypeError, ValueError, OverflowError):
            return None

        if math.isnan(lat_f) or math.isnan(lng_f):
            return None
        if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lng_f <= 180.0):
            return None
        return cls(lat=lat_f, lng=lng_f)

    def as_lon_lat(self) -> List[float]:
        return [self.lng, self.lat]


@dataclass(frozen=True)
class Region:
    """Camera centre plus the latitude/longitude span it shows."""

    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float

    @property
    def center(self) -> Coordinates:
        return Coordinates(lat=self.latitude, lng=self.longitude)

    def bounds(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Return ``((south, west), (north, east))``."""

        half_lat = self.latitude_delta / 2.0
        half_lng = self.longitude_delta / 2.0
        return (
            (self.latitude - half_lat, self.longitude - half_lng),
            (self.latitude + half_lat, self.longitude + half_lng),
        )


def _first_present(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _location_coordinates(payload: Mapping[str, Any]) -> Optional[Coordinates]:
    location = payload.get("location")
    if not isinstance(location, Mapping):
        return None
    return Coordinates.from_value(location.get("coordinates"))


def _coerce_fill_level(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return max(0, min(100, round_half_up(number)))


def _identifier(payload: Mapping[str, Any], keys: Iterable[str]) -> Optional[str]:
    value = _first_present(payload, keys)
    return None if value is None else str(value)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Bin:
    id: str
    fill_level: int = 0
    status: BinStatus = BinStatus.UNKNOWN
    coordinates: Optional[Coordinates] = None
    last_collection: Optional[Timestamp] = None
    label: Optional[str] = None
    address: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or self.id

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], *, index: int = 0) -> "Bin":
        """Build a bin from an API payload, tolerating missing fields."""

        identifier = _identifier(payload, ("_id", "binId", "id")) or f"bin-{index}"
        location = payload.get("location")
        address = location.get("address") if isinstance(location, Mapping) else None
        coordinates = _location_coordinates(payload)
        if coordinates is None:
            logger.debug("Bin %s has no usable coordinates", identifier)
        return cls(
            id=identifier,
            fill_level=_coerce_fill_level(payload.get("fillLevel")),
            status=BinStatus.parse(payload.get("status")),
            coordinates=coordinates,
            last_collection=payload.get("lastCollection") or None,
            label=_identifier(payload, ("binId",)),
            address=str(address) if address else None,
        )


@dataclass(frozen=True)
class RouteStop:
    status: StopStatus = StopStatus.PENDING
    coordinates: Optional[Coordinates] = None
    reason: Optional[str] = None
    id: Optional[str] = None
    bin_id: Optional[str] = None
    request_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "RouteStop":
        return cls(
            status=StopStatus.parse(payload.get("status")),
            coordinates=_location_coordinates(payload),
            reason=payload.get("reason") or None,
            id=_identifier(payload, ("_id", "id")),
            bin_id=_identifier(payload, ("binId",)),
            request_id=_identifier(payload, ("requestId",)),
        )


@dataclass(frozen=True)
class Route:
    id: str
    status: RouteStatus = RouteStatus.DRAFT
    stops: Tuple[RouteStop, ...] = field(default_factory=tuple)
    name: Optional[str] = None
    reported_completion: Optional[float] = None

    @property
    def total_stops(self) -> int:
        return len(self.stops)

    @property
    def completed_stops(self) -> int:
        return sum(1 for stop in self.stops if stop.status is StopStatus.COMPLETED)

    @property
    def completion_percentage(self) -> int:
        """Completion recomputed from the stop statuses."""

        if not self.stops:
            return 0
        return round_half_up(100.0 * self.completed_stops / self.total_stops)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], *, index: int = 0) -> "Route":
        identifier = _identifier(payload, ("_id", "routeId", "id")) or f"route-{index}"
        raw_stops = payload.get("stops")
        if not isinstance(raw_stops, (list, tuple)):
            raw_stops = []
        stops = tuple(
            RouteStop.from_mapping(stop)
            for stop in raw_stops
            if isinstance(stop, Mapping)
        )
        reported = payload.get("completionPercentage")
        try:
            reported_value = float(reported) if reported is not None else None
        except (TypeError, ValueError, OverflowError):
            reported_value = None
        name = payload.get("routeName") or payload.get("name")
        return cls(
            id=identifier,
            status=RouteStatus.parse(payload.get("status")),
            stops=stops,
            name=str(name) if name else None,
            reported_completion=reported_value,
        )


def bins_from_records(records: Iterable[Any]) -> List[Bin]:
    """Parse bin payloads, skipping entries that are not mappings."""

    bins: List[Bin] = []
    for index, record in enumerate(records or []):
        if isinstance(record, Bin):
            bins.append(record)
        elif isinstance(record, Mapping):
            bins.append(Bin.from_mapping(record, index=index))
        else:
            logger.debug("Skipping bin record %d of type %s", index, type(record).__name__)
    return bins


def routes_from_records(records: Iterable[Any]) -> List[Route]:
    routes: List[Route] = []
    for index, record in enumerate(records or []):
        if isinstance(record, Route):
            routes.append(record)
        elif isinstance(record, Mapping):
            routes.append(Route.from_mapping(record, index=index))
        else:
            logger.debug("Skipping route record %d of type %s", index, type(record).__name__)
    return routes


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime, or ``None`` when unparseable.

    Numbers are read as epoch milliseconds, the unit the API emits.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None
