"""Read bin and route snapshots exported from the collection API."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Union

from .models import Bin, Route, bins_from_records, routes_from_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    bins: List[Bin] = field(default_factory=list)
    routes: List[Route] = field(default_factory=list)


def _records(payload: Any, *keys: str) -> List[Any]:
    """Return the first list found under ``keys`` (API envelopes use ``data``)."""

    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, Mapping):
            nested = value.get("data")
            if isinstance(nested, list):
                return nested
    return []


def parse_snapshot(payload: Any) -> Snapshot:
    """Build a :class:`Snapshot` from decoded JSON.

    A bare list is read as bins. Mappings may carry ``bins`` and ``routes``
    keys, either directly or wrapped in ``{"data": [...]}``.
    """

    if isinstance(payload, list):
        return Snapshot(bins=bins_from_records(payload), routes=[])
    if not isinstance(payload, Mapping):
        raise ValueError("Snapshot must be a JSON object or list")
    return Snapshot(
        bins=bins_from_records(_records(payload, "bins")),
        routes=routes_from_records(_records(payload, "routes")),
    )


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read a JSON snapshot from ``path``."""

    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{source} is not valid JSON: {exc}") from exc
    snapshot = parse_snapshot(payload)
    logger.debug(
        "Loaded %d bin(s) and %d route(s) from %s",
        len(snapshot.bins),
        len(snapshot.routes),
        source,
    )
    return snapshot
