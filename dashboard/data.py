"""Data preparation helpers for the Streamlit dashboard."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import streamlit as st

from binmap.snapshot import Snapshot, load_snapshot

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = "bins.json"


@dataclass
class PreparedDashboardData:
    """Snapshot of the dataset preparation phase."""

    data_path: str
    snapshot: Snapshot = field(default_factory=Snapshot)
    dataset_error: Optional[str] = None

    @property
    def data_available(self) -> bool:
        return self.dataset_error is None and bool(self.snapshot.bins or self.snapshot.routes)


def resolve_data_path(path: Optional[str] = None) -> str:
    return path or os.environ.get("BINMAP_DATA") or DEFAULT_DATA_PATH


@st.cache_resource(show_spinner=False)
def _cached_snapshot(path: str, modified: float) -> Snapshot:
    # ``modified`` only keys the cache so edits to the file are picked up.
    return load_snapshot(path)


def prepare_dashboard_data(path: Optional[str] = None) -> PreparedDashboardData:
    """Load the bins and routes snapshot, reporting failures to the page."""

    data_path = resolve_data_path(path)
    try:
        modified = os.path.getmtime(data_path)
        snapshot = _cached_snapshot(data_path, modified)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load %s: %s", data_path, exc)
        return PreparedDashboardData(
            data_path=data_path,
            dataset_error=f"Could not load {data_path}: {exc}",
        )
    return PreparedDashboardData(data_path=data_path, snapshot=snapshot)
