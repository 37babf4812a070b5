"""Streamlit entrypoint for the bin collection map dashboard.

Run with ``streamlit run streamlit_bin_map.py``. The snapshot path comes from
``BINMAP_DATA`` and defaults to ``bins.json``.
"""
from __future__ import annotations

import logging
import os

from dashboard.app import render_collection_dashboard

logging.basicConfig(level=os.environ.get("BINMAP_LOG_LEVEL", "WARNING").upper())

render_collection_dashboard()
