"""Streamlit dashboard for the bin collection map."""

from .data import PreparedDashboardData, prepare_dashboard_data, resolve_data_path

__all__ = ["PreparedDashboardData", "prepare_dashboard_data", "resolve_data_path"]
