"""
Dashboard Module
================
Web dashboard for opening-gap statistics using Dash + Plotly.

Features:
- Ticker / years / min gap / 0-15m inputs
- Summary cards and bin, direction and weekday tables
- Cumulative Fade vs Follow chart
- Gap-size histogram
- JSON API (/api/gaps) and health check (/health) on the same server

Usage:
    python scripts/run_gap_dashboard.py

Then open http://localhost:8083 in your browser.
"""

from .app import create_app

__all__ = ['create_app']
