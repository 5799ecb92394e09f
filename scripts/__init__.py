"""
Scripts Module
==============
Executable scripts for the gap analyzer.

Available scripts:
- run_gap_dashboard.py: Dashboard + JSON API server (opens a browser tab)
- analyze_gaps.py: One-off command-line report
"""

__all__ = []
