"""
Research Module
===============
Opening-gap statistics: event extraction, aggregation, the 0-15 minute
overlay and report serialization.
"""

from research.gap_bins import GapBin, default_bins, classify_gap, recommend
from research.gap_events import extract_gap_events
from research.gap_aggregation import aggregate_gaps, daily_measure, intraday_measure
from research.gap_intraday import (
    IntradayOverlay,
    measure_opening_move,
    apply_intraday_overlay,
)
from research.gap_analyzer import GapAnalyzer, GapAnalysisResult

__all__ = [
    # Binning
    'GapBin',
    'default_bins',
    'classify_gap',
    'recommend',
    # Daily pass
    'extract_gap_events',
    'aggregate_gaps',
    'daily_measure',
    'intraday_measure',
    # Opening window
    'IntradayOverlay',
    'measure_opening_move',
    'apply_intraday_overlay',
    # Service
    'GapAnalyzer',
    'GapAnalysisResult',
]
