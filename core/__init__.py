# Core types for the gap analyzer
from core.types import (
    Bar,
    GapEvent,
    IntradayMove,
    GapSide,
    Recommendation,
    GroupStats,
    GapSummary,
    CumulativeSeries,
    GapStatistics,
    TRADING_WEEKDAYS,
    bars_from_frame,
    event_dates,
)

__all__ = [
    'Bar',
    'GapEvent',
    'IntradayMove',
    'GapSide',
    'Recommendation',
    'GroupStats',
    'GapSummary',
    'CumulativeSeries',
    'GapStatistics',
    'TRADING_WEEKDAYS',
    'bars_from_frame',
    'event_dates',
]
