"""
Core Types for the Gap Analyzer
===============================
Canonical type definitions for bars, gap events and the statistics derived
from them.

This module is the SINGLE SOURCE OF TRUTH for analysis data types.
All other modules should import from here.

Precision Convention
--------------------
Every float held by these types is full precision. Rounding for display
happens once, in research/gap_report.py, when a result is serialized.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional

import pandas as pd


TRADING_WEEKDAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri')


class Recommendation(Enum):
    """Which side of the gap a grouping historically favoured."""
    FOLLOW = "FOLLOW"    # Trade with the gap
    FADE = "FADE"        # Trade against the gap
    NEUTRAL = "NEUTRAL"  # No edge either way


class GapSide(Enum):
    """Direction of the opening gap, used as an aggregation key."""
    UP = "gap_up"
    DOWN = "gap_down"

    @classmethod
    def from_direction(cls, direction: int) -> Optional["GapSide"]:
        if direction > 0:
            return cls.UP
        if direction < 0:
            return cls.DOWN
        return None


@dataclass(frozen=True)
class Bar:
    """
    One OHLCV sample. `timestamp` is the interval start (UTC, aware or naive).
    """
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


def bars_from_frame(df: Optional[pd.DataFrame]) -> List[Bar]:
    """
    Convert a provider DataFrame (DatetimeIndex, open/high/low/close[/volume])
    into an ascending list of Bars.

    Missing prices become NaN and are dropped by the extractor's positivity
    checks, never here.
    """
    if df is None or df.empty:
        return []

    df = df.sort_index()
    volume = df['volume'] if 'volume' in df.columns else pd.Series(0.0, index=df.index)

    return [
        Bar(
            timestamp=ts,
            open=float(o),
            high=float(h),
            low=float(l),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, l, c, v in zip(
            df.index, df['open'], df['high'], df['low'], df['close'], volume
        )
    ]


@dataclass(frozen=True)
class IntradayMove:
    """
    Behaviour of a gap session between 09:30 and 09:45 ET.

    Attributes:
        open_price: Open of the 09:30 bar, or the daily open when that bar is missing
        close_price: Close of the last bar before 09:45
        return_pct: (close_price - open_price) / open_price * 100
        continuation: Return moved in the gap direction
        gap_filled: Window low/high touched the prior close
        bars: Number of bars inside the window
        used_daily_open: True when the 09:30 bar was missing
    """
    open_price: float
    close_price: float
    return_pct: float
    continuation: bool
    gap_filled: bool
    bars: int
    used_daily_open: bool = False


@dataclass(frozen=True)
class GapEvent:
    """
    One qualifying opening gap, derived from a (prior, current) daily bar pair.

    Created once by the daily extractor; the intraday overlay returns copies
    with `intraday` populated instead of mutating.
    """
    session_date: date
    gap_pct: float
    daily_return_pct: float
    direction: int               # +1 gap up, -1 gap down
    continuation: bool
    gap_filled: bool
    bin_index: Optional[int]     # None when the gap falls outside every bin
    bin_label: str
    weekday: str
    prev_close: float
    open: float
    high: float
    low: float
    close: float
    intraday: Optional[IntradayMove] = None

    @property
    def abs_gap(self) -> float:
        return abs(self.gap_pct)

    @property
    def follow_return(self) -> float:
        """Daily return of a position taken with the gap."""
        return self.direction * self.daily_return_pct

    @property
    def fade_return(self) -> float:
        """Daily return of a position taken against the gap."""
        return -self.direction * self.daily_return_pct

    @property
    def side(self) -> Optional[GapSide]:
        return GapSide.from_direction(self.direction)


@dataclass(frozen=True)
class GroupStats:
    """Statistics for one bin, side or weekday."""
    label: str
    count: int = 0
    continuation_rate: float = 0.0
    gap_fill_rate: float = 0.0
    fade_avg: float = 0.0
    follow_avg: float = 0.0
    recommendation: Recommendation = Recommendation.NEUTRAL


@dataclass(frozen=True)
class GapSummary:
    """Headline numbers over every qualifying session."""
    sessions: int = 0
    continuation_rate: float = 0.0
    gap_fill_rate: float = 0.0
    gap_ups: int = 0
    gap_downs: int = 0
    mean_gap: float = 0.0
    max_gap_up: float = 0.0
    max_gap_down: float = 0.0
    fade_avg: float = 0.0
    follow_avg: float = 0.0
    fade_sum: float = 0.0
    follow_sum: float = 0.0
    best_strategy: Recommendation = Recommendation.NEUTRAL
    expected_return: float = 0.0


@dataclass
class CumulativeSeries:
    """Running (non-compounded) Fade and Follow totals, one point per event."""
    dates: List[date] = field(default_factory=list)
    fade: List[float] = field(default_factory=list)
    follow: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.dates)


@dataclass
class GapStatistics:
    """Everything the aggregation engine produces for one layer (daily or 0-15m)."""
    summary: GapSummary
    bins: List[GroupStats]
    sides: Dict[GapSide, GroupStats]
    by_weekday: Dict[str, GroupStats]
    cumulative: CumulativeSeries

    @property
    def gap_up(self) -> GroupStats:
        return self.sides[GapSide.UP]

    @property
    def gap_down(self) -> GroupStats:
        return self.sides[GapSide.DOWN]


def event_dates(events: Iterable[GapEvent]) -> List[date]:
    """Ordered, de-duplicated session dates of a sequence of events."""
    seen = set()
    dates = []
    for event in events:
        if event.session_date not in seen:
            seen.add(event.session_date)
            dates.append(event.session_date)
    return dates
