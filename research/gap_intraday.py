"""
Opening-Window (0-15 minute) Overlay
====================================
Second pass over the daily gap events. For every session that passed the
daily filter, looks at the bars starting in [09:30, 09:45) Eastern and asks
the daily questions again for the first fifteen minutes:

- did price keep moving in the gap direction by 09:45?
- did it trade back to the prior close by 09:45?

Sessions with no bars in the window are left out of this layer only.
"""

from dataclasses import dataclass, field, replace
from datetime import date
import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence

from core.types import Bar, GapEvent, GapStatistics, IntradayMove
from research.gap_aggregation import aggregate_gaps, intraday_measure
from research.gap_bins import pct_change
from research.gap_events import is_continuation, is_gap_filled
from utils.timezone import opening_window, to_market_time

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MINUTES = 15


@dataclass
class IntradayOverlay:
    """Result of the 0-15m pass: annotated events plus their statistics."""
    events: List[GapEvent]
    statistics: GapStatistics
    sessions: int = 0
    missing_dates: List[date] = field(default_factory=list)


def window_bars(bars: Sequence[Bar], day: date,
                window_minutes: int = DEFAULT_WINDOW_MINUTES) -> List[Bar]:
    """Bars of `day` whose interval starts inside the opening window, ascending."""
    start, end = opening_window(day, window_minutes)
    selected = [bar for bar in bars if start <= to_market_time(bar.timestamp) < end]
    return sorted(selected, key=lambda bar: to_market_time(bar.timestamp))


def measure_opening_move(event: GapEvent, bars: Sequence[Bar],
                         window_minutes: int = DEFAULT_WINDOW_MINUTES) -> Optional[IntradayMove]:
    """
    Score the opening window of one gap session.

    The open reference is the bar starting exactly at 09:30, falling back to
    the daily open when that bar is missing. The 09:45 reference is the close
    of the last bar inside the window.

    Returns:
        IntradayMove, or None when the window holds no usable bars
    """
    in_window = window_bars(bars, event.session_date, window_minutes)
    if not in_window:
        return None

    start, _ = opening_window(event.session_date, window_minutes)
    first = in_window[0]
    used_daily_open = to_market_time(first.timestamp) != start
    open_price = event.open if used_daily_open else first.open
    close_price = in_window[-1].close

    if not open_price > 0 or math.isnan(close_price):
        return None

    low = min(bar.low for bar in in_window)
    high = max(bar.high for bar in in_window)
    return_pct = pct_change(close_price, open_price)

    return IntradayMove(
        open_price=open_price,
        close_price=close_price,
        return_pct=return_pct,
        continuation=is_continuation(event.direction, return_pct),
        gap_filled=is_gap_filled(event.direction, event.prev_close, low, high),
        bars=len(in_window),
        used_daily_open=used_daily_open,
    )


def apply_intraday_overlay(events: Sequence[GapEvent],
                           intraday_bars: Mapping[date, Sequence[Bar]],
                           min_gap: float,
                           window_minutes: int = DEFAULT_WINDOW_MINUTES) -> IntradayOverlay:
    """
    Attach opening-window moves to the daily events and aggregate them.

    Args:
        events: Daily gap events, chronological
        intraday_bars: Session date -> intraday bars (1- or 15-minute)
        min_gap: Threshold the daily events were extracted with
        window_minutes: Length of the opening window

    Returns:
        IntradayOverlay; `events` keeps every daily event (copies with
        `intraday` set where the window was covered), `statistics` covers
        only the scored sessions.
    """
    annotated = []
    missing = []
    for event in events:
        move = measure_opening_move(event, intraday_bars.get(event.session_date, ()),
                                    window_minutes)
        if move is None:
            missing.append(event.session_date)
            annotated.append(event)
            continue
        annotated.append(replace(event, intraday=move))

    statistics = aggregate_gaps(annotated, min_gap, measure=intraday_measure)
    sessions = statistics.summary.sessions

    if missing:
        logger.info(f"No opening-window bars for {len(missing)} of {len(events)} gap sessions")
    logger.debug(f"Intraday overlay scored {sessions} sessions")

    return IntradayOverlay(
        events=annotated,
        statistics=statistics,
        sessions=sessions,
        missing_dates=missing,
    )
