"""
Test utilities and helper functions for the gap analyzer test suite.

Provides bar builders (daily and opening-window), trading calendars and
comparison helpers specific to gap statistics.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from core.types import Bar
from utils.timezone import TZ_EASTERN, TZ_UTC


# =============================================================================
# Calendar Helpers
# =============================================================================

def trading_days(start: date, count: int) -> List[date]:
    """`count` consecutive weekdays starting at (or after) `start`."""
    days = []
    day = start
    while len(days) < count:
        if day.weekday() < 5:
            days.append(day)
        day += timedelta(days=1)
    return days


def eastern(day: date, hour: int = 0, minute: int = 0) -> datetime:
    """Eastern-aware datetime on `day`."""
    return TZ_EASTERN.localize(datetime.combine(day, time(hour, minute)))


# =============================================================================
# Bar Builders
# =============================================================================

def daily_bar(day: date, open_: float, high: float, low: float, close: float,
              volume: float = 1_000_000.0) -> Bar:
    """Daily bar stamped like the providers do: midnight Eastern, as UTC."""
    return Bar(
        timestamp=eastern(day).astimezone(TZ_UTC),
        open=open_, high=high, low=low, close=close, volume=volume,
    )


def flat_bar(day: date, price: float) -> Bar:
    """Daily bar where every price equals `price`."""
    return daily_bar(day, price, price, price, price)


def make_daily_bars(rows: Sequence[Tuple[float, float, float, float]],
                    start: date = date(2024, 3, 4)) -> List[Bar]:
    """Daily bars from (open, high, low, close) rows on consecutive weekdays."""
    days = trading_days(start, len(rows))
    return [daily_bar(day, *row) for day, row in zip(days, rows)]


def minute_bar(day: date, hour: int, minute: int, open_: float, high: float,
               low: float, close: float) -> Bar:
    """Intraday bar starting at hour:minute Eastern."""
    return Bar(timestamp=eastern(day, hour, minute).astimezone(TZ_UTC),
               open=open_, high=high, low=low, close=close, volume=10_000.0)


def opening_window_bars(day: date, prices: Iterable[float], start_minute: int = 30,
                        spread: float = 0.05) -> List[Bar]:
    """
    One-minute bars from 09:{start_minute} onward, each opening at the previous
    close. `prices` are the successive closes, the first bar opens at prices[0].
    """
    prices = list(prices)
    bars = []
    prev = prices[0]
    for i, price in enumerate(prices):
        total = start_minute + i
        hour, minute = 9 + total // 60, total % 60
        bars.append(minute_bar(day, hour, minute, prev,
                               max(prev, price) + spread, min(prev, price) - spread, price))
        prev = price
    return bars


# =============================================================================
# Comparison Helpers
# =============================================================================

def assert_pct_close(actual: float, expected: float, tol: float = 1e-9, msg: str = ""):
    """Assert two percentages are equal within an absolute tolerance."""
    assert math.isclose(actual, expected, abs_tol=tol), (
        f"Percent mismatch: {actual} vs {expected} (tol {tol}). {msg}"
    )


def find_group(groups: Sequence[dict], label: str) -> Optional[dict]:
    """Group record with the given label from a serialized table."""
    for group in groups:
        if group["label"] == label:
            return group
    return None
