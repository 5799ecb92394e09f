"""
Centralized Timezone Handling for the Gap Analyzer

POLICY: Bar timestamps are interval starts, stored as UTC (aware, or naive
        and interpreted as UTC). Session dates, weekdays and the opening
        window are always derived in US Eastern (exchange-local) time.

Usage:
    from utils.timezone import session_date, weekday_label, opening_window

    day = session_date(bar.timestamp)          # date in New York
    label = weekday_label(bar.timestamp)       # 'Mon'..'Sun'
    start, end = opening_window(day)           # 09:30 / 09:45 ET, aware
"""

import pandas as pd
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union
import pytz

# Timezone constants
TZ_UTC = pytz.UTC
TZ_EASTERN = pytz.timezone('America/New_York')

# Regular trading hours (Eastern)
SESSION_OPEN = time(9, 30)

WEEKDAY_LABELS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')


def normalize_dataframe(df: pd.DataFrame, index_col: Optional[str] = None) -> pd.DataFrame:
    """
    Normalize a bar DataFrame to a sorted, timezone-naive UTC DatetimeIndex.

    This is the function to call on anything a bar provider returns.

    Args:
        df: Input DataFrame
        index_col: If provided, set this column as index first

    Returns:
        DataFrame with timezone-naive datetime index, ascending, no duplicates
    """
    if df.empty:
        return df

    df = df.copy()

    if index_col and index_col in df.columns:
        df = df.set_index(index_col)

    if not isinstance(df.index, pd.DatetimeIndex):
        df.index = pd.to_datetime(df.index)

    if df.index.tz is not None:
        df.index = df.index.tz_convert('UTC').tz_localize(None)

    df = df[~df.index.duplicated(keep='last')]
    return df.sort_index()


def to_market_time(ts: Union[pd.Timestamp, datetime]) -> datetime:
    """
    Convert any timestamp to US Eastern market time.

    Args:
        ts: Input timestamp (aware or naive, assumes UTC if naive)

    Returns:
        Eastern-aware datetime
    """
    if isinstance(ts, pd.Timestamp):
        ts = ts.to_pydatetime()

    # If naive, assume UTC
    if ts.tzinfo is None:
        ts = TZ_UTC.localize(ts)

    return ts.astimezone(TZ_EASTERN)


def session_date(ts: Union[pd.Timestamp, datetime]) -> date:
    """Exchange-local calendar date of a bar timestamp."""
    return to_market_time(ts).date()


def weekday_label(ts: Union[pd.Timestamp, datetime, date]) -> str:
    """Three-letter weekday ('Mon'..'Sun') in exchange-local time."""
    if isinstance(ts, date) and not isinstance(ts, datetime):
        return WEEKDAY_LABELS[ts.weekday()]
    return WEEKDAY_LABELS[to_market_time(ts).weekday()]


def session_open(day: date) -> datetime:
    """09:30 Eastern on the given date, as an aware datetime."""
    return TZ_EASTERN.localize(datetime.combine(day, SESSION_OPEN))


def opening_window(day: date, minutes: int = 15) -> Tuple[datetime, datetime]:
    """
    The first minutes of the regular session, [09:30, 09:30 + minutes) ET.

    Returns:
        (start, end) as Eastern-aware datetimes
    """
    start = session_open(day)
    return start, start + timedelta(minutes=minutes)


def now_eastern() -> datetime:
    """
    Get current time in US Eastern timezone.

    Returns:
        Current time as Eastern-aware datetime
    """
    return datetime.now(TZ_EASTERN)


def lookback_range(years: int, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Date range covering the last `years` calendar years, ending today.

    Feb 29 maps to Feb 28 in non-leap start years.
    """
    end = today or now_eastern().date()
    try:
        start = end.replace(year=end.year - years)
    except ValueError:
        start = end.replace(year=end.year - years, day=28)
    return start, end
