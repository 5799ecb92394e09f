"""
Gap Event Extraction (daily)
============================
Walks consecutive daily bars and derives one GapEvent per qualifying session.

For each pair (prev, day):
- skip when prev.close <= 0 or day.open <= 0 (bad ticks are dropped silently)
- gap%    = (day.open - prev.close) / prev.close * 100, skip if |gap%| < min_gap
- return% = (day.close - day.open) / day.open * 100
- continuation: return has the gap's sign (a flat session never continues)
- gap filled: gap up and day.low <= prev.close, or gap down and day.high >= prev.close

Pairs are always (bars[i-1], bars[i]); a skipped pair never shifts the next one.
"""

import logging
import math
from typing import List, Optional, Sequence

from core.types import Bar, GapEvent
from research.gap_bins import GapBin, classify_gap, default_bins, sign
from utils.errors import ConfigurationError
from utils.timezone import session_date, weekday_label

logger = logging.getLogger(__name__)


def validate_min_gap(min_gap: float) -> float:
    """A non-positive threshold would admit zero gaps with no direction."""
    if min_gap is None or not min_gap > 0:
        raise ConfigurationError(f"min_gap must be > 0, got {min_gap}", config_key="min_gap")
    return min_gap


def is_continuation(direction: int, return_pct: float) -> bool:
    """Session return moved in the gap direction (zero return never counts)."""
    return direction != 0 and return_pct != 0 and sign(return_pct) == direction


def is_gap_filled(direction: int, prev_close: float, low: float, high: float) -> bool:
    """Price traded back to the prior close during the session."""
    if direction == 1:
        return low <= prev_close
    if direction == -1:
        return high >= prev_close
    return False


def _positive(price: float) -> bool:
    # NaN fails the comparison too
    return price is not None and price > 0


def build_gap_event(prev: Bar, day: Bar, min_gap: float,
                    bins: Sequence[GapBin]) -> Optional[GapEvent]:
    """Derive the event for one (prev, day) pair, or None if it does not qualify."""
    prev_close = prev.close
    open_price = day.open

    if not (_positive(prev_close) and _positive(open_price)):
        return None

    gap_pct = (open_price - prev_close) / prev_close * 100.0
    if abs(gap_pct) < min_gap:
        return None

    daily_return_pct = (day.close - open_price) / open_price * 100.0
    direction = sign(gap_pct)
    bin_index, bin_label = classify_gap(abs(gap_pct), bins)

    return GapEvent(
        session_date=session_date(day.timestamp),
        gap_pct=gap_pct,
        daily_return_pct=daily_return_pct,
        direction=direction,
        continuation=is_continuation(direction, daily_return_pct),
        gap_filled=is_gap_filled(direction, prev_close, day.low, day.high),
        bin_index=bin_index,
        bin_label=bin_label,
        weekday=weekday_label(day.timestamp),
        prev_close=prev_close,
        open=open_price,
        high=day.high,
        low=day.low,
        close=day.close,
    )


def extract_gap_events(bars: Sequence[Bar], min_gap: float,
                       bins: Optional[Sequence[GapBin]] = None) -> List[GapEvent]:
    """
    Extract gap events from ascending daily bars.

    Args:
        bars: Daily bars, strictly ascending by timestamp
        min_gap: Minimum absolute gap in percent (> 0)
        bins: Bin table (defaults to default_bins(min_gap))

    Returns:
        Events in chronological order; at most len(bars) - 1 of them

    Raises:
        ConfigurationError: min_gap <= 0
    """
    validate_min_gap(min_gap)
    bins = bins if bins is not None else default_bins(min_gap)

    events = []
    skipped_bad_price = 0
    for i in range(1, len(bars)):
        prev, day = bars[i - 1], bars[i]
        event = build_gap_event(prev, day, min_gap, bins)
        if event is None:
            if not (_positive(prev.close) and _positive(day.open)):
                skipped_bad_price += 1
            continue
        if math.isnan(event.daily_return_pct):
            # Missing close: the session cannot be scored
            skipped_bad_price += 1
            continue
        events.append(event)

    if skipped_bad_price:
        logger.debug(f"Skipped {skipped_bad_price} session pairs with non-positive or missing prices")
    logger.debug(f"Extracted {len(events)} gap events from {len(bars)} bars (min_gap={min_gap})")
    return events
