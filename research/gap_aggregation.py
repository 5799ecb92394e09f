"""
Gap Aggregation Engine
======================
Folds gap events into per-bin, per-side and per-weekday accumulators plus the
running Fade/Follow series, and derives the summary statistics.

The same fold serves both layers. A `measure` function picks which outcome
of an event is scored:

    daily_measure    -> (daily return, continuation, gap filled)
    intraday_measure -> (09:30-09:45 return, continuation, filled by 09:45)

A measure returning None leaves the event out of that layer entirely.

Everything here is pure and single-pass; values are kept at full precision.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.types import (
    CumulativeSeries,
    GapEvent,
    GapSide,
    GapStatistics,
    GapSummary,
    GroupStats,
    Recommendation,
    TRADING_WEEKDAYS,
)
from research.gap_bins import GapBin, average, default_bins, rate, recommend

logger = logging.getLogger(__name__)

# (return %, continuation, gap filled)
Outcome = Tuple[float, bool, bool]
Measure = Callable[[GapEvent], Optional[Outcome]]


def daily_measure(event: GapEvent) -> Optional[Outcome]:
    return event.daily_return_pct, event.continuation, event.gap_filled


def intraday_measure(event: GapEvent) -> Optional[Outcome]:
    move = event.intraday
    if move is None:
        return None
    return move.return_pct, move.continuation, move.gap_filled


@dataclass
class _Accumulator:
    count: int = 0
    continued: int = 0
    filled: int = 0
    fade_sum: float = 0.0
    follow_sum: float = 0.0

    def add(self, direction: int, return_pct: float, continuation: bool, filled: bool):
        self.count += 1
        if continuation:
            self.continued += 1
        if filled:
            self.filled += 1
        self.follow_sum += direction * return_pct
        self.fade_sum += -direction * return_pct

    def stats(self, label: str) -> GroupStats:
        continuation_rate = rate(self.continued, self.count)
        return GroupStats(
            label=label,
            count=self.count,
            continuation_rate=continuation_rate,
            gap_fill_rate=rate(self.filled, self.count),
            fade_avg=average(self.fade_sum, self.count),
            follow_avg=average(self.follow_sum, self.count),
            recommendation=recommend(continuation_rate),
        )


def best_strategy(fade_avg: float, follow_avg: float) -> Tuple[Recommendation, float]:
    """Pick the side with the higher average; ties are NEUTRAL with 0 expectation."""
    if follow_avg > fade_avg:
        return Recommendation.FOLLOW, follow_avg
    if fade_avg > follow_avg:
        return Recommendation.FADE, fade_avg
    return Recommendation.NEUTRAL, 0.0


def aggregate_gaps(events: Iterable[GapEvent], min_gap: float,
                   measure: Measure = daily_measure,
                   bins: Optional[Sequence[GapBin]] = None) -> GapStatistics:
    """
    Aggregate gap events into the statistics for one layer.

    Args:
        events: Gap events in chronological order
        min_gap: Threshold the events were extracted with (drives bin labels)
        measure: Outcome selector (daily_measure or intraday_measure)
        bins: Bin table (defaults to default_bins(min_gap))

    Returns:
        GapStatistics with all four bins, both sides and all five weekdays
        present, zero-filled where no event landed.
    """
    bins = list(bins) if bins is not None else default_bins(min_gap)

    total = _Accumulator()
    by_bin: List[_Accumulator] = [_Accumulator() for _ in bins]
    by_side: Dict[GapSide, _Accumulator] = {side: _Accumulator() for side in GapSide}
    by_weekday: Dict[str, _Accumulator] = {day: _Accumulator() for day in TRADING_WEEKDAYS}
    cumulative = CumulativeSeries()

    gap_ups = 0
    gap_downs = 0
    abs_gap_sum = 0.0
    max_gap_up = 0.0
    max_gap_down = 0.0

    for event in events:
        outcome = measure(event)
        if outcome is None:
            continue
        return_pct, continuation, filled = outcome
        direction = event.direction

        total.add(direction, return_pct, continuation, filled)
        if event.bin_index is not None and 0 <= event.bin_index < len(by_bin):
            by_bin[event.bin_index].add(direction, return_pct, continuation, filled)
        side = event.side
        if side is not None:
            by_side[side].add(direction, return_pct, continuation, filled)
        if event.weekday in by_weekday:
            by_weekday[event.weekday].add(direction, return_pct, continuation, filled)

        abs_gap_sum += event.abs_gap
        if direction > 0:
            gap_ups += 1
            max_gap_up = max(max_gap_up, event.gap_pct)
        elif direction < 0:
            gap_downs += 1
            max_gap_down = min(max_gap_down, event.gap_pct)

        cumulative.dates.append(event.session_date)
        cumulative.fade.append(total.fade_sum)
        cumulative.follow.append(total.follow_sum)

    fade_avg = average(total.fade_sum, total.count)
    follow_avg = average(total.follow_sum, total.count)
    strategy, expected = best_strategy(fade_avg, follow_avg)

    summary = GapSummary(
        sessions=total.count,
        continuation_rate=rate(total.continued, total.count),
        gap_fill_rate=rate(total.filled, total.count),
        gap_ups=gap_ups,
        gap_downs=gap_downs,
        mean_gap=average(abs_gap_sum, total.count),
        max_gap_up=max_gap_up,
        max_gap_down=max_gap_down,
        fade_avg=fade_avg,
        follow_avg=follow_avg,
        fade_sum=total.fade_sum,
        follow_sum=total.follow_sum,
        best_strategy=strategy,
        expected_return=expected,
    )

    logger.debug(
        f"Aggregated {total.count} sessions: continuation {summary.continuation_rate:.1f}%, "
        f"best {strategy.value}"
    )

    return GapStatistics(
        summary=summary,
        bins=[acc.stats(gap_bin.label) for acc, gap_bin in zip(by_bin, bins)],
        sides={side: acc.stats(side.value) for side, acc in by_side.items()},
        by_weekday={day: acc.stats(day) for day, acc in by_weekday.items()},
        cumulative=cumulative,
    )
