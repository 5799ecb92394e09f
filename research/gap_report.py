"""
Gap Report Serialization
========================
Turns analysis results into the JSON payload served by /api/gaps.

This is the only place values are rounded:
- event gap %, returns, averages and cumulative totals: 3 decimals
- rates (continuation, gap fill): 1 decimal
- mean / max gap sizes: 2 decimals
Raw prices are emitted as received.
"""

from typing import Any, Dict, List, Optional, Sequence

from core.types import (
    CumulativeSeries,
    GapEvent,
    GapStatistics,
    GapSummary,
    GroupStats,
    TRADING_WEEKDAYS,
)
from research.gap_bins import round1, round2, round3

DATE_FORMAT = "%Y-%m-%d"


def event_record(event: GapEvent) -> Dict[str, Any]:
    record = {
        "date": event.session_date.strftime(DATE_FORMAT),
        "gap_pct": round3(event.gap_pct),
        "daily_return_pct": round3(event.daily_return_pct),
        "direction": event.direction,
        "same_dir": int(event.continuation),
        "filled": int(event.gap_filled),
        "bin": event.bin_label,
        "open": event.open,
        "high": event.high,
        "low": event.low,
        "close": event.close,
        "prev_close": event.prev_close,
        "dow": event.weekday,
    }
    move = event.intraday
    if move is not None:
        record["ret_15m"] = round3(move.return_pct)
        record["same_dir_15m"] = int(move.continuation)
        record["filled_15m"] = int(move.gap_filled)
    return record


def group_record(stats: GroupStats) -> Dict[str, Any]:
    return {
        "label": stats.label,
        "count": stats.count,
        "continuation_rate": round1(stats.continuation_rate),
        "gap_fill_rate": round1(stats.gap_fill_rate),
        "fade_avg": round3(stats.fade_avg),
        "follow_avg": round3(stats.follow_avg),
        "recommendation": stats.recommendation.value,
    }


def summary_record(summary: GapSummary) -> Dict[str, Any]:
    return {
        "sessions": summary.sessions,
        "continuation_rate": round1(summary.continuation_rate),
        "gap_fill_rate": round1(summary.gap_fill_rate),
        "gap_ups": summary.gap_ups,
        "gap_downs": summary.gap_downs,
        "mean_gap": round2(summary.mean_gap),
        "max_gap_up": round2(summary.max_gap_up),
        "max_gap_down": round2(summary.max_gap_down),
        "fade_avg": round3(summary.fade_avg),
        "follow_avg": round3(summary.follow_avg),
        "best_strategy": summary.best_strategy.value,
        "expected_return": round3(summary.expected_return),
    }


def cumulative_record(series: CumulativeSeries) -> Dict[str, List[Any]]:
    return {
        "cum_dates": [d.strftime(DATE_FORMAT) for d in series.dates],
        "cum_fade": [round3(v) for v in series.fade],
        "cum_follow": [round3(v) for v in series.follow],
    }


def statistics_record(stats: GapStatistics) -> Dict[str, Any]:
    """summary / bins / by_dow / gap_up / gap_down / cum_* for one layer."""
    record = {
        "summary": summary_record(stats.summary),
        "bins": [group_record(b) for b in stats.bins],
        # Mon..Fri order, every day present
        "by_dow": {day: group_record(stats.by_weekday[day]) for day in TRADING_WEEKDAYS},
        "gap_up": group_record(stats.gap_up),
        "gap_down": group_record(stats.gap_down),
    }
    record.update(cumulative_record(stats.cumulative))
    return record


def intraday_record(enabled: bool,
                    stats: Optional[GapStatistics] = None,
                    sessions: int = 0,
                    error: Optional[str] = None) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "enabled": enabled,
        "error": error or "",
        "sessions": sessions,
    }
    if stats is not None:
        record.update(statistics_record(stats))
    return record


def build_payload(ticker: str, years: int, min_gap: float,
                  events: Sequence[GapEvent],
                  daily: GapStatistics,
                  intraday: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Full success payload."""
    payload = {
        "success": True,
        "ticker": ticker,
        "years": years,
        "min_gap": min_gap,
        "data": [event_record(e) for e in events],
    }
    payload.update(statistics_record(daily))
    if intraday is not None:
        payload["intraday"] = intraday
    return payload


def error_payload(message: str, ticker: str = "", years: int = 0,
                  min_gap: float = 0.0) -> Dict[str, Any]:
    """Non-success payload (bad parameters, upstream failure, not enough data)."""
    return {
        "success": False,
        "error": message,
        "ticker": ticker,
        "years": years,
        "min_gap": min_gap,
        "data": [],
    }
