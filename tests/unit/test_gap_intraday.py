"""
Unit Tests: Opening-Window Overlay
==================================

Tests for the 09:30-09:45 ET pass:
- Window selection (half-open, exchange-local)
- Open reference and daily-open fallback
- Continuation / fill by 09:45
- Sessions with no bars are dropped from the layer only
"""

from datetime import date

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.types import Recommendation
from research.gap_events import extract_gap_events
from research.gap_intraday import apply_intraday_overlay, measure_opening_move, window_bars
from tests.utils import minute_bar, opening_window_bars


TUESDAY = date(2024, 3, 5)


@pytest.fixture
def week_events(gap_week_bars):
    return extract_gap_events(gap_week_bars, 0.3)


# =============================================================================
# Window Selection
# =============================================================================

@pytest.mark.unit
class TestWindowBars:
    """Tests for window_bars()."""

    def test_half_open_window(self):
        bars = [
            minute_bar(TUESDAY, 9, 29, 100, 100, 100, 100),
            minute_bar(TUESDAY, 9, 30, 101, 101, 101, 101),
            minute_bar(TUESDAY, 9, 44, 102, 102, 102, 102),
            minute_bar(TUESDAY, 9, 45, 103, 103, 103, 103),
        ]
        selected = window_bars(bars, TUESDAY)

        assert [b.open for b in selected] == [101, 102]

    def test_unsorted_input_is_ordered(self):
        bars = opening_window_bars(TUESDAY, [101.0, 101.2, 101.4])
        selected = window_bars(list(reversed(bars)), TUESDAY)

        assert [b.close for b in selected] == [101.0, 101.2, 101.4]

    def test_fifteen_minute_bar(self):
        bars = [minute_bar(TUESDAY, 9, 30, 101.0, 101.8, 100.9, 101.5)]
        assert len(window_bars(bars, TUESDAY)) == 1

    def test_other_days_ignored(self):
        bars = opening_window_bars(date(2024, 3, 6), [101.0, 101.2])
        assert window_bars(bars, TUESDAY) == []


# =============================================================================
# Opening Move
# =============================================================================

@pytest.mark.unit
class TestMeasureOpeningMove:
    """Tests for measure_opening_move() on the Tuesday gap up (prev close 100)."""

    def test_continuation(self, week_events, opening_sessions):
        move = measure_opening_move(week_events[0], opening_sessions[TUESDAY])

        assert move.open_price == 101.0
        assert move.close_price == pytest.approx(101.7)
        assert move.return_pct == pytest.approx(0.7 / 101.0 * 100)
        assert move.continuation is True
        assert move.gap_filled is False
        assert move.bars == 15
        assert move.used_daily_open is False

    def test_missing_open_bar_uses_daily_open(self, week_events):
        # First bar at 09:31; daily open is 101.0
        bars = opening_window_bars(TUESDAY, [100.5, 100.6, 100.7], start_minute=31)
        move = measure_opening_move(week_events[0], bars)

        assert move.used_daily_open is True
        assert move.open_price == 101.0
        assert move.close_price == pytest.approx(100.7)
        assert move.continuation is False

    def test_fill_by_window_low(self, week_events):
        bars = [
            minute_bar(TUESDAY, 9, 30, 101.0, 101.2, 100.6, 100.7),
            minute_bar(TUESDAY, 9, 35, 100.7, 100.8, 99.95, 100.4),
        ]
        move = measure_opening_move(week_events[0], bars)

        assert move.gap_filled is True

    def test_empty_window(self, week_events):
        assert measure_opening_move(week_events[0], []) is None


# =============================================================================
# Overlay
# =============================================================================

@pytest.mark.unit
class TestApplyOverlay:
    """Tests for apply_intraday_overlay() against opening_sessions."""

    def test_missing_date_skipped(self, week_events, opening_sessions):
        overlay = apply_intraday_overlay(week_events, opening_sessions, 0.3)

        assert overlay.sessions == 3
        assert overlay.missing_dates == [date(2024, 3, 11)]
        # Every daily event is kept, only the covered ones are annotated
        assert len(overlay.events) == len(week_events)
        assert [e.intraday is not None for e in overlay.events] == [True, True, True, False]

    def test_statistics(self, week_events, opening_sessions):
        stats = apply_intraday_overlay(week_events, opening_sessions, 0.3).statistics
        summary = stats.summary

        assert summary.sessions == 3
        assert summary.continuation_rate == pytest.approx(100 / 3)
        assert summary.gap_fill_rate == pytest.approx(100 / 3)
        assert summary.gap_ups == 2
        assert summary.gap_downs == 1
        assert len(stats.cumulative) == 3
        assert stats.by_weekday["Mon"].count == 0
        assert stats.bins[1].recommendation == Recommendation.FADE

    def test_outcomes(self, week_events, opening_sessions):
        overlay = apply_intraday_overlay(week_events, opening_sessions, 0.3)
        moves = [e.intraday for e in overlay.events[:3]]

        assert [m.continuation for m in moves] == [True, False, False]
        assert [m.gap_filled for m in moves] == [False, True, False]

    def test_daily_fields_untouched(self, week_events, opening_sessions):
        overlay = apply_intraday_overlay(week_events, opening_sessions, 0.3)

        for original, annotated in zip(week_events, overlay.events):
            assert annotated.gap_pct == original.gap_pct
            assert annotated.continuation == original.continuation
            assert original.intraday is None

    def test_no_sessions(self, week_events):
        overlay = apply_intraday_overlay(week_events, {}, 0.3)

        assert overlay.sessions == 0
        assert len(overlay.missing_dates) == 4
        assert overlay.statistics.summary.best_strategy == Recommendation.NEUTRAL
