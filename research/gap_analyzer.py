"""
Gap Analyzer
============
Runs one gap analysis end to end:

    daily bars -> gap events -> daily statistics
               -> qualifying dates -> opening-window bars -> 0-15m statistics

The daily pass is mandatory: a daily fetch failure is raised to the caller.
The opening-window pass is best effort: a fetch failure leaves the daily
result intact and is reported in `intraday_error`.

Usage:
    analyzer = GapAnalyzer(DailyBarsFetcher(client), IntradayBarsFetcher(client))
    result = analyzer.analyze(AnalysisParams(ticker="SPY", years=3, min_gap=0.3))
    payload = result.to_dict()
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import AnalysisParams, AppConfig, INTRADAY_DATA_CONFIG
from core.types import GapEvent, GapStatistics, event_dates
from research.gap_aggregation import aggregate_gaps
from research.gap_events import extract_gap_events
from research.gap_intraday import IntradayOverlay, apply_intraday_overlay
from research.gap_report import build_payload, error_payload, intraday_record
from utils.errors import GapAnalyzerError
from utils.timezone import lookback_range

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "not enough data"


@dataclass
class GapAnalysisResult:
    """Outcome of one analysis request (full precision; see to_dict)."""
    ticker: str
    years: int
    min_gap: float
    success: bool = True
    error: str = ""
    bars: int = 0
    events: List[GapEvent] = field(default_factory=list)
    daily: Optional[GapStatistics] = None
    intraday_enabled: bool = False
    intraday: Optional[IntradayOverlay] = None
    intraday_error: str = ""

    @classmethod
    def insufficient(cls, params: AnalysisParams, bars: int) -> "GapAnalysisResult":
        return cls(ticker=params.ticker, years=params.years, min_gap=params.min_gap,
                   success=False, error=NOT_ENOUGH_DATA, bars=bars)

    @property
    def report_events(self) -> List[GapEvent]:
        """Daily events, with opening-window moves attached when the overlay ran."""
        if self.intraday is not None:
            return self.intraday.events
        return self.events

    def to_dict(self) -> Dict[str, Any]:
        """JSON payload; values are rounded here and nowhere else."""
        if not self.success:
            return error_payload(self.error, self.ticker, self.years, self.min_gap)

        overlay = self.intraday
        intraday = intraday_record(
            enabled=self.intraday_enabled,
            stats=overlay.statistics if overlay is not None else None,
            sessions=overlay.sessions if overlay is not None else 0,
            error=self.intraday_error,
        )
        return build_payload(self.ticker, self.years, self.min_gap,
                             self.report_events, self.daily, intraday)


class GapAnalyzer:
    """
    Gap statistics service.

    Args:
        daily_fetcher: Object with fetch(ticker, start, end) -> List[Bar]
        intraday_fetcher: Object with fetch_sessions(ticker, dates) -> Dict[date, List[Bar]],
            or None to disable the opening-window pass
        window_minutes: Length of the opening window
    """

    def __init__(self, daily_fetcher, intraday_fetcher=None,
                 window_minutes: int = INTRADAY_DATA_CONFIG["window_minutes"]):
        self.daily_fetcher = daily_fetcher
        self.intraday_fetcher = intraday_fetcher
        self.window_minutes = window_minutes

    @classmethod
    def from_config(cls, config: AppConfig) -> "GapAnalyzer":
        """Wire the fetchers for the configured bar provider."""
        from data.fetchers import DailyBarsFetcher, IntradayBarsFetcher, create_bar_client

        client = create_bar_client(config)
        intraday_fetcher = None
        if config.intraday_enabled:
            intraday_fetcher = IntradayBarsFetcher(
                client,
                timespan=config.intraday_timespan,
                rate_limit_seconds=config.rate_limit_seconds,
                max_workers=config.max_parallel_downloads,
            )
        return cls(DailyBarsFetcher(client), intraday_fetcher)

    def analyze(self, params: AnalysisParams, today: Optional[date] = None) -> GapAnalysisResult:
        """
        Run the analysis for validated parameters.

        Raises:
            DataFetchError: daily bars could not be fetched
            ConfigurationError: min_gap <= 0
        """
        start, end = lookback_range(params.years, today)
        bars = self.daily_fetcher.fetch(params.ticker, start, end)

        if len(bars) < 2:
            logger.warning(f"{params.ticker}: {len(bars)} daily bars, {NOT_ENOUGH_DATA}")
            return GapAnalysisResult.insufficient(params, len(bars))

        events = extract_gap_events(bars, params.min_gap)
        daily = aggregate_gaps(events, params.min_gap)

        result = GapAnalysisResult(
            ticker=params.ticker,
            years=params.years,
            min_gap=params.min_gap,
            bars=len(bars),
            events=events,
            daily=daily,
            intraday_enabled=bool(params.intraday and self.intraday_fetcher is not None),
        )

        logger.info(
            f"{params.ticker}: {daily.summary.sessions} gap sessions in {len(bars)} bars "
            f"(min_gap={params.min_gap}, continuation {daily.summary.continuation_rate:.1f}%)"
        )

        if result.intraday_enabled:
            self._run_intraday(params, result)

        return result

    def _run_intraday(self, params: AnalysisParams, result: GapAnalysisResult):
        dates = event_dates(result.events)
        try:
            sessions = self.intraday_fetcher.fetch_sessions(params.ticker, dates)
        except GapAnalyzerError as e:
            result.intraday_error = f"intraday: {e.message}"
            logger.warning(f"{params.ticker}: Opening-window data unavailable, "
                           f"returning daily results only ({e.message})")
            return

        result.intraday = apply_intraday_overlay(result.events, sessions, params.min_gap,
                                                 self.window_minutes)
