"""
Intraday (Opening Window) Bars Fetcher
======================================
Downloads the 09:30-09:45 ET bars for the sessions that gapped.

One request per session date, windowed to the opening minutes, fanned out
over a small thread pool. Submissions are paced by `rate_limit_seconds` to
stay inside provider rate limits.

Safety features:
- Bounded parallelism (max_workers)
- Rate limiting between submissions
- Retries happen inside the client; the first error that survives them
  cancels the remaining downloads and is raised to the caller
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Iterable, List
import time

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from config import INTRADAY_DATA_CONFIG
from core.types import Bar, bars_from_frame
from utils.errors import error_context
from utils.timezone import opening_window

logger = logging.getLogger(__name__)


class IntradayBarsFetcher:
    """Fetches opening-window bars for a set of session dates."""

    def __init__(self, client,
                 timespan: str = INTRADAY_DATA_CONFIG["timespan"],
                 window_minutes: int = INTRADAY_DATA_CONFIG["window_minutes"],
                 rate_limit_seconds: float = INTRADAY_DATA_CONFIG["rate_limit_seconds"],
                 max_workers: int = INTRADAY_DATA_CONFIG["max_parallel_downloads"]):
        self.client = client
        self.timespan = timespan
        self.window_minutes = window_minutes
        self.rate_limit = rate_limit_seconds
        self.max_workers = max(1, max_workers)

    @property
    def provider(self) -> str:
        return getattr(self.client, 'provider', type(self.client).__name__)

    def fetch_day(self, ticker: str, day: date) -> List[Bar]:
        """Bars starting inside the opening window of one session."""
        start, end = opening_window(day, self.window_minutes)
        # Provider bounds are inclusive; stop just short of the window end
        df = self.client.get_bars(ticker, start, end - timedelta(seconds=1),
                                  timespan=self.timespan)
        return bars_from_frame(df)

    def fetch_sessions(self, ticker: str, dates: Iterable[date]) -> Dict[date, List[Bar]]:
        """
        Fetch opening-window bars for each session date.

        Args:
            ticker: Stock symbol
            dates: Session dates (duplicates are fetched once)

        Returns:
            Dict mapping session date to its bars. Dates without bars are absent.

        Raises:
            DataFetchError: provider failure on any date
        """
        unique_dates = list(dict.fromkeys(dates))
        if not unique_dates:
            return {}

        results: Dict[date, List[Bar]] = {}
        start_time = time.time()

        with error_context("fetching intraday bars", symbol=ticker,
                           provider=self.provider, dates=len(unique_dates)):
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {}
                for i, day in enumerate(unique_dates):
                    futures[executor.submit(self.fetch_day, ticker, day)] = day
                    # Rate limiting
                    if self.rate_limit > 0 and i < len(unique_dates) - 1:
                        time.sleep(self.rate_limit)

                try:
                    for future in as_completed(futures):
                        bars = future.result()
                        if bars:
                            results[futures[future]] = bars
                except Exception:
                    for pending in futures:
                        pending.cancel()
                    raise

        elapsed = time.time() - start_time
        logger.info(f"{ticker}: Opening-window bars for {len(results)}/{len(unique_dates)} "
                    f"sessions in {elapsed:.1f}s ({self.provider}, {self.timespan})")
        return results
