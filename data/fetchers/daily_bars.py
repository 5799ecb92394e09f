"""
Daily Bars Fetcher
==================
Fetches the daily OHLCV history a gap analysis runs on.

Provider errors propagate as DataFetchError: a request without daily bars
cannot be analysed, so nothing here degrades to an empty result.
"""

import logging
from datetime import date
from pathlib import Path
from typing import List

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from core.types import Bar, bars_from_frame
from utils.errors import error_context

logger = logging.getLogger(__name__)


class DailyBarsFetcher:
    """Fetches daily bars through a bar client (PolygonClient or AlpacaClient)."""

    def __init__(self, client):
        self.client = client

    @property
    def provider(self) -> str:
        return getattr(self.client, 'provider', type(self.client).__name__)

    def fetch(self, ticker: str, start: date, end: date) -> List[Bar]:
        """
        Fetch daily bars for a symbol.

        Args:
            ticker: Stock symbol
            start: First calendar date (inclusive)
            end: Last calendar date (inclusive)

        Returns:
            Bars in ascending order, no duplicates

        Raises:
            DataFetchError: provider failure
        """
        with error_context("fetching daily bars", symbol=ticker, provider=self.provider):
            df = self.client.get_bars(ticker, start, end, timespan="day")

        bars = bars_from_frame(df)
        if bars:
            logger.info(f"{ticker}: {len(bars)} daily bars {start} -> {end} ({self.provider})")
        else:
            logger.warning(f"{ticker}: No daily bars returned for {start} -> {end}")
        return bars
