"""
Data Fetchers
=============
Bar clients (Polygon, Alpaca) and the daily / opening-window fetchers.
"""

from data.fetchers.daily_bars import DailyBarsFetcher
from data.fetchers.intraday_bars import IntradayBarsFetcher
from data.fetchers.providers import create_bar_client

__all__ = [
    'DailyBarsFetcher',
    'IntradayBarsFetcher',
    'create_bar_client',
]
