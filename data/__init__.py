"""
Data Module
===========
Market data access for the gap analyzer.

Supports two bar providers:
- Polygon.io aggregates (daily + 1/15-minute)
- Alpaca historical bars (daily + 1/15-minute)
"""

from data.fetchers import DailyBarsFetcher, IntradayBarsFetcher, create_bar_client

__all__ = [
    'DailyBarsFetcher',
    'IntradayBarsFetcher',
    'create_bar_client',
]
