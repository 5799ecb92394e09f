"""
Mock implementations for testing without live API calls.

This package provides:
- Market data generators (daily bars with overnight gaps)
- Fake bar sources (daily fetcher, opening-window fetcher, bar client)
  with error injection

Usage:
    from tests.mocks import FakeDailyFetcher, FakeIntradayFetcher, generate_mock_bars

    analyzer = GapAnalyzer(FakeDailyFetcher(bars), FakeIntradayFetcher(sessions))

    # Simulate an upstream failure
    FakeDailyFetcher(error=DataFetchError("polygon: 503", status_code=503))
"""

# Market data mocks
from .mock_market_data import (
    generate_mock_bars,
    generate_mock_daily_bars,
    FakeDailyFetcher,
    FakeIntradayFetcher,
    FakeBarClient,
)


__all__ = [
    'generate_mock_bars',
    'generate_mock_daily_bars',
    'FakeDailyFetcher',
    'FakeIntradayFetcher',
    'FakeBarClient',
]
