"""
Unit Tests: Bar Clients and Fetchers
====================================

Tests for:
- PolygonClient request shape, response parsing and error mapping
- AlpacaClient BarSet flattening
- DailyBarsFetcher / IntradayBarsFetcher over a fake client
- Provider selection

No network access: HTTP sessions and SDK clients are mocks.
"""

from datetime import date, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config import AppConfig
from data.fetchers import DailyBarsFetcher, IntradayBarsFetcher, create_bar_client
from data.fetchers.alpaca_client import AlpacaClient, bars_to_frame, timeframe_for
from data.fetchers.polygon_client import PolygonClient, format_bound, results_to_frame
from utils.errors import ConfigurationError, DataFetchError, GapAnalyzerError
from utils.timezone import TZ_EASTERN, TZ_UTC
from tests.mocks import FakeBarClient, generate_mock_bars


def polygon_response(status_code=200, payload=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = reason
    resp.json.return_value = payload if payload is not None else {}
    return resp


# 2024-03-05 00:00 ET and 09:30 ET, in epoch milliseconds
T_DAILY = 1709614800000
T_OPEN = 1709649000000


# =============================================================================
# Polygon Client
# =============================================================================

@pytest.mark.unit
class TestPolygonClient:
    """Tests for PolygonClient.get_bars()."""

    def make_client(self, response, **kwargs):
        session = MagicMock()
        session.get.return_value = response
        return PolygonClient("test-key", session=session, max_retries=0, **kwargs), session

    def test_daily_request(self):
        client, session = self.make_client(polygon_response(payload={"results": []}))
        client.get_bars("spy", date(2021, 3, 5), date(2024, 3, 5))

        url = session.get.call_args[0][0]
        params = session.get.call_args[1]["params"]
        assert url.endswith("/v2/aggs/ticker/SPY/range/1/day/2021-03-05/2024-03-05")
        assert params["adjusted"] == "false"
        assert params["sort"] == "asc"
        assert params["limit"] == 50000
        assert params["apiKey"] == "test-key"

    def test_fifteen_minute_request(self):
        client, session = self.make_client(polygon_response(payload={"results": []}))
        start = TZ_EASTERN.localize(datetime(2024, 3, 5, 9, 30))
        client.get_bars("SPY", start, start, timespan="15minute")

        url = session.get.call_args[0][0]
        assert f"/range/15/minute/{T_OPEN}/{T_OPEN}" in url

    def test_adjusted_flag(self):
        client, session = self.make_client(polygon_response(payload={"results": []}), adjusted=True)
        client.get_bars("SPY", date(2024, 1, 2), date(2024, 3, 5))

        assert session.get.call_args[1]["params"]["adjusted"] == "true"

    def test_parses_results(self):
        payload = {"results": [
            {"t": T_DAILY, "o": 101.0, "h": 102.0, "l": 100.5, "c": 99.0, "v": 1000},
        ]}
        client, _ = self.make_client(polygon_response(payload=payload))
        df = client.get_bars("SPY", date(2024, 3, 5), date(2024, 3, 5))

        assert list(df.columns) == ["open", "high", "low", "close", "volume"]
        assert df.index[0] == pd.Timestamp("2024-03-05 05:00:00")
        assert df.iloc[0]["close"] == 99.0

    def test_missing_results_is_empty(self):
        client, _ = self.make_client(polygon_response(payload={"resultsCount": 0}))
        assert client.get_bars("SPY", date(2024, 3, 5), date(2024, 3, 5)).empty

    def test_http_error(self):
        client, _ = self.make_client(polygon_response(429, reason="Too Many Requests"))

        with pytest.raises(DataFetchError) as exc_info:
            client.get_bars("SPY", date(2024, 3, 5), date(2024, 3, 5))

        assert exc_info.value.message == "polygon: 429 Too Many Requests"
        assert exc_info.value.status_code == 429

    def test_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        client = PolygonClient("test-key", session=session, max_retries=0)

        with pytest.raises(DataFetchError) as exc_info:
            client.get_bars("SPY", date(2024, 3, 5), date(2024, 3, 5))
        assert isinstance(exc_info.value.cause, requests.ConnectionError)

    def test_retries_transient_status(self, monkeypatch):
        monkeypatch.setattr("utils.timeout.time.sleep", lambda seconds: None)
        session = MagicMock()
        session.get.side_effect = [
            polygon_response(503, reason="Service Unavailable"),
            polygon_response(payload={"results": []}),
        ]
        client = PolygonClient("test-key", session=session, max_retries=2)

        assert client.get_bars("SPY", date(2024, 3, 5), date(2024, 3, 5)).empty
        assert session.get.call_count == 2

    def test_does_not_retry_client_error(self, monkeypatch):
        monkeypatch.setattr("utils.timeout.time.sleep", lambda seconds: None)
        session = MagicMock()
        session.get.return_value = polygon_response(403, reason="Forbidden")
        client = PolygonClient("test-key", session=session, max_retries=3)

        with pytest.raises(DataFetchError):
            client.get_bars("SPY", date(2024, 3, 5), date(2024, 3, 5))
        assert session.get.call_count == 1

    def test_requires_key(self):
        with pytest.raises(ValueError):
            PolygonClient("")


@pytest.mark.unit
class TestPolygonHelpers:

    def test_format_bound(self):
        assert format_bound(date(2024, 3, 5)) == "2024-03-05"
        assert format_bound(TZ_UTC.localize(datetime(2024, 3, 5, 14, 30))) == str(T_OPEN)

    def test_naive_datetime_rejected(self):
        with pytest.raises(ValueError):
            format_bound(datetime(2024, 3, 5, 9, 30))

    def test_malformed_results(self):
        with pytest.raises(DataFetchError):
            results_to_frame([{"o": 1.0}])


# =============================================================================
# Alpaca Client
# =============================================================================

def alpaca_barset(symbol="SPY"):
    index = pd.MultiIndex.from_tuples(
        [(symbol, pd.Timestamp("2024-03-05 05:00", tz="UTC")),
         (symbol, pd.Timestamp("2024-03-04 05:00", tz="UTC"))],
        names=["symbol", "timestamp"],
    )
    df = pd.DataFrame({
        "open": [101.0, 100.0], "high": [102.0, 100.0], "low": [100.5, 100.0],
        "close": [99.0, 100.0], "volume": [1000.0, 900.0],
        "trade_count": [10.0, 9.0], "vwap": [100.4, 100.0],
    }, index=index)
    return SimpleNamespace(df=df)


@pytest.mark.unit
class TestAlpacaClient:

    def test_bars_to_frame(self):
        df = bars_to_frame(alpaca_barset(), "SPY")

        assert list(df.columns) == ["open", "high", "low", "close", "volume"]
        # Sorted ascending, naive UTC
        assert df.index[0] == pd.Timestamp("2024-03-04 05:00:00")
        assert df.index.tz is None

    def test_get_bars(self):
        sdk = MagicMock()
        sdk.get_stock_bars.return_value = alpaca_barset()
        client = AlpacaClient("key", "secret", client=sdk, max_retries=0)

        df = client.get_bars("spy", date(2024, 3, 4), date(2024, 3, 5))

        assert len(df) == 2
        request = sdk.get_stock_bars.call_args[0][0]
        assert request.symbol_or_symbols == "SPY"

    def test_transport_error(self):
        sdk = MagicMock()
        sdk.get_stock_bars.side_effect = requests.ConnectionError("reset")
        client = AlpacaClient("key", "secret", client=sdk, max_retries=0)

        with pytest.raises(DataFetchError) as exc_info:
            client.get_bars("SPY", date(2024, 3, 4), date(2024, 3, 5))
        assert exc_info.value.source == "alpaca"

    def test_unknown_timespan(self):
        with pytest.raises(ValueError):
            timeframe_for("week")


# =============================================================================
# Fetchers
# =============================================================================

@pytest.mark.unit
class TestDailyBarsFetcher:

    def test_fetch(self):
        frame = generate_mock_bars(n_days=30, seed=1)
        fetcher = DailyBarsFetcher(FakeBarClient({"day": frame}))

        bars = fetcher.fetch("SPY", date(2023, 1, 1), date(2023, 3, 1))

        assert len(bars) == 30
        assert bars[0].timestamp < bars[-1].timestamp
        assert fetcher.provider == "fake"

    def test_empty(self):
        fetcher = DailyBarsFetcher(FakeBarClient())
        assert fetcher.fetch("SPY", date(2023, 1, 1), date(2023, 3, 1)) == []

    def test_error_propagates_with_context(self):
        fetcher = DailyBarsFetcher(FakeBarClient(fail_on_call=1))

        with pytest.raises(DataFetchError) as exc_info:
            fetcher.fetch("SPY", date(2023, 1, 1), date(2023, 3, 1))
        assert exc_info.value.operation == "fetching daily bars"
        assert exc_info.value.symbol == "SPY"


def minute_frame(days):
    """One-minute bars from 09:25 to 09:50 ET on each day, naive UTC index."""
    stamps = []
    for day in days:
        start = TZ_EASTERN.localize(datetime(day.year, day.month, day.day, 9, 25))
        stamps.extend(pd.date_range(start, periods=26, freq="min"))
    index = pd.DatetimeIndex(stamps).tz_convert("UTC").tz_localize(None)
    n = len(index)
    return pd.DataFrame({
        "open": [100.0] * n, "high": [100.5] * n, "low": [99.5] * n,
        "close": [100.2] * n, "volume": [1000.0] * n,
    }, index=index)


@pytest.mark.unit
class TestIntradayBarsFetcher:

    DAYS = [date(2024, 3, 5), date(2024, 3, 6)]

    def test_fetch_day_window(self):
        client = FakeBarClient({"minute": minute_frame(self.DAYS)})
        fetcher = IntradayBarsFetcher(client, rate_limit_seconds=0)

        bars = fetcher.fetch_day("SPY", self.DAYS[0])

        # 09:30 .. 09:44 inclusive
        assert len(bars) == 15

    def test_fetch_sessions(self):
        client = FakeBarClient({"minute": minute_frame(self.DAYS)})
        fetcher = IntradayBarsFetcher(client, rate_limit_seconds=0, max_workers=2)

        sessions = fetcher.fetch_sessions("SPY", self.DAYS + [self.DAYS[0], date(2024, 3, 7)])

        # Duplicates fetched once; a date without bars is absent
        assert len(client.calls) == 3
        assert sorted(sessions) == self.DAYS
        assert all(len(bars) == 15 for bars in sessions.values())

    def test_empty_dates(self):
        fetcher = IntradayBarsFetcher(FakeBarClient(), rate_limit_seconds=0)
        assert fetcher.fetch_sessions("SPY", []) == {}

    def test_error_raised(self):
        client = FakeBarClient({"minute": minute_frame(self.DAYS)}, fail_on_call=2)
        fetcher = IntradayBarsFetcher(client, rate_limit_seconds=0, max_workers=1)

        with pytest.raises(GapAnalyzerError):
            fetcher.fetch_sessions("SPY", self.DAYS)


# =============================================================================
# Provider Selection
# =============================================================================

@pytest.mark.unit
class TestCreateBarClient:

    def test_polygon(self, app_config):
        client = create_bar_client(app_config)

        assert isinstance(client, PolygonClient)
        assert client.api_key == "test-polygon-key"

    def test_alpaca(self):
        config = AppConfig.from_env(environ={
            "BAR_PROVIDER": "alpaca",
            "ALPACA_API_KEY": "key",
            "ALPACA_SECRET_KEY": "secret",
        })
        assert isinstance(create_bar_client(config), AlpacaClient)

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            create_bar_client(AppConfig(provider="yahoo"))
