"""
Alpaca Market Data Client
=========================
Same contract as PolygonClient.get_bars, backed by alpaca-py's
StockHistoricalDataClient. Bars are requested unadjusted so the gap is the
literal prior close to open move.
"""

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Optional, Union

import pandas as pd
import requests
from alpaca.common.exceptions import APIError
from alpaca.data.enums import Adjustment
from alpaca.data.historical import StockHistoricalDataClient
from alpaca.data.requests import StockBarsRequest
from alpaca.data.timeframe import TimeFrame, TimeFrameUnit

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from utils.errors import DataFetchError, is_retryable
from utils.timeout import RETRIES, retry_with_backoff
from utils.timezone import TZ_EASTERN, normalize_dataframe

logger = logging.getLogger(__name__)

BAR_COLUMNS = ['open', 'high', 'low', 'close', 'volume']

DateLike = Union[date, datetime]


def timeframe_for(timespan: str, multiplier: int = 1) -> TimeFrame:
    if timespan == "day":
        return TimeFrame.Day
    if timespan == "minute":
        return TimeFrame.Minute if multiplier == 1 else TimeFrame(multiplier, TimeFrameUnit.Minute)
    if timespan == "15minute":
        return TimeFrame(15, TimeFrameUnit.Minute)
    raise ValueError(f"Unsupported timespan: {timespan}")


def _as_datetime(value: DateLike, end_of_day: bool = False) -> datetime:
    """Dates cover the whole Eastern calendar day; datetimes pass through."""
    if isinstance(value, datetime):
        return value
    clock = time(23, 59, 59) if end_of_day else time(0, 0)
    return TZ_EASTERN.localize(datetime.combine(value, clock))


def bars_to_frame(bars, symbol: str) -> pd.DataFrame:
    """Flatten a BarSet into a normalized OHLCV DataFrame for one symbol."""
    df = bars.df
    if df is None or df.empty:
        return pd.DataFrame(columns=BAR_COLUMNS)

    df = df.reset_index()

    # Handle multi-index if present
    if 'symbol' in df.columns:
        df = df[df['symbol'] == symbol].drop(columns=['symbol'])

    df = df.set_index('timestamp')
    df.index = pd.to_datetime(df.index, utc=True)
    return normalize_dataframe(df[BAR_COLUMNS].astype(float))


class AlpacaClient:
    """Historical stock bars from Alpaca."""

    provider = "alpaca"

    def __init__(self, api_key: str, secret_key: str,
                 client: Optional[StockHistoricalDataClient] = None,
                 max_retries: int = RETRIES.MAX_RETRIES):
        self.client = client or StockHistoricalDataClient(api_key, secret_key)

        self._fetch = retry_with_backoff(
            max_retries=max_retries,
            exceptions=(DataFetchError,),
            should_retry=is_retryable,
        )(self._fetch_once)

    def _fetch_once(self, request: StockBarsRequest):
        try:
            return self.client.get_stock_bars(request)
        except APIError as e:
            status = getattr(e, 'status_code', None)
            raise DataFetchError(f"alpaca: {e}", source="alpaca",
                                 status_code=status, cause=e) from e
        except (requests.ConnectionError, requests.Timeout) as e:
            raise DataFetchError(f"alpaca: {e}", source="alpaca", cause=e) from e

    def get_bars(self, ticker: str, start: DateLike, end: DateLike,
                 timespan: str = "day", multiplier: int = 1) -> pd.DataFrame:
        """
        Fetch bars for [start, end] at the given resolution.

        Raises:
            DataFetchError: API error or transport failure after retries
        """
        symbol = ticker.upper()
        request = StockBarsRequest(
            symbol_or_symbols=symbol,
            timeframe=timeframe_for(timespan, multiplier),
            start=_as_datetime(start),
            end=_as_datetime(end, end_of_day=True),
            adjustment=Adjustment.RAW,
        )

        bars = self._fetch(request)
        df = bars_to_frame(bars, symbol)
        logger.debug(f"{symbol}: {len(df)} {timespan} bars from alpaca")
        return df
