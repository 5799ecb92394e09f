"""
Polygon.io Aggregates Client
============================
Thin wrapper over the aggregates endpoint:

    GET /v2/aggs/ticker/{ticker}/range/{multiplier}/{timespan}/{from}/{to}
        ?adjusted=false&sort=asc&limit=50000&apiKey=...

Bars come back as {"results": [{"t": ms, "o", "h", "l", "c", "v"}, ...]} and
are returned as a DataFrame with a naive-UTC DatetimeIndex (interval start).

Safety features:
- Request timeouts (connect / read)
- Retry with exponential backoff on 429, 5xx and transport errors only
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd
import requests

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
from config import POLYGON_BASE_URL, REQUEST_TIMEOUT
from utils.errors import DataFetchError, is_retryable
from utils.timeout import RETRIES, TIMEOUTS, retry_with_backoff
from utils.timezone import normalize_dataframe

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

MAX_RESULTS = 50000
BAR_COLUMNS = ['open', 'high', 'low', 'close', 'volume']

# Polygon's short field names
_FIELD_MAP = {'o': 'open', 'h': 'high', 'l': 'low', 'c': 'close', 'v': 'volume'}

DateLike = Union[date, datetime]


def format_bound(value: DateLike) -> str:
    """Aware datetimes become epoch milliseconds, plain dates YYYY-MM-DD."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError(f"Intraday bounds must be timezone-aware: {value}")
        return str(int(value.timestamp() * 1000))
    return value.strftime('%Y-%m-%d')


def results_to_frame(results) -> pd.DataFrame:
    """Convert the `results` array into a normalized OHLCV DataFrame."""
    if not results:
        return pd.DataFrame(columns=BAR_COLUMNS)

    df = pd.DataFrame(results)
    missing = [k for k in ('t', 'o', 'h', 'l', 'c') if k not in df.columns]
    if missing:
        raise DataFetchError(f"polygon: malformed results, missing {missing}", source="polygon")

    df = df.rename(columns=_FIELD_MAP)
    if 'volume' not in df.columns:
        df['volume'] = 0.0
    df.index = pd.to_datetime(df['t'], unit='ms', utc=True)
    df.index.name = 'timestamp'
    return normalize_dataframe(df[BAR_COLUMNS].astype(float))


class PolygonClient:
    """Aggregates (bars) client for Polygon.io."""

    provider = "polygon"

    def __init__(self, api_key: str, base_url: str = POLYGON_BASE_URL,
                 adjusted: bool = False, timeout: float = REQUEST_TIMEOUT,
                 max_retries: int = RETRIES.MAX_RETRIES,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("Polygon API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.adjusted = adjusted
        self.timeout = timeout
        self.session = session or requests.Session()

        self._get_json = retry_with_backoff(
            max_retries=max_retries,
            exceptions=(DataFetchError,),
            should_retry=is_retryable,
        )(self._get_json_once)

    def _get_json_once(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.session.get(url, params=params,
                                    timeout=(TIMEOUTS.CONNECT, self.timeout))
        except (requests.ConnectionError, requests.Timeout) as e:
            raise DataFetchError(f"polygon: {e}", source="polygon", cause=e) from e

        if resp.status_code != 200:
            raise DataFetchError(f"polygon: {resp.status_code} {resp.reason or ''}".rstrip(),
                                 source="polygon",
                                 status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise DataFetchError("polygon: invalid JSON", source="polygon", cause=e) from e

    def get_bars(self, ticker: str, start: DateLike, end: DateLike,
                 timespan: str = "day", multiplier: int = 1) -> pd.DataFrame:
        """
        Fetch bars for [start, end] at the given resolution.

        Args:
            ticker: Symbol, e.g. "SPY"
            start, end: Dates (daily) or aware datetimes (intraday windows)
            timespan: "day", "minute" or "15minute"
            multiplier: Bars per timespan unit

        Returns:
            DataFrame [open, high, low, close, volume], naive-UTC index, ascending

        Raises:
            DataFetchError: non-200 response or transport failure after retries
        """
        if timespan == "15minute":
            timespan, multiplier = "minute", 15

        url = (f"{self.base_url}/v2/aggs/ticker/{ticker.upper()}/range/"
               f"{multiplier}/{timespan}/{format_bound(start)}/{format_bound(end)}")
        params = {
            'adjusted': 'true' if self.adjusted else 'false',
            'sort': 'asc',
            'limit': MAX_RESULTS,
            'apiKey': self.api_key,
        }

        payload = self._get_json(url, params)
        df = results_to_frame(payload.get('results') or [])
        logger.debug(f"{ticker}: {len(df)} {multiplier}/{timespan} bars from polygon")
        return df
