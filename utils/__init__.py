# Utils package

# Timezone utilities
from utils.timezone import (
    normalize_dataframe,
    to_market_time,
    session_date,
    weekday_label,
    session_open,
    opening_window,
    now_eastern,
    lookback_range,
    TZ_UTC,
    TZ_EASTERN,
)

# Timeout utilities
from utils.timeout import (
    TimeoutConfig,
    TIMEOUTS,
    RetryConfig,
    RETRIES,
    retry_with_backoff,
)

# Error handling utilities
from utils.errors import (
    GapAnalyzerError,
    DataFetchError,
    ConfigurationError,
    ValidationError,
    error_context,
    is_retryable,
    format_exception_chain,
)

__all__ = [
    # Timezone
    'normalize_dataframe',
    'to_market_time',
    'session_date',
    'weekday_label',
    'session_open',
    'opening_window',
    'now_eastern',
    'lookback_range',
    'TZ_UTC',
    'TZ_EASTERN',
    # Timeout
    'TimeoutConfig',
    'TIMEOUTS',
    'RetryConfig',
    'RETRIES',
    'retry_with_backoff',
    # Errors
    'GapAnalyzerError',
    'DataFetchError',
    'ConfigurationError',
    'ValidationError',
    'error_context',
    'is_retryable',
    'format_exception_chain',
]
