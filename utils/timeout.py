"""
Unified Timeout and Retry Utilities
===================================
Consistent timeout values and retry logic for calls to bar providers.

Usage:
    from utils.timeout import TIMEOUTS, retry_with_backoff

    @retry_with_backoff(max_retries=3, exceptions=(ConnectionError,))
    def flaky_function():
        return requests.get(url, timeout=TIMEOUTS.DATA_FETCH)

Only transport-level failures belong in `exceptions`. Analysis code never
retries; a provider error that survives the retries is surfaced to the
caller as-is.
"""

import logging
import time
import random
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional, Tuple, Type, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# TIMEOUT CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class TimeoutConfig:
    """Standard timeout values by operation type (in seconds)."""

    # Connection establishment
    CONNECT: float = 10.0

    # Data fetching (historical bars)
    DATA_FETCH: float = 30.0


# Default instance for easy import
TIMEOUTS = TimeoutConfig()


# =============================================================================
# RETRY CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class RetryConfig:
    """Standard retry configuration."""

    MAX_RETRIES: int = 3
    BASE_DELAY: float = 1.0  # Base delay in seconds (doubles each retry)
    MAX_DELAY: float = 30.0  # Maximum delay between retries
    JITTER: float = 0.5      # Jitter factor (0.5 means 50-100% of calculated delay)


RETRIES = RetryConfig()


# =============================================================================
# RETRY WITH BACKOFF
# =============================================================================

def retry_with_backoff(
    max_retries: int = RETRIES.MAX_RETRIES,
    base_delay: float = RETRIES.BASE_DELAY,
    max_delay: float = RETRIES.MAX_DELAY,
    exceptions: Union[Type[Exception], Tuple[Type[Exception], ...]] = (Exception,),
    jitter: float = RETRIES.JITTER,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    should_retry: Optional[Callable[[Exception], bool]] = None
):
    """
    Decorator that retries a function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (total calls = max_retries + 1)
        base_delay: Base delay in seconds (doubles each retry)
        max_delay: Maximum delay between retries
        exceptions: Exception types to catch and retry
        jitter: Jitter factor (0.5 means delay is multiplied by 0.5-1.0)
        on_retry: Optional callback called on each retry with (exception, attempt)
        should_retry: Optional predicate; a caught exception it rejects is
            re-raised immediately (e.g. utils.errors.is_retryable)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if should_retry is not None and not should_retry(e):
                        raise
                    last_exception = e

                    if attempt < max_retries:
                        # Exponential backoff with jitter
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        delay = delay * (jitter + random.random() * (1 - jitter))

                        logger.warning(
                            f"Attempt {attempt + 1}/{max_retries + 1} failed for {func.__name__}: {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )

                        if on_retry:
                            on_retry(e, attempt)

                        time.sleep(delay)
                    else:
                        logger.error(
                            f"All {max_retries + 1} attempts failed for {func.__name__}: {e}"
                        )

            raise last_exception

        return wrapper
    return decorator
