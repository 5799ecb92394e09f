"""
Unified Error Handling Utilities
================================
Provides the exception hierarchy, an error context manager and
retry classification for bar-provider failures.

Usage:
    from utils.errors import (
        GapAnalyzerError, DataFetchError, ValidationError,
        error_context, is_retryable
    )

    # Custom exceptions
    raise DataFetchError("polygon: 429 Too Many Requests", source="polygon", symbol="SPY")

    # Context manager for error context
    with error_context("fetching daily bars", symbol="SPY"):
        fetch_daily()

Design Principles:
- Clear exception hierarchy for different error types
- Structured error context (symbol, operation, etc.)
- Consistent logging format
- No silent failures (everything is re-raised)
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTION HIERARCHY
# =============================================================================

class GapAnalyzerError(Exception):
    """
    Base exception for all gap analyzer errors.

    Supports structured context for logging and debugging.

    Example:
        raise GapAnalyzerError(
            "Operation failed",
            operation="fetch_daily",
            symbol="SPY",
            details={"response_code": 500}
        )
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        symbol: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.operation = operation
        self.symbol = symbol
        self.details = details or {}
        self.cause = cause

        # Build full message
        parts = [message]
        if operation:
            parts.append(f"operation={operation}")
        if symbol:
            parts.append(f"symbol={symbol}")
        if details:
            parts.append(f"details={details}")

        super().__init__(" | ".join(parts))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "operation": self.operation,
            "symbol": self.symbol,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None
        }


class DataFetchError(GapAnalyzerError):
    """Raised when the bar provider cannot deliver data."""

    def __init__(
        self,
        message: str = "Data fetch failed",
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.source = source
        self.status_code = status_code

        kwargs.setdefault('details', {})
        if source:
            kwargs['details']['source'] = source
        if status_code:
            kwargs['details']['status_code'] = status_code

        super().__init__(message, **kwargs)


class ConfigurationError(GapAnalyzerError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        if config_key:
            kwargs.setdefault('details', {})['config_key'] = config_key
        super().__init__(message, **kwargs)


class ValidationError(GapAnalyzerError):
    """Raised when request parameters fail validation."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Any = None,
        **kwargs
    ):
        self.field = field
        self.value = value

        kwargs.setdefault('details', {})
        if field:
            kwargs['details']['field'] = field
        if value is not None:
            kwargs['details']['value'] = str(value)[:100]

        super().__init__(message, **kwargs)


# =============================================================================
# ERROR CONTEXT MANAGER
# =============================================================================

@contextmanager
def error_context(
    operation: str,
    *,
    symbol: Optional[str] = None,
    log_level: int = logging.ERROR,
    **extra_context
):
    """
    Context manager that adds context to any exception.

    Gap analyzer errors get the operation/symbol filled in and are re-raised
    as-is; anything else is wrapped in a GapAnalyzerError.

    Example:
        with error_context("fetching intraday bars", symbol="SPY", dates=12):
            fetch()

        # On error, logs:
        # ERROR: Failed while fetching intraday bars | symbol=SPY | {'dates': 12} | ...
    """
    try:
        yield
    except GapAnalyzerError as e:
        if not e.operation:
            e.operation = operation
        if not e.symbol and symbol:
            e.symbol = symbol
        e.details.update(extra_context)

        context = f"Failed while {operation}"
        if symbol:
            context += f" | symbol={symbol}"
        if extra_context:
            context += f" | {extra_context}"
        context += f" | {e}"

        logger.log(log_level, context)
        raise

    except Exception as e:
        context = f"Failed while {operation}"
        if symbol:
            context += f" | symbol={symbol}"
        if extra_context:
            context += f" | {extra_context}"
        context += f" | {type(e).__name__}: {e}"

        logger.log(log_level, context, exc_info=True)

        raise GapAnalyzerError(
            f"Failed while {operation}: {e}",
            operation=operation,
            symbol=symbol,
            details=extra_context,
            cause=e
        ) from e


# =============================================================================
# ERROR CLASSIFICATION
# =============================================================================

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


def is_retryable(error: Exception) -> bool:
    """
    Determine if an error is retryable.

    Returns True for transient errors (network, timeout, rate limit, 5xx).
    Returns False for permanent errors (validation, config, 4xx, etc.).
    """
    if isinstance(error, DataFetchError):
        if error.status_code is not None:
            return error.status_code in RETRYABLE_STATUS_CODES
        # Transport failure wrapped by a fetcher
        if error.cause is not None:
            return is_retryable(error.cause)
        return False

    if isinstance(error, (ConnectionError, TimeoutError,
                          requests.ConnectionError, requests.Timeout)):
        return True

    if isinstance(error, GapAnalyzerError):
        return False

    error_str = str(error).lower()
    transient_patterns = [
        "timeout",
        "timed out",
        "connection refused",
        "connection reset",
        "temporarily unavailable",
        "service unavailable",
        "rate limit",
        "too many requests",
    ]

    return any(pattern in error_str for pattern in transient_patterns)


# =============================================================================
# ERROR FORMATTING
# =============================================================================

def format_exception_chain(error: Exception) -> str:
    """
    Format exception with its full chain for logging.

    Returns a multi-line string showing the exception chain.
    """
    lines = []
    current = error

    while current:
        lines.append(f"{type(current).__name__}: {current}")
        current = getattr(current, '__cause__', None) or getattr(current, 'cause', None)

    return "\n  Caused by: ".join(lines)
