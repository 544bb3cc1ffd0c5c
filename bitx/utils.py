"""
Utility functions for the BitX client.

This module provides helper functions that can be used independently
of the client class.
"""

from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

from .exceptions import TooManyRequestsError

# Substrings of exchange error codes that mean the request was rate limited
TOO_MANY_REQUESTS_CODES = ('429', 'ErrTooManyRequests')


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        # repr keeps the shortest round-tripping digits, Decimal drops the exponent
        return format(Decimal(repr(value)), 'f')
    if isinstance(value, Decimal):
        return format(value, 'f')
    return str(value)


def encode_params(data: Optional[Mapping[str, Any]]) -> str:
    """
    URL-encode request fields for a query string or a form body.

    Keys keep their insertion order and ``None`` values are left out.
    Lists and tuples become repeated keys. Spaces are encoded as ``%20``.

    Args:
        data: Request fields, or None

    Returns:
        The encoded string, empty when there is nothing to send
    """
    if not data:
        return ''

    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _format_value(item)) for item in value)
        else:
            pairs.append((key, _format_value(value)))
    return urlencode(pairs, quote_via=quote)


def is_too_many_requests(error_code: Optional[str]) -> bool:
    """Check whether an exchange error code reports a rate limit rejection."""
    if not isinstance(error_code, str):
        return False
    return any(code in error_code for code in TOO_MANY_REQUESTS_CODES)


def is_rate_limit_error(error: Exception) -> bool:
    """
    Determine if an exception is related to rate limiting.

    This function checks various properties of the exception to identify
    if it's likely a rate limit error. It looks for:

    1. A TooManyRequestsError raised by the client
    2. A rate limit error code on the error
    3. HTTP 429 status code directly on the error or on error.response
    4. Rate limit related phrases in the error message

    Args:
        error: The exception to check

    Returns:
        True if the error appears to be a rate limit error, False otherwise

    Examples:
        ```python
        try:
            ticker = await bitx.get_ticker()
        except BitXError as e:
            if is_rate_limit_error(e):
                await asyncio.sleep(30)
            else:
                raise
        ```
    """
    if isinstance(error, TooManyRequestsError):
        return True

    if is_too_many_requests(getattr(error, 'error_code', None)):
        return True

    # Check for status codes
    if getattr(error, 'status_code', None) == 429:
        return True

    # Check for response attribute with status_code
    if hasattr(error, 'response') and getattr(error.response, 'status_code', None) == 429:
        return True

    # Check error message
    error_str = str(error).lower()
    rate_limit_phrases = ['rate limit', 'ratelimit', 'too many requests', '429', 'retry after',
                          'throttl', 'quota exceeded']
    return any(phrase in error_str for phrase in rate_limit_phrases)
