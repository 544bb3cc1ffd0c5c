"""
Errors raised by the BitX client.

Everything the library raises derives from ``BitXError`` so callers can
catch a single type.
"""

from typing import Optional


class BitXError(Exception):
    """Base class for all client errors."""


class APIError(BitXError):
    """
    The exchange answered with an error.

    Attributes:
        status_code: HTTP status of the response
        error_code: Exchange error code, when the payload carried one
        error: Exchange error message, when the payload carried one
    """

    def __init__(self, message: str, status_code: int = 200,
                 error_code: Optional[str] = None, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.error = error


class TooManyRequestsError(APIError):
    """The exchange rejected the request because of its rate limit."""


class ResponseError(BitXError):
    """A successful response whose body is not valid JSON."""

    def __init__(self, message: str, status_code: int, body: str):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransportError(BitXError):
    """The HTTP request could not be completed."""
