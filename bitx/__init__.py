"""
Async client for the Luno (BitX) exchange REST API.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bitx")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .core import RequestCounter
from .models import ClientConfig, RequestCounterStats
from .client import BitX, configure
from .exceptions import APIError, BitXError, ResponseError, TooManyRequestsError, TransportError
from .utils import encode_params, is_rate_limit_error

__all__ = [
    'BitX',
    'configure',
    'ClientConfig',
    'RequestCounter',
    'RequestCounterStats',
    'BitXError',
    'APIError',
    'TooManyRequestsError',
    'ResponseError',
    'TransportError',
    'encode_params',
    'is_rate_limit_error',
]
