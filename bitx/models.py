from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Connection defaults
DEFAULT_HOSTNAME = 'api.luno.com'
DEFAULT_PORT = 443
DEFAULT_PAIR = 'XBTZAR'
DEFAULT_TIMEOUT = 30.0

# Width of the rolling window behind BitX.api_call_rate
RATE_WINDOW_SECONDS = 60


class ClientConfig(BaseModel):
    """
    Connection settings for a BitX client.

    Values not passed to the client come from the defaults set with
    ``configure()`` and then from the field defaults below. Unknown
    options are rejected.
    """
    model_config = ConfigDict(extra='forbid')

    hostname: str = Field(default=DEFAULT_HOSTNAME, min_length=1)
    port: int = Field(default=DEFAULT_PORT, gt=0, le=65535)
    pair: str = Field(default=DEFAULT_PAIR, min_length=1)
    ca: Optional[str] = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    rate_window: float = Field(default=RATE_WINDOW_SECONDS, gt=0)


class RequestCounterStats(BaseModel):
    """Snapshot of the client-side request counter."""
    total_requests: int = 0
    current_rate: int = 0
    rate_limit_hits: int = 0
    window: float = RATE_WINDOW_SECONDS
    last_request_time: Optional[float] = None
