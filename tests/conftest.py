import json
from unittest.mock import patch
from urllib.parse import parse_qs

import httpx
import pytest

from bitx import BitX


@pytest.fixture
def mock_time():
    """Mock time.time() for deterministic tests."""
    current_time = 1000.0

    with patch('time.time') as mock_time_mod:
        def time_side_effect():
            nonlocal current_time
            return current_time

        mock_time_mod.side_effect = time_side_effect

        # Helper to advance time
        def advance(seconds):
            nonlocal current_time
            current_time += seconds
            return current_time

        mock_time_mod.advance = advance
        yield mock_time_mod


@pytest.fixture(autouse=True)
def reset_defaults(monkeypatch):
    """Keep configure() calls from leaking between tests."""
    monkeypatch.setattr('bitx.client._defaults', {})


class FakeExchange:
    """Stands in for the exchange behind an httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {}
        self.error = None

    def respond(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        content = self.body if isinstance(self.body, str) else json.dumps(self.body)
        return httpx.Response(self.status_code, content=content.encode('utf-8'))

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_form(self):
        return parse_qs(self.last_request.content.decode('utf-8'))


@pytest.fixture
def exchange():
    """Fixture for a fake exchange that records requests."""
    return FakeExchange()


@pytest.fixture
def bitx(exchange):
    """Authenticated client wired to the fake exchange."""
    return BitX('12345', '0000000000000000', transport=httpx.MockTransport(exchange.handler))


@pytest.fixture
def anonymous_bitx(exchange):
    """Client without credentials wired to the fake exchange."""
    return BitX(transport=httpx.MockTransport(exchange.handler))
