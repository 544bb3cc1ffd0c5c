import ssl
from unittest.mock import patch

import httpx
import pytest

from bitx import BitX, configure
from bitx.client import _ssl_context
from bitx.models import RequestCounterStats


class TestConstruction:
    def test_default_options(self):
        """Test that a client without options talks to the public exchange."""
        client = BitX()
        assert client.hostname == 'api.luno.com'
        assert client.port == 443
        assert client.pair == 'XBTZAR'
        assert client.ca is None
        assert client.auth is None

    def test_accepts_options(self):
        client = BitX(hostname='localhost', port=8000, pair='XBTUSD')
        assert client.hostname == 'localhost'
        assert client.port == 8000
        assert client.pair == 'XBTUSD'
        assert client.auth is None

    def test_accepts_auth_and_options(self):
        key_id = 'cnz2yjswbv3jd'
        key_secret = '0hydMZDb9HRR3Qq-iqALwZtXLkbLR4fWxtDZvkB9h4I'
        client = BitX(key_id, key_secret, hostname='localhost', port=8000, pair='XBTUSD')
        assert client.hostname == 'localhost'
        assert client.port == 8000
        assert client.pair == 'XBTUSD'
        assert client.auth == f'{key_id}:{key_secret}'

    def test_base_url(self):
        client = BitX(hostname='localhost', port=8000)
        assert str(client._http.base_url).rstrip('/') == 'https://localhost:8000'

    def test_invalid_options(self):
        with pytest.raises(ValueError):
            BitX(port=-1)

    def test_fresh_counter(self):
        client = BitX()
        assert client.api_call_rate == 0


class TestConfigure:
    def test_global_configuration(self):
        """Test that global configuration applies to new clients."""
        configure(hostname='localhost', port=8000, pair='XBTMYR')

        client = BitX()

        assert client.hostname == 'localhost'
        assert client.port == 8000
        assert client.pair == 'XBTMYR'

    def test_client_override(self):
        """Test that client settings override global settings."""
        configure(hostname='localhost', pair='XBTMYR')

        client = BitX(pair='ETHXBT')

        assert client.pair == 'ETHXBT'
        # Should still use global setting for hostname
        assert client.hostname == 'localhost'

    def test_configure_is_cumulative(self):
        configure(pair='XBTMYR')
        configure(port=8443)

        client = BitX()

        assert client.pair == 'XBTMYR'
        assert client.port == 8443

    def test_configure_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            configure(timeout=0)

        # The rejected value must not stick
        assert BitX().config.timeout > 0

    def test_configure_rejects_unknown_options(self):
        """Test that a misspelled option raises instead of being dropped."""
        with pytest.raises(ValueError):
            configure(hostnme='localhost')

        assert BitX().hostname == 'api.luno.com'

    def test_rate_window(self, mock_time):
        configure(rate_window=5)
        client = BitX()
        client._counter.record()

        mock_time.advance(6)

        assert client.api_call_rate == 0


PEM = '-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n'


class TestCustomCA:
    def test_no_ca_uses_default_verification(self):
        assert _ssl_context(None) is True
        assert _ssl_context('') is True

    def test_inline_pem_is_loaded_as_cadata(self):
        with patch('bitx.client.ssl.create_default_context') as mock_context:
            context = _ssl_context(PEM)

        mock_context.assert_called_once_with(cadata=PEM)
        assert context is mock_context.return_value

    def test_path_is_loaded_as_cafile(self):
        with patch('bitx.client.ssl.create_default_context') as mock_context:
            context = _ssl_context('/etc/luno/root.pem')

        mock_context.assert_called_once_with(cafile='/etc/luno/root.pem')
        assert context is mock_context.return_value

    def test_missing_ca_file(self, tmp_path):
        """Test that an unreadable CA fails construction with ValueError."""
        missing = str(tmp_path / 'missing.pem')

        with pytest.raises(ValueError) as exc_info:
            BitX(ca=missing)

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_invalid_pem(self):
        with patch('bitx.client.ssl.create_default_context', side_effect=ssl.SSLError('bad PEM')):
            with pytest.raises(ValueError) as exc_info:
                _ssl_context(PEM)

        assert isinstance(exc_info.value.__cause__, ssl.SSLError)


@pytest.mark.asyncio
class TestLifecycle:
    async def test_context_manager_closes_transport(self, exchange):
        async with BitX(transport=httpx.MockTransport(exchange.handler)) as client:
            await client.get_ticker()

        assert client._http.is_closed
        assert len(exchange.requests) == 1

    async def test_aclose(self, bitx):
        await bitx.aclose()
        assert bitx._http.is_closed

    async def test_get_stats(self, bitx, exchange):
        exchange.respond({'pair': 'XBTZAR'})
        await bitx.get_ticker()
        await bitx.get_all_tickers()

        stats = bitx.get_stats()

        assert isinstance(stats, RequestCounterStats)
        assert stats.total_requests == 2
        assert stats.current_rate == 2
        assert stats.rate_limit_hits == 0
