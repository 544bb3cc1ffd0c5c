import json
import logging
import ssl
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from . import __version__
from .core import RequestCounter
from .exceptions import APIError, ResponseError, TooManyRequestsError, TransportError
from .models import ClientConfig, RequestCounterStats
from .utils import encode_params, is_too_many_requests

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'Accept': 'application/json',
    'Accept-Charset': 'utf-8',
    'User-Agent': f'python-bitx v{__version__}',
}

# Process-wide defaults, set with configure()
_defaults: Dict[str, Any] = {}


def configure(**options) -> None:
    """
    Set default connection options for clients created afterwards.

    Accepts the fields of ``ClientConfig`` (hostname, port, pair, ca, timeout,
    rate_window). Options passed to a client directly take precedence.

    Example:
        ```python
        configure(hostname='api.luno.com', pair='XBTMYR')

        bitx = BitX(key_id, key_secret)                 # trades XBTMYR
        other = BitX(key_id, key_secret, pair='ETHXBT')  # overrides the pair
        ```
    """
    merged = {**_defaults, **options}
    # Validate before storing
    ClientConfig(**merged)
    _defaults.update(options)


def _ssl_context(ca: Optional[str]) -> Union[bool, ssl.SSLContext]:
    """
    Build the TLS verification setting for a custom CA, if any.

    ``ca`` is either inline PEM text or a path to a PEM bundle.

    Raises:
        ValueError: The CA cannot be read or is not valid PEM
    """
    if not ca:
        return True
    try:
        if '-----BEGIN' in ca:
            return ssl.create_default_context(cadata=ca)
        return ssl.create_default_context(cafile=ca)
    except (OSError, ValueError) as exc:
        raise ValueError(f"Cannot load CA certificates from {ca!r}: {exc}") from exc


class BitX:
    """
    Async client for the Luno (BitX) exchange REST API.

    Every endpoint method is a coroutine that returns the decoded JSON
    response or raises a ``BitXError``.

    Example:
        ```python
        async with BitX(key_id, key_secret) as bitx:
            ticker = await bitx.get_ticker()
            order = await bitx.post_buy_order(0.01, 950000)
            print(bitx.api_call_rate)
        ```
    """

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None, *,
                 hostname: Optional[str] = None,
                 port: Optional[int] = None,
                 pair: Optional[str] = None,
                 ca: Optional[str] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        overrides = {
            'hostname': hostname,
            'port': port,
            'pair': pair,
            'ca': ca,
            'timeout': timeout,
        }
        self.config = ClientConfig(**{**_defaults, **{k: v for k, v in overrides.items() if v is not None}})

        auth = None
        self.auth: Optional[str] = None
        if isinstance(key_id, str):
            key_secret = key_secret or ''
            self.auth = f'{key_id}:{key_secret}'
            auth = httpx.BasicAuth(key_id, key_secret)

        self._counter = RequestCounter(self.config.rate_window)
        self._http = httpx.AsyncClient(
            base_url=f'https://{self.config.hostname}:{self.config.port}',
            auth=auth,
            timeout=self.config.timeout,
            verify=_ssl_context(self.config.ca),
            transport=transport,
        )

    @property
    def hostname(self) -> str:
        return self.config.hostname

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def pair(self) -> str:
        return self.config.pair

    @property
    def ca(self) -> Optional[str]:
        return self.config.ca

    @property
    def api_call_rate(self) -> int:
        """Requests sent in the last minute, minus those rejected as rate limited."""
        return self._counter.count

    def get_stats(self) -> RequestCounterStats:
        """Get request counter statistics"""
        return self._counter.get_stats()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> 'BitX':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, data: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Send a request to the exchange and decode its JSON response.

        GET fields go in the query string, POST fields in a form encoded
        body. DELETE requests carry no fields.

        Args:
            method: HTTP method
            path: Resource path, starting with a slash
            data: Request fields

        Returns:
            The decoded JSON response

        Raises:
            TransportError: The request could not be sent
            TooManyRequestsError: The exchange rejected the request as rate limited
            APIError: The exchange returned an error
            ResponseError: The response body is not valid JSON
        """
        headers = dict(DEFAULT_HEADERS)
        encoded = encode_params(data)
        content = None
        if method == 'GET':
            if encoded:
                path = f'{path}?{encoded}'
        elif method == 'POST':
            headers['Content-Type'] = 'application/x-www-form-urlencoded'
            content = encoded.encode('utf-8')

        timestamp = self._counter.record()
        logger.debug(f"{method} {path}")

        try:
            response = await self._http.request(method, path, headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise TransportError(f"luno API request failed: {exc}") from exc

        body = response.text
        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.status_code != 200:
            raise self._error_from_response(response.status_code, body, timestamp)

        try:
            result = json.loads(body)
        except ValueError as exc:
            raise ResponseError(f"Invalid JSON in luno API response: {exc}",
                                status_code=response.status_code, body=body) from exc

        if isinstance(result, dict) and result.get('error'):
            error = str(result['error'])
            raise APIError(error, status_code=response.status_code,
                           error_code=result.get('error_code'), error=error)

        return result

    def _error_from_response(self, status_code: int, body: str, timestamp: float) -> APIError:
        """Build the error for a non-200 response, releasing rate limited requests."""
        try:
            payload = json.loads(body)
            error_code = payload['error_code']
            if not isinstance(error_code, str):
                raise TypeError('error_code is not a string')
        except (ValueError, KeyError, TypeError):
            return APIError(f"luno API error {status_code}: {body}", status_code=status_code)

        error = payload.get('error')
        message = f"luno API error {error_code}: {error}"
        if is_too_many_requests(error_code):
            self._counter.release(timestamp)
            logger.warning(f"Rate limited by exchange ({error_code}), {self._counter.count} requests in window")
            return TooManyRequestsError(message, status_code=status_code, error_code=error_code, error=error)
        return APIError(message, status_code=status_code, error_code=error_code, error=error)

    # Market data

    async def get_ticker(self, **options) -> Any:
        return await self._request('GET', '/api/1/ticker', {'pair': self.pair, **options})

    async def get_all_tickers(self) -> Any:
        return await self._request('GET', '/api/1/tickers')

    async def get_order_book(self, **options) -> Any:
        return await self._request('GET', '/api/1/orderbook', {'pair': self.pair, **options})

    async def get_trades(self, **options) -> Any:
        return await self._request('GET', '/api/1/trades', {'pair': self.pair, **options})

    # Orders and trades

    async def get_order_list(self, **options) -> Any:
        """List orders, optionally filtered with ``state='PENDING'`` or ``'COMPLETE'``."""
        return await self._request('GET', '/api/1/listorders', {'pair': self.pair, **options})

    async def get_order_list_v2(self, **options) -> Any:
        return await self._request('GET', '/api/exchange/2/listorders', {'pair': self.pair, **options})

    async def get_trade_list(self, **options) -> Any:
        return await self._request('GET', '/api/1/listtrades', {'pair': self.pair, **options})

    async def get_limits(self) -> Any:
        logger.warning('BitX.get_limits is deprecated. Please use BitX.get_balance instead.')
        return await self._request('GET', '/api/1/BTCZAR/getlimits')

    async def get_fee_info(self, **options) -> Any:
        return await self._request('GET', '/api/1/fee_info', {'pair': self.pair, **options})

    async def stop_order(self, order_id: str) -> Any:
        return await self._request('POST', '/api/1/stoporder', {'order_id': order_id})

    async def post_buy_order(self, volume, price, **options) -> Any:
        """Place a limit bid for ``volume`` of the base currency at ``price``."""
        body = {'type': 'BID', 'volume': volume, 'price': price, 'pair': self.pair}
        return await self._request('POST', '/api/1/postorder', {**body, **options})

    async def post_sell_order(self, volume, price, **options) -> Any:
        """Place a limit ask for ``volume`` of the base currency at ``price``."""
        body = {'type': 'ASK', 'volume': volume, 'price': price, 'pair': self.pair}
        return await self._request('POST', '/api/1/postorder', {**body, **options})

    async def post_market_buy_order(self, volume, **options) -> Any:
        """Buy at market, spending ``volume`` of the counter currency."""
        body = {'type': 'BUY', 'counter_volume': volume, 'pair': self.pair}
        return await self._request('POST', '/api/1/marketorder', {**body, **options})

    async def post_market_sell_order(self, volume, **options) -> Any:
        """Sell ``volume`` of the base currency at market."""
        body = {'type': 'SELL', 'base_volume': volume, 'pair': self.pair}
        return await self._request('POST', '/api/1/marketorder', {**body, **options})

    async def get_order(self, order_id: str) -> Any:
        return await self._request('GET', f'/api/1/orders/{order_id}')

    async def get_order_v2(self, order_id: str) -> Any:
        return await self._request('GET', f'/api/exchange/2/orders/{order_id}')

    async def get_order_v3(self, **options) -> Any:
        """Look up an order by ``id`` or ``client_order_id``."""
        return await self._request('GET', '/api/exchange/3/order', options)

    # Accounts

    async def get_balance(self, asset: Optional[str] = None) -> Any:
        return await self._request('GET', '/api/1/balance', {'asset': asset} if asset else None)

    async def get_funding_address(self, asset: str, **options) -> Any:
        return await self._request('GET', '/api/1/funding_address', {'asset': asset, **options})

    async def create_funding_address(self, asset: str) -> Any:
        return await self._request('POST', '/api/1/funding_address', {'asset': asset})

    async def get_transactions(self, asset: str, **options) -> Any:
        defaults = {'asset': asset, 'offset': 0, 'limit': 10}
        return await self._request('GET', '/api/1/transactions', {**defaults, **options})

    # Withdrawals

    async def get_withdrawals(self) -> Any:
        return await self._request('GET', '/api/1/withdrawals/')

    async def get_withdrawal(self, withdrawal_id: str) -> Any:
        return await self._request('GET', f'/api/1/withdrawals/{withdrawal_id}')

    async def request_withdrawal(self, withdrawal_type: str, amount) -> Any:
        body = {'type': withdrawal_type, 'amount': amount}
        return await self._request('POST', '/api/1/withdrawals/', body)

    async def cancel_withdrawal(self, withdrawal_id: str) -> Any:
        return await self._request('DELETE', f'/api/1/withdrawals/{withdrawal_id}')
