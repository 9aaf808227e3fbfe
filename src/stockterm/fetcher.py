import datetime as dt
import logging
from typing import Optional, Union

import httpx

from .config import Config
from .errors import ApiError, DecodingError, InvalidURLError, NetworkError
from .models import FinancialStatementRow, OhlcvPoint, Quote, Series, StatementKind, TimeRange
from .statements import parse_statement

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'

# keys the upstream uses for error bodies (bad symbol, throttling, premium endpoints)
_ERROR_KEYS = ('Error Message', 'Note', 'Information')


def _float(values: dict, key: str) -> Optional[float]:
    try:
        return float(values[key])
    except (KeyError, TypeError, ValueError):
        return None


def _int(values: dict, key: str) -> Optional[int]:
    try:
        return int(float(values[key]))
    except (KeyError, TypeError, ValueError, OverflowError):
        return None


def _decode_point(date_str: str, values) -> Optional[OhlcvPoint]:
    """Decode one per-date record, or return None when it is unusable."""
    if not isinstance(values, dict):
        return None
    try:
        date = dt.datetime.strptime(date_str, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None
    # strptime also takes "2024-1-1", which would collide with "2024-01-01"
    if date.isoformat() != date_str:
        return None

    # adjusted endpoints shift volume to "6. volume"
    if '6. volume' in values:
        volume = _int(values, '6. volume')
        adjusted_close = _float(values, '5. adjusted close')
    else:
        volume = _int(values, '5. volume')
        adjusted_close = None

    ohlc = [_float(values, k) for k in ('1. open', '2. high', '3. low', '4. close')]
    if volume is None or any(v is None for v in ohlc):
        return None

    point = OhlcvPoint(date, *ohlc, volume=volume, adjusted_close=adjusted_close)
    if not point.is_consistent():
        return None
    return point


def _raise_for_api_error(payload: dict):
    for key in _ERROR_KEYS:
        if key in payload:
            raise ApiError(f"API Error: {payload[key]}")


def decode_time_series(payload, time_range: TimeRange) -> list[OhlcvPoint]:
    """Normalize a time-series response into ascending, capped OHLCV points.

    A response without the range's series key is unusable and raises. Individual
    records that are malformed (missing or non-numeric fields, bad dates, low/high
    not bracketing open/close) are dropped.
    """
    if not isinstance(payload, dict):
        raise DecodingError('Unexpected response: expected a JSON object')
    records = payload.get(time_range.series_key)
    if not isinstance(records, dict):
        _raise_for_api_error(payload)
        raise DecodingError(f"Invalid time series format: missing '{time_range.series_key}'")

    points = []
    for date_str, values in records.items():
        point = _decode_point(date_str, values)
        if point is None:
            logger.debug('Dropping malformed record for %s', date_str)
            continue
        points.append(point)

    points.sort(key=lambda p: p.date)
    cap = time_range.max_points
    if cap is not None:
        points = points[-cap:]
    return points


def decode_quote(payload) -> Quote:
    if not isinstance(payload, dict):
        raise DecodingError('Unexpected response: expected a JSON object')
    quote = payload.get('Global Quote')
    if not isinstance(quote, dict):
        _raise_for_api_error(payload)
        raise DecodingError("Invalid quote format: missing 'Global Quote'")
    try:
        return Quote(
            symbol=str(quote['01. symbol']),
            price=float(quote['05. price']),
            latest_trading_day=dt.datetime.strptime(quote['07. latest trading day'], DATE_FORMAT).date(),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DecodingError(f'Invalid quote format: {exc}') from exc


class StockFetcher:
    """Async client for the market-data API.

    The configuration is injected; the API key is only read when a request is made,
    so a fetcher can be built even when the key is missing. Every call hits the
    network, nothing is cached.
    """

    def __init__(self, config: Config, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client or httpx.AsyncClient()

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _query(self, function: str, symbol: str, **extra) -> dict:
        api_key = self.config.require_api_key()
        if not symbol or not symbol.strip():
            raise InvalidURLError('Invalid URL: symbol must be provided')

        params = {'function': function, 'symbol': symbol.strip(), 'apikey': api_key}
        params.update(extra)
        logger.debug('Requesting %s for %s', function, symbol)

        try:
            response = await self._client.get(self.config.base_url, params=params, timeout=self.config.timeout)
            response.raise_for_status()
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(f'Invalid URL configuration: {exc}') from exc
        except httpx.HTTPError as exc:
            logger.warning('%s request for %s failed: %s', function, symbol, exc)
            raise NetworkError(exc) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodingError(f'Error decoding response: {exc}') from exc
        if not isinstance(payload, dict):
            raise DecodingError('Unexpected response: expected a JSON object')
        return payload

    async def fetch_series(self, symbol: str, time_range: TimeRange) -> Series:
        """Fetch and normalize the series for `symbol` over `time_range`."""
        payload = await self._query(time_range.api_function, symbol, outputsize=time_range.output_size)
        points = decode_time_series(payload, time_range)
        logger.info('Fetched %d %s points for %s', len(points), time_range.value, symbol)
        return Series(symbol=symbol.strip(), time_range=time_range, points=points)

    async def fetch_quote(self, symbol: str) -> Quote:
        payload = await self._query('GLOBAL_QUOTE', symbol)
        return decode_quote(payload)

    async def fetch_statement(self, symbol: str, kind: Union[StatementKind, str]) -> list[FinancialStatementRow]:
        function = kind.value if isinstance(kind, StatementKind) else str(kind).upper()
        payload = await self._query(function, symbol)
        rows = parse_statement(kind, payload)
        if not rows:
            _raise_for_api_error(payload)
        return rows
