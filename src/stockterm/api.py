"""Lightweight FastAPI proxy exposing market data as JSON.

Endpoints:
- /api/health
- /api/series?symbol=AAPL&window=1M&scale=linear (or start/end for a custom window)
- /api/quote?symbol=AAPL
- /api/statement?symbol=AAPL&kind=INCOME_STATEMENT

The API key never leaves the server: it is read from the configuration by the fetcher.
"""
import dataclasses
import datetime as dt
import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .config import load_config
from .errors import ConfigurationError, FetchError, InvalidURLError
from .fetcher import StockFetcher
from .models import CustomWindow, Scale, StatementKind, Window
from .transform import project

logger = logging.getLogger(__name__)

app = FastAPI(title='stockterm proxy')

# CORS configuration: configurable via environment variable STOCKTERM_API_ALLOW_ORIGINS
# Example: STOCKTERM_API_ALLOW_ORIGINS="http://localhost:8000,http://127.0.0.1:8000"
allow_origins_env = os.environ.get('STOCKTERM_API_ALLOW_ORIGINS')
if allow_origins_env:
    allow_origins = [o.strip() for o in allow_origins_env.split(',') if o.strip()]
else:
    # default to local development origins only
    allow_origins = [
        'http://localhost:8000',
        'http://127.0.0.1:8000',
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=['GET', 'OPTIONS'],
    allow_headers=['*'],
)


async def get_fetcher():
    fetcher = StockFetcher(load_config())
    try:
        yield fetcher
    finally:
        await fetcher.aclose()


def _http_error(exc: FetchError) -> HTTPException:
    logger.warning('Upstream request failed: %s', exc)
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, InvalidURLError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def _parse_window(window: str, start: Optional[dt.date], end: Optional[dt.date]):
    if start and end:
        if start > end:
            raise HTTPException(status_code=422, detail='start must not be after end')
        return CustomWindow(start, end)
    try:
        return Window(window.upper())
    except ValueError:
        raise HTTPException(status_code=422, detail=f'Unknown window {window!r}')


def _jsonable(obj):
    data = dataclasses.asdict(obj)
    return {k: v.isoformat() if isinstance(v, dt.date) else v for k, v in data.items()}


@app.get('/api/health')
def health():
    return {'status': 'ok'}


@app.get('/api/series')
async def series(symbol: str = Query(..., description='Ticker symbol, e.g. AAPL'),
                 window: str = Query('1M', description='One of 1D, 1W, 1M, 3M, 1Y, MAX'),
                 scale: str = Query('linear', description='linear or log'),
                 start: Optional[dt.date] = Query(None, description='Custom window start YYYY-MM-DD'),
                 end: Optional[dt.date] = Query(None, description='Custom window end YYYY-MM-DD'),
                 fetcher: StockFetcher = Depends(get_fetcher)):
    """Fetch a series and return its projection for the requested window and scale."""
    selected = _parse_window(window, start, end)
    try:
        scale_mode = Scale(scale.lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f'Unknown scale {scale!r}')

    try:
        data = await fetcher.fetch_series(symbol, selected.time_range)
    except FetchError as exc:
        raise _http_error(exc)

    display = project(data, selected, scale_mode)
    return {
        'symbol': display.symbol,
        'window': selected.value,
        'scale': display.scale.value,
        'points': [_jsonable(p) for p in display.points],
        'values': [_jsonable(v) for v in display.values],
        'ticks': [t.isoformat() for t in display.ticks],
    }


@app.get('/api/quote')
async def quote(symbol: str = Query(..., description='Ticker symbol, e.g. AAPL'),
                fetcher: StockFetcher = Depends(get_fetcher)):
    try:
        result = await fetcher.fetch_quote(symbol)
    except FetchError as exc:
        raise _http_error(exc)
    return _jsonable(result)


@app.get('/api/statement')
async def statement(symbol: str = Query(..., description='Ticker symbol, e.g. AAPL'),
                    kind: str = Query('INCOME_STATEMENT', description='INCOME_STATEMENT, BALANCE_SHEET, CASH_FLOW or OVERVIEW'),
                    fetcher: StockFetcher = Depends(get_fetcher)):
    try:
        statement_kind = StatementKind(kind.upper())
    except ValueError:
        raise HTTPException(status_code=422, detail=f'Unsupported statement kind {kind!r}')

    try:
        rows = await fetcher.fetch_statement(symbol, statement_kind)
    except FetchError as exc:
        raise _http_error(exc)
    return {
        'symbol': symbol,
        'kind': statement_kind.value,
        'rows': [{'metric': r.metric, 'values': [{'year': y, 'value': v} for y, v in r.values]} for r in rows],
    }


if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8001)
