import datetime as dt

import pytest

# fastapi is optional in the environment; skip tests if it's not installed
pytest.importorskip('fastapi')
from fastapi.testclient import TestClient

from stockterm.errors import ConfigurationError, NetworkError
from stockterm.models import FinancialStatementRow, OhlcvPoint, Quote, Series


def make_series(symbol, time_range):
    today = dt.date.today()
    points = [OhlcvPoint(today - dt.timedelta(days=i), 10, 11.5, 9.5, 10.5, 1000) for i in range(60, -1, -1)]
    return Series(symbol, time_range, points)


class FakeFetcher:
    def __init__(self, error=None):
        self.error = error
        self.ranges = []

    async def fetch_series(self, symbol, time_range):
        if self.error:
            raise self.error
        self.ranges.append(time_range)
        return make_series(symbol, time_range)

    async def fetch_quote(self, symbol):
        return Quote(symbol, 182.5, dt.date(2024, 3, 1))

    async def fetch_statement(self, symbol, kind):
        return [FinancialStatementRow('netIncome', [(2023, '500'), (2022, '400')])]


@pytest.fixture
def client_for():
    from stockterm.api import app, get_fetcher

    def build(fetcher):
        app.dependency_overrides[get_fetcher] = lambda: fetcher
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


def test_health(client_for):
    resp = client_for(FakeFetcher()).get('/api/health')
    assert resp.status_code == 200
    assert resp.json() == {'status': 'ok'}


def test_series_endpoint(client_for):
    fetcher = FakeFetcher()
    resp = client_for(fetcher).get('/api/series?symbol=AAPL&window=1w&scale=log',
                                   headers={'Origin': 'http://localhost:8000'})
    assert resp.status_code == 200
    body = resp.json()
    assert body['window'] == '1W'
    assert body['scale'] == 'log'
    assert 1 <= len(body['points']) <= 8
    assert body['points'][-1]['date'] == dt.date.today().isoformat()
    assert body['values'][-1]['close'] < body['points'][-1]['close']
    assert 2 <= len(body['ticks']) <= 10
    assert fetcher.ranges[0].value == 'Daily'
    # verify CORS headers exist (allow-origin should be present)
    assert 'access-control-allow-origin' in resp.headers


def test_series_custom_window(client_for):
    start = dt.date.today() - dt.timedelta(days=9)
    end = dt.date.today() - dt.timedelta(days=5)
    resp = client_for(FakeFetcher()).get(f'/api/series?symbol=AAPL&start={start}&end={end}')
    assert resp.status_code == 200
    assert len(resp.json()['points']) == 5


def test_series_rejects_unknown_window(client_for):
    resp = client_for(FakeFetcher()).get('/api/series?symbol=AAPL&window=2Y')
    assert resp.status_code == 422


def test_missing_api_key_is_503(client_for):
    resp = client_for(FakeFetcher(ConfigurationError('API key not found'))).get('/api/series?symbol=AAPL')
    assert resp.status_code == 503


def test_network_error_is_502(client_for):
    resp = client_for(FakeFetcher(NetworkError(RuntimeError('down')))).get('/api/series?symbol=AAPL')
    assert resp.status_code == 502
    assert 'down' in resp.json()['detail']


def test_quote_and_statement(client_for):
    client = client_for(FakeFetcher())
    quote = client.get('/api/quote?symbol=IBM').json()
    assert quote == {'symbol': 'IBM', 'price': 182.5, 'latest_trading_day': '2024-03-01'}

    resp = client.get('/api/statement?symbol=IBM&kind=income_statement')
    assert resp.status_code == 200
    assert resp.json()['rows'] == [{'metric': 'netIncome', 'values': [{'year': 2023, 'value': '500'},
                                                                     {'year': 2022, 'value': '400'}]}]
    assert client.get('/api/statement?symbol=IBM&kind=EARNINGS').status_code == 422
