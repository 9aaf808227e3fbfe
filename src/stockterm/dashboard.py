import asyncio
import logging
from typing import Optional

from .errors import FetchError
from .fetcher import StockFetcher
from .models import DisplaySeries, Portfolio, Quote, Scale, Series, ViewState, Window, WindowSpec
from .transform import project

logger = logging.getLogger(__name__)

AVAILABLE_SYMBOLS = ['AAPL', 'GOOGL', 'MSFT', 'AMZN', 'META']


class DashboardSession:
    """In-memory state behind one dashboard screen.

    Only the latest refresh matters: starting a new one cancels the fetch still in
    flight, and a superseded request never writes to the state. A failed fetch keeps
    the previously displayed series and records the message in `state.error`.
    """

    def __init__(self, fetcher: StockFetcher, symbol: str = 'AAPL', window: WindowSpec = Window.MONTH,
                 scale: Scale = Scale.LINEAR):
        self.fetcher = fetcher
        self.state = ViewState(symbol=symbol, window=window, scale=scale)
        self.series: Optional[Series] = None
        self.display: Optional[DisplaySeries] = None
        self.portfolio = Portfolio()
        self._generation = 0
        self._pending: Optional[asyncio.Future] = None

    def _reproject(self):
        if self.series is not None:
            self.display = project(self.series, self.state.window, self.state.scale)

    def _needs_fetch(self) -> bool:
        return (self.series is None
                or self.series.symbol != self.state.symbol
                or self.series.time_range is not self.state.window.time_range)

    def _supersede(self) -> int:
        """Cancel the fetch still in flight and start a new generation."""
        if self._pending is not None and not self._pending.done():
            logger.debug('Superseding in-flight fetch')
            self._pending.cancel()
        self._generation += 1
        return self._generation

    async def refresh(self) -> Optional[DisplaySeries]:
        """Fetch the selected symbol and range, then project it."""
        generation = self._supersede()
        symbol, time_range = self.state.symbol, self.state.window.time_range
        self.state.loading = True
        task = asyncio.ensure_future(self.fetcher.fetch_series(symbol, time_range))
        self._pending = task
        try:
            series = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return self.display
            raise
        except FetchError as exc:
            if generation == self._generation:
                logger.warning('Refresh of %s failed: %s', symbol, exc)
                self.state.error = str(exc)
            return self.display
        finally:
            if generation == self._generation:
                self.state.loading = False

        if generation != self._generation:
            return self.display
        if (symbol, time_range) != (self.state.symbol, self.state.window.time_range):
            return self.display
        self.series = series
        self.state.error = None
        self._reproject()
        return self.display

    async def select_symbol(self, symbol: str) -> Optional[DisplaySeries]:
        self.state.symbol = symbol.strip().upper()
        return await self.refresh()

    async def select_window(self, window: WindowSpec) -> Optional[DisplaySeries]:
        self.state.window = window
        if self._needs_fetch():
            return await self.refresh()
        # the cached series answers this window; a fetch for an earlier selection is stale
        self._supersede()
        self.state.loading = False
        self._reproject()
        return self.display

    def set_scale(self, scale: Scale) -> Optional[DisplaySeries]:
        self.state.scale = scale
        self._reproject()
        return self.display

    def toggle_scale(self) -> Optional[DisplaySeries]:
        return self.set_scale(Scale.LINEAR if self.state.scale is Scale.LOG else Scale.LOG)

    async def refresh_quote(self, symbol: str) -> Optional[Quote]:
        """Fetch a quote into the portfolio; like a series refresh, success clears the error slot."""
        try:
            quote = await self.fetcher.fetch_quote(symbol)
        except FetchError as exc:
            logger.warning('Quote for %s failed: %s', symbol, exc)
            self.state.error = str(exc)
            return None
        self.portfolio.quotes[quote.symbol] = quote
        self.state.error = None
        return quote

    async def update_holding(self, symbol: str, shares: int) -> Optional[Quote]:
        self.portfolio.update_holding(symbol, shares)
        return await self.refresh_quote(symbol)

    async def refresh_all_quotes(self):
        for symbol in AVAILABLE_SYMBOLS:
            await self.refresh_quote(symbol)
