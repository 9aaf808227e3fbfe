"""Plain data types shared by the fetcher, transformer and dashboard."""
import datetime as dt
import enum
from dataclasses import dataclass, field
from typing import Optional, Union

import pandas as pd


@dataclass(frozen=True)
class OhlcvPoint:
    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: int
    adjusted_close: Optional[float] = None

    @property
    def timestamp(self) -> dt.datetime:
        return dt.datetime.combine(self.date, dt.time())

    def is_consistent(self) -> bool:
        return self.low <= min(self.open, self.close) and self.high >= max(self.open, self.close)


class TimeRange(enum.Enum):
    """Fetch ranges. Each one maps to exactly one upstream query function."""

    DAY = 'Daily'
    MONTH = 'Monthly'
    YEAR = 'Yearly'
    MAX = 'Max'

    @property
    def api_function(self) -> str:
        return {
            TimeRange.DAY: 'TIME_SERIES_DAILY',
            TimeRange.MONTH: 'TIME_SERIES_WEEKLY',
            TimeRange.YEAR: 'TIME_SERIES_MONTHLY',
            TimeRange.MAX: 'TIME_SERIES_MONTHLY',
        }[self]

    @property
    def series_key(self) -> str:
        return {
            'TIME_SERIES_DAILY': 'Time Series (Daily)',
            'TIME_SERIES_WEEKLY': 'Weekly Time Series',
            'TIME_SERIES_MONTHLY': 'Monthly Time Series',
        }[self.api_function]

    @property
    def output_size(self) -> str:
        return 'full' if self is TimeRange.MAX else 'compact'

    @property
    def max_points(self) -> Optional[int]:
        """Most recent points kept after sorting; None keeps everything."""
        return {
            TimeRange.DAY: 100,
            TimeRange.MONTH: 12,   # 3 months of weekly data
            TimeRange.YEAR: 24,    # 2 years of monthly data
            TimeRange.MAX: None,
        }[self]


@dataclass
class Series:
    symbol: str
    time_range: TimeRange
    points: list[OhlcvPoint] = field(default_factory=list)

    def __len__(self):
        return len(self.points)

    def to_frame(self) -> pd.DataFrame:
        """Return the points as an OHLCV DataFrame indexed by Date."""
        return points_frame(self.points)


def points_frame(points) -> pd.DataFrame:
    df = pd.DataFrame({
        'Open': [p.open for p in points],
        'High': [p.high for p in points],
        'Low': [p.low for p in points],
        'Close': [p.close for p in points],
        'Volume': [p.volume for p in points],
    }, index=pd.DatetimeIndex([p.timestamp for p in points], name='Date'))
    return df


class Window(enum.Enum):
    """Preset lookback windows selectable on the chart."""

    DAY = '1D'
    WEEK = '1W'
    MONTH = '1M'
    QUARTER = '3M'
    YEAR = '1Y'
    MAX = 'MAX'

    @property
    def time_range(self) -> TimeRange:
        if self is Window.QUARTER:
            return TimeRange.MONTH
        if self is Window.YEAR:
            return TimeRange.YEAR
        if self is Window.MAX:
            return TimeRange.MAX
        return TimeRange.DAY


@dataclass(frozen=True)
class CustomWindow:
    """A user-chosen [start, end] date window (both inclusive)."""

    start: dt.date
    end: dt.date

    @property
    def time_range(self) -> TimeRange:
        return TimeRange.MAX

    @property
    def value(self) -> str:
        return f'{self.start.isoformat()}..{self.end.isoformat()}'


WindowSpec = Union[Window, CustomWindow]


class Scale(enum.Enum):
    LINEAR = 'linear'
    LOG = 'log'


@dataclass(frozen=True)
class DisplayPoint:
    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass
class DisplaySeries:
    """A filtered, scaled series ready to draw.

    `points` are the source points that survived the window filter, `values` the
    same points with the scale applied, `ticks` the x-axis tick instants.
    """

    symbol: str
    window: WindowSpec
    scale: Scale
    points: list[OhlcvPoint] = field(default_factory=list)
    values: list[DisplayPoint] = field(default_factory=list)
    ticks: list[dt.datetime] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """Scaled values as an OHLCV DataFrame indexed by Date."""
        return points_frame([OhlcvPoint(v.date, v.open, v.high, v.low, v.close, v.volume) for v in self.values])


class StatementKind(enum.Enum):
    INCOME_STATEMENT = 'INCOME_STATEMENT'
    BALANCE_SHEET = 'BALANCE_SHEET'
    CASH_FLOW = 'CASH_FLOW'
    OVERVIEW = 'OVERVIEW'


@dataclass(frozen=True)
class FinancialStatementRow:
    metric: str
    # (year, value) pairs, most recent first; overview rows use year None
    values: list[tuple[Optional[int], str]]


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    latest_trading_day: dt.date


@dataclass
class Portfolio:
    holdings: dict[str, int] = field(default_factory=dict)
    quotes: dict[str, Quote] = field(default_factory=dict)

    def update_holding(self, symbol: str, shares: int):
        self.holdings[symbol] = shares

    def total_value(self) -> float:
        total = 0.0
        for symbol, shares in self.holdings.items():
            quote = self.quotes.get(symbol)
            if quote is not None:
                total += quote.price * shares
        return total


@dataclass
class ViewState:
    symbol: str
    window: WindowSpec
    scale: Scale = Scale.LINEAR
    loading: bool = False
    error: Optional[str] = None
