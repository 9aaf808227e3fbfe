"""Range and scale projection of a fetched series.

Everything here is a pure function of its inputs: no I/O, no shared state. Empty input
gives empty output.

Window semantics:
- 1D keeps points from the start of the current calendar day (inclusive), not a rolling
  24 hours.
- 1W/1M/3M/1Y keep points strictly after `now` minus the window (calendar months for
  1M/3M/1Y).
- custom windows keep [start, end], both inclusive.

Log scale uses a single convention for every field (price, high/low band and volume):
`ln(v + 1)` forward and `e^x - 1` back, so zero volumes map to zero.
"""
import datetime as dt
import math
from typing import Optional, Sequence, Union

import pandas as pd

from .models import CustomWindow, DisplayPoint, DisplaySeries, OhlcvPoint, Scale, Series, Window, WindowSpec

MAX_TICKS = 10

# tick intervals per window, finest first
_HOURLY = ['h', '2h', '3h', '4h', '6h', '12h']
_DAILY = ['D', '2D', '3D']
_WEEKLY = ['W-MON', '2W-MON']
_MONTHLY = ['MS', '2MS', 'QS', '6MS']
_YEARLY = ['YS', '2YS', '5YS', '10YS', '20YS', '50YS']

_TICK_LADDERS = {
    Window.DAY: _HOURLY,
    Window.WEEK: _DAILY,
    Window.MONTH: _DAILY + _WEEKLY,
    Window.QUARTER: _WEEKLY + _MONTHLY[:1],
    Window.YEAR: _MONTHLY,
    Window.MAX: _YEARLY,
}
_CUSTOM_LADDER = _HOURLY + _DAILY + _WEEKLY + _MONTHLY + _YEARLY

_MONTH_OFFSETS = {Window.MONTH: 1, Window.QUARTER: 3, Window.YEAR: 12}


def _as_datetime(value: Union[dt.date, dt.datetime]) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.combine(value, dt.time())


def window_cutoff(window: WindowSpec, now: Optional[dt.datetime] = None) -> Optional[dt.datetime]:
    """Return the lower bound instant of `window`, or None for MAX."""
    now = now or dt.datetime.now()
    if isinstance(window, CustomWindow):
        return _as_datetime(window.start)
    if window is Window.MAX:
        return None
    if window is Window.DAY:
        return dt.datetime.combine(now.date(), dt.time())
    if window is Window.WEEK:
        return now - dt.timedelta(weeks=1)
    return (pd.Timestamp(now) - pd.DateOffset(months=_MONTH_OFFSETS[window])).to_pydatetime()


def filter_window(points: Sequence[OhlcvPoint], window: WindowSpec,
                  now: Optional[dt.datetime] = None) -> list[OhlcvPoint]:
    """Keep the points that fall inside `window`. Applying it twice changes nothing."""
    if isinstance(window, CustomWindow):
        return [p for p in points if window.start <= p.date <= window.end]
    cutoff = window_cutoff(window, now)
    if cutoff is None:
        return list(points)
    if window is Window.DAY:
        return [p for p in points if p.timestamp >= cutoff]
    return [p for p in points if p.timestamp > cutoff]


def scale_value(value: float, scale: Scale) -> float:
    if scale is Scale.LOG:
        # negative inputs are floored at zero
        return math.log1p(max(value, 0.0))
    return value


def invert_value(value: float, scale: Scale) -> float:
    if scale is Scale.LOG:
        return math.expm1(value)
    return value


def axis_label(value: float, scale: Scale) -> str:
    """Currency label for a y-axis position expressed in `scale` units."""
    return f'${invert_value(value, scale):,.2f}'


def _tick_start(start: pd.Timestamp, freq: str) -> pd.Timestamp:
    # non-anchored intervals start on a whole hour or day
    if freq.endswith('h'):
        return start.ceil('h')
    if freq.endswith('D'):
        return start.ceil('D')
    return start


def _pick_ticks(start: dt.datetime, end: dt.datetime, ladder, max_ticks: int) -> list[dt.datetime]:
    ticks = None
    for freq in ladder:
        ticks = pd.date_range(_tick_start(pd.Timestamp(start), freq), end, freq=freq)
        if len(ticks) <= max_ticks:
            break
    else:
        # still too dense at the coarsest interval: widen it by a whole multiple
        stride = math.ceil(len(ticks) / max_ticks)
        ticks = ticks[::stride]
    if len(ticks) < 2:
        ticks = pd.DatetimeIndex([start, end])
    return [ts.to_pydatetime() for ts in ticks]


def generate_ticks(points: Sequence[OhlcvPoint], window: WindowSpec, now: Optional[dt.datetime] = None,
                   max_ticks: int = MAX_TICKS) -> list[dt.datetime]:
    """Return x-axis tick instants covering `points`.

    The interval is chosen from the window's granularity (hourly for 1D, daily or weekly
    for 1W/1M, weekly or monthly for 3M, monthly or quarterly for 1Y, yearly for MAX) and
    widened until no more than `max_ticks` ticks are produced.
    """
    if not points:
        return []
    now = now or dt.datetime.now()
    start, end = points[0].timestamp, points[-1].timestamp

    if start == end:
        # a single point: span the window itself when it has bounds
        if isinstance(window, CustomWindow):
            start, end = _as_datetime(window.start), _as_datetime(window.end)
        elif window is not Window.MAX:
            start, end = window_cutoff(window, now), now
        if start >= end:
            return [points[0].timestamp]

    if isinstance(window, CustomWindow):
        ladder = _CUSTOM_LADDER
    else:
        ladder = _TICK_LADDERS[window]
    return _pick_ticks(start, end, ladder, max_ticks)


def nearest_point(points: Sequence[OhlcvPoint], instant: Union[dt.date, dt.datetime]) -> Optional[OhlcvPoint]:
    """Return the point closest in time to `instant`; the first one wins a tie."""
    if not points:
        return None
    target = _as_datetime(instant)
    return min(points, key=lambda p: abs((p.timestamp - target).total_seconds()))


def _scale_point(point: OhlcvPoint, scale: Scale) -> DisplayPoint:
    return DisplayPoint(
        date=point.date,
        open=scale_value(point.open, scale),
        high=scale_value(point.high, scale),
        low=scale_value(point.low, scale),
        close=scale_value(point.close, scale),
        volume=scale_value(float(point.volume), scale),
    )


def project(series: Series, window: WindowSpec, scale: Scale = Scale.LINEAR,
            now: Optional[dt.datetime] = None) -> DisplaySeries:
    """Filter `series` to `window`, apply `scale` and compute axis ticks."""
    now = now or dt.datetime.now()
    points = filter_window(series.points, window, now)
    return DisplaySeries(
        symbol=series.symbol,
        window=window,
        scale=scale,
        points=points,
        values=[_scale_point(p, scale) for p in points],
        ticks=generate_ticks(points, window, now),
    )
