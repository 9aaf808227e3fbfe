from typing import Optional

import pandas as pd

from .models import DisplaySeries, Scale, points_frame
from .transform import axis_label

try:
    import mplfinance as mpf
except Exception:  # pragma: no cover - optional dependency
    mpf = None


def plot_display(display: DisplaySeries, style: str = 'line', title: Optional[str] = None,
                 savefile: Optional[str] = None):
    """Plot a projected series with matplotlib (line) or mplfinance (candle).

    style: 'line' draws the close with a low/high band, ticks from `display.ticks` and
    y labels converted back from the display scale; 'candle' draws candlesticks of the
    filtered source points and only supports the linear scale.
    """
    if style not in ('line', 'candle'):
        raise ValueError('supported styles: line, candle')
    if not display.values:
        raise ValueError('No data available for plotting')

    title = title or f'{display.symbol} ({display.window.value})'

    if style == 'line':
        import matplotlib.pyplot as plt
        from matplotlib.ticker import FuncFormatter

        df = display.to_frame()
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.fill_between(df.index, df['Low'], df['High'], alpha=0.2)
        ax.plot(df.index, df['Close'])
        ax.set_title(title)
        if display.ticks:
            ax.set_xticks(pd.DatetimeIndex(display.ticks))
        ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _pos: axis_label(v, display.scale)))
        fig.autofmt_xdate()
        if savefile:
            fig.savefig(savefile)
        return fig

    if mpf is None:
        raise RuntimeError('mplfinance is required for candlestick plotting. Install with pip install mplfinance')
    if display.scale is not Scale.LINEAR:
        raise ValueError('candle style supports the linear scale only')

    df = points_frame(display.points)
    extra = {'savefig': savefile} if savefile else {}
    fig, _axes = mpf.plot(df, type='candle', style='yahoo', volume=True, title=title, returnfig=True, **extra)
    return fig
