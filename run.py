"""Helper runner for stockterm.

Sets up the local src/ path so you can run without installing the package.

    python run.py api [port]                 serve the JSON proxy with uvicorn
    python run.py plot SYMBOL [WINDOW] [log] fetch, project and save a chart image
"""
import asyncio
import logging
import os
import sys

ROOT = os.path.dirname(__file__)
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from stockterm.config import load_config
from stockterm.dashboard import DashboardSession
from stockterm.fetcher import StockFetcher
from stockterm.models import Scale, Window


def _configure_logging():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler()],
    )


async def _plot(symbol, window, scale):
    from stockterm.plotter import plot_display

    async with StockFetcher(load_config()) as fetcher:
        session = DashboardSession(fetcher, symbol=symbol.upper(), window=window, scale=scale)
        display = await session.refresh()
    if session.state.error:
        print(f'Error: {session.state.error}')
        return 1
    savefile = f'{session.state.symbol}_{window.value}.png'
    plot_display(display, style='line', savefile=savefile)
    print(f'Saved {len(display.points)} points to {savefile}')
    return 0


if __name__ == '__main__':
    _configure_logging()
    if len(sys.argv) > 1 and sys.argv[1] in ('api', 'server'):
        from stockterm import api as stockterm_api
        port = 8001
        if len(sys.argv) > 2 and sys.argv[2].isdigit():
            port = int(sys.argv[2])
        import uvicorn
        print(f'Starting API server on http://0.0.0.0:{port}')
        uvicorn.run(stockterm_api.app, host='0.0.0.0', port=port)
    elif len(sys.argv) > 2 and sys.argv[1] == 'plot':
        window = Window(sys.argv[3].upper()) if len(sys.argv) > 3 else Window.MONTH
        scale = Scale.LOG if len(sys.argv) > 4 and sys.argv[4] == 'log' else Scale.LINEAR
        sys.exit(asyncio.run(_plot(sys.argv[2], window, scale)))
    else:
        print(__doc__)
