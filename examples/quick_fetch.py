"""Example script: fetch a ticker, project it to a window and print the statement table.

This script is for local use. It needs an API key in config.json or STOCKTERM_API_KEY.
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from stockterm.config import load_config
from stockterm.fetcher import StockFetcher
from stockterm.models import Scale, StatementKind, Window
from stockterm.transform import project


async def main():
    async with StockFetcher(load_config()) as fetcher:
        series = await fetcher.fetch_series('AAPL', Window.QUARTER.time_range)
        display = project(series, Window.QUARTER, Scale.LOG)
        print('Points in 3M window:', len(display.points))
        print('Ticks:', ', '.join(t.strftime('%Y-%m-%d') for t in display.ticks))

        rows = await fetcher.fetch_statement('AAPL', StatementKind.INCOME_STATEMENT)
        for row in rows[:10]:
            print(row.metric, row.values)


if __name__ == '__main__':
    asyncio.run(main())
