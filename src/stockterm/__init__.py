"""stockterm package: fetching, projecting and charting stock market data.

This package provides:
- fetcher: async client for the market-data API (time series, quotes, statements)
- transform: window filtering, scale transforms, axis ticks and nearest-point lookup
- statements: parsing of fundamental statement responses into table rows
- dashboard: the in-memory view state driving fetch-and-project refreshes
- plotter: utilities to chart a projected series (line or candlestick)
- api: a small FastAPI proxy exposing the same data as JSON
"""

__version__ = "0.1.0"
