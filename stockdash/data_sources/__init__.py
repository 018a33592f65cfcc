"""Data source modules."""

from .market_data import MarketDataClient
from .returns import ReturnHistory, ReturnSeriesProvider
from .synthetic import generate_synthetic_returns
