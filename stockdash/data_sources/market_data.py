"""Market data client - daily closing prices.

Primary: yfinance | Fallback: last cached copy, however old
"""

from __future__ import annotations

import pandas as pd
import yfinance as yf

from stockdash.utils.cache import SeriesCache
from stockdash.utils.logger import setup_logger

logger = setup_logger("market_data")

# Dashboard period code → yfinance period
PERIOD_MAP = {
    "1D": "5d",
    "1W": "5d",
    "1M": "1mo",
    "3M": "3mo",
    "6M": "6mo",
    "1Y": "1y",
}
DEFAULT_PERIOD = "6M"


def to_yf_period(period: str) -> str:
    """Map a dashboard period code to a yfinance period (unknown → 6 months)."""
    return PERIOD_MAP.get(period.upper(), PERIOD_MAP[DEFAULT_PERIOD])


class MarketDataClient:
    """Fetch historical closing prices."""

    def __init__(self, cache: SeriesCache | None = None) -> None:
        self.cache = cache if cache is not None else SeriesCache()

    def get_price_history(self, ticker: str, period: str = "1Y") -> pd.Series:
        """Daily closes for *ticker*, oldest first.

        A failed or empty download falls back to the last cached copy even if
        it has expired; with nothing cached an empty Series is returned.
        """
        cache_key = f"{ticker}_{period.upper()}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Cache hit: %s", cache_key)
            return cached

        logger.info("Fetching price history: %s (period=%s)", ticker, period)
        try:
            df = yf.Ticker(ticker).history(period=to_yf_period(period), interval="1d")
        except Exception as e:
            logger.warning("yfinance history failed for %s: %s", ticker, e)
            df = pd.DataFrame()

        closes = pd.Series(dtype=float, name="Close")
        if not df.empty and "Close" in df.columns:
            closes = df["Close"].dropna().astype(float)

        if closes.empty:
            stale = self.cache.get_stale(cache_key)
            if stale is not None:
                logger.warning("Using stale cached prices for %s", ticker)
                return stale
            logger.warning("No price data for %s", ticker)
            return closes

        self.cache.set(cache_key, closes)
        return closes
