"""Per-symbol return histories for the optimizer."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from stockdash.analysis.statistics import calculate_returns
from stockdash.config import Defaults
from stockdash.data_sources.market_data import MarketDataClient
from stockdash.data_sources.synthetic import generate_synthetic_returns
from stockdash.utils.logger import setup_logger

logger = setup_logger("returns")


@dataclass
class ReturnHistory:
    """Return series keyed by symbol, in request order."""

    returns: dict[str, list[float]]
    synthetic_symbols: list[str] = field(default_factory=list)

    @property
    def symbols(self) -> list[str]:
        return list(self.returns)

    def matrix(self) -> list[list[float]]:
        """Series in symbol order, for the Sortino objective."""
        return [self.returns[s] for s in self.returns]


class ReturnSeriesProvider:
    """Build daily return series from market prices, with synthetic fallback."""

    def __init__(
        self,
        market: MarketDataClient | None = None,
        synthetic_days: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.market = market if market is not None else MarketDataClient()
        self.synthetic_days = Defaults.SYNTHETIC_DAYS if synthetic_days is None else synthetic_days
        self.rng = rng

    def fetch(self, symbols: list[str], period: str = "1Y") -> ReturnHistory:
        returns: dict[str, list[float]] = {}
        synthetic: list[str] = []

        for symbol in symbols:
            try:
                prices = self.market.get_price_history(symbol, period=period)
            except Exception as e:
                logger.warning("Price fetch failed for %s: %s", symbol, e)
                prices = None

            series = calculate_returns(prices) if prices is not None and len(prices) > 1 else []
            if not series:
                logger.warning("Using synthetic returns for %s", symbol)
                series = generate_synthetic_returns(self.synthetic_days, symbol, rng=self.rng)
                synthetic.append(symbol)
            returns[symbol] = series

        return ReturnHistory(returns=returns, synthetic_symbols=synthetic)
