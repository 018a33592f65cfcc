"""Shared pytest fixtures for the stockdash test suite.

Provides synthetic return data with fixed random seeds for reproducibility.
All fixtures are independent of external APIs.
"""

import numpy as np
import pandas as pd
import pytest

from stockdash.analysis.portfolio import PortfolioOptimizer


# ---------------------------------------------------------------------------
# 1. Optimizer inputs
# ---------------------------------------------------------------------------

@pytest.fixture
def optimizer():
    """Optimizer with a 2% risk-free rate."""
    return PortfolioOptimizer(risk_free_rate=0.02)


@pytest.fixture
def two_asset_inputs():
    """AAPL/MSFT example: AAPL has the higher return at comparable risk."""
    return {
        "symbols": ["AAPL", "MSFT"],
        "expected_returns": [0.15, 0.12],
        "covariance_matrix": [[0.04, 0.01], [0.01, 0.03]],
    }


@pytest.fixture
def three_asset_inputs():
    return {
        "symbols": ["AAPL", "MSFT", "KO"],
        "expected_returns": [0.14, 0.11, 0.06],
        "covariance_matrix": [
            [0.0625, 0.0150, 0.0050],
            [0.0150, 0.0400, 0.0040],
            [0.0050, 0.0040, 0.0144],
        ],
    }


# ---------------------------------------------------------------------------
# 2. Return histories
# ---------------------------------------------------------------------------

def make_returns_by_symbol(
    symbols=("AAPL", "MSFT", "KO"),
    n=252,
    means=(0.0005, 0.0004, 0.0002),
    stds=(0.018, 0.016, 0.008),
    seed=42,
):
    """Dict of symbol -> list of daily returns, seeded."""
    rng = np.random.default_rng(seed)
    return {
        s: list(rng.normal(m, sd, n))
        for s, m, sd in zip(symbols, means, stds)
    }


@pytest.fixture
def returns_by_symbol():
    return make_returns_by_symbol()


@pytest.fixture
def sample_prices():
    """252 daily closes from a seeded geometric random walk."""
    np.random.seed(42)
    n = 252
    dates = pd.bdate_range(start="2023-01-02", periods=n)
    log_returns = np.random.normal(0.0004, 0.015, n)
    close = 150.0 * np.exp(np.cumsum(log_returns))
    return pd.Series(close, index=dates, name="Close")


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
