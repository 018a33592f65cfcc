"""Synthetic daily returns used when no market history is available."""

from __future__ import annotations

import zlib
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SymbolProfile:
    mean_return: float
    volatility: float
    momentum: float


DEFAULT_PROFILE = SymbolProfile(mean_return=0.0003, volatility=0.015, momentum=0.1)

SYMBOL_PROFILES: dict[str, SymbolProfile] = {
    "AAPL": SymbolProfile(0.0005, 0.018, 0.15),
    "TSLA": SymbolProfile(0.0008, 0.035, 0.25),
    "MSFT": SymbolProfile(0.0004, 0.016, 0.12),
    "GOOGL": SymbolProfile(0.0004, 0.017, 0.13),
    "AMZN": SymbolProfile(0.0005, 0.020, 0.18),
    "META": SymbolProfile(0.0006, 0.025, 0.20),
    "NVDA": SymbolProfile(0.0010, 0.040, 0.30),
    "JPM": SymbolProfile(0.0003, 0.012, 0.08),
    "JNJ": SymbolProfile(0.0002, 0.010, 0.05),
    "V": SymbolProfile(0.0004, 0.014, 0.10),
    "KO": SymbolProfile(0.0002, 0.008, 0.04),
    "PEP": SymbolProfile(0.0002, 0.009, 0.04),
}

_TREND_STEP = 0.001
_TREND_DECAY = 0.95


def symbol_profile(symbol: str) -> SymbolProfile:
    return SYMBOL_PROFILES.get(symbol.upper(), DEFAULT_PROFILE)


def symbol_seed(symbol: str) -> int:
    """Stable seed derived from the symbol text."""
    return zlib.crc32(symbol.upper().encode("utf-8"))


def generate_synthetic_returns(
    days: int,
    symbol: str,
    rng: np.random.Generator | None = None,
) -> list[float]:
    """Daily returns with drift, a decaying random trend and normal noise.

    Without *rng* the generator is seeded from the symbol, so a given symbol
    always produces the same series.
    """
    if days <= 0:
        return []
    rng = rng if rng is not None else np.random.default_rng(symbol_seed(symbol))
    profile = symbol_profile(symbol)

    returns: list[float] = []
    trend = 0.0
    for _ in range(days):
        trend += (rng.random() - 0.5) * _TREND_STEP
        trend *= _TREND_DECAY
        noise = rng.standard_normal() * profile.volatility
        returns.append(float(profile.mean_return + noise + trend * profile.momentum))
    return returns
