"""Return statistics that feed the optimizer.

Turns per-symbol return histories into annualized expected returns and an
annualized covariance matrix, with fallback values for symbols that have no
history so an optimization request always has usable inputs.
"""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np
import pandas as pd

TRADING_DAYS = 252

DEFAULT_EXPECTED_RETURN = 0.08
MAX_ABS_EXPECTED_RETURN = 0.5

# 20% annual vol squared, and a weak assumed co-movement
FALLBACK_VARIANCE = 0.04
FALLBACK_COVARIANCE = 0.004

DIAGONAL_ADJUSTMENT = 0.001
WEIGHT_SUM_TOLERANCE = 1e-3


class InvalidWeightsError(ValueError):
    """Portfolio weights are negative or do not sum to one."""


def _as_finite_array(returns: Sequence[float]) -> np.ndarray:
    arr = np.asarray(returns, dtype=float)
    if not np.all(np.isfinite(arr)):
        raise ValueError("Return series must be finite")
    return arr


def calculate_returns(prices: Sequence[float] | pd.Series) -> list[float]:
    """Simple period returns from a price series, dropping non-finite values.

    Missing prices are removed first, so a gap joins its neighbours.
    """
    series = pd.Series(prices, dtype=float).dropna().reset_index(drop=True)
    returns = series.pct_change().iloc[1:]
    returns = returns[np.isfinite(returns)]
    return [float(r) for r in returns]


def calculate_expected_returns(
    returns_by_symbol: Mapping[str, Sequence[float]],
) -> list[float]:
    """Annualized mean return per symbol, in mapping order.

    Empty histories default to 8%. Results are clamped to [-50%, 50%].
    Raises ValueError on NaN or infinite returns.
    """
    expected: list[float] = []
    for returns in returns_by_symbol.values():
        arr = _as_finite_array(returns)
        if arr.size == 0:
            expected.append(DEFAULT_EXPECTED_RETURN)
            continue
        annualized = float(arr.mean()) * TRADING_DAYS
        expected.append(
            max(-MAX_ABS_EXPECTED_RETURN, min(MAX_ABS_EXPECTED_RETURN, annualized))
        )
    return expected


def calculate_covariance(
    returns1: Sequence[float], returns2: Sequence[float]
) -> float:
    """Unbiased sample covariance over the common trailing window."""
    a = _as_finite_array(returns1)
    b = _as_finite_array(returns2)
    n = min(a.size, b.size)
    if n <= 1:
        return 0.0

    a = a[-n:]
    b = b[-n:]
    return float(np.sum((a - a.mean()) * (b - b.mean())) / (n - 1))


def ensure_positive_definite(matrix: np.ndarray) -> np.ndarray:
    """Shift the diagonal up when any variance is non-positive.

    This only guarantees a positive diagonal; it is not an eigenvalue repair.
    """
    result = np.array(matrix, dtype=float, copy=True)
    if result.size == 0:
        return result
    min_diagonal = float(np.min(np.diag(result)))
    if min_diagonal <= 0:
        adjustment = abs(min_diagonal) + DIAGONAL_ADJUSTMENT
        result[np.diag_indices_from(result)] += adjustment
    return result


def calculate_covariance_matrix(
    returns_by_symbol: Mapping[str, Sequence[float]],
) -> np.ndarray:
    """Annualized covariance matrix across symbols, in mapping order."""
    series = [_as_finite_array(r) for r in returns_by_symbol.values()]
    n = len(series)
    matrix = np.zeros((n, n))

    for i in range(n):
        for j in range(n):
            if series[i].size == 0 or series[j].size == 0:
                matrix[i, j] = FALLBACK_VARIANCE if i == j else FALLBACK_COVARIANCE
            else:
                matrix[i, j] = calculate_covariance(series[i], series[j]) * TRADING_DAYS

    return ensure_positive_definite(matrix)


def calculate_correlation_matrix(covariance_matrix: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    cov = np.asarray(covariance_matrix, dtype=float)
    n = cov.shape[0]
    std = np.sqrt(np.clip(np.diag(cov), 0.0, None))
    corr = np.zeros((n, n))
    for i in range(n):
        for j in range(n):
            if std[i] > 0 and std[j] > 0:
                corr[i, j] = cov[i, j] / (std[i] * std[j])
            else:
                corr[i, j] = 1.0 if i == j else 0.0
    return corr


def validate_weights(
    weights: Sequence[float], tolerance: float = WEIGHT_SUM_TOLERANCE
) -> bool:
    """True if every weight is non-negative and they sum to ~1."""
    w = np.asarray(weights, dtype=float)
    if w.size == 0 or not np.all(np.isfinite(w)):
        return False
    return bool(np.all(w >= 0) and abs(float(w.sum()) - 1.0) < tolerance)


def check_weights(
    weights: Sequence[float], tolerance: float = WEIGHT_SUM_TOLERANCE
) -> None:
    """Raise InvalidWeightsError describing why *weights* are not usable."""
    w = np.asarray(weights, dtype=float)
    if w.size == 0:
        raise InvalidWeightsError("Portfolio has no weights")
    if not np.all(np.isfinite(w)):
        raise InvalidWeightsError("Weights contain non-finite values")
    if np.any(w < 0):
        raise InvalidWeightsError(f"Negative weight found: {float(w.min()):.6f}")
    total = float(w.sum())
    if abs(total - 1.0) >= tolerance:
        raise InvalidWeightsError(f"Weights sum to {total:.6f}, expected 1.0")
