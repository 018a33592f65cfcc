"""Portfolio-level risk and reward metrics.

All functions are pure: weights, expected returns and covariance go in,
floats or numpy arrays come out.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

# Variances below this are treated as this value before any division.
VARIANCE_FLOOR = 1e-8

# Returned when there is nothing below the target to measure.
DEFAULT_DOWNSIDE_DEVIATION = 0.01


def portfolio_return(weights: np.ndarray, expected_returns: np.ndarray) -> float:
    return float(weights @ expected_returns)


def portfolio_variance(weights: np.ndarray, covariance: np.ndarray) -> float:
    return float(weights @ covariance @ weights)


def portfolio_volatility(weights: np.ndarray, covariance: np.ndarray) -> float:
    return float(np.sqrt(max(portfolio_variance(weights, covariance), VARIANCE_FLOOR)))


def variance_gradient(weights: np.ndarray, covariance: np.ndarray) -> np.ndarray:
    """d(w'Σw)/dw = 2Σw."""
    return 2.0 * (covariance @ weights)


def sharpe_ratio(
    weights: np.ndarray,
    expected_returns: np.ndarray,
    covariance: np.ndarray,
    risk_free_rate: float,
) -> float:
    ret = portfolio_return(weights, expected_returns)
    return (ret - risk_free_rate) / portfolio_volatility(weights, covariance)


def sharpe_gradient(
    weights: np.ndarray,
    excess_returns: np.ndarray,
    covariance: np.ndarray,
) -> np.ndarray:
    """Analytic gradient of the Sharpe ratio with respect to each weight.

    Quotient rule on (w'e) / sqrt(w'Σw), with e the excess-return vector.
    """
    excess = float(weights @ excess_returns)
    variance = max(portfolio_variance(weights, covariance), VARIANCE_FLOOR)
    volatility = np.sqrt(variance)
    var_grad = variance_gradient(weights, covariance)

    numerator = excess_returns * volatility - excess * (var_grad / (2.0 * volatility))
    return numerator / variance


def downside_deviation(
    weights: np.ndarray,
    historical_returns: Sequence[Sequence[float]],
    target_return: float = 0.0,
) -> float:
    """Root-mean-square shortfall below *target_return*.

    Each period's portfolio return is rebuilt from the per-asset histories
    (aligned on their common trailing window). Only periods that fall below
    the target are counted.
    """
    if len(historical_returns) == 0:
        return DEFAULT_DOWNSIDE_DEVIATION

    series = [np.asarray(r, dtype=float) for r in historical_returns]
    periods = min(s.size for s in series)
    if periods == 0:
        return DEFAULT_DOWNSIDE_DEVIATION

    history = np.vstack([s[-periods:] for s in series])
    period_returns = weights @ history

    shortfall = period_returns[period_returns < target_return] - target_return
    if shortfall.size == 0:
        return DEFAULT_DOWNSIDE_DEVIATION
    return float(np.sqrt(np.mean(shortfall ** 2)))


def sortino_ratio(
    weights: np.ndarray,
    expected_returns: np.ndarray,
    historical_returns: Sequence[Sequence[float]],
    risk_free_rate: float,
) -> float:
    """(return - rf) / downside deviation, with rf as the downside target."""
    ret = portfolio_return(weights, expected_returns)
    dd = downside_deviation(weights, historical_returns, target_return=risk_free_rate)
    return (ret - risk_free_rate) / dd
