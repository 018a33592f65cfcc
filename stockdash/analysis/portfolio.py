"""Markowitz mean-variance portfolio optimization.

Four objectives are supported, each with its own algorithm:

* maximum Sharpe ratio   -- projected gradient ascent on the Sharpe ratio
* maximum Sortino ratio  -- same ascent, checkpointed on the Sortino ratio
* minimum variance       -- closed form  w = Σ⁻¹1 / (1'Σ⁻¹1)
* target return          -- penalised gradient descent on variance

Every candidate is projected onto the long-only simplex (w >= 0, sum w = 1)
after each step, so all results are fully-invested long-only portfolios.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from stockdash.analysis import risk_metrics as rm
from stockdash.analysis.linalg import (
    SingularMatrixError,
    invert_matrix,
    multiply_matrix_vector,
)
from stockdash.config import Defaults
from stockdash.utils.logger import setup_logger

logger = setup_logger("portfolio")

# ---------------------------------------------------------------------------
# Algorithm constants
# ---------------------------------------------------------------------------

_ZERO_SUM_EPS = 1e-8

_ASCENT_ITERATIONS = 2000
_ASCENT_LEARNING_RATE = 0.005
_ASCENT_DECAY_EVERY = 500
_ASCENT_DECAY_FACTOR = 0.95

_TARGET_ITERATIONS = 1000
_TARGET_LEARNING_RATE = 0.01
_TARGET_RETURN_TOLERANCE = 0.001
_TARGET_RETURN_STEP_SCALE = 0.1


def _to_float(val: Any) -> float:
    """Coerce numpy scalar to plain float for JSON serialization."""
    return round(float(val), 6)


def normalize_weights(weights: np.ndarray) -> None:
    """Project *weights* in place onto the long-only, fully-invested simplex.

    Negative weights are clamped to zero and the rest rescaled to sum to one.
    If nothing is left after clamping, weights become equal.
    """
    np.maximum(weights, 0.0, out=weights)
    total = float(weights.sum())
    if total > _ZERO_SUM_EPS:
        weights /= total
    else:
        weights.fill(1.0 / weights.size)


def equal_weights(n: int) -> np.ndarray:
    return np.full(n, 1.0 / n)


# =========================================================================
# Result
# =========================================================================


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of a single optimization call."""

    symbols: tuple[str, ...]
    weights: tuple[float, ...]
    expected_return: float
    volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    objective: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def weight_map(self) -> dict[str, float]:
        return dict(zip(self.symbols, self.weights))

    def to_dict(self) -> dict:
        return {
            "objective": self.objective,
            "tickers": list(self.symbols),
            "weights": {s: _to_float(w) for s, w in self.weight_map.items()},
            "expected_return": _to_float(self.expected_return),
            "volatility": _to_float(self.volatility),
            "sharpe_ratio": _to_float(self.sharpe_ratio),
            "sortino_ratio": _to_float(self.sortino_ratio),
            "warnings": list(self.warnings),
        }


# =========================================================================
# Optimizer
# =========================================================================


class PortfolioOptimizer:
    """Long-only Markowitz optimizer with a fixed risk-free rate.

    The instance holds nothing but the rate, so one optimizer can serve any
    number of independent requests.
    """

    def __init__(self, risk_free_rate: float | None = None) -> None:
        self._risk_free_rate = (
            Defaults.RISK_FREE_RATE if risk_free_rate is None else float(risk_free_rate)
        )

    @property
    def risk_free_rate(self) -> float:
        return self._risk_free_rate

    # ----- internal helpers ------------------------------------------------

    @staticmethod
    def _prepare_inputs(
        symbols: Sequence[str],
        expected_returns: Sequence[float],
        covariance_matrix: Sequence[Sequence[float]],
    ) -> tuple[tuple[str, ...], np.ndarray, np.ndarray]:
        """Validate shapes and convert to arrays."""
        syms = tuple(symbols)
        n = len(syms)
        if n == 0:
            raise ValueError("At least one symbol is required")

        mu = np.array(expected_returns, dtype=float)
        cov = np.array(covariance_matrix, dtype=float)

        if mu.shape != (n,):
            raise ValueError(
                f"expected_returns has {mu.size} entries for {n} symbols"
            )
        if cov.shape != (n, n):
            raise ValueError(
                f"covariance_matrix must be {n}x{n}, got shape {cov.shape}"
            )
        if not (np.all(np.isfinite(mu)) and np.all(np.isfinite(cov))):
            raise ValueError("expected_returns and covariance_matrix must be finite")
        return syms, mu, cov

    def _build_result(
        self,
        symbols: tuple[str, ...],
        weights: np.ndarray,
        mu: np.ndarray,
        cov: np.ndarray,
        objective: str,
        sortino: float | None = None,
        warnings: tuple[str, ...] = (),
    ) -> OptimizationResult:
        ret = rm.portfolio_return(weights, mu)
        vol = rm.portfolio_volatility(weights, cov)
        sharpe = (ret - self._risk_free_rate) / vol
        return OptimizationResult(
            symbols=symbols,
            weights=tuple(float(w) for w in weights),
            expected_return=ret,
            volatility=vol,
            sharpe_ratio=sharpe,
            # no downside history: Sharpe stands in for Sortino
            sortino_ratio=sharpe if sortino is None else sortino,
            objective=objective,
            warnings=warnings,
        )

    def _gradient_ascent(self, mu: np.ndarray, cov: np.ndarray, score) -> np.ndarray:
        """Projected Sharpe-gradient ascent, keeping the best-scoring iterate.

        *score* maps a weight vector to the objective being checkpointed.
        """
        n = mu.size
        excess = mu - self._risk_free_rate
        weights = equal_weights(n)
        best_score = -np.inf
        best_weights = weights.copy()
        learning_rate = _ASCENT_LEARNING_RATE

        for it in range(_ASCENT_ITERATIONS):
            current = score(weights)
            if current > best_score:
                best_score = current
                best_weights = weights.copy()

            weights += learning_rate * rm.sharpe_gradient(weights, excess, cov)
            normalize_weights(weights)

            if it > 0 and it % _ASCENT_DECAY_EVERY == 0:
                learning_rate *= _ASCENT_DECAY_FACTOR

        return best_weights

    # ----- objectives ------------------------------------------------------

    def optimize_max_sharpe(
        self,
        symbols: Sequence[str],
        expected_returns: Sequence[float],
        covariance_matrix: Sequence[Sequence[float]],
    ) -> OptimizationResult:
        """Maximise (return - rf) / volatility."""
        syms, mu, cov = self._prepare_inputs(symbols, expected_returns, covariance_matrix)
        rf = self._risk_free_rate

        weights = self._gradient_ascent(
            mu, cov, lambda w: rm.sharpe_ratio(w, mu, cov, rf)
        )
        logger.debug("Max-Sharpe weights for %s: %s", syms, np.round(weights, 4))
        return self._build_result(syms, weights, mu, cov, "max_sharpe")

    def optimize_max_sortino(
        self,
        symbols: Sequence[str],
        expected_returns: Sequence[float],
        covariance_matrix: Sequence[Sequence[float]],
        historical_returns: Sequence[Sequence[float]],
    ) -> OptimizationResult:
        """Maximise (return - rf) / downside deviation.

        Weights move along the Sharpe gradient; only the checkpointing uses
        the Sortino ratio.

        Args:
            historical_returns: One per-period return series per symbol, in
                the same order as *symbols*.
        """
        syms, mu, cov = self._prepare_inputs(symbols, expected_returns, covariance_matrix)
        if len(historical_returns) != len(syms):
            raise ValueError(
                f"historical_returns has {len(historical_returns)} series "
                f"for {len(syms)} symbols"
            )
        history = [np.asarray(r, dtype=float) for r in historical_returns]
        if not all(np.all(np.isfinite(h)) for h in history):
            raise ValueError("historical_returns must be finite")
        rf = self._risk_free_rate

        def sortino(w: np.ndarray) -> float:
            return rm.sortino_ratio(w, mu, history, rf)

        weights = self._gradient_ascent(mu, cov, sortino)
        return self._build_result(
            syms, weights, mu, cov, "max_sortino", sortino=sortino(weights)
        )

    def optimize_min_variance(
        self,
        symbols: Sequence[str],
        expected_returns: Sequence[float],
        covariance_matrix: Sequence[Sequence[float]],
    ) -> OptimizationResult:
        """Global minimum-variance portfolio, clamped to long-only.

        Falls back to equal weights when the covariance matrix is singular.
        """
        syms, mu, cov = self._prepare_inputs(symbols, expected_returns, covariance_matrix)
        n = len(syms)

        try:
            inv_cov = invert_matrix(cov)
        except SingularMatrixError as exc:
            logger.warning(
                "Matrix inversion failed for %s (%s), falling back to equal weights",
                list(syms), exc,
            )
            return self._build_result(
                syms, equal_weights(n), mu, cov, "min_variance",
                warnings=("Covariance matrix is singular; using equal weights",),
            )

        inv_cov_ones = multiply_matrix_vector(inv_cov, np.ones(n))
        denominator = float(inv_cov_ones.sum())
        if not np.isfinite(denominator) or abs(denominator) < _ZERO_SUM_EPS:
            logger.warning("Degenerate minimum-variance solution for %s", list(syms))
            return self._build_result(
                syms, equal_weights(n), mu, cov, "min_variance",
                warnings=("Minimum-variance solution is degenerate; using equal weights",),
            )

        weights = inv_cov_ones / denominator
        normalize_weights(weights)
        return self._build_result(syms, weights, mu, cov, "min_variance")

    def optimize_for_target_return(
        self,
        symbols: Sequence[str],
        expected_returns: Sequence[float],
        covariance_matrix: Sequence[Sequence[float]],
        target_return: float,
    ) -> OptimizationResult:
        """Lowest-risk portfolio whose return is within 0.1pp of *target_return*.

        The target is a soft constraint. When no iterate gets close enough the
        equal-weight starting portfolio is returned and a warning attached.
        """
        syms, mu, cov = self._prepare_inputs(symbols, expected_returns, covariance_matrix)
        target = float(target_return)
        if not np.isfinite(target):
            raise ValueError("target_return must be finite")

        weights = equal_weights(len(syms))
        best_vol = np.inf
        best_weights = weights.copy()
        lr = _TARGET_LEARNING_RATE

        for _ in range(_TARGET_ITERATIONS):
            ret = rm.portfolio_return(weights, mu)
            vol = rm.portfolio_volatility(weights, cov)

            if abs(ret - target) <= _TARGET_RETURN_TOLERANCE and vol < best_vol:
                best_vol = vol
                best_weights = weights.copy()

            return_error = target - ret
            weights -= lr * rm.variance_gradient(weights, cov)
            weights += lr * return_error * mu * _TARGET_RETURN_STEP_SCALE
            normalize_weights(weights)

        warnings: tuple[str, ...] = ()
        if not np.isfinite(best_vol):
            logger.warning(
                "Target return %.4f not reached for %s, returning starting portfolio",
                target, list(syms),
            )
            warnings = (f"Target return {target:.2%} could not be reached",)

        return self._build_result(
            syms, best_weights, mu, cov, "target_return", warnings=warnings
        )
