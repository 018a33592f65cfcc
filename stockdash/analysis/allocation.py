"""End-to-end allocation: tickers in, optimized and validated portfolio out.

Wires the return-series provider, the statistics helpers and the optimizer
together, then sanity-checks the weights before they are shown to a user.
"""

from __future__ import annotations

import numpy as np

from stockdash.analysis import risk_metrics as rm
from stockdash.analysis.portfolio import (
    OptimizationResult,
    PortfolioOptimizer,
    _to_float,
    equal_weights,
)
from stockdash.analysis.statistics import (
    InvalidWeightsError,
    calculate_correlation_matrix,
    calculate_covariance_matrix,
    calculate_expected_returns,
    check_weights,
)
from stockdash.config import Defaults
from stockdash.data_sources.returns import ReturnSeriesProvider
from stockdash.utils.logger import setup_logger

logger = setup_logger("allocation")

OBJECTIVES = ("max_sharpe", "max_sortino", "min_variance", "target_return")


def normalize_tickers(tickers: list[str]) -> list[str]:
    """Strip, upper-case and de-duplicate, keeping first-seen order."""
    seen: list[str] = []
    for t in tickers:
        sym = t.strip().upper()
        if sym and sym not in seen:
            seen.append(sym)
    return seen


class PortfolioAllocator:
    """Build an optimized portfolio for a list of tickers."""

    def __init__(
        self,
        provider: ReturnSeriesProvider | None = None,
        risk_free_rate: float | None = None,
        period: str | None = None,
    ) -> None:
        self.provider = provider if provider is not None else ReturnSeriesProvider()
        self.optimizer = PortfolioOptimizer(risk_free_rate)
        self.period = period or Defaults.PERIOD

    def allocate(
        self,
        tickers: list[str],
        objective: str = "max_sharpe",
        target_return: float | None = None,
    ) -> dict:
        """Optimize *tickers* under *objective*.

        Args:
            tickers: Stock symbols.
            objective: One of ``max_sharpe``, ``max_sortino``,
                ``min_variance`` or ``target_return``.
            target_return: Annual return to aim for; required for
                ``target_return``.

        Returns:
            Dict with the optimization result plus period, synthetic_data,
            asset_stats and correlation_matrix.
        """
        if objective not in OBJECTIVES:
            raise ValueError(f"Unknown objective '{objective}', expected one of {OBJECTIVES}")
        if objective == "target_return" and target_return is None:
            raise ValueError("target_return is required for the target_return objective")

        symbols = normalize_tickers(tickers)
        if not symbols:
            raise ValueError("No tickers supplied")

        history = self.provider.fetch(symbols, period=self.period)
        mu = calculate_expected_returns(history.returns)
        cov = calculate_covariance_matrix(history.returns)

        logger.info("Optimizing %s for %s", objective, symbols)
        result = self._run(objective, symbols, mu, cov, history.matrix(), target_return)
        result = self._validated(result, mu, cov)

        vols = np.sqrt(np.diag(cov))
        corr = calculate_correlation_matrix(cov)
        n = len(symbols)

        out = result.to_dict()
        out.update({
            "risk_free_rate": self.optimizer.risk_free_rate,
            "target_return": target_return,
            "period": self.period,
            "synthetic_data": list(history.synthetic_symbols),
            "asset_stats": {
                symbols[i]: {
                    "expected_return": _to_float(mu[i]),
                    "volatility": _to_float(vols[i]),
                }
                for i in range(n)
            },
            "correlation_matrix": {
                symbols[i]: {symbols[j]: _to_float(corr[i, j]) for j in range(n)}
                for i in range(n)
            },
        })
        return out

    def _run(self, objective, symbols, mu, cov, history, target_return) -> OptimizationResult:
        opt = self.optimizer
        if objective == "max_sharpe":
            return opt.optimize_max_sharpe(symbols, mu, cov)
        if objective == "max_sortino":
            return opt.optimize_max_sortino(symbols, mu, cov, history)
        if objective == "min_variance":
            return opt.optimize_min_variance(symbols, mu, cov)
        return opt.optimize_for_target_return(symbols, mu, cov, target_return)

    def _validated(self, result: OptimizationResult, mu, cov) -> OptimizationResult:
        """Replace unusable weights with an equal-weight portfolio."""
        try:
            check_weights(result.weights)
            return result
        except InvalidWeightsError as exc:
            logger.warning("Optimizer returned invalid weights (%s), using equal weights", exc)

        w = equal_weights(len(result.symbols))
        ret = rm.portfolio_return(w, np.asarray(mu))
        vol = rm.portfolio_volatility(w, np.asarray(cov))
        sharpe = (ret - self.optimizer.risk_free_rate) / vol
        return OptimizationResult(
            symbols=result.symbols,
            weights=tuple(float(x) for x in w),
            expected_return=ret,
            volatility=vol,
            sharpe_ratio=sharpe,
            sortino_ratio=sharpe,
            objective=result.objective,
            warnings=result.warnings + ("Optimized weights were invalid; showing equal weights",),
        )
