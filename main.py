#!/usr/bin/env python3
"""stockdash: Markowitz portfolio optimizer for the stock dashboard.

Usage:
    python main.py optimize AAPL MSFT GOOGL                      # max Sharpe
    python main.py optimize AAPL MSFT --objective min_variance
    python main.py optimize AAPL MSFT NVDA --objective max_sortino --period 6M
    python main.py optimize AAPL KO --objective target_return --target-return 0.12
    python main.py optimize AAPL MSFT --json                     # raw JSON
    python main.py stats AAPL MSFT GOOGL                         # return statistics
"""

import argparse
import json
import sys
from pathlib import Path

from stockdash.analysis.allocation import OBJECTIVES, PortfolioAllocator, normalize_tickers
from stockdash.analysis.portfolio import _to_float
from stockdash.analysis.statistics import (
    calculate_correlation_matrix,
    calculate_covariance_matrix,
    calculate_expected_returns,
)
from stockdash.config import Defaults
from stockdash.data_sources.returns import ReturnSeriesProvider
from stockdash.reports.renderer import ReportRenderer
from stockdash.utils.logger import setup_logger

logger = setup_logger("main")


# ============================================================
# COMMANDS
# ============================================================

def cmd_optimize(args):
    """Optimize a portfolio and print a report."""
    allocator = PortfolioAllocator(risk_free_rate=args.risk_free_rate, period=args.period)
    try:
        result = allocator.allocate(
            args.tickers, objective=args.objective, target_return=args.target_return
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    renderer = ReportRenderer()
    if args.json:
        text = json.dumps(result, indent=2)
    else:
        text = renderer.render_allocation(result)

    if args.output:
        path = renderer.save(text, Path(args.output))
        print(f"Report saved: {path}")
    print(text)


def cmd_stats(args):
    """Show annualized return statistics."""
    tickers = normalize_tickers(args.tickers)
    if not tickers:
        print("Error: no tickers supplied")
        sys.exit(1)

    history = ReturnSeriesProvider().fetch(tickers, period=args.period)
    mu = calculate_expected_returns(history.returns)
    cov = calculate_covariance_matrix(history.returns)
    corr = calculate_correlation_matrix(cov)
    n = len(tickers)

    stats = {
        "tickers": tickers,
        "period": args.period,
        "synthetic_data": history.synthetic_symbols,
        "expected_returns": {tickers[i]: _to_float(mu[i]) for i in range(n)},
        "covariance_matrix": [[_to_float(v) for v in row] for row in cov],
        "correlation_matrix": [[_to_float(v) for v in row] for row in corr],
    }
    if args.json:
        print(json.dumps(stats, indent=2))
        return

    print(f"\n{'='*50}")
    print(f"  Return statistics ({args.period})")
    print(f"{'='*50}")
    for i, t in enumerate(tickers):
        vol = cov[i, i] ** 0.5
        flag = " (synthetic)" if t in history.synthetic_symbols else ""
        print(f"  {t:8s}: return {mu[i]*100:6.2f}%  vol {vol*100:6.2f}%{flag}")
    print("\n--- Correlation ---")
    print("          " + "".join(f"{t:>9s}" for t in tickers))
    for i, t in enumerate(tickers):
        print(f"  {t:8s}" + "".join(f"{corr[i, j]:9.3f}" for j in range(n)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="stockdash: Markowitz portfolio optimizer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # optimize
    p = sub.add_parser("optimize", help="Optimize portfolio weights")
    p.add_argument("tickers", nargs="+", help="Stock symbols")
    p.add_argument("--objective", default=Defaults.OBJECTIVE, choices=OBJECTIVES,
                   help=f"Optimization objective (default: {Defaults.OBJECTIVE})")
    p.add_argument("--target-return", type=float, default=None,
                   help="Annual target return for the target_return objective (e.g. 0.12)")
    p.add_argument("--period", default=Defaults.PERIOD,
                   help="History period: 1D, 1W, 1M, 3M, 6M, 1Y")
    p.add_argument("--risk-free-rate", type=float, default=None,
                   help=f"Annual risk-free rate (default: {Defaults.RISK_FREE_RATE})")
    p.add_argument("--json", action="store_true", help="Print raw JSON")
    p.add_argument("--output", default="", help="Also write the report to this file")
    p.set_defaults(func=cmd_optimize)

    # stats
    p = sub.add_parser("stats", help="Expected returns and covariance")
    p.add_argument("tickers", nargs="+")
    p.add_argument("--period", default=Defaults.PERIOD)
    p.add_argument("--json", action="store_true", help="Print raw JSON")
    p.set_defaults(func=cmd_stats)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    args.func(args)


if __name__ == "__main__":
    main()
