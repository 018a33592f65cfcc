"""stockdash: Markowitz portfolio optimization for the stock dashboard."""

__version__ = "0.1.0"
