"""Logging configuration for stockdash."""

import logging
import sys

from stockdash.config import log_level


def setup_logger(name: str = "stockdash", level: str | None = None) -> logging.Logger:
    """Create and configure a logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, (level or log_level()).upper(), logging.INFO))
    return logger
