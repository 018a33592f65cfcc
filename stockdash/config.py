"""Central configuration loader for stockdash."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the stockdash/ package
PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings(path: Path | None = None) -> dict:
    """Load settings from configs/settings.yaml (empty dict if absent)."""
    settings_path = path or PROJECT_ROOT / "configs" / "settings.yaml"
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()


def log_level() -> str:
    return os.getenv("STOCKDASH_LOG_LEVEL") or SETTINGS.get("app", {}).get("log_level", "INFO")


# --- Portfolio defaults ---
class Defaults:
    _portfolio = SETTINGS.get("portfolio", {})
    RISK_FREE_RATE = float(_portfolio.get("risk_free_rate", 0.02))
    PERIOD = str(_portfolio.get("period", "1Y"))
    OBJECTIVE = str(_portfolio.get("objective", "max_sharpe"))
    SYNTHETIC_DAYS = int(SETTINGS.get("data", {}).get("synthetic_days", 252))
    PRICE_CACHE_TTL_SECONDS = (
        float(SETTINGS.get("cache", {}).get("ttl_minutes", {}).get("price_history", 5)) * 60
    )


# --- Paths ---
class Paths:
    REPORTS_OUTPUT = PROJECT_ROOT / "reports" / "output"
    REPORTS_TEMPLATES = PACKAGE_ROOT / "reports" / "templates"
