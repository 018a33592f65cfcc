"""Jinja2-based markdown report renderer."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import numpy as np
from jinja2 import Environment, FileSystemLoader

from stockdash.config import Paths
from stockdash.utils.logger import setup_logger

logger = setup_logger("renderer")

OBJECTIVE_LABELS = {
    "max_sharpe": "Maximum Sharpe ratio",
    "max_sortino": "Maximum Sortino ratio",
    "min_variance": "Minimum variance",
    "target_return": "Minimum risk for target return",
}


def fmt_pct(val) -> str:
    if val is None:
        return "N/A"
    try:
        val = float(val)
    except (TypeError, ValueError):
        return str(val)
    if np.isnan(val):
        return "N/A"
    return f"{val*100:.1f}%"


def fmt_ratio(val) -> str:
    if val is None:
        return "N/A"
    try:
        return f"{float(val):.2f}"
    except (TypeError, ValueError):
        return str(val)


class ReportRenderer:
    """Render allocation results into markdown using Jinja2 templates."""

    def __init__(self, template_dir: Path | None = None):
        tpl_dir = template_dir or Paths.REPORTS_TEMPLATES
        self.env = Environment(
            loader=FileSystemLoader(str(tpl_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["fmt_pct"] = fmt_pct
        self.env.filters["fmt_ratio"] = fmt_ratio

    def render(self, template_name: str, **context) -> str:
        template = self.env.get_template(template_name)
        context.setdefault("now", datetime.now())
        return template.render(**context)

    def render_allocation(self, result: dict, now: datetime | None = None) -> str:
        return self.render(
            "allocation.md.j2",
            result=result,
            objective_labels=OBJECTIVE_LABELS,
            now=now or datetime.now(),
        )

    def save(self, text: str, path: Path | None = None, stem: str = "allocation") -> Path:
        """Write *text* to *path* (default: timestamped file in reports/output)."""
        if path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            path = Paths.REPORTS_OUTPUT / f"{stem}_{timestamp}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        logger.info("Report saved: %s", path)
        return path
