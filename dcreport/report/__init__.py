"""レポート出力（チャート・markdown）。"""

from .charts import (
    daily_issuance,
    pastel_color_source,
    plot_issuance_chart,
    plot_milestone_histograms,
    random_pastel_color,
)
from .markdown import clients_table, progression_table, render_report_markdown
from .report import compute_histogram, generate_report, run_report

__all__ = [
    "clients_table",
    "compute_histogram",
    "daily_issuance",
    "generate_report",
    "pastel_color_source",
    "plot_issuance_chart",
    "plot_milestone_histograms",
    "progression_table",
    "random_pastel_color",
    "render_report_markdown",
    "run_report",
]
