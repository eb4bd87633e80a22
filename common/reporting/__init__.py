"""Report and chart emitters."""

from common.reporting.plots import PlotEmitter
from common.reporting.report import (
    load_source_configs,
    parse_report_table,
    render_benchmark_report,
    render_comparison_report,
)

__all__ = [
    "PlotEmitter",
    "load_source_configs",
    "parse_report_table",
    "render_benchmark_report",
    "render_comparison_report",
]
