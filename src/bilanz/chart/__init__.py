"""Chart of accounts table for bilanz."""

from bilanz.chart.loader import Chart, build_chart, load_chart

__all__ = ["Chart", "build_chart", "load_chart"]
