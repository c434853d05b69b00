"""Reporting module: terminal rendering of session state and the legal disclaimer.

Re-exports all public functions so consumers can import directly:
    from Stock_Analysis.reporting import render_report, format_countdown
"""

from Stock_Analysis.reporting.disclaimer import DISCLAIMER_TEXT, get_disclaimer
from Stock_Analysis.reporting.formatters import (
    confidence_band_color,
    confidence_bar,
    format_countdown,
    format_news_date,
    format_timestamp,
    polarity_color,
    present_metrics,
)
from Stock_Analysis.reporting.terminal import (
    render_failure,
    render_health,
    render_rate_limit,
    render_report,
    render_state,
)

__all__ = [
    # Disclaimer
    "DISCLAIMER_TEXT",
    "get_disclaimer",
    # Formatters
    "confidence_band_color",
    "confidence_bar",
    "format_countdown",
    "format_news_date",
    "format_timestamp",
    "polarity_color",
    "present_metrics",
    # Terminal
    "render_failure",
    "render_health",
    "render_rate_limit",
    "render_report",
    "render_state",
]
