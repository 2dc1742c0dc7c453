"""Text rendering of simulation results for CLI and log output."""

from stepgrid.reporting.formatter import (
    format_currency,
    format_frequency_report,
    format_odds_table,
    format_percent,
    format_rtp_report,
    format_summary,
)

__all__ = [
    "format_currency",
    "format_frequency_report",
    "format_odds_table",
    "format_percent",
    "format_rtp_report",
    "format_summary",
]
