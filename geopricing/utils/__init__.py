"""Utility modules for geopricing."""

from geopricing.utils.pricing_logger import (
    configure_logging,
    format_rate_table,
    format_quote_summary,
    log_pricing_result,
)

__all__ = [
    "configure_logging",
    "format_rate_table",
    "format_quote_summary",
    "log_pricing_result",
]
