"""Pricing Result Logger for geopricing.

Structlog setup plus banner-style text summaries of priced quotes that
stand out in log streams.
"""

import logging
import structlog
from typing import Optional

from geopricing.models.geopricing import GeopricingResult

logger = structlog.get_logger(__name__)

# Visual markers
BANNER_WIDTH = 80
QUOTE_BANNER_CHAR = "═"
TABLE_BANNER_CHAR = "─"
WARNING_BANNER_CHAR = "!"


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with ISO timestamps and console output.

    Args:
        level: Minimum level name, e.g. "DEBUG" or "WARNING".
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _money(amount: Optional[float], currency: str) -> str:
    if amount is None:
        return "-"
    return f"${amount:,.2f} {currency}"


def format_rate_table(result: GeopricingResult) -> str:
    """Render the all-zones rate table, marking the customer's zone."""
    lines = [
        _create_banner(TABLE_BANNER_CHAR, "RATE TABLE"),
        f"{'Zone':<22}{'Drive Time':<16}{'Rate / 1,000 sq ft':<22}{'Property Price':<20}",
        TABLE_BANNER_CHAR * BANNER_WIDTH,
    ]
    for entry in result.rate_table_all_zones:
        marker = " ✓" if entry.is_current else ""
        lines.append(
            f"{entry.zone_name + marker:<22}"
            f"{entry.drive_time_range:<16}"
            f"{_money(entry.rate_per_1000_sq_ft, result.currency):<22}"
            f"{_money(entry.price_for_property, result.currency):<20}"
        )
    lines.append(TABLE_BANNER_CHAR * BANNER_WIDTH)
    return "\n".join(lines)


def format_quote_summary(result: GeopricingResult) -> str:
    """Render a priced quote as a bordered summary block."""
    lines = [
        QUOTE_BANNER_CHAR * BANNER_WIDTH,
        _create_banner(QUOTE_BANNER_CHAR, "GEOPRICING QUOTE"),
        QUOTE_BANNER_CHAR * BANNER_WIDTH,
        f"║ Zone          : {result.zone.name} ({result.zone.drive_time_range})",
        f"║ Drive Time    : {result.drive_time_minutes:g} min",
        f"║ Base Rate     : {_money(result.base_rate, result.currency)} / 1,000 sq ft",
        f"║ Adjusted Rate : {_money(result.adjusted_rate, result.currency)} / 1,000 sq ft",
        f"║ Property Size : {result.property_size_sq_ft:,.0f} sq ft",
    ]

    for item in result.line_items:
        lines.append(f"║   • {item.name}: {item.area_sq_ft:,.0f} sq ft = {_money(item.total_price, result.currency)}")

    if result.applied_rules:
        lines.append(f"║ Rules Applied : {', '.join(rule.name for rule in result.applied_rules)}")
    if result.skipped_rules:
        lines.append(f"║ Rules Skipped : {', '.join(rule.name for rule in result.skipped_rules)}")

    lines.append(f"║ TOTAL         : {_money(result.total_price, result.currency)}")
    lines.append(f"║ Expires At    : {result.expires_at.isoformat()}")
    lines.append(QUOTE_BANNER_CHAR * BANNER_WIDTH)

    if result.warnings:
        lines.append(_create_banner(WARNING_BANNER_CHAR, "WARNINGS"))
        lines.extend(f"║ {warning}" for warning in result.warnings)
        lines.append(WARNING_BANNER_CHAR * BANNER_WIDTH)

    return "\n".join(lines)


def log_pricing_result(result: GeopricingResult, include_rate_table: bool = True) -> None:
    """Print the quote summary (and rate table) with prominent banners."""
    print("\n")
    print(format_quote_summary(result))
    if include_rate_table:
        print(format_rate_table(result))
    print("\n")

    logger.info(
        "pricing_result_logged",
        zone=result.zone.name,
        total_price=result.total_price,
        currency=result.currency,
        warnings=len(result.warnings),
    )
