"""
Output formatters for CLI

Available formatters:
- JSONFormatter: Machine-readable JSON
- PrettyFormatter: Highlighted JSON rendered with Rich
"""

from sqlquery.cli.formatters.base import BaseFormatter
from sqlquery.cli.formatters.json import JSONFormatter
from sqlquery.cli.formatters.pretty import PrettyFormatter

__all__ = ["BaseFormatter", "JSONFormatter", "PrettyFormatter"]


def get_formatter(format_name: str) -> BaseFormatter:
    """
    Get formatter by name

    Args:
        format_name: Name of formatter (json, pretty)

    Returns:
        Formatter instance

    Raises:
        ValueError: If formatter not found
    """
    formatters = {
        "json": JSONFormatter,
        "pretty": PrettyFormatter,
    }

    if format_name not in formatters:
        available = ", ".join(formatters.keys())
        raise ValueError(f"Unknown format: {format_name}. Available formats: {available}")

    return formatters[format_name]()
