"""Display formatting shared by the report renderers and the UI."""

import re
from datetime import date
from decimal import Decimal
from typing import Optional, Union

NOT_AVAILABLE = "N/A"

Number = Union[Decimal, int, float]


def format_currency(value: Optional[Number], currency: str = "XAF", decimals: int = 0) -> str:
    """Format an amount as '50,000 XAF'."""
    if value is None:
        value = 0
    return f"{value:,.{decimals}f} {currency}"


def format_report_date(value: date) -> str:
    """Medium date, e.g. 'Mar 1, 2024'."""
    return f"{value:%b} {value.day}, {value.year}"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def or_placeholder(value: Optional[str]) -> str:
    """Empty optional text renders as 'N/A'."""
    return value if value else NOT_AVAILABLE


def export_file_stem(title: str) -> str:
    """Report title to file stem: whitespace runs and slashes become '_'."""
    return re.sub(r"\s+", "_", title.strip()).replace("/", "_")
