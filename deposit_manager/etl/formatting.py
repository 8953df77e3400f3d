"""Display helpers: id-ID rupiah amounts and DD/MM/YYYY dates."""
from datetime import date
from typing import Optional

from .coerce import Number

CURRENCY_PREFIX = "Rp\u00a0"


def format_currency(value: Number) -> str:
    """'Rp 310.000' (non-breaking space) with no fractional digits and '.' as thousands separator."""
    rounded = int(round(value))
    grouped = f"{abs(rounded):,}".replace(",", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{CURRENCY_PREFIX}{grouped}"


def format_date(value: Optional[date]) -> str:
    if value is None:
        return "N/A"
    return f"{value.day:02d}/{value.month:02d}/{value.year}"


def parse_date_input(value: Optional[str]) -> Optional[date]:
    """Parse a 'YYYY-MM-DD' date-picker value; anything else is None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
