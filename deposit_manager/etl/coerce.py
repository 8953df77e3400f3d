"""
Cell Coercion - Total, never-raising conversions from loosely typed cells.

Spreadsheet readers hand back cells that may be blank, text, or numbers
(including numpy scalars). Every helper here returns a documented fallback
instead of failing, so a malformed cell can only ever drop or zero a row.
"""
import math
import numbers
import re
from datetime import date, timedelta
from typing import Any, Optional, Union

Number = Union[int, float]

_DECIMAL_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
_NON_DIGITS = re.compile(r'[^0-9]')
_PREFIXED_INTEGER_PATTERN = re.compile(r'^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$')


def is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


def _plain_number(value: Any) -> Number:
    # numpy scalars -> builtin int/float
    if isinstance(value, numbers.Integral):
        return int(value)
    return float(value)


def string_from(value: Any) -> str:
    """Text passes through, numbers use their decimal text, anything else is ''."""
    if isinstance(value, str):
        return value
    if is_number(value):
        value = _plain_number(value)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return ""


def lower_string_from(value: Any) -> str:
    return string_from(value).lower()


def number_from(value: Any) -> Number:
    """
    Generic numeric coercion.

    Numbers pass through. Strings are parsed as a base-10 decimal, ignoring
    surrounding whitespace; blank, non-numeric and non-finite text is 0.
    """
    if is_number(value):
        n = _plain_number(value)
        return n if math.isfinite(n) else 0
    if not isinstance(value, str):
        return 0

    text = value.strip()
    if not text or not _DECIMAL_PATTERN.match(text):
        return 0
    n = float(text)
    if not math.isfinite(n):
        return 0
    return int(n) if n.is_integer() else n


def amount_from(value: Any) -> Number:
    """
    Currency coercion for IDR-style amounts such as 'Rp310.000' or '310.000'.

    Every non-digit character is stripped and the rest read as an integer, so
    separators are always treated as thousands grouping and the sign is lost.
    """
    if is_number(value):
        n = _plain_number(value)
        return n if math.isfinite(n) else 0
    if not isinstance(value, str):
        return 0

    digits_only = _NON_DIGITS.sub('', value)
    if not digits_only:
        return 0
    return int(digits_only)


def _date_part(text: str) -> Optional[int]:
    """A loosely written numeric date component, truncated; None if not finite."""
    text = text.strip()
    if not text:
        return 0
    if _PREFIXED_INTEGER_PATTERN.match(text):
        return int(text, 0)
    if not _DECIMAL_PATTERN.match(text):
        return None
    n = float(text)
    if not math.isfinite(n):
        return None
    return int(n)


def parse_date(value: Any) -> Optional[date]:
    """
    Parse 'DD/MM/YYYY' with an optional trailing time ('DD/MM/YYYY HH:MM:SS').

    Components are read leniently (blank is 0, whitespace and fractions are
    tolerated) and out-of-range days or months roll over into the adjacent
    month or year, so '31/04/2024' is 1 May 2024 and '0/01/2024' is
    31 Dec 2023. Years 0-99 mean 1900-1999.

    Returns None for non-text cells, any other shape, a non-numeric
    component, or a date outside the representable range.
    """
    if not isinstance(value, str) or not value:
        return None

    parts = value.split(" ", 1)[0].split("/")
    if len(parts) != 3:
        return None

    day, month, year = (_date_part(p) for p in parts)
    if day is None or month is None or year is None:
        return None
    if 0 <= year <= 99:
        year += 1900

    month_index = month - 1
    try:
        first = date(year + month_index // 12, month_index % 12 + 1, 1)
        return first + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return None
