"""
Parsing helpers for the loosely formatted values found in listing data.

Raw listings carry prices like "$1,234 ", counts like "12" and dates like
"10/19/2021". Every parser returns a typed value or None when the input is
empty or cannot be read; zero is a real value and is never confused with
"missing".
"""
import re
from datetime import datetime
from typing import Any, Optional

_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
_CURRENCY_CHARS = re.compile(r"[$,\s]")
_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d")
DISPLAY_DATE_FORMAT = "%m/%d/%Y"


def parse_number(value: Any) -> Optional[float]:
    """Read the leading number of ``value`` ("12 nights" -> 12.0)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return None
    return float(match.group(0))


def parse_currency(value: Any) -> Optional[float]:
    if isinstance(value, str):
        value = _CURRENCY_CHARS.sub("", value)
    return parse_number(value)


def parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def clean_price_text(value: Any) -> str:
    """Strip currency symbols and thousands separators: "$1,200 " -> "1200"."""
    if value is None:
        return ""
    return _CURRENCY_CHARS.sub("", str(value))


def format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_currency(value: Optional[float]) -> str:
    if value is None:
        return ""
    return f"${value:,.2f}"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime(DISPLAY_DATE_FORMAT)
