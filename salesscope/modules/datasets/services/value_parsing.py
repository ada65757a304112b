# salesscope/modules/datasets/services/value_parsing.py

"""
Cell-level parsing helpers shared by type inference and row normalization.

Inference uses the strict checks (the whole cell must be a number or a
date); normalization uses the lenient readers, which accept a leading
numeric prefix and fall back to a default instead of failing.
"""

import math
import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_GROUPED_NUMBER_RE = re.compile(r"^[+-]?\d{1,3}(?:,\d{3})+(?:\.\d+)?$")
_FLOAT_PREFIX_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")

# Fills the fields a cell leaves out; year 1 marks a cell without a year
_DATE_DEFAULT = datetime(1, 1, 1)

# Largest value the quantity column (SQL INTEGER) holds
MAX_INT_VALUE = 2**31 - 1


def is_blank(value: Optional[str]) -> bool:
    """A cell is null when missing, empty or whitespace only."""
    return value is None or not value.strip()


def is_number(value: str) -> bool:
    """True when the whole cell is a finite decimal number (no thousands separators)."""
    text = value.strip()
    if not _NUMBER_RE.match(text):
        return False
    return math.isfinite(float(text))


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a cell as a calendar timestamp.

    Accepts ISO 8601 plus the free-form dates dateutil understands
    ("1/15/2024 10:30 AM", "Mon Jan 15 2024", "January 15th, 2024",
    "2024-01-15 10:30:00 UTC"). Ambiguous numeric dates are read month
    first. A cell must carry a year; bare numbers and time-only values are
    never dates. Timezone-aware values are converted to naive UTC.

    Returns:
        The parsed datetime, or None when the cell is not a date
    """
    if is_blank(value):
        return None

    text = value.strip()
    if _NUMBER_RE.match(text) or _GROUPED_NUMBER_RE.match(text):
        return None

    try:
        iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        parsed = datetime.fromisoformat(iso_text)
    except ValueError:
        try:
            parsed = date_parser.parse(text, default=_DATE_DEFAULT)
        except (ValueError, OverflowError):
            return None
        if parsed.year == _DATE_DEFAULT.year:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_date(value: str) -> bool:
    return parse_date(value) is not None


def parse_float_prefix(value: Optional[str]) -> Optional[float]:
    """Read the leading decimal number of a cell ("12.50 USD" -> 12.5)."""
    if value is None:
        return None
    match = _FLOAT_PREFIX_RE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    return number if math.isfinite(number) else None


def parse_int_prefix(value: Optional[str]) -> Optional[int]:
    """
    Read the leading integer of a cell ("3.7" -> 3, "2 units" -> 2).

    Values outside the INTEGER column range count as unparseable.
    """
    if value is None:
        return None
    match = _INT_PREFIX_RE.match(value)
    if not match:
        return None
    number = int(match.group(1))
    return number if abs(number) <= MAX_INT_VALUE else None
