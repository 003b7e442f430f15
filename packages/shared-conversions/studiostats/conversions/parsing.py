"""Scalar parsing for loosely typed export values.

Export cells arrive as strings, numbers, pandas timestamps or NaN depending
on who produced the file. These helpers turn them into Python values and
return ``None`` (never raise) when a value cannot be read.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

import pandas as pd

TRUE_FLAGS = frozenset({"yes", "y", "true", "1"})

_AMOUNT_CHARS = re.compile(r"[^0-9.\-]+")
_DIGIT = re.compile(r"\d")


def is_missing(value: Any) -> bool:
    """Return True for None, NaN/NaT and blank strings."""
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def clean_text(value: Any) -> str:
    """Render a cell as trimmed text; missing cells become ``""``."""
    if is_missing(value):
        return ""
    return str(value).strip()


def parse_date(value: Any) -> datetime | None:
    """Parse a date/datetime cell.

    Timezone-aware values are converted to UTC and made naive so that all
    comparisons happen on one clock.

    Args:
        value: Raw cell (string, datetime, pandas Timestamp).

    Returns:
        Naive datetime, or None when missing or unreadable.
    """
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        parsed = pd.Timestamp(value)
    elif isinstance(value, str):
        # Relative words ("now", "today") would resolve to the clock time
        if not _DIGIT.search(value):
            return None
        parsed = pd.to_datetime(value.strip(), errors="coerce")
    else:
        return None

    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)
    return parsed.to_pydatetime()


def parse_amount(value: Any) -> float | None:
    """Parse a currency cell such as ``"₹1,250.00"`` or ``-50``.

    Everything except digits, ``.`` and ``-`` is stripped before parsing.

    Returns:
        The amount, or None when missing or unreadable.
    """
    if is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = _AMOUNT_CHARS.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_flag(value: Any) -> bool:
    """Parse a yes/no cell (``"YES"``, ``"true"``, ``1`` ...)."""
    if isinstance(value, bool):
        return value
    if is_missing(value):
        return False
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in TRUE_FLAGS


def format_currency(value: float, symbol: str = "₹") -> str:
    """Format an amount for explanation text, e.g. ``₹1,000.00``."""
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
