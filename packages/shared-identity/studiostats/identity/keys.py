"""Identity keys used to match studio records across exports.

Clients, purchases and bookings come from separate exports that share no
primary key. They are matched on two weak identifiers:

- the client's email address, normalized to lowercase with surrounding
  whitespace removed
- the studio's member ID, compared as a trimmed string

Examples:
    >>> normalize_email("  Jane.Doe@Example.COM ")
    'jane.doe@example.com'
    >>> normalize_member_id(10423)
    '10423'
    >>> normalize_member_id(10423.0)
    '10423'
    >>> is_valid_email("jane@example.com")
    True
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

# Email validation pattern
# Matches: local-part@domain.tld
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class IdentityType(str, Enum):
    """Identifiers a record can be matched on."""

    EMAIL = "email"
    """Email address - primary key, normalized to lowercase"""

    MEMBER_ID = "member_id"
    """Studio member ID - secondary key, exact after trimming"""


def _is_missing(value: Any) -> bool:
    """Return True for None, NaN and blank strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def normalize_email(value: Any) -> str:
    """Normalize an email address for matching.

    Args:
        value: Raw email value from an export row.

    Returns:
        Lowercased, trimmed email, or an empty string when missing.
    """
    if _is_missing(value):
        return ""
    return str(value).strip().lower()


def normalize_member_id(value: Any) -> str:
    """Normalize a member ID for matching.

    Spreadsheet exports often turn numeric IDs into floats, so integral
    floats are rendered without the trailing ``.0``.

    Args:
        value: Raw member ID value from an export row.

    Returns:
        Trimmed member ID string, or an empty string when missing.
    """
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_valid_email(email: str) -> bool:
    """Check that a normalized email looks like ``local@domain.tld``."""
    return bool(EMAIL_PATTERN.match(email))
