"""
Keystroke sanitizers for free-text numeric entry.

Every function here is total: any string (or None) maps to a defined output
and nothing is ever raised.
"""

import re
from dataclasses import dataclass
from typing import Final

from ..shared.constants import (
    PERCENT_MAX_DECIMAL_DIGITS,
    PERCENT_MAX_INTEGER_DIGITS,
    RATE_MAX_DECIMAL_DIGITS,
    RATE_MAX_INTEGER_DIGITS,
)
from .formatting import format_usd_grouping

_NON_DECIMAL_CHARS: Final[re.Pattern[str]] = re.compile(r"[^0-9.]")
_NON_DIGIT_CHARS: Final[re.Pattern[str]] = re.compile(r"[^0-9]")


@dataclass(frozen=True)
class UsdDisplay:
    """Comma-grouped display string together with its integer value."""

    display: str
    numeric: int


def _sanitize_decimal(raw: str | None, max_integer: int, max_decimal: int) -> str:
    if raw is None:
        return ""

    cleaned = _NON_DECIMAL_CHARS.sub("", str(raw))
    integer_part, dot, fraction = cleaned.partition(".")
    integer_part = integer_part[:max_integer]

    if not dot:
        return integer_part

    # Later dots are dropped, their digits stay in the fraction.
    fraction = fraction.replace(".", "")[:max_decimal]
    return f"{integer_part}.{fraction}"


def sanitize_rate_offered_input(raw: str | None) -> str:
    """
    Constrain a competitor rate entry.

    Only digits and a single decimal point survive; the integer part keeps at
    most three digits and the fraction at most four. A trailing point is kept
    so that in-progress typing such as ``"85."`` is not lost.
    """
    return _sanitize_decimal(raw, RATE_MAX_INTEGER_DIGITS, RATE_MAX_DECIMAL_DIGITS)


def sanitize_percentage_input(raw: str | None) -> str:
    """Constrain a platform fee percentage entry (e.g. ``"1.18"``)."""
    return _sanitize_decimal(
        raw, PERCENT_MAX_INTEGER_DIGITS, PERCENT_MAX_DECIMAL_DIGITS
    )


def sanitize_usd_display(raw: str | None) -> UsdDisplay:
    """
    Extract the integer USD amount from a display string.

    Commas, currency symbols and letters are ignored. Input without any digit
    yields an empty display and a zero value.
    """
    digits = _NON_DIGIT_CHARS.sub("", "" if raw is None else str(raw))
    if not digits:
        return UsdDisplay(display="", numeric=0)

    numeric = int(digits)
    return UsdDisplay(display=format_usd_grouping(numeric), numeric=numeric)
