"""
Safe numeric coercion and display formatting for rates and currency amounts.
"""

import math
from numbers import Real
from typing import Any

from babel.numbers import format_currency, format_decimal

from ..shared.constants import (
    CURRENCY_DECIMAL_PLACES,
    PLACEHOLDER,
    RATE_DECIMAL_PLACES,
    USD_PLACEHOLDER,
)


def to_number_safe(value: Any) -> float:
    """
    Convert arbitrary input to a finite float.

    Empty strings, None, non-numeric strings and non-finite numbers all
    collapse to NaN so that downstream math and formatting can recognise
    "cannot compute" without raising.
    """
    if value is None or isinstance(value, bool):
        return math.nan

    if isinstance(value, str):
        # Underscore digit separators are not numbers in user input.
        if not value.strip() or "_" in value:
            return math.nan
        try:
            number = float(value)
        except ValueError:
            return math.nan
    elif isinstance(value, Real):
        number = float(value)
    else:
        return math.nan

    return number if math.isfinite(number) else math.nan


def format_rate(value: Any, decimals: int = RATE_DECIMAL_PLACES) -> str:
    """Format a rate with a fixed number of decimals, or the placeholder."""
    number = to_number_safe(value)
    if math.isnan(number):
        return PLACEHOLDER
    return f"{number:.{decimals}f}"


def _format_money(number: float, currency: str, locale: str) -> str:
    # Rounding first keeps -0.001 from rendering as a negative zero.
    return format_currency(
        round(number, CURRENCY_DECIMAL_PLACES) or 0.0, currency, locale=locale
    )


def format_as_inr(value: Any) -> str:
    """Format an amount as rupees with South-Asian digit grouping."""
    number = to_number_safe(value)
    if math.isnan(number):
        return PLACEHOLDER
    return _format_money(number, "INR", "en_IN")


def format_as_usd(value: Any) -> str:
    """Format an amount as US dollars; invalid input renders as $0.00."""
    number = to_number_safe(value)
    if math.isnan(number):
        return USD_PLACEHOLDER
    return _format_money(number, "USD", "en_US")


def format_usd_grouping(value: int) -> str:
    """Group an integer USD amount the en-US way, e.g. 100000 -> 100,000."""
    return format_decimal(value, locale="en_US")
