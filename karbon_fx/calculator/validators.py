"""
Domain validation for committed input values.
"""

import math
from typing import Any

from ..shared.constants import (
    MAX_USD,
    MAX_VALID_RATE,
    MESSAGE_AMOUNT_INVALID,
    MESSAGE_AMOUNT_TOO_HIGH,
    MESSAGE_AMOUNT_TOO_LOW,
    MESSAGE_PERCENT_INVALID,
    MESSAGE_RATE_INVALID,
    MIN_USD,
    PLATFORM_FEE_MAX,
    PLATFORM_FEE_MIN,
)
from ..shared.errors import InputValidationError
from .formatting import to_number_safe


def validate_amount(amount: Any) -> bool:
    value = to_number_safe(amount)
    return not math.isnan(value) and MIN_USD <= value <= MAX_USD


def validate_rate(rate: Any) -> bool:
    value = to_number_safe(rate)
    return not math.isnan(value) and 0 < value < MAX_VALID_RATE


def validate_percentage(percentage: Any) -> bool:
    value = to_number_safe(percentage)
    return not math.isnan(value) and PLATFORM_FEE_MIN <= value <= PLATFORM_FEE_MAX


def get_error_message(field: str, value: Any) -> str | None:
    """
    Return the inline message for an invalid field value.

    Args:
        field: One of "amount", "rate" or "percentage"
        value: Raw or numeric value of the field

    Returns:
        The message to show on blur, or None when the value is acceptable or
        the field is unknown
    """
    match field:
        case "amount":
            if validate_amount(value):
                return None
            number = to_number_safe(value)
            if math.isnan(number):
                return MESSAGE_AMOUNT_INVALID
            return MESSAGE_AMOUNT_TOO_LOW if number < MIN_USD else MESSAGE_AMOUNT_TOO_HIGH
        case "rate":
            return None if validate_rate(value) else MESSAGE_RATE_INVALID
        case "percentage":
            return None if validate_percentage(value) else MESSAGE_PERCENT_INVALID
        case _:
            return None


def require_valid_amount(amount: Any) -> float:
    """Return the amount as a float or raise InputValidationError."""
    if message := get_error_message("amount", amount):
        raise InputValidationError(
            f"Invalid USD amount: {amount!r}", details={"field": "amount"},
            user_message=message,
        )
    return to_number_safe(amount)


def require_valid_rate(rate: Any, field: str = "rate") -> float:
    """Return the rate as a float or raise InputValidationError."""
    if message := get_error_message("rate", rate):
        raise InputValidationError(
            f"Invalid rate for {field}: {rate!r}", details={"field": field},
            user_message=message,
        )
    return to_number_safe(rate)
