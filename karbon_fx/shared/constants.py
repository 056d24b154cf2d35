"""
Shared domain constants for the Karbon FX comparison core.
"""

from typing import Final

# Transaction amount limits (USD)
MIN_USD: Final[int] = 100
MAX_USD: Final[int] = 100_000
DEFAULT_USD: Final[int] = 1000

# Karbon platform fee (percent of the gross INR amount)
PLATFORM_FEE_MIN: Final[float] = 0.0
PLATFORM_FEE_MAX: Final[float] = 10.0
PLATFORM_FEE_DEFAULT: Final[float] = 1.18

# Illustrative competitor seeds, not live data
DEFAULT_BANK_RATE: Final[float] = 85.1718
DEFAULT_PAYPAL_RATE: Final[float] = 85.3107

# Last-resort USD/INR rate when neither the network nor the cache can help
LIVE_RATE_FALLBACK: Final[float] = 84.5

# Sanity band for USD/INR; rates outside are logged, not rejected
MIN_REASONABLE_RATE: Final[float] = 60.0
MAX_REASONABLE_RATE: Final[float] = 120.0

# Upper bound accepted for a user-entered competitor rate
MAX_VALID_RATE: Final[float] = 200.0

# PayPal fee model
PAYPAL_TRANSACTION_FEE_PERCENT: Final[float] = 0.044
PAYPAL_TRANSACTION_FEE_FIXED_USD: Final[float] = 0.30
PAYPAL_CONVERSION_FEE_PERCENT: Final[float] = 0.04

# Bank fee model
BANK_WITHDRAWAL_FEE_USD: Final[float] = 0.99

# Text entry limits
RATE_MAX_INTEGER_DIGITS: Final[int] = 3
RATE_MAX_DECIMAL_DIGITS: Final[int] = 4
PERCENT_MAX_INTEGER_DIGITS: Final[int] = 2
PERCENT_MAX_DECIMAL_DIGITS: Final[int] = 2

RATE_DECIMAL_PLACES: Final[int] = 4
CURRENCY_DECIMAL_PLACES: Final[int] = 2

# Quiet periods before a debounced commit (seconds)
AMOUNT_DEBOUNCE_SECONDS: Final[float] = 0.15
RATE_DEBOUNCE_SECONDS: Final[float] = 0.2

PLACEHOLDER: Final[str] = "—"
USD_PLACEHOLDER: Final[str] = "$0.00"

MESSAGE_AMOUNT_TOO_LOW: Final[str] = f"Minimum is ${MIN_USD:,}"
MESSAGE_AMOUNT_TOO_HIGH: Final[str] = f"Maximum is ${MAX_USD:,}"
MESSAGE_AMOUNT_INVALID: Final[str] = "Please enter a valid amount"
MESSAGE_RATE_INVALID: Final[str] = "A valid rate is required."
MESSAGE_PERCENT_INVALID: Final[str] = (
    f"Please enter a valid percentage ({PLATFORM_FEE_MIN:g}-{PLATFORM_FEE_MAX:g}%)"
)
