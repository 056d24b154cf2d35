"""
Provider fee models.

PayPal charges a percentage plus fixed transaction fee and a conversion fee,
both in USD, which are converted at the live rate. Banks charge a fixed USD
withdrawal fee converted at the bank's own rate, plus whatever flat INR
charges the user enters.
"""

import math
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from ..shared.constants import (
    BANK_WITHDRAWAL_FEE_USD,
    PAYPAL_CONVERSION_FEE_PERCENT,
    PAYPAL_TRANSACTION_FEE_FIXED_USD,
    PAYPAL_TRANSACTION_FEE_PERCENT,
)
from .calculations import calculate_total_local


class PayPalFees(BaseModel):
    """PayPal fee breakdown for one transaction."""

    model_config = ConfigDict(frozen=True)

    transaction_fee_usd: Annotated[float, Field(description="4.4% + $0.30")]
    conversion_fee_usd: Annotated[float, Field(description="4% conversion fee")]
    total_fee_usd: float
    total_fee_local: Annotated[float, Field(description="Total fee in INR")]


class BankFees(BaseModel):
    """Bank fee breakdown for one transaction."""

    model_config = ConfigDict(frozen=True)

    withdrawal_fee_local: Annotated[float, Field(description="Fixed fee in INR")]
    user_charges_local: Annotated[float, Field(description="User-entered INR")]
    total_fee_local: float


def paypal_fees(usd_amount: float, live_rate: float) -> PayPalFees:
    transaction_fee = (
        PAYPAL_TRANSACTION_FEE_PERCENT * usd_amount + PAYPAL_TRANSACTION_FEE_FIXED_USD
    )
    conversion_fee = PAYPAL_CONVERSION_FEE_PERCENT * usd_amount
    total_fee_usd = transaction_fee + conversion_fee
    return PayPalFees(
        transaction_fee_usd=transaction_fee,
        conversion_fee_usd=conversion_fee,
        total_fee_usd=total_fee_usd,
        total_fee_local=calculate_total_local(total_fee_usd, live_rate),
    )


def paypal_net_total(usd_amount: float, live_rate: float) -> float:
    """INR received through PayPal after its fees."""
    gross = calculate_total_local(usd_amount, live_rate)
    return gross - paypal_fees(usd_amount, live_rate).total_fee_local


def bank_fees(
    usd_amount: float, bank_rate: float, user_charges: float = 0.0
) -> BankFees:
    withdrawal_fee = calculate_total_local(BANK_WITHDRAWAL_FEE_USD, bank_rate)
    # Invalid charges count as no charge.
    charges = user_charges if math.isfinite(user_charges) else 0.0
    return BankFees(
        withdrawal_fee_local=withdrawal_fee,
        user_charges_local=charges,
        total_fee_local=withdrawal_fee + charges,
    )


def bank_net_total(
    usd_amount: float, bank_rate: float, user_charges: float = 0.0
) -> float:
    """INR received through the bank after its withdrawal fee and charges."""
    gross = calculate_total_local(usd_amount, bank_rate)
    return gross - bank_fees(usd_amount, bank_rate, user_charges).total_fee_local
