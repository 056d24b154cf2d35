"""
Provider comparison against the zero-markup reference rate.
"""

import logging
import math
from collections.abc import Iterable, Sequence

from ..shared.constants import PLATFORM_FEE_MAX, PLATFORM_FEE_MIN
from ..shared.errors import CalculationError
from .calculations import (
    calculate_markup_per_usd,
    calculate_savings,
    calculate_total_local,
    calculate_total_markup,
    clamp,
)
from .fees import bank_fees, paypal_fees
from .models import (
    PROVIDER_ORDER,
    ComparisonSummary,
    ConversionResult,
    PlatformFee,
    ProviderId,
    ProviderQuote,
)

logger = logging.getLogger(__name__)


def platform_fee(gross_local: float, percentage: float) -> PlatformFee:
    """Karbon's percentage fee on the gross INR amount, clamped to its limits."""
    if math.isfinite(percentage):
        pct = clamp(percentage, PLATFORM_FEE_MIN, PLATFORM_FEE_MAX)
    else:
        pct = PLATFORM_FEE_MIN
    amount = gross_local * pct / 100 if math.isfinite(gross_local) else math.nan
    return PlatformFee(
        percentage=pct, amount=amount, description=f"{pct:g}% Platform Fee"
    )


def build_result(
    quote: ProviderQuote,
    usd_amount: float,
    live_rate: float,
    reference_total: float,
    *,
    include_fees: bool = False,
    bank_user_charges: float = 0.0,
) -> ConversionResult:
    """Compute the figures for a single provider quote."""
    markup = calculate_markup_per_usd(live_rate, quote.offered_rate)
    gross = calculate_total_local(usd_amount, quote.offered_rate)
    fee_local = 0.0

    if include_fees and quote.provider_id is ProviderId.PAYPAL:
        # PayPal converts at the live rate and recovers its margin through fees.
        fees = paypal_fees(usd_amount, live_rate)
        gross = calculate_total_local(usd_amount, live_rate)
        fee_local = fees.total_fee_local
    elif include_fees and quote.provider_id is ProviderId.BANK:
        fee_local = bank_fees(
            usd_amount, quote.offered_rate, bank_user_charges
        ).total_fee_local

    total_local = gross - fee_local
    return ConversionResult(
        provider_id=quote.provider_id,
        offered_rate=quote.offered_rate,
        markup_per_usd=markup,
        total_markup=calculate_total_markup(markup, usd_amount),
        total_local=total_local,
        fee_local=fee_local,
        savings_vs_reference=calculate_savings(reference_total, total_local),
    )


def _best_index(results: Sequence[ConversionResult]) -> int | None:
    best: int | None = None
    for index, result in enumerate(results):
        if result.provider_id is ProviderId.KARBON:
            continue
        savings = result.savings_vs_reference
        if not math.isfinite(savings) or savings <= 0:
            continue
        if best is None or savings > results[best].savings_vs_reference:
            best = index
    return best


def select_best_alternative(
    results: Iterable[ConversionResult],
) -> ProviderId | None:
    """
    Pick the competitor the reference beats by the widest positive margin.

    The karbon reference itself is never a candidate. When no competitor has
    positive savings nothing is selected; ties go to the first result in the
    given order.
    """
    results = list(results)
    best = _best_index(results)
    return results[best].provider_id if best is not None else None


def _order_key(quote: ProviderQuote) -> int:
    return PROVIDER_ORDER.index(quote.provider_id)


def compare_providers(
    usd_amount: float,
    live_rate: float,
    quotes: Sequence[ProviderQuote],
    *,
    platform_fee_percent: float = 0.0,
    include_fees: bool = False,
    bank_user_charges: float = 0.0,
) -> ComparisonSummary:
    """
    Compare competitor quotes with the zero-markup reference.

    Args:
        usd_amount: Amount being converted
        live_rate: Current live USD/INR rate (the karbon rate)
        quotes: Competitor quotes; a karbon quote here is rejected
        platform_fee_percent: Karbon platform fee deducted from the reference
        include_fees: Apply the PayPal and bank fee models
        bank_user_charges: Extra flat INR charges entered for the bank

    Returns:
        ComparisonSummary with the reference row first and competitors in
        stable provider order

    Raises:
        CalculationError: If a karbon quote is passed among the competitors
    """
    if any(q.provider_id is ProviderId.KARBON for q in quotes):
        raise CalculationError(
            "karbon is the reference and cannot be compared against itself",
            details={"providers": [str(q.provider_id) for q in quotes]},
        )

    gross_local = calculate_total_local(usd_amount, live_rate)
    fee = platform_fee(gross_local, platform_fee_percent)
    reference_total = gross_local - fee.amount

    reference_markup = calculate_markup_per_usd(live_rate, live_rate)
    reference = ConversionResult(
        provider_id=ProviderId.KARBON,
        offered_rate=live_rate,
        markup_per_usd=reference_markup,
        total_markup=calculate_total_markup(reference_markup, usd_amount),
        total_local=reference_total,
        fee_local=fee.amount,
        savings_vs_reference=calculate_savings(reference_total, reference_total),
    )

    competitors = [
        build_result(
            quote,
            usd_amount,
            live_rate,
            reference_total,
            include_fees=include_fees,
            bank_user_charges=bank_user_charges,
        )
        for quote in sorted(quotes, key=_order_key)
    ]

    best_index = _best_index(competitors)
    best = competitors[best_index].provider_id if best_index is not None else None
    results = [reference] + [
        r.model_copy(update={"is_best": True}) if i == best_index else r
        for i, r in enumerate(competitors)
    ]

    logger.debug(
        f"Compared {len(competitors)} providers for {usd_amount} USD at {live_rate}, "
        f"best={best}"
    )
    return ComparisonSummary(
        usd_amount=usd_amount,
        live_rate=live_rate,
        gross_local=gross_local,
        platform_fee=fee,
        reference_total=reference_total,
        results=results,
        best_provider=best,
    )
