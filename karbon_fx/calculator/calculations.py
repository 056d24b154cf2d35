"""
Pure conversion math.

All functions propagate NaN for inputs outside their domain instead of
raising or clamping to zero, so the formatting layer can render a
placeholder rather than a misleading number.
"""

import math


def _finite(*values: float) -> bool:
    return all(isinstance(v, (int, float)) and math.isfinite(v) for v in values)


def calculate_markup_per_usd(live_rate: float, offered_rate: float) -> float:
    """
    Per-USD difference between the live rate and a provider's rate.

    Positive means the provider pays out less than the live rate; negative
    means the offered rate is better than live. Both rates must be finite and
    strictly positive.
    """
    if not _finite(live_rate, offered_rate) or live_rate <= 0 or offered_rate <= 0:
        return math.nan
    return live_rate - offered_rate


def calculate_total_local(usd_amount: float, rate: float) -> float:
    """INR received for ``usd_amount`` at ``rate``; zero is a valid amount."""
    if not _finite(usd_amount, rate) or usd_amount < 0 or rate < 0:
        return math.nan
    return usd_amount * rate


def calculate_savings(reference_total: float, provider_total: float) -> float:
    """Reference total minus provider total; may be negative."""
    if not _finite(reference_total, provider_total):
        return math.nan
    return reference_total - provider_total


def calculate_total_markup(markup_per_usd: float, usd_amount: float) -> float:
    """Markup cost over the whole transaction, in INR."""
    if not _finite(markup_per_usd, usd_amount):
        return math.nan
    return markup_per_usd * usd_amount


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def is_within_bounds(value: float, lower: float, upper: float) -> bool:
    return _finite(value) and lower <= value <= upper
