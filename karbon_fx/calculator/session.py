"""
Headless calculator session.

Wires keystrokes through the sanitizers into field state, debounces the
commits and recomputes the provider comparison against the latest rate.
"""

import logging
import math
from collections.abc import Callable

from ..rate_client.models import ExchangeRate
from ..rate_client.watcher import RateWatcher
from ..shared.constants import (
    AMOUNT_DEBOUNCE_SECONDS,
    DEFAULT_BANK_RATE,
    DEFAULT_PAYPAL_RATE,
    DEFAULT_USD,
    LIVE_RATE_FALLBACK,
    RATE_DEBOUNCE_SECONDS,
)
from .comparison import compare_providers
from .debounce import DebouncedCommit
from .formatting import format_as_inr, format_rate, to_number_safe
from .inputs import PercentageField, RateField, UsdAmountField
from .models import ComparisonSummary, ProviderId, ProviderQuote
from .validators import require_valid_amount, require_valid_rate

SummaryListener = Callable[[ComparisonSummary], None]

logger = logging.getLogger(__name__)


class CalculatorSession:
    """
    Comparison state for one calculator instance.

    Field echoes (display strings, sanitized text) update on every keystroke;
    the comparison itself only updates after the debounce quiet period or
    when the watcher publishes a new rate.
    """

    def __init__(
        self,
        watcher: RateWatcher,
        *,
        initial_amount: int = DEFAULT_USD,
        bank_rate: str = str(DEFAULT_BANK_RATE),
        paypal_rate: str = str(DEFAULT_PAYPAL_RATE),
        platform_fee: str = "0",
        include_fees: bool = False,
        amount_delay: float = AMOUNT_DEBOUNCE_SECONDS,
        rate_delay: float = RATE_DEBOUNCE_SECONDS,
    ) -> None:
        require_valid_amount(initial_amount)
        require_valid_rate(bank_rate, field="bank_rate")
        require_valid_rate(paypal_rate, field="paypal_rate")

        self.watcher = watcher
        self.include_fees = include_fees
        self.amount = UsdAmountField(initial_amount)
        self.rates: dict[ProviderId, RateField] = {
            ProviderId.BANK: RateField(bank_rate),
            ProviderId.PAYPAL: RateField(paypal_rate),
        }
        self.platform_fee = PercentageField(platform_fee)
        self.bank_charges: float = 0.0

        self._committed_amount: float = float(self.amount.numeric)
        self._committed_rates: dict[ProviderId, float] = {
            pid: field.value for pid, field in self.rates.items()
        }
        self._amount_commit: DebouncedCommit[float] = DebouncedCommit(
            amount_delay, self._commit_amount
        )
        self._rate_commit: DebouncedCommit[dict[ProviderId, float]] = DebouncedCommit(
            rate_delay, self._commit_rates
        )
        self._listeners: list[SummaryListener] = []
        self.summary: ComparisonSummary = self._compute()
        self._unsubscribe = watcher.subscribe(self._on_rate)

    @property
    def live_rate(self) -> float:
        rate = self.watcher.rate
        return rate.rate if rate is not None else LIVE_RATE_FALLBACK

    def subscribe(self, callback: SummaryListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def change_amount(self, raw: str) -> str:
        """Echo a USD keystroke and schedule a recalculation."""
        self.amount.on_change(raw)
        self._amount_commit.push(float(self.amount.numeric))
        return self.amount.display

    def blur_amount(self) -> str | None:
        """Clamp the amount and recalculate immediately."""
        self.amount.on_blur()
        self._amount_commit.push(float(self.amount.numeric))
        self._amount_commit.flush()
        return self.amount.error

    def change_rate(self, provider_id: ProviderId, raw: str) -> str:
        """Echo a rate keystroke and schedule a recalculation."""
        text = self.rates[provider_id].on_change(raw)
        self._rate_commit.push({pid: f.value for pid, f in self.rates.items()})
        return text

    def blur_rate(self, provider_id: ProviderId) -> str | None:
        """Validate a rate and recalculate any pending edit immediately."""
        error = self.rates[provider_id].on_blur()
        self._rate_commit.flush()
        return error

    def change_platform_fee(self, raw: str) -> str:
        text = self.platform_fee.on_change(raw)
        self._recalculate()
        return text

    def blur_platform_fee(self) -> str:
        text = self.platform_fee.on_blur()
        self._recalculate()
        return text

    def set_bank_charges(self, raw: str) -> None:
        charges = to_number_safe(raw)
        self.bank_charges = charges if not math.isnan(charges) else 0.0
        self._recalculate()

    def _commit_amount(self, amount: float) -> None:
        self._committed_amount = amount
        self._recalculate()

    def _commit_rates(self, rates: dict[ProviderId, float]) -> None:
        self._committed_rates = rates
        self._recalculate()

    def _on_rate(self, rate: ExchangeRate) -> None:
        logger.debug(f"Recalculating for new live rate {rate.rate} ({rate.source})")
        self._recalculate()

    def _compute(self) -> ComparisonSummary:
        quotes = [
            ProviderQuote.competitor(pid, rate)
            for pid, rate in self._committed_rates.items()
        ]
        return compare_providers(
            self._committed_amount,
            self.live_rate,
            quotes,
            platform_fee_percent=self.platform_fee.value,
            include_fees=self.include_fees,
            bank_user_charges=self.bank_charges,
        )

    def _recalculate(self) -> None:
        self.summary = self._compute()
        for callback in list(self._listeners):
            try:
                callback(self.summary)
            except Exception as e:
                logger.error(f"Error in summary listener: {e}", exc_info=e)

    def formatted_rows(self) -> list[dict[str, str | bool]]:
        """Display strings for every provider row of the current summary."""
        return [
            {
                "provider": str(result.provider_id),
                "offered_rate": format_rate(result.offered_rate),
                "markup_per_usd": format_rate(result.markup_per_usd),
                "total_local": format_as_inr(result.total_local),
                "savings": format_as_inr(result.savings_vs_reference),
                "is_best": result.is_best,
            }
            for result in self.summary.results
        ]

    def close(self) -> None:
        """Cancel pending commits and detach from the watcher."""
        self._amount_commit.cancel()
        self._rate_commit.cancel()
        self._unsubscribe()
        self._listeners.clear()
