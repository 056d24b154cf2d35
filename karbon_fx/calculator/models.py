"""
Data models for provider quotes and comparison results.
"""

from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProviderId(StrEnum):
    KARBON = "karbon"
    BANK = "bank"
    PAYPAL = "paypal"
    CUSTOM = "custom"


# Stable ordering used for display and for best-alternative tie-breaks.
PROVIDER_ORDER: tuple[ProviderId, ...] = (
    ProviderId.KARBON,
    ProviderId.BANK,
    ProviderId.PAYPAL,
    ProviderId.CUSTOM,
)


class ProviderQuote(BaseModel):
    """A provider's offered USD/INR rate."""

    model_config = ConfigDict(frozen=True)

    provider_id: Annotated[ProviderId, Field(description="Provider identifier")]
    offered_rate: Annotated[float, Field(description="INR per USD, may be NaN")]
    is_editable: Annotated[bool, Field(description="Whether the user can edit it")]

    @model_validator(mode="after")
    def reference_is_read_only(self) -> Self:
        if self.provider_id is ProviderId.KARBON and self.is_editable:
            raise ValueError("the karbon quote tracks the live rate and is read-only")
        return self

    @classmethod
    def reference(cls, live_rate: float) -> "ProviderQuote":
        """Zero-markup quote at the live rate."""
        return cls(
            provider_id=ProviderId.KARBON, offered_rate=live_rate, is_editable=False
        )

    @classmethod
    def competitor(cls, provider_id: ProviderId, offered_rate: float) -> "ProviderQuote":
        return cls(provider_id=provider_id, offered_rate=offered_rate, is_editable=True)


class ConversionResult(BaseModel):
    """Derived per-provider figures; recomputed on every input change."""

    model_config = ConfigDict(frozen=True)

    provider_id: ProviderId
    offered_rate: float
    markup_per_usd: Annotated[float, Field(description="Live minus offered rate")]
    total_markup: Annotated[float, Field(description="Markup over the amount")]
    total_local: Annotated[float, Field(description="INR received, net of fees")]
    fee_local: Annotated[float, Field(default=0.0, description="Fees in INR")]
    savings_vs_reference: Annotated[
        float, Field(description="Reference total minus this provider's total")
    ]
    is_best: bool = False


class PlatformFee(BaseModel):
    model_config = ConfigDict(frozen=True)

    percentage: float
    amount: float
    description: str


class ComparisonSummary(BaseModel):
    """Full comparison for one USD amount against the live rate."""

    model_config = ConfigDict(frozen=True)

    usd_amount: float
    live_rate: float
    gross_local: float
    platform_fee: PlatformFee
    reference_total: float
    results: list[ConversionResult]
    best_provider: ProviderId | None = None

    def result_for(self, provider_id: ProviderId) -> ConversionResult | None:
        return next((r for r in self.results if r.provider_id is provider_id), None)
