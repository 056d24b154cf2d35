"""
Rate snapshot models for the exchange-rate client.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer

RateSource = Literal["api", "cache", "fallback"]


class RateState(StrEnum):
    """Lifecycle of the single cached rate value."""

    EMPTY = "empty"
    FETCHING = "fetching"
    FRESH = "fresh"
    STALE = "stale"
    FALLBACK = "fallback"


class ExchangeRate(BaseModel):
    """Immutable USD/INR snapshot; each fetch produces a new one."""

    model_config = ConfigDict(frozen=True)

    rate: Annotated[float, Field(gt=0, allow_inf_nan=False, description="INR per USD")]
    timestamp: Annotated[datetime, Field(description="When the rate was published")]
    source: Annotated[RateSource, Field(description="Where the snapshot came from")]
    is_stale: Annotated[bool, Field(description="Served after its TTL expired")] = False

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()


class LiveRatePayload(BaseModel):
    """Body returned by the live-rate proxy endpoint."""

    model_config = ConfigDict(extra="ignore")

    rate: Annotated[float, Field(gt=0, strict=True, allow_inf_nan=False)]
    timestamp: datetime | None = None


class CacheInfo(BaseModel):
    cached: bool
    age_seconds: float
    is_stale: bool
