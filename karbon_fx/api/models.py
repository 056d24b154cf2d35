"""
API-specific data models for the Karbon FX service.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
)

from ..calculator.models import ComparisonSummary
from ..rate_client.models import RateSource


class LiveRateResponse(BaseModel):
    """Model for the live-rate proxy response."""

    model_config = ConfigDict(validate_assignment=True)

    rate: Annotated[float, Field(gt=0, description="INR per USD")]
    timestamp: Annotated[datetime, Field(description="Upstream update time")]

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()


class FormattedRow(BaseModel):
    provider: str
    offered_rate: str
    markup_per_usd: str
    total_local: str
    savings: str
    is_best: bool


class CompareResponse(BaseModel):
    """Model for the provider comparison response."""

    rate_source: Annotated[RateSource, Field(description="Where the live rate came from")]
    summary: ComparisonSummary
    formatted: list[FormattedRow]


class ErrorResponse(BaseModel):
    """Model for error responses."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    error: Annotated[str, Field(description="Error code")]
    message: Annotated[str, Field(description="Human-readable error message")]
    details: Annotated[Any, Field(default=None, description="Upstream details")]
