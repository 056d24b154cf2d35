"""
Rate client settings using Pydantic for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..shared.constants import LIVE_RATE_FALLBACK


class RateClientSettings(BaseSettings):
    """Exchange-rate client configuration using Pydantic settings."""

    live_rate_url: str = Field(
        default="http://localhost:8000/api/live-rate",
        description="Same-origin proxy endpoint serving the live USD/INR rate",
    )

    cache_ttl_seconds: float = Field(
        default=300, description="How long a fetched rate is served without refetching"
    )

    request_timeout_seconds: float = Field(
        default=10, description="Deadline for a single request attempt"
    )

    max_retries: int = Field(default=3, ge=1, description="Attempts per fetch")

    retry_delay_base_seconds: float = Field(
        default=1.0, description="Backoff base; doubles after every failed attempt"
    )

    retry_delay_max_seconds: float = Field(
        default=10.0, description="Upper bound for a single backoff delay"
    )

    fallback_rate: float = Field(
        default=LIVE_RATE_FALLBACK,
        gt=0,
        description="Hardcoded rate used when no network data and no cache exist",
    )

    refetch_interval_seconds: float = Field(
        default=0, description="Background refresh interval, 0 disables it"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Create a global instance
rate_client_settings = RateClientSettings()
