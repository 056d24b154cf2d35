"""
API settings using Pydantic for environment-based configuration.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API service configuration using Pydantic settings."""

    api_host: str = Field(default="0.0.0.0", description="API host address")
    api_port: int = Field(default=8000, description="API port number")
    log_level: str = Field(default="INFO", description="Logging level")

    exchange_rate_api_key: SecretStr | None = Field(
        default=None, description="Server-held key for the third-party rate API"
    )
    exchange_rate_api_url: str = Field(
        default="https://v6.exchangerate-api.com/v6",
        description="Third-party rate API base URL",
    )
    upstream_revalidate_seconds: float = Field(
        default=300, description="How long the proxy reuses an upstream answer"
    )
    upstream_timeout_seconds: float = Field(
        default=10, description="Deadline for a single upstream request"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


api_settings = APISettings()
