"""
Client for the third-party exchange-rate API used by the live-rate proxy.
"""

import logging
import math
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiohttp

from .models import LiveRateResponse
from .settings import APISettings, api_settings

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Failure talking to the third-party API, mapped to an HTTP status."""

    def __init__(self, status_code: int, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


class UpstreamRateProvider:
    """Fetch USD/INR from the third-party API, reusing answers for a while."""

    def __init__(
        self,
        settings: APISettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or api_settings
        self._clock = clock
        self._cached: LiveRateResponse | None = None
        self._cached_at: float = 0.0

    def _url(self) -> str:
        key = self.settings.exchange_rate_api_key
        if key is None or not key.get_secret_value():
            raise UpstreamError(500, "API key is not configured.")
        base = self.settings.exchange_rate_api_url.rstrip("/")
        return f"{base}/{key.get_secret_value()}/latest/USD"

    def clear(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    async def get_live_rate(self) -> LiveRateResponse:
        """
        Return the current USD/INR rate.

        Raises:
            UpstreamError: 500 when the key is missing or the call fails
                unexpectedly, 502 when the upstream answer is unusable
        """
        url = self._url()

        if (
            self._cached is not None
            and self._clock() - self._cached_at < self.settings.upstream_revalidate_seconds
        ):
            return self._cached

        timeout = aiohttp.ClientTimeout(total=self.settings.upstream_timeout_seconds)
        try:
            async with (
                aiohttp.ClientSession() as session,
                session.get(url, timeout=timeout) as response,
            ):
                if response.status >= 400:
                    try:
                        error_data = await response.json(content_type=None)
                    except ValueError:
                        error_data = {}
                    raise UpstreamError(
                        502,
                        "Failed to fetch live rate from external API.",
                        details=error_data,
                    )
                data = await response.json(content_type=None)
        except UpstreamError:
            raise
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.error(f"Error calling exchange rate API: {e}")
            raise UpstreamError(500, "An internal server error occurred.") from e

        live_rate = self._parse(data)
        self._cached = live_rate
        self._cached_at = self._clock()
        logger.info(f"Fetched upstream USD/INR rate {live_rate.rate}")
        return live_rate

    @staticmethod
    def _parse(data: Any) -> LiveRateResponse:
        if not isinstance(data, dict):
            raise UpstreamError(502, "External API returned an unexpected payload.")

        if data.get("result") == "error":
            raise UpstreamError(
                502,
                "External API returned an error.",
                details=data.get("error-type"),
            )

        inr_rate = (data.get("conversion_rates") or {}).get("INR")
        if (
            not isinstance(inr_rate, (int, float))
            or not math.isfinite(inr_rate)
            or inr_rate <= 0
        ):
            raise UpstreamError(502, "INR rate not found in API response.")

        updated_unix = data.get("time_last_update_unix")
        timestamp = (
            datetime.fromtimestamp(updated_unix, UTC)
            if isinstance(updated_unix, (int, float))
            else datetime.now(UTC)
        )
        return LiveRateResponse(rate=float(inr_rate), timestamp=timestamp)
