"""
Exchange-rate client for the live USD/INR rate.

Fetches the rate from the same-origin proxy with a single in-memory cache
entry, retries with capped exponential backoff, per-attempt timeouts, a
stale-cache fallback and a hardcoded last-resort rate.
"""

import logging
import time
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Final

import aiohttp
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..shared.constants import MAX_REASONABLE_RATE, MIN_REASONABLE_RATE
from ..shared.errors import (
    ApiError,
    FxError,
    NetworkError,
    RateFetchError,
    RateTimeoutError,
)
from .models import CacheInfo, ExchangeRate, LiveRatePayload, RateState
from .settings import RateClientSettings, rate_client_settings

REQUEST_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}

RateListener = Callable[[ExchangeRate], None]

logger = logging.getLogger(__name__)


class ExchangeRateService:
    """
    Owner of the current USD/INR rate.

    One instance is meant to live for the whole application; it holds the
    only cache entry and the subscriber list. ``fetch_live_rate`` never
    raises: after retries and cache fallback are exhausted it resolves with
    the hardcoded rate and records the failure in ``last_error``.
    """

    def __init__(
        self,
        settings: RateClientSettings | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the service.

        Args:
            settings: Client configuration, defaults to environment settings
            session: Optional shared aiohttp session; a short-lived session is
                opened per request when omitted
            clock: Monotonic clock used for cache ageing
        """
        self.settings = settings or rate_client_settings
        self._session = session
        self._clock = clock
        self._cache: ExchangeRate | None = None
        self._cached_at: float = 0.0
        self._listeners: list[RateListener] = []
        self._state = RateState.EMPTY
        self._last_error: FxError | None = None
        self._issued_seq = 0
        self._committed_seq = 0

    @property
    def state(self) -> RateState:
        return self._state

    @property
    def last_error(self) -> FxError | None:
        """Error behind the most recent stale or fallback resolution."""
        return self._last_error

    def subscribe(self, callback: RateListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, rate: ExchangeRate) -> None:
        for callback in list(self._listeners):
            try:
                callback(rate)
            except Exception as e:
                logger.error(f"Error in rate update callback: {e}", exc_info=e)

    async def fetch_live_rate(
        self, *, use_cache: bool = True, fallback_to_cache: bool = True
    ) -> ExchangeRate:
        """
        Resolve the current USD/INR rate.

        Args:
            use_cache: Serve an unexpired cached rate without a network call
            fallback_to_cache: Serve an expired cached rate when every attempt
                fails

        Returns:
            ExchangeRate from the API, the cache, or the hardcoded fallback
        """
        if use_cache and (cached := self._get_cached_rate()):
            return cached

        self._issued_seq += 1
        seq = self._issued_seq
        self._state = RateState.FETCHING

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_retries),
            wait=self._backoff(),
            retry=retry_if_exception_type(FxError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    rate = await self._make_request()
        except FxError as e:
            logger.warning(
                f"All {self.settings.max_retries} attempts to fetch live rate "
                f"failed: {e}"
            )
            return self._resolve_failure(seq, e, fallback_to_cache)

        return self._commit(seq, rate)

    def _backoff(self) -> wait_exponential:
        return wait_exponential(
            multiplier=self.settings.retry_delay_base_seconds,
            max=self.settings.retry_delay_max_seconds,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.settings.max_retries} "
            f"to fetch live rate failed: {error}, retrying in "
            f"{retry_state.next_action.sleep:.2f}s"
        )

    def _commit(self, seq: int, rate: ExchangeRate) -> ExchangeRate:
        if seq < self._committed_seq and self._cache is not None:
            logger.debug(f"Discarding superseded rate response #{seq}")
            return self._cache

        self._cache = rate
        self._cached_at = self._clock()
        self._committed_seq = seq
        self._state = RateState.FRESH
        self._last_error = None
        self._notify(rate)
        return rate

    def _resolve_failure(
        self, seq: int, error: FxError | None, fallback_to_cache: bool
    ) -> ExchangeRate:
        if seq < self._committed_seq and self._cache is not None:
            # A newer fetch already succeeded while this one was retrying.
            return self._cache

        self._last_error = error or RateFetchError("Failed to fetch live rate")

        if fallback_to_cache and self._cache is not None:
            logger.warning("Using stale cached rate due to fetch failure")
            stale = self._cache.model_copy(update={"is_stale": True, "source": "cache"})
            self._state = RateState.STALE
            self._notify(stale)
            return stale

        logger.error(
            f"Using hardcoded fallback rate {self.settings.fallback_rate} "
            f"due to all failures: {self._last_error}"
        )
        fallback = self.fallback_rate()
        self._state = RateState.FALLBACK
        self._notify(fallback)
        return fallback

    def fallback_rate(self) -> ExchangeRate:
        return ExchangeRate(
            rate=self.settings.fallback_rate,
            timestamp=datetime.now(UTC),
            source="fallback",
        )

    def _get_cached_rate(self) -> ExchangeRate | None:
        if self._cache is None:
            return None
        if self._clock() - self._cached_at < self.settings.cache_ttl_seconds:
            return self._cache.model_copy(update={"source": "cache", "is_stale": False})
        return None

    @asynccontextmanager
    async def _client_session(self) -> AsyncGenerator[aiohttp.ClientSession, None]:
        """Yield the shared session, or a short-lived one closed on exit."""
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession() as session:
            yield session

    async def _make_request(self) -> ExchangeRate:
        """Perform one bounded request attempt against the proxy endpoint."""
        url = self.settings.live_rate_url
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout_seconds)

        try:
            async with (
                self._client_session() as session,
                session.get(url, timeout=timeout, headers=REQUEST_HEADERS) as response,
            ):
                if response.status != 200:
                    raise ApiError(
                        f"HTTP {response.status}: {response.reason}",
                        details={
                            "status": response.status,
                            "data": await self._read_error_body(response),
                        },
                        user_message=(
                            "Unable to fetch current exchange rates "
                            f"({response.status})"
                        ),
                    )

                try:
                    payload = LiveRatePayload.model_validate(
                        await response.json(content_type=None)
                    )
                except (ValueError, ValidationError) as e:
                    raise ApiError(
                        "Invalid rate data received from API",
                        details=str(e),
                        user_message="Received invalid exchange rate data",
                    ) from e

        except FxError:
            raise
        except TimeoutError as e:
            raise RateTimeoutError(
                f"Request timeout after {self.settings.request_timeout_seconds}s",
                details={"timeout": self.settings.request_timeout_seconds},
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(
                "Failed to fetch exchange rate",
                details=str(e),
                user_message="Network error. Please check your connection.",
            ) from e

        if not self.is_rate_reasonable(payload.rate):
            logger.warning(
                f"Live rate {payload.rate} is outside the expected "
                f"{MIN_REASONABLE_RATE}-{MAX_REASONABLE_RATE} band"
            )

        return ExchangeRate(
            rate=payload.rate,
            timestamp=payload.timestamp or datetime.now(UTC),
            source="api",
        )

    @staticmethod
    async def _read_error_body(response: aiohttp.ClientResponse) -> object:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return {}

    @staticmethod
    def is_rate_reasonable(rate: float) -> bool:
        """Check a USD/INR rate against the sanity band."""
        return MIN_REASONABLE_RATE <= rate <= MAX_REASONABLE_RATE

    def clear_cache(self) -> None:
        """Forget the cached rate so the next fetch goes to the network."""
        self._cache = None
        self._cached_at = 0.0
        self._state = RateState.EMPTY

    def cache_info(self) -> CacheInfo:
        if self._cache is None:
            return CacheInfo(cached=False, age_seconds=0.0, is_stale=False)
        age = self._clock() - self._cached_at
        return CacheInfo(
            cached=True,
            age_seconds=age,
            is_stale=age >= self.settings.cache_ttl_seconds,
        )

    async def force_fresh(self) -> ExchangeRate:
        """Clear the cache and fetch from the network."""
        self.clear_cache()
        return await self.fetch_live_rate(use_cache=False)

    async def preload(self) -> None:
        """Warm the cache ahead of the first render."""
        rate = await self.fetch_live_rate(use_cache=False)
        logger.info(f"Preloaded live rate {rate.rate} ({rate.source})")
