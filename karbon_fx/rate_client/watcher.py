"""
Subscription-style view over the exchange-rate service.

A ``RateWatcher`` exposes ``rate``, ``loading``, ``error`` and ``refetch`` to
the presentation layer and optionally refreshes the rate in the background.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Final, Self

from ..shared.errors import FxError, RateFetchError
from .models import ExchangeRate
from .service import ExchangeRateService, RateListener

logger = logging.getLogger(__name__)


class RateWatcher:
    """Live view of the current rate for one consumer."""

    def __init__(
        self,
        service: ExchangeRateService,
        refetch_interval: float | None = None,
    ) -> None:
        self.service = service
        self.refetch_interval = (
            refetch_interval
            if refetch_interval is not None
            else service.settings.refetch_interval_seconds
        )
        self.rate: ExchangeRate | None = None
        self.loading: bool = False
        self.error: FxError | None = None

        self._listeners: list[RateListener] = []
        self._closed = False
        self._request_seq = 0
        self._refresh_task: asyncio.Task[None] | None = None
        self._unsubscribe = service.subscribe(self._publish)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, callback: RateListener) -> Callable[[], None]:
        """Register a listener for rate changes seen by this watcher."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _publish(self, rate: ExchangeRate) -> None:
        if self._closed or rate == self.rate:
            return
        self.rate = rate
        for callback in list(self._listeners):
            try:
                callback(rate)
            except Exception as e:
                logger.error(f"Error in rate watcher callback: {e}", exc_info=e)

    async def refetch(self, show_loading: bool = True) -> ExchangeRate | None:
        """
        Fetch the rate through the service and update the watcher state.

        A refetch superseded by a newer one leaves the state to the newer
        call. The fallback rate is published even if the service itself
        raises, so consumers always have something to render.
        """
        if self._closed:
            return self.rate

        self._request_seq += 1
        seq = self._request_seq
        if show_loading:
            self.loading = True

        error: FxError | None = None
        try:
            rate = await self.service.fetch_live_rate()
        except Exception as e:
            logger.error(f"Rate service failed unexpectedly: {e}", exc_info=e)
            error = (
                e
                if isinstance(e, FxError)
                else RateFetchError("Failed to fetch exchange rate", details=str(e))
            )
            rate = self.service.fallback_rate()

        if self._closed or seq != self._request_seq:
            return rate

        if error is None and (rate.source == "fallback" or rate.is_stale):
            error = self.service.last_error
        self.error = error
        self.loading = False
        self._publish(rate)
        return rate

    def clear_cache(self) -> None:
        self.service.clear_cache()

    async def start(self, auto_fetch: bool = True) -> None:
        """Fetch once and schedule background refreshes if configured."""
        if auto_fetch:
            await self.refetch()
        if self.refetch_interval and self.refetch_interval > 0:
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def _refresh_loop(self) -> None:
        try:
            while not self._closed:
                await asyncio.sleep(self.refetch_interval)
                await self.refetch(show_loading=False)
        except asyncio.CancelledError:
            logger.info("Rate refresh task cancelled")
            raise

    async def stop(self) -> None:
        """Stop background refreshes and detach from the service."""
        self._closed = True
        self._unsubscribe()
        self._listeners.clear()
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()


DEFAULT_WATCH_INTERVAL: Final[float] = 60.0


def _log_rate(rate: ExchangeRate) -> None:
    stale = " (stale)" if rate.is_stale else ""
    logger.info(
        f"USD/INR {rate.rate:.4f} from {rate.source}{stale} "
        f"at {rate.timestamp.isoformat()}"
    )


async def main() -> None:
    """Main entry point for the standalone rate watcher."""
    service = ExchangeRateService()
    interval = service.settings.refetch_interval_seconds or DEFAULT_WATCH_INTERVAL
    watcher = RateWatcher(service, refetch_interval=interval)
    watcher.subscribe(_log_rate)

    logger.info(
        f"Watching {service.settings.live_rate_url} every {interval:g}s"
    )
    async with watcher:
        while not watcher.closed:
            await asyncio.sleep(interval)
            if watcher.error is not None:
                logger.warning(
                    f"Rate watcher degraded: {watcher.error.user_friendly_message()}"
                )
