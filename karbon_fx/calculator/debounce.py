"""
Pending-input buffer that commits once edits go quiet.
"""

import asyncio
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class DebouncedCommit(Generic[T]):
    """
    Hold the latest pushed value and commit it after a quiet period.

    Every push resets the timer, so a burst of edits produces exactly one
    commit carrying the last value. Must be used from inside a running event
    loop.
    """

    def __init__(self, delay: float, on_commit: Callable[[T], None]) -> None:
        self.delay = delay
        self._on_commit = on_commit
        self._pending: T | None = None
        self._has_pending = False
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._has_pending

    def push(self, value: T) -> None:
        """Buffer a value and restart the quiet-period timer."""
        self._pending = value
        self._has_pending = True
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def flush(self) -> None:
        """Commit the buffered value immediately, if any."""
        self._cancel_timer()
        self._fire()

    def cancel(self) -> None:
        """Drop the buffered value without committing it."""
        self._cancel_timer()
        self._pending = None
        self._has_pending = False

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if not self._has_pending:
            return
        value = self._pending
        self._pending = None
        self._has_pending = False
        self._on_commit(value)  # type: ignore[arg-type]
