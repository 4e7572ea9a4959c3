"""Timers and trailing-edge debouncing.

Components never touch platform timers directly; they receive a
``Scheduler``. Production code uses ``AsyncioScheduler`` (the running event
loop), tests substitute a manual clock.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class Debouncer:
    """Trailing-edge debounce around a scheduler.

    Each ``schedule`` call replaces the pending callback and restarts the
    delay, so a burst of calls runs the last callback once, ``delay`` seconds
    after the last call of the burst.

    Example:
        debouncer = Debouncer(AsyncioScheduler())
        debouncer.schedule(lambda: save(doc), 1.0)
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._handle: TimerHandle | None = None
        self._callback: Callable[[], None] | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, fn: Callable[[], None], delay: float) -> None:
        """Replace any pending callback with ``fn`` and restart the timer."""
        self.cancel_pending()
        self._callback = fn
        self._handle = self._scheduler.call_later(delay, self._fire)

    def cancel_pending(self) -> None:
        """Drop the pending callback without running it."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def flush(self) -> bool:
        """Run the pending callback now.

        Returns:
            True if a callback was pending and ran
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        callback = self._callback
        self._handle = None
        self._callback = None
        if callback is not None:
            callback()
