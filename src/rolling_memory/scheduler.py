"""Trailing-edge debouncer for refresh requests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger


class Debouncer:
    """Collapses bursts of triggers into a single call.

    Each ``trigger()`` restarts the quiet-period timer; the callback fires
    once the timer runs out without a new trigger. Requires a running event
    loop; outside one the callback is invoked immediately.
    """

    def __init__(self, callback: Callable[[], object], delay: float = 1.0):
        self._callback = callback
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, firing debounced call immediately")
            self._callback()
            return
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._callback()

    def cancel(self) -> bool:
        """Discard the pending call. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def flush(self) -> bool:
        """Run the pending call now. Returns True if one was pending."""
        if not self.cancel():
            return False
        self._callback()
        return True
