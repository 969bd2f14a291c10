"""Repeating timer abstraction used by the reminder scheduler."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Timer(Protocol):
    def schedule(self, callback: Callable[[], Any], interval: float) -> Any: ...
    def cancel(self, handle: Any) -> None: ...


class _Repeating:
    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], Any], interval: float) -> None:
        self.loop = loop
        self.callback = callback
        self.interval = interval
        self.cancelled = False
        self._handle: asyncio.TimerHandle | None = None

    def arm(self) -> None:
        self._handle = self.loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self.cancelled:
            return
        try:
            self.callback()
        except Exception:
            logger.exception("Timer callback %r failed", self.callback)
        # The next firing is armed only after this one has finished.
        if not self.cancelled:
            self.arm()

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTimer:
    """Repeating timer on the running asyncio event loop.

    Must be scheduled from code running on the loop. Callbacks run on the
    loop thread, one at a time.
    """

    def schedule(self, callback: Callable[[], Any], interval: float) -> _Repeating:
        loop = asyncio.get_running_loop()
        handle = _Repeating(loop, callback, max(0.1, float(interval)))
        handle.arm()
        return handle

    def cancel(self, handle: _Repeating) -> None:
        handle.cancel()
