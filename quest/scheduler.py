"""Cancellable delayed callbacks for the post-summary restart."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class LoopScheduler:
    """Schedule callbacks on an asyncio event loop.

    Without an explicit loop the running loop is used, so this must be
    called from inside a coroutine.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        logger.debug("Scheduling callback in %.1fs", delay)
        return loop.call_later(max(0.0, delay), callback)
