from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Run ``action(version)`` once input has been quiet for ``delay`` seconds.

    Every ``schedule()`` bumps the version and cancels a timer that has not
    fired yet. A timer that already fired is left alone: its action is running
    and must check ``is_latest(version)`` itself before applying anything.
    Scheduled outside an event loop, the timer is held back until ``resume()``
    is called from inside one.
    """

    def __init__(self, delay: float, action: Callable[[int], Awaitable[None]]):
        self.delay = delay
        self._action = action
        self._version = 0
        self._timer: Optional[asyncio.Task] = None
        self._deferred = False
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._deferred or (self._timer is not None and not self._timer.done())

    def is_latest(self, version: int) -> bool:
        return not self._closed and version == self._version

    def schedule(self) -> Optional[asyncio.Task]:
        if self._closed:
            raise RuntimeError("Debouncer is closed")
        self.cancel()
        self._version += 1
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._deferred = True
            return None
        return self._start()

    def resume(self) -> Optional[asyncio.Task]:
        """Start a held-back timer; returns the timer that is pending, if any."""
        if self._deferred and not self._closed:
            self._deferred = False
            return self._start()
        return self._timer if self.pending else None

    def cancel(self) -> None:
        self._deferred = False
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def close(self) -> None:
        self.cancel()
        self._closed = True

    def _start(self) -> asyncio.Task:
        self._timer = asyncio.get_running_loop().create_task(self._fire(self._version))
        return self._timer

    async def _fire(self, version: int) -> None:
        await asyncio.sleep(self.delay)
        if not self.is_latest(version):
            logger.debug("debounced run v%d superseded before dispatch", version)
            return
        # From here on the run can no longer be cancelled by a newer edit.
        self._timer = None
        await self._action(version)
