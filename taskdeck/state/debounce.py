"""
Debouncer — a single cancellable timer on the running asyncio loop.

Each schedule() cancels the pending call, so a burst of calls runs the
callback once, delay seconds after the last one. cancel() is also used on
teardown so no callback fires against a closed owner.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("taskdeck.state.debounce")


class Debouncer:

    def __init__(self, delay: float):
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[[], Awaitable[None]]) -> None:
        """(Re)start the timer. Must be called from a running event loop."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(callback))

    async def _run(self, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self._delay)
        await callback()

    def cancel(self) -> bool:
        """Cancel the pending call. Returns True when one was pending."""
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def wait(self) -> None:
        """Wait until no call is pending, following reschedules."""
        while self._task is not None and not self._task.done():
            task = self._task
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
                logger.debug("Debounced call was superseded")
