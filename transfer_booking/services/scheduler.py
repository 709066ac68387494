"""
Coalescing scheduler for input-driven async work.

Each ``submit`` for a key opens a quiet period.  A newer submit inside the
period cancels the waiting one, so a burst of keystrokes turns into a
single collaborator call.  Once the period is over the work runs to
completion, and its result is delivered only if no newer submit happened
meanwhile (generation check); otherwise it is silently dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CoalescingScheduler:
    def __init__(self, delay_seconds: float):
        self.delay_seconds = delay_seconds
        self._generation: dict[Hashable, int] = defaultdict(int)
        self._waiting: dict[Hashable, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()

    def submit(
        self,
        key: Hashable,
        work: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> asyncio.Task:
        """Schedule *work* for *key*, superseding earlier submissions."""
        self._generation[key] += 1
        generation = self._generation[key]

        waiting = self._waiting.pop(key, None)
        if waiting is not None and not waiting.done():
            waiting.cancel()

        task = asyncio.create_task(
            self._run(key, generation, work, on_result, on_error)
        )
        self._waiting[key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def is_current(self, key: Hashable, generation: int) -> bool:
        return self._generation[key] == generation

    async def drain(self) -> None:
        """Wait for every scheduled task to finish (or be coalesced away)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, key, generation, work, on_result, on_error) -> None:
        await asyncio.sleep(self.delay_seconds)

        # Quiet period over: in-flight work is no longer cancelled by newer
        # submits, only dropped on completion.
        if self._waiting.get(key) is asyncio.current_task():
            del self._waiting[key]

        try:
            result = await work()
        except Exception as exc:
            if not self.is_current(key, generation):
                logger.debug("Dropping stale failure for %r: %s", key, exc)
            elif on_error is not None:
                on_error(exc)
            else:
                logger.exception("Unhandled error in scheduled work for %r", key)
            return

        if not self.is_current(key, generation):
            logger.debug("Dropping stale result for %r", key)
            return
        on_result(result)
