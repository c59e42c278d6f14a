from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledHandle: ...


class AsyncioScheduler:
    """Runs delayed actions on the running event loop (the FastAPI loop in the service)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock: nothing fires until `advance` moves time past it.

    Used by tests and the headless simulation so timer-driven phases are deterministic.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            handle.callback()
        self.now = target
