"""Injectable clocks that stage services use to simulate latency.

Stages never sleep. They register a timer callback on a :class:`Clock` and
return immediately, so the calling thread keeps running while the delay is
pending. Two clocks are provided:

* :class:`LoopClock` schedules on the running asyncio event loop and is what
  the demo uses.
* :class:`VirtualClock` keeps simulated time in memory. Tests advance it by
  hand, which makes ordering and elapsed time fully deterministic.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    """Minimal scheduling surface shared by the real and simulated clocks."""

    def time(self) -> float: ...

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle: ...


class LoopClock:
    """Schedule timers on the asyncio event loop.

    ``time_unit`` is the number of wall-clock seconds per simulated unit, so a
    stage configured with a delay of ``2`` waits ``2 * time_unit`` seconds.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        *,
        time_unit: float = 1.0,
    ) -> None:
        if time_unit <= 0:
            raise ValueError("time_unit must be positive")
        self._loop = loop
        self._time_unit = time_unit

    @property
    def time_unit(self) -> float:
        return self._time_unit

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def time(self) -> float:
        return self._get_loop().time() / self._time_unit

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> asyncio.TimerHandle:
        return self._get_loop().call_later(delay * self._time_unit, callback, *args)


@dataclass(order=True)
class _Timer:
    when: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple = field(compare=False, default=())
    cancelled: bool = field(compare=False, default=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """In-memory clock with manually advanced simulated time.

    Timers with the same deadline fire in the order they were scheduled.
    """

    def __init__(self, start: float = 0.0, *, settle_ticks: int = 8) -> None:
        self._now = start
        self._timers: list[_Timer] = []
        self._sequence = itertools.count()
        self._settle_ticks = settle_ticks

    def time(self) -> float:
        return self._now

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> _Timer:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        timer = _Timer(self._now + delay, next(self._sequence), callback, args)
        heapq.heappush(self._timers, timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for timer in self._timers if not timer.cancelled)

    def _pop_due(self, deadline: float | None) -> _Timer | None:
        while self._timers and self._timers[0].cancelled:
            heapq.heappop(self._timers)
        if not self._timers:
            return None
        if deadline is not None and self._timers[0].when > deadline:
            return None
        return heapq.heappop(self._timers)

    def _fire(self, timer: _Timer) -> None:
        self._now = max(self._now, timer.when)
        timer.callback(*timer.args)

    def advance(self, amount: float) -> None:
        """Move time forward by ``amount``, firing every timer that falls due."""

        if amount < 0:
            raise ValueError("cannot move a clock backwards")
        deadline = self._now + amount
        while True:
            timer = self._pop_due(deadline)
            if timer is None:
                break
            self._fire(timer)
        self._now = deadline

    def step(self) -> bool:
        """Jump to the next pending timer and fire it. Returns False when idle."""

        timer = self._pop_due(None)
        if timer is None:
            return False
        self._fire(timer)
        return True

    def run_until_idle(self, max_steps: int = 10_000) -> None:
        """Fire timers until none remain."""

        for _ in range(max_steps):
            if not self.step():
                return
        raise RuntimeError(f"clock still busy after {max_steps} timers")

    async def drive(self, awaitable: Awaitable[T]) -> T:
        """Run ``awaitable`` on the current loop, advancing simulated time.

        Between timers the event loop gets a few turns so that coroutines
        resumed by the previous timer can schedule their next one.
        """

        task = asyncio.ensure_future(awaitable)
        try:
            while True:
                await self._settle(task)
                if task.done():
                    return task.result()
                if not self.step():
                    raise RuntimeError(
                        "awaitable is still pending but no timers are scheduled"
                    )
        finally:
            if not task.done():
                task.cancel()

    async def _settle(self, task: asyncio.Future) -> None:
        for _ in range(self._settle_ticks):
            if task.done():
                return
            await asyncio.sleep(0)


__all__ = ["Clock", "LoopClock", "TimerHandle", "VirtualClock"]
