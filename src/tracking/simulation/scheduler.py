# scheduler.py
# Repeating timers for tracking sessions.
# Everything runs on the caller's event loop / thread; nothing here spawns threads.

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


Callback = Callable[[], None]


class TimerHandle:
    """Handle to a repeating timer. cancel() is idempotent."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class Scheduler(ABC):
    """Interface: run a callback every interval_s seconds until cancelled."""

    @abstractmethod
    def call_every(self, interval_s: float, callback: Callback) -> TimerHandle:
        """
        Arm a repeating timer. The first call happens one interval from now.

        Raises:
            RuntimeError: no clock is available to schedule on.
        """
        pass


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------

class _AsyncioTimer(TimerHandle):

    def __init__(self, loop: asyncio.AbstractEventLoop, interval_s: float, callback: Callback) -> None:
        super().__init__()
        self._loop = loop
        self._interval_s = interval_s
        self._callback = callback
        self._pending: Optional[asyncio.TimerHandle] = None

    def arm(self) -> None:
        self._pending = self._loop.call_later(self._interval_s, self._fire)

    def _fire(self) -> None:
        # A callback already queued by the loop must not run after cancel().
        if self._cancelled:
            return
        self._callback()
        if not self._cancelled:
            self.arm()

    def cancel(self) -> None:
        super().cancel()
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


class AsyncioScheduler(Scheduler):
    """
    Timers driven by an asyncio event loop via loop.call_later().

    Args:
        loop: Event loop to schedule on; defaults to the running loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_every(self, interval_s: float, callback: Callback) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        timer = _AsyncioTimer(loop, interval_s, callback)
        timer.arm()
        return timer


# ---------------------------------------------------------------------------
# Manual clock
# ---------------------------------------------------------------------------

class ManualScheduler(Scheduler):
    """
    Virtual clock for deterministic replays.

    Usage:
        clock = ManualScheduler()
        handle = clock.call_every(1.0, on_tick)
        clock.advance(5.0)      # on_tick runs 5 times, in order
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        # (due_time, seq, interval, handle, callback)
        self._queue: List[Tuple[float, int, float, TimerHandle, Callback]] = []

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for entry in self._queue if not entry[3].cancelled)

    def call_every(self, interval_s: float, callback: Callback) -> TimerHandle:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive.")
        handle = TimerHandle()
        heapq.heappush(self._queue, (self._now + interval_s, next(self._seq), interval_s, handle, callback))
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every timer that falls due.

        Returns:
            Number of callbacks invoked.
        """
        target = self._now + seconds
        fired = 0
        # small epsilon so accumulated float error does not drop a due tick
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, interval_s, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            callback()
            fired += 1
            if not handle.cancelled:
                heapq.heappush(self._queue, (due + interval_s, next(self._seq), interval_s, handle, callback))
        self._now = target
        return fired
