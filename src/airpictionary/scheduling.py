"""
Scheduling Module - Cancellable Timers
======================================
Timer and background-work primitives for the round loop.

All callbacks are delivered on the thread that drives the scheduler, so
round state is only ever mutated from one thread:

- FrameScheduler: pumped once per frame by the OpenCV play surface, or
  stepped on a virtual clock for headless simulation and tests
- AsyncioScheduler: runs on an asyncio event loop
"""

import asyncio
import heapq
import itertools
import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle(ABC):
    """A scheduled callback that can be cancelled."""

    @abstractmethod
    def cancel(self):
        """Prevent the callback from running. Safe to call more than once."""


class Scheduler(ABC):
    """Clock, timers and background work for a single-threaded caller."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds."""

    @abstractmethod
    def run_in_background(self, fn: Callable[[], Any], on_done: Callable[[Any], None]):
        """
        Run ``fn`` off the caller's thread and deliver its return value to
        ``on_done`` on the caller's thread. If ``fn`` raises, the error is
        logged and ``on_done`` is not called.
        """


class Timer:
    """
    A restartable one-shot timer.

    ``start`` replaces whatever was pending; ``cancel`` is idempotent.
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, delay: float, callback: Callback):
        self.cancel()

        def fire():
            self._handle = None
            callback()

        self._handle = self._scheduler.call_later(delay, fire)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class _FrameHandle(TimerHandle):
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FrameScheduler(Scheduler):
    """
    Scheduler driven explicitly by its owner.

    With a ``clock`` (e.g. ``time.monotonic``) the owner calls ``pump()``
    every frame. Without one it runs on a virtual clock starting at 0 that
    only moves through ``advance()``, which makes timing fully
    deterministic.

    Callbacks due at the same instant run in the order they were
    scheduled.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        threaded: Optional[bool] = None,
        latency: float = 0.0
    ):
        """
        Initialize the scheduler.

        Args:
            clock: Real clock to follow; None for a virtual clock
            threaded: Run background work on daemon threads (defaults to
                True with a real clock, False on a virtual clock)
            latency: Virtual delay before inline background results are
                delivered
        """
        self._clock = clock
        self._now = clock() if clock else 0.0
        self._threaded = (clock is not None) if threaded is None else threaded
        self._latency = latency
        self._queue: List[Tuple[float, int, _FrameHandle, Callback]] = []
        self._seq = itertools.count()
        self._completions: 'queue.Queue[Callback]' = queue.Queue()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = _FrameHandle()
        heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._seq), handle, callback))
        return handle

    def run_in_background(self, fn: Callable[[], Any], on_done: Callable[[Any], None]):
        if not self._threaded:
            try:
                result = fn()
            except Exception:
                logger.exception("Background task failed")
                return
            self.call_later(self._latency, lambda: on_done(result))
            return

        def worker():
            try:
                result = fn()
            except Exception:
                logger.exception("Background task failed")
                return
            self._completions.put(lambda: on_done(result))

        threading.Thread(target=worker, daemon=True).start()

    def pump(self) -> int:
        """Move to the real clock's current time and run everything due."""
        if self._clock is None:
            raise RuntimeError("pump() needs a clock; use advance() on a virtual clock")
        return self._run_until(self._clock())

    def advance(self, seconds: float) -> int:
        """Move the virtual clock forward and run everything due."""
        return self._run_until(self._now + seconds)

    def run_until_idle(self, limit: float = 3600.0) -> int:
        """Advance the virtual clock until no callbacks remain (or ``limit`` seconds pass)."""
        ran = 0
        deadline = self._now + limit
        while self._queue and self._queue[0][0] <= deadline:
            ran += self._run_until(self._queue[0][0])
        return ran

    def _run_until(self, target: float) -> int:
        ran = self._drain_completions()
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if handle.cancelled:
                continue
            callback()
            ran += 1
            ran += self._drain_completions()
        self._now = max(self._now, target)
        return ran

    def _drain_completions(self) -> int:
        ran = 0
        while True:
            try:
                callback = self._completions.get_nowait()
            except queue.Empty:
                return ran
            callback()
            ran += 1


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self):
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop and its default executor."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return _AsyncioHandle(self._loop.call_later(delay, callback))

    def run_in_background(self, fn: Callable[[], Any], on_done: Callable[[Any], None]):
        future = self._loop.run_in_executor(None, fn)

        def done(fut: 'asyncio.Future'):
            if fut.cancelled():
                return
            error = fut.exception()
            if error is not None:
                logger.error("Background task failed", exc_info=error)
                return
            on_done(fut.result())

        future.add_done_callback(done)


def monotonic_frame_scheduler() -> FrameScheduler:
    """FrameScheduler following the real monotonic clock."""
    return FrameScheduler(clock=time.monotonic)
