"""
Cancellable deferred tasks.

Both debounce timers in Atelier (the saving indicator dwell and the edit
commit quiet window) are single-shot tasks obtained from a ``Scheduler``.
``ThreadingScheduler`` runs them on real timers; ``ManualScheduler`` runs
them only when its virtual clock is advanced, which keeps tests deterministic.
"""

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class DeferredTask:
    """
    Handle for a callback scheduled to run once after a delay.
    """

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._lock = threading.Lock()
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> bool:
        """
        Cancel the task.

        Returns:
            True if the task was still pending, False if it already ran or was cancelled
        """
        with self._lock:
            if not self.pending:
                return False
            self.cancelled = True
            return True

    def run(self) -> bool:
        """Run the callback unless the task was cancelled. Returns True if it ran."""
        with self._lock:
            if not self.pending:
                return False
            self.fired = True
        self._callback()
        return True


class Scheduler(ABC):
    """Abstract source of deferred tasks."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> DeferredTask:
        """Schedule ``callback`` to run once after ``delay`` seconds."""
        pass

    def shutdown(self) -> None:
        """Cancel whatever is still scheduled. Optional for implementations."""
        pass


class ThreadingScheduler(Scheduler):
    """
    Runs deferred tasks on daemon ``threading.Timer`` threads.

    Callbacks run on the timer thread; callers that touch shared state from a
    callback are responsible for their own locking.
    """

    def __init__(self):
        self._timers: List[Tuple[threading.Timer, DeferredTask]] = []
        self._lock = threading.Lock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> DeferredTask:
        task = DeferredTask(callback)
        timer = threading.Timer(delay, self._fire, args=(task,))
        timer.daemon = True
        with self._lock:
            self._timers = [(t, d) for t, d in self._timers if d.pending]
            self._timers.append((timer, task))
        timer.start()
        return task

    @staticmethod
    def _fire(task: DeferredTask) -> None:
        try:
            task.run()
        except Exception as e:
            logging.error(f"Deferred task failed: {e}", exc_info=True)

    def shutdown(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer, task in timers:
            task.cancel()
            timer.cancel()


class ManualScheduler(Scheduler):
    """
    Scheduler driven by a virtual clock.

    Nothing runs until ``advance`` is called; tasks then run in due-time order
    (ties in scheduling order) with ``now`` set to each task's due time.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue: List[Tuple[float, int, DeferredTask]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> DeferredTask:
        task = DeferredTask(callback)
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), task))
        return task

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every task that falls due.

        Returns:
            Number of tasks that ran
        """
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self.now = due
            if task.run():
                ran += 1
        self.now = target
        return ran

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if task.pending)

    def next_due(self) -> Optional[float]:
        for due, _, task in sorted(self._queue):
            if task.pending:
                return due
        return None

    def shutdown(self) -> None:
        for _, _, task in self._queue:
            task.cancel()
        self._queue = []
