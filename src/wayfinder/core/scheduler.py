"""Clock-driven scheduler for delayed, cancelable callbacks.

Nothing runs on a background thread: due tasks run when the owner pumps
:meth:`TaskScheduler.run_due`, in the same way a game loop advances its
fixed-step updates. The navigation engine pumps it on every pose fix and
from :meth:`~wayfinder.navigation.engine.NavigationEngine.tick`.

Typical usage example:
    from wayfinder.core.scheduler import TaskScheduler

    scheduler = TaskScheduler(clock=time.monotonic)
    task = scheduler.schedule(3.0, teardown, name="arrival_teardown")
    ...
    scheduler.run_due()
    task.cancel()  # no-op if it already ran
"""

import heapq
import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
    """Handle for a scheduled callback.

    Attributes:
        due_time: Clock time at or after which the callback runs.
        name: Label used in log messages.
        cancelled: True once cancel() was called.
        completed: True once the callback ran.
    """

    due_time: float
    sequence: int
    callback: Callable[[], None] = field(compare=False, repr=False)
    name: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)
    completed: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        self.cancelled = True

    @property
    def pending(self) -> bool:
        """True while the task may still run."""
        return not (self.cancelled or self.completed)


class TaskScheduler:
    """Min-heap of delayed callbacks driven by an injectable clock.

    Examples:
        >>> now = [0.0]
        >>> scheduler = TaskScheduler(clock=lambda: now[0])
        >>> task = scheduler.schedule(1.5, lambda: print("first instruction"))
        >>> now[0] = 2.0
        >>> scheduler.run_due()
        first instruction
        1
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty scheduler.

        Args:
            clock: Monotonic time source in seconds.
        """
        self._clock = clock
        self._heap: list[ScheduledTask] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def schedule(self, delay_s: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        """Schedule a callback to run ``delay_s`` seconds from now.

        Args:
            delay_s: Delay in seconds (negative values run on the next pump).
            callback: Zero-argument callable.
            name: Label for logging.

        Returns:
            Cancelable task handle.
        """
        task = ScheduledTask(self._clock() + max(delay_s, 0.0), next(self._counter), callback, name)
        with self._lock:
            heapq.heappush(self._heap, task)
        logger.debug("Scheduled %s in %.2fs", name or "task", delay_s)
        return task

    def run_due(self) -> int:
        """Run every pending task whose due time has passed.

        Tasks run in due-time order, outside the scheduler lock, so a callback
        may schedule or cancel other tasks.

        Returns:
            Number of callbacks executed.
        """
        now = self._clock()
        due: list[ScheduledTask] = []

        with self._lock:
            while self._heap and self._heap[0].due_time <= now:
                task = heapq.heappop(self._heap)
                if not task.cancelled:
                    due.append(task)

        executed = 0
        for task in due:
            # an earlier callback in this batch may have cancelled it
            if task.cancelled:
                continue
            task.completed = True
            task.callback()
            executed += 1

        return executed

    def cancel_all(self) -> None:
        """Cancel and discard every pending task."""
        with self._lock:
            for task in self._heap:
                task.cancel()
            self._heap.clear()

    def pending_count(self) -> int:
        """Number of tasks still waiting to run."""
        with self._lock:
            return sum(1 for task in self._heap if not task.cancelled)
