"""Single-threaded callback scheduler driving timer ticks and deferred starts."""

from __future__ import annotations

import logging
import sched
import time
from typing import Callable

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a callback queued on a :class:`Scheduler`.

    ``cancel()`` is safe to call at any time, including after the callback has
    already run.
    """

    def __init__(self, queue: sched.scheduler, delay: float, callback: Callable[[], None]) -> None:
        self._queue = queue
        self._callback = callback
        self._fired = False
        self._cancelled = False
        self._event = queue.enter(delay, 0, self._fire)

    @property
    def active(self) -> bool:
        """True while the callback is still waiting to run."""
        return not (self._fired or self._cancelled)

    def cancel(self) -> None:
        if not self.active:
            return
        self._cancelled = True
        self._queue.cancel(self._event)

    def _fire(self) -> None:
        self._fired = True
        self._callback()


class Scheduler:
    """Thin wrapper around :class:`sched.scheduler`.

    All callbacks run on the thread that calls :meth:`run`, one at a time.
    *timefunc* and *delayfunc* default to ``time.monotonic`` and
    ``time.sleep``; tests pass a fake clock instead.
    """

    def __init__(
        self,
        timefunc: Callable[[], float] = time.monotonic,
        delayfunc: Callable[[float], object] = time.sleep,
    ) -> None:
        self._queue = sched.scheduler(timefunc, delayfunc)

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to run."""
        return len(self._queue.queue)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        """Queue *callback* to run *delay* seconds from now."""
        return ScheduledTask(self._queue, delay, callback)

    def run(self, blocking: bool = True) -> None:
        """Run due callbacks.

        When *blocking*, waits for and runs callbacks until nothing is left
        queued.  Otherwise runs only the callbacks that are already due.
        """
        logger.debug("Running scheduler with %d pending callback(s)", self.pending)
        self._queue.run(blocking=blocking)
