"""Debounced autosave.

Edits call :meth:`AutosaveScheduler.request_save`; a burst of requests inside
the debounce window produces a single write once the window has elapsed
since the *last* request. Deferred work goes through a :class:`Scheduler`, so
the same policy runs on an asyncio loop (:class:`AsyncioScheduler`) or on a
virtual clock (:class:`ManualScheduler`).
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from pcreg._constants import AUTOSAVE_DELAY_MS
from pcreg.exceptions import StorageError
from pcreg.store import StateStore

_logger = logging.getLogger(__name__)


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay, cancellable through the handle."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledHandle: ...


class AsyncioScheduler:
    """Schedule on an asyncio event loop.

    Must be used from the loop's own thread. When no loop is given, the
    running loop at the time of each call is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


@dataclass(order=True)
class _ManualTask:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-clock scheduler: nothing runs until :meth:`advance` is called."""

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[_ManualTask] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for task in self._queue if not task.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTask:
        task = _ManualTask(self._now + max(0.0, delay), next(self._counter), callback)
        heapq.heappush(self._queue, task)
        return task

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run every task that became due.

        Returns the number of callbacks run.
        """
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = task.due
            task.callback()
            ran += 1
        self._now = target
        return ran

    def run_all(self) -> int:
        """Run everything still pending, whatever its due time."""
        if not self._queue:
            return 0
        return self.advance(max(task.due for task in self._queue) - self._now)


def default_scheduler() -> Scheduler:
    """Return an :class:`AsyncioScheduler` inside a running loop, else a :class:`ManualScheduler`."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return ManualScheduler()
    return AsyncioScheduler(loop)


class AutosaveScheduler:
    """Coalesce save requests into one deferred write.

    At most one write is pending at any time. A manual :meth:`save_now`
    supersedes the pending write.
    """

    def __init__(
        self,
        store: StateStore,
        scheduler: Scheduler,
        *,
        delay: float = AUTOSAVE_DELAY_MS / 1000.0,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._delay = delay
        self._handle: ScheduledHandle | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def request_save(self) -> bool:
        """Restart the debounce window.

        Returns ``False`` (and schedules nothing) when autosave is disabled
        in the document settings.
        """
        if not self._store.document.settings.autosave:
            return False
        self.cancel()
        self._handle = self._scheduler.call_later(self._delay, self._fire)
        return True

    def save_now(self, provenance: str = "manual") -> None:
        """Write immediately, dropping any pending autosave."""
        self.cancel()
        self._store.save(provenance)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        try:
            self._store.save("autosave")
        except StorageError:
            _logger.warning("Autosave failed; changes stay in memory until the next save", exc_info=True)
