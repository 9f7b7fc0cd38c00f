"""Deferred-task scheduling.

The dispatcher only talks to the `Scheduler` protocol, so the in-process
`ThreadScheduler` can be swapped for a durable timer/queue without changing
execute_tasks().
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Iterable, List, Optional, Protocol, TypeVar

from core.errors import TaskCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Scheduler(Protocol):
    def submit(self, fn: Callable[[], T], delay_ms: int) -> "Future[T]": ...

    def cancel(self, futures: Optional[Iterable[Future]] = None) -> None: ...

    def close(self) -> None: ...


class ThreadScheduler:
    """
    Waits out each job's delay on its own thread, then runs it.

    - Every job sleeps on its own Event; cancel(futures) wakes only those jobs
      (or every pending one when called bare) and they fail with TaskCancelled
      instead of running. Jobs submitted afterwards are unaffected.
    - `max_delay_ms` caps every wait (in-process runs should not sleep for days).
    - `max_concurrency` bounds how many jobs run `fn` at the same time; waiting
      never counts against it.
    """

    def __init__(self, max_delay_ms: Optional[int] = None, max_concurrency: Optional[int] = None) -> None:
        self.max_delay_ms = max_delay_ms
        self._slots = threading.BoundedSemaphore(max_concurrency) if max_concurrency else None
        self._pending: Dict[Future, threading.Event] = {}
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def _wait_seconds(self, delay_ms: int) -> float:
        if self.max_delay_ms is not None and delay_ms > self.max_delay_ms:
            logger.debug("Capping deferred wait from %sms to %sms", delay_ms, self.max_delay_ms)
            delay_ms = self.max_delay_ms
        return max(delay_ms, 0) / 1000.0

    def _run(self, future: "Future[T]", fn: Callable[[], T], wait_s: float, cancelled: threading.Event) -> None:
        try:
            if not future.set_running_or_notify_cancel():
                return
            if cancelled.wait(wait_s):
                future.set_exception(TaskCancelled("Deferred task cancelled before it fired"))
                return
            try:
                if self._slots is not None:
                    with self._slots:
                        result = fn()
                else:
                    result = fn()
            except BaseException as exc:  # handed to the caller through the future
                future.set_exception(exc)
            else:
                future.set_result(result)
        finally:
            with self._lock:
                self._pending.pop(future, None)

    def submit(self, fn: Callable[[], T], delay_ms: int) -> "Future[T]":
        future: "Future[T]" = Future()
        cancelled = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(future, fn, self._wait_seconds(delay_ms), cancelled),
            name=f"sharebot-deferred-{len(self._threads)}",
            daemon=True,
        )
        with self._lock:
            self._pending[future] = cancelled
            self._threads.append(thread)
        thread.start()
        return future

    def cancel(self, futures: Optional[Iterable[Future]] = None) -> None:
        """Stop jobs that have not fired yet: the given ones, or all of them."""
        with self._lock:
            if futures is None:
                events = list(self._pending.values())
            else:
                events = [self._pending[f] for f in futures if f in self._pending]
        for event in events:
            event.set()

    def close(self) -> None:
        """Join every job thread; nothing outlives the scheduler."""
        with self._lock:
            threads, self._threads = self._threads, []
        for thread in threads:
            thread.join()

    def __enter__(self) -> "ThreadScheduler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
