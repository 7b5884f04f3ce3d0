"""Deferred task queue.

Runs fire-and-forget work (notification emails) on a small thread pool,
optionally after a delay, so request handlers return as soon as their
transaction commits. A task that raises is logged; nothing is retried.

Delays are served by timers; a task only reaches the pool once it is due,
so a long delay never holds a worker.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

logger = logging.getLogger(__name__)


class DeferredTaskQueue:
    """Thread-pool backed scheduler with per-task delay"""

    def __init__(self, max_workers: int = 2, default_delay: float = 0.0) -> None:
        self.default_delay = default_delay
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="deferred")
        self._stopping = threading.Event()
        self._pending: set[Future[None]] = set()
        self._timers: dict[Future[None], tuple[threading.Timer, str]] = {}
        self._lock = threading.Lock()

    def schedule(self, func: Callable[[], Any], *, delay: float | None = None, name: str | None = None) -> None:
        """Queue func to run after delay seconds (default_delay when None)."""
        if self._stopping.is_set():
            logger.warning(f"Task queue shut down; dropping task {name or func!r}")
            return

        label = name or getattr(func, "__name__", "task")
        wait_for = self.default_delay if delay is None else delay
        if wait_for <= 0:
            future = self._executor.submit(self._run, func, label)
            with self._lock:
                self._pending.add(future)
            future.add_done_callback(self._forget)
            return

        tracked: Future[None] = Future()
        timer = threading.Timer(wait_for, self._submit_due, args=(func, label, tracked))
        timer.daemon = True
        timer.name = f"deferred-timer:{label}"
        with self._lock:
            self._pending.add(tracked)
            self._timers[tracked] = (timer, label)
        tracked.add_done_callback(self._forget)
        timer.start()

    def drain(self, timeout: float | None = None) -> None:
        """Block until every task scheduled so far has finished."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self, wait_for_tasks: bool = False) -> None:
        """Stop accepting tasks. Delayed tasks still waiting are skipped."""
        self._stopping.set()
        with self._lock:
            waiting = list(self._timers.items())
            self._timers.clear()
        for tracked, (timer, label) in waiting:
            timer.cancel()
            logger.debug(f"Skipping deferred task {label}: shutting down")
            tracked.set_result(None)
        self._executor.shutdown(wait=wait_for_tasks, cancel_futures=not wait_for_tasks)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _submit_due(self, func: Callable[[], Any], name: str, tracked: Future[None]) -> None:
        with self._lock:
            # Shutdown already claimed and resolved this task
            if self._timers.pop(tracked, None) is None:
                return
        if self._stopping.is_set():
            logger.debug(f"Skipping deferred task {name}: shutting down")
            tracked.set_result(None)
            return
        try:
            inner = self._executor.submit(self._run, func, name)
        except RuntimeError:
            logger.debug(f"Skipping deferred task {name}: shutting down")
            tracked.set_result(None)
            return
        inner.add_done_callback(lambda _: tracked.set_result(None))

    def _run(self, func: Callable[[], Any], name: str) -> None:
        try:
            func()
        except Exception as e:
            logger.error(f"Deferred task {name} failed: {e}", exc_info=True)

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            self._pending.discard(future)
