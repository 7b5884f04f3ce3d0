"""Tests for the deferred task queue."""

from __future__ import annotations

import logging
import threading
import time

from survey_validation.fanout import DeferredTaskQueue


class TestDeferredTaskQueue:
    def test_runs_task_after_delay(self):
        queue = DeferredTaskQueue(max_workers=1)
        ran_at: list[float] = []
        start = time.monotonic()

        queue.schedule(lambda: ran_at.append(time.monotonic()), delay=0.05)
        queue.drain(timeout=5)
        queue.shutdown()

        assert len(ran_at) == 1
        assert ran_at[0] - start >= 0.04

    def test_failing_task_is_logged(self, caplog):
        queue = DeferredTaskQueue(max_workers=1)

        def boom() -> None:
            raise RuntimeError("smtp down")

        with caplog.at_level(logging.ERROR):
            queue.schedule(boom, name="email:RES1")
            queue.drain(timeout=5)
        queue.shutdown()

        assert "Deferred task email:RES1 failed: smtp down" in caplog.text

    def test_tasks_do_not_block_each_other(self):
        queue = DeferredTaskQueue(max_workers=2)
        release = threading.Event()
        done = threading.Event()

        queue.schedule(lambda: release.wait(5))
        queue.schedule(done.set)

        assert done.wait(5)
        release.set()
        queue.drain(timeout=5)
        queue.shutdown()

    def test_shutdown_skips_waiting_tasks(self):
        queue = DeferredTaskQueue(max_workers=1)
        ran = threading.Event()

        queue.schedule(ran.set, delay=10)
        queue.shutdown()
        queue.schedule(ran.set)

        assert not ran.wait(0.2)

    def test_delayed_task_does_not_hold_worker(self):
        queue = DeferredTaskQueue(max_workers=1)
        later = threading.Event()
        now = threading.Event()

        queue.schedule(later.set, delay=10)
        queue.schedule(now.set)

        assert now.wait(1)
        assert not later.is_set()
        queue.shutdown()

    def test_drain_returns_after_shutdown_skips_delayed(self):
        queue = DeferredTaskQueue(max_workers=1)
        queue.schedule(lambda: None, delay=10)
        assert queue.pending_count == 1

        queue.shutdown()
        start = time.monotonic()
        queue.drain(timeout=5)

        assert time.monotonic() - start < 1
        assert queue.pending_count == 0
