# tests/test_task_scheduler.py

from __future__ import annotations

import threading
import time

import pytest

from contacts_core.tasks.maintenance import PHOTO_CLEANUP_TASK_ID, MaintenanceTaskConsumer
from contacts_core.tasks.task_models import Task
from contacts_core.tasks.task_scheduler import TaskScheduler


class RecordingScheduler(TaskScheduler):
    """
    TaskScheduler subclass that records "<id>,<arg>" per performed task
    and the worker thread that performed it.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("test", **kwargs)
        self.log: list[str] = []
        self.threads: list[str] = []

    def on_perform_task(self, task_id: int, arg) -> None:
        self.log.append(Task(task_id, arg).describe())
        self.threads.append(threading.current_thread().name)


def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_tasks_run_in_order_on_one_thread() -> None:
    s = RecordingScheduler(shutdown_timeout_seconds=5.0)
    try:
        s.schedule_task(1)
        s.schedule_task(10)
        s.schedule_task(2, "arg")

        assert s.wait_idle(timeout=5.0)
        assert s.log == ["1,None", "10,None", "2,arg"]
        assert len(set(s.threads)) == 1
        assert s.threads[0] == "test-worker-1"
        assert s.is_running_for_test()
    finally:
        s.shutdown_for_test(timeout=5.0)

    assert not s.is_running_for_test()


def test_idle_worker_shuts_down_and_restarts() -> None:
    s = RecordingScheduler(shutdown_timeout_seconds=0.1)

    s.schedule_task(1)
    assert s.wait_idle(timeout=5.0)
    assert _wait_until(lambda: not s.is_running_for_test())
    assert s.generation == 1

    s.schedule_task(2)
    assert s.wait_idle(timeout=5.0)
    assert _wait_until(lambda: not s.is_running_for_test())
    assert s.generation == 2

    s.schedule_task(3, "x")
    assert s.wait_idle(timeout=5.0)
    s.shutdown_for_test(timeout=5.0)

    assert s.generation == 3
    assert s.log == ["1,None", "2,None", "3,x"]
    assert s.threads == ["test-worker-1", "test-worker-2", "test-worker-3"]


def test_failed_task_is_logged_and_worker_continues(caplog) -> None:
    seen: list[int] = []

    def consumer(task_id: int, arg) -> None:
        if task_id == 1:
            raise RuntimeError("boom")
        seen.append(task_id)

    s = TaskScheduler("failing", consumer, shutdown_timeout_seconds=5.0)
    try:
        with caplog.at_level("ERROR", logger="contacts_core.tasks.task_scheduler"):
            s.schedule_task(1)
            s.schedule_task(2)
            assert s.wait_idle(timeout=5.0)
    finally:
        s.shutdown_for_test(timeout=5.0)

    assert seen == [2]
    assert any("task failed task_id=1" in r.getMessage() for r in caplog.records)


def test_schedule_task_never_blocks_on_running_task() -> None:
    release = threading.Event()
    started = threading.Event()

    def consumer(task_id: int, arg) -> None:
        started.set()
        release.wait(timeout=5.0)

    s = TaskScheduler("blocking", consumer, shutdown_timeout_seconds=5.0)
    try:
        s.schedule_task(1)
        assert started.wait(timeout=5.0)

        t0 = time.monotonic()
        s.schedule_task(2)
        assert time.monotonic() - t0 < 1.0
        assert not s.wait_idle(timeout=0.05)

        release.set()
        assert s.wait_idle(timeout=5.0)
    finally:
        release.set()
        s.shutdown_for_test(timeout=5.0)


def test_negative_task_id_rejected() -> None:
    s = TaskScheduler("neg", lambda task_id, arg: None)
    with pytest.raises(ValueError):
        s.schedule_task(-1)
    assert not s.is_running_for_test()


def test_maintenance_consumer_runs_aggregation_callable() -> None:
    calls: list[str] = []
    consumer = MaintenanceTaskConsumer()
    consumer(1, lambda: calls.append("ran"))
    assert calls == ["ran"]

    with pytest.raises(ValueError):
        consumer(99, None)


def test_maintenance_consumer_photo_cleanup(photo_store) -> None:
    consumer = MaintenanceTaskConsumer(photo_store)
    # Nothing stored: no error, nothing deleted.
    consumer(PHOTO_CLEANUP_TASK_ID, {5})
    assert photo_store.get_total_size() == 0
