# src/contacts_core/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler.

A single background worker that:
- runs queued tasks strictly in enqueue order, one at a time,
- starts lazily on the first scheduled task,
- exits after shutdown_timeout_seconds without new work,
- is transparently respawned by the next schedule_task() call.

Task failures are logged and the worker moves on to the next task.
"""

import logging
import queue
import threading
from typing import Any

from ..core.ports import TaskConsumer
from .task_models import Task

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 60.0

_STOP = object()


class TaskScheduler:
    """
    Single-worker FIFO executor with idle shutdown.

    Either pass a consumer callable or subclass and override on_perform_task().

    Thread-safety:
    - schedule_task() may be called from any thread and never blocks on task execution
    - at most one worker thread exists per scheduler at any time
    """

    def __init__(
        self,
        name: str,
        consumer: TaskConsumer | None = None,
        *,
        shutdown_timeout_seconds: float = SHUTDOWN_TIMEOUT_SECONDS,
    ) -> None:
        self._name = name
        self._consumer = consumer
        self._shutdown_timeout = max(0.01, float(shutdown_timeout_seconds))

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._queue: "queue.Queue[Any]" = queue.Queue()

        # Guarded by _lock.
        self._worker: threading.Thread | None = None
        self._generation = 0
        self._pending = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def generation(self) -> int:
        """How many worker threads have been started so far."""
        with self._lock:
            return self._generation

    def schedule_task(self, task_id: int, arg: Any | None = None) -> None:
        """Queue a task; starts a worker if none is alive."""
        task_id = int(task_id)
        if task_id < 0:
            raise ValueError(f"task_id must be non-negative, got {task_id}")
        task = Task(id=task_id, arg=arg)

        with self._lock:
            # An idle worker only exits after seeing an empty queue under this lock.
            self._queue.put(task)
            self._pending += 1

            if self._worker is None:
                self._generation += 1
                worker = threading.Thread(
                    target=self._worker_loop,
                    name=f"{self._name}-worker-{self._generation}",
                    daemon=True,
                )
                self._worker = worker
                worker.start()
                logger.debug("[%s] %s started.", self._name, worker.name)

    def on_perform_task(self, task_id: int, arg: Any | None) -> None:
        if self._consumer is None:
            raise NotImplementedError("TaskScheduler needs a consumer or an on_perform_task override")
        self._consumer(task_id, arg)

    # ---- diagnostics ----

    def is_running_for_test(self) -> bool:
        with self._lock:
            return self._worker is not None

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every scheduled task has been executed. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def shutdown_for_test(self, timeout: float | None = None) -> None:
        """Ask the worker to stop once the queue is drained and join it."""
        with self._lock:
            worker = self._worker
            if worker is None:
                return
            self._queue.put(_STOP)

        logger.debug("[%s] %s stopping...", self._name, worker.name)
        worker.join(timeout=timeout)

    # ---- worker ----

    def _worker_loop(self) -> None:
        me = threading.current_thread()

        while True:
            try:
                item = self._queue.get(timeout=self._shutdown_timeout)
            except queue.Empty:
                item = _STOP

            if item is _STOP:
                with self._lock:
                    if self._queue.empty():
                        if self._worker is me:
                            self._worker = None
                        logger.debug("[%s] %s stopped (idle).", self._name, me.name)
                        return
                # Work arrived while we were deciding to stop.
                continue

            task: Task = item
            try:
                logger.debug("[%s] %s dispatching %s", self._name, me.name, task.id)
                self.on_perform_task(task.id, task.arg)
            except Exception:
                logger.exception("[%s] task failed task_id=%s", self._name, task.id)
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()
