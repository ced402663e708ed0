# src/contacts_core/aggregation/scheduler.py

from __future__ import annotations

"""
Aggregation scheduler.

Decides *when* an aggregation pass runs:
- the first request after a quiet period runs right away,
- requests arriving shortly after a pass are coalesced into one delayed pass,
- the delay keeps sliding while requests keep coming, but never past MAX_AGGREGATION_DELAY
  from the first request,
- a request arriving during a pass interrupts it and owes a follow-up pass.

The pass itself is executed on the timer thread, or dispatched to a TaskScheduler when one
is configured. schedule() is fire-and-forget and never raises.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from ..core.ports import Aggregator
from ..tasks.task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)

# Task id used when the pass is dispatched through a TaskScheduler; the arg is the callable.
AGGREGATION_TASK_ID = 1

# Aggregation is delayed by this many milliseconds to allow changes to accumulate.
AGGREGATION_DELAY = 1000

# Maximum delay of aggregation from the initial aggregation request.
MAX_AGGREGATION_DELAY = 10000

# Minimum gap between the end of a pass and a new request that still runs immediately.
DELAYED_EXECUTION_TIMEOUT = 500


class AggregationStatus(StrEnum):
    STAND_BY = "stand_by"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    INTERRUPTED = "interrupted"


@dataclass(slots=True, frozen=True)
class ScheduleState:
    """Point-in-time snapshot of the scheduler (times are clock milliseconds)."""

    status: AggregationStatus
    last_run_end_time: float | None
    pending_delayed_run_at: float | None
    first_delay_request_time: float | None
    is_running: bool
    interrupt_requested_during_run: bool


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class AggregationScheduler:
    """
    Debouncing scheduler for a long-running Aggregator.

    The clock is injectable (milliseconds) so the state machine can be tested
    deterministically; run_now()/run_delayed() are the timer actions and may be
    overridden to observe scheduling decisions without any thread.

    Construction starts nothing; start()/stop() are owned by the process.
    """

    def __init__(
        self,
        aggregator: Aggregator | None = None,
        *,
        clock: Callable[[], float] | None = None,
        task_scheduler: TaskScheduler | None = None,
        aggregation_delay_ms: int = AGGREGATION_DELAY,
        max_aggregation_delay_ms: int = MAX_AGGREGATION_DELAY,
        delayed_execution_timeout_ms: int = DELAYED_EXECUTION_TIMEOUT,
    ) -> None:
        self._aggregator = aggregator
        self._clock = clock or _wall_clock_ms
        self._task_scheduler = task_scheduler

        self._aggregation_delay_ms = max(0, int(aggregation_delay_ms))
        self._max_aggregation_delay_ms = max(0, int(max_aggregation_delay_ms))
        self._delayed_execution_timeout_ms = max(0, int(delayed_execution_timeout_ms))

        # Reentrant: the aggregator may call schedule() from inside run().
        self._lock = threading.RLock()
        self._timer_cond = threading.Condition(self._lock)

        self._status = AggregationStatus.STAND_BY
        self._reschedule_when_complete = False
        self._initial_request_ts: float = 0.0
        self._last_aggregation_ended_ts: float | None = None
        self._pending_delayed_run_at: float | None = None

        # Timer (monotonic deadline, independent of the injected clock).
        self._deadline: float | None = None
        self._timer_thread: threading.Thread | None = None
        self._stopping = False
        # A pass queued on the task scheduler that has not started yet.
        self._dispatched = False

    # ---- configuration ----

    def set_aggregator(self, aggregator: Aggregator) -> None:
        with self._lock:
            self._aggregator = aggregator

    @property
    def status(self) -> AggregationStatus:
        with self._lock:
            return self._status

    def state(self) -> ScheduleState:
        with self._lock:
            pending = self._pending_delayed_run_at
            return ScheduleState(
                status=self._status,
                last_run_end_time=self._last_aggregation_ended_ts,
                pending_delayed_run_at=pending,
                first_delay_request_time=self._initial_request_ts if pending is not None else None,
                is_running=self._status in (AggregationStatus.RUNNING, AggregationStatus.INTERRUPTED),
                interrupt_requested_during_run=self._reschedule_when_complete,
            )

    # ---- lifecycle ----

    def start(self) -> None:
        with self._timer_cond:
            if self._timer_thread is not None:
                return
            self._stopping = False
            thread = threading.Thread(target=self._timer_loop, name="aggregation-timer", daemon=True)
            self._timer_thread = thread
            thread.start()
        logger.info("Aggregation scheduler started.")

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._timer_cond:
            aggregator = self._aggregator
            thread = self._timer_thread
            self._timer_thread = None
            self._stopping = True
            self._deadline = None
            self._timer_cond.notify_all()

        if aggregator is not None:
            aggregator.interrupt()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("Aggregation scheduler stopped.")

    # ---- state machine ----

    def schedule(self) -> None:
        """Request an aggregation pass."""
        with self._lock:
            now = self._clock()
            status = self._status

            if status == AggregationStatus.STAND_BY:
                self._initial_request_ts = now
                self._status = AggregationStatus.SCHEDULED
                last_end = self._last_aggregation_ended_ts
                if last_end is not None and now - last_end < self._delayed_execution_timeout_ms:
                    self._request_delayed(now)
                else:
                    self._request_now()

            elif status == AggregationStatus.INTERRUPTED:
                # Keep the initial request timestamp: a continuous string of
                # interrupted passes must still respect the max delay.
                self._status = AggregationStatus.SCHEDULED
                self._request_delayed(now)

            elif status == AggregationStatus.SCHEDULED:
                # Re-arm only while the pushed-out run still lands within the max delay.
                pushed_to = now - self._initial_request_ts + self._aggregation_delay_ms
                if pushed_to <= self._max_aggregation_delay_ms:
                    self._request_delayed(now)

            elif status == AggregationStatus.RUNNING:
                if now - self._initial_request_ts < self._max_aggregation_delay_ms:
                    aggregator = self._aggregator
                    if aggregator is not None:
                        aggregator.interrupt()
                    self._status = AggregationStatus.INTERRUPTED
                self._reschedule_when_complete = True

    def run(self) -> None:
        """Execute one aggregation pass (normally called by the timer or the task worker)."""
        with self._lock:
            # This pass covers every request so far; drop a timer that is still armed.
            self._dispatched = False
            self._deadline = None
            self._pending_delayed_run_at = None
            self._status = AggregationStatus.RUNNING
            self._reschedule_when_complete = False
            aggregator = self._aggregator
            # Interrupts from here on target this pass.
            if aggregator is not None:
                aggregator.clear_interrupt()

        try:
            if aggregator is None:
                logger.warning("Aggregation requested but no aggregator is configured.")
            else:
                aggregator.run()
        finally:
            with self._lock:
                self._last_aggregation_ended_ts = self._clock()
                if self._status == AggregationStatus.RUNNING:
                    self._status = AggregationStatus.STAND_BY
                if self._reschedule_when_complete:
                    self._reschedule_when_complete = False
                    self.schedule()
                else:
                    logger.debug("No more aggregation requests.")

    # ---- timer actions ----

    def _request_now(self) -> None:
        self._pending_delayed_run_at = None
        self.run_now()

    def _request_delayed(self, now: float) -> None:
        self._pending_delayed_run_at = now + self._aggregation_delay_ms
        self.run_delayed()

    def run_now(self) -> None:
        """Cancel any pending request and fire the pass as soon as possible."""
        self._arm_timer(0)

    def run_delayed(self) -> None:
        """Cancel any pending request and fire the pass after the aggregation delay."""
        self._arm_timer(self._aggregation_delay_ms)

    def _arm_timer(self, delay_ms: int) -> None:
        with self._timer_cond:
            self._deadline = time.monotonic() + delay_ms / 1000.0
            self._timer_cond.notify_all()
            if self._timer_thread is None:
                logger.debug("Aggregation timer armed before start(); it fires once started.")

    def _timer_loop(self) -> None:
        while True:
            with self._timer_cond:
                if self._stopping:
                    return
                if self._deadline is None:
                    self._timer_cond.wait()
                    continue
                remaining = self._deadline - time.monotonic()
                if remaining > 0:
                    self._timer_cond.wait(remaining)
                    continue
                self._deadline = None
                self._pending_delayed_run_at = None

            self._fire()

    def _fire(self) -> None:
        if self._task_scheduler is not None:
            with self._lock:
                if self._dispatched:
                    # The queued pass has not started; it will see every change so far.
                    logger.debug("Aggregation pass already queued; not queuing another.")
                    return
                self._dispatched = True
            self._task_scheduler.schedule_task(AGGREGATION_TASK_ID, self.run)
            return
        try:
            self.run()
        except Exception:
            logger.exception("Aggregation pass failed.")
