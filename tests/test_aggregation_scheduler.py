# tests/test_aggregation_scheduler.py

from __future__ import annotations

import threading
import time

import pytest

from contacts_core.aggregation.scheduler import (
    AGGREGATION_DELAY,
    AGGREGATION_TASK_ID,
    DELAYED_EXECUTION_TIMEOUT,
    MAX_AGGREGATION_DELAY,
    AggregationScheduler,
    AggregationStatus,
)
from contacts_core.tasks.task_scheduler import TaskScheduler

from .fakes import FakeAggregator


class CountingScheduler(AggregationScheduler):
    """
    Scheduler with a hand-driven clock whose timer actions only count invocations.
    No thread is ever started.
    """

    def __init__(self, aggregator=None) -> None:
        self.now = 1000.0
        self.run_now_calls = 0
        self.run_delayed_calls = 0
        super().__init__(aggregator, clock=lambda: self.now)

    def run_now(self) -> None:
        self.run_now_calls += 1

    def run_delayed(self) -> None:
        self.run_delayed_calls += 1


def _rescheduling_aggregator(scheduler: AggregationScheduler) -> FakeAggregator:
    return FakeAggregator(on_run=scheduler.schedule)


def test_schedule_initial_runs_now() -> None:
    s = CountingScheduler()
    s.schedule()
    assert s.run_now_calls == 1
    assert s.run_delayed_calls == 0
    assert s.status == AggregationStatus.SCHEDULED


def test_schedule_twice_rapidly_delays_second() -> None:
    s = CountingScheduler()
    s.schedule()

    s.now += DELAYED_EXECUTION_TIMEOUT / 2
    s.schedule()

    assert s.run_now_calls == 1
    assert s.run_delayed_calls == 1


def test_schedule_thrice_rapidly_rearms_delay() -> None:
    s = CountingScheduler()
    s.schedule()

    s.now += DELAYED_EXECUTION_TIMEOUT / 2
    s.schedule()

    s.now += AGGREGATION_DELAY / 2
    s.schedule()

    assert s.run_now_calls == 1
    assert s.run_delayed_calls == 2


def test_schedule_thrice_exceeding_max_delay_keeps_timer() -> None:
    s = CountingScheduler()
    s.schedule()

    s.now += DELAYED_EXECUTION_TIMEOUT / 2
    s.schedule()

    s.now += MAX_AGGREGATION_DELAY + 100
    s.schedule()

    assert s.run_delayed_calls == 1
    assert s.status == AggregationStatus.SCHEDULED


def test_schedule_while_running_interrupts_and_owes_followup() -> None:
    s = CountingScheduler()
    agg = _rescheduling_aggregator(s)
    s.set_aggregator(agg)

    s.run()

    assert agg.interrupted_during_run == [True]
    assert s.run_delayed_calls == 1
    # Follow-up pass was armed from INTERRUPTED.
    assert s.status == AggregationStatus.SCHEDULED


def test_repeated_interruptions_respect_max_delay() -> None:
    s = CountingScheduler()
    agg = _rescheduling_aggregator(s)
    s.set_aggregator(agg)

    s.run()
    assert s.run_delayed_calls == 1

    s.now += MAX_AGGREGATION_DELAY + 100
    second = _rescheduling_aggregator(s)
    s.set_aggregator(second)
    s.run()

    # Anchor was kept across the interrupted pass, so the cap is already exceeded.
    assert second.interrupted_during_run == [False]
    assert second.interrupt_calls == 0


def test_schedule_while_running_exceeding_max_delay() -> None:
    s = CountingScheduler()
    s.schedule()

    s.now += DELAYED_EXECUTION_TIMEOUT / 2
    s.schedule()

    s.now += MAX_AGGREGATION_DELAY + 100
    agg = _rescheduling_aggregator(s)
    s.set_aggregator(agg)
    s.run()

    assert agg.interrupt_calls == 0
    assert s.run_now_calls == 1
    assert s.run_delayed_calls == 2


def test_quiet_period_after_run_runs_now_again() -> None:
    s = CountingScheduler(FakeAggregator())
    s.schedule()
    s.run()
    assert s.status == AggregationStatus.STAND_BY

    s.now += DELAYED_EXECUTION_TIMEOUT
    s.schedule()
    assert s.run_now_calls == 2
    assert s.run_delayed_calls == 0


def test_run_without_aggregator_returns_to_stand_by() -> None:
    s = CountingScheduler()
    s.schedule()
    s.run()
    st = s.state()
    assert st.status == AggregationStatus.STAND_BY
    assert st.last_run_end_time == 1000.0
    assert st.pending_delayed_run_at is None
    assert st.is_running is False


def test_state_reports_pending_delayed_run() -> None:
    s = CountingScheduler()
    s.schedule()
    s.run()

    s.now += 100
    s.schedule()
    st = s.state()
    assert st.status == AggregationStatus.SCHEDULED
    assert st.pending_delayed_run_at == s.now + AGGREGATION_DELAY
    assert st.first_delay_request_time == s.now


def test_aggregator_failure_still_finishes_pass() -> None:
    class Boom:
        def run(self) -> None:
            raise RuntimeError("boom")

        def interrupt(self) -> None:
            pass

        def clear_interrupt(self) -> None:
            pass

    s = CountingScheduler(Boom())
    s.schedule()
    with pytest.raises(RuntimeError):
        s.run()
    assert s.status == AggregationStatus.STAND_BY
    assert s.state().last_run_end_time is not None


def test_timer_thread_fires_pass_on_task_scheduler() -> None:
    ran = threading.Event()

    def consumer(task_id, arg) -> None:
        assert task_id == AGGREGATION_TASK_ID
        arg()

    agg = FakeAggregator(on_run=ran.set)
    tasks = TaskScheduler("test-maintenance", consumer, shutdown_timeout_seconds=0.2)
    s = AggregationScheduler(
        agg,
        task_scheduler=tasks,
        aggregation_delay_ms=10,
        max_aggregation_delay_ms=100,
        delayed_execution_timeout_ms=5,
    )
    s.start()
    try:
        s.schedule()
        assert ran.wait(timeout=5.0)
        assert tasks.wait_idle(timeout=5.0)
    finally:
        s.stop(timeout=5.0)
        tasks.shutdown_for_test(timeout=5.0)

    assert agg.run_calls == 1
    assert s.status == AggregationStatus.STAND_BY


def test_scheduled_rearm_stops_when_delay_would_pass_max() -> None:
    s = CountingScheduler()
    s.schedule()

    s.now += MAX_AGGREGATION_DELAY - AGGREGATION_DELAY
    s.schedule()
    assert s.run_delayed_calls == 1

    s.now += 1
    s.schedule()
    assert s.run_delayed_calls == 1


def test_pass_start_clears_stale_interrupt() -> None:
    agg = FakeAggregator()
    s = CountingScheduler(agg)
    s.schedule()
    s.run()
    assert agg.clear_calls == 1


def test_burst_while_worker_busy_runs_one_pass() -> None:
    busy = threading.Event()
    release = threading.Event()

    def consumer(task_id, arg) -> None:
        if task_id == AGGREGATION_TASK_ID:
            arg()
        else:
            busy.set()
            release.wait(timeout=5.0)

    agg = FakeAggregator()
    tasks = TaskScheduler("test-maintenance", consumer, shutdown_timeout_seconds=0.2)
    s = AggregationScheduler(
        agg,
        task_scheduler=tasks,
        aggregation_delay_ms=10,
        max_aggregation_delay_ms=10000,
        delayed_execution_timeout_ms=5,
    )
    s.start()
    try:
        tasks.schedule_task(7)
        assert busy.wait(timeout=5.0)

        # First request fires at once and queues a pass behind task 7.
        s.schedule()
        time.sleep(0.1)
        # Second request re-arms the timer; it fires while the pass is still queued.
        s.schedule()
        time.sleep(0.1)

        st = s.state()
        assert st.status == AggregationStatus.SCHEDULED
        assert st.pending_delayed_run_at is None

        release.set()
        assert tasks.wait_idle(timeout=5.0)
    finally:
        release.set()
        s.stop(timeout=5.0)
        tasks.shutdown_for_test(timeout=5.0)

    assert agg.run_calls == 1
    assert s.status == AggregationStatus.STAND_BY
