# src/contacts_core/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The schedulers and the aggregator depend on Protocols instead of concrete implementations.
This keeps storage and aggregation strategies swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import Any, Protocol

from ..aggregation.aggregation_models import RawContactName


class Aggregator(Protocol):
    """
    One long-running aggregation pass.

    interrupt() is called from another thread while run() is executing; it must not block.
    run() is expected to poll for the interruption and return early.
    clear_interrupt() is called by the scheduler, under its lock, right before a pass starts;
    an interrupt that arrives after it must stop that pass.
    """

    def run(self) -> None: ...

    def interrupt(self) -> None: ...

    def clear_interrupt(self) -> None: ...


class TaskConsumer(Protocol):
    """Invoked on the TaskScheduler worker thread; the thread identity may change between calls."""

    def __call__(self, task_id: int, arg: Any | None) -> None: ...


class RawContactSource(Protocol):
    """Read side of the raw contacts table, as seen by the name aggregator."""

    def iter_raw_contact_names(self) -> Iterable[RawContactName]: ...
