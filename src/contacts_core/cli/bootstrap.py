# src/contacts_core/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires storage, name matching, the aggregator and both schedulers into AppState.

Nothing is started here; main() owns start/stop of background threads.
"""

from __future__ import annotations

import logging

from ..aggregation.aggregator import NameAggregator
from ..aggregation.scheduler import AggregationScheduler
from ..config import get_settings
from ..core.state import AppState
from ..names.matcher import NameMatcher
from ..photos.store import PhotoStore
from ..storage.database import ContactsDatabase
from ..storage.raw_contacts import RawContactStore
from ..tasks.maintenance import MaintenanceTaskConsumer
from ..tasks.task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    settings.photo_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    database = ContactsDatabase(settings.database_path, settings.photo_dir)
    raw_contacts = RawContactStore(database)
    photo_store = PhotoStore(database)

    matcher = NameMatcher.from_settings(settings)
    aggregator = NameAggregator(raw_contacts, matcher, on_result=raw_contacts.apply_result)

    task_scheduler = TaskScheduler(
        "maintenance",
        MaintenanceTaskConsumer(photo_store),
        shutdown_timeout_seconds=settings.task_shutdown_timeout_seconds,
    )
    aggregation_scheduler = AggregationScheduler(
        aggregator,
        task_scheduler=task_scheduler,
        aggregation_delay_ms=settings.aggregation_delay_ms,
        max_aggregation_delay_ms=settings.max_aggregation_delay_ms,
        delayed_execution_timeout_ms=settings.delayed_execution_timeout_ms,
    )

    state = AppState(
        settings=settings,
        database=database,
        raw_contacts=raw_contacts,
        photo_store=photo_store,
        matcher=matcher,
        aggregator=aggregator,
        task_scheduler=task_scheduler,
        aggregation_scheduler=aggregation_scheduler,
    )
    logger.debug("AppState created (db=%s).", settings.database_path)
    return state
