# src/contacts_core/tasks/maintenance.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..aggregation.scheduler import AGGREGATION_TASK_ID
from ..photos.store import PhotoStore

logger = logging.getLogger(__name__)

# arg: iterable of photo file ids still referenced.
PHOTO_CLEANUP_TASK_ID = 2


class MaintenanceTaskConsumer:
    """
    Task consumer for the background maintenance worker.

    Task ids:
    - AGGREGATION_TASK_ID: arg is the aggregation pass callable
    - PHOTO_CLEANUP_TASK_ID: arg is the set of photo file ids in use
    """

    def __init__(self, photo_store: PhotoStore | None = None) -> None:
        self._photo_store = photo_store

    def __call__(self, task_id: int, arg: Any | None) -> None:
        if task_id == AGGREGATION_TASK_ID:
            run: Callable[[], Any] = arg
            run()
            return

        if task_id == PHOTO_CLEANUP_TASK_ID:
            if self._photo_store is None:
                raise RuntimeError("Photo cleanup scheduled without a photo store")
            missing = self._photo_store.cleanup(arg or ())
            if missing:
                logger.warning("Photo cleanup: %d referenced ids have no stored file: %s", len(missing), sorted(missing))
            return

        raise ValueError(f"Unknown maintenance task id: {task_id}")
