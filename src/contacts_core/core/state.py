# src/contacts_core/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..aggregation.aggregator import NameAggregator
from ..aggregation.scheduler import AggregationScheduler
from ..config import Settings
from ..names.matcher import NameMatcher
from ..photos.store import PhotoStore
from ..storage.database import ContactsDatabase
from ..storage.raw_contacts import RawContactStore
from ..tasks.task_scheduler import TaskScheduler


@dataclass
class AppState:
    settings: Settings

    database: ContactsDatabase
    raw_contacts: RawContactStore
    photo_store: PhotoStore

    matcher: NameMatcher
    aggregator: NameAggregator
    task_scheduler: TaskScheduler
    aggregation_scheduler: AggregationScheduler

    # Serializes console commands against each other.
    lock: threading.RLock = field(default_factory=threading.RLock)
