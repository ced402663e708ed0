# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from contacts_core.cli.bootstrap import create_initial_state
from contacts_core.config import (
    DEFAULT_FAMILY_NAME_PREFIXES,
    DEFAULT_NAME_CONJUNCTIONS,
    DEFAULT_NAME_PREFIXES,
    DEFAULT_NAME_SUFFIXES,
)
from contacts_core.core.state import AppState
from contacts_core.photos.store import PhotoStore
from contacts_core.storage.database import ContactsDatabase


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="contacts-test",
        log_level="DEBUG",
        console_enabled=False,
        # Paths (tmp per test run)
        data_dir=data_dir,
        database_path=data_dir / "contacts.sqlite3",
        photo_dir=data_dir / "photos",
        # Background work (short so idle workers exit quickly)
        task_shutdown_timeout_seconds=0.2,
        aggregation_delay_ms=1000,
        max_aggregation_delay_ms=10000,
        delayed_execution_timeout_ms=500,
        # Photos
        max_display_photo_dim=256,
        max_thumbnail_dim=96,
        # Name matching
        name_distance_max_length=30,
        name_prefixes=DEFAULT_NAME_PREFIXES,
        name_family_name_prefixes=DEFAULT_FAMILY_NAME_PREFIXES,
        name_suffixes=DEFAULT_NAME_SUFFIXES,
        name_conjunctions=DEFAULT_NAME_CONJUNCTIONS,
    )


@pytest.fixture()
def database(settings: SimpleNamespace) -> ContactsDatabase:
    return ContactsDatabase(settings.database_path, settings.photo_dir)


@pytest.fixture()
def photo_store(database: ContactsDatabase) -> PhotoStore:
    return PhotoStore(database)


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState from the real composition root.

    Real SQLite stores are kept: their correctness is part of what we want to test.
    Background threads are not started.
    """
    return create_initial_state(settings=settings)
