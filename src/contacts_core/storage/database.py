# src/contacts_core/storage/database.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


class ContactsDatabase:
    """
    Explicit storage handle: the sqlite database file plus the directory of derived photo files.

    Thread-safety:
    - connect() opens a fresh connection per call (no shared cursors),
      so callers on different threads never share sqlite state.
    """

    def __init__(self, db_path: Path, photo_dir: Path) -> None:
        self._db_path = Path(db_path)
        self._photo_dir = Path(photo_dir)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._photo_dir.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("ContactsDatabase ready db=%s photos=%s", self._db_path, self._photo_dir)

    @property
    def path(self) -> Path:
        return self._db_path

    @property
    def photo_dir(self) -> Path:
        return self._photo_dir

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back on any exception; the connection is always closed."""
        conn = self.connect()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            cur = conn.cursor()

            # ---- derived photo files ----
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS photo_files (
                    _id      INTEGER PRIMARY KEY AUTOINCREMENT,
                    path     TEXT NOT NULL UNIQUE,
                    width    INTEGER NOT NULL,
                    height   INTEGER NOT NULL,
                    filesize INTEGER NOT NULL
                )
                """
            )

            # ---- raw contacts (aggregation input) ----
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS raw_contacts (
                    _id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    contact_id   INTEGER,
                    display_name TEXT
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_raw_contacts_contact ON raw_contacts(contact_id)")
