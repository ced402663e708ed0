# src/contacts_core/photos/store.py

from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ..storage.database import ContactsDatabase
from .processor import PhotoProcessor

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".tmp"


@dataclass(frozen=True, slots=True)
class PhotoEntry:
    file_id: int
    path: str
    size_bytes: int
    width: int
    height: int


class PhotoStore:
    """
    Derived display photos stored as files next to the database, one file per entry,
    with a photo_files row recording dimensions and byte size.

    Invariants:
    - a row is only written after its file is fully in place (temp file + os.replace),
    - a failed row insert removes the file again,
    - removing an entry whose file is already gone is a no-op.

    Thread-safety:
    - every operation runs in its own sqlite transaction; no in-memory state is shared.
    """

    def __init__(self, db: ContactsDatabase) -> None:
        self._db = db
        self._dir = Path(db.photo_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._remove_stray_temp_files()

        logger.info("PhotoStore ready dir=%s total=%s bytes", self._dir, self.get_total_size())

    @property
    def directory(self) -> Path:
        return self._dir

    # ---- public API ----

    def insert(self, photo: PhotoProcessor) -> int:
        """
        Store the display rendition of a processed photo.

        Returns 0 when the display photo is no larger than the thumbnail bounds
        (a separate file would be redundant); otherwise the new file id.
        """
        display = photo.display_photo
        if display.width <= photo.max_thumbnail_dim and display.height <= photo.max_thumbnail_dim:
            return 0

        data = photo.display_photo_bytes
        name = f"{uuid.uuid4().hex}.jpg"
        final_path = self._dir / name
        tmp_path = self._dir / f".{name}{_TMP_SUFFIX}"

        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, final_path)
        except OSError:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            logger.exception("PhotoStore: failed to write %s", final_path)
            raise

        try:
            with self._db.transaction() as conn:
                cur = conn.execute(
                    "INSERT INTO photo_files(path, width, height, filesize) VALUES (?, ?, ?, ?)",
                    (name, display.width, display.height, len(data)),
                )
                file_id = int(cur.lastrowid)
        except sqlite3.Error:
            with contextlib.suppress(OSError):
                final_path.unlink()
            logger.exception("PhotoStore: failed to record %s", final_path)
            raise

        logger.debug("PhotoStore insert id=%s size=%s %sx%s", file_id, len(data), display.width, display.height)
        return file_id

    def get(self, file_id: int) -> PhotoEntry | None:
        conn = self._db.connect()
        try:
            row = conn.execute(
                "SELECT _id, path, width, height, filesize FROM photo_files WHERE _id = ?",
                (int(file_id),),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        return self._row_to_entry(row)

    def remove(self, file_id: int) -> None:
        with self._db.transaction() as conn:
            row = conn.execute("SELECT path FROM photo_files WHERE _id = ?", (int(file_id),)).fetchone()
            if row is None:
                return
            conn.execute("DELETE FROM photo_files WHERE _id = ?", (int(file_id),))

        self._delete_file(row["path"])
        logger.debug("PhotoStore remove id=%s", file_id)

    def cleanup(self, ids_in_use: Iterable[int]) -> set[int]:
        """
        Delete every entry not in ids_in_use.
        Returns the ids in use that do not refer to any stored entry.
        """
        in_use = {int(i) for i in ids_in_use}

        with self._db.transaction() as conn:
            rows = conn.execute("SELECT _id, path FROM photo_files").fetchall()
            stored = {int(r["_id"]) for r in rows}
            doomed = [r for r in rows if int(r["_id"]) not in in_use]
            conn.executemany("DELETE FROM photo_files WHERE _id = ?", [(int(r["_id"]),) for r in doomed])

        for r in doomed:
            self._delete_file(r["path"])

        missing = in_use - stored
        if doomed or missing:
            logger.info("PhotoStore cleanup: removed=%d unknown_ids=%d", len(doomed), len(missing))
        return missing

    def get_total_size(self) -> int:
        conn = self._db.connect()
        try:
            row = conn.execute("SELECT COALESCE(SUM(filesize), 0) AS total FROM photo_files").fetchone()
            return int(row["total"])
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._db.connect()
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM photo_files").fetchone()
            return int(row["n"] or 0)
        finally:
            conn.close()

    def clear(self) -> None:
        with self._db.transaction() as conn:
            rows = conn.execute("SELECT path FROM photo_files").fetchall()
            conn.execute("DELETE FROM photo_files")

        for r in rows:
            self._delete_file(r["path"])
        logger.info("PhotoStore cleared (%d files).", len(rows))

    # ---- internals ----

    def _resolve(self, name: str) -> Path:
        return self._dir / name

    def _row_to_entry(self, row: sqlite3.Row) -> PhotoEntry:
        return PhotoEntry(
            file_id=int(row["_id"]),
            path=str(self._resolve(row["path"])),
            size_bytes=int(row["filesize"]),
            width=int(row["width"]),
            height=int(row["height"]),
        )

    def _delete_file(self, name: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._resolve(name).unlink()

    def _remove_stray_temp_files(self) -> None:
        for p in self._dir.glob(f".*{_TMP_SUFFIX}"):
            with contextlib.suppress(OSError):
                p.unlink()
                logger.debug("PhotoStore: removed stray temp file %s", p)
