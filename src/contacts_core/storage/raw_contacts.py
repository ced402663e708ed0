# src/contacts_core/storage/raw_contacts.py

from __future__ import annotations

import logging

from ..aggregation.aggregation_models import AggregationResult, RawContactName
from .database import ContactsDatabase

logger = logging.getLogger(__name__)


class RawContactStore:
    """
    SQLite-backed raw contact names; the RawContactSource read by NameAggregator.

    contact_id is the aggregate a raw contact belongs to (None until a pass has run).
    """

    def __init__(self, db: ContactsDatabase) -> None:
        self._db = db

    def add(self, display_name: str | None, contact_id: int | None = None) -> int:
        with self._db.transaction() as conn:
            cur = conn.execute(
                "INSERT INTO raw_contacts(contact_id, display_name) VALUES (?, ?)",
                (contact_id, display_name),
            )
            raw_contact_id = int(cur.lastrowid)
        logger.debug("Raw contact added id=%s name=%r", raw_contact_id, display_name)
        return raw_contact_id

    def count(self) -> int:
        conn = self._db.connect()
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM raw_contacts").fetchone()
            return int(row["n"] or 0)
        finally:
            conn.close()

    def iter_raw_contact_names(self) -> list[RawContactName]:
        conn = self._db.connect()
        try:
            rows = conn.execute("SELECT _id, contact_id, display_name FROM raw_contacts ORDER BY _id").fetchall()
        finally:
            conn.close()

        return [
            RawContactName(
                raw_contact_id=int(r["_id"]),
                contact_id=int(r["contact_id"]) if r["contact_id"] is not None else None,
                display_name=r["display_name"],
            )
            for r in rows
        ]

    def apply_result(self, result: AggregationResult) -> None:
        """
        Persist cluster membership: every raw contact of a cluster gets the cluster's
        lowest raw contact id as its contact_id. Interrupted passes are not applied.
        """
        if result.interrupted:
            logger.debug("Skipping interrupted aggregation result.")
            return

        updates = []
        for cluster in result.clusters:
            if not cluster:
                continue
            contact_id = min(cluster)
            updates.extend((contact_id, raw_id) for raw_id in cluster)

        with self._db.transaction() as conn:
            conn.executemany("UPDATE raw_contacts SET contact_id = ? WHERE _id = ?", updates)
        logger.info("Aggregation applied: %d raw contacts in %d contacts.", len(updates), len(result.clusters))
