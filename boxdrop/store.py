"""
AnnotationStore - ordered annotation records for one image source.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from boxdrop.db import migrate_db, get_connection
from boxdrop.models import (
    AnnotationRecord,
    points_to_json, points_from_json, style_to_json, style_from_json,
)

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".annotations.db"


def default_db_path(image_path: str) -> str:
    """Sidecar database stored next to the image."""
    path = Path(image_path)
    return str(path.with_name(path.name + SIDECAR_SUFFIX))


class AnnotationStore:
    """
    Handles reading and writing the annotation sequence of one image.

    ``replace`` and ``persist`` share a single SQLite transaction: nothing
    written by ``replace`` is visible until ``persist`` commits, and closing
    the store without persisting rolls the changes back.
    """

    def __init__(self, db_path: str, source: str):
        """
        Initialize store.

        Args:
            db_path: Path to the SQLite database file
            source: Image source identifier the records belong to
        """
        self.db_path = db_path
        self.source = source
        self._conn: Optional[sqlite3.Connection] = None
        self._image_id: Optional[int] = None

    @classmethod
    @contextmanager
    def session(cls, db_path: str, source: str) -> Iterator['AnnotationStore']:
        """Open a store, roll back on error, always close."""
        store = cls(db_path, source)
        try:
            yield store
        except Exception:
            store.rollback()
            raise
        finally:
            store.close()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            migrate_db(self.db_path)
            self._conn = get_connection(self.db_path)
        return self._conn

    def close(self):
        """Close the database connection, discarding anything not persisted."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._image_id = None

    def persist(self):
        """Commit the current transaction."""
        self.conn.commit()

    def rollback(self):
        """Discard changes since the last persist."""
        if self._conn:
            self._conn.rollback()

    @property
    def image_id(self) -> int:
        """Row id of this store's image source, created on first use."""
        if self._image_id is None:
            self.conn.execute(
                "INSERT OR IGNORE INTO images (source) VALUES (?)",
                (self.source,)
            )
            cursor = self.conn.execute(
                "SELECT id FROM images WHERE source = ?",
                (self.source,)
            )
            self._image_id = cursor.fetchone()['id']
        return self._image_id

    # ==================== Sequence Operations ====================

    def load(self) -> list[AnnotationRecord]:
        """
        Load all records for the image in stored order.

        Returns:
            Ordered list of AnnotationRecord objects
        """
        cursor = self.conn.execute(
            """
            SELECT a.* FROM annotations a
            JOIN images i ON a.image_id = i.id
            WHERE i.source = ?
            ORDER BY a.order_index, a.id
            """,
            (self.source,)
        )
        return [self._row_to_record(row) for row in cursor.fetchall()]

    def replace(self, records: list[AnnotationRecord]) -> None:
        """
        Replace the stored sequence with ``records``.

        Record ids are not preserved; call ``load`` after ``persist`` to
        get the new ids.

        Args:
            records: New ordered sequence
        """
        image_id = self.image_id
        self.conn.execute(
            "DELETE FROM annotations WHERE image_id = ?",
            (image_id,)
        )
        self.conn.executemany(
            """
            INSERT INTO annotations
            (image_id, order_index, name, style_json, geometry, points_json, description)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    image_id, idx, rec.name, style_to_json(rec.style),
                    rec.geometry, points_to_json(rec.points), rec.description,
                )
                for idx, rec in enumerate(records)
            ]
        )
        logger.debug(f"Replaced annotations of {self.source} with {len(records)} records")

    def append(self, record: AnnotationRecord) -> AnnotationRecord:
        """
        Append a single record and persist it.

        This is what the viewer does when the user finishes drawing.

        Returns:
            The stored record with its id
        """
        image_id = self.image_id
        cursor = self.conn.execute(
            "SELECT COALESCE(MAX(order_index), -1) + 1 FROM annotations WHERE image_id = ?",
            (image_id,)
        )
        order_index = cursor.fetchone()[0]
        cursor = self.conn.execute(
            """
            INSERT INTO annotations
            (image_id, order_index, name, style_json, geometry, points_json, description)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                image_id, order_index, record.name, style_to_json(record.style),
                record.geometry, points_to_json(record.points), record.description,
            )
        )
        self.persist()
        return self.get_record_by_id(cursor.lastrowid)

    def get_record_by_id(self, record_id: int) -> Optional[AnnotationRecord]:
        """Get record by its ID."""
        cursor = self.conn.execute(
            "SELECT * FROM annotations WHERE id = ?",
            (record_id,)
        )
        row = cursor.fetchone()
        return self._row_to_record(row) if row else None

    def delete(self, record_id: int) -> bool:
        """
        Delete a record of this image and persist.

        Returns:
            True if a record was deleted
        """
        cursor = self.conn.execute(
            "DELETE FROM annotations WHERE id = ? AND image_id = ?",
            (record_id, self.image_id)
        )
        self.persist()
        return cursor.rowcount > 0

    def _row_to_record(self, row: sqlite3.Row) -> AnnotationRecord:
        """Convert database row to AnnotationRecord object."""
        return AnnotationRecord(
            id=row['id'],
            name=row['name'],
            style=style_from_json(row['style_json']),
            geometry=row['geometry'],
            points=points_from_json(row['points_json']),
            description=row['description'],
        )
