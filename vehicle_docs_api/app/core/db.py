"""
Record store abstraction and its SQLite implementation.

The service keeps every record (vehicles, documents, profile overlays
and locally managed accounts) as a JSON value under a string key.
``RecordStore`` describes the four operations the services rely on;
``SQLiteRecordStore`` implements them on top of a single ``kv_store``
table and is the default backend.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import json
import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional

from .config import settings
from .exceptions import StorageError


logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Mapping from string key to JSON-serialisable value."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value stored under ``key`` or ``None``."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Create or replace the value under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; return ``True`` if something was deleted."""

    @abstractmethod
    def get_by_prefix(self, prefix: str) -> List[Any]:
        """Return every value whose key starts with ``prefix``."""

    def init(self) -> None:
        """Prepare the backend (create tables, check connectivity)."""


MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
]


def resolve_database_path(db_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are used as is; relative paths are resolved against
    the project root.  ``:memory:`` is not supported because every
    operation opens its own connection.
    """
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


class SQLiteRecordStore(RecordStore):
    """Record store backed by one SQLite table.

    A new connection is opened for every operation, so the store can be
    shared between request handlers running in different threads.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.path = resolve_database_path(database_url or settings.database_url)

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection with dict-like rows."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def get_cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success and always close the connection."""
        try:
            conn = self.get_connection()
        except sqlite3.Error as exc:
            raise StorageError(detail=str(exc)) from exc
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(detail=str(exc)) from exc
        finally:
            conn.close()

    def init(self) -> None:
        """Initialise the database and apply pending migrations."""
        with self.get_cursor() as cursor:
            cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            cursor.execute("SELECT MAX(version) AS version FROM migrations")
            row = cursor.fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0
            for version, sql in MIGRATIONS:
                if version > current_version:
                    cursor.executescript(sql)
                    cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    logger.info("Applied record store migration %s", version)
                    current_version = version

    def get(self, key: str) -> Optional[Any]:
        with self.get_cursor() as cursor:
            row = cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return json.loads(row["value"]) if row else None

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        with self.get_cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, payload),
            )

    def delete(self, key: str) -> bool:
        with self.get_cursor() as cursor:
            cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def get_by_prefix(self, prefix: str) -> List[Any]:
        with self.get_cursor() as cursor:
            rows = cursor.execute(
                # substr keeps the match exact and case sensitive, unlike LIKE.
                "SELECT value FROM kv_store WHERE substr(key, 1, ?) = ? ORDER BY rowid",
                (len(prefix), prefix),
            ).fetchall()
        return [json.loads(row["value"]) for row in rows]
