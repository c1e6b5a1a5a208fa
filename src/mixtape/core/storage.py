"""
SQLite-backed key/value storage for Mixtape.

Each storage key holds one text value (JSON in practice). The playlist lives
under a single current key; older releases used other keys which are only
read during migration.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from loguru import logger

from .exceptions import StorageError


class SqliteStorage:
    """Key/value store persisted in a single SQLite table."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._initialized = False

    @contextmanager
    def get_connection(self):
        """Get a database connection with proper cleanup and concurrency support."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row

        # WAL mode allows reads during writes
        conn.execute("PRAGMA journal_mode=WAL")

        try:
            yield conn
        finally:
            conn.close()

    def init_storage(self) -> None:
        """Create the key/value table if it does not exist yet."""
        if self._initialized:
            return
        try:
            with self.get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot initialize storage at {self.db_path}: {e}") from e
        self._initialized = True
        logger.debug(f"Storage ready: {self.db_path}")

    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if absent."""
        self.init_storage()
        try:
            with self.get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read key {key!r}: {e}") from e
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        self.init_storage()
        try:
            with self.get_connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (key, value),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write key {key!r}: {e}") from e

    def remove_item(self, key: str) -> None:
        """Delete key if present."""
        self.init_storage()
        try:
            with self.get_connection() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot delete key {key!r}: {e}") from e
