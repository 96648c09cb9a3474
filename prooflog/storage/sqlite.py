# prooflog/storage/sqlite.py
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from prooflog.core.errors import StorageError
from . import StorageBackend


class SQLiteStorage(StorageBackend):
    """SQLite key/value store; each key holds one whole serialized value."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

        # Ensure the entire parent directory tree exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        conn_str = str(self.db_path)
        self._conn = sqlite3.connect(conn_str, isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key         TEXT    PRIMARY KEY,
                value       TEXT    NOT NULL,
                updated_at  TEXT    NOT NULL
            )
        """)

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Storage connection is closed")
        return self._conn

    def get(self, key: str) -> Optional[str]:
        try:
            row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read key '{key}': {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        updated_at = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        try:
            self.conn.execute("""
                INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
            """, (key, value, updated_at))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write key '{key}': {e}") from e

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
