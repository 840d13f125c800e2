"""
Actor-scoped durable key/value storage (SQLite).

Each actor owns the rows carrying its actor_id. Values are stored as JSON
text. Failures raise StorageError; callers decide whether that is fatal.
"""
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .exceptions import StorageError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "cortex" / "cortex.db"


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class ActorStorage:
    """Key/value records private to one actor instance."""

    def __init__(self, actor_id: str, db_path: str = None):
        """Initialize storage and create the table if needed."""
        if db_path is None:
            db_path = str(DEFAULT_DB_PATH)
        self.actor_id = actor_id
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS actor_storage (
                        actor_id TEXT NOT NULL,
                        key TEXT NOT NULL,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        PRIMARY KEY (actor_id, key)
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot initialize storage at {self.db_path}: {e}") from e

    def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for key, or None if absent."""
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM actor_storage WHERE actor_id = ? AND key = ?",
                    (self.actor_id, key),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Error reading '{key}' for actor {self.actor_id}: {e}") from e

        if not row:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt record '{key}' for actor {self.actor_id}: {e}") from e

    def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Read several keys. Missing keys map to None."""
        return {key: self.get(key) for key in keys}

    def put(self, key: str, value: Any) -> None:
        """Insert or replace the value for key."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            payload = json.dumps(value)
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO actor_storage (actor_id, key, value, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(actor_id, key) DO UPDATE SET
                        value = excluded.value, updated_at = excluded.updated_at
                """, (self.actor_id, key, payload, now))
                conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise StorageError(f"Error writing '{key}' for actor {self.actor_id}: {e}") from e
        logger.debug(f"Persisted '{key}' for actor {self.actor_id} ({len(payload)} bytes)")
