"""Key-value persistence for serialized aggregates."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from pos.config import DB_PATH
from pos.errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def load(self, key: str) -> str | None:
        ...

    def save(self, key: str, value: str) -> None:
        ...


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteKeyValueStore:
    """Stores each aggregate as one row in a sqlite `kv_store` table."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)
        self.bootstrap_schema()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def bootstrap_schema(self) -> None:
        """Create the store table if it does not already exist."""
        try:
            with self._connect() as conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot open store at {self.db_path}: {exc}") from exc

    def load(self, key: str) -> str | None:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot load {key!r}: {exc}") from exc
        return None if row is None else str(row[0])

    def save(self, key: str, value: str) -> None:
        try:
            with self._connect() as conn:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                        """,
                        (key, value, _utc_now_iso()),
                    )
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot save {key!r}: {exc}") from exc


class MemoryKeyValueStore:
    """In-process store, used for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.data.get(key)

    def save(self, key: str, value: str) -> None:
        self.data[key] = value


def load_json(store: KeyValueStore | None, key: str) -> Any | None:
    """Load and decode one aggregate; failures are logged and read as missing."""
    if store is None:
        return None
    try:
        raw = store.load(key)
    except StorageError:
        logger.exception("load_failed key=%s", key)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.error("load_corrupt key=%s", key)
        return None


def save_json(store: KeyValueStore | None, key: str, payload: Any) -> bool:
    """Encode and save one aggregate; a failed save is logged, not raised."""
    if store is None:
        return False
    try:
        store.save(key, json.dumps(payload))
    except StorageError:
        logger.exception("save_failed key=%s", key)
        return False
    return True
