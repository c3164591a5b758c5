"""Entry point for the point-of-sale Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from pos.config import DB_PATH, LOG_PATH
from pos.data import seed_demo_data
from pos.errors import StorageError
from pos.persistence import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from pos.pos_app import PosApp
from pos.session import PointOfSale

logger = logging.getLogger(__name__)


def configure_logging(log_path: str = LOG_PATH) -> None:
    """Send log records to a file so they never draw over the terminal UI."""
    Path(log_path).parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def open_store(db_path: str | Path = DB_PATH) -> KeyValueStore:
    """Open the sqlite store; an unusable path falls back to memory for this run."""
    try:
        return SqliteKeyValueStore(db_path)
    except StorageError:
        logger.exception("store_unavailable path=%s fallback=memory", db_path)
        return MemoryKeyValueStore()


def open_session(db_path: str | Path = DB_PATH) -> PointOfSale:
    session = PointOfSale.open(open_store(db_path))
    if session.is_empty:
        seed_demo_data(session)
    return session


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    PosApp(open_session()).run()


if __name__ == "__main__":
    main()
