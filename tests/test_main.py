"""Tests for opening the store and session at startup."""

import logging

from pos.main import open_session, open_store
from pos.persistence import MemoryKeyValueStore, SqliteKeyValueStore


class TestOpenStore:
    def test_opens_sqlite(self, tmp_path):
        assert isinstance(open_store(tmp_path / "pos.db"), SqliteKeyValueStore)

    def test_unusable_path_falls_back_to_memory(self, tmp_path, caplog):
        blocker = tmp_path / "afile"
        blocker.write_text("not a directory")

        with caplog.at_level(logging.ERROR, logger="pos.main"):
            store = open_store(blocker / "pos.db")

        assert isinstance(store, MemoryKeyValueStore)
        assert "store_unavailable" in caplog.text


class TestOpenSession:
    def test_seeds_empty_store(self, tmp_path):
        session = open_session(tmp_path / "pos.db")
        assert session.catalog.list_products()

    def test_fallback_session_is_usable(self, tmp_path):
        blocker = tmp_path / "afile"
        blocker.write_text("not a directory")
        session = open_session(blocker / "pos.db")
        assert session.inventory.list_ingredients()
