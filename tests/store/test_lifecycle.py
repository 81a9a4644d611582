"""Tests for store lifecycle, schema creation and failure policy."""

import logging
import pytest
from sqlalchemy import inspect, text

from smartmeet.store import SessionStore, StorageUnavailable
from smartmeet.store.schemas import OAuthTokenData, SessionCreate, SessionUpdate


class TestLifecycle:
    """Tests for initialize(), close() and the context manager."""

    def test_creates_all_tables(self, store):
        tables = set(inspect(store._engine).get_table_names())
        assert {
            "meetings", "participants", "email_logs", "chat_logs", "oauth_tokens", "system_settings"
        } <= tables

    def test_pragmas_applied_on_connect(self, store):
        with store._engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar().lower() == "wal"
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_reinitialize_keeps_existing_data(self, database_url):
        with SessionStore(database_url) as first:
            first.create_session(SessionCreate(id="s1", platform="cliq", meeting_link="https://cliq.zoho.com/m/1"))
            first.set_setting("retention_days", 30)

        with SessionStore(database_url) as second:
            second.initialize()
            assert second.get_session("s1").platform == "cliq"
            assert second.get_setting("retention_days") == 30

    def test_initialize_is_idempotent(self, store):
        engine = store._engine
        assert store.initialize() is store
        assert store._engine is engine

    def test_context_manager_closes_on_error(self, database_url):
        store = SessionStore(database_url)
        with pytest.raises(RuntimeError):
            with store:
                assert store.is_open
                raise RuntimeError("boom")
        assert not store.is_open

    def test_close_is_idempotent(self, database_url):
        store = SessionStore(database_url).initialize()
        store.close()
        store.close()
        assert not store.is_open

    def test_unreachable_database_raises_storage_unavailable(self, tmp_path):
        store = SessionStore(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'smartmeet.db'}")
        with pytest.raises(StorageUnavailable):
            store.initialize()
        assert not store.is_open


class TestFailurePolicy:
    """Writes surface errors; reads degrade to empty results."""

    @pytest.fixture
    def closed_store(self, database_url):
        store = SessionStore(database_url).initialize()
        store.close()
        return store

    def test_writes_raise(self, closed_store):
        with pytest.raises(StorageUnavailable):
            closed_store.create_session(SessionCreate(id="s1", platform="zoom", meeting_link="https://x"))
        with pytest.raises(StorageUnavailable):
            closed_store.update_session("s1", SessionUpdate(status="recording"))
        with pytest.raises(StorageUnavailable):
            closed_store.upsert_oauth_token("zoom", OAuthTokenData(access_token="a"), "jane@x.com")
        with pytest.raises(StorageUnavailable):
            closed_store.set_setting("k", "v")
        with pytest.raises(StorageUnavailable):
            closed_store.cleanup_old_data(90)

    def test_reads_degrade(self, closed_store):
        assert closed_store.get_session("s1") is None
        assert closed_store.list_recent_sessions() == []
        assert closed_store.count_active_sessions() == 0
        assert closed_store.list_participants("s1") == []
        assert closed_store.list_email_logs("s1") == []
        assert closed_store.list_pending_or_failed_emails() == []
        assert closed_store.list_chat_history("s1") == []
        assert closed_store.get_oauth_token("zoom", "jane@x.com") is None
        assert closed_store.get_setting("k", default="d") == "d"

    def test_corrupt_summary_reads_as_missing(self, store, make_session):
        make_session(id="s1")
        with store._engine.begin() as conn:
            conn.execute(text("UPDATE meetings SET summary_data = '{broken' WHERE id = 's1'"))

        assert store.get_session("s1") is None
        assert store.list_recent_sessions() == []

    def test_wrongly_shaped_metadata_reads_as_missing(self, store, make_session):
        make_session(id="s1")
        with store._engine.begin() as conn:
            conn.execute(text("UPDATE meetings SET meeting_metadata = '[1]' WHERE id = 's1'"))

        assert store.get_session("s1") is None
        assert store.list_sessions_by_platform("zoom") == []

    def test_failed_read_is_logged_once(self, store, make_session, caplog):
        make_session(id="s1")
        with store._engine.begin() as conn:
            conn.execute(text("UPDATE meetings SET summary_data = '{broken' WHERE id = 's1'"))

        with caplog.at_level(logging.DEBUG, logger="smartmeet.store"):
            assert store.get_session("s1") is None

        records = [r for r in caplog.records if r.name == "smartmeet.store"]
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
