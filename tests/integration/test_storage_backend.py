"""
Integration tests for the SQLite request-log backend.
"""

from datetime import datetime, timedelta, timezone

import pytest

from crawlguard.storage import (
    QueryError,
    SchemaError,
    StorageError,
    get_backend,
    list_available_backends,
    register_backend,
)
from crawlguard.storage.sqlite_backend import SQLiteBackend


def make_record(site_id="42", **overrides) -> dict:
    """Build a request log row."""
    record = {
        "site_id": site_id,
        "ip_address": "203.0.113.7",
        "user_agent": "GPTBot/1.0",
        "bot_detected": True,
        "bot_type": "ai_bot",
        "bot_name": "OpenAI",
        "confidence_score": 95,
        "page_url": "/blog/post",
        "content_type": "page",
        "content_length": 512,
        "action_taken": "monetized",
        "revenue_amount": "0.002",
        "metadata": {"detection_method": "signature_match"},
    }
    record.update(overrides)
    return record


class TestFactory:
    """Tests for backend factory functions."""

    def test_sqlite_registered(self):
        """SQLite is available out of the box."""
        assert "sqlite" in list_available_backends()

    def test_get_backend(self, temp_db_path):
        """get_backend builds a SQLite backend for the path."""
        backend = get_backend("sqlite", db_path=temp_db_path)

        assert isinstance(backend, SQLiteBackend)
        assert backend.backend_type == "sqlite"
        assert backend.db_path == temp_db_path

    def test_unknown_backend(self):
        """Unknown backend types raise StorageError."""
        with pytest.raises(StorageError, match="Unknown storage backend"):
            get_backend("postgres", db_path="x.db")

    def test_bad_constructor_args(self, temp_db_path):
        """Constructor failures surface as StorageError."""
        with pytest.raises(StorageError, match="Failed to create"):
            get_backend("sqlite", db_path=temp_db_path, colour="blue")

    def test_register_backend(self, temp_db_path):
        """Custom backends can be registered under a new name."""
        register_backend("sqlite-test", SQLiteBackend)

        backend = get_backend("sqlite-test", db_path=temp_db_path)

        assert isinstance(backend, SQLiteBackend)
        assert "sqlite-test" in list_available_backends()


class TestSchema:
    """Tests for schema creation."""

    def test_initialize_creates_table(self, sqlite_backend):
        """initialize creates the request log table."""
        assert sqlite_backend.table_exists("bot_requests")
        assert sqlite_backend.get_table_row_count() == 0

    def test_initialize_is_idempotent(self, sqlite_backend):
        """Calling initialize twice is safe."""
        sqlite_backend.initialize()
        assert sqlite_backend.table_exists("bot_requests")

    def test_row_count_missing_table(self, sqlite_backend):
        """Counting a missing table raises SchemaError."""
        with pytest.raises(SchemaError):
            sqlite_backend.get_table_row_count("nope")

    def test_health_check(self, sqlite_backend):
        """Healthy backends report their database details."""
        health = sqlite_backend.health_check()

        assert health["healthy"] is True
        assert health["backend_type"] == "sqlite"
        assert health["details"]["request_log_exists"] is True


class TestInsertAndFind:
    """Tests for writing and reading log rows."""

    def test_insert_returns_ids(self, sqlite_backend):
        """Each inserted row gets an increasing id."""
        ids = sqlite_backend.insert_bot_requests([make_record(), make_record()])

        assert len(ids) == 2
        assert ids[1] > ids[0]
        assert sqlite_backend.get_table_row_count() == 2

    def test_insert_empty(self, sqlite_backend):
        """Inserting nothing is a no-op."""
        assert sqlite_backend.insert_bot_requests([]) == []

    def test_find_by_id_round_trips_types(self, sqlite_backend):
        """Stored rows come back with Python types."""
        (request_id,) = sqlite_backend.insert_bot_requests([make_record()])

        row = sqlite_backend.find_by_id(request_id)

        assert row["id"] == request_id
        assert row["bot_detected"] is True
        assert row["revenue_amount"] == "0.002"
        assert row["metadata"] == {"detection_method": "signature_match"}
        assert row["created_at"]

    def test_find_by_id_missing(self, sqlite_backend):
        """Unknown ids return None."""
        assert sqlite_backend.find_by_id(999) is None

    def test_defaults_for_missing_fields(self, sqlite_backend):
        """Sparse rows get logged, zero revenue and empty metadata."""
        (request_id,) = sqlite_backend.insert_bot_requests(
            [{"site_id": "42", "user_agent": "Mozilla/5.0"}]
        )

        row = sqlite_backend.find_by_id(request_id)

        assert row["bot_detected"] is False
        assert row["action_taken"] == "logged"
        assert row["revenue_amount"] == "0.00"
        assert row["confidence_score"] == 0
        assert row["metadata"] == {}

    def test_invalid_action_rejected(self, sqlite_backend):
        """Unknown actions violate the table constraint."""
        with pytest.raises(QueryError):
            sqlite_backend.insert_bot_requests([make_record(action_taken="charged")])

        assert sqlite_backend.get_table_row_count() == 0

    def test_find_by_site_newest_first(self, sqlite_backend):
        """Rows for a site come back newest first."""
        now = datetime.now(timezone.utc)
        sqlite_backend.insert_bot_requests(
            [
                make_record(page_url="/old", created_at=now - timedelta(hours=2)),
                make_record(page_url="/new", created_at=now),
                make_record(page_url="/mid", created_at=now - timedelta(hours=1)),
                make_record(site_id="7", page_url="/other"),
            ]
        )

        rows = sqlite_backend.find_by_site("42")

        assert [r["page_url"] for r in rows] == ["/new", "/mid", "/old"]

    def test_find_by_site_paging(self, sqlite_backend):
        """limit and offset page through results."""
        now = datetime.now(timezone.utc)
        sqlite_backend.insert_bot_requests(
            [make_record(content_length=i, created_at=now - timedelta(minutes=i)) for i in range(5)]
        )

        page = sqlite_backend.find_by_site("42", limit=2, offset=2)

        assert [r["content_length"] for r in page] == [2, 3]

    def test_find_by_site_without_site(self, sqlite_backend):
        """None selects rows logged without a site id."""
        sqlite_backend.insert_bot_requests(
            [{"site_id": None, "user_agent": "GPTBot/1.0"}, make_record()]
        )

        rows = sqlite_backend.find_by_site(None)

        assert len(rows) == 1
        assert rows[0]["site_id"] is None
        assert rows[0]["user_agent"] == "GPTBot/1.0"

    def test_find_by_site_without_site_and_filters(self, sqlite_backend):
        """None combines with the other filters."""
        sqlite_backend.insert_bot_requests(
            [
                {"site_id": None, "bot_detected": True},
                {"site_id": None, "bot_detected": False},
            ]
        )

        assert len(sqlite_backend.find_by_site(None, bot_detected=True)) == 1

    def test_find_by_site_filters(self, sqlite_backend):
        """bot_detected and date filters narrow results."""
        now = datetime.now(timezone.utc)
        sqlite_backend.insert_bot_requests(
            [
                make_record(created_at=now - timedelta(days=3)),
                make_record(created_at=now),
                make_record(bot_detected=False, action_taken="logged", created_at=now),
            ]
        )

        bots = sqlite_backend.find_by_site("42", bot_detected=True)
        recent = sqlite_backend.find_by_site("42", start_date=now - timedelta(days=1))
        older = sqlite_backend.find_by_site("42", end_date=now - timedelta(days=1))

        assert len(bots) == 2
        assert len(recent) == 2
        assert len(older) == 1


class TestCleanup:
    """Tests for retention cleanup."""

    def test_deletes_only_old_rows(self, sqlite_backend):
        """Rows older than the retention period are deleted."""
        now = datetime.now(timezone.utc)
        sqlite_backend.insert_bot_requests(
            [
                make_record(created_at=now - timedelta(days=100)),
                make_record(created_at=now - timedelta(days=91)),
                make_record(created_at=now - timedelta(days=10)),
                make_record(),
            ]
        )

        deleted = sqlite_backend.cleanup_old_requests(days=90)

        assert deleted == 2
        assert sqlite_backend.get_table_row_count() == 2

    def test_naive_timestamps_treated_as_utc(self, sqlite_backend):
        """Naive created_at values are stored as UTC."""
        old = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=40)
        sqlite_backend.insert_bot_requests([make_record(created_at=old)])

        assert sqlite_backend.cleanup_old_requests(days=30) == 1

    @pytest.mark.parametrize("days", [0, -5])
    def test_invalid_retention(self, sqlite_backend, days):
        """Retention below one day is rejected."""
        with pytest.raises(ValueError):
            sqlite_backend.cleanup_old_requests(days=days)


class TestContextManager:
    """Tests for backend context manager support."""

    def test_closes_connection(self, temp_db_path):
        """Leaving the with block closes the connection."""
        with get_backend("sqlite", db_path=temp_db_path) as backend:
            backend.initialize()
            backend.insert_bot_requests([make_record()])
            assert backend._connection is not None

        assert backend._connection is None
