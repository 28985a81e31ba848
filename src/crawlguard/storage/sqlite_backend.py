"""
SQLite request-log backend.

One table, ``bot_requests``, holding a row per evaluated request.
Timestamps are stored as UTC ISO8601 text with microseconds so that
lexical order matches time order.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from ..config.constants import (
    DEFAULT_PAGE_LIMIT,
    DEFAULT_RETENTION_DAYS,
    TABLE_BOT_REQUESTS,
    ZERO_REVENUE,
)
from .base import QueryError, SchemaError, StorageBackend, StorageConnectionError

logger = logging.getLogger(__name__)

BOT_REQUESTS_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_BOT_REQUESTS} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    site_id TEXT,
    ip_address TEXT,
    user_agent TEXT,
    bot_detected INTEGER NOT NULL DEFAULT 0,
    bot_type TEXT,
    bot_name TEXT,
    confidence_score INTEGER NOT NULL DEFAULT 0,
    page_url TEXT,
    content_type TEXT,
    content_length INTEGER NOT NULL DEFAULT 0,
    action_taken TEXT NOT NULL DEFAULT 'logged',
    revenue_amount TEXT NOT NULL DEFAULT '{ZERO_REVENUE}',
    metadata TEXT,
    created_at TEXT NOT NULL,
    CONSTRAINT valid_action CHECK (
        action_taken IN ('logged', 'allowed', 'blocked', 'monetized')
    )
)
"""

BOT_REQUESTS_INDEXES = (
    f"CREATE INDEX IF NOT EXISTS idx_requests_site ON {TABLE_BOT_REQUESTS}(site_id)",
    f"CREATE INDEX IF NOT EXISTS idx_requests_created ON {TABLE_BOT_REQUESTS}(created_at)",
    f"CREATE INDEX IF NOT EXISTS idx_requests_site_created "
    f"ON {TABLE_BOT_REQUESTS}(site_id, created_at)",
)

# Writable columns, in insert order
_COLUMNS = (
    "site_id",
    "ip_address",
    "user_agent",
    "bot_detected",
    "bot_type",
    "bot_name",
    "confidence_score",
    "page_url",
    "content_type",
    "content_length",
    "action_taken",
    "revenue_amount",
    "metadata",
    "created_at",
)

_INSERT_SQL = (
    f"INSERT INTO {TABLE_BOT_REQUESTS} ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in _COLUMNS)})"
)


def _to_sqlite_timestamp(value: Any) -> Optional[str]:
    """Render a datetime as UTC ISO8601; naive values are taken as UTC."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        return str(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _record_to_row(record: dict, now: str) -> dict:
    """Map a log record onto column values with storage defaults."""
    metadata = record.get("metadata") or {}
    if not isinstance(metadata, str):
        metadata = json.dumps(metadata, default=str)

    return {
        "site_id": record.get("site_id"),
        "ip_address": record.get("ip_address"),
        "user_agent": record.get("user_agent"),
        "bot_detected": 1 if record.get("bot_detected") else 0,
        "bot_type": record.get("bot_type"),
        "bot_name": record.get("bot_name"),
        "confidence_score": record.get("confidence_score") or 0,
        "page_url": record.get("page_url"),
        "content_type": record.get("content_type"),
        "content_length": record.get("content_length") or 0,
        "action_taken": record.get("action_taken") or "logged",
        "revenue_amount": str(record.get("revenue_amount") or ZERO_REVENUE),
        "metadata": metadata,
        "created_at": _to_sqlite_timestamp(record.get("created_at")) or now,
    }


def _row_to_record(row: dict) -> dict:
    """Turn a stored row back into a log record."""
    record = dict(row)
    record["bot_detected"] = bool(record.get("bot_detected"))
    try:
        record["metadata"] = json.loads(record.get("metadata") or "{}")
    except json.JSONDecodeError:
        logger.warning(f"Unreadable metadata on request log row {record.get('id')}")
        record["metadata"] = {}
    return record


class SQLiteBackend(StorageBackend):
    """
    Request log in a local SQLite file.

    The connection is opened lazily and reused until close().
    """

    def __init__(
        self,
        db_path: Path | str = "data/crawlguard.db",
        *,
        check_same_thread: bool = False,
        timeout: float = 30.0,
    ):
        """
        Args:
            db_path: Database file; parent directories are created
            check_same_thread: Passed to sqlite3.connect
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self._check_same_thread = check_same_thread
        self._timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        return "sqlite"

    def _connect(self) -> sqlite3.Connection:
        if self._connection is not None:
            return self._connection
        try:
            connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=self._check_same_thread,
                timeout=self._timeout,
            )
        except sqlite3.Error as e:
            raise StorageConnectionError(
                f"Cannot open request log database {self.db_path}: {e}"
            ) from e
        connection.row_factory = sqlite3.Row
        self._connection = connection
        logger.debug(f"Opened request log database {self.db_path}")
        return connection

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Cursor]:
        """Cursor committed on success and rolled back on error."""
        connection = self._connect()
        cursor = connection.cursor()
        try:
            yield cursor
            connection.commit()
        except sqlite3.Error as e:
            connection.rollback()
            raise QueryError(f"Request log statement failed: {e}") from e
        finally:
            cursor.close()

    def initialize(self) -> None:
        with self._transaction() as cursor:
            cursor.execute(BOT_REQUESTS_SCHEMA)
            for statement in BOT_REQUESTS_INDEXES:
                cursor.execute(statement)
        logger.info(f"Request log ready at {self.db_path}")

    def close(self) -> None:
        if self._connection is None:
            return
        self._connection.close()
        self._connection = None
        logger.debug(f"Closed request log database {self.db_path}")

    def insert_bot_requests(self, records: list[dict]) -> list[int]:
        if not records:
            return []

        now = _to_sqlite_timestamp(datetime.now(timezone.utc))
        ids = []
        with self._transaction() as cursor:
            for record in records:
                cursor.execute(_INSERT_SQL, _record_to_row(record, now))
                ids.append(cursor.lastrowid)

        logger.debug(f"Appended {len(ids)} rows to the request log")
        return ids

    def find_by_id(self, request_id: int) -> Optional[dict]:
        rows = self.query(
            f"SELECT * FROM {TABLE_BOT_REQUESTS} WHERE id = :id",
            {"id": request_id},
        )
        return _row_to_record(rows[0]) if rows else None

    def find_by_site(
        self,
        site_id: Optional[str],
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        bot_detected: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[dict]:
        # IS, not =, so None selects rows logged without a site
        where = ["site_id IS :site_id"]
        params: dict[str, Any] = {"site_id": site_id, "limit": limit, "offset": offset}
        filters = (
            (
                "bot_detected = :bot_detected",
                "bot_detected",
                None if bot_detected is None else int(bool(bot_detected)),
            ),
            ("created_at >= :start_date", "start_date", _to_sqlite_timestamp(start_date)),
            ("created_at <= :end_date", "end_date", _to_sqlite_timestamp(end_date)),
        )
        for clause, name, value in filters:
            if value is not None:
                where.append(clause)
                params[name] = value

        rows = self.query(
            f"SELECT * FROM {TABLE_BOT_REQUESTS} "
            f"WHERE {' AND '.join(where)} "
            f"ORDER BY created_at DESC, id DESC "
            f"LIMIT :limit OFFSET :offset",
            params,
        )
        return [_row_to_record(row) for row in rows]

    def cleanup_old_requests(self, days: int = DEFAULT_RETENTION_DAYS) -> int:
        if days < 1:
            raise ValueError(f"Retention must be at least 1 day, got {days}")

        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        deleted = self.execute(
            f"DELETE FROM {TABLE_BOT_REQUESTS} WHERE created_at <= :cutoff",
            {"cutoff": _to_sqlite_timestamp(cutoff)},
        )
        logger.info(f"Purged {deleted} request log rows older than {days} days")
        return deleted

    def query(self, sql: str, params: Optional[dict] = None) -> list[dict]:
        with self._transaction() as cursor:
            cursor.execute(sql, params or {})
            return [dict(row) for row in cursor.fetchall()]

    def execute(self, sql: str, params: Optional[dict] = None) -> int:
        with self._transaction() as cursor:
            cursor.execute(sql, params or {})
            return cursor.rowcount

    def table_exists(self, table_name: str) -> bool:
        rows = self.query(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = :name",
            {"name": table_name},
        )
        return bool(rows)

    def get_table_row_count(self, table_name: str = TABLE_BOT_REQUESTS) -> int:
        if not self.table_exists(table_name):
            raise SchemaError(f"Table '{table_name}' does not exist")
        # table_name was checked against sqlite_master above
        rows = self.query(f"SELECT COUNT(*) AS n FROM {table_name}")
        return rows[0]["n"]

    def health_check(self) -> dict:
        """Base health check plus database file details."""
        status = super().health_check()
        if status["healthy"]:
            status["details"] = {
                "db_path": str(self.db_path),
                "db_size_bytes": (
                    self.db_path.stat().st_size if self.db_path.exists() else 0
                ),
                "request_log_exists": self.table_exists(TABLE_BOT_REQUESTS),
            }
        return status
