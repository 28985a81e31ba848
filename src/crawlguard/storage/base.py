"""
Storage interface for the bot request log.

Every evaluated request produces one row. Rows are append-only: backends
write them, read them back per site and purge them once they pass the
retention period.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..config.constants import DEFAULT_PAGE_LIMIT, DEFAULT_RETENTION_DAYS


class StorageError(Exception):
    """Base exception for request-log storage failures."""


class StorageConnectionError(StorageError):
    """The backing database could not be opened."""


class QueryError(StorageError):
    """A statement against the request log failed."""


class SchemaError(StorageError):
    """The request log schema is missing or does not match."""


class StorageBackend(ABC):
    """
    Request-log backend.

    Implementations register themselves with the factory under a short
    name (see storage.factory.register_backend).
    """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Short name the backend is registered under, e.g. 'sqlite'."""

    @abstractmethod
    def initialize(self) -> None:
        """Create the request log table and indexes if missing. Idempotent."""

    @abstractmethod
    def close(self) -> None:
        """Release the database connection."""

    @abstractmethod
    def insert_bot_requests(self, records: list[dict]) -> list[int]:
        """
        Append rows to the request log.

        Args:
            records: Rows from DetectionOutcome.to_log_record(); a
                     ``created_at`` key overrides the insertion time

        Returns:
            Ids of the new rows, in input order

        Raises:
            StorageError: If the rows cannot be written
        """

    @abstractmethod
    def find_by_id(self, request_id: int) -> Optional[dict]:
        """Fetch one row by id, or None."""

    @abstractmethod
    def find_by_site(
        self,
        site_id: Optional[str],
        limit: int = DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        bot_detected: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[dict]:
        """
        List a site's rows, newest first.

        Args:
            site_id: Site the rows belong to; None selects rows logged without a site
            limit: Page size
            offset: Rows to skip
            bot_detected: Keep only rows with this detection flag
            start_date: Keep only rows created at or after this time
            end_date: Keep only rows created at or before this time
        """

    @abstractmethod
    def cleanup_old_requests(self, days: int = DEFAULT_RETENTION_DAYS) -> int:
        """
        Purge rows created more than ``days`` days ago.

        Returns:
            Number of rows deleted

        Raises:
            ValueError: If days is below 1
        """

    @abstractmethod
    def query(self, sql: str, params: Optional[dict] = None) -> list[dict]:
        """Run a read statement with named parameters; rows come back as dicts."""

    @abstractmethod
    def execute(self, sql: str, params: Optional[dict] = None) -> int:
        """Run a write statement with named parameters; returns affected rows."""

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Whether ``table_name`` exists."""

    @abstractmethod
    def get_table_row_count(self, table_name: str) -> int:
        """
        Count rows in a table.

        Raises:
            SchemaError: If the table does not exist
        """

    def health_check(self) -> dict:
        """
        Check the backend with a trivial query.

        Returns:
            {"healthy": bool, "backend_type": str, "message": str,
             "details": dict}
        """
        status = {"backend_type": self.backend_type, "details": {}}
        try:
            self.query("SELECT 1 AS ok")
        except StorageError as e:
            status.update(
                healthy=False,
                message=f"Request log unavailable: {e}",
                details={"error": str(e)},
            )
            return status

        status.update(healthy=True, message="Request log reachable")
        return status

    def __enter__(self) -> "StorageBackend":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
