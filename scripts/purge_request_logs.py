#!/usr/bin/env python3
"""
Delete bot request log rows older than the retention period.

Usage:
    # Use the retention period from settings
    python scripts/purge_request_logs.py

    # Keep 30 days
    python scripts/purge_request_logs.py --days 30

    # Show row count and database health only
    python scripts/purge_request_logs.py --status
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from crawlguard.config import get_settings
from crawlguard.pipeline import setup_logging
from crawlguard.storage import StorageError, get_backend


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Purge old rows from the bot request log",
    )
    parser.add_argument(
        "--days",
        type=int,
        help="Keep rows newer than this many days (default: from settings)",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show request log status and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (default level: from settings)",
    )

    args = parser.parse_args()
    if args.days is not None and args.days < 1:
        parser.error("--days must be >= 1")

    settings = get_settings()
    setup_logging(level=logging.DEBUG if args.verbose else settings.log_level)
    logger = logging.getLogger(__name__)

    if settings.validate():
        logger.error("Refusing to run with invalid settings")
        return 1

    days = args.days if args.days is not None else settings.request_log_retention_days

    try:
        if args.db_path:
            backend = get_backend("sqlite", db_path=args.db_path)
        else:
            backend = get_backend("sqlite")
    except StorageError as e:
        logger.error(f"Failed to open request log: {e}")
        return 1

    with backend:
        try:
            backend.initialize()

            if args.status:
                health = backend.health_check()
                print("\nRequest Log Status")
                print("=" * 50)
                print(f"  Healthy: {health['healthy']}")
                print(f"  Rows: {backend.get_table_row_count():,}")
                for key, value in (health.get("details") or {}).items():
                    print(f"  {key}: {value}")
                print()
                return 0

            deleted = backend.cleanup_old_requests(days=days)
        except StorageError as e:
            logger.error(f"Purge failed: {e}")
            return 1

    print(f"Deleted {deleted:,} request log rows older than {days} days")
    return 0


if __name__ == "__main__":
    sys.exit(main())
