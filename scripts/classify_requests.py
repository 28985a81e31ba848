#!/usr/bin/env python3
"""
CLI script to classify crawler traffic and decide monetization actions.

Usage:
    # Classify a single user agent against a site policy
    python scripts/classify_requests.py --user-agent "GPTBot/1.0" --policy site.yaml

    # Classify a request log and write the results as CSV
    python scripts/classify_requests.py --input access.ndjson --output classified.csv

    # Classify a log and append it to the request log database
    python scripts/classify_requests.py --input access.csv.gz --store

    # Preview a pricing change without writing anything
    python scripts/classify_requests.py --input access.csv --monetization \\
        --pricing 0.005 --dry-run
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from crawlguard.config import Settings, get_settings
from crawlguard.detection import RequestMetadata
from crawlguard.ingestion import RequestLogReader
from crawlguard.pipeline import BatchClassifier, evaluate_request, setup_logging
from crawlguard.policy import (
    PolicyError,
    SiteMonetizationPolicy,
    load_site_policy,
)
from crawlguard.storage import StorageError, get_backend


def build_policy(args: argparse.Namespace) -> SiteMonetizationPolicy:
    """Build the site policy from --policy or the inline flags."""
    if args.policy:
        return load_site_policy(args.policy)

    return SiteMonetizationPolicy.from_dict(
        {
            "site_id": args.site_id,
            "monetization_enabled": args.monetization,
            "allowed_bots": args.allowed_bot or [],
            "pricing_per_request": args.pricing,
        }
    )


def classify_single(
    args: argparse.Namespace, policy: SiteMonetizationPolicy, settings: Settings
) -> int:
    """Classify one user agent and print the response body."""
    request = RequestMetadata(
        user_agent=args.user_agent,
        ip_address=args.ip,
        page_url=args.url,
    )
    outcome = evaluate_request(request, policy, settings.payment_endpoint)
    print(json.dumps(outcome.to_response(), indent=2))
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Classify crawler traffic and decide monetization actions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One user agent
  python scripts/classify_requests.py --user-agent "ClaudeBot/1.0" --monetization

  # A request log, with results written to CSV
  python scripts/classify_requests.py --input access.ndjson --output out.csv

  # Preview without writing (dry run)
  python scripts/classify_requests.py --input access.csv --dry-run
        """,
    )

    # Input
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Request log to classify (csv, tsv, json, ndjson; optionally .gz)",
    )
    source.add_argument(
        "--user-agent",
        help="Classify a single user agent string",
    )
    parser.add_argument(
        "--format",
        choices=["csv", "tsv", "json", "ndjson"],
        help="Log format (default: inferred from the file suffix)",
    )
    parser.add_argument("--ip", help="Client IP for --user-agent")
    parser.add_argument("--url", help="Requested page URL for --user-agent")

    # Site policy
    parser.add_argument(
        "--policy",
        type=Path,
        help="YAML file with the site's monetization settings",
    )
    parser.add_argument("--site-id", help="Site id for payment links and log rows")
    parser.add_argument(
        "--monetization",
        action="store_true",
        help="Enable monetization (ignored when --policy is given)",
    )
    parser.add_argument(
        "--allowed-bot",
        action="append",
        metavar="NAME",
        help="Bot name fragment to always allow (repeatable)",
    )
    parser.add_argument(
        "--pricing",
        help="Per-request price overriding the bot's suggested rate",
    )

    # Output
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write classified rows to this CSV file",
    )
    parser.add_argument(
        "--store",
        action="store_true",
        help="Append classified rows to the request log database",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first malformed record instead of skipping it",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify and report without writing data",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from settings)",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(level=args.log_level or settings.log_level)
    logger = logging.getLogger(__name__)

    if settings.validate():
        logger.error("Refusing to run with invalid settings")
        return 1

    try:
        policy = build_policy(args)
    except (PolicyError, FileNotFoundError) as e:
        logger.error(f"Invalid site policy: {e}")
        return 1

    if args.user_agent is not None:
        return classify_single(args, policy, settings)

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    backend = None
    if args.store and not args.dry_run:
        try:
            if args.db_path:
                backend = get_backend("sqlite", db_path=args.db_path)
            else:
                backend = get_backend("sqlite")
        except StorageError as e:
            logger.error(f"Failed to open request log: {e}")
            return 1

    classifier = BatchClassifier(
        policy,
        backend=backend,
        payment_endpoint=settings.payment_endpoint,
        reader=RequestLogReader(strict_validation=args.strict),
    )
    try:
        with classifier:
            result = classifier.run(
                args.input,
                output_path=args.output,
                store=backend is not None,
                dry_run=args.dry_run,
                fmt=args.format,
            )
    except StorageError as e:
        logger.error(f"Request log unavailable: {e}")
        return 1

    # Print summary
    print()
    print("Classification Result")
    print("=" * 50)
    print(f"  Success: {'yes' if result.success else 'no'}")
    print(f"  Requests: {result.total_requests:,}")
    print(f"  Skipped records: {result.records_skipped:,}")
    print(f"  Bots detected: {result.bot_requests:,}")
    print(f"  Monetized: {result.monetized_requests:,}")
    print(f"  Allowed: {result.allowed_requests:,}")
    print(f"  Revenue: {result.total_revenue}")
    if backend is not None:
        print(f"  Stored rows: {result.records_stored:,}")
    duration = result.duration_seconds or 0
    print(f"  Duration: {duration:.1f}s")

    if result.errors:
        print()
        print("Errors:")
        for error in result.errors:
            print(f"  - {error}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
