"""
Batch classification of request logs.

Applies the same classifier and action decider used for live requests to
a whole request log file, for offline jobs such as backfilling the request
log or previewing a pricing change against past traffic.

Stages:
1. Read: parse the log file into a DataFrame of request fields
2. Classify: add verdict and decision columns per request
3. Write: optionally export a CSV and/or append rows to the request log
"""

import logging
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from ..detection import RequestMetadata
from ..ingestion import IngestionError, RequestLogReader
from ..policy import ActionType, SiteMonetizationPolicy
from ..storage import StorageBackend, StorageError
from .request_evaluator import DetectionOutcome, evaluate_request

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Columns added by classify_frame, in output order
RESULT_COLUMNS = [
    "bot_detected",
    "is_ai_bot",
    "bot_type",
    "bot_name",
    "company",
    "confidence_score",
    "detection_method",
    "suggested_rate",
    "content_type",
    "action_taken",
    "should_monetize",
    "revenue_amount",
]


def setup_logging(
    level: Union[int, str] = logging.INFO, log_file: Optional[Path] = None
) -> None:
    """
    Configure root logging for scripts.

    Args:
        level: Log level, as a logging constant or a name such as "DEBUG"
        log_file: Optional file to log to in addition to stderr
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


@dataclass
class BatchResult:
    """Result of a batch classification run."""

    success: bool
    input_path: str
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    completed_at: Optional[datetime] = None
    # Stats
    total_requests: int = 0
    bot_requests: int = 0
    monetized_requests: int = 0
    allowed_requests: int = 0
    total_revenue: Decimal = Decimal("0")
    records_skipped: int = 0
    records_stored: int = 0
    # Errors
    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get run duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "success": self.success,
            "input_path": self.input_path,
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
            "total_requests": self.total_requests,
            "bot_requests": self.bot_requests,
            "monetized_requests": self.monetized_requests,
            "allowed_requests": self.allowed_requests,
            "total_revenue": str(self.total_revenue),
            "records_skipped": self.records_skipped,
            "records_stored": self.records_stored,
            "errors": self.errors,
        }


def _cell(value: Any) -> Any:
    """Turn pandas missing values into None."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    return value


class BatchClassifier:
    """
    Classifies request logs against one site's policy.

    Usage:
        classifier = BatchClassifier(policy)
        df = classifier.classify_frame(pd.DataFrame({"user_agent": [...]}))

        with BatchClassifier(policy, backend=backend) as classifier:
            result = classifier.run("requests.ndjson", store=True)
    """

    def __init__(
        self,
        policy: SiteMonetizationPolicy,
        backend: Optional[StorageBackend] = None,
        payment_endpoint: Optional[str] = None,
        reader: Optional[RequestLogReader] = None,
    ):
        """
        Initialize the batch classifier.

        Args:
            policy: Monetization settings of the site the log belongs to
            backend: Request-log backend, required only for store=True
            payment_endpoint: Endpoint for payment links on monetized rows
            reader: Custom log reader (field mappings, strict mode)
        """
        self.policy = policy
        self._backend = backend
        self._payment_endpoint = payment_endpoint
        self._reader = reader or RequestLogReader()

    def __enter__(self) -> "BatchClassifier":
        """Context manager entry."""
        if self._backend is not None:
            self._backend.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        if self._backend is not None:
            self._backend.close()

    def evaluate_frame(self, df: pd.DataFrame) -> list[DetectionOutcome]:
        """
        Evaluate every row of a DataFrame of request fields.

        Raises:
            ValueError: If the frame has no user_agent column
        """
        if "user_agent" not in df.columns:
            raise ValueError(
                f"DataFrame needs a 'user_agent' column, got: {list(df.columns)}"
            )

        outcomes = []
        for row in df.to_dict(orient="records"):
            request = RequestMetadata(
                user_agent=_cell(row.get("user_agent")),
                ip_address=_cell(row.get("ip_address")),
                page_url=_cell(row.get("page_url")),
                site_url=_cell(row.get("site_url")),
                content_length=int(_cell(row.get("content_length")) or 0),
            )
            outcomes.append(
                evaluate_request(request, self.policy, self._payment_endpoint)
            )
        return outcomes

    def classify_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add verdict and decision columns to a DataFrame of requests.

        Args:
            df: Frame with a user_agent column; ip_address and page_url are
                used when present

        Returns:
            A copy of df with RESULT_COLUMNS appended
        """
        outcomes = self.evaluate_frame(df)
        return _attach_results(df, outcomes)

    def run(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        store: bool = False,
        dry_run: bool = False,
        fmt: Optional[str] = None,
    ) -> BatchResult:
        """
        Classify a request log file.

        Args:
            input_path: Request log (csv, tsv, json, ndjson; optionally .gz)
            output_path: Where to write the classified CSV, if anywhere
            store: Append log rows to the storage backend
            dry_run: Classify and report without writing anything
            fmt: Log format, inferred from the suffix if None

        Returns:
            BatchResult with stats and status
        """
        result = BatchResult(success=False, input_path=str(input_path))

        if store and self._backend is None:
            result.errors.append("store=True requires a storage backend")
            result.completed_at = datetime.now().astimezone()
            return result

        logger.info(f"Starting batch classification of {input_path}")

        try:
            logger.info("[1/3] Reading request log...")
            requests = list(self._reader.read(input_path, fmt))
            result.records_skipped = self._reader.records_skipped
            df = pd.DataFrame(
                [asdict(r) for r in requests],
                columns=list(RequestMetadata.__dataclass_fields__),
            )
            logger.info(f"  Read {len(df):,} requests")

            logger.info("[2/3] Classifying...")
            outcomes = self.evaluate_frame(df)
            classified = _attach_results(df, outcomes)
            _tally(result, outcomes)
            logger.info(
                f"  Bots: {result.bot_requests:,}, "
                f"monetized: {result.monetized_requests:,}, "
                f"revenue: {result.total_revenue}"
            )

            if dry_run:
                logger.info("[DRY RUN] Skipping output")
                result.success = True
                result.completed_at = datetime.now().astimezone()
                return result

            logger.info("[3/3] Writing results...")
            if output_path:
                Path(output_path).parent.mkdir(parents=True, exist_ok=True)
                classified.to_csv(output_path, index=False)
                logger.info(f"  Wrote {len(classified):,} rows to {output_path}")

            if store:
                ids = self._backend.insert_bot_requests(
                    [outcome.to_log_record() for outcome in outcomes]
                )
                result.records_stored = len(ids)
                logger.info(f"  Stored {len(ids):,} rows in the request log")

            result.success = True

        except (IngestionError, StorageError, OSError, ValueError) as e:
            logger.exception(f"Batch classification failed: {e}")
            result.errors.append(str(e))

        result.completed_at = datetime.now().astimezone()

        if result.success:
            logger.info(
                f"Batch classification completed in {result.duration_seconds:.1f}s"
            )
        else:
            logger.error(f"Batch classification failed: {result.errors}")

        return result


def _attach_results(df: pd.DataFrame, outcomes: list[DetectionOutcome]) -> pd.DataFrame:
    """Append verdict and decision columns for each outcome."""
    rows = [
        {
            "bot_detected": o.verdict.is_bot,
            "is_ai_bot": o.verdict.is_ai_bot,
            "bot_type": o.verdict.bot_type.value if o.verdict.bot_type else None,
            "bot_name": o.verdict.bot_name,
            "company": o.verdict.company,
            "confidence_score": o.verdict.confidence,
            "detection_method": o.verdict.detection_method.value,
            "suggested_rate": (
                str(o.verdict.suggested_rate)
                if o.verdict.suggested_rate is not None
                else None
            ),
            "content_type": o.content_type,
            "action_taken": o.decision.action_type.value,
            "should_monetize": o.decision.should_monetize,
            "revenue_amount": o.decision.revenue,
        }
        for o in outcomes
    ]
    results = pd.DataFrame(rows, columns=RESULT_COLUMNS, index=df.index)
    base = df.drop(columns=[c for c in RESULT_COLUMNS if c in df.columns])
    return pd.concat([base, results], axis=1)


def _tally(result: BatchResult, outcomes: list[DetectionOutcome]) -> None:
    """Accumulate run counters from outcomes."""
    for outcome in outcomes:
        result.total_requests += 1
        if outcome.verdict.is_bot:
            result.bot_requests += 1
        if outcome.decision.action_type is ActionType.MONETIZED:
            result.monetized_requests += 1
            result.total_revenue += outcome.decision.revenue_amount
        elif outcome.decision.action_type is ActionType.ALLOWED:
            result.allowed_requests += 1
