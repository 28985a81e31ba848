"""Request evaluation and batch classification."""

from .batch_classifier import (
    RESULT_COLUMNS,
    BatchClassifier,
    BatchResult,
    setup_logging,
)
from .request_evaluator import (
    DetectionOutcome,
    build_payment_url,
    evaluate_and_log,
    evaluate_request,
)

__all__ = [
    # Single requests
    "DetectionOutcome",
    "evaluate_request",
    "evaluate_and_log",
    "build_payment_url",
    # Batch
    "BatchClassifier",
    "BatchResult",
    "RESULT_COLUMNS",
    "setup_logging",
]
