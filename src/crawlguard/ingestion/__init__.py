"""Request log ingestion for offline classification."""

from .exceptions import IngestionError, ParseError, ValidationError
from .file_utils import detect_log_format, open_file_auto_decompress
from .request_log_reader import (
    DEFAULT_FIELD_ALIASES,
    SUPPORTED_FORMATS,
    RequestLogReader,
    read_request_log,
)

__all__ = [
    # Reading
    "RequestLogReader",
    "read_request_log",
    "DEFAULT_FIELD_ALIASES",
    "SUPPORTED_FORMATS",
    # File helpers
    "open_file_auto_decompress",
    "detect_log_format",
    # Exceptions
    "IngestionError",
    "ParseError",
    "ValidationError",
]
