"""
Request log reader with streaming support.

Reads inbound-request logs exported by a web server, CDN or the plugin
itself and yields RequestMetadata for the detection engine. Supported
formats:

- CSV / TSV with a header row
- JSON array of objects
- NDJSON (one JSON object per line)

Gzip-compressed files are handled transparently.
"""

import csv
import json
import logging
from pathlib import Path
from typing import IO, Any, Iterator, Optional, Union

from ..detection.models import RequestMetadata
from .exceptions import ParseError, ValidationError
from .file_utils import detect_log_format, open_file_auto_decompress

logger = logging.getLogger(__name__)

# Source column names recognised for each RequestMetadata field
DEFAULT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "user_agent": (
        "user_agent",
        "userAgent",
        "User-Agent",
        "ClientRequestUserAgent",
        "cs(User-Agent)",
    ),
    "ip_address": ("ip_address", "ipAddress", "client_ip", "ClientIP", "c-ip"),
    "page_url": (
        "page_url",
        "pageUrl",
        "url",
        "request_uri",
        "ClientRequestURI",
        "cs-uri-stem",
    ),
    "site_url": ("site_url", "siteUrl", "host", "ClientRequestHost"),
    "content_length": ("content_length", "contentLength", "bytes", "sc-bytes"),
}

SUPPORTED_FORMATS = ("csv", "tsv", "json", "ndjson")


def _text(value: Any) -> Optional[str]:
    """JSON values may be numbers; request fields are always strings."""
    return str(value) if value is not None else None


class RequestLogReader:
    """
    Streaming reader for request log files.

    Usage:
        reader = RequestLogReader()
        for request in reader.read("access-log.ndjson.gz"):
            process(request)
    """

    def __init__(
        self,
        field_mapping: Optional[dict[str, str]] = None,
        strict_validation: bool = False,
    ):
        """
        Initialize the reader.

        Args:
            field_mapping: Extra source-column -> field mappings
                           e.g., {"agent": "user_agent"}
            strict_validation: If True, raise on the first bad record
                               instead of skipping it
        """
        self.strict_validation = strict_validation
        self._column_to_field: dict[str, str] = {}
        for field_name, aliases in DEFAULT_FIELD_ALIASES.items():
            for alias in aliases:
                self._column_to_field[alias] = field_name
        if field_mapping:
            self._column_to_field.update(field_mapping)

        self.records_read = 0
        self.records_skipped = 0

    def read(
        self,
        file_path: Union[str, Path],
        fmt: Optional[str] = None,
    ) -> Iterator[RequestMetadata]:
        """
        Read a request log file.

        Args:
            file_path: Path to the log file (optionally gzipped)
            fmt: One of csv, tsv, json, ndjson; inferred from the suffix if None

        Yields:
            RequestMetadata objects

        Raises:
            ParseError: If the file cannot be parsed
            ValueError: If the format is unknown
        """
        fmt = (fmt or detect_log_format(file_path)).lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported log format '{fmt}'. "
                f"Supported: {', '.join(SUPPORTED_FORMATS)}"
            )

        self.records_read = 0
        self.records_skipped = 0

        with open_file_auto_decompress(file_path) as handle:
            if fmt in ("csv", "tsv"):
                yield from self.parse_delimited(
                    handle, delimiter="\t" if fmt == "tsv" else ","
                )
            elif fmt == "ndjson":
                yield from self.parse_ndjson(handle)
            else:
                yield from self.parse_json(handle)

        logger.info(
            f"Read {self.records_read} requests from {file_path}, "
            f"{self.records_skipped} skipped"
        )

    def parse_delimited(
        self,
        file_handle: IO[str],
        delimiter: str = ",",
    ) -> Iterator[RequestMetadata]:
        """
        Parse CSV/TSV rows from a file handle with a header row.

        Raises:
            ParseError: If the header has no user-agent column
        """
        reader = csv.reader(file_handle, delimiter=delimiter)

        try:
            header = next(reader)
        except StopIteration:
            logger.warning("Empty request log")
            return

        # Strip BOM from first column if present (common in Excel exports)
        if header and header[0].startswith("\ufeff"):
            header[0] = header[0].lstrip("\ufeff")

        col_to_field = {
            idx: self._column_to_field[name.strip()]
            for idx, name in enumerate(header)
            if name.strip() in self._column_to_field
        }
        if "user_agent" not in col_to_field.values():
            raise ParseError(
                f"No user-agent column found. Available columns: {', '.join(header)}",
                line_number=1,
            )

        line_number = 1
        for row in reader:
            line_number += 1
            if not row or all(cell.strip() == "" for cell in row):
                continue

            if len(row) != len(header):
                self._reject(
                    ParseError(
                        f"Expected {len(header)} columns, got {len(row)}",
                        line_number=line_number,
                        line_content=delimiter.join(row),
                    )
                )
                continue

            values = {
                field_name: row[idx] if row[idx] != "" else None
                for idx, field_name in col_to_field.items()
            }
            request = self._build(values, line_number)
            if request is not None:
                yield request

    def parse_ndjson(self, file_handle: IO[str]) -> Iterator[RequestMetadata]:
        """Parse one JSON object per line."""
        for line_number, line in enumerate(file_handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                self._reject(
                    ParseError(
                        f"Invalid JSON: {e.msg}",
                        line_number=line_number,
                        line_content=line,
                    )
                )
                continue

            request = self._parse_object(obj, line_number)
            if request is not None:
                yield request

    def parse_json(self, file_handle: IO[str]) -> Iterator[RequestMetadata]:
        """
        Parse a JSON array of objects (a single object is accepted too).

        Raises:
            ParseError: If the document is not valid JSON
        """
        try:
            data = json.load(file_handle)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON document: {e.msg}", line_number=e.lineno)

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise ParseError("JSON document must be an object or an array of objects")

        for index, obj in enumerate(data, start=1):
            request = self._parse_object(obj, index)
            if request is not None:
                yield request

    def _parse_object(self, obj: Any, position: int) -> Optional[RequestMetadata]:
        """Map a JSON object's keys onto RequestMetadata fields."""
        if not isinstance(obj, dict):
            self._reject(ValidationError(f"Record {position} is not an object"))
            return None

        values: dict[str, Any] = {}
        for key, value in obj.items():
            field_name = self._column_to_field.get(key)
            if field_name and values.get(field_name) is None:
                values[field_name] = value

        if "user_agent" not in values:
            self._reject(
                ValidationError(f"Record {position} has no user-agent", "user_agent")
            )
            return None

        return self._build(values, position)

    def _build(self, values: dict[str, Any], position: int) -> Optional[RequestMetadata]:
        """Create RequestMetadata, validating content_length."""
        content_length = values.get("content_length")
        if content_length in (None, "", "-"):
            content_length = 0
        try:
            content_length = int(content_length)
        except (TypeError, ValueError):
            self._reject(
                ValidationError(
                    f"Record {position}: content length must be an integer",
                    "content_length",
                    content_length,
                )
            )
            return None

        self.records_read += 1
        return RequestMetadata(
            user_agent=_text(values.get("user_agent")),
            ip_address=_text(values.get("ip_address")),
            page_url=_text(values.get("page_url")),
            site_url=_text(values.get("site_url")),
            content_length=content_length,
        )

    def _reject(self, error: Exception) -> None:
        """Skip a bad record, or raise it in strict mode."""
        self.records_skipped += 1
        if self.strict_validation:
            raise error
        logger.debug(f"Skipping record: {error}")


def read_request_log(
    file_path: Union[str, Path],
    fmt: Optional[str] = None,
    field_mapping: Optional[dict[str, str]] = None,
    strict: bool = False,
) -> Iterator[RequestMetadata]:
    """
    Convenience function to read a request log file.

    Args:
        file_path: Path to the log file
        fmt: Log format, inferred from the suffix if None
        field_mapping: Extra source-column -> field mappings
        strict: Raise on the first bad record instead of skipping

    Yields:
        RequestMetadata objects
    """
    reader = RequestLogReader(field_mapping=field_mapping, strict_validation=strict)
    yield from reader.read(file_path, fmt)
