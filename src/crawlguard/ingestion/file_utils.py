"""
Opening request log files and guessing their format.
"""

import gzip
from pathlib import Path
from typing import IO, Union

_GZIP_MAGIC = b"\x1f\x8b"

LOG_FORMATS_BY_SUFFIX = {
    ".csv": "csv",
    ".tsv": "tsv",
    ".json": "json",
    ".ndjson": "ndjson",
    ".jsonl": "ndjson",
}


def _is_gzip(path: Path) -> bool:
    if path.suffix.lower() == ".gz":
        return True
    with open(path, "rb") as f:
        return f.read(len(_GZIP_MAGIC)) == _GZIP_MAGIC


def open_file_auto_decompress(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
) -> IO[str]:
    """
    Open a log file as text, decompressing gzip on the fly.

    Gzip is recognised by a ``.gz`` suffix or by the magic bytes, so
    rotated logs without the suffix also work. A corrupt ``.gz`` file
    raises gzip.BadGzipFile on first read.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")

    if _is_gzip(path):
        return gzip.open(path, "rt", encoding=encoding)
    return open(path, encoding=encoding)


def detect_log_format(file_path: Union[str, Path]) -> str:
    """Map a file name to 'csv', 'tsv', 'json' or 'ndjson'; '.gz' is ignored."""
    suffixes = [s.lower() for s in Path(file_path).suffixes]
    if suffixes[-1:] == [".gz"]:
        suffixes.pop()

    fmt = LOG_FORMATS_BY_SUFFIX.get(suffixes[-1] if suffixes else "")
    if fmt is None:
        raise ValueError(
            f"Cannot infer log format from '{file_path}', "
            f"expected one of {', '.join(sorted(LOG_FORMATS_BY_SUFFIX))}"
        )
    return fmt
