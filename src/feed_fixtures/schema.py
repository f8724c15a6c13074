"""
Schema reader - recovers the header row and target row count of a feed.

The generator never changes a file's schema, only its rows, so the existing
file's first line is read back as the header. The row count is the number of
non-empty lines after it; an empty or header-only file falls back to the
configured default count for that file name, else zero.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .errors import FeedFileError

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class FeedSchema:
    """
    Header and target size of one fixture file.

    Attributes:
        file_name: Base name of the feed file
        headers: Ordered column names, trimmed
        total_rows: Number of data rows the regenerated file must contain
        detected_rows: Data rows found in the file as it was on disk
    """

    file_name: str
    headers: tuple[str, ...]
    total_rows: int
    detected_rows: int


def read_text(path: Path) -> str:
    """Read a feed file, dropping a leading BOM and wrapping OS errors with the file name."""
    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise FeedFileError(path.name, "file not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise FeedFileError(path.name, f"cannot read file ({exc})") from exc


def split_lines(content: str) -> list[str]:
    """Split on LF or CRLF only; other Unicode breaks stay inside fields."""
    return _LINE_BREAK.split(content)


def parse_header(line: str) -> tuple[str, ...]:
    """Parse a quoted CSV header line into trimmed column names."""
    if not line.strip():
        return ()
    row = next(csv.reader([line]))
    return tuple(name.strip() for name in row)


def count_data_rows(content: str) -> int:
    lines = [line for line in split_lines(content) if line.strip()]
    return max(len(lines) - 1, 0)


def read_feed_schema(path: Path, default_row_counts: Mapping[str, int] | None = None) -> FeedSchema:
    """
    Read the schema baseline of an existing feed file.

    Args:
        path: Path to the feed CSV
        default_row_counts: File name -> row count used when the file has
            no data rows

    Returns:
        FeedSchema for the file

    Raises:
        FeedFileError: If the file is missing or unreadable
    """
    content = read_text(path)
    lines = split_lines(content)
    headers = parse_header(lines[0])

    detected = count_data_rows(content)
    total = detected
    if total == 0:
        total = (default_row_counts or {}).get(path.name, 0)

    return FeedSchema(
        file_name=path.name,
        headers=headers,
        total_rows=total,
        detected_rows=detected,
    )
