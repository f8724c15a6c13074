"""
Fixture file writer and expectations manifest.

Feed files are written as UTF-8, every field double-quoted with internal
quotes doubled, lines joined with "\\n" and no trailing newline. Both feed
files and the manifest go through a temporary sibling file and os.replace,
so an interrupted write never leaves a truncated file behind.

The manifest keys are camelCase because the ingestion test suite reads them
as-is.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import FeedFileError, ManifestWriteError
from .quotas import DefectQuota
from .row_types import FailReason

MANIFEST_NAME = "expectations.json"


def quote_field(value: Any) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def format_line(values: Iterable[Any]) -> str:
    return ",".join(quote_field(v) for v in values)


def format_feed(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render header and rows as the feed's quoted CSV text."""
    lines = [format_line(headers)]
    lines.extend(format_line(row) for row in rows)
    return "\n".join(lines)


def atomic_write(path: Path, text: str) -> None:
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8", newline="")
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def write_feed_file(path: Path, headers: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
    """
    Overwrite a feed file in full.

    Raises:
        FeedFileError: If the file cannot be written
    """
    try:
        atomic_write(path, format_feed(headers, rows))
    except OSError as exc:
        raise FeedFileError(path.name, f"cannot write file ({exc})") from exc


@dataclass
class ExpectationRecord:
    """
    What a conformant ingestion run must report for one feed file.

    Counts come from the clamped quota plan, never from rescanning the
    written rows.

    Attributes:
        file: Feed file name
        total_rows: Data rows in the file
        rejected_breakdown: FAIL rows per FailReason
        quota: Clamped defect counts for the file
    """

    file: str
    total_rows: int
    quota: DefectQuota
    rejected_breakdown: dict[FailReason, int] = field(
        default_factory=lambda: {reason: 0 for reason in FailReason}
    )

    @property
    def parsed_rows(self) -> int:
        return self.total_rows - self.quota.fail

    @property
    def rejected_rows(self) -> int:
        return self.quota.fail

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "totalRows": self.total_rows,
            "parsedRows": self.parsed_rows,
            "rejectedRows": self.rejected_rows,
            "rejectedBreakdown": {
                reason.value: self.rejected_breakdown.get(reason, 0) for reason in FailReason
            },
            "quarantinedRows": self.quota.quarantine,
            "needsResolverRows": self.quota.review,
            "urlHashFallbackRows": self.quota.url_hash,
            "duplicateIdentityRows": self.quota.duplicate,
        }


@dataclass
class ExpectationsManifest:
    """One batch run's expectations: a timestamp plus a record per file."""

    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    expectations: list[ExpectationRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "expectations": [record.to_dict() for record in self.expectations],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def write(self, path: Path) -> None:
        """
        Write the manifest in one piece.

        Raises:
            ManifestWriteError: If the manifest cannot be written
        """
        try:
            atomic_write(path, self.to_json())
        except OSError as exc:
            raise ManifestWriteError(f"{path.name}: cannot write manifest ({exc})") from exc
