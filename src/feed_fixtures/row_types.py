"""
Row labels and the deterministic row-type shuffle.

Every row of a generated file carries exactly one RowLabel. The label list is
laid down in category order, padded with NORMAL, then shuffled with the
file's random stream so defect rows are spread through the file.
"""

from __future__ import annotations

from enum import Enum

from .quotas import DefectQuota
from .rng import SeededStream


class RowLabel(Enum):
    """Defect category assigned to a single row."""

    NORMAL = "normal"
    FAIL = "fail"
    QUARANTINE = "quarantine"
    REVIEW = "review"
    URL_HASH = "url-hash-fallback"
    DUPLICATE = "duplicate"


class FailReason(Enum):
    """Why a FAIL row must be rejected, in round-robin order."""

    MISSING_NAME = "missingName"
    MISSING_URL = "missingUrl"
    INVALID_URL = "invalidUrl"
    INVALID_PRICE = "invalidPrice"


FAIL_REASON_CYCLE: tuple[FailReason, ...] = tuple(FailReason)


def fail_reason_for(row_index: int) -> FailReason:
    """Fail sub-reason for a 0-based row index: index modulo 4."""
    return FAIL_REASON_CYCLE[row_index % len(FAIL_REASON_CYCLE)]


def build_row_types(quota: DefectQuota, total_rows: int, stream: SeededStream) -> list[RowLabel]:
    """
    Build and shuffle the per-row label plan.

    Args:
        quota: Clamped defect counts (must sum to at most total_rows)
        total_rows: Number of data rows in the file
        stream: The file's shared random stream

    Returns:
        List of length total_rows whose label counts match the quota exactly
    """
    if quota.total > total_rows:
        raise ValueError(f"Quota of {quota.total} rows exceeds file size {total_rows}")

    labels: list[RowLabel] = (
        [RowLabel.FAIL] * quota.fail
        + [RowLabel.QUARANTINE] * quota.quarantine
        + [RowLabel.REVIEW] * quota.review
        + [RowLabel.URL_HASH] * quota.url_hash
        + [RowLabel.DUPLICATE] * quota.duplicate
    )
    labels.extend([RowLabel.NORMAL] * (total_rows - len(labels)))

    stream.shuffle(labels)

    # A duplicate needs an earlier row to copy its identity from
    if labels and labels[0] is RowLabel.DUPLICATE:
        for i, label in enumerate(labels):
            if label is not RowLabel.DUPLICATE:
                labels[0], labels[i] = labels[i], labels[0]
                break

    return labels
