"""
Archetype classification and defect quota planning.

Each feed file is classified by name and size into an archetype, which fixes
the share of rows that receive each defect category. Larger files get
proportionally fewer defects. Raw targets are then clamped so that they can
never exceed the file's row count.

Archetypes:
- EDGE_CASE: name contains "edge_cases" (fixed minimums when tiny)
- QUARANTINE_HEAVY: name contains "quarantine" (fixed minimums when tiny)
- LARGE: more than 10,000 rows
- MEDIUM: 1,001 to 10,000 rows
- DEFAULT: everything else
"""

from __future__ import annotations

import math
from dataclasses import astuple, dataclass
from enum import Enum

EDGE_CASE_MARKER = "edge_cases"
QUARANTINE_MARKER = "quarantine"

LARGE_THRESHOLD = 10_000
MEDIUM_THRESHOLD = 1_000
TINY_THRESHOLD = 30


class Archetype(Enum):
    """Defect profile a feed file is generated with."""

    EDGE_CASE = "edge-case"
    QUARANTINE_HEAVY = "quarantine-heavy"
    LARGE = "large"
    MEDIUM = "medium"
    DEFAULT = "default"


@dataclass(frozen=True)
class DefectQuota:
    """
    Planned number of rows per defect category.

    Field order is the order remainders are handed out in during clamping
    and the order labels are laid down before shuffling.
    """

    fail: int = 0
    quarantine: int = 0
    review: int = 0
    url_hash: int = 0
    duplicate: int = 0

    @property
    def total(self) -> int:
        return sum(astuple(self))

    def normal_rows(self, total_rows: int) -> int:
        """Rows left over for the ``normal`` label."""
        return total_rows - self.total


# Share of rows per category: (fail, quarantine, review, url_hash, duplicate)
RATIO_PROFILES: dict[Archetype, tuple[float, float, float, float, float]] = {
    Archetype.QUARANTINE_HEAVY: (0.01, 0.25, 0.03, 0.02, 0.02),
    Archetype.LARGE: (0.003, 0.01, 0.02, 0.005, 0.003),
    Archetype.MEDIUM: (0.005, 0.015, 0.02, 0.01, 0.005),
    Archetype.DEFAULT: (0.01, 0.02, 0.02, 0.01, 0.01),
}

# Edge-case files: (ratio, floor, ceiling) per category
EDGE_CASE_BOUNDS: tuple[tuple[float, int, int], ...] = (
    (0.05, 10, 50),
    (0.08, 20, 80),
    (0.08, 20, 80),
    (0.06, 15, 60),
    (0.04, 10, 40),
)

TINY_EDGE_CASE_QUOTA = DefectQuota(fail=2, quarantine=2, review=1, url_hash=1, duplicate=1)
TINY_QUARANTINE_QUOTA = DefectQuota(fail=1, quarantine=4, review=1, url_hash=1, duplicate=0)


def classify_archetype(file_name: str, total_rows: int) -> Archetype:
    """Classify a feed file by name markers first, then by row count."""
    if EDGE_CASE_MARKER in file_name:
        return Archetype.EDGE_CASE
    if QUARANTINE_MARKER in file_name:
        return Archetype.QUARANTINE_HEAVY
    if total_rows > LARGE_THRESHOLD:
        return Archetype.LARGE
    if total_rows > MEDIUM_THRESHOLD:
        return Archetype.MEDIUM
    return Archetype.DEFAULT


def is_tiny(total_rows: int) -> bool:
    return total_rows <= TINY_THRESHOLD


def _scaled(total_rows: int, ratios: tuple[float, ...]) -> DefectQuota:
    return DefectQuota(*(math.floor(total_rows * ratio) for ratio in ratios))


def raw_quotas(archetype: Archetype, total_rows: int) -> DefectQuota:
    """
    Unclamped targets for an archetype.

    Tiny edge-case and quarantine files use fixed small counts instead of
    ratios, which may exceed the row count; ``clamp_quotas`` fixes that.
    """
    if archetype is Archetype.EDGE_CASE:
        if is_tiny(total_rows):
            return TINY_EDGE_CASE_QUOTA
        return DefectQuota(*(
            min(ceiling, max(floor, math.floor(total_rows * ratio)))
            for ratio, floor, ceiling in EDGE_CASE_BOUNDS
        ))

    if archetype is Archetype.QUARANTINE_HEAVY and is_tiny(total_rows):
        return TINY_QUARANTINE_QUOTA

    return _scaled(total_rows, RATIO_PROFILES[archetype])


def clamp_quotas(total_rows: int, quota: DefectQuota) -> DefectQuota:
    """
    Scale planned counts down so they sum to at most ``total_rows``.

    Counts are multiplied by ``total / sum`` and floored, then the rows lost
    to flooring are handed back one per category in field order until the
    sum equals the total exactly.

    Args:
        total_rows: Number of data rows in the file
        quota: Raw planned counts

    Returns:
        The quota unchanged when it already fits, otherwise the clamped quota
    """
    planned = quota.total
    if planned <= total_rows:
        return quota

    ratio = total_rows / planned
    counts = [max(0, math.floor(value * ratio)) for value in astuple(quota)]

    remaining = total_rows - sum(counts)
    for i in range(len(counts)):
        if remaining <= 0:
            break
        counts[i] += 1
        remaining -= 1

    return DefectQuota(*counts)


def plan_quotas(file_name: str, total_rows: int) -> tuple[Archetype, DefectQuota]:
    """Classify a file and return its archetype with clamped defect counts."""
    archetype = classify_archetype(file_name, total_rows)
    return archetype, clamp_quotas(total_rows, raw_quotas(archetype, total_rows))
