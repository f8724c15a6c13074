"""
SeededStream - Single reproducible random stream per feed file.

The seed is the sum of the Unicode code points of the file name, so the same
file always gets the same stream no matter where it sits in the batch. Draws
come from NumPy's PCG64 bit generator via ``np.random.default_rng(seed)``.

Every random decision for a file (product attributes, shuffle order,
duplicate source selection) is taken from one stream in a fixed order, which
is what makes a rerun byte-identical.

Usage:
    stream = SeededStream(seed_from_name("test_feed_ammo_depot.csv"))
    r = stream.random()          # float in [0, 1)
    brand = stream.pick(BRANDS)  # uniform choice
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

import numpy as np

T = TypeVar("T")


def seed_from_name(name: str) -> int:
    """Derive a stable seed from a file name (sum of code points)."""
    return sum(ord(ch) for ch in name)


class SeededStream:
    """
    Uniform float stream backed by a seeded PCG64 generator.

    Attributes:
        seed: Integer seed the stream was built from
    """

    __slots__ = ("seed", "_rng")

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._rng: np.random.Generator = np.random.default_rng(seed)

    def random(self) -> float:
        """Next uniform float in [0, 1)."""
        return float(self._rng.random())

    def index(self, n: int) -> int:
        """Uniform integer in [0, n), built from a single ``random()`` draw."""
        if n <= 0:
            raise ValueError(f"index() needs a positive bound, got {n}")
        return int(self.random() * n)

    def pick(self, items: Sequence[T]) -> T:
        """Uniformly pick one element of a non-empty sequence."""
        return items[self.index(len(items))]

    def shuffle(self, items: list[T]) -> None:
        """
        In-place Fisher-Yates shuffle.

        Walks from the last index down to 1, swapping each position with
        ``floor(r * (i + 1))``.
        """
        for i in range(len(items) - 1, 0, -1):
            j = self.index(i + 1)
            items[i], items[j] = items[j], items[i]
