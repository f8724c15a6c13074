"""
Delta feed generation - a follow-up export of an existing fixture.

Simulates the next day's feed from the same merchant: a seeded share of rows
gets a price drop, a price increase, goes back in stock or goes out of
stock. The rows are picked from one shuffled index list, so the four groups
never overlap.

Outputs, next to the source file:
- <stem>.delta.csv: the modified feed
- <stem>.delta.json: summary of what changed

Usage:
    summary = generate_delta(feed_dir / "test_feed_ammo_depot.csv", seed=42)
"""

from __future__ import annotations

import csv
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .aliases import AliasTable, SemanticField
from .errors import FeedFileError
from .rng import SeededStream
from .schema import read_text, split_lines
from .writer import atomic_write, write_feed_file

PRICE_DROP_SHARE = 0.05
PRICE_INCREASE_SHARE = 0.03
BACK_IN_STOCK_SHARE = 0.02
OUT_OF_STOCK_SHARE = 0.02

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class DeltaSummary:
    """Counts of each change written to a delta feed."""

    file: str
    delta_file: str
    total_rows: int
    price_drops: int
    price_increases: int
    back_in_stock: int
    out_of_stock: int
    seed: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "deltaFile": self.delta_file,
            "totalRows": self.total_rows,
            "priceDrops": self.price_drops,
            "priceIncreases": self.price_increases,
            "backInStock": self.back_in_stock,
            "outOfStock": self.out_of_stock,
            "seed": self.seed,
        }


def read_feed_rows(path: Path) -> tuple[list[str], list[list[str]]]:
    """Parse a quoted feed CSV into its header and padded data rows."""
    lines = [line for line in split_lines(read_text(path)) if line.strip()]
    if not lines:
        return [], []
    parsed = list(csv.reader(lines))
    headers = parsed[0]
    rows = [row + [""] * (len(headers) - len(row)) for row in parsed[1:]]
    return headers, rows


def format_money(value: float) -> str:
    return f"{round(value, 2):.2f}"


def update_price(row: list[str], columns: Sequence[SemanticField | None], delta: float) -> bool:
    """Shift the first parseable current-price column by ``delta``."""
    for i, field in enumerate(columns):
        if field is not SemanticField.CURRENT_PRICE:
            continue
        cleaned = _NON_NUMERIC.sub("", row[i])
        try:
            current = float(cleaned)
        except ValueError:
            continue
        row[i] = format_money(current + delta)
        return True
    return False


def update_stock(row: list[str], columns: Sequence[SemanticField | None], in_stock: bool) -> bool:
    """Set the first stock column, text or boolean flag."""
    for i, field in enumerate(columns):
        if field is SemanticField.STOCK_STATUS:
            row[i] = "In Stock" if in_stock else "Out of Stock"
            return True
        if field is SemanticField.IN_STOCK:
            row[i] = "true" if in_stock else "false"
            return True
    return False


def generate_delta(
    path: Path,
    seed: int = 1,
    alias_table: AliasTable | None = None,
) -> DeltaSummary:
    """
    Write a delta feed and summary for an existing fixture.

    Args:
        path: Source feed CSV
        seed: Seed for row selection and price moves
        alias_table: Header alias table (defaults if None)

    Returns:
        DeltaSummary of the changes

    Raises:
        FeedFileError: If the source is missing, has no data rows, or an
            output cannot be written
    """
    headers, rows = read_feed_rows(path)
    if not rows:
        raise FeedFileError(path.name, "no rows found in file")

    columns = (alias_table or AliasTable()).resolve(headers)
    stream = SeededStream(seed)

    total = len(rows)
    price_drops = int(total * PRICE_DROP_SHARE)
    price_increases = int(total * PRICE_INCREASE_SHARE)
    back_in_stock = int(total * BACK_IN_STOCK_SHARE)
    out_of_stock = int(total * OUT_OF_STOCK_SHARE)

    indices = list(range(total))
    stream.shuffle(indices)

    cursor = 0
    groups: list[list[int]] = []
    for size in (price_drops, price_increases, back_in_stock, out_of_stock):
        groups.append(indices[cursor:cursor + size])
        cursor += size
    drop_idx, increase_idx, back_idx, out_idx = groups

    for idx in drop_idx:
        update_price(rows[idx], columns, -2 - stream.random() * 10)
    for idx in increase_idx:
        update_price(rows[idx], columns, 2 + stream.random() * 12)
    for idx in back_idx:
        update_stock(rows[idx], columns, True)
    for idx in out_idx:
        update_stock(rows[idx], columns, False)

    stem = path.name[: -len(path.suffix)] if path.suffix else path.name
    delta_path = path.with_name(f"{stem}.delta.csv")
    summary_path = path.with_name(f"{stem}.delta.json")

    write_feed_file(delta_path, headers, rows)

    summary = DeltaSummary(
        file=path.name,
        delta_file=delta_path.name,
        total_rows=total,
        price_drops=price_drops,
        price_increases=price_increases,
        back_in_stock=back_in_stock,
        out_of_stock=out_of_stock,
        seed=seed,
    )
    try:
        atomic_write(summary_path, json.dumps(summary.to_dict(), indent=2))
    except OSError as exc:
        raise FeedFileError(summary_path.name, f"cannot write summary ({exc})") from exc
    return summary
