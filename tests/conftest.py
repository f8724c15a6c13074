"""
Pytest fixtures for feed fixture tests.

Provides:
- Header layouts from two affiliate networks with different column names
- A factory that writes placeholder feed files into a temporary feed dir
- A FixtureConfig pointing at that directory
"""

from pathlib import Path

import pytest

from feed_fixtures.config import FixtureConfig
from feed_fixtures.writer import format_feed

# Impact-style export
IMPACT_HEADERS = [
    "CatalogItemId",
    "Name",
    "Product URL",
    "Image URL",
    "Current Price",
    "Original Price",
    "Currency",
    "Stock Availability",
    "Manufacturer",
    "Category",
    "Gtin",
    "Unique MerchantSKU",
    "Attributes",
    "Notes",
]

# CJ-style export: different names for the same fields
CJ_HEADERS = [
    "ID",
    "title",
    "link",
    "price",
    "sale price",
    "availability",
    "in stock",
    "brand",
    "upc",
    "sku",
]


def write_feed(feed_dir: Path, name: str, headers: list[str], row_count: int) -> Path:
    """Write a feed file with placeholder rows, as found before regeneration."""
    rows = [[f"old-{i}"] * len(headers) for i in range(row_count)]
    path = feed_dir / name
    path.write_text(format_feed(headers, rows), encoding="utf-8")
    return path


@pytest.fixture
def feed_dir(tmp_path: Path) -> Path:
    """Empty feed directory."""
    directory = tmp_path / "test_affiliate_feeds"
    directory.mkdir()
    return directory


@pytest.fixture
def make_feed(feed_dir: Path):
    """Factory: make_feed(name, rows, headers=IMPACT_HEADERS) -> Path."""

    def _make(name: str, rows: int, headers: list[str] | None = None) -> Path:
        return write_feed(feed_dir, name, headers or IMPACT_HEADERS, rows)

    return _make


@pytest.fixture
def config(feed_dir: Path) -> FixtureConfig:
    """Config rooted at the temporary feed directory."""
    return FixtureConfig(feed_dir=feed_dir)
