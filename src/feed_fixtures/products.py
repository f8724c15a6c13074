"""
Product synthesis - plausible base ammunition products, one per feed row.

Products are drawn from small fixed catalogs using the file's shared random
stream. Synthesis knows nothing about defect categories; corruption happens
afterwards in ``feed_fixtures.serializer``.

Draw order per product (fixed, part of the reproducibility contract):
brand, caliber, grain, rounds, style, price, original price, stock.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .rng import SeededStream

BRANDS = ["Federal", "Winchester", "Hornady", "Remington", "Sig Sauer", "Speer", "PMC"]
CALIBERS = ["9mm", ".223 Remington", "5.56 NATO", ".308 Winchester", ".45 ACP", "12 Gauge"]
GRAINS = [55, 62, 77, 124, 147, 150, 168, 230]
ROUNDS = [20, 50, 100, 200, 500, 1000]
STYLES = ["FMJ", "JHP", "SP", "BTHP", "M193", "M855"]

CURRENCY = "USD"
IN_STOCK = "In Stock"
OUT_OF_STOCK = "Out of Stock"

MIN_PRICE = 15.0
PRICE_SPAN = 85.0
MAX_MARKUP = 10.0
OUT_OF_STOCK_RATE = 0.08

_NON_SLUG = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class SyntheticProduct:
    """
    One synthesized feed product.

    Prices are kept as the two-decimal strings written to the feed.
    """

    brand: str
    caliber: str
    grain: int
    rounds: int
    style: str
    name: str
    url: str
    price: str
    original_price: str
    currency: str
    stock_status: str

    @property
    def in_stock(self) -> bool:
        return self.stock_status == IN_STOCK

    @property
    def category(self) -> str:
        return "Shotgun" if "Gauge" in self.caliber else "Ammunition"


def slugify(value: str) -> str:
    """Lowercase, collapse non-alphanumerics to single hyphens, trim hyphens."""
    return _NON_SLUG.sub("-", value.lower()).strip("-")


def build_url(domain: str, name: str, row_id: int) -> str:
    return f"https://{domain}/item/{slugify(name)}-{row_id}"


def feed_domain(file_name: str) -> str:
    """
    Synthetic merchant domain for a feed file.

    ``test_feed_ammo_depot.csv`` becomes ``ammo-depot.example.com``.
    """
    stem = file_name.replace(".csv", "", 1)
    stem = re.sub(r"^test_feed_", "", stem)
    return f"{stem.replace('_', '-')}.example.com"


def display_name(brand: str, caliber: str, grain: int, style: str, rounds: int) -> str:
    return f"{brand} {caliber} {grain}gr {style} - {rounds} Round Box"


def make_base_product(stream: SeededStream, row_id: int, domain: str) -> SyntheticProduct:
    """
    Synthesize the base product for one row.

    Args:
        stream: The file's shared random stream
        row_id: 1-based row id, appended to the URL
        domain: Synthetic merchant domain for the file

    Returns:
        An immutable SyntheticProduct
    """
    brand = stream.pick(BRANDS)
    caliber = stream.pick(CALIBERS)
    grain = stream.pick(GRAINS)
    rounds = stream.pick(ROUNDS)
    style = stream.pick(STYLES)

    name = display_name(brand, caliber, grain, style, rounds)
    price = f"{MIN_PRICE + stream.random() * PRICE_SPAN:.2f}"
    original_price = f"{float(price) + stream.random() * MAX_MARKUP:.2f}"
    stock_status = IN_STOCK if stream.random() > OUT_OF_STOCK_RATE else OUT_OF_STOCK

    return SyntheticProduct(
        brand=brand,
        caliber=caliber,
        grain=grain,
        rounds=rounds,
        style=style,
        name=name,
        url=build_url(domain, name, row_id),
        price=price,
        original_price=original_price,
        currency=CURRENCY,
        stock_status=stock_status,
    )
