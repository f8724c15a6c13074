"""
Header-aware row serialization and defect injection.

Row construction is two pure steps:

1. populate_row() - map a SyntheticProduct and IdentityTriple onto the
   file's actual columns through the alias table. Unknown columns stay blank.
2. apply_defect() - blank or corrupt only the columns belonging to the
   row's defect category.

Duplicate rows get their identity from IdentityLedger before step 1. The
ledger lives for one file's generation and is discarded afterwards.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass

from .aliases import PRICE_FIELDS, RETAILER_ID_FIELDS, SemanticField
from .products import SyntheticProduct, build_url
from .rng import SeededStream
from .row_types import FailReason, RowLabel, fail_reason_for

MALFORMED_URL = "not-a-url"
NON_POSITIVE_PRICE = "0"

GTIN_BASE = 100_000_000_000

ColumnFields = Sequence[SemanticField | None]


@dataclass(frozen=True)
class IdentityTriple:
    """Identifiers a downstream pipeline matches products on."""

    catalog_item_id: str
    merchant_sku: str
    gtin: str

    @classmethod
    def for_row(cls, row_index: int) -> IdentityTriple:
        """Unique triple for a 0-based row index."""
        row_id = row_index + 1
        return cls(
            catalog_item_id=f"CID{row_id:06d}",
            merchant_sku=f"SKU-{row_id:06d}",
            gtin=str(GTIN_BASE + row_index)[:12],
        )


class IdentityLedger:
    """
    Identity triples emitted so far in one file.

    Duplicate rows copy a uniformly chosen earlier triple; every other row
    gets its own indexed triple.
    """

    def __init__(self) -> None:
        self.emitted: list[IdentityTriple] = []

    def assign(self, row_index: int, label: RowLabel, stream: SeededStream) -> IdentityTriple:
        identity = IdentityTriple.for_row(row_index)
        if label is RowLabel.DUPLICATE and self.emitted:
            identity = self.emitted[stream.index(len(self.emitted))]
        self.emitted.append(identity)
        return identity


def attributes_blob(product: SyntheticProduct, include_caliber: bool = True) -> str:
    attrs: dict[str, object] = {}
    if include_caliber:
        attrs["caliber"] = product.caliber
    attrs["grain"] = product.grain
    attrs["rounds"] = product.rounds
    return json.dumps(attrs, separators=(",", ":"))


def field_values(product: SyntheticProduct, identity: IdentityTriple) -> dict[SemanticField, str]:
    """Value written for every semantic field on a clean row."""
    return {
        SemanticField.NAME: product.name,
        SemanticField.URL: product.url,
        SemanticField.IMAGE_URL: f"{product.url}/image.jpg",
        SemanticField.CURRENT_PRICE: product.price,
        SemanticField.LIST_PRICE: product.original_price,
        SemanticField.ORIGINAL_PRICE: product.original_price,
        SemanticField.CURRENCY: product.currency,
        SemanticField.STOCK_STATUS: product.stock_status,
        SemanticField.IN_STOCK: "true" if product.in_stock else "false",
        SemanticField.BRAND: product.brand,
        SemanticField.CATEGORY: product.category,
        SemanticField.SUBCATEGORY: product.style,
        SemanticField.ATTRIBUTES: attributes_blob(product),
        SemanticField.CATALOG_ITEM_ID: identity.catalog_item_id,
        SemanticField.MERCHANT_SKU: identity.merchant_sku,
        SemanticField.GTIN: identity.gtin,
    }


def populate_row(
    columns: ColumnFields,
    product: SyntheticProduct,
    identity: IdentityTriple,
) -> list[str]:
    """
    Fill one row positionally from resolved column fields.

    Args:
        columns: Semantic field per column (None for unknown headers)
        product: Synthesized product for the row
        identity: Identity triple for the row

    Returns:
        Cell values aligned with the header row
    """
    values = field_values(product, identity)
    return [values[field] if field is not None else "" for field in columns]


def _overwrite(
    columns: ColumnFields,
    row: list[str],
    targets: frozenset[SemanticField],
    value: str,
) -> None:
    for i, field in enumerate(columns):
        if field in targets:
            row[i] = value


def apply_defect(
    columns: ColumnFields,
    row: Sequence[str],
    label: RowLabel,
    product: SyntheticProduct,
    row_id: int,
    domain: str,
    fail_reason: FailReason | None = None,
) -> list[str]:
    """
    Return a copy of ``row`` with the label's corruption applied.

    Only the columns of the affected semantic fields change. NORMAL and
    DUPLICATE rows come back unchanged (a duplicate's defect is its
    identity, applied before population).
    """
    out = list(row)

    if label is RowLabel.FAIL:
        if fail_reason is FailReason.MISSING_NAME:
            _overwrite(columns, out, frozenset({SemanticField.NAME}), "")
        elif fail_reason is FailReason.MISSING_URL:
            _overwrite(columns, out, frozenset({SemanticField.URL}), "")
        elif fail_reason is FailReason.INVALID_URL:
            _overwrite(columns, out, frozenset({SemanticField.URL}), MALFORMED_URL)
        elif fail_reason is FailReason.INVALID_PRICE:
            _overwrite(columns, out, PRICE_FIELDS, NON_POSITIVE_PRICE)
        else:
            raise ValueError("FAIL rows need a fail_reason")

    elif label is RowLabel.QUARANTINE:
        # Caliber is dropped everywhere it would show up
        name = f"{product.brand} {product.style} - {product.rounds} Round Box"
        url = build_url(domain, f"{product.brand}-{product.style}-{product.rounds}rd", row_id)
        _overwrite(columns, out, frozenset({SemanticField.ATTRIBUTES}),
                   attributes_blob(product, include_caliber=False))
        _overwrite(columns, out, frozenset({SemanticField.NAME}), name)
        _overwrite(columns, out, frozenset({SemanticField.URL}), url)

    elif label is RowLabel.REVIEW:
        _overwrite(columns, out, frozenset({SemanticField.GTIN}), "")

    elif label is RowLabel.URL_HASH:
        _overwrite(columns, out, RETAILER_ID_FIELDS, "")

    return out


def build_row(
    columns: ColumnFields,
    product: SyntheticProduct,
    identity: IdentityTriple,
    label: RowLabel,
    row_index: int,
    domain: str,
) -> list[str]:
    """Populate and corrupt one row. ``row_index`` is 0-based."""
    fail_reason = fail_reason_for(row_index) if label is RowLabel.FAIL else None
    row = populate_row(columns, product, identity)
    return apply_defect(columns, row, label, product, row_index + 1, domain, fail_reason)
