"""
Semantic alias table - maps real affiliate feed headers to semantic fields.

Affiliate networks name the same column differently ("Product Name",
"title", "name"...). Headers are normalized (trim + lowercase) and resolved
with a single dict lookup, so supporting a new network is a data change:
add its column names here or via ``extra_aliases`` in the YAML config.

Alias sets must be disjoint; a header may resolve to at most one field.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum

from .errors import ConfigError


class SemanticField(Enum):
    """Abstract feed field a column can carry."""

    NAME = "name"
    URL = "url"
    IMAGE_URL = "image_url"
    CURRENT_PRICE = "current_price"
    LIST_PRICE = "list_price"
    ORIGINAL_PRICE = "original_price"
    CURRENCY = "currency"
    STOCK_STATUS = "stock_status"
    IN_STOCK = "in_stock"
    BRAND = "brand"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    ATTRIBUTES = "attributes"
    CATALOG_ITEM_ID = "catalog_item_id"
    MERCHANT_SKU = "merchant_sku"
    GTIN = "gtin"


DEFAULT_ALIASES: dict[SemanticField, frozenset[str]] = {
    SemanticField.NAME: frozenset({"name", "product name", "productname", "title"}),
    SemanticField.URL: frozenset({"url", "product url", "producturl", "link"}),
    SemanticField.IMAGE_URL: frozenset({"imageurl", "image url", "image"}),
    SemanticField.CURRENT_PRICE: frozenset({"currentprice", "current price", "saleprice", "sale price"}),
    SemanticField.LIST_PRICE: frozenset({"price", "listprice", "list price"}),
    SemanticField.ORIGINAL_PRICE: frozenset({"originalprice", "original price", "msrp"}),
    SemanticField.CURRENCY: frozenset({"currency", "currencycode"}),
    SemanticField.STOCK_STATUS: frozenset({"stockavailability", "stock availability", "availability"}),
    SemanticField.IN_STOCK: frozenset({"instock", "in stock"}),
    SemanticField.BRAND: frozenset({"manufacturer", "brand"}),
    SemanticField.CATEGORY: frozenset({"category", "product type"}),
    SemanticField.SUBCATEGORY: frozenset({"subcategory"}),
    SemanticField.ATTRIBUTES: frozenset({"attributes"}),
    SemanticField.CATALOG_ITEM_ID: frozenset({"catalogitemid", "itemid", "item_id"}),
    SemanticField.MERCHANT_SKU: frozenset(
        {"sku", "merchantsku", "productsku", "unique merchantsku", "uniquemerchantsku"}
    ),
    SemanticField.GTIN: frozenset({"gtin", "upc", "ean", "isbn"}),
}

# Field groups touched by defect injection
PRICE_FIELDS = frozenset({SemanticField.CURRENT_PRICE, SemanticField.LIST_PRICE})
RETAILER_ID_FIELDS = frozenset({SemanticField.CATALOG_ITEM_ID, SemanticField.MERCHANT_SKU})


def normalize_header(header: str) -> str:
    return header.strip().lower()


class AliasTable:
    """
    Reverse index from normalized header name to SemanticField.

    Attributes:
        aliases: Field -> accepted normalized header names
    """

    def __init__(self, aliases: Mapping[SemanticField, Iterable[str]] | None = None) -> None:
        source = DEFAULT_ALIASES if aliases is None else aliases
        self.aliases: dict[SemanticField, frozenset[str]] = {
            field: frozenset(normalize_header(name) for name in names)
            for field, names in source.items()
        }
        self._index: dict[str, SemanticField] = {}

        for field, names in self.aliases.items():
            for name in names:
                owner = self._index.get(name)
                if owner is not None and owner is not field:
                    raise ConfigError(
                        f"Header alias '{name}' maps to both {owner.value} and {field.value}"
                    )
                self._index[name] = field

    def lookup(self, header: str) -> SemanticField | None:
        """Resolve a raw header to its semantic field, or None if unknown."""
        return self._index.get(normalize_header(header))

    def resolve(self, headers: Iterable[str]) -> list[SemanticField | None]:
        """Resolve a whole header row, position by position."""
        return [self.lookup(header) for header in headers]

    def extended(self, extra: Mapping[SemanticField, Iterable[str]]) -> AliasTable:
        """Return a new table with additional aliases merged in."""
        merged: dict[SemanticField, set[str]] = {
            field: set(names) for field, names in self.aliases.items()
        }
        for field, names in extra.items():
            merged.setdefault(field, set()).update(names)
        return AliasTable(merged)
