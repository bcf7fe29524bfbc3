"""Platform-side catalog representation.

Identifiers on these records are assigned by the platform. Locally built
records leave them ``None``; the merge engine copies them over from the
platform's copy before anything is sent back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from decimal import Decimal


@dataclass(slots=True, kw_only=True)
class InventoryLevel:
    location_id: str
    available: int | None
    inventory_item_id: str | None = None


@dataclass(slots=True, kw_only=True)
class Location:
    id: str
    name: str = ""


@dataclass(slots=True, kw_only=True)
class Variant:
    sku: str
    price: Decimal | None = None
    id: str | None = None
    inventory_item_id: str | None = None
    option_values: tuple[str, ...] = ()
    inventory_levels: list[InventoryLevel] | None = None


@dataclass(slots=True, kw_only=True)
class ProductOption:
    name: str
    values: tuple[str, ...] = ()
    position: int = 1
    id: str | None = None


@dataclass(slots=True, kw_only=True)
class ProductImage:
    src: str
    alt_text: str | None = None
    position: int = 1
    id: str | None = None


@dataclass(slots=True, kw_only=True)
class Metafield:
    namespace: str
    key: str
    value: str
    type: str = "single_line_text_field"
    id: str | None = None

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.namespace, self.key)


@dataclass(slots=True, frozen=True, kw_only=True)
class MetafieldDefinition:
    namespace: str
    key: str
    name: str
    type: str = "single_line_text_field"
    description: str = ""
    id: str | None = None

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.namespace, self.key)


@dataclass(slots=True, frozen=True, kw_only=True)
class Collection:
    id: str
    title: str


@dataclass(slots=True, kw_only=True)
class CatalogEntry:
    """A product on the commerce platform (or one about to be sent there)."""

    title: str
    id: str | None = None
    body_html: str = ""
    vendor: str | None = None
    product_type: str | None = None
    tags: tuple[str, ...] = ()
    seo_title: str | None = None
    seo_description: str | None = None
    variants: list[Variant] = field(default_factory=list)
    options: list[ProductOption] = field(default_factory=list)
    images: list[ProductImage] = field(default_factory=list)
    metafields: list[Metafield] = field(default_factory=list)
    collection_ids: frozenset[str] = frozenset()

    @property
    def primary_variant(self) -> Variant | None:
        return self.variants[0] if self.variants else None

    @property
    def skus(self) -> tuple[str, ...]:
        return tuple(variant.sku for variant in self.variants if variant.sku)
