"""Domain model for catalog synchronisation."""

from __future__ import annotations

from .catalog import (
    CatalogEntry,
    Collection,
    InventoryLevel,
    Location,
    Metafield,
    MetafieldDefinition,
    ProductImage,
    ProductOption,
    Variant,
)
from .enums import ALLOWED_TRANSITIONS, ItemStatus, PipelineKind, StepStatus
from .item import MAX_IMAGE_PATHS, Item, utcnow

__all__ = [
    "ALLOWED_TRANSITIONS",
    "MAX_IMAGE_PATHS",
    "CatalogEntry",
    "Collection",
    "InventoryLevel",
    "Item",
    "ItemStatus",
    "Location",
    "Metafield",
    "MetafieldDefinition",
    "PipelineKind",
    "ProductImage",
    "ProductOption",
    "StepStatus",
    "Variant",
    "utcnow",
]
