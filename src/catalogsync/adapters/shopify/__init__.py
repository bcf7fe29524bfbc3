"""Public interface for the Shopify adapter."""

from __future__ import annotations

from .client import ShopifyCatalogClient, raise_on_throttle
from .schema import GraphQLResponse, ProductNode
from .translator import from_gid, parse_product, to_gid

__all__ = [
    "GraphQLResponse",
    "ProductNode",
    "ShopifyCatalogClient",
    "from_gid",
    "parse_product",
    "raise_on_throttle",
    "to_gid",
]
