"""Translate between Shopify GraphQL payloads and catalog records."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from catalogsync.domain.model import (
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
from catalogsync.domain.sync.product import DEFAULT_VARIANT_TITLE

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .schema import (
        CollectionNode,
        InventoryItemNode,
        LocationNode,
        MediaNode,
        MetafieldDefinitionNode,
        MetafieldNode,
        OptionNode,
        ProductNode,
        VariantNode,
    )

log = getLogger(__name__)

GID_PREFIX: Final[str] = "gid://shopify/"
DEFAULT_OPTION_NAME: Final[str] = "Title"


def to_gid(kind: str, identifier: str) -> str:
    if identifier.startswith(GID_PREFIX):
        return identifier
    return f"{GID_PREFIX}{kind}/{identifier}"


def from_gid(gid: str) -> str:
    """``gid://shopify/Product/123?foo=bar`` -> ``123``; bare ids pass through."""
    if not gid.startswith(GID_PREFIX):
        return gid
    tail = gid.rsplit("/", 1)[-1]
    return tail.split("?", 1)[0]


def _price(value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        log.warning("Ignoring unparseable price %r", value)
        return None


def is_placeholder_option(node: OptionNode) -> bool:
    values = [value.name for value in node.option_values]
    return node.name == DEFAULT_OPTION_NAME and values in ([], [DEFAULT_VARIANT_TITLE])


# Payload -> domain ---------------------------------------------------------------


def parse_inventory_levels(node: InventoryItemNode) -> list[InventoryLevel]:
    inventory_item_id = from_gid(node.id)
    if node.inventory_levels is None:
        return []
    return [
        InventoryLevel(
            location_id=from_gid(level.location.id),
            available=level.available,
            inventory_item_id=inventory_item_id,
        )
        for level in node.inventory_levels.nodes
    ]


def parse_variant(node: VariantNode) -> Variant:
    inventory_item = node.inventory_item
    levels = None
    if inventory_item is not None and inventory_item.inventory_levels is not None:
        levels = parse_inventory_levels(inventory_item)
    return Variant(
        id=from_gid(node.id),
        sku=node.sku or "",
        price=_price(node.price),
        inventory_item_id=from_gid(inventory_item.id) if inventory_item else None,
        option_values=tuple(
            option.value
            for option in node.selected_options
            if not (option.name == DEFAULT_OPTION_NAME and option.value == DEFAULT_VARIANT_TITLE)
        ),
        inventory_levels=levels,
    )


def parse_option(node: OptionNode) -> ProductOption:
    return ProductOption(
        id=from_gid(node.id),
        name=node.name,
        position=node.position,
        values=tuple(value.name for value in node.option_values),
    )


def parse_image(node: MediaNode, position: int) -> ProductImage | None:
    if node.image is None:
        return None
    return ProductImage(
        id=from_gid(node.id), src=node.image.url, alt_text=node.alt, position=position
    )


def parse_metafield(node: MetafieldNode) -> Metafield:
    return Metafield(
        id=from_gid(node.id),
        namespace=node.namespace,
        key=node.key,
        value=node.value,
        type=node.type,
    )


def parse_product(node: ProductNode) -> CatalogEntry:
    images: list[ProductImage] = []
    collections = node.collections.nodes if node.collections else []
    for media in node.media.nodes:
        image = parse_image(media, len(images) + 1)
        if image is not None:
            images.append(image)
    return CatalogEntry(
        id=from_gid(node.id),
        title=node.title,
        body_html=node.description_html,
        vendor=node.vendor,
        product_type=node.product_type,
        tags=tuple(node.tags),
        seo_title=node.seo.title if node.seo else None,
        seo_description=node.seo.description if node.seo else None,
        variants=[parse_variant(variant) for variant in node.variants.nodes],
        options=[
            parse_option(option)
            for option in node.options
            if not is_placeholder_option(option)
        ],
        images=images,
        metafields=[parse_metafield(metafield) for metafield in node.metafields.nodes],
        collection_ids=frozenset(from_gid(collection.id) for collection in collections),
    )


def parse_collection(node: CollectionNode) -> Collection:
    return Collection(id=from_gid(node.id), title=node.title)


def parse_location(node: LocationNode) -> Location:
    return Location(id=from_gid(node.id), name=node.name)


def parse_metafield_definition(node: MetafieldDefinitionNode) -> MetafieldDefinition:
    return MetafieldDefinition(
        id=from_gid(node.id),
        namespace=node.namespace,
        key=node.key,
        name=node.name,
        type=node.type.name,
        description=node.description or "",
    )


# Domain -> input -----------------------------------------------------------------


def product_create_input(entry: CatalogEntry) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": entry.title,
        "descriptionHtml": entry.body_html,
        "tags": list(entry.tags),
        "status": "ACTIVE",
        "metafields": [metafield_input(metafield) for metafield in entry.metafields],
    }
    if entry.vendor:
        payload["vendor"] = entry.vendor
    if entry.product_type:
        payload["productType"] = entry.product_type
    seo = seo_input(entry.seo_title, entry.seo_description)
    if seo:
        payload["seo"] = seo
    if entry.options:
        payload["productOptions"] = [option_create_input(option) for option in entry.options]
    return payload


def product_update_input(entry: CatalogEntry) -> dict[str, Any]:
    if not entry.id:
        raise ValueError(f"Entry {entry.title!r} has no id to update")
    return {
        "id": to_gid("Product", entry.id),
        "title": entry.title,
        "descriptionHtml": entry.body_html,
        "vendor": entry.vendor or "",
        "productType": entry.product_type or "",
        "tags": list(entry.tags),
    }


def seo_input(title: str | None, description: str | None) -> dict[str, str]:
    seo: dict[str, str] = {}
    if title is not None:
        seo["title"] = title
    if description is not None:
        seo["description"] = description
    return seo


def option_create_input(option: ProductOption) -> dict[str, Any]:
    return {
        "name": option.name,
        "position": option.position,
        "values": [{"name": value} for value in option.values],
    }


def option_values_input(
    options: Sequence[ProductOption], values: Sequence[str]
) -> list[dict[str, str]]:
    if not options:
        return [{"optionName": DEFAULT_OPTION_NAME, "name": DEFAULT_VARIANT_TITLE}]
    return [
        {"optionName": option.name, "name": value}
        for option, value in zip(options, values, strict=False)
    ]


def variant_create_input(variant: Variant, options: Sequence[ProductOption]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "optionValues": option_values_input(options, variant.option_values),
        "inventoryItem": {"sku": variant.sku, "tracked": True},
        "inventoryPolicy": "DENY",
    }
    if variant.price is not None:
        payload["price"] = str(variant.price)
    if variant.inventory_levels:
        payload["inventoryQuantities"] = [
            {
                "locationId": to_gid("Location", level.location_id),
                "availableQuantity": level.available or 0,
            }
            for level in variant.inventory_levels
        ]
    return payload


def variant_update_input(variant: Variant) -> dict[str, Any]:
    if not variant.id:
        raise ValueError(f"Variant {variant.sku!r} has no id to update")
    payload: dict[str, Any] = {
        "id": to_gid("ProductVariant", variant.id),
        "inventoryItem": {"sku": variant.sku},
    }
    if variant.price is not None:
        payload["price"] = str(variant.price)
    return payload


def metafield_input(metafield: Metafield, *, owner_id: str | None = None) -> dict[str, str]:
    payload = {
        "namespace": metafield.namespace,
        "key": metafield.key,
        "type": metafield.type,
        "value": metafield.value,
    }
    if owner_id is not None:
        payload["ownerId"] = to_gid("Product", owner_id)
    return payload


def metafield_definition_input(definition: MetafieldDefinition) -> dict[str, str]:
    return {
        "name": definition.name,
        "namespace": definition.namespace,
        "key": definition.key,
        "description": definition.description,
        "type": definition.type,
        "ownerType": "PRODUCT",
    }


def media_input(image: ProductImage) -> dict[str, str]:
    payload = {"originalSource": image.src, "mediaContentType": "IMAGE"}
    if image.alt_text:
        payload["alt"] = image.alt_text
    return payload


def inventory_quantity_input(level: InventoryLevel) -> dict[str, Any]:
    if level.inventory_item_id is None or level.available is None:
        raise ValueError(f"Inventory level at {level.location_id} is incomplete: {level}")
    return {
        "inventoryItemId": to_gid("InventoryItem", level.inventory_item_id),
        "locationId": to_gid("Location", level.location_id),
        "quantity": level.available,
    }
