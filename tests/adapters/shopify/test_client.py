from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from catalogsync.domain.errors import RemoteTransportError, RemoteValidationError
from catalogsync.domain.model import (
    CatalogEntry,
    InventoryLevel,
    ProductImage,
    ProductOption,
    Variant,
)

if TYPE_CHECKING:
    from catalogsync.adapters.shopify import ShopifyCatalogClient

    from tests.helpers.shopify import GraphQLReplay, SleepRecorder

THROTTLED = {"errors": [{"message": "Throttled", "extensions": {"code": "THROTTLED"}}]}


def _entry() -> CatalogEntry:
    return CatalogEntry(
        title="Rolex Submariner Date 41mm",
        vendor="Rolex",
        variants=[
            Variant(
                sku="100108",
                price=Decimal("14250.00"),
                inventory_levels=[
                    InventoryLevel(location_id="1", available=1),
                    InventoryLevel(location_id="2", available=0),
                ],
            )
        ],
    )


def test_get_entry_parses_the_product(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay, product_node: dict[str, Any]
) -> None:
    replay.queue({"data": {"product": product_node}})

    entry = shopify.get_entry("1001")

    assert entry is not None
    assert entry.id == "1001"
    assert entry.product_type is None
    assert entry.tags == ("Rolex", "Watches")
    assert entry.seo_title == "Rolex Submariner 126610LN"
    variant = entry.primary_variant
    assert variant is not None
    assert variant.id == "2001"
    assert variant.price == Decimal("14250.00")
    assert variant.inventory_item_id == "3001"
    assert variant.option_values == ("Black",)
    assert [option.name for option in entry.options] == ["Dial"]
    assert [(image.id, image.src) for image in entry.images] == [
        ("11", "https://cdn.example.com/100108-1.jpg")
    ]
    assert entry.metafields[0].natural_key == ("custom", "dial")
    assert entry.collection_ids == frozenset({"9"})

    request = replay.requests[0]
    assert request.url.path == "/admin/api/2025-04/graphql.json"
    assert request.headers["X-Shopify-Access-Token"] == "shpat-test-token"
    assert replay.variables(0) == {"id": "gid://shopify/Product/1001"}


def test_get_entry_returns_none_for_unknown_product(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue({"data": {"product": None}})

    assert shopify.get_entry("404") is None


def test_placeholder_option_is_dropped(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay, product_node: dict[str, Any]
) -> None:
    product_node["options"] = [
        {
            "id": "gid://shopify/ProductOption/1",
            "name": "Title",
            "position": 1,
            "optionValues": [{"name": "Default Title"}],
        }
    ]
    product_node["variants"]["nodes"][0]["selectedOptions"] = [
        {"name": "Title", "value": "Default Title"}
    ]
    replay.queue({"data": {"product": product_node}})

    entry = shopify.get_entry("1001")

    assert entry is not None
    assert entry.options == []
    assert entry.variants[0].option_values == ()


def test_create_entry_creates_product_then_variant(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "productCreate": {
                    "product": {"id": "gid://shopify/Product/1001", "title": "Rolex"},
                    "userErrors": [],
                }
            }
        },
        {
            "data": {
                "productVariantsBulkCreate": {
                    "productVariants": [
                        {
                            "id": "gid://shopify/ProductVariant/2001",
                            "sku": "100108",
                            "price": "14250.00",
                            "inventoryItem": {"id": "gid://shopify/InventoryItem/3001"},
                        }
                    ],
                    "userErrors": [],
                }
            }
        },
    )

    created = shopify.create_entry(_entry())

    assert created.id == "1001"
    assert [(v.id, v.inventory_item_id) for v in created.variants] == [("2001", "3001")]
    assert replay.operations() == ["productCreate", "productVariantsBulkCreate"]
    product = replay.variables(0)["product"]
    assert product["vendor"] == "Rolex"
    assert "productType" not in product
    variants = replay.variables(1)
    assert variants["strategy"] == "REMOVE_STANDALONE_VARIANT"
    assert variants["variants"][0]["inventoryQuantities"] == [
        {"locationId": "gid://shopify/Location/1", "availableQuantity": 1},
        {"locationId": "gid://shopify/Location/2", "availableQuantity": 0},
    ]
    assert variants["variants"][0]["optionValues"] == [
        {"optionName": "Title", "name": "Default Title"}
    ]


def test_failed_variant_creation_removes_the_product(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "productCreate": {
                    "product": {"id": "gid://shopify/Product/1001"},
                    "userErrors": [],
                }
            }
        },
        {
            "data": {
                "productVariantsBulkCreate": {
                    "productVariants": [],
                    "userErrors": [
                        {"field": ["variants", "0", "price"], "message": "Price is invalid"}
                    ],
                }
            }
        },
        {"data": {"productDelete": {"deletedProductId": "gid://shopify/Product/1001"}}},
    )

    with pytest.raises(RemoteValidationError) as excinfo:
        shopify.create_entry(_entry())

    assert excinfo.value.user_errors == ("variants.0.price: Price is invalid",)
    assert replay.operations()[-1] == "productDelete"
    assert replay.variables(2) == {"input": {"id": "gid://shopify/Product/1001"}}


def test_user_errors_raise_validation_error(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "productDelete": {
                    "deletedProductId": None,
                    "userErrors": [{"field": ["id"], "message": "Product does not exist"}],
                }
            }
        }
    )

    with pytest.raises(RemoteValidationError, match="Product does not exist"):
        shopify.delete_entry("1001")


def test_throttled_request_is_retried(
    shopify: ShopifyCatalogClient,
    replay: GraphQLReplay,
    throttle_sleep: SleepRecorder,
    product_node: dict[str, Any],
) -> None:
    replay.queue(THROTTLED, {"data": {"product": product_node}})

    entry = shopify.get_entry("1001")

    assert entry is not None
    assert len(replay.requests) == 2
    assert throttle_sleep.delays == [2.0]


def test_persistent_throttling_gives_up(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay, throttle_sleep: SleepRecorder
) -> None:
    shopify.throttle_retries = 2
    replay.queue(THROTTLED, THROTTLED, THROTTLED)

    with pytest.raises(RemoteTransportError, match="throttling"):
        shopify.get_entry("1001")

    assert throttle_sleep.delays == [2.0, 4.0]


def test_server_error_becomes_transport_error(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(httpx.Response(502, text="bad gateway"))

    with pytest.raises(RemoteTransportError):
        shopify.get_entry("1001")


def test_graphql_errors_become_transport_error(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue({"errors": [{"message": "Field 'bogus' doesn't exist on type 'Product'"}]})

    with pytest.raises(RemoteTransportError, match="bogus"):
        shopify.get_entry("1001")


def test_collections_are_paginated(shopify: ShopifyCatalogClient, replay: GraphQLReplay) -> None:
    replay.queue(
        {
            "data": {
                "collections": {
                    "nodes": [{"id": "gid://shopify/Collection/1", "title": "Rolex"}],
                    "pageInfo": {"hasNextPage": True, "endCursor": "cursor-1"},
                }
            }
        },
        {
            "data": {
                "collections": {
                    "nodes": [{"id": "gid://shopify/Collection/2", "title": "Gents Watches"}],
                    "pageInfo": {"hasNextPage": False, "endCursor": None},
                }
            }
        },
    )

    collections = shopify.get_collections()

    assert [(c.id, c.title) for c in collections] == [("1", "Rolex"), ("2", "Gents Watches")]
    assert replay.variables(0) == {"first": 250, "after": None}
    assert replay.variables(1) == {"first": 250, "after": "cursor-1"}


def test_inactive_locations_are_skipped(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "locations": {
                    "nodes": [
                        {"id": "gid://shopify/Location/1", "name": "Showroom", "isActive": True},
                        {"id": "gid://shopify/Location/2", "name": "Closed", "isActive": False},
                    ]
                }
            }
        }
    )

    assert [location.id for location in shopify.get_locations()] == ["1"]


def test_get_inventory_reads_available_quantities(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "inventoryItem": {
                    "id": "gid://shopify/InventoryItem/3001",
                    "inventoryLevels": {
                        "nodes": [
                            {
                                "location": {"id": "gid://shopify/Location/1"},
                                "quantities": [{"name": "available", "quantity": 1}],
                            },
                            {
                                "location": {"id": "gid://shopify/Location/2"},
                                "quantities": [{"name": "available", "quantity": 0}],
                            },
                        ]
                    },
                }
            }
        }
    )

    levels = shopify.get_inventory("3001")

    assert levels == [
        InventoryLevel(location_id="1", available=1, inventory_item_id="3001"),
        InventoryLevel(location_id="2", available=0, inventory_item_id="3001"),
    ]


def test_incomplete_inventory_is_rejected_before_sending(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    with pytest.raises(RemoteValidationError):
        shopify.set_inventory([InventoryLevel(location_id="1", available=1)])

    assert replay.requests == []


def test_set_inventory_sends_absolute_quantities(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue({"data": {"inventorySetQuantities": {"userErrors": []}}})

    shopify.set_inventory(
        [InventoryLevel(location_id="1", available=0, inventory_item_id="3001")]
    )

    payload = replay.variables(0)["input"]
    assert payload["name"] == "available"
    assert payload["quantities"] == [
        {
            "inventoryItemId": "gid://shopify/InventoryItem/3001",
            "locationId": "gid://shopify/Location/1",
            "quantity": 0,
        }
    ]


def test_update_options_deletes_options_no_longer_built(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "product": {
                    "id": "gid://shopify/Product/1001",
                    "options": [
                        {
                            "id": "gid://shopify/ProductOption/7",
                            "name": "Dial",
                            "position": 1,
                            "optionValues": [{"name": "Black"}],
                        },
                        {
                            "id": "gid://shopify/ProductOption/8",
                            "name": "Bezel",
                            "position": 2,
                            "optionValues": [{"name": "Ceramic"}],
                        },
                    ],
                    "variants": {"nodes": [{"id": "gid://shopify/ProductVariant/2001"}]},
                }
            }
        },
        {"data": {"productOptionsDelete": {"deletedOptionsIds": [], "userErrors": []}}},
        {"data": {"productVariantsBulkUpdate": {"productVariants": [], "userErrors": []}}},
    )

    shopify.update_options("1001", [ProductOption(name="Dial", values=("Black",), position=1)])

    assert replay.operations() == [
        "getProductOptions",
        "productOptionsDelete",
        "productVariantsBulkUpdate",
    ]
    assert replay.variables(1) == {
        "productId": "gid://shopify/Product/1001",
        "options": ["gid://shopify/ProductOption/8"],
        "strategy": "POSITION",
    }
    assert replay.variables(2)["variants"] == [
        {
            "id": "gid://shopify/ProductVariant/2001",
            "optionValues": [{"optionName": "Dial", "name": "Black"}],
        }
    ]


def test_update_options_keeps_the_placeholder_option(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "product": {
                    "id": "gid://shopify/Product/1001",
                    "options": [
                        {
                            "id": "gid://shopify/ProductOption/1",
                            "name": "Title",
                            "position": 1,
                            "optionValues": [{"name": "Default Title"}],
                        }
                    ],
                    "variants": {"nodes": [{"id": "gid://shopify/ProductVariant/2001"}]},
                }
            }
        }
    )

    shopify.update_options("1001", [])

    assert replay.operations() == ["getProductOptions"]


def test_add_images_keeps_position_order(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue({"data": {"productCreateMedia": {"media": [], "mediaUserErrors": []}}})

    shopify.add_images(
        "1001",
        [
            ProductImage(src="https://img.example.com/100108-2.jpg", position=2),
            ProductImage(src="https://img.example.com/100108-1.jpg", alt_text="Rolex", position=1),
        ],
    )

    assert replay.variables(0)["media"] == [
        {
            "originalSource": "https://img.example.com/100108-1.jpg",
            "mediaContentType": "IMAGE",
            "alt": "Rolex",
        },
        {"originalSource": "https://img.example.com/100108-2.jpg", "mediaContentType": "IMAGE"},
    ]


def test_delete_images_without_media_sends_no_mutation(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {"data": {"product": {"id": "gid://shopify/Product/1001", "media": {"nodes": []}}}}
    )

    shopify.delete_images("1001")

    assert len(replay.requests) == 1


def test_publish_targets_every_publication(
    shopify: ShopifyCatalogClient, replay: GraphQLReplay
) -> None:
    replay.queue(
        {
            "data": {
                "publications": {
                    "nodes": [
                        {"id": "gid://shopify/Publication/1", "name": "Online Store"},
                        {"id": "gid://shopify/Publication/2", "name": "Shop"},
                    ]
                }
            }
        },
        {"data": {"publishablePublish": {"userErrors": []}}},
    )

    shopify.publish_to_all_channels("1001")

    assert replay.variables(1) == {
        "id": "gid://shopify/Product/1001",
        "input": [
            {"publicationId": "gid://shopify/Publication/1"},
            {"publicationId": "gid://shopify/Publication/2"},
        ],
    }
