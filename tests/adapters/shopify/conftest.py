from __future__ import annotations

from typing import Any

import pytest

from catalogsync.adapters.shopify import ShopifyCatalogClient
from catalogsync.config.http_resilience import ResilienceConfig, RetryPolicy
from catalogsync.config.shopify import ShopifyConfig
from tests.helpers.shopify import GraphQLReplay, SleepRecorder, make_client_factory

STORE_URL = "https://watches.example.com"
ACCESS_TOKEN = "shpat-test-token"


@pytest.fixture
def shopify_config() -> ShopifyConfig:
    return ShopifyConfig(
        store_url=STORE_URL,
        access_token=ACCESS_TOKEN,
        api_version="2025-04",
        resilience=ResilienceConfig(
            name="shopify-test",
            base_url=STORE_URL,
            retry=RetryPolicy.disabled(),
            default_headers={"X-Shopify-Access-Token": ACCESS_TOKEN},
        ),
    )


@pytest.fixture
def replay() -> GraphQLReplay:
    return GraphQLReplay()


@pytest.fixture
def throttle_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def shopify(
    shopify_config: ShopifyConfig, replay: GraphQLReplay, throttle_sleep: SleepRecorder
) -> ShopifyCatalogClient:
    return ShopifyCatalogClient(
        config=shopify_config,
        client_factory=make_client_factory(replay),
        sleep=throttle_sleep,
    )


@pytest.fixture
def product_node() -> dict[str, Any]:
    return {
        "id": "gid://shopify/Product/1001",
        "title": "Rolex Submariner Date 41mm",
        "descriptionHtml": "<p>Recently serviced.</p>",
        "vendor": "Rolex",
        "productType": " ",
        "tags": ["Rolex", "Watches"],
        "seo": {"title": "Rolex Submariner 126610LN", "description": None},
        "options": [
            {
                "id": "gid://shopify/ProductOption/7",
                "name": "Dial",
                "position": 1,
                "optionValues": [{"name": "Black"}],
            }
        ],
        "variants": {
            "nodes": [
                {
                    "id": "gid://shopify/ProductVariant/2001",
                    "sku": "100108",
                    "price": "14250.00",
                    "selectedOptions": [{"name": "Dial", "value": "Black"}],
                    "inventoryItem": {"id": "gid://shopify/InventoryItem/3001"},
                }
            ]
        },
        "media": {
            "nodes": [
                {
                    "id": "gid://shopify/MediaImage/11",
                    "alt": "front",
                    "image": {"url": "https://cdn.example.com/100108-1.jpg"},
                },
                {"id": "gid://shopify/Video/12", "alt": None},
            ]
        },
        "metafields": {
            "nodes": [
                {
                    "id": "gid://shopify/Metafield/5",
                    "namespace": "custom",
                    "key": "dial",
                    "value": "Black",
                    "type": "single_line_text_field",
                }
            ]
        },
        "collections": {"nodes": [{"id": "gid://shopify/Collection/9", "title": "Rolex"}]},
    }
