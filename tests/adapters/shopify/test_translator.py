from __future__ import annotations

from decimal import Decimal

import pytest

from catalogsync.adapters.shopify.translator import (
    from_gid,
    inventory_quantity_input,
    metafield_input,
    product_create_input,
    product_update_input,
    to_gid,
    variant_update_input,
)
from catalogsync.domain.model import (
    CatalogEntry,
    InventoryLevel,
    Metafield,
    ProductOption,
    Variant,
)


@pytest.mark.parametrize(
    ("gid", "expected"),
    [
        ("gid://shopify/Product/123", "123"),
        ("gid://shopify/InventoryItem/456?inventory_item=1", "456"),
        ("789", "789"),
    ],
)
def test_from_gid(gid: str, expected: str) -> None:
    assert from_gid(gid) == expected


def test_to_gid_leaves_global_ids_alone() -> None:
    assert to_gid("Product", "123") == "gid://shopify/Product/123"
    assert to_gid("Product", "gid://shopify/Product/123") == "gid://shopify/Product/123"


def test_product_create_input_carries_options_and_seo() -> None:
    entry = CatalogEntry(
        title="Omega Speedmaster",
        body_html="<p>Moonwatch</p>",
        tags=("Omega",),
        seo_title="Omega Speedmaster 310.30",
        options=[ProductOption(name="Dial", values=("Black",), position=1)],
        metafields=[Metafield(namespace="custom", key="dial", value="Black")],
    )

    payload = product_create_input(entry)

    assert payload["status"] == "ACTIVE"
    assert payload["seo"] == {"title": "Omega Speedmaster 310.30"}
    assert payload["productOptions"] == [
        {"name": "Dial", "position": 1, "values": [{"name": "Black"}]}
    ]
    assert payload["metafields"] == [
        {
            "namespace": "custom",
            "key": "dial",
            "type": "single_line_text_field",
            "value": "Black",
        }
    ]
    assert "vendor" not in payload


def test_update_inputs_require_ids() -> None:
    with pytest.raises(ValueError, match="no id"):
        product_update_input(CatalogEntry(title="Unsaved"))
    with pytest.raises(ValueError, match="no id"):
        variant_update_input(Variant(sku="100108"))


def test_update_inputs_clear_blank_fields() -> None:
    payload = product_update_input(CatalogEntry(title="Omega", id="1001"))

    assert payload["id"] == "gid://shopify/Product/1001"
    assert payload["vendor"] == ""
    assert payload["productType"] == ""


def test_variant_update_input_formats_price() -> None:
    payload = variant_update_input(Variant(sku="100108", id="2001", price=Decimal("9950.00")))

    assert payload == {
        "id": "gid://shopify/ProductVariant/2001",
        "inventoryItem": {"sku": "100108"},
        "price": "9950.00",
    }


def test_metafield_input_with_owner() -> None:
    metafield = Metafield(namespace="mm-google-shopping", key="gender", value="male")

    payload = metafield_input(metafield, owner_id="1001")

    assert payload["ownerId"] == "gid://shopify/Product/1001"


def test_inventory_quantity_input_requires_a_complete_level() -> None:
    with pytest.raises(ValueError, match="incomplete"):
        inventory_quantity_input(
            InventoryLevel(location_id="1", available=None, inventory_item_id="3001")
        )
