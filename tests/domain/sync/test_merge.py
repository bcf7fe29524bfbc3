from __future__ import annotations

from decimal import Decimal

from catalogsync.domain.model import (
    CatalogEntry,
    InventoryLevel,
    Metafield,
    ProductImage,
    ProductOption,
    Variant,
)
from catalogsync.domain.sync import merge_entry


def _entry(**overrides: object) -> CatalogEntry:
    values: dict[str, object] = {
        "title": "Rolex Submariner",
        "body_html": "<p>Rolex</p>",
        "vendor": "Rolex",
        "product_type": "Watches",
        "tags": ("Rolex", "Watches"),
        "seo_title": "Rolex Submariner",
        "seo_description": "Rolex Submariner Excellent",
        "variants": [
            Variant(
                sku="100108",
                price=Decimal("14250.00"),
                option_values=("Black",),
                inventory_levels=[InventoryLevel(location_id="1", available=1)],
            )
        ],
        "options": [ProductOption(name="Color", values=("Black",))],
        "images": [ProductImage(src="https://img/1.jpg", alt_text="Rolex", position=1)],
        "metafields": [Metafield(namespace="ebay", key="brand", value="Rolex")],
    }
    values.update(overrides)
    return CatalogEntry(**values)  # type: ignore[arg-type]


def _remote(**overrides: object) -> CatalogEntry:
    remote = _entry(**overrides)
    remote.id = "500"
    for variant in remote.variants:
        variant.id = "600"
        variant.inventory_item_id = "700"
        variant.inventory_levels = [
            InventoryLevel(location_id="1", available=1, inventory_item_id="700")
        ]
    for option in remote.options:
        option.id = "800"
    for image in remote.images:
        image.id = "900"
    for metafield in remote.metafields:
        metafield.id = "1000"
    return remote


def test_identical_entries_merge_without_changes() -> None:
    local = _entry()

    report = merge_entry(_remote(), local)

    assert not report.has_changes
    assert local.id == "500"
    variant = local.variants[0]
    assert (variant.id, variant.inventory_item_id) == ("600", "700")
    assert variant.inventory_levels is not None
    assert variant.inventory_levels[0].inventory_item_id == "700"
    assert local.options[0].id == "800"
    assert local.images[0].id == "900"
    assert local.metafields[0].id == "1000"


def test_whitespace_and_tag_order_are_not_changes() -> None:
    remote = _remote(title="Rolex Submariner  ", tags=("Watches", "Rolex"))

    report = merge_entry(remote, _entry())

    assert not report.basic_changed


def test_price_change_is_a_basic_change() -> None:
    local = _entry()
    local.variants[0].price = Decimal("13000.00")

    report = merge_entry(_remote(), local)

    assert report.basic_changed
    assert report.variants.changed == 1
    assert not report.metadata_changed


def test_seo_change_is_metadata_change() -> None:
    report = merge_entry(_remote(), _entry(seo_title="Rolex Submariner 126610LN"))

    assert report.seo_changed
    assert report.metadata_changed
    assert not report.basic_changed


def test_option_value_change_detected() -> None:
    local = _entry(options=[ProductOption(name="Color", values=("Blue",))])

    report = merge_entry(_remote(), local)

    assert report.options.changed == 1
    assert local.options[0].id == "800"


def test_superseded_option_value_is_not_a_change() -> None:
    remote = _remote(options=[ProductOption(name="Color", values=("Blue", "Black"))])

    report = merge_entry(remote, _entry())

    assert not report.options.has_changes
    assert not report.has_changes


def test_option_position_change_detected() -> None:
    local = _entry(options=[ProductOption(name="Color", values=("Black",), position=2)])

    report = merge_entry(_remote(), local)

    assert report.options.changed == 1


def test_stale_remote_option_is_dropped() -> None:
    remote = _remote(
        options=[
            ProductOption(name="Color", values=("Black",)),
            ProductOption(name="Bezel", values=("Ceramic",), position=2),
        ]
    )

    report = merge_entry(remote, _entry())

    assert report.options.dropped == 1
    assert report.has_changes


def test_rehosted_image_url_is_not_a_change() -> None:
    remote = _remote(
        images=[
            ProductImage(
                src="https://cdn.shopify.com/s/files/1/0000/files/1.jpg?v=17",
                alt_text="Rolex",
                position=1,
            )
        ]
    )
    local = _entry()

    report = merge_entry(remote, local)

    assert not report.images.has_changes
    assert local.images[0].id == "900"


def test_images_added_and_dropped() -> None:
    local = _entry(
        images=[
            ProductImage(src="https://img/1.jpg", alt_text="Rolex", position=1),
            ProductImage(src="https://img/2.jpg", position=2),
        ]
    )

    report = merge_entry(_remote(), local)

    assert report.images.added == 1
    assert local.images[1].id is None

    report = merge_entry(_remote(), _entry(images=[]))

    assert report.images.dropped == 1
    assert report.images.has_changes


def test_unwritten_remote_metafields_are_preserved() -> None:
    remote = _remote(
        metafields=[
            Metafield(namespace="ebay", key="brand", value="Rolex"),
            Metafield(namespace="ebay", key="obsolete", value="x"),
            Metafield(namespace="reviews", key="rating", value="5"),
        ]
    )
    local = _entry()

    report = merge_entry(remote, local)

    assert report.metafields.dropped == 0
    assert report.metafields.preserved == 2
    assert {m.natural_key for m in local.metafields} == {
        ("ebay", "brand"),
        ("ebay", "obsolete"),
        ("reviews", "rating"),
    }
    assert not report.metafields.has_changes
