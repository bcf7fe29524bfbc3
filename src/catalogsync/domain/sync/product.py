"""Build the platform representation of an item."""

from __future__ import annotations

import html
import re
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING, Final

from catalogsync.domain.model import CatalogEntry, Metafield, ProductImage, ProductOption, Variant
from catalogsync.domain.sync.inventory import compute_levels
from catalogsync.domain.sync.metafields import MARKETPLACE_NAMESPACE, MarketplaceField

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.domain.model import Item, Location
    from catalogsync.domain.sync.metafields import MetafieldDefinitionCache

log = getLogger(__name__)

DEFAULT_VARIANT_TITLE: Final[str] = "Default Title"
MERCHANT_NAMESPACE: Final[str] = "google"
MERCHANT_PRODUCT_TYPE: Final[str] = "apparel & accessories > jewelry > watches"

PRICE_BANDS: Final[tuple[tuple[Decimal | None, str], ...]] = (
    (Decimal(5000), "Under $5000"),
    (Decimal(10000), "$5,000 to $10,000"),
    (Decimal(30000), "$10,000 to $30,000"),
    (None, "$30,000 and above"),
)

# attribute -> option name, in option position order
OPTION_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("dial", "Color"),
    ("diameter", "Size"),
    ("metal_type", "Material"),
)

DETAIL_ROWS: Final[tuple[tuple[str, str], ...]] = (
    ("designer", "Brand"),
    ("model", "Model"),
    ("manufacturer_reference_number", "Reference"),
    ("year", "Year"),
    ("metal_type", "Case Material"),
    ("case", "Case"),
    ("diameter", "Diameter"),
    ("dial", "Dial"),
    ("movement", "Movement"),
    ("strap", "Strap/Bracelet"),
    ("condition", "Condition"),
    ("box_papers", "Box & Papers"),
)

_WHITESPACE = re.compile(r"\s+")


def _present(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def price_band(price: Decimal | None) -> str | None:
    if price is None:
        return None
    for ceiling, label in PRICE_BANDS:
        if ceiling is None or price < ceiling:
            return label
    return None


def seo_title(item: Item) -> str:
    parts = (item.designer, item.model, item.manufacturer_reference_number, item.metal_type)
    return " ".join(part for part in map(_present, parts) if part)


def seo_description(item: Item) -> str:
    parts = (
        seo_title(item),
        item.condition,
        item.style,
        item.metal_type,
        item.dial,
        item.diameter,
        item.movement,
        item.year,
        item.strap,
        item.box_papers,
    )
    text = " ".join(part for part in map(_present, parts) if part)
    return _WHITESPACE.sub(" ", text).strip()


def tags(item: Item) -> tuple[str, ...]:
    candidates = (
        _present(item.designer),
        _present(item.model),
        price_band(item.price_keystone),
        _present(item.category),
    )
    seen: list[str] = []
    for tag in candidates:
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def body_html(item: Item) -> str:
    rows = []
    for attribute, label in DETAIL_ROWS:
        value = _present(getattr(item, attribute))
        if value:
            rows.append(f"<li><strong>{html.escape(label)}:</strong> {html.escape(value)}</li>")
    parts = []
    if description := _present(item.description_short):
        parts.append(f"<p>{html.escape(description)}</p>")
    if rows:
        parts.append("<ul>" + "".join(rows) + "</ul>")
    if notes := _present(item.notes):
        parts.append(f"<p>{html.escape(notes)}</p>")
    return "\n".join(parts)


def gender(style: str | None) -> str | None:
    value = _present(style)
    if value is None:
        return None
    if value.casefold() == "unisex":
        return "Unisex"
    if value.casefold() == "gents":
        return "Male"
    return "Female"


class ProductBuilder:
    """Turns an item into the :class:`CatalogEntry` the platform should hold.

    The result carries no platform ids; merging with the platform's copy fills
    them in before an update.
    """

    def __init__(self, *, definitions: MetafieldDefinitionCache | None = None) -> None:
        self._definitions = definitions

    def build(
        self,
        item: Item,
        image_urls: Sequence[str],
        locations: Sequence[Location],
    ) -> CatalogEntry:
        options = self._options(item)
        variant = Variant(
            sku=item.tag_number,
            price=item.price_keystone,
            option_values=tuple(option.values[0] for option in options),
            inventory_levels=compute_levels(item, locations),
        )
        description = seo_description(item)
        images = [
            ProductImage(src=url, alt_text=description or None, position=position)
            for position, url in enumerate(image_urls, start=1)
        ]
        return CatalogEntry(
            title=_present(item.description_short) or item.tag_number,
            body_html=body_html(item),
            vendor=_present(item.designer),
            product_type=_present(item.category),
            tags=tags(item),
            seo_title=seo_title(item) or None,
            seo_description=description or None,
            variants=[variant],
            options=options,
            images=images,
            metafields=self._merchant_metafields(item) + self._marketplace_metafields(item),
        )

    @staticmethod
    def _options(item: Item) -> list[ProductOption]:
        options: list[ProductOption] = []
        for attribute, name in OPTION_FIELDS:
            value = _present(getattr(item, attribute))
            if value:
                options.append(
                    ProductOption(name=name, values=(value,), position=len(options) + 1)
                )
        return options

    @staticmethod
    def _merchant_metafields(item: Item) -> list[Metafield]:
        values: list[tuple[str, str | None]] = [
            ("custom_product", "true"),
            ("age_group", "Adult"),
            ("google_product_type", MERCHANT_PRODUCT_TYPE),
            ("gender", gender(item.style)),
            ("condition", "New" if (item.condition or "").strip().casefold() == "new" else "Used"),
            ("adwords_grouping", _present(item.designer)),
            ("adwords_labels", _present(item.model)),
        ]
        return [
            Metafield(namespace=MERCHANT_NAMESPACE, key=key, value=value)
            for key, value in values
            if value is not None
        ]

    def _marketplace_metafields(self, item: Item) -> list[Metafield]:
        metafields = []
        for field in MarketplaceField:
            value = field.value_for(item)
            if value is None:
                continue
            if self._definitions is not None and not self._definitions.is_defined(
                MARKETPLACE_NAMESPACE, field.key
            ):
                log.debug("Skipping %s.%s: no definition", MARKETPLACE_NAMESPACE, field.key)
                continue
            metafields.append(
                Metafield(namespace=MARKETPLACE_NAMESPACE, key=field.key, value=value)
            )
        return metafields
