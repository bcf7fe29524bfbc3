"""Translate feed XML records into items."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from catalogsync.domain.errors import FeedCorruptionError
from catalogsync.domain.model import MAX_IMAGE_PATHS, Item

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

TAG_FIELD: Final[str] = "web_tag_number"

# feed field name -> Item attribute
TEXT_FIELDS: Final[Mapping[str, str]] = {
    "web_description_short": "description_short",
    "web_category": "category",
    "web_designer": "designer",
    "web_style": "style",
    "web_metal_type": "metal_type",
    "web_notes": "notes",
    "web_status": "status_text",
    "web_watch_condition": "condition",
    "web_watch_dial": "dial",
    "web_watch_diameter": "diameter",
    "web_watch_movement": "movement",
    "web_watch_strap": "strap",
    "web_watch_case": "case",
    "web_watch_year": "year",
    "web_watch_box_papers": "box_papers",
    "web_watch_manufacturer_reference_number": "manufacturer_reference_number",
    "web_watch_model": "model",
}

PRICE_FIELDS: Final[Mapping[str, str]] = {
    "web_price_retail": "price_retail",
    "web_price_sale": "price_sale",
    "web_price_keystone": "price_keystone",
}

IMAGE_FIELDS: Final[tuple[str, ...]] = tuple(
    f"web_image_path_{index}" for index in range(1, MAX_IMAGE_PATHS + 1)
)


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _price(tag_number: str | None, name: str, value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value.replace(",", "").lstrip("$"))
    except InvalidOperation:
        log.warning("Item %s: ignoring unparseable %s %r", tag_number, name, value)
        return None


def record_fields(record: ET.Element) -> dict[str, str | None]:
    """``<field name="..."><data>value</data></field>`` children as a mapping."""
    values: dict[str, str | None] = {}
    for field_node in record.iter("field"):
        name = field_node.get("name")
        if not name:
            continue
        data = field_node.find("data")
        values[name] = _text("".join(data.itertext())) if data is not None else None
    return values


def item_from_fields(values: Mapping[str, str | None]) -> Item | None:
    """Build an :class:`Item`; ``None`` when the record has no tag number."""
    tag_number = values.get(TAG_FIELD)
    if not tag_number:
        return None
    kwargs: dict[str, Any] = {
        attribute: values.get(name) for name, attribute in TEXT_FIELDS.items()
    }
    for name, attribute in PRICE_FIELDS.items():
        kwargs[attribute] = _price(tag_number, name, values.get(name))
    image_paths = [values.get(name) for name in IMAGE_FIELDS]
    while image_paths and image_paths[-1] is None:
        image_paths.pop()
    return Item(tag_number=tag_number, image_paths=tuple(image_paths), **kwargs)


def parse_feed(document: bytes | str) -> list[Item]:
    """Parse one feed document; records without a tag number abort the whole feed."""
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise FeedCorruptionError(f"Feed document is not valid XML: {exc}") from exc

    items: list[Item] = []
    missing = 0
    for record in root.iter("record"):
        values = record_fields(record)
        item = item_from_fields(values)
        if item is None:
            missing += 1
            log.error("Feed record without %s: %s", TAG_FIELD, values)
            continue
        items.append(item)

    if missing:
        raise FeedCorruptionError(
            f"Feed has {missing} record(s) with a blank {TAG_FIELD}; abandoning this run",
            missing_key_count=missing,
        )
    return items
